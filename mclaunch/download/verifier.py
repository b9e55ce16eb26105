"""
文件校验器

实现 SHA1 校验、文件存在性检查、文件完整性验证。
"""

import hashlib
import os
from typing import Optional, Sequence, Union

import aiofiles


ExpectedSha1 = Union[str, Sequence[str], None]


def normalize_sha1(expected: ExpectedSha1) -> tuple:
    """把单个或多个候选 SHA1 统一为小写元组"""
    if not expected:
        return ()
    if isinstance(expected, str):
        return (expected.strip().lower(),)
    return tuple(sha1.strip().lower() for sha1 in expected if sha1)


class FileVerifier:
    """文件校验器"""

    @staticmethod
    async def calc_sha1(file_path: str) -> Optional[str]:
        """
        计算文件的 SHA1 值

        Args:
            file_path: 文件路径

        Returns:
            SHA1 哈希值或 None（如果文件不存在）
        """
        if not os.path.exists(file_path):
            return None

        sha1 = hashlib.sha1()
        try:
            async with aiofiles.open(file_path, "rb") as f:
                while True:
                    data = await f.read(65536)
                    if not data:
                        break
                    sha1.update(data)
            return sha1.hexdigest()
        except (IOError, OSError):
            return None

    @staticmethod
    async def verify_sha1(file_path: str, expected_sha1: ExpectedSha1) -> bool:
        """
        校验文件的 SHA1 是否匹配任一候选值

        Args:
            file_path: 文件路径
            expected_sha1: 预期的 SHA1 值或候选列表

        Returns:
            是否匹配（如果没有预期值则返回 True）
        """
        candidates = normalize_sha1(expected_sha1)
        if not candidates:
            return True

        current_sha1 = await FileVerifier.calc_sha1(file_path)
        if current_sha1 is None:
            return False

        return current_sha1 in candidates

    @staticmethod
    def exists(file_path: str) -> bool:
        """检查文件是否存在"""
        return os.path.isfile(file_path)

    @staticmethod
    async def is_valid(file_path: str, expected_sha1: ExpectedSha1 = None) -> bool:
        """
        检查文件是否有效（存在且校验通过）

        Args:
            file_path: 文件路径
            expected_sha1: 预期的 SHA1 值或候选列表

        Returns:
            是否有效
        """
        if not FileVerifier.exists(file_path):
            return False

        return await FileVerifier.verify_sha1(file_path, expected_sha1)
