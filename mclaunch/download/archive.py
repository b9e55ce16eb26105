"""
归档解压

流式读取 zip/jar 条目，跳过排除项，其余文件按相对路径写入目标目录。
"""

import asyncio
import fnmatch
import io
import os
import shutil
import zipfile
from typing import Sequence

from loguru import logger

from mclaunch.exceptions import ManifestParseError


def is_excluded(name: str, patterns: Sequence[str]) -> bool:
    """条目路径是否命中任一排除规则 (前缀或通配符)"""
    for pattern in patterns:
        if name.startswith(pattern) or fnmatch.fnmatch(name, pattern):
            return True
    return False


class ArchiveExtractor:
    """归档解压器"""

    @staticmethod
    def extract(archive_path: str, dest_dir: str, exclude: Sequence[str] = ()) -> int:
        """
        解压归档

        Args:
            archive_path: 归档路径
            dest_dir: 目标目录
            exclude: 排除规则

        Returns:
            写入的文件数量
        """
        root = os.path.abspath(dest_dir)
        os.makedirs(root, exist_ok=True)
        written = 0

        try:
            with zipfile.ZipFile(archive_path) as archive:
                for member in archive.infolist():
                    if member.is_dir() or is_excluded(member.filename, exclude):
                        continue

                    target = os.path.abspath(os.path.join(root, member.filename))
                    if os.path.commonpath([root, target]) != root:
                        logger.warning(f"[跳过] 条目路径越界: {member.filename}")
                        continue

                    os.makedirs(os.path.dirname(target), exist_ok=True)
                    with archive.open(member) as src, open(target, "wb") as dst:
                        shutil.copyfileobj(src, dst)
                    written += 1
        except zipfile.BadZipFile as e:
            raise ManifestParseError(
                f"无法读取归档: {archive_path}", context={"archive": archive_path, "error": str(e)}
            )

        return written

    @staticmethod
    async def extract_async(
        archive_path: str, dest_dir: str, exclude: Sequence[str] = ()
    ) -> int:
        """在线程池中解压，避免阻塞事件循环"""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, ArchiveExtractor.extract, archive_path, dest_dir, tuple(exclude)
        )

    @staticmethod
    def read_entry(data: bytes, entry_name: str) -> bytes:
        """从内存中的归档读取单个条目，其余条目不解压"""
        try:
            with zipfile.ZipFile(io.BytesIO(data)) as archive:
                return archive.read(entry_name)
        except KeyError:
            raise ManifestParseError(
                f"归档中没有条目: {entry_name}", context={"entry": entry_name}
            )
        except zipfile.BadZipFile as e:
            raise ManifestParseError(f"无法读取归档: {e}", context={"entry": entry_name})
