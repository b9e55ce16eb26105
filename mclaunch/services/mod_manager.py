"""
模组同步服务

安装缺失的模组；exclusive 模式下删除不在期望列表中的已安装 jar。
"""

import asyncio
import os
from typing import List, Sequence

import aiofiles.os
from loguru import logger

from mclaunch.download import DownloadManager
from mclaunch.models import ModDescriptor
from mclaunch.progress import InstallationProgress


class ModManager:
    """模组管理器"""

    def __init__(self, mods_dir: str, downloader: DownloadManager):
        self.mods_dir = mods_dir
        self.downloader = downloader

    def list_installed(self) -> List[str]:
        """列出 mods 目录下的 jar 文件名"""
        if not os.path.isdir(self.mods_dir):
            return []
        return [name for name in os.listdir(self.mods_dir) if name.endswith(".jar")]

    async def reconcile(
        self,
        mods: Sequence[ModDescriptor],
        exclusive: bool,
        progress: InstallationProgress,
    ) -> List[str]:
        """
        同步模组目录

        Args:
            mods: 期望的模组列表，按顺序处理
            exclusive: 是否删除不在列表中的已安装模组
            progress: 进度接收器

        Returns:
            被删除的文件名列表
        """
        os.makedirs(self.mods_dir, exist_ok=True)

        present = self.list_installed() if exclusive else []

        total = len(mods)
        for index, mod in enumerate(mods):
            progress.call(index / total)

            dest = os.path.join(self.mods_dir, mod.filename)
            if exclusive and mod.filename in present:
                present.remove(mod.filename)

            if mod.sha1:
                await self.downloader.check_or_download(mod.url, mod.sha1, dest)
            else:
                await self.downloader.exists_or_download(mod.url, dest)

        if exclusive and present:
            logger.info(f"[清理] 删除 {len(present)} 个不在列表中的模组")
            await asyncio.gather(
                *(aiofiles.os.remove(os.path.join(self.mods_dir, name)) for name in present)
            )

        progress.call(1)
        return present
