"""
资源文件服务

下载资源索引，再通过下载队列并发下载全部资源对象。
"""

import json
import os
from typing import Optional

import aiofiles
from loguru import logger

from mclaunch.download import DownloadManager
from mclaunch.exceptions import ManifestParseError
from mclaunch.models import AssetIndexRef, ClientOptions
from mclaunch.progress import InstallationProgress


RESOURCES_URL = "https://resources.download.minecraft.net/"


class AssetManager:
    """资源管理器"""

    def __init__(
        self,
        options: ClientOptions,
        downloader: DownloadManager,
        resources_url: str = RESOURCES_URL,
    ):
        self.options = options
        self.downloader = downloader
        self.resources_url = resources_url

    @property
    def assets_dir(self) -> str:
        return os.path.join(self.options.root, "assets")

    async def install(
        self, asset_index: Optional[AssetIndexRef], progress: InstallationProgress
    ) -> int:
        """
        安装资源文件

        Returns:
            资源对象数量
        """
        if asset_index is None:
            logger.info("[资源] 版本清单没有声明资源索引，跳过")
            progress.call(1)
            return 0

        index_path = os.path.join(self.assets_dir, "indexes", f"{asset_index.id}.json")
        await self.downloader.check_or_download(asset_index.url, asset_index.sha1, index_path)

        async with aiofiles.open(index_path, "r", encoding="utf-8") as f:
            raw = await f.read()
        try:
            objects = json.loads(raw)["objects"]
        except (ValueError, KeyError, TypeError) as e:
            raise ManifestParseError(
                f"无法解析资源索引: {index_path}", context={"path": index_path, "error": str(e)}
            )

        for name, obj in objects.items():
            digest = obj.get("hash") if isinstance(obj, dict) else None
            if not digest:
                raise ManifestParseError(f"资源 {name} 缺少 hash", context={"asset": name})
            prefix = digest[:2]
            await self.downloader.enqueue(
                f"{self.resources_url}{prefix}/{digest}",
                os.path.join(self.assets_dir, "objects", prefix, digest),
                digest,
                category="assets",
            )

        logger.info(f"[资源] 资源索引 {asset_index.id} 包含 {len(objects)} 个对象")
        await self.downloader.run(progress)
        progress.call(1)
        return len(objects)
