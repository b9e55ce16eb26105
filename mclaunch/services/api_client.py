"""
元数据客户端

获取版本索引、单个版本清单以及 Forge 推荐版本索引。
"""

import json
from typing import Any, Optional

from mclaunch.download import DownloadManager
from mclaunch.exceptions import (
    APIError,
    APINotFoundError,
    DownloadError,
    DownloadNetworkError,
    ManifestParseError,
)


VERSION_MANIFEST_URL = "https://piston-meta.mojang.com/mc/game/version_manifest_v2.json"
FORGE_PROMOTIONS_URL = (
    "https://files.minecraftforge.net/net/minecraftforge/forge/promotions_slim.json"
)


class MetaClient:
    """元数据接口客户端，网络访问统一交给下载管理器"""

    def __init__(
        self,
        downloader: DownloadManager,
        version_manifest_url: str = VERSION_MANIFEST_URL,
        forge_promotions_url: str = FORGE_PROMOTIONS_URL,
    ):
        self.downloader = downloader
        self.version_manifest_url = version_manifest_url
        self.forge_promotions_url = forge_promotions_url

    async def _request(self, url: str) -> Any:
        """请求 JSON 资源"""
        try:
            data = await self.downloader.get_file(url)
        except DownloadError as e:
            if isinstance(e, DownloadNetworkError) and e.context.get("status") == 404:
                raise APINotFoundError(f"资源不存在: {url}", context={"url": url})
            raise APIError(f"请求失败: {url}", context=dict(e.context))

        try:
            return json.loads(data)
        except (ValueError, UnicodeDecodeError) as e:
            raise ManifestParseError(f"无法解析 JSON: {url}", context={"url": url, "error": str(e)})

    async def get_version_manifest(self) -> dict:
        """获取版本索引 {latest: {...}, versions: [...]}"""
        data = await self._request(self.version_manifest_url)
        if not isinstance(data, dict) or not isinstance(data.get("versions"), list):
            raise ManifestParseError("版本索引格式错误", context={"url": self.version_manifest_url})
        return data

    async def get_version(self, url: str) -> dict:
        """获取单个版本的清单"""
        return await self._request(url)

    async def get_forge_promotions(self) -> dict:
        """获取 Forge 推荐版本索引 {"1.12.2-latest": "14.23.5.2860", ...}"""
        data = await self._request(self.forge_promotions_url)
        promos: Optional[dict] = data.get("promos") if isinstance(data, dict) else None
        if not isinstance(promos, dict):
            raise ManifestParseError("Forge 推荐版本索引格式错误")
        return promos
