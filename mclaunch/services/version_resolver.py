"""
版本解析服务

把版本号、"latest"/"recommended" 选择器或显式的加载器版本字符串
解析为版本引用。无法解析时返回 None，而不是抛出异常。
"""

from typing import Optional, Union

from loguru import logger

from mclaunch.models import LoaderVersion, MinecraftVersion
from mclaunch.services.api_client import MetaClient


LOADER_SELECTORS = ("latest", "recommended")


def parse_build_id(version: str) -> Optional[int]:
    """
    解析加载器构建号

    加载器版本字符串不保证从左到右有序，构建号取最后一个点分段：
    "14.23.4.2709" -> 2709。不含点时无法解析。
    """
    if "." not in version:
        return None
    try:
        return int(version.split(".")[::-1][0])
    except ValueError:
        return None


class VersionResolver:
    """版本解析器"""

    def __init__(self, client: MetaClient):
        self.client = client

    async def get_version(self, version_id: str) -> Optional[MinecraftVersion]:
        """
        解析游戏版本

        Args:
            version_id: 版本号，或 "latest"/"release"/"snapshot"

        Returns:
            版本引用或 None
        """
        manifest = await self.client.get_version_manifest()
        latest = manifest.get("latest", {})

        if version_id in ("latest", "release"):
            version_id = latest.get("release", version_id)
        elif version_id == "snapshot":
            version_id = latest.get("snapshot", version_id)

        for entry in manifest["versions"]:
            if entry.get("id") == version_id:
                return MinecraftVersion.from_index_entry(entry)

        logger.warning(f"[解析] 未找到游戏版本: {version_id}")
        return None

    async def get_promoted_loader(
        self, mc_version: Union[str, MinecraftVersion], selector: str
    ) -> Optional[LoaderVersion]:
        """
        获取推荐 / 最新的加载器版本

        Args:
            mc_version: 游戏版本
            selector: "latest" 或 "recommended"
        """
        mc_id = mc_version.id if isinstance(mc_version, MinecraftVersion) else mc_version
        if selector not in LOADER_SELECTORS:
            return None

        promos = await self.client.get_forge_promotions()
        version = promos.get(f"{mc_id}-{selector}")
        if not version:
            logger.warning(f"[解析] Minecraft {mc_id} 没有 {selector} 加载器版本")
            return None

        build = parse_build_id(version)
        if build is None:
            return None
        return LoaderVersion.forge(build, version, mc_id)

    def get_custom_loader(
        self, version: str, mc_version: Union[str, MinecraftVersion]
    ) -> Optional[LoaderVersion]:
        """由显式的加载器版本字符串构造引用，不访问网络"""
        mc_id = mc_version.id if isinstance(mc_version, MinecraftVersion) else mc_version
        build = parse_build_id(version)
        if build is None:
            logger.warning(f"[解析] 无法解析加载器版本: {version}")
            return None
        return LoaderVersion.forge(build, version, mc_id)

    async def get_loader(
        self, mc_version: Union[str, MinecraftVersion], loader: str
    ) -> Optional[LoaderVersion]:
        """解析加载器选择器或显式版本字符串"""
        if loader in LOADER_SELECTORS:
            return await self.get_promoted_loader(mc_version, loader)
        return self.get_custom_loader(loader, mc_version)
