"""
版本引用模型

版本解析器的输出：游戏版本引用与模组加载器版本引用。
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


FORGE_MAVEN_URL = "https://maven.minecraftforge.net/"


class VersionType(Enum):
    """版本类型"""

    RELEASE = "release"
    SNAPSHOT = "snapshot"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Optional[str]) -> "VersionType":
        """解析版本类型，未知类型 (old_alpha 等) 归为 UNKNOWN"""
        for member in cls:
            if member.value == value:
                return member
        return cls.UNKNOWN


@dataclass(frozen=True)
class MinecraftVersion:
    """
    游戏版本引用。

    url 指向该版本的 JSON 清单，type_name 保留清单中的原始类型字符串，
    用于 ${version_type} 替换。
    """

    id: str
    type: VersionType
    url: str
    type_name: str = "unknown"
    release_time: Optional[str] = None

    @classmethod
    def from_index_entry(cls, entry: dict) -> "MinecraftVersion":
        """由版本索引中的条目构造"""
        return cls(
            id=entry["id"],
            type=VersionType.parse(entry.get("type")),
            url=entry["url"],
            type_name=entry.get("type", "unknown"),
            release_time=entry.get("releaseTime"),
        )


@dataclass(frozen=True)
class LoaderVersion:
    """模组加载器 (Forge) 版本引用"""

    build: int
    version: str
    mcversion: str
    installer: str
    universal: str

    @property
    def full_version(self) -> str:
        """Maven 中使用的完整版本号，如 1.12.2-14.23.5.2860"""
        return f"{self.mcversion}-{self.version}"

    @property
    def universal_path(self) -> str:
        """universal jar 在 libraries 目录下的相对路径"""
        full = self.full_version
        return f"net/minecraftforge/forge/{full}/forge-{full}-universal.jar"

    @classmethod
    def forge(
        cls,
        build: int,
        version: str,
        mcversion: str,
        maven_url: str = FORGE_MAVEN_URL,
    ) -> "LoaderVersion":
        """根据 Forge Maven 布局构造加载器引用"""
        full = f"{mcversion}-{version}"
        base = f"{maven_url}net/minecraftforge/forge/{full}/forge-{full}"
        return cls(
            build=build,
            version=version,
            mcversion=mcversion,
            installer=f"{base}-installer.jar",
            universal=f"{base}-universal.jar",
        )
