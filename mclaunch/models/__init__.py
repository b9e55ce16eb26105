"""
MCLaunch 数据模型包

包含配置模型、清单模型和版本引用定义。
"""

from mclaunch.models.config import (
    ClientOptions,
    Resolution,
    ServerInfo,
    LaunchOptions,
    AuthenticationResult,
    ModDescriptor,
    LauncherConfig,
)
from mclaunch.models.manifest import (
    RuleAction,
    Rule,
    Artifact,
    LiteralArgument,
    ConditionedArgument,
    Argument,
    ArgumentSet,
    Library,
    AssetIndexRef,
    VersionManifest,
    LoaderLibrary,
    LoaderProfile,
)
from mclaunch.models.version import VersionType, MinecraftVersion, LoaderVersion

__all__ = [
    # 配置模型
    "ClientOptions",
    "Resolution",
    "ServerInfo",
    "LaunchOptions",
    "AuthenticationResult",
    "ModDescriptor",
    "LauncherConfig",
    # 清单模型
    "RuleAction",
    "Rule",
    "Artifact",
    "LiteralArgument",
    "ConditionedArgument",
    "Argument",
    "ArgumentSet",
    "Library",
    "AssetIndexRef",
    "VersionManifest",
    "LoaderLibrary",
    "LoaderProfile",
    # 版本引用
    "VersionType",
    "MinecraftVersion",
    "LoaderVersion",
]
