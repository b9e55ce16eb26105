"""
MCLaunch 服务层

包含业务逻辑服务：元数据客户端、版本解析、规则求值、库安装、
参数解析、资源安装、模组同步、服务器列表与启动驱动。
"""

from mclaunch.services.api_client import MetaClient
from mclaunch.services.rules import RuleEvaluator, apply_rules
from mclaunch.services.version_resolver import VersionResolver, parse_build_id
from mclaunch.services.library_manager import LibraryManager, LibraryOutcome
from mclaunch.services.arguments import ArgumentResolver
from mclaunch.services.asset_manager import AssetManager
from mclaunch.services.mod_manager import ModManager
from mclaunch.services.servers import ServerEntry, ServerList
from mclaunch.services.launcher import LaunchDriver

__all__ = [
    "MetaClient",
    "RuleEvaluator",
    "apply_rules",
    "VersionResolver",
    "parse_build_id",
    "LibraryManager",
    "LibraryOutcome",
    "ArgumentResolver",
    "AssetManager",
    "ModManager",
    "ServerEntry",
    "ServerList",
    "LaunchDriver",
]
