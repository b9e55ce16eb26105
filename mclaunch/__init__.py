"""
MCLaunch

把游戏版本 (以及可选的模组加载器) 解析为可运行的安装并启动它。
"""

from mclaunch.client import MinecraftClient
from mclaunch.exceptions import MCLaunchError
from mclaunch.logger import setup_logger
from mclaunch.models import (
    AuthenticationResult,
    ClientOptions,
    LaunchOptions,
    LoaderVersion,
    MinecraftVersion,
    ModDescriptor,
    ServerInfo,
)
from mclaunch.progress import InstallationProgress

__version__ = "0.1.0"

__all__ = [
    "MinecraftClient",
    "MCLaunchError",
    "setup_logger",
    "AuthenticationResult",
    "ClientOptions",
    "LaunchOptions",
    "LoaderVersion",
    "MinecraftVersion",
    "ModDescriptor",
    "ServerInfo",
    "InstallationProgress",
]
