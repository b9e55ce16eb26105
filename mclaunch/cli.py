"""
CLI 模块

命令行接口实现。
"""

import asyncio
import json
from pathlib import Path
from typing import Optional

import click
import toml
from loguru import logger

from mclaunch.client import MinecraftClient
from mclaunch.exceptions import ConfigParseError, MCLaunchError
from mclaunch.logger import setup_logger
from mclaunch.models import (
    AuthenticationResult,
    ClientOptions,
    LauncherConfig,
    Resolution,
    ServerInfo,
)


def load_config(config_path: str) -> dict:
    """加载配置文件"""
    path = Path(config_path)

    if not path.exists():
        raise click.ClickException(f"配置文件不存在: {config_path}")

    suffix = path.suffix.lower()

    try:
        if suffix == ".toml":
            return toml.load(config_path)
        elif suffix == ".json":
            return json.loads(path.read_text(encoding="utf-8"))
        elif suffix in (".yaml", ".yml"):
            import yaml

            return yaml.safe_load(path.read_text(encoding="utf-8"))
    except (toml.TomlDecodeError, ValueError) as e:
        raise ConfigParseError(f"配置文件解析失败: {e}", context={"path": config_path})

    raise click.ClickException(f"不支持的配置文件格式: {suffix}")


async def install_async(config: LauncherConfig) -> Optional[MinecraftClient]:
    """解析版本并完成安装"""
    client = await MinecraftClient.get_client(config.version, config.loader, config.options)
    if client is None:
        raise click.ClickException(f"无法解析版本: {config.version} {config.loader or ''}")

    try:
        await client.check_installation()
        if config.mods or config.exclusive_mods:
            await client.check_mods(config.mods, config.exclusive_mods)
        for server in config.servers:
            client.ensure_servers_dat(server)
    except BaseException:
        await client.close()
        raise
    return client


async def launch_async(config: LauncherConfig, wait: bool) -> int:
    """安装并启动"""
    client = await install_async(config)
    auth = config.auth or AuthenticationResult.offline("Player")

    async with client:
        if wait:
            return await client.run(auth, config.launch)
        process = await client.launch_detached(auth, config.launch)
        logger.info(f"游戏进程 PID: {process.pid}")
        return 0


async def resolve_async(version: str, loader: Optional[str]) -> None:
    client = await MinecraftClient.get_client(version, loader, ClientOptions())
    if client is None:
        raise click.ClickException(f"无法解析版本: {version} {loader or ''}")
    async with client:
        click.echo(f"{client.version.id} ({client.version.type.value}) {client.version.url}")
        if client.loader:
            click.echo(f"loader {client.loader.version} (build {client.loader.build})")
            click.echo(f"installer {client.loader.installer}")


def run(coro):
    """运行协程，把 MCLaunchError 转为 ClickException"""
    try:
        return asyncio.run(coro)
    except MCLaunchError as e:
        logger.error(f"运行失败: {e}")
        raise click.ClickException(str(e))


@click.group()
@click.option("--debug", is_flag=True, help="启用调试模式")
@click.option("--log-file", type=click.Path(dir_okay=False), help="额外写入的日志文件")
@click.version_option(version="0.1.0")
def main(debug: bool, log_file: Optional[str]):
    """MCLaunch - Minecraft 版本安装与启动工具"""
    setup_logger(level="DEBUG" if debug else None, log_file=log_file)


@main.command()
@click.argument("config", type=click.Path(exists=True), default="launcher.toml")
def install(config: str):
    """解析并安装 CONFIG 中的版本、加载器、资源与模组"""
    launcher_config = LauncherConfig.from_dict(load_config(config))

    async def _install():
        client = await install_async(launcher_config)
        await client.close()

    run(_install())
    logger.success("安装完成!")


@main.command()
@click.argument("config", type=click.Path(exists=True), default="launcher.toml")
@click.option("--offline", "offline_name", help="以离线模式使用该玩家名")
@click.option("--memory", help="内存上限，如 2G")
@click.option("--server", help="直连服务器 host[:port]")
@click.option("--width", type=int, help="窗口宽度")
@click.option("--height", type=int, help="窗口高度")
@click.option("--wait/--no-wait", default=True, help="是否等待游戏退出")
def launch(
    config: str,
    offline_name: Optional[str],
    memory: Optional[str],
    server: Optional[str],
    width: Optional[int],
    height: Optional[int],
    wait: bool,
):
    """安装并启动 CONFIG 中的版本"""
    launcher_config = LauncherConfig.from_dict(load_config(config))

    if offline_name:
        launcher_config.auth = AuthenticationResult.offline(offline_name)
    if memory:
        launcher_config.launch.memory = memory
    if server:
        launcher_config.launch.server = ServerInfo.parse(server)
    if width and height:
        launcher_config.launch.resolution = Resolution(width=width, height=height)
    launcher_config.launch.redirect_output = True

    code = run(launch_async(launcher_config, wait))
    if code:
        raise SystemExit(code)


@main.command()
@click.argument("version")
@click.option("--loader", help="加载器版本或 latest/recommended")
def resolve(version: str, loader: Optional[str]):
    """解析版本并打印结果"""
    run(resolve_async(version, loader))


if __name__ == "__main__":
    main()
