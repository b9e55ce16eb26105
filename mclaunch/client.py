"""
客户端门面

整合版本解析、库安装、资源安装、模组同步与启动流程。
"""

import asyncio
import os
import shutil
import subprocess
from typing import List, Optional, Sequence, Union

from loguru import logger

from mclaunch.download import DownloadManager
from mclaunch.exceptions import LaunchError
from mclaunch.models import (
    AuthenticationResult,
    ClientOptions,
    LaunchOptions,
    LoaderVersion,
    MinecraftVersion,
    ModDescriptor,
    ServerInfo,
)
from mclaunch.progress import InstallationProgress, LoggingProgress
from mclaunch.services import (
    ArgumentResolver,
    AssetManager,
    LaunchDriver,
    LibraryManager,
    MetaClient,
    ModManager,
    RuleEvaluator,
    ServerList,
    VersionResolver,
)
from mclaunch.utils import classpath_separator


def create_downloader(options: ClientOptions) -> DownloadManager:
    """按客户端选项创建下载管理器"""
    return DownloadManager(
        max_concurrent=options.max_concurrent,
        max_retries=options.max_retries,
        retry_delay=options.retry_delay,
    )


class MinecraftClient:
    """
    游戏客户端

    一个实例对应一次安装加一次启动。启动时解压的本地库目录
    归本实例所有，在 close() 中删除。
    """

    def __init__(
        self,
        version: MinecraftVersion,
        loader: Optional[LoaderVersion] = None,
        options: Optional[ClientOptions] = None,
        progress: Optional[InstallationProgress] = None,
        downloader: Optional[DownloadManager] = None,
        client: Optional[MetaClient] = None,
    ):
        self.options = options or ClientOptions()
        self.version = version
        self.loader = loader
        self.progress = progress or LoggingProgress()

        self.downloader = downloader or create_downloader(self.options)
        self.client = client or MetaClient(self.downloader)
        self.evaluator = RuleEvaluator(self.options.features)

        self.library_manager = LibraryManager(
            self.options, version, self.downloader, self.client, self.evaluator
        )
        self.asset_manager = AssetManager(self.options, self.downloader)
        self.mod_manager = ModManager(os.path.join(self.options.root, "mods"), self.downloader)
        self.server_list = ServerList(self.options.root)
        self.argument_resolver = ArgumentResolver(self.evaluator)
        self.driver = LaunchDriver(self.options.java_executable, self.options.root)

        self.native_dir: Optional[str] = None

    @classmethod
    async def get_client(
        cls,
        version: Union[str, MinecraftVersion],
        loader: Union[str, LoaderVersion, None] = None,
        options: Optional[ClientOptions] = None,
        progress: Optional[InstallationProgress] = None,
        client: Optional[MetaClient] = None,
    ) -> Optional["MinecraftClient"]:
        """
        解析版本并创建客户端

        Args:
            version: 版本号或已解析的版本引用
            loader: "latest"/"recommended"、显式加载器版本或已解析的引用
            options: 客户端选项
            progress: 进度接收器
            client: 元数据客户端

        Returns:
            客户端实例，版本无法解析时返回 None
        """
        options = options or ClientOptions()
        if client is None:
            client = MetaClient(create_downloader(options))
        resolver = VersionResolver(client)

        if isinstance(version, MinecraftVersion):
            mc_version: Optional[MinecraftVersion] = version
        else:
            mc_version = await resolver.get_version(version)
        if mc_version is None:
            return None

        loader_version: Optional[LoaderVersion] = None
        if isinstance(loader, LoaderVersion):
            loader_version = loader
        elif loader:
            loader_version = await resolver.get_loader(mc_version, loader)
            if loader_version is None:
                return None

        return cls(mc_version, loader_version, options, progress, client.downloader, client)

    async def check_installation(self) -> None:
        """安装游戏库、加载器库和资源文件"""
        self.progress.step("Installing Libraries")
        await self.library_manager.install_minecraft_libraries(self.progress)

        if self.loader:
            self.progress.step("Installing Loader Libraries")
            await self.library_manager.install_loader_libraries(self.loader, self.progress)

        self.progress.step("Installing Assets")
        await self.asset_manager.install(self.library_manager.asset_index_ref, self.progress)

    async def check_mods(self, mods: Sequence[ModDescriptor], exclusive: bool) -> List[str]:
        """同步模组目录，返回被删除的文件名"""
        self.progress.step("Installing Mods")
        return await self.mod_manager.reconcile(mods, exclusive, self.progress)

    def ensure_servers_dat(self, server: ServerInfo) -> bool:
        """添加服务器书签"""
        return self.server_list.ensure(server)

    def get_java_arguments(
        self, native_dir: str, launch_options: Optional[LaunchOptions] = None
    ) -> List[str]:
        """解析 JVM 参数"""
        manager = self.library_manager
        table = ArgumentResolver.jvm_table(
            natives_dir=native_dir,
            classpath=manager.get_classpath(),
            classpath_separator=classpath_separator(self.evaluator.os_name),
            libraries_dir=manager.libraries_dir,
            version_name=self.version.id,
            launcher_name=self.options.launcher_name,
            launcher_version=self.options.launcher_version,
        )
        return self.argument_resolver.resolve(
            manager.arguments.jvm, table, ArgumentResolver.jvm_overrides(launch_options), "jvm"
        )

    def get_launch_arguments(
        self, auth: AuthenticationResult, launch_options: Optional[LaunchOptions] = None
    ) -> List[str]:
        """解析游戏参数"""
        manager = self.library_manager
        table = ArgumentResolver.game_table(
            auth=auth,
            version_name=self.version.id,
            game_dir=self.options.root,
            asset_index=manager.asset_index,
            version_type=manager.version_type,
            launch_options=launch_options,
        )
        return self.argument_resolver.resolve(
            manager.arguments.game, table, ArgumentResolver.game_overrides(launch_options), "game"
        )

    async def _prepare_launch(
        self, auth: AuthenticationResult, launch_options: LaunchOptions
    ) -> List[str]:
        """解压本地库并拼出完整参数向量"""
        if not self.library_manager.main_class:
            raise LaunchError("请先调用 check_installation()")

        self.cleanup_natives()
        self.native_dir = await self.library_manager.unpack_natives()

        return self.driver.build_command(
            self.get_java_arguments(self.native_dir, launch_options),
            self.library_manager.main_class,
            self.get_launch_arguments(auth, launch_options),
        )

    async def launch(
        self, auth: AuthenticationResult, launch_options: Optional[LaunchOptions] = None
    ) -> asyncio.subprocess.Process:
        """
        解压本地库并启动游戏

        Raises:
            LaunchError: 尚未安装
            TemplateResolutionError: 参数模板未完全替换
        """
        launch_options = launch_options or LaunchOptions()
        args = await self._prepare_launch(auth, launch_options)
        return await self.driver.spawn(args, launch_options.redirect_output, secret=auth.token)

    async def launch_detached(
        self, auth: AuthenticationResult, launch_options: Optional[LaunchOptions] = None
    ) -> subprocess.Popen:
        """
        启动游戏但不等待退出

        游戏进程独立于事件循环运行。本地库目录交给游戏使用，
        close() 不再删除它，留给系统清理临时目录。
        """
        args = await self._prepare_launch(auth, launch_options or LaunchOptions())
        process = self.driver.spawn_detached(args, secret=auth.token)
        logger.info(f"[启动] 本地库目录保留: {self.native_dir}")
        self.native_dir = None
        return process

    async def run(
        self, auth: AuthenticationResult, launch_options: Optional[LaunchOptions] = None
    ) -> int:
        """启动游戏并等待退出，返回退出码"""
        process = await self.launch(auth, launch_options)
        try:
            return_code = await self.driver.wait(process)
        finally:
            self.cleanup_natives()
        logger.info(f"[退出] 游戏进程退出，退出码 {return_code}")
        return return_code

    def cleanup_natives(self) -> None:
        """删除本地库临时目录"""
        if self.native_dir:
            shutil.rmtree(self.native_dir, ignore_errors=True)
            self.native_dir = None

    async def close(self) -> None:
        """清理临时目录并关闭网络会话"""
        self.cleanup_natives()
        await self.downloader.close()

    async def __aenter__(self):
        """异步上下文管理器入口"""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """异步上下文管理器出口"""
        await self.close()
