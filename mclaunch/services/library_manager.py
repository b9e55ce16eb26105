"""
库管理器

遍历版本清单中的库列表，按规则筛选后下载 / 校验，
累积 classpath、参数模板以及主类、资源索引、版本类型等元数据。
"""

import asyncio
import json
import os
import shutil
from contextlib import asynccontextmanager
from enum import Enum
from typing import AsyncIterator, Dict, List, Optional

import aiofiles
from loguru import logger

from mclaunch.download import ArchiveExtractor, DownloadManager
from mclaunch.download.queue import Priority
from mclaunch.exceptions import DownloadError, ManifestParseError
from mclaunch.models import (
    ArgumentSet,
    AssetIndexRef,
    ClientOptions,
    LiteralArgument,
    LoaderLibrary,
    LoaderProfile,
    LoaderVersion,
    MinecraftVersion,
    VersionManifest,
)
from mclaunch.progress import InstallationProgress
from mclaunch.services.api_client import MetaClient
from mclaunch.services.rules import RuleEvaluator
from mclaunch.utils import classpath_separator, create_temp_dir, get_arch_bits, maven_path


DEFAULT_JVM_ARGUMENTS = [
    "-Djava.library.path=${natives_directory}",
    "-Dminecraft.launcher.brand=${launcher_name}",
    "-Dminecraft.launcher.version=${launcher_version}",
    "-cp",
    "${classpath}",
]

GC_ARGUMENTS = [
    "-XX:+UnlockExperimentalVMOptions",
    "-XX:+UseG1GC",
    "-XX:G1NewSizePercent=20",
    "-XX:G1ReservePercent=20",
    "-XX:MaxGCPauseMillis=50",
    "-XX:G1HeapRegionSize=16M",
]

# 加载器安装后不再替换真实的版本类型
VERSION_TYPE_IGNORED = "ignored"

INSTALL_PROFILE_ENTRY = "install_profile.json"


class LibraryOutcome(Enum):
    """单个加载器库的安装结果"""

    INSTALLED = "installed"
    SKIPPED_OPTIONAL = "skipped_optional"


class LibraryManager:
    """
    库管理器

    每个 (配置, 版本) 创建一个实例，负责一次安装和一次启动。
    classpath 按清单顺序累积，不排序、不去重。
    """

    def __init__(
        self,
        options: ClientOptions,
        version: MinecraftVersion,
        downloader: DownloadManager,
        client: Optional[MetaClient] = None,
        evaluator: Optional[RuleEvaluator] = None,
    ):
        self.options = options
        self.version = version
        self.downloader = downloader
        self.client = client or MetaClient(downloader)
        self.evaluator = evaluator or RuleEvaluator(options.features)

        self.classpath: List[str] = []
        self.main_class = ""
        self.arguments = ArgumentSet()
        self.version_type = ""
        self.asset_index = ""
        self.asset_index_ref: Optional[AssetIndexRef] = None

        self._manifest: Optional[VersionManifest] = None

    @property
    def libraries_dir(self) -> str:
        return os.path.join(self.options.root, "libraries")

    @property
    def version_dir(self) -> str:
        return os.path.join(self.options.root, "versions", self.version.id)

    @property
    def client_jar(self) -> str:
        return os.path.join(self.version_dir, f"{self.version.id}.jar")

    async def get_version_manifest(self) -> VersionManifest:
        """读取版本清单，本地没有缓存时下载并写入 versions/<id>/<id>.json"""
        if self._manifest is not None:
            return self._manifest

        path = os.path.join(self.version_dir, f"{self.version.id}.json")
        if os.path.isfile(path):
            async with aiofiles.open(path, "r", encoding="utf-8") as f:
                raw = await f.read()
            try:
                data = json.loads(raw)
            except ValueError as e:
                raise ManifestParseError(
                    f"无法解析版本清单: {path}", context={"path": path, "error": str(e)}
                )
        else:
            logger.info(f"[清单] 获取 {self.version.id} 的版本清单")
            data = await self.client.get_version(self.version.url)
            os.makedirs(self.version_dir, exist_ok=True)
            async with aiofiles.open(path, "w", encoding="utf-8") as f:
                await f.write(json.dumps(data))

        self._manifest = VersionManifest.from_dict(data)
        return self._manifest

    async def install_minecraft_libraries(self, progress: InstallationProgress) -> None:
        """
        安装游戏库与客户端 jar

        classpath 在下载之前按清单顺序写入，下载并发进行；
        任一必需文件失败则整个调用失败。
        """
        manifest = await self.get_version_manifest()
        os_name = self.evaluator.os_name
        arch_bits = get_arch_bits()

        for lib in manifest.libraries:
            if not self.evaluator.applies(lib.rules):
                logger.debug(f"[规则] 跳过库 {lib.name}")
                continue

            if lib.artifact and not lib.has_natives:
                dest = os.path.join(self.libraries_dir, lib.artifact.path or maven_path(lib.name))
                self.classpath.append(os.path.abspath(dest))
                await self.downloader.enqueue(
                    lib.artifact.url, dest, lib.artifact.sha1, category="libraries"
                )

            if lib.has_natives:
                artifact = lib.native_artifact(os_name, arch_bits)
                if artifact is None or not artifact.path:
                    continue
                dest = os.path.join(self.libraries_dir, artifact.path)
                await self.downloader.enqueue(artifact.url, dest, artifact.sha1, category="natives")

        self.classpath.append(os.path.abspath(self.client_jar))
        await self.downloader.enqueue(
            manifest.client.url,
            self.client_jar,
            manifest.client.sha1,
            category="client",
            priority=Priority.HIGH,
        )

        await self.downloader.run(progress)
        progress.call(1)

        self.main_class = manifest.main_class
        self.version_type = manifest.type
        self.asset_index = manifest.assets
        self.asset_index_ref = manifest.asset_index

        if manifest.is_legacy:
            jvm = DEFAULT_JVM_ARGUMENTS + GC_ARGUMENTS
            if os_name == "osx":
                jvm = jvm + ["-XstartOnFirstThread"]
            self.arguments = ArgumentSet(
                jvm=[LiteralArgument(arg) for arg in jvm],
                game=ArgumentSet.split_legacy(manifest.legacy_arguments or ""),
            )
        else:
            self.arguments = ArgumentSet(
                jvm=list(manifest.arguments.jvm), game=list(manifest.arguments.game)
            )

        logger.info(f"[完成] 游戏库安装完成，共 {len(self.classpath)} 个 classpath 条目")

    async def get_loader_profile(self, loader: LoaderVersion) -> LoaderProfile:
        """读取加载器安装配置，本地没有缓存时从安装器中提取"""
        mc = loader.mcversion
        path = os.path.join(self.options.root, "versions", mc, f"{mc}-loader.json")

        if os.path.isfile(path):
            async with aiofiles.open(path, "rb") as f:
                data = await f.read()
        else:
            logger.info(f"[加载器] 从安装器提取 {INSTALL_PROFILE_ENTRY}: {loader.installer}")
            installer = await self.downloader.get_file(loader.installer)
            data = ArchiveExtractor.read_entry(installer, INSTALL_PROFILE_ENTRY)
            os.makedirs(os.path.dirname(path), exist_ok=True)
            async with aiofiles.open(path, "wb") as f:
                await f.write(data)

        try:
            return LoaderProfile.from_dict(json.loads(data))
        except (ValueError, UnicodeDecodeError) as e:
            raise ManifestParseError(
                f"无法解析加载器安装配置: {path}", context={"path": path, "error": str(e)}
            )

    async def _install_loader_library(self, lib: LoaderLibrary, dest: str) -> LibraryOutcome:
        """主地址失败后使用备用镜像重试一次，两次都失败则跳过"""
        for retry in (False, True):
            url = lib.artifact_url(retry)
            try:
                if lib.checksums:
                    await self.downloader.check_or_download(url, lib.checksums, dest)
                else:
                    await self.downloader.exists_or_download(url, dest)
                return LibraryOutcome.INSTALLED
            except DownloadError as e:
                logger.debug(f"[重试] 加载器库 {lib.name} 下载失败 ({url}): {e}")
        return LibraryOutcome.SKIPPED_OPTIONAL

    async def install_loader_libraries(
        self, loader: LoaderVersion, progress: InstallationProgress
    ) -> Dict[str, LibraryOutcome]:
        """
        安装加载器库与 universal jar，并用加载器的主类和参数覆盖原有值

        Returns:
            每个加载器库的安装结果
        """
        profile = await self.get_loader_profile(loader)
        libs = [lib for lib in profile.libraries if lib.is_client_required]
        total = len(libs)
        semaphore = asyncio.Semaphore(self.options.max_concurrent)
        done = 0

        async def install(lib: LoaderLibrary, dest: str) -> LibraryOutcome:
            nonlocal done
            async with semaphore:
                outcome = await self._install_loader_library(lib, dest)
            done += 1
            progress.call(done / total)
            return outcome

        tasks = []
        for lib in libs:
            dest = os.path.join(self.libraries_dir, lib.path)
            self.classpath.append(os.path.abspath(dest))
            tasks.append(install(lib, dest))

        results = await asyncio.gather(*tasks)

        outcomes: Dict[str, LibraryOutcome] = {}
        for lib, outcome in zip(libs, results):
            outcomes[lib.name] = outcome
            if outcome is LibraryOutcome.SKIPPED_OPTIONAL:
                logger.warning(f"[跳过] 加载器库 {lib.name} 在主地址和备用镜像上都不可用")

        sha1 = (await self.downloader.get_file(loader.universal + ".sha1")).decode().strip()
        dest = os.path.join(self.libraries_dir, loader.universal_path)
        self.classpath.append(os.path.abspath(dest))
        await self.downloader.check_or_download(loader.universal, sha1, dest)

        progress.call(1)

        self.main_class = profile.main_class
        if profile.arguments is not None:
            self.arguments = ArgumentSet(
                jvm=list(profile.arguments.jvm) or self.arguments.jvm,
                game=list(profile.arguments.game),
            )
        elif profile.legacy_arguments is not None:
            self.arguments = ArgumentSet(
                jvm=self.arguments.jvm,
                game=ArgumentSet.split_legacy(profile.legacy_arguments),
            )
        self.version_type = VERSION_TYPE_IGNORED

        logger.info(f"[完成] 加载器 {loader.full_version} 安装完成")
        return outcomes

    async def unpack_natives(self, dest_dir: Optional[str] = None) -> str:
        """
        解压当前平台的本地库到新的临时目录

        Returns:
            目录路径，由调用方负责清理 (见 natives())
        """
        tmp_dir = dest_dir or create_temp_dir()
        manifest = await self.get_version_manifest()
        os_name = self.evaluator.os_name
        arch_bits = get_arch_bits()

        for lib in manifest.libraries:
            if not self.evaluator.applies(lib.rules):
                continue
            if not lib.has_natives:
                continue
            artifact = lib.native_artifact(os_name, arch_bits)
            if artifact is None or not artifact.path:
                continue

            path = os.path.join(self.libraries_dir, artifact.path)
            count = await self.downloader.unpack(path, tmp_dir, lib.extract_exclude)
            logger.debug(f"[解压] {lib.name}: {count} 个文件")

        return tmp_dir

    @asynccontextmanager
    async def natives(self) -> AsyncIterator[str]:
        """解压本地库，退出时删除临时目录"""
        path = await self.unpack_natives()
        try:
            yield path
        finally:
            shutil.rmtree(path, ignore_errors=True)

    def get_classpath(self) -> str:
        """按累积顺序拼接 classpath"""
        return classpath_separator(self.evaluator.os_name).join(self.classpath)
