import asyncio
import json
import os

import pytest

from mclaunch.download import DownloadManager
from mclaunch.exceptions import DownloadError
from mclaunch.models import LoaderVersion
from mclaunch.progress import InstallationProgress
from mclaunch.services import LibraryManager, LibraryOutcome, RuleEvaluator
from mclaunch.services.library_manager import DEFAULT_JVM_ARGUMENTS, GC_ARGUMENTS, VERSION_TYPE_IGNORED


def library(options, relative):
    return os.path.join(options.root, "libraries", *relative.split("/"))


def install(options, version, downloader=None, evaluator=None):
    manager = LibraryManager(
        options, version, downloader or DownloadManager(max_retries=0), evaluator=evaluator
    )
    asyncio.run(manager.install_minecraft_libraries(InstallationProgress()))
    return manager


def test_classpath_follows_manifest_order(mirror, options):
    _, version = mirror.version()
    manager = install(options, version)

    assert manager.classpath == [
        library(options, "com/example/alpha/1.0/alpha-1.0.jar"),
        library(options, "com/example/beta/2.0/beta-2.0.jar"),
        os.path.join(options.root, "versions", "1.0", "1.0.jar"),
    ]
    for path in manager.classpath:
        assert os.path.isfile(path)

    # disallowed library is never fetched
    assert not os.path.exists(library(options, "com/example/elsewhere/1.0/elsewhere-1.0.jar"))
    assert os.path.isfile(
        library(options, "org/lwjgl/lwjgl-platform/2.9.4/lwjgl-platform-2.9.4-natives.jar")
    )

    assert manager.main_class == "net.minecraft.client.main.Main"
    assert manager.version_type == "release"
    assert manager.asset_index == "1"
    assert manager.asset_index_ref.id == "1"
    assert manager.get_classpath() == os.pathsep.join(manager.classpath)


def test_manifest_is_cached(mirror, options):
    manifest, version = mirror.version()
    install(options, version)

    cached = os.path.join(options.root, "versions", "1.0", "1.0.json")
    with open(cached, encoding="utf-8") as f:
        assert json.load(f) == manifest


def test_reinstall_downloads_nothing(mirror, options):
    _, version = mirror.version()
    install(options, version)

    downloader = DownloadManager(max_retries=0)
    second = install(options, version, downloader)

    assert downloader.stats.completed == 0
    assert downloader.stats.skipped == 4
    assert len(second.classpath) == 3


def test_broken_library_fails_install(mirror, options):
    _, version = mirror.version()
    os.remove(mirror.path("com", "example", "beta", "2.0", "beta-2.0.jar"))

    with pytest.raises(DownloadError):
        install(options, version)


def test_legacy_arguments(mirror, options):
    _, version = mirror.version(legacy=True)
    manager = install(options, version)

    jvm = [arg.value for arg in manager.arguments.jvm]
    assert jvm[: len(DEFAULT_JVM_ARGUMENTS)] == DEFAULT_JVM_ARGUMENTS
    assert jvm[len(DEFAULT_JVM_ARGUMENTS): len(DEFAULT_JVM_ARGUMENTS) + len(GC_ARGUMENTS)] == GC_ARGUMENTS

    game = [arg.value for arg in manager.arguments.game]
    assert game[:2] == ["--username", "${auth_player_name}"]
    assert "" not in game


@pytest.mark.parametrize("os_name, first_thread", [("osx", True), ("linux", False), ("windows", False)])
def test_legacy_arguments_start_on_first_thread_for_osx(mirror, options, os_name, first_thread):
    _, version = mirror.version(legacy=True)
    manager = install(options, version, evaluator=RuleEvaluator(os_name=os_name, os_arch="x86_64"))

    jvm = [arg.value for arg in manager.arguments.jvm]
    assert ("-XstartOnFirstThread" in jvm) is first_thread
    assert jvm[: len(DEFAULT_JVM_ARGUMENTS)] == DEFAULT_JVM_ARGUMENTS


def test_natives_are_unpacked(mirror, options):
    _, version = mirror.version()
    manager = install(options, version)

    async def unpack():
        async with manager.natives() as path:
            listing = sorted(os.listdir(path))
        return path, listing

    path, listing = asyncio.run(unpack())
    assert listing == ["libfoo.so"]
    assert not os.path.exists(path)


@pytest.fixture
def loader(mirror):
    def put_library(repo, name, data):
        group, artifact, ver = name.split(":")
        relative = f"{repo}/{group.replace('.', '/')}/{artifact}/{ver}/{artifact}-{ver}.jar"
        return mirror.put(relative, data)

    present_sha1 = put_library("maven", "net.example:present:1.0", b"present")
    put_library("central", "net.example:mirrored:1.0", b"mirrored")

    profile = {
        "install": {"target": "1.0-forge"},
        "versionInfo": {
            "mainClass": "net.minecraft.launchwrapper.Launch",
            "minecraftArguments": "--username ${auth_player_name} --tweakClass example.Tweaker",
            "libraries": [
                {"name": "net.example:present:1.0", "url": mirror.url("maven") + "/",
                 "checksums": [present_sha1]},
                {"name": "net.example:mirrored:1.0", "url": mirror.url("broken")},
                {"name": "net.example:missing:1.0", "url": mirror.url("broken")},
                {"name": "net.example:server:1.0", "clientreq": False},
            ],
        },
    }
    mirror.jar("forge/installer.jar", {"install_profile.json": json.dumps(profile)})
    universal = mirror.put("forge/universal.jar", b"universal")
    mirror.put("forge/universal.jar.sha1", universal.encode() + b"\n")

    return LoaderVersion(
        build=1,
        version="1.0.1",
        mcversion="1.0",
        installer=mirror.url("forge", "installer.jar"),
        universal=mirror.url("forge", "universal.jar"),
    )


def test_loader_libraries(mirror, options, loader, monkeypatch):
    monkeypatch.setattr(
        "mclaunch.models.manifest.FALLBACK_MAVEN_MIRROR", mirror.url("central") + "/"
    )
    _, version = mirror.version()
    manager = install(options, version)
    vanilla_jvm = list(manager.arguments.jvm)

    fractions = []
    outcomes = asyncio.run(
        manager.install_loader_libraries(loader, InstallationProgress.callback(fractions.append))
    )

    assert outcomes == {
        "net.example:present:1.0": LibraryOutcome.INSTALLED,
        "net.example:mirrored:1.0": LibraryOutcome.INSTALLED,
        "net.example:missing:1.0": LibraryOutcome.SKIPPED_OPTIONAL,
    }
    assert manager.classpath[3:] == [
        library(options, "net/example/present/1.0/present-1.0.jar"),
        library(options, "net/example/mirrored/1.0/mirrored-1.0.jar"),
        library(options, "net/example/missing/1.0/missing-1.0.jar"),
        library(options, loader.universal_path),
    ]
    with open(library(options, "net/example/mirrored/1.0/mirrored-1.0.jar"), "rb") as f:
        assert f.read() == b"mirrored"
    with open(library(options, loader.universal_path), "rb") as f:
        assert f.read() == b"universal"

    assert manager.main_class == "net.minecraft.launchwrapper.Launch"
    assert manager.version_type == VERSION_TYPE_IGNORED
    assert [arg.value for arg in manager.arguments.game][-1] == "example.Tweaker"
    assert manager.arguments.jvm == vanilla_jvm
    assert fractions[-1] == 1

    assert os.path.isfile(os.path.join(options.root, "versions", "1.0", "1.0-loader.json"))
