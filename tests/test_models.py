import pytest

from mclaunch.exceptions import ManifestParseError
from mclaunch.models import (
    ArgumentSet,
    ConditionedArgument,
    Library,
    LiteralArgument,
    LoaderLibrary,
    LoaderProfile,
    LoaderVersion,
    MinecraftVersion,
    VersionManifest,
    VersionType,
)
from mclaunch.models.manifest import FALLBACK_MAVEN_MIRROR, MINECRAFT_LIB_SERVER, parse_argument
from mclaunch.utils import maven_path


def base_manifest(**extra):
    data = {
        "id": "1.0",
        "type": "release",
        "mainClass": "net.minecraft.client.main.Main",
        "libraries": [],
        "downloads": {"client": {"url": "https://example.invalid/client.jar", "sha1": "AB"}},
    }
    data.update(extra)
    return data


def test_maven_path():
    assert maven_path("net.minecraft:launchwrapper:1.12") == (
        "net/minecraft/launchwrapper/1.12/launchwrapper-1.12.jar"
    )
    assert maven_path("org.lwjgl:lwjgl:3.2.2", "natives-linux") == (
        "org/lwjgl/lwjgl/3.2.2/lwjgl-3.2.2-natives-linux.jar"
    )
    with pytest.raises(ValueError):
        maven_path("not-a-coordinate")


def test_manifest_requires_arguments():
    with pytest.raises(ManifestParseError):
        VersionManifest.from_dict(base_manifest())

    legacy = VersionManifest.from_dict(base_manifest(minecraftArguments="--username ${auth_player_name}"))
    assert legacy.is_legacy
    assert legacy.client.sha1 == "ab"

    modern = VersionManifest.from_dict(base_manifest(arguments={"game": [], "jvm": []}))
    assert not modern.is_legacy


def test_manifest_rejects_unknown_shapes():
    with pytest.raises(ManifestParseError):
        VersionManifest.from_dict(base_manifest(minecraftArguments="", libraries={}))
    with pytest.raises(ManifestParseError):
        VersionManifest.from_dict(base_manifest(arguments={"game": "--demo"}))
    with pytest.raises(ManifestParseError):
        parse_argument({"rules": []})
    with pytest.raises(ManifestParseError):
        VersionManifest.from_dict([])


def test_conditioned_argument_values():
    single = parse_argument({"rules": [{"action": "allow"}], "value": "--demo"})
    assert isinstance(single, ConditionedArgument)
    assert single.values == ("--demo",)

    several = parse_argument({"rules": [], "value": ["--width", "${resolution_width}"]})
    assert several.values == ("--width", "${resolution_width}")

    assert parse_argument("--username") == LiteralArgument("--username")


def test_split_legacy_arguments():
    tokens = ArgumentSet.split_legacy("--username  ${auth_player_name} --demo")
    assert [t.value for t in tokens] == ["--username", "${auth_player_name}", "--demo"]


def test_native_classifier_lookup():
    lib = Library.from_dict({
        "name": "org.lwjgl:lwjgl-platform:2.9.4",
        "natives": {"linux": "natives-linux", "windows": "natives-windows-${arch}"},
        "downloads": {
            "classifiers": {
                "natives-linux": {"url": "https://example.invalid/l.jar", "path": "l.jar"},
                "natives-windows-64": {"url": "https://example.invalid/w.jar", "path": "w.jar"},
            }
        },
        "extract": {"exclude": ["META-INF/"]},
    })
    assert lib.has_natives
    assert lib.artifact is None
    assert lib.extract_exclude == ("META-INF/",)
    assert lib.native_artifact("linux").path == "l.jar"
    assert lib.native_artifact("windows", "64").path == "w.jar"
    assert lib.native_artifact("windows", "32") is None
    assert lib.native_artifact("osx") is None


def test_loader_library_urls():
    lib = LoaderLibrary.from_dict({"name": "net.minecraft:launchwrapper:1.12"})
    assert lib.is_client_required
    assert lib.artifact_url() == MINECRAFT_LIB_SERVER + lib.path
    assert lib.artifact_url(retry=True) == FALLBACK_MAVEN_MIRROR + lib.path

    custom = LoaderLibrary.from_dict({
        "name": "org.scala-lang:scala-library:2.11.1",
        "url": "https://maven.example.invalid",
        "checksums": ["ABC", "def"],
        "clientreq": True,
    })
    assert custom.artifact_url() == "https://maven.example.invalid/" + custom.path
    assert custom.checksums == ("abc", "def")

    server_only = LoaderLibrary.from_dict({"name": "a:b:1", "clientreq": False})
    assert not server_only.is_client_required


def test_loader_profile_requires_version_info():
    with pytest.raises(ManifestParseError):
        LoaderProfile.from_dict({"install": {}})

    profile = LoaderProfile.from_dict({
        "versionInfo": {
            "mainClass": "net.minecraft.launchwrapper.Launch",
            "minecraftArguments": "--tweakClass x",
            "libraries": [{"name": "a:b:1"}],
        }
    })
    assert profile.legacy_arguments == "--tweakClass x"
    assert profile.arguments is None
    assert [lib.name for lib in profile.libraries] == ["a:b:1"]


def test_version_references():
    version = MinecraftVersion.from_index_entry(
        {"id": "b1.7.3", "type": "old_beta", "url": "https://example.invalid/b1.7.3.json"}
    )
    assert version.type is VersionType.UNKNOWN
    assert version.type_name == "old_beta"

    loader = LoaderVersion.forge(2860, "14.23.5.2860", "1.12.2", "https://maven.example.invalid/")
    assert loader.full_version == "1.12.2-14.23.5.2860"
    assert loader.installer == (
        "https://maven.example.invalid/net/minecraftforge/forge/1.12.2-14.23.5.2860/"
        "forge-1.12.2-14.23.5.2860-installer.jar"
    )
    assert loader.universal.endswith("forge-1.12.2-14.23.5.2860-universal.jar")
    assert loader.universal_path == (
        "net/minecraftforge/forge/1.12.2-14.23.5.2860/forge-1.12.2-14.23.5.2860-universal.jar"
    )
