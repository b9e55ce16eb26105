import hashlib
import json
import sys
import zipfile
from pathlib import Path

import pytest

from mclaunch.models import ClientOptions, MinecraftVersion, VersionType


def sha1_of(data: bytes) -> str:
    return hashlib.sha1(data).hexdigest()


def file_url(path) -> str:
    return f"file://{path}"


def write_jar(path: Path, entries: dict) -> bytes:
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as archive:
        for name, content in entries.items():
            archive.writestr(name, content)
    return path.read_bytes()


LEGACY_GAME_ARGUMENTS = (
    "--username ${auth_player_name} --version ${version_name} --gameDir ${game_directory} "
    "--assetsDir ${assets_root} --assetIndex ${assets_index_name} --uuid ${auth_uuid} "
    "--accessToken ${auth_access_token} --userType ${user_type} --versionType ${version_type}"
)


class Mirror:
    """A local file:// mirror serving one game version and its files."""

    def __init__(self, root: Path):
        self.root = root
        self.root.mkdir(parents=True, exist_ok=True)

    def path(self, *parts) -> Path:
        return self.root.joinpath(*parts)

    def url(self, *parts) -> str:
        return file_url(self.path(*parts))

    def put(self, relative: str, data: bytes) -> str:
        """Write a file into the mirror and return its sha1."""
        dest = self.path(relative)
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(data)
        return sha1_of(data)

    def jar(self, relative: str, entries: dict) -> bytes:
        return write_jar(self.path(relative), entries)

    def _artifact(self, relative: str, data: bytes) -> dict:
        sha1 = self.put(relative, data)
        return {"path": relative, "url": self.url(relative), "sha1": sha1, "size": len(data)}

    def version(self, version_id: str = "1.0", legacy: bool = False, assets: bool = True):
        """Publish a version manifest and return (manifest dict, version reference)."""
        natives_jar = write_jar(
            self.path("build", "natives.jar"),
            {"META-INF/MANIFEST.MF": "Manifest-Version: 1.0\n", "libfoo.so": "native"},
        )

        native = self._artifact(
            "org/lwjgl/lwjgl-platform/2.9.4/lwjgl-platform-2.9.4-natives.jar", natives_jar
        )

        libraries = [
            {
                "name": "com.example:alpha:1.0",
                "downloads": {
                    "artifact": self._artifact("com/example/alpha/1.0/alpha-1.0.jar", b"alpha")
                },
            },
            {
                "name": "com.example:beta:2.0",
                "downloads": {
                    "artifact": self._artifact("com/example/beta/2.0/beta-2.0.jar", b"beta")
                },
            },
            {
                "name": "com.example:elsewhere:1.0",
                "downloads": {
                    "artifact": self._artifact(
                        "com/example/elsewhere/1.0/elsewhere-1.0.jar", b"elsewhere"
                    )
                },
                "rules": [{"action": "allow", "os": {"name": "amiga"}}],
            },
            {
                "name": "org.lwjgl:lwjgl-platform:2.9.4",
                "downloads": {
                    "classifiers": {"natives-32": native, "natives-64": native}
                },
                "natives": {
                    "linux": "natives-${arch}",
                    "osx": "natives-${arch}",
                    "windows": "natives-${arch}",
                },
                "extract": {"exclude": ["META-INF/"]},
            },
        ]

        manifest = {
            "id": version_id,
            "type": "release",
            "mainClass": "net.minecraft.client.main.Main",
            "libraries": libraries,
            "downloads": {
                "client": self._artifact(f"versions/{version_id}/{version_id}.jar", b"client")
            },
            "assets": "1",
        }

        if assets:
            object_data = b"icon"
            object_hash = sha1_of(object_data)
            self.put(f"objects/{object_hash[:2]}/{object_hash}", object_data)
            index = json.dumps(
                {"objects": {"icons/icon.png": {"hash": object_hash, "size": len(object_data)}}}
            ).encode()
            manifest["assetIndex"] = {
                "id": "1",
                "url": self.url("indexes", "1.json"),
                "sha1": self.put("indexes/1.json", index),
                "size": len(index),
                "totalSize": len(object_data),
            }

        if legacy:
            manifest["minecraftArguments"] = LEGACY_GAME_ARGUMENTS
        else:
            manifest["arguments"] = {
                "game": LEGACY_GAME_ARGUMENTS.split(" ")
                + [
                    {
                        "rules": [{"action": "allow", "features": {"is_demo_user": True}}],
                        "value": "--demo",
                    },
                    {
                        "rules": [
                            {"action": "allow", "features": {"has_custom_resolution": True}}
                        ],
                        "value": ["--width", "${resolution_width}", "--height", "${resolution_height}"],
                    },
                ],
                "jvm": [
                    "-Djava.library.path=${natives_directory}",
                    "-Dminecraft.launcher.brand=${launcher_name}",
                    "-cp",
                    "${classpath}",
                ],
            }

        self.put(f"manifests/{version_id}.json", json.dumps(manifest).encode())
        reference = MinecraftVersion(
            id=version_id,
            type=VersionType.RELEASE,
            url=self.url("manifests", f"{version_id}.json"),
            type_name="release",
        )
        return manifest, reference


@pytest.fixture
def mirror(tmp_path) -> Mirror:
    return Mirror(tmp_path / "mirror")


@pytest.fixture
def options(tmp_path) -> ClientOptions:
    return ClientOptions(
        game_dir=str(tmp_path / "game"), max_concurrent=4, max_retries=0, retry_delay=0.0
    )


FAKE_JAVA = """#!{python}
import json
import sys
import os
import sys

args = sys.argv[1:]
natives = next(a.split("=", 1)[1] for a in args if a.startswith("-Djava.library.path="))
with open("launch.json.tmp", "w") as f:
    json.dump({{"argv": args, "cwd": os.getcwd(), "natives": natives,
               "listing": sorted(os.listdir(natives))}}, f)
os.replace("launch.json.tmp", "launch.json")
sys.stdout.write("x" * {size})
sys.stdout.flush()
sys.stderr.write("log line\\n" * 1000)
"""


@pytest.fixture
def fake_java(tmp_path):
    """An executable standing in for java: records argv, cwd and natives to launch.json."""

    def make(size: int = 1024 * 1024) -> str:
        script = tmp_path / "bin" / "java"
        script.parent.mkdir(parents=True, exist_ok=True)
        script.write_text(FAKE_JAVA.format(python=sys.executable, size=size))
        script.chmod(0o755)
        return str(script)

    return make
