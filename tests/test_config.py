import json
import uuid

import pytest
import toml
import yaml

from mclaunch.cli import load_config
from mclaunch.exceptions import ConfigValidationError
from mclaunch.models import (
    AuthenticationResult,
    ClientOptions,
    LauncherConfig,
    ServerInfo,
)
from mclaunch.models.config import DEFAULT_MAX_CONCURRENT


PROFILE = {
    "version": "1.12.2",
    "loader": "recommended",
    "exclusive_mods": True,
    "options": {"game_dir": "instances/modded", "features": {"has_custom_resolution": True}},
    "launch": {"memory": "4G", "resolution": {"width": 1280, "height": 720},
               "server": {"host": "mc.example.com", "port": 25570}},
    "auth": {"name": "Steve"},
    "mods": [{"file": "jei", "url": "https://example.invalid/jei.jar", "sha1": "ABCDEF"}],
    "servers": [{"host": "mc.example.com", "name": "Example"}],
}


def test_launcher_config_from_dict():
    config = LauncherConfig.from_dict(PROFILE)

    assert config.version == "1.12.2"
    assert config.loader == "recommended"
    assert config.exclusive_mods
    assert config.options.features == {"has_custom_resolution": True}
    assert config.options.root.endswith("modded")
    assert config.launch.memory == "4G"
    assert config.launch.resolution.width == 1280
    assert config.launch.server.address == "mc.example.com:25570"
    assert config.mods[0].filename == "jei.jar"
    assert config.mods[0].sha1 == "abcdef"
    assert config.servers[0].name == "Example"
    assert config.auth.name == "Steve"
    assert config.auth.token is None


def test_version_is_required():
    with pytest.raises(ConfigValidationError):
        LauncherConfig.from_dict({"loader": "latest"})


def test_client_options_validation():
    assert ClientOptions(max_concurrent=0).max_concurrent == DEFAULT_MAX_CONCURRENT
    with pytest.raises(ConfigValidationError):
        ClientOptions(max_retries=-1)
    with pytest.raises(ConfigValidationError):
        ClientOptions(features=["is_demo_user"])


def test_offline_identity():
    first = AuthenticationResult.offline("Steve")
    assert first.uuid == AuthenticationResult.offline("Steve").uuid
    assert first.uuid != AuthenticationResult.offline("Alex").uuid
    assert uuid.UUID(first.uuid).version == 3
    assert len(first.uuid) == 32


def test_server_info_parse():
    assert ServerInfo.parse("mc.example.com").port is None
    assert ServerInfo.parse("mc.example.com:25570").port == 25570
    with pytest.raises(ConfigValidationError):
        ServerInfo.parse("mc.example.com:port")


@pytest.mark.parametrize("suffix", [".toml", ".json", ".yaml"])
def test_load_config_formats(tmp_path, suffix):
    path = tmp_path / f"launcher{suffix}"
    if suffix == ".toml":
        path.write_text(toml.dumps(PROFILE), encoding="utf-8")
    elif suffix == ".json":
        path.write_text(json.dumps(PROFILE), encoding="utf-8")
    else:
        path.write_text(yaml.safe_dump(PROFILE), encoding="utf-8")

    assert LauncherConfig.from_dict(load_config(str(path))).mods[0].file == "jei"
