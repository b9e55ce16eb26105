"""
配置模型

客户端选项、启动选项、认证信息、模组描述以及 CLI 配置文件。
"""

import hashlib
import os
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from loguru import logger

from mclaunch.exceptions import ConfigValidationError


DEFAULT_MAX_CONCURRENT = 8
DEFAULT_SERVER_PORT = 25565


@dataclass
class ClientOptions:
    """客户端选项"""

    game_dir: str = ".minecraft"
    java_executable: str = "java"
    features: Dict[str, bool] = field(default_factory=dict)
    max_concurrent: int = DEFAULT_MAX_CONCURRENT
    max_retries: int = 2
    retry_delay: float = 1.0
    launcher_name: str = "mclaunch"
    launcher_version: str = "0.1.0"

    def __post_init__(self):
        if not isinstance(self.max_concurrent, int) or self.max_concurrent <= 0:
            logger.warning(
                f"[警告] max_concurrent 配置无效，将使用默认值 {DEFAULT_MAX_CONCURRENT}。"
            )
            self.max_concurrent = DEFAULT_MAX_CONCURRENT
        if not isinstance(self.max_retries, int) or self.max_retries < 0:
            raise ConfigValidationError(
                "max_retries 必须是非负整数", context={"max_retries": self.max_retries}
            )
        if not isinstance(self.features, dict):
            raise ConfigValidationError("features 必须是字典")

    @property
    def root(self) -> str:
        """游戏目录的绝对路径"""
        return os.path.abspath(self.game_dir)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClientOptions":
        return cls(
            game_dir=data.get("game_dir", ".minecraft"),
            java_executable=data.get("java_executable", "java"),
            features=dict(data.get("features", {})),
            max_concurrent=data.get("max_concurrent", DEFAULT_MAX_CONCURRENT),
            max_retries=data.get("max_retries", 2),
            retry_delay=float(data.get("retry_delay", 1.0)),
            launcher_name=data.get("launcher_name", "mclaunch"),
            launcher_version=data.get("launcher_version", "0.1.0"),
        )


@dataclass
class Resolution:
    """窗口分辨率"""

    width: int
    height: int


@dataclass
class ServerInfo:
    """服务器信息"""

    host: str
    port: Optional[int] = None
    name: Optional[str] = None

    @property
    def address(self) -> str:
        """host[:port] 形式的地址"""
        if self.port:
            return f"{self.host}:{self.port}"
        return self.host

    @classmethod
    def parse(cls, value: str, name: Optional[str] = None) -> "ServerInfo":
        """解析 host[:port] 字符串"""
        host, sep, port = value.rpartition(":")
        if not sep:
            return cls(host=value, name=name)
        try:
            return cls(host=host, port=int(port), name=name)
        except ValueError:
            raise ConfigValidationError(f"无效的服务器端口: {value}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ServerInfo":
        if "host" not in data:
            raise ConfigValidationError("服务器配置缺少 host", context={"server": data})
        return cls(host=data["host"], port=data.get("port"), name=data.get("name"))


@dataclass
class LaunchOptions:
    """启动选项"""

    redirect_output: bool = False
    resolution: Optional[Resolution] = None
    server: Optional[ServerInfo] = None
    memory: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LaunchOptions":
        resolution = None
        if data.get("resolution"):
            res = data["resolution"]
            resolution = Resolution(width=int(res["width"]), height=int(res["height"]))
        server = None
        if data.get("server"):
            server = ServerInfo.from_dict(data["server"])
        return cls(
            redirect_output=bool(data.get("redirect_output", False)),
            resolution=resolution,
            server=server,
            memory=data.get("memory"),
        )


@dataclass
class AuthenticationResult:
    """认证结果 (令牌获取不在本项目范围内)"""

    name: str
    uuid: str
    token: Optional[str] = None
    user_type: str = "mojang"
    xuid: Optional[str] = None

    @classmethod
    def offline(cls, name: str) -> "AuthenticationResult":
        """离线模式：UUID 与 Java 的 UUID.nameUUIDFromBytes 一致"""
        digest = hashlib.md5(f"OfflinePlayer:{name}".encode("utf-8")).digest()
        return cls(name=name, uuid=uuid.UUID(bytes=digest, version=3).hex)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AuthenticationResult":
        if "name" not in data:
            raise ConfigValidationError("auth 配置缺少 name")
        if not data.get("uuid"):
            return cls.offline(data["name"])
        return cls(
            name=data["name"],
            uuid=data["uuid"],
            token=data.get("token"),
            user_type=data.get("user_type", "mojang"),
            xuid=data.get("xuid"),
        )


@dataclass
class ModDescriptor:
    """
    模组描述。

    磁盘上的文件名为 file + ".jar"，sha1 缺省时只检查文件是否存在。
    """

    file: str
    url: str
    sha1: Optional[str] = None

    @property
    def filename(self) -> str:
        return f"{self.file}.jar"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ModDescriptor":
        if "file" not in data or "url" not in data:
            raise ConfigValidationError("模组配置需要 file 和 url", context={"mod": data})
        sha1 = data.get("sha1")
        return cls(file=data["file"], url=data["url"], sha1=sha1.lower() if sha1 else None)


@dataclass
class LauncherConfig:
    """CLI 配置文件"""

    version: str
    loader: Optional[str] = None
    options: ClientOptions = field(default_factory=ClientOptions)
    launch: LaunchOptions = field(default_factory=LaunchOptions)
    auth: Optional[AuthenticationResult] = None
    mods: List[ModDescriptor] = field(default_factory=list)
    exclusive_mods: bool = False
    servers: List[ServerInfo] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LauncherConfig":
        if not data.get("version"):
            raise ConfigValidationError("请配置游戏版本 (version)")

        auth = None
        if data.get("auth"):
            auth = AuthenticationResult.from_dict(data["auth"])

        return cls(
            version=str(data["version"]),
            loader=str(data["loader"]) if data.get("loader") else None,
            options=ClientOptions.from_dict(data.get("options", {})),
            launch=LaunchOptions.from_dict(data.get("launch", {})),
            auth=auth,
            mods=[ModDescriptor.from_dict(mod) for mod in data.get("mods", [])],
            exclusive_mods=bool(data.get("exclusive_mods", False)),
            servers=[ServerInfo.from_dict(s) for s in data.get("servers", [])],
        )
