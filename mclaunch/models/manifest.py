"""
清单数据模型

把版本清单、加载器安装配置解码为严格的数据类。
未知结构在边界处直接拒绝 (ManifestParseError)，而不是在使用时才出错。
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

from mclaunch.exceptions import ManifestParseError
from mclaunch.utils import maven_path


MINECRAFT_LIB_SERVER = "https://libraries.minecraft.net/"
FALLBACK_MAVEN_MIRROR = "https://repo1.maven.org/maven2/"


def _require(data: dict, key: str, kind, where: str):
    value = data.get(key)
    if not isinstance(value, kind):
        raise ManifestParseError(
            f"{where} 缺少字段或类型错误: {key}",
            context={"field": key, "where": where},
        )
    return value


class RuleAction(Enum):
    """规则动作"""

    ALLOW = "allow"
    DISALLOW = "disallow"


@dataclass(frozen=True)
class Rule:
    """条件规则：按平台或功能开关决定允许 / 禁止"""

    action: RuleAction
    os_name: Optional[str] = None
    os_arch: Optional[str] = None
    features: Optional[Dict[str, bool]] = None

    @property
    def is_unconditional(self) -> bool:
        return self.os_name is None and self.os_arch is None and not self.features

    @classmethod
    def from_dict(cls, data: dict) -> "Rule":
        if not isinstance(data, dict):
            raise ManifestParseError("规则必须是对象", context={"rule": data})
        try:
            action = RuleAction(data.get("action"))
        except ValueError:
            raise ManifestParseError(
                f"未知的规则动作: {data.get('action')}", context={"rule": data}
            )

        os_name = os_arch = None
        os_data = data.get("os")
        if os_data is not None:
            if not isinstance(os_data, dict):
                raise ManifestParseError("规则 os 字段必须是对象", context={"rule": data})
            os_name = os_data.get("name")
            os_arch = os_data.get("arch")

        features = data.get("features")
        if features is not None and not isinstance(features, dict):
            raise ManifestParseError("规则 features 字段必须是对象", context={"rule": data})

        return cls(
            action=action,
            os_name=os_name,
            os_arch=os_arch,
            features=dict(features) if features else None,
        )


def parse_rules(data) -> Tuple[Rule, ...]:
    """解析规则列表，缺省视为空列表"""
    if data is None:
        return ()
    if not isinstance(data, list):
        raise ManifestParseError("rules 字段必须是列表", context={"rules": data})
    return tuple(Rule.from_dict(rule) for rule in data)


@dataclass(frozen=True)
class Artifact:
    """可下载的单个文件"""

    url: str
    sha1: Optional[str] = None
    size: int = 0
    path: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict, where: str = "artifact") -> "Artifact":
        if not isinstance(data, dict):
            raise ManifestParseError(f"{where} 必须是对象")
        sha1 = data.get("sha1")
        return cls(
            url=_require(data, "url", str, where),
            sha1=sha1.lower() if isinstance(sha1, str) else None,
            size=int(data.get("size", 0) or 0),
            path=data.get("path"),
        )


@dataclass(frozen=True)
class LiteralArgument:
    """无条件的参数 token"""

    value: str


@dataclass(frozen=True)
class ConditionedArgument:
    """受规则控制的参数 token，value 可展开为多个 token"""

    rules: Tuple[Rule, ...]
    values: Tuple[str, ...]


Argument = Union[LiteralArgument, ConditionedArgument]


def parse_argument(raw) -> Argument:
    """把清单中的参数项解码为 LiteralArgument / ConditionedArgument"""
    if isinstance(raw, str):
        return LiteralArgument(raw)
    if isinstance(raw, dict) and "value" in raw:
        value = raw["value"]
        if isinstance(value, str):
            values = (value,)
        elif isinstance(value, list) and all(isinstance(v, str) for v in value):
            values = tuple(value)
        else:
            raise ManifestParseError("参数 value 必须是字符串或字符串列表", context={"argument": raw})
        return ConditionedArgument(rules=parse_rules(raw.get("rules")), values=values)
    raise ManifestParseError("无法识别的参数格式", context={"argument": raw})


@dataclass
class ArgumentSet:
    """JVM 参数与游戏参数模板，顺序与清单保持一致"""

    jvm: List[Argument] = field(default_factory=list)
    game: List[Argument] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "ArgumentSet":
        """解析结构化参数 {"game": [...], "jvm": [...]}"""
        if not isinstance(data, dict):
            raise ManifestParseError("arguments 字段必须是对象")
        game = data.get("game", [])
        jvm = data.get("jvm", [])
        if not isinstance(game, list) or not isinstance(jvm, list):
            raise ManifestParseError("arguments.game / arguments.jvm 必须是列表")
        return cls(
            jvm=[parse_argument(item) for item in jvm],
            game=[parse_argument(item) for item in game],
        )

    @staticmethod
    def split_legacy(arguments: str) -> List[Argument]:
        """把旧版 minecraftArguments 字符串按空格切分为 token"""
        return [LiteralArgument(token) for token in arguments.split(" ") if token]


@dataclass(frozen=True)
class Library:
    """版本清单中的库描述"""

    name: str
    artifact: Optional[Artifact] = None
    natives: Dict[str, str] = field(default_factory=dict)
    classifiers: Dict[str, Artifact] = field(default_factory=dict)
    extract_exclude: Tuple[str, ...] = ()
    rules: Tuple[Rule, ...] = ()

    @property
    def has_natives(self) -> bool:
        return bool(self.natives)

    def native_artifact(self, os_name: str, arch_bits: str = "64") -> Optional[Artifact]:
        """获取当前平台对应的本地库 classifier"""
        classifier = self.natives.get(os_name)
        if not classifier:
            return None
        classifier = classifier.replace("${arch}", arch_bits)
        return self.classifiers.get(classifier)

    @classmethod
    def from_dict(cls, data: dict) -> "Library":
        name = _require(data, "name", str, "library")
        downloads = data.get("downloads") or {}
        if not isinstance(downloads, dict):
            raise ManifestParseError(f"库 {name} 的 downloads 字段必须是对象")

        artifact = None
        if downloads.get("artifact"):
            artifact = Artifact.from_dict(downloads["artifact"], f"{name}.artifact")

        classifiers = {
            key: Artifact.from_dict(value, f"{name}.{key}")
            for key, value in (downloads.get("classifiers") or {}).items()
        }

        extract = data.get("extract") or {}
        return cls(
            name=name,
            artifact=artifact,
            natives=dict(data.get("natives") or {}),
            classifiers=classifiers,
            extract_exclude=tuple(extract.get("exclude") or ()),
            rules=parse_rules(data.get("rules")),
        )


@dataclass(frozen=True)
class AssetIndexRef:
    """资源索引引用"""

    id: str
    url: str
    sha1: Optional[str] = None
    size: int = 0
    total_size: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> "AssetIndexRef":
        return cls(
            id=_require(data, "id", str, "assetIndex"),
            url=_require(data, "url", str, "assetIndex"),
            sha1=data.get("sha1"),
            size=int(data.get("size", 0) or 0),
            total_size=int(data.get("totalSize", 0) or 0),
        )


@dataclass
class VersionManifest:
    """
    单个游戏版本的清单。

    结构化参数 (arguments) 与旧版字符串参数 (minecraftArguments) 二选一，
    两者都没有时拒绝解析。
    """

    id: str
    type: str
    main_class: str
    libraries: List[Library]
    client: Artifact
    assets: str
    asset_index: Optional[AssetIndexRef] = None
    arguments: Optional[ArgumentSet] = None
    legacy_arguments: Optional[str] = None

    @property
    def is_legacy(self) -> bool:
        return self.arguments is None

    @classmethod
    def from_dict(cls, data: dict) -> "VersionManifest":
        if not isinstance(data, dict):
            raise ManifestParseError("版本清单必须是 JSON 对象")

        version_id = _require(data, "id", str, "version")
        libraries = _require(data, "libraries", list, "version")
        downloads = _require(data, "downloads", dict, "version")
        client = Artifact.from_dict(downloads.get("client"), f"{version_id}.client")

        arguments = None
        legacy_arguments = None
        if "arguments" in data:
            arguments = ArgumentSet.from_dict(data["arguments"])
        elif isinstance(data.get("minecraftArguments"), str):
            legacy_arguments = data["minecraftArguments"]
        else:
            raise ManifestParseError(
                f"版本 {version_id} 既没有 arguments 也没有 minecraftArguments",
                context={"version": version_id},
            )

        asset_index = None
        if data.get("assetIndex"):
            asset_index = AssetIndexRef.from_dict(data["assetIndex"])

        return cls(
            id=version_id,
            type=data.get("type", "unknown"),
            main_class=_require(data, "mainClass", str, "version"),
            libraries=[Library.from_dict(lib) for lib in libraries],
            client=client,
            assets=data.get("assets") or (asset_index.id if asset_index else "legacy"),
            asset_index=asset_index,
            arguments=arguments,
            legacy_arguments=legacy_arguments,
        )


@dataclass(frozen=True)
class LoaderLibrary:
    """加载器安装配置中的库"""

    name: str
    url: Optional[str] = None
    checksums: Tuple[str, ...] = ()
    clientreq: Optional[bool] = None

    @property
    def is_client_required(self) -> bool:
        """只有显式标记 clientreq=false 的库才是服务端专用"""
        return self.clientreq is not False

    @property
    def path(self) -> str:
        return maven_path(self.name)

    def artifact_url(self, retry: bool = False) -> str:
        """主地址为库自带的仓库或官方库服务器，重试时使用备用镜像"""
        base = FALLBACK_MAVEN_MIRROR if retry else (self.url or MINECRAFT_LIB_SERVER)
        if not base.endswith("/"):
            base += "/"
        return base + self.path

    @classmethod
    def from_dict(cls, data: dict) -> "LoaderLibrary":
        checksums = data.get("checksums") or ()
        return cls(
            name=_require(data, "name", str, "loader library"),
            url=data.get("url") or None,
            checksums=tuple(c.lower() for c in checksums),
            clientreq=data.get("clientreq"),
        )


@dataclass
class LoaderProfile:
    """加载器安装配置 (install_profile.json 中的 versionInfo)"""

    main_class: str
    libraries: List[LoaderLibrary]
    arguments: Optional[ArgumentSet] = None
    legacy_arguments: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "LoaderProfile":
        if not isinstance(data, dict):
            raise ManifestParseError("加载器安装配置必须是 JSON 对象")
        info = _require(data, "versionInfo", dict, "install_profile")
        libraries = _require(info, "libraries", list, "versionInfo")

        arguments = None
        legacy_arguments = None
        if "arguments" in info:
            arguments = ArgumentSet.from_dict(info["arguments"])
        elif isinstance(info.get("minecraftArguments"), str):
            legacy_arguments = info["minecraftArguments"]

        return cls(
            main_class=_require(info, "mainClass", str, "versionInfo"),
            libraries=[LoaderLibrary.from_dict(lib) for lib in libraries],
            arguments=arguments,
            legacy_arguments=legacy_arguments,
        )
