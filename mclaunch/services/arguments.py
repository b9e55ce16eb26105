"""
启动参数模板解析

按规则筛选参数 token，做占位符替换并追加启动选项。
替换完成后任何残留的 ${...} 都会导致失败，绝不带着它启动进程。
"""

import os
import re
from typing import Dict, Iterable, List, Optional, Sequence

from mclaunch.exceptions import ManifestParseError, TemplateResolutionError
from mclaunch.models import (
    Argument,
    AuthenticationResult,
    ConditionedArgument,
    LaunchOptions,
    LiteralArgument,
)
from mclaunch.models.config import DEFAULT_SERVER_PORT
from mclaunch.services.rules import RuleEvaluator


PLACEHOLDER_PATTERN = re.compile(r"\$\{[^}]*\}")

DEFAULT_WIDTH = 854
DEFAULT_HEIGHT = 480


class ArgumentResolver:
    """参数模板解析器"""

    def __init__(self, evaluator: RuleEvaluator):
        self.evaluator = evaluator

    def expand(self, tokens: Sequence[Argument]) -> List[str]:
        """筛选并展开 token，无条件 token 总是保留"""
        values: List[str] = []
        for token in tokens:
            if isinstance(token, LiteralArgument):
                values.append(token.value)
            elif isinstance(token, ConditionedArgument):
                if self.evaluator.applies(token.rules):
                    values.extend(token.values)
            elif isinstance(token, str):
                values.append(token)
            else:
                raise ManifestParseError("无法识别的参数 token", context={"token": repr(token)})
        return values

    @staticmethod
    def substitute(values: Iterable[str], table: Dict[str, str]) -> List[str]:
        """按字面值替换占位符"""
        result = []
        for value in values:
            for placeholder, replacement in table.items():
                value = value.replace(placeholder, replacement)
            result.append(value)
        return result

    @staticmethod
    def check_resolved(values: Iterable[str], kind: str) -> None:
        """检查是否还有未替换的占位符"""
        for value in values:
            if PLACEHOLDER_PATTERN.search(value):
                raise TemplateResolutionError(value, kind)

    def resolve(
        self,
        tokens: Sequence[Argument],
        table: Dict[str, str],
        extra: Sequence[str] = (),
        kind: str = "game",
    ) -> List[str]:
        """
        解析一组参数模板

        Args:
            tokens: 参数 token
            table: 占位符替换表
            extra: 替换后追加的字面参数
            kind: "jvm" 或 "game"，用于错误信息

        Raises:
            TemplateResolutionError: 仍有未替换的占位符
        """
        values = self.substitute(self.expand(tokens), table)
        values.extend(extra)
        self.check_resolved(values, kind)
        return values

    @staticmethod
    def jvm_table(
        natives_dir: str,
        classpath: str,
        classpath_separator: str,
        libraries_dir: str,
        version_name: str,
        launcher_name: str,
        launcher_version: str,
    ) -> Dict[str, str]:
        return {
            "${natives_directory}": natives_dir,
            "${launcher_name}": launcher_name,
            "${launcher_version}": launcher_version,
            "${classpath}": classpath,
            "${classpath_separator}": classpath_separator,
            "${library_directory}": libraries_dir,
            "${version_name}": version_name,
        }

    @staticmethod
    def game_table(
        auth: AuthenticationResult,
        version_name: str,
        game_dir: str,
        asset_index: str,
        version_type: str,
        launch_options: Optional[LaunchOptions] = None,
    ) -> Dict[str, str]:
        assets_root = os.path.join(game_dir, "assets")
        token = auth.token or "null"
        resolution = launch_options.resolution if launch_options else None
        return {
            "${auth_player_name}": auth.name,
            "${version_name}": version_name,
            "${game_directory}": game_dir,
            "${assets_root}": assets_root,
            "${game_assets}": assets_root,
            "${assets_index_name}": asset_index,
            "${auth_uuid}": auth.uuid,
            "${auth_access_token}": token,
            "${auth_session}": f"token:{token}:{auth.uuid}",
            "${auth_xuid}": auth.xuid or "0",
            "${clientid}": "",
            "${user_type}": auth.user_type,
            "${version_type}": version_type,
            "${user_properties}": "{}",
            "${resolution_width}": str(resolution.width if resolution else DEFAULT_WIDTH),
            "${resolution_height}": str(resolution.height if resolution else DEFAULT_HEIGHT),
        }

    @staticmethod
    def jvm_overrides(launch_options: Optional[LaunchOptions]) -> List[str]:
        """内存上限追加 -Xmx/-Xms"""
        if launch_options and launch_options.memory:
            return [f"-Xmx{launch_options.memory}", f"-Xms{launch_options.memory}"]
        return []

    @staticmethod
    def game_overrides(launch_options: Optional[LaunchOptions]) -> List[str]:
        """分辨率追加 --width/--height，直连服务器追加 --server/--port"""
        extra: List[str] = []
        if not launch_options:
            return extra
        if launch_options.resolution:
            extra += [
                "--width",
                str(launch_options.resolution.width),
                "--height",
                str(launch_options.resolution.height),
            ]
        if launch_options.server:
            extra += [
                "--server",
                launch_options.server.host,
                "--port",
                str(launch_options.server.port or DEFAULT_SERVER_PORT),
            ]
        return extra
