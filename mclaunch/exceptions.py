"""
MCLaunch 统一异常体系

提供分层的异常结构，支持错误代码、上下文信息和 JSON 序列化。
"""

from typing import Any, Dict, Optional


class MCLaunchError(Exception):
    """MCLaunch 基础异常类"""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self._get_default_code()
        self.context = context or {}

    def _get_default_code(self) -> str:
        """获取默认错误代码"""
        return "E000"

    def to_dict(self) -> Dict[str, Any]:
        """将异常转换为字典格式"""
        return {
            "error": True,
            "code": self.code,
            "message": self.message,
            "context": self.context,
            "type": self.__class__.__name__,
        }

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message


class ConfigError(MCLaunchError):
    """配置相关错误"""

    def _get_default_code(self) -> str:
        return "E100"


class ConfigParseError(ConfigError):
    """配置解析错误"""

    def _get_default_code(self) -> str:
        return "E101"


class ConfigValidationError(ConfigError):
    """配置验证错误"""

    def _get_default_code(self) -> str:
        return "E102"


class APIError(MCLaunchError):
    """元数据接口相关错误"""

    def _get_default_code(self) -> str:
        return "E200"


class APINotFoundError(APIError):
    """元数据资源不存在"""

    def _get_default_code(self) -> str:
        return "E404"


class DownloadError(MCLaunchError):
    """下载相关错误"""

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        dest: Optional[str] = None,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, code, context)
        self.url = url
        self.dest = dest
        if url:
            self.context.setdefault("url", url)
        if dest:
            self.context.setdefault("dest", dest)

    def _get_default_code(self) -> str:
        return "E300"


class DownloadNetworkError(DownloadError):
    """下载网络错误"""

    def _get_default_code(self) -> str:
        return "E301"


class DownloadChecksumError(DownloadError):
    """下载校验错误"""

    def _get_default_code(self) -> str:
        return "E302"


class DownloadFileError(DownloadError):
    """下载文件操作错误"""

    def _get_default_code(self) -> str:
        return "E303"


class ManifestError(MCLaunchError):
    """清单相关错误"""

    def _get_default_code(self) -> str:
        return "E400"


class ManifestParseError(ManifestError):
    """清单 / 归档解析错误"""

    def _get_default_code(self) -> str:
        return "E401"


class TemplateResolutionError(MCLaunchError):
    """启动参数模板中仍有未替换的占位符"""

    def __init__(self, token: str, kind: str = "game"):
        super().__init__(
            f'Unreplaced {kind} variable found "{token}"',
            context={"token": token, "kind": kind},
        )
        self.token = token
        self.kind = kind

    def _get_default_code(self) -> str:
        return "E500"


class LaunchError(MCLaunchError):
    """启动相关错误"""

    def _get_default_code(self) -> str:
        return "E600"


__all__ = [
    # 基础异常
    "MCLaunchError",
    # 配置异常
    "ConfigError",
    "ConfigParseError",
    "ConfigValidationError",
    # 接口异常
    "APIError",
    "APINotFoundError",
    # 下载异常
    "DownloadError",
    "DownloadNetworkError",
    "DownloadChecksumError",
    "DownloadFileError",
    # 清单异常
    "ManifestError",
    "ManifestParseError",
    # 启动异常
    "TemplateResolutionError",
    "LaunchError",
]
