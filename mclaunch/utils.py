"""
通用工具函数

平台识别、classpath 分隔符、Maven 坐标路径转换等。
"""

import os
import platform
import sys
import tempfile
from typing import Optional


def get_os_name() -> str:
    """获取当前平台在清单规则中的名称 ('windows', 'osx', 'linux')"""
    system = platform.system()
    if system == "Windows":
        return "windows"
    elif system == "Darwin":
        return "osx"
    return "linux"


def get_arch_name() -> str:
    """获取当前架构在清单规则中的名称 ('x86' 或 'x86_64' 等)"""
    machine = platform.machine().lower()
    if machine in ("i386", "i686", "x86"):
        return "x86"
    if sys.maxsize <= 2**32:
        return "x86"
    return machine


def classpath_separator(os_name: Optional[str] = None) -> str:
    """获取 classpath 分隔符"""
    if os_name is None:
        os_name = get_os_name()
    return ";" if os_name == "windows" else ":"


def maven_path(coordinate: str, classifier: Optional[str] = None) -> str:
    """
    将 Maven 坐标转换为仓库相对路径

    group:artifact:version -> group/artifact/version/artifact-version.jar
    """
    parts = coordinate.split(":")
    if len(parts) < 3:
        raise ValueError(f"无效的 Maven 坐标: {coordinate}")

    group, artifact, version = parts[0], parts[1], parts[2]
    group = group.replace(".", "/")
    filename = f"{artifact}-{version}"
    if classifier:
        filename += f"-{classifier}"
    return f"{group}/{artifact}/{version}/{filename}.jar"


def create_temp_dir(prefix: str = "mclaunch-natives-") -> str:
    """创建新的临时目录"""
    return tempfile.mkdtemp(prefix=prefix)


def is_file_url(url: str) -> bool:
    """是否为本地 file:// 地址"""
    return url.startswith("file://")


def file_url_path(url: str) -> str:
    """将 file:// 地址转换为本地路径"""
    path = url[7:]
    # file:///C:/... 形式
    if os.name == "nt" and path.startswith("/") and len(path) > 2 and path[2] == ":":
        path = path[1:]
    return path


def get_arch_bits() -> str:
    """本地库 classifier 中 ${arch} 的取值"""
    return "64" if sys.maxsize > 2**32 else "32"
