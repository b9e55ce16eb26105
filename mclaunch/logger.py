"""
日志模块

使用 loguru 输出到终端，可选附加一个按大小轮转的日志文件。
游戏进程的输出以 DEBUG 级别写入，只在调试模式或日志文件中可见。
"""

import os
import sys
from typing import Optional

from loguru import logger

CONSOLE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {message}"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{line} | {message}"


def resolve_level(level: Optional[str] = None) -> str:
    """未指定级别时由 MCLAUNCH_DEBUG 环境变量决定"""
    if level:
        return level.upper()
    return "DEBUG" if os.environ.get("MCLAUNCH_DEBUG", "0") == "1" else "INFO"


def setup_logger(
    level: Optional[str] = None,
    sink=sys.stderr,
    log_file: Optional[str] = None,
    enqueue: bool = True,
    colorize: bool = True,
) -> None:
    """
    设置日志记录器

    Args:
        level: 终端日志级别 (DEBUG, INFO, WARNING, ERROR)
        sink: 终端输出目标
        log_file: 日志文件路径，始终记录 DEBUG 级别，5 MB 轮转并保留 3 份
        enqueue: 是否启用队列（线程安全）
        colorize: 终端输出是否启用颜色
    """
    level = resolve_level(level)
    debug = level == "DEBUG"

    logger.remove()
    logger.add(
        sink=sink,
        format=CONSOLE_FORMAT,
        enqueue=enqueue,
        level=level,
        colorize=colorize,
        backtrace=debug,
        diagnose=debug,
    )

    if log_file:
        os.makedirs(os.path.dirname(os.path.abspath(log_file)), exist_ok=True)
        logger.add(
            log_file,
            format=FILE_FORMAT,
            level="DEBUG",
            rotation="5 MB",
            retention=3,
            encoding="utf-8",
            enqueue=enqueue,
            backtrace=True,
            diagnose=False,
        )
        logger.debug(f"[日志] 写入日志文件 {log_file}")

    if debug:
        logger.debug("DEBUG 模式已启用")


__all__ = ["logger", "setup_logger", "resolve_level"]
