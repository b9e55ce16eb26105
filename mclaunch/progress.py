"""
安装进度

进度接收器只有两个操作：标记阶段 (step) 与报告完成比例 (call)。
它只用于观察，不影响控制流。
"""

from typing import Callable, Optional

from loguru import logger


class InstallationProgress:
    """进度接收器基类，默认什么也不做"""

    def step(self, label: str) -> None:
        """进入新的安装阶段"""

    def call(self, fraction: float) -> None:
        """报告当前阶段的完成比例 (0 ~ 1)"""

    @staticmethod
    def callback(
        call: Optional[Callable[[float], None]] = None,
        step: Optional[Callable[[str], None]] = None,
    ) -> "InstallationProgress":
        """用回调函数构造进度接收器"""
        return CallbackProgress(call, step)


class CallbackProgress(InstallationProgress):
    """转发到回调函数"""

    def __init__(
        self,
        call: Optional[Callable[[float], None]] = None,
        step: Optional[Callable[[str], None]] = None,
    ):
        self._call = call
        self._step = step

    def step(self, label: str) -> None:
        if self._step:
            self._step(label)

    def call(self, fraction: float) -> None:
        if self._call:
            self._call(fraction)


class LoggingProgress(InstallationProgress):
    """把进度写入日志，每前进 step_percent 记录一次"""

    def __init__(self, step_percent: float = 10.0):
        self.step_percent = step_percent
        self._label = ""
        self._last_percent = -step_percent

    def step(self, label: str) -> None:
        self._label = label
        self._last_percent = -self.step_percent
        logger.info(f"[阶段] {label}")

    def call(self, fraction: float) -> None:
        percent = fraction * 100
        if percent >= 100 or percent - self._last_percent >= self.step_percent:
            logger.info(f"[进度] {self._label}: {percent:.1f}%")
            self._last_percent = percent
