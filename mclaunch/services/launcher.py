"""
启动驱动

拼接 JVM 参数、主类与游戏参数，在游戏目录中启动进程。
"""

import asyncio
import os
import subprocess
import sys
from typing import List, Optional, Sequence

from loguru import logger

from mclaunch.exceptions import LaunchError


PIPE_CHUNK_SIZE = 65536


class LaunchDriver:
    """启动驱动"""

    def __init__(self, java_executable: str = "java", game_dir: str = "."):
        self.java_executable = java_executable
        self.game_dir = game_dir

    @staticmethod
    def build_command(
        jvm_args: Sequence[str], main_class: str, game_args: Sequence[str]
    ) -> List[str]:
        """参数向量：JVM 参数 + 主类 + 游戏参数"""
        if not main_class:
            raise LaunchError("主类为空，请先完成安装")
        return [*jvm_args, main_class, *game_args]

    @staticmethod
    def mask(args: Sequence[str], secret: Optional[str]) -> List[str]:
        """日志中隐藏访问令牌"""
        if not secret:
            return list(args)
        return [arg.replace(secret, "********") for arg in args]

    async def spawn(
        self,
        args: Sequence[str],
        redirect_output: bool = False,
        secret: Optional[str] = None,
    ) -> asyncio.subprocess.Process:
        """
        启动进程

        redirect_output 为 True 时子进程继承当前进程的 stdout/stderr，
        否则输出通过管道交给调用方，用 wait() 等待时会持续读出。
        启动失败的异常原样抛出。
        """
        os.makedirs(self.game_dir, exist_ok=True)
        logger.debug(
            f"[启动] {self.java_executable} {' '.join(self.mask(args, secret))}"
        )

        stream = None if redirect_output else asyncio.subprocess.PIPE
        process = await asyncio.create_subprocess_exec(
            self.java_executable,
            *args,
            cwd=self.game_dir,
            stdout=stream,
            stderr=stream,
        )
        logger.info(f"[启动] 游戏进程已启动 (PID: {process.pid})")
        return process

    def spawn_detached(
        self, args: Sequence[str], secret: Optional[str] = None
    ) -> subprocess.Popen:
        """
        启动独立运行的进程

        进程不绑定事件循环，在新的会话中运行并继承当前终端的输出，
        当前程序退出后游戏继续运行。
        """
        os.makedirs(self.game_dir, exist_ok=True)
        logger.debug(
            f"[启动] {self.java_executable} {' '.join(self.mask(args, secret))}"
        )

        if sys.platform == "win32":
            kwargs = {"creationflags": subprocess.CREATE_NEW_PROCESS_GROUP}
        else:
            kwargs = {"start_new_session": True}
        process = subprocess.Popen([self.java_executable, *args], cwd=self.game_dir, **kwargs)
        logger.info(f"[启动] 游戏进程已启动 (PID: {process.pid})")
        return process

    @staticmethod
    async def _drain(stream: Optional[asyncio.StreamReader], label: str) -> None:
        """读取管道直到 EOF，逐行写入 DEBUG 日志"""
        if stream is None:
            return
        while True:
            chunk = await stream.read(PIPE_CHUNK_SIZE)
            if not chunk:
                break
            for line in chunk.decode("utf-8", errors="replace").splitlines():
                logger.debug(f"[{label}] {line}")

    async def wait(self, process: asyncio.subprocess.Process) -> int:
        """
        等待进程退出，返回退出码

        管道输出在等待期间持续读出，子进程不会因管道写满而阻塞。
        """
        await asyncio.gather(
            self._drain(process.stdout, "stdout"),
            self._drain(process.stderr, "stderr"),
        )
        return await process.wait()
