"""
下载管理器

按内容哈希下载 / 校验 / 缓存单个文件，并提供下载队列、并发控制、下载统计。
"""

import asyncio
import os
import shutil
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import aiofiles
import aiohttp
from loguru import logger

from mclaunch.download.archive import ArchiveExtractor
from mclaunch.download.queue import DownloadQueue, DownloadTask, Priority
from mclaunch.download.verifier import ExpectedSha1, FileVerifier, normalize_sha1
from mclaunch.exceptions import (
    DownloadChecksumError,
    DownloadError,
    DownloadFileError,
    DownloadNetworkError,
)
from mclaunch.progress import InstallationProgress
from mclaunch.utils import file_url_path, is_file_url


@dataclass
class DownloadStats:
    """下载统计"""

    total: int = 0
    completed: int = 0
    failed: int = 0
    skipped: int = 0
    bytes_downloaded: int = 0


class DownloadManager:
    """
    下载管理器

    目标文件已存在且哈希匹配时直接返回，不访问网络；
    否则先创建父目录，再流式下载到目标路径。
    """

    def __init__(
        self,
        max_concurrent: int = 8,
        max_retries: int = 2,
        retry_delay: float = 1.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.max_concurrent = max_concurrent
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.queue = DownloadQueue()
        self.verifier = FileVerifier()
        self.stats = DownloadStats()
        self._session = session
        self._owned_session = session is None
        self._workers: list[asyncio.Task] = []

        self._failed_downloads: List[Tuple[DownloadTask, DownloadError]] = []
        self._run_progress: Optional[InstallationProgress] = None
        self._run_done = 0

    @property
    def session(self) -> aiohttp.ClientSession:
        """获取或创建 aiohttp session"""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owned_session = True
        return self._session

    async def check_or_download(self, url: str, sha1: ExpectedSha1, dest: str) -> bool:
        """
        校验或下载文件

        Args:
            url: 下载地址
            sha1: 预期 SHA1，或多个可接受的候选值
            dest: 目标路径

        Returns:
            True 表示发生了下载，False 表示命中缓存
        """
        candidates = normalize_sha1(sha1)
        if await self.verifier.is_valid(dest, candidates):
            self.stats.skipped += 1
            logger.debug(f"[跳过] '{os.path.basename(dest)}' 已存在且校验通过")
            return False

        if candidates and self.verifier.exists(dest):
            logger.warning(f"[警告] '{os.path.basename(dest)}' 已存在，但 SHA1 不匹配，将重新下载")

        await self.download_file(url, dest, candidates)
        return True

    async def exists_or_download(self, url: str, dest: str) -> bool:
        """
        存在即跳过，否则下载 (用于没有提供校验值的来源)

        Returns:
            True 表示发生了下载，False 表示文件已存在
        """
        if self.verifier.exists(dest):
            self.stats.skipped += 1
            logger.debug(f"[跳过] '{os.path.basename(dest)}' 已存在")
            return False

        await self.download_file(url, dest)
        return True

    async def get_file(self, url: str) -> bytes:
        """获取远程文件内容"""
        if is_file_url(url):
            path = file_url_path(url)
            try:
                async with aiofiles.open(path, "rb") as f:
                    return await f.read()
            except OSError as e:
                raise DownloadFileError(f"读取本地文件失败: {path}", url=url, context={"error": str(e)})

        try:
            async with self.session.get(url) as response:
                if response.status != 200:
                    raise DownloadNetworkError(
                        f"HTTP {response.status}",
                        url=url,
                        context={"status": response.status},
                    )
                return await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise DownloadNetworkError(f"请求失败: {e}", url=url)

    async def unpack(self, archive: str, dest_dir: str, exclude: Sequence[str] = ()) -> int:
        """解压归档到目标目录，跳过命中排除规则的条目"""
        return await ArchiveExtractor.extract_async(archive, dest_dir, exclude)

    async def download_file(
        self,
        url: str,
        dest: str,
        expected_sha1: ExpectedSha1 = None,
    ) -> None:
        """
        下载单个文件，失败时按指数退避重试

        Raises:
            DownloadError: 重试耗尽后仍然失败
        """
        filename = os.path.basename(dest)
        candidates = normalize_sha1(expected_sha1)

        # 确保目录存在
        try:
            os.makedirs(os.path.dirname(os.path.abspath(dest)), exist_ok=True)
        except OSError as e:
            raise DownloadFileError(f"无法创建目录: {e}", url=url, dest=dest)

        # 处理本地文件
        if is_file_url(url):
            await self._copy_local_file(url, dest)
        else:
            await self._download_remote(url, dest, filename)

        # 校验文件
        if candidates and not await self.verifier.verify_sha1(dest, candidates):
            self._remove_partial(dest)
            self.stats.failed += 1
            raise DownloadChecksumError(
                f"SHA1 校验失败: {filename}",
                url=url,
                dest=dest,
                context={"expected": list(candidates)},
            )

        self.stats.completed += 1

    async def _download_remote(self, url: str, dest: str, filename: str) -> None:
        logger.info(f"[开始] 下载: {filename}")

        for attempt in range(self.max_retries + 1):
            try:
                async with self.session.get(url) as response:
                    if response.status != 200:
                        raise DownloadNetworkError(
                            f"HTTP {response.status}",
                            url=url,
                            dest=dest,
                            context={"status": response.status},
                        )

                    total_size = int(response.headers.get("Content-Length", 0))

                    async with aiofiles.open(dest, "wb") as f:
                        downloaded = 0
                        last_percent = 0.0

                        async for chunk in response.content.iter_chunked(8192):
                            await f.write(chunk)
                            downloaded += len(chunk)
                            self.stats.bytes_downloaded += len(chunk)

                            # 进度日志
                            if total_size > 0:
                                percent = (downloaded / total_size) * 100
                                if percent - last_percent >= 5:
                                    logger.debug(f"[进度] {filename}: {percent:.1f}%")
                                    last_percent = percent

                logger.info(f"[完成] '{filename}' 下载完成")
                return

            except (aiohttp.ClientError, asyncio.TimeoutError, OSError, DownloadError) as e:
                # 清理不完整的文件
                self._remove_partial(dest)

                if attempt < self.max_retries:
                    delay = self.retry_delay * (2**attempt)
                    logger.warning(
                        f"[重试] 下载 '{filename}' 失败 (第 {attempt + 1} 次): {e}. "
                        f"{delay:.1f}s 后重试..."
                    )
                    await asyncio.sleep(delay)
                else:
                    self.stats.failed += 1
                    logger.error(f"[错误] 下载 '{filename}' 最终失败: {e}")

                    if isinstance(e, DownloadError):
                        raise
                    raise DownloadNetworkError(
                        f"下载失败: {filename}", url=url, dest=dest, context={"error": str(e)}
                    )

    async def _copy_local_file(self, url: str, dest: str) -> None:
        """复制本地文件"""
        src_path = file_url_path(url)
        logger.info(f"[复制] 本地文件: {os.path.basename(src_path)}")
        try:
            shutil.copyfile(src_path, dest)
        except OSError as e:
            self.stats.failed += 1
            logger.error(f"[错误] 复制文件失败: {e}")
            raise DownloadFileError("复制文件失败", url=url, dest=dest, context={"error": str(e)})

    @staticmethod
    def _remove_partial(path: str) -> None:
        if os.path.exists(path):
            try:
                os.remove(path)
            except OSError as e:
                logger.debug(f"[清理] 无法删除不完整的文件 {path}: {e}")

    async def enqueue(
        self,
        url: str,
        dest: str,
        sha1: ExpectedSha1 = None,
        verify: bool = True,
        category: str = "files",
        priority: Priority = Priority.NORMAL,
    ) -> bool:
        """添加下载任务，verify=False 时只检查文件是否存在"""
        added = await self.queue.put(
            url=url,
            dest=dest,
            sha1=normalize_sha1(sha1),
            verify=verify,
            category=category,
            priority=priority,
        )
        if added:
            self.stats.total += 1
            logger.debug(f"[队列] {category} '{os.path.basename(dest)}' 已加入下载队列")
        return added

    async def _process(self, task: DownloadTask) -> None:
        if task.verify:
            await self.check_or_download(task.url, task.sha1, task.dest)
        else:
            await self.exists_or_download(task.url, task.dest)

    async def _worker(self):
        """下载工作协程"""
        while True:
            try:
                task = await self.queue.get()
            except asyncio.CancelledError:
                break

            try:
                await self._process(task)
            except DownloadError as e:
                self._failed_downloads.append((task, e))
            finally:
                self.queue.task_done()
                self._run_done += 1
                if self._run_progress and self.queue.total_queued:
                    self._run_progress.call(self._run_done / self.queue.total_queued)

    async def start(self):
        """启动下载工作协程"""
        logger.debug(f"[启动] 下载器启动，最大并发数: {self.max_concurrent}")
        self._workers = [
            asyncio.create_task(self._worker(), name=f"downloader-{i}")
            for i in range(self.max_concurrent)
        ]

    async def wait_until_complete(self):
        """等待所有任务完成"""
        await self.queue.join()

    async def stop(self):
        """停止下载工作协程"""
        for worker in self._workers:
            worker.cancel()

        if self._workers:
            await asyncio.gather(*self._workers, return_exceptions=True)
            self._workers.clear()

    async def run(self, progress: Optional[InstallationProgress] = None):
        """
        执行队列中的全部任务

        Raises:
            DownloadError: 任一任务失败时，在全部任务结束后抛出第一个错误
        """
        self._run_progress = progress
        self._run_done = 0
        self._failed_downloads.clear()
        if self.queue.total_queued:
            summary = ", ".join(
                f"{name} {count}" for name, count in self.queue.categories.items()
            )
            logger.info(f"[队列] 共 {self.queue.total_queued} 个任务 ({summary})")
        try:
            await self.start()
            await self.wait_until_complete()
        finally:
            await self.stop()
            self.queue.clear()
            self._run_progress = None

        if self._failed_downloads:
            task, error = self._failed_downloads[0]
            logger.error(f"[错误] {len(self._failed_downloads)} 个文件下载失败")
            raise DownloadError(
                f"{len(self._failed_downloads)} 个文件下载失败，首个失败: {task.url}",
                url=task.url,
                dest=task.dest,
                code=error.code,
                context={"failed": self.get_failed()},
            )

    def get_failed(self) -> list[str]:
        """获取最近一次 run 失败的下载地址"""
        return [task.url for task, _ in self._failed_downloads]

    async def close(self):
        """关闭 session"""
        if self._owned_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        """异步上下文管理器入口"""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """异步上下文管理器出口"""
        await self.close()
