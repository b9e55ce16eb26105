"""
下载任务队列

优先级队列，按目标路径去重，并按类别统计已入队的任务。
"""

import asyncio
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Tuple


class Priority(Enum):
    """下载优先级"""

    HIGH = 0
    NORMAL = 1
    LOW = 2


@dataclass(order=True)
class DownloadTask:
    """下载任务"""

    priority: int = field(compare=True)
    sequence: int = field(compare=True)
    url: str = field(compare=False)
    dest: str = field(compare=False)
    sha1: Tuple[str, ...] = field(default=(), compare=False)
    verify: bool = field(default=True, compare=False)
    category: str = field(default="files", compare=False)


class DownloadQueue:
    """下载队列"""

    def __init__(self):
        self._queue: asyncio.PriorityQueue = asyncio.PriorityQueue()
        self._tasks: set[str] = set()  # 用于去重
        self._total_queued = 0
        self._categories: Counter = Counter()

    async def put(
        self,
        url: str,
        dest: str,
        sha1: Tuple[str, ...] = (),
        verify: bool = True,
        category: str = "files",
        priority: Priority = Priority.NORMAL,
    ) -> bool:
        """
        添加任务到队列

        Returns:
            True 如果任务是新添加的，False 如果是重复任务
        """
        if dest in self._tasks:
            return False

        self._tasks.add(dest)
        task = DownloadTask(
            priority=priority.value,
            sequence=self._total_queued,
            url=url,
            dest=dest,
            sha1=sha1,
            verify=verify,
            category=category,
        )
        await self._queue.put(task)
        self._total_queued += 1
        self._categories[category] += 1
        return True

    async def get(self) -> DownloadTask:
        """获取下一个任务"""
        return await self._queue.get()

    def task_done(self):
        """标记任务完成"""
        self._queue.task_done()

    async def join(self):
        """等待所有任务完成"""
        await self._queue.join()

    @property
    def total_queued(self) -> int:
        return self._total_queued

    @property
    def categories(self) -> Dict[str, int]:
        """按类别 (client、libraries 等) 统计的已入队任务数"""
        return dict(self._categories)

    def clear(self):
        """清空队列"""
        while not self._queue.empty():
            try:
                self._queue.get_nowait()
                self._queue.task_done()
            except asyncio.QueueEmpty:
                break
        self._tasks.clear()
        self._total_queued = 0
        self._categories.clear()
