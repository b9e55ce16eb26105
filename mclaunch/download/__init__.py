"""
MCLaunch 下载层

包含下载管理、任务队列、文件校验、归档解压等功能。
"""

from mclaunch.download.archive import ArchiveExtractor
from mclaunch.download.manager import DownloadManager, DownloadStats
from mclaunch.download.queue import DownloadQueue, Priority
from mclaunch.download.verifier import FileVerifier

__all__ = [
    "ArchiveExtractor",
    "DownloadManager",
    "DownloadStats",
    "DownloadQueue",
    "Priority",
    "FileVerifier",
]
