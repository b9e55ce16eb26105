"""
服务器列表

读写游戏目录下的 servers.dat (未压缩的 NBT 文件)。
"""

import os
import struct
from dataclasses import dataclass
from typing import List

import nbtlib
from loguru import logger
from nbtlib.tag import Compound, List as NBTList, String

from mclaunch.models import ServerInfo


SERVERS_FILE = "servers.dat"

# nbtlib 解析损坏文件时可能抛出的异常
READ_ERRORS = (
    OSError,
    ValueError,
    TypeError,
    KeyError,
    IndexError,
    AttributeError,
    EOFError,
    struct.error,
)


@dataclass
class ServerEntry:
    """servers.dat 中的一条记录"""

    ip: str
    name: str


class ServerList:
    """服务器列表文件"""

    def __init__(self, game_dir: str):
        self.path = os.path.join(game_dir, SERVERS_FILE)

    def load(self) -> List[ServerEntry]:
        """读取服务器列表，文件不存在或无法读取时返回空列表"""
        if not os.path.isfile(self.path):
            return []
        try:
            data = nbtlib.load(self.path).unpack()
            return [
                ServerEntry(ip=item.get("ip", ""), name=item.get("name", ""))
                for item in data.get("servers", [])
            ]
        except READ_ERRORS as e:
            logger.warning(f"[服务器] 无法读取 {self.path}: {e}")
            return []

    def save(self, entries: List[ServerEntry]) -> None:
        """覆盖写入服务器列表"""
        os.makedirs(os.path.dirname(self.path), exist_ok=True)
        servers = NBTList[Compound](
            [Compound({"ip": String(entry.ip), "name": String(entry.name)}) for entry in entries]
        )
        nbtlib.File({"servers": servers}).save(self.path)

    def ensure(self, server: ServerInfo) -> bool:
        """
        添加服务器书签

        已有相同 host[:port] 的记录时不修改文件；否则把新记录放在最前面。

        Returns:
            是否写入了文件
        """
        servers = self.load()
        address = server.address

        if any(entry.ip == address for entry in servers):
            return False

        entry = ServerEntry(ip=address, name=server.name or "Server")
        self.save([entry] + servers)
        logger.info(f"[服务器] 已添加服务器 {address}")
        return True
