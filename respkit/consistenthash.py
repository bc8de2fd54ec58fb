"""Consistent hashing ring that maps keys onto nodes."""

from __future__ import annotations

import bisect
import zlib
from typing import Callable, Dict, List, Optional

HashFunc = Callable[[bytes], int]


def _partition_key(key: str) -> str:
    """Return the hash tag inside ``{...}`` if the key carries one."""
    begin = key.find("{")
    if begin == -1:
        return key
    end = key.find("}")
    if end == -1 or end <= begin + 1:
        return key
    return key[begin + 1 : end]


class HashRing:
    """Nodes placed on a hash circle, each with several virtual replicas."""

    def __init__(self, replicas: int, hash_func: Optional[HashFunc] = None) -> None:
        self.replicas = replicas
        self._hash: HashFunc = hash_func or zlib.crc32
        self._keys: List[int] = []
        self._nodes: Dict[int, str] = {}

    def is_empty(self) -> bool:
        """Tell whether no node has been added."""
        return not self._keys

    def add_node(self, *args: str) -> None:
        """Place the given nodes on the ring; empty names are ignored."""
        for node in args:
            if not node:
                continue
            for i in range(self.replicas):
                code = self._hash(f"{i}{node}".encode())
                self._keys.append(code)
                self._nodes[code] = node
        self._keys.sort()

    def pick_node(self, key: str) -> Optional[str]:
        """Return the node responsible for the key, or None if the ring is empty."""
        if self.is_empty():
            return None
        code = self._hash(_partition_key(key).encode())
        idx = bisect.bisect_left(self._keys, code)
        if idx == len(self._keys):
            idx = 0
        return self._nodes[self._keys[idx]]