"""Unique 64-bit identifiers made with the snowflake scheme."""

from __future__ import annotations

import threading
import time

# Nov 04 2010 01:42:54 UTC in milliseconds
EPOCH0 = 1288834974657
TIME_LEFT = 22
NODE_LEFT = 10
MAX_SEQUENCE = (1 << NODE_LEFT) - 1
NODE_MASK = (1 << (TIME_LEFT - NODE_LEFT)) - 1

_FNV64_OFFSET = 0xCBF29CE484222325
_FNV64_PRIME = 0x100000001B3
_UINT64_MASK = (1 << 64) - 1


class ClockMovedBackwardsError(RuntimeError):
    """Raised when the clock is earlier than the last issued timestamp."""


def _fnv1_64(data: bytes) -> int:
    value = _FNV64_OFFSET
    for byte in data:
        value = (value * _FNV64_PRIME) & _UINT64_MASK
        value ^= byte
    return value


class IDGenerator:
    """Thread-safe generator of increasing unique integer IDs for one node."""

    def __init__(self, node: str) -> None:
        self.node_id = _fnv1_64(node.encode()) & NODE_MASK
        self._lock = threading.Lock()
        self._last_stamp = -1
        self._sequence = 1
        # monotonic reading that corresponds to the epoch
        wall_offset = time.time_ns() - EPOCH0 * 1_000_000
        self._epoch_mono = time.monotonic_ns() - wall_offset

    def _millis(self) -> int:
        return (time.monotonic_ns() - self._epoch_mono) // 1_000_000

    def next_id(self) -> int:
        """Return the next unique ID."""
        with self._lock:
            timestamp = self._millis()
            if timestamp < self._last_stamp:
                raise ClockMovedBackwardsError("can not generate id")
            if timestamp == self._last_stamp:
                self._sequence = (self._sequence + 1) & MAX_SEQUENCE
                if self._sequence == 0:
                    while timestamp <= self._last_stamp:
                        timestamp = self._millis()
            else:
                self._sequence = 0
            self._last_stamp = timestamp
            return (timestamp << TIME_LEFT) | (self.node_id << NODE_LEFT) | self._sequence