"""A bounded pool of reusable objects, such as connections."""

from __future__ import annotations

import queue
import threading
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque

_CLOSED = object()


class PoolClosedError(RuntimeError):
    """Raised when taking an item from a closed pool."""

    def __init__(self, message: str = "pool closed") -> None:
        super().__init__(message)


class PoolExhaustedError(RuntimeError):
    """Raised when a waiting request can no longer be served."""

    def __init__(self, message: str = "reach max connection limit") -> None:
        super().__init__(message)


@dataclass(frozen=True)
class PoolConfig:
    """Limits of a pool: idle items kept, and items alive at once."""

    max_idle: int
    max_active: int


class Pool:
    """Hands out pooled items, creating them up to ``max_active`` at once."""

    def __init__(
        self,
        factory: Callable[[], Any],
        finalizer: Callable[[Any], None],
        config: PoolConfig,
    ) -> None:
        self.config = config
        self._factory = factory
        self._finalizer = finalizer
        self._idles: Deque[Any] = deque()
        self._waiters: Deque["queue.SimpleQueue[Any]"] = deque()
        self._active = 0
        self._lock = threading.Lock()
        self._closed = False

    def get(self) -> Any:
        """Take an idle item, create one, or wait for one to be returned."""
        waiter = None
        with self._lock:
            if self._closed:
                raise PoolClosedError()
            if self._idles:
                return self._idles.popleft()
            if self._active >= self.config.max_active:
                waiter = queue.SimpleQueue()
                self._waiters.append(waiter)
            else:
                self._active += 1  # hold a place for the new item

        if waiter is not None:
            item = waiter.get()
            if item is _CLOSED:
                raise PoolExhaustedError()
            return item

        try:
            return self._factory()
        except BaseException:
            with self._lock:
                self._active -= 1
            raise

    def put(self, item: Any) -> None:
        """Give an item back; surplus items and those returned after close are finalized."""
        with self._lock:
            if not self._closed:
                if self._waiters:
                    self._waiters.popleft().put(item)
                    return
                if len(self._idles) < self.config.max_idle:
                    self._idles.append(item)
                    return
                self._active -= 1
        self._finalizer(item)

    def close(self) -> None:
        """Close the pool and finalize idle items; closing twice does nothing."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            idles = list(self._idles)
            self._idles.clear()
            waiters = list(self._waiters)
            self._waiters.clear()
        for waiter in waiters:
            waiter.put(_CLOSED)
        for item in idles:
            self._finalizer(item)