"""Server-side client connections and an in-memory stand-in for tests."""

from __future__ import annotations

import enum
import threading
from typing import Any, Dict, List, Optional


class Wait:
    """A counter of work in progress that can be waited on, with a timeout."""

    def __init__(self) -> None:
        self._count = 0
        self._cond = threading.Condition()

    def add(self, delta: int) -> None:
        """Change the counter by ``delta``; it must not go below zero."""
        with self._cond:
            count = self._count + delta
            if count < 0:
                raise ValueError("negative wait counter")
            self._count = count
            if count == 0:
                self._cond.notify_all()

    def done(self) -> None:
        """Decrement the counter by one."""
        self.add(-1)

    def wait(self) -> None:
        """Block until the counter is zero."""
        with self._cond:
            self._cond.wait_for(lambda: self._count == 0)

    def wait_with_timeout(self, timeout: float) -> bool:
        """Block until the counter is zero or ``timeout`` seconds pass.

        Returns True if the wait timed out.
        """
        with self._cond:
            return not self._cond.wait_for(lambda: self._count == 0, timeout)


class _Flag(enum.IntFlag):
    SLAVE = 1
    MASTER = 2
    MULTI = 4


def _format_addr(addr: Any) -> str:
    if isinstance(addr, tuple) and len(addr) >= 2:
        host, port = addr[0], addr[1]
        if ":" in str(host):
            return f"[{host}]:{port}"
        return f"{host}:{port}"
    return str(addr)


class Connection:
    """State of one client connection: subscriptions, transaction and database."""

    def __init__(self, sock: Any = None) -> None:
        self.sock = sock
        self._sending = Wait()
        self._lock = threading.Lock()
        self._write_lock = threading.Lock()
        self._flags = _Flag(0)
        self._subs: Dict[str, None] = {}
        self.password = ""
        self.queue: List[List[bytes]] = []
        self._watching: Dict[str, int] = {}
        self.tx_errors: List[BaseException] = []
        self.db_index = 0

    def remote_addr(self) -> Any:
        """Return the peer address of the socket, or None without one."""
        if self.sock is None:
            return None
        return self.sock.getpeername()

    def close(self) -> None:
        """Wait briefly for pending writes, then close and reset the state."""
        self._sending.wait_with_timeout(10.0)
        if self.sock is not None:
            self.sock.close()
        self._subs = {}
        self.password = ""
        self.queue = []
        self._watching = {}
        self.tx_errors = []
        self.db_index = 0

    def write(self, data: bytes) -> int:
        """Send data to the client; return the number of bytes sent."""
        if not data:
            return 0
        self._sending.add(1)
        try:
            with self._write_lock:
                self.sock.sendall(data)
        finally:
            self._sending.done()
        return len(data)

    def name(self) -> str:
        """Return the peer address as ``host:port``, or an empty string."""
        if self.sock is None:
            return ""
        return _format_addr(self.sock.getpeername())

    def subscribe(self, channel: str) -> None:
        """Record a subscription to the channel."""
        with self._lock:
            self._subs[channel] = None

    def unsubscribe(self, channel: str) -> None:
        """Forget the subscription to the channel, if any."""
        with self._lock:
            self._subs.pop(channel, None)

    def subs_count(self) -> int:
        """Return the number of subscribed channels."""
        return len(self._subs)

    def get_channels(self) -> List[str]:
        """Return all subscribed channels."""
        with self._lock:
            return list(self._subs)

    def in_multi_state(self) -> bool:
        """Tell whether an uncommitted transaction is open."""
        return bool(self._flags & _Flag.MULTI)

    def set_multi_state(self, state: bool) -> None:
        """Open a transaction, or cancel one and drop its queued data."""
        if not state:
            self._watching = {}
            self.queue = []
            self._flags &= ~_Flag.MULTI
            return
        self._flags |= _Flag.MULTI

    def enqueue_cmd(self, cmd_line: List[bytes]) -> None:
        """Queue a command of the current transaction."""
        self.queue.append(cmd_line)

    def add_tx_error(self, err: BaseException) -> None:
        """Record a syntax error met inside the transaction."""
        self.tx_errors.append(err)

    def clear_queued_cmds(self) -> None:
        """Drop the queued commands of the current transaction."""
        self.queue = []

    def get_watching(self) -> Dict[str, int]:
        """Return watched keys mapped to their version when watching began."""
        return self._watching

    def select_db(self, db_num: int) -> None:
        """Select a database by index."""
        self.db_index = db_num

    def set_slave(self) -> None:
        """Mark this as a connection with a replica."""
        self._flags |= _Flag.SLAVE

    def is_slave(self) -> bool:
        """Tell whether this is a connection with a replica."""
        return bool(self._flags & _Flag.SLAVE)

    def set_master(self) -> None:
        """Mark this as a connection with a master."""
        self._flags |= _Flag.MASTER

    def is_master(self) -> bool:
        """Tell whether this is a connection with a master."""
        return bool(self._flags & _Flag.MASTER)


class FakeConn(Connection):
    """A connection that writes into memory and can be read back."""

    def __init__(self) -> None:
        super().__init__(None)
        self._buf = bytearray()
        self._offset = 0
        self._closed = False
        self._cond = threading.Condition()

    @property
    def closed(self) -> bool:
        return self._closed

    def write(self, data: bytes) -> int:
        """Append data to the buffer; raise BrokenPipeError once closed."""
        with self._cond:
            if self._closed:
                raise BrokenPipeError("connection closed")
            self._buf += data
            self._cond.notify_all()
        return len(data)

    def read(self, size: Optional[int] = -1) -> bytes:
        """Return unread data, blocking until some arrives; b"" once closed."""
        if size == 0:
            return b""
        with self._cond:
            self._cond.wait_for(lambda: self._offset < len(self._buf) or self._closed)
            available = len(self._buf) - self._offset
            if available == 0:
                return b""
            count = available if size is None or size < 0 else min(size, available)
            chunk = bytes(self._buf[self._offset : self._offset + count])
            self._offset += count
            return chunk

    def clean(self) -> None:
        """Discard everything written so far."""
        with self._cond:
            self._buf.clear()
            self._offset = 0

    def getvalue(self) -> bytes:
        """Return everything written since the last clean."""
        with self._cond:
            return bytes(self._buf)

    def close(self) -> None:
        """Mark closed and wake any blocked reader."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()