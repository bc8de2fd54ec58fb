"""A pipelining client for servers that speak the Redis serialization protocol."""

from __future__ import annotations

import enum
import queue
import socket
import threading
import time
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from respkit import logger
from respkit.connection import Wait
from respkit.parser import parse_stream
from respkit.protocol import MultiBulkReply, Reply, StandardErrReply

CHAN_SIZE = 256
MAX_WAIT = 3.0
HEARTBEAT_INTERVAL = 10.0
RECONNECT_DELAY = 1.0
RECONNECT_ATTEMPTS = 3
WRITE_ATTEMPTS = 3

_STOP = object()


class _Status(enum.Enum):
    CREATED = enum.auto()
    RUNNING = enum.auto()
    CLOSED = enum.auto()


@dataclass(eq=False)
class _Request:
    args: List[bytes]
    heartbeat: bool = False
    done: threading.Event = field(default_factory=threading.Event)
    reply: Optional[Reply] = None
    err: Optional[BaseException] = None

    def finish(
        self, reply: Optional[Reply] = None, err: Optional[BaseException] = None
    ) -> None:
        self.reply = reply
        self.err = err
        self.done.set()


def _parse_address(addr: str) -> Tuple[str, int]:
    host, sep, port = addr.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"invalid address: {addr!r}")
    return host.strip("[]") or "localhost", int(port)


def _shutdown(sock: socket.socket) -> None:
    try:
        sock.shutdown(socket.SHUT_RDWR)
    except OSError:
        pass
    sock.close()


def _fail_all(waiting: "queue.Queue[Optional[_Request]]", err: BaseException) -> None:
    while True:
        try:
            req = waiting.get_nowait()
        except queue.Empty:
            return
        if req is not None:
            req.finish(err=err)


class Client:
    """Sends commands over one connection without waiting for earlier replies.

    Requests are written in order and replies are matched to them in the same
    order.  A lost connection is re-established automatically; a PING is sent
    periodically to keep it alive.
    """

    def __init__(self, addr: str) -> None:
        self.addr = addr
        self._host, self._port = _parse_address(addr)
        self.max_wait = MAX_WAIT
        self.heartbeat_interval = HEARTBEAT_INTERVAL
        self.reconnect_delay = RECONNECT_DELAY
        self._sock = self._dial()
        self._pending: "queue.Queue[object]" = queue.Queue(CHAN_SIZE)
        self._waiting: "queue.Queue[Optional[_Request]]" = queue.Queue()
        self._lock = threading.Lock()
        self._status = _Status.CREATED
        self._status_lock = threading.Lock()
        self._working = Wait()
        self._stop_heartbeat = threading.Event()

    def _dial(self) -> socket.socket:
        return socket.create_connection((self._host, self._port))

    @staticmethod
    def _spawn(target, *args) -> None:
        threading.Thread(target=target, args=args, daemon=True).start()

    def start(self) -> None:
        """Start the writer, reader and heartbeat threads."""
        with self._status_lock:
            if self._status is not _Status.CREATED:
                raise RuntimeError("client already started")
            self._status = _Status.RUNNING
        with self._lock:
            sock, waiting = self._sock, self._waiting
        self._spawn(self._handle_write)
        self._spawn(self._handle_read, sock, waiting)
        self._spawn(self._heartbeat)

    def close(self) -> None:
        """Stop the threads, wait for unfinished requests and close the connection."""
        with self._status_lock:
            if self._status is _Status.CLOSED:
                return
            was_running = self._status is _Status.RUNNING
            self._status = _Status.CLOSED
        self._stop_heartbeat.set()
        if was_running:
            self._pending.put(_STOP)
        self._working.wait()
        with self._lock:
            _shutdown(self._sock)
            waiting = self._waiting
        _fail_all(waiting, ConnectionError("connection closed"))
        waiting.put(None)  # wake a reader waiting for a request

    def __enter__(self) -> "Client":
        if self._status is _Status.CREATED:
            self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def send(self, args: Sequence[bytes]) -> Reply:
        """Send a command and return its reply, or an error reply on failure."""
        if self._status is not _Status.RUNNING:
            return StandardErrReply("client closed")
        req = _Request([bytes(arg) for arg in args])
        self._working.add(1)
        try:
            self._pending.put(req)
            if not req.done.wait(self.max_wait):
                return StandardErrReply("server time out")
        finally:
            self._working.done()
        if req.err is not None or req.reply is None:
            return StandardErrReply("request failed")
        return req.reply

    def _do_heartbeat(self) -> None:
        req = _Request([b"PING"], heartbeat=True)
        self._working.add(1)
        try:
            self._pending.put(req)
            req.done.wait(self.max_wait)
        finally:
            self._working.done()

    def _heartbeat(self) -> None:
        while not self._stop_heartbeat.wait(self.heartbeat_interval):
            if self._status is not _Status.RUNNING:
                return
            self._do_heartbeat()

    def _handle_write(self) -> None:
        while True:
            req = self._pending.get()
            if req is _STOP:
                return
            self._do_request(req)

    def _do_request(self, req: _Request) -> None:
        if not req.args:
            req.finish(err=ValueError("empty command"))
            return
        data = MultiBulkReply(list(req.args)).to_bytes()
        err: Optional[BaseException] = None
        with self._lock:
            for _ in range(WRITE_ATTEMPTS):
                try:
                    self._sock.sendall(data)
                    err = None
                    break
                except socket.timeout as exc:  # only time-outs are retried
                    err = exc
                except OSError as exc:
                    err = exc
                    break
            if err is None:
                self._waiting.put(req)
                return
        req.finish(err=err)

    def _handle_read(
        self, sock: socket.socket, waiting: "queue.Queue[Optional[_Request]]"
    ) -> None:
        for payload in parse_stream(sock):
            if payload.err is not None:
                if self._status is _Status.CLOSED:
                    return
                self._reconnect()
                return
            req = waiting.get()
            if req is None:
                return
            req.finish(reply=payload.data)

    def _reconnect(self) -> None:
        logger.info("reconnect with: " + self.addr)
        with self._lock:
            _shutdown(self._sock)

        sock: Optional[socket.socket] = None
        for _ in range(RECONNECT_ATTEMPTS):
            try:
                sock = self._dial()
                break
            except OSError as exc:
                logger.error(f"reconnect error: {exc}")
                time.sleep(self.reconnect_delay)
        if sock is None:  # reached max retry, abort
            self.close()
            return
        if self._status is _Status.CLOSED:
            _shutdown(sock)
            return

        fresh: "queue.Queue[Optional[_Request]]" = queue.Queue()
        with self._lock:
            self._sock = sock
            old, self._waiting = self._waiting, fresh
        _fail_all(old, ConnectionError("connection closed"))
        self._spawn(self._handle_read, sock, fresh)