"""A threaded TCP server and an echo handler for checking that it works."""

from __future__ import annotations

import signal
import socket
import threading
from dataclasses import dataclass
from typing import Dict, List, Protocol, Tuple

from respkit import logger
from respkit.connection import Wait

_ACCEPT_POLL = 0.1


class _Handler(Protocol):
    def handle(self, sock: socket.socket) -> None: ...

    def close(self) -> None: ...


@dataclass(frozen=True)
class ServerConfig:
    """Where the server listens, in ``host:port`` form."""

    address: str
    max_connect: int = 0
    timeout: float = 0.0


def _parse_address(address: str) -> Tuple[str, int]:
    host, sep, port = address.rpartition(":")
    if not sep:
        raise ValueError(f"invalid address: {address!r}")
    try:
        number = int(port)
    except ValueError:
        raise ValueError(f"invalid address: {address!r}") from None
    return host.strip("[]"), number


def _shutdown(sock: socket.socket) -> None:
    try:
        sock.shutdown(socket.SHUT_RDWR)
    except OSError:
        pass
    sock.close()


class _EchoClient:
    def __init__(self, sock: socket.socket) -> None:
        self.sock = sock
        self.waiting = Wait()

    def close(self) -> None:
        self.waiting.wait_with_timeout(10.0)
        _shutdown(self.sock)


class EchoHandler:
    """Sends every received line back to the client."""

    def __init__(self) -> None:
        self._active: Dict[_EchoClient, None] = {}
        self._lock = threading.Lock()
        self._closing = threading.Event()

    def handle(self, sock: socket.socket) -> None:
        """Echo lines until the client disconnects."""
        if self._closing.is_set():
            sock.close()
            return
        client = _EchoClient(sock)
        with self._lock:
            self._active[client] = None
        with sock.makefile("rb") as reader:
            while True:
                try:
                    line = reader.readline()
                except OSError as exc:
                    logger.warn(exc)
                    return
                if not line.endswith(b"\n"):
                    logger.info("connection close")
                    with self._lock:
                        self._active.pop(client, None)
                    sock.close()
                    return
                client.waiting.add(1)
                try:
                    sock.sendall(line)
                except OSError:
                    pass
                finally:
                    client.waiting.done()

    def close(self) -> None:
        """Refuse new connections and close the active ones."""
        logger.info("handler shutting down...")
        self._closing.set()
        with self._lock:
            clients = list(self._active)
        for client in clients:
            client.close()


def listen_and_serve(
    listener: socket.socket, handler: _Handler, close_event: threading.Event
) -> None:
    """Accept connections until ``close_event`` is set or accepting fails."""
    listener.settimeout(_ACCEPT_POLL)
    workers: List[threading.Thread] = []
    try:
        while True:
            if close_event.is_set():
                logger.info("get exit signal")
                break
            try:
                sock, _ = listener.accept()
            except socket.timeout:
                continue
            except OSError as exc:
                logger.info(f"accept error: {exc}")
                break
            logger.info("accept link")
            worker = threading.Thread(target=handler.handle, args=(sock,), daemon=True)
            worker.start()
            workers = [w for w in workers if w.is_alive()]
            workers.append(worker)
    finally:
        logger.info("shutting down...")
        listener.close()
        handler.close()
    for worker in workers:
        worker.join()


def listen_and_serve_with_signal(config: ServerConfig, handler: _Handler) -> None:
    """Bind the configured address and serve until a stop signal arrives."""
    host, port = _parse_address(config.address)
    close_event = threading.Event()

    def on_signal(signum, frame) -> None:
        close_event.set()

    previous = {}
    for name in ("SIGHUP", "SIGQUIT", "SIGTERM", "SIGINT"):
        signum = getattr(signal, name, None)
        if signum is not None:
            previous[signum] = signal.signal(signum, on_signal)
    try:
        listener = socket.create_server((host, port))
        logger.info(f"bind: {config.address}, start listening...")
        listen_and_serve(listener, handler, close_event)
    finally:
        for signum, prev in previous.items():
            signal.signal(signum, prev if prev is not None else signal.SIG_DFL)