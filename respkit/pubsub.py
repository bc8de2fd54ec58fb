"""Publish/subscribe of messages between client connections."""

from __future__ import annotations

import threading
from typing import Dict, List, Sequence

from respkit.connection import Connection
from respkit.protocol import ArgNumErrReply, IntReply, MultiBulkReply, NoReply, Reply

_SUBSCRIBE = "subscribe"
_UNSUBSCRIBE = "unsubscribe"
_MESSAGE = b"message"
_UNSUBSCRIBE_NOTHING = b"*3\r\n$11\r\nunsubscribe\r\n$-1\n:0\r\n"


def _decode(raw: bytes) -> str:
    return bytes(raw).decode("utf-8", "surrogateescape")


def _encode(text: str) -> bytes:
    return text.encode("utf-8", "surrogateescape")


class Hub:
    """All subscriptions: each channel name mapped to its subscribed connections."""

    def __init__(self) -> None:
        self._subs: Dict[str, List[Connection]] = {}
        self._lock = threading.RLock()


def make_msg(kind: str, channel: str, code: int) -> bytes:
    """Encode a subscribe or unsubscribe confirmation."""
    kind_bytes = _encode(kind)
    channel_bytes = _encode(channel)
    return (
        b"*3\r\n$%d\r\n%s\r\n$%d\r\n%s\r\n:%d\r\n"
        % (len(kind_bytes), kind_bytes, len(channel_bytes), channel_bytes, code)
    )


def _send(conn: Connection, data: bytes) -> None:
    try:
        conn.write(data)
    except OSError:
        pass


def _subscribe_one(hub: Hub, channel: str, conn: Connection) -> bool:
    """Add the connection to the channel; tell whether it was newly subscribed."""
    conn.subscribe(channel)
    subscribers = hub._subs.setdefault(channel, [])
    if any(sub is conn for sub in subscribers):
        return False
    subscribers.append(conn)
    return True


def _unsubscribe_one(hub: Hub, channel: str, conn: Connection) -> bool:
    """Remove the connection from the channel; tell whether the channel existed."""
    conn.unsubscribe(channel)
    subscribers = hub._subs.get(channel)
    if subscribers is None:
        return False
    subscribers[:] = [sub for sub in subscribers if sub is not conn]
    if not subscribers:
        del hub._subs[channel]
    return True


def subscribe(hub: Hub, conn: Connection, args: Sequence[bytes]) -> Reply:
    """Subscribe the connection to every channel named in ``args``."""
    channels = [_decode(arg) for arg in args]
    with hub._lock:
        for channel in channels:
            if _subscribe_one(hub, channel, conn):
                _send(conn, make_msg(_SUBSCRIBE, channel, conn.subs_count()))
    return NoReply()


def unsubscribe_all(hub: Hub, conn: Connection) -> None:
    """Remove the connection from every channel it subscribes to."""
    with hub._lock:
        for channel in conn.get_channels():
            _unsubscribe_one(hub, channel, conn)


def unsubscribe(hub: Hub, conn: Connection, args: Sequence[bytes]) -> Reply:
    """Unsubscribe from the named channels, or from all of them if none is named."""
    if args:
        channels = [_decode(arg) for arg in args]
    else:
        channels = conn.get_channels()
    with hub._lock:
        if not channels:
            _send(conn, _UNSUBSCRIBE_NOTHING)
            return NoReply()
        for channel in channels:
            if _unsubscribe_one(hub, channel, conn):
                _send(conn, make_msg(_UNSUBSCRIBE, channel, conn.subs_count()))
    return NoReply()


def publish(hub: Hub, args: Sequence[bytes]) -> Reply:
    """Send a message to every subscriber of a channel; reply with their number."""
    if len(args) != 2:
        return ArgNumErrReply("publish")
    channel = _decode(args[0])
    message = bytes(args[1])
    with hub._lock:
        subscribers = hub._subs.get(channel)
        if subscribers is None:
            return IntReply(0)
        data = MultiBulkReply([_MESSAGE, _encode(channel), message]).to_bytes()
        for conn in list(subscribers):
            _send(conn, data)
        return IntReply(len(subscribers))