"""Reply types of the Redis serialization protocol (RESP) and their wire encoding."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

CRLF = b"\r\n"

_NULL_BULK = b"$-1\r\n"
_EMPTY_MULTI_BULK = b"*0\r\n"
_OK = b"+OK\r\n"


class Reply(ABC):
    """A value that can be serialized onto the wire."""

    @abstractmethod
    def to_bytes(self) -> bytes:
        """Return the RESP encoding of this reply."""

    def __bytes__(self) -> bytes:
        return self.to_bytes()


@dataclass(frozen=True)
class PongReply(Reply):
    """The +PONG status."""

    def to_bytes(self) -> bytes:
        return b"+PONG\r\n"


@dataclass(frozen=True)
class OkReply(Reply):
    """The +OK status."""

    def to_bytes(self) -> bytes:
        return _OK


@dataclass(frozen=True)
class NullBulkReply(Reply):
    """A nil bulk string."""

    def to_bytes(self) -> bytes:
        return _NULL_BULK


@dataclass(frozen=True)
class EmptyMultiBulkReply(Reply):
    """An empty array."""

    def to_bytes(self) -> bytes:
        return _EMPTY_MULTI_BULK


@dataclass(frozen=True)
class NoReply(Reply):
    """Nothing at all, for commands such as SUBSCRIBE that write on their own."""

    def to_bytes(self) -> bytes:
        return b""


@dataclass(frozen=True)
class QueuedReply(Reply):
    """The +QUEUED status used inside transactions."""

    def to_bytes(self) -> bytes:
        return b"+QUEUED\r\n"


class ErrorReply(Reply):
    """A reply that reports an error."""

    @abstractmethod
    def error(self) -> str:
        """Return the error message."""

    def to_bytes(self) -> bytes:
        return b"-" + self.error().encode() + CRLF


@dataclass(frozen=True)
class UnknownErrReply(ErrorReply):
    """An unspecified error."""

    def error(self) -> str:
        return "Err unknown"


@dataclass(frozen=True)
class ArgNumErrReply(ErrorReply):
    """Wrong number of arguments for a command."""

    cmd: str

    def error(self) -> str:
        return f"ERR wrong number of arguments for '{self.cmd}' command"


@dataclass(frozen=True)
class SyntaxErrReply(ErrorReply):
    """Unexpected arguments."""

    def error(self) -> str:
        return "Err syntax error"


@dataclass(frozen=True)
class WrongTypeErrReply(ErrorReply):
    """Operation against a key holding the wrong kind of value."""

    def error(self) -> str:
        return "WRONGTYPE Operation against a key holding the wrong kind of value"


@dataclass(frozen=True)
class ProtocolErrReply(ErrorReply):
    """An unexpected byte met while parsing a request."""

    msg: str

    def error(self) -> str:
        return f"ERR Protocol error '{self.msg}' command"

    def to_bytes(self) -> bytes:
        return f"-ERR Protocol error: '{self.msg}'".encode() + CRLF


@dataclass(frozen=True)
class StandardErrReply(ErrorReply):
    """A server error carrying a free-form status line."""

    status: str

    def error(self) -> str:
        return self.status


@dataclass
class BulkReply(Reply):
    """A binary-safe string; ``None`` encodes as a nil bulk string."""

    arg: Optional[bytes]

    def to_bytes(self) -> bytes:
        if self.arg is None:
            return _NULL_BULK
        arg = bytes(self.arg)
        return b"$%d\r\n%s\r\n" % (len(arg), arg)


@dataclass
class MultiBulkReply(Reply):
    """An array of bulk strings; ``None`` entries encode as nil."""

    args: List[Optional[bytes]] = field(default_factory=list)

    def to_bytes(self) -> bytes:
        parts = [b"*%d\r\n" % len(self.args)]
        for arg in self.args:
            if arg is None:
                parts.append(_NULL_BULK)
            else:
                data = bytes(arg)
                parts.append(b"$%d\r\n%s\r\n" % (len(data), data))
        return b"".join(parts)


@dataclass
class MultiRawReply(Reply):
    """An array of arbitrary replies, such as nested arrays."""

    replies: Sequence[Reply] = field(default_factory=list)

    def to_bytes(self) -> bytes:
        head = b"*%d\r\n" % len(self.replies)
        return head + b"".join(reply.to_bytes() for reply in self.replies)


@dataclass(frozen=True)
class StatusReply(Reply):
    """A simple status string."""

    status: str

    def to_bytes(self) -> bytes:
        return b"+" + self.status.encode() + CRLF


@dataclass(frozen=True)
class IntReply(Reply):
    """A signed integer."""

    code: int

    def to_bytes(self) -> bytes:
        return b":%d\r\n" % self.code


def is_ok_reply(reply: Reply) -> bool:
    """Tell whether the reply encodes as +OK."""
    return reply.to_bytes() == _OK


def is_error_reply(reply: Reply) -> bool:
    """Tell whether the reply is an error on the wire."""
    return reply.to_bytes().startswith(b"-")