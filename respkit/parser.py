"""Streaming parser for the Redis serialization protocol (RESP)."""

from __future__ import annotations

import io
import re
from dataclasses import dataclass
from typing import Any, Callable, Iterator, List, Optional

from respkit.protocol import (
    BulkReply,
    EmptyMultiBulkReply,
    IntReply,
    MultiBulkReply,
    NullBulkReply,
    Reply,
    StandardErrReply,
    StatusReply,
)

_CHUNK_SIZE = 4096
_INT_PATTERN = re.compile(rb"[+-]?[0-9]+")
_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1


class ProtocolError(ValueError):
    """Raised or reported when the input does not follow the protocol."""


class _UnexpectedEOFError(EOFError):
    """The stream ended in the middle of a value."""


@dataclass
class Payload:
    """One parsed reply, or the error met while parsing."""

    data: Optional[Reply] = None
    err: Optional[BaseException] = None


class _Reader:
    """Buffered line and block reader over a socket or a binary stream."""

    def __init__(self, source: Any) -> None:
        read_chunk: Optional[Callable[[int], bytes]] = None
        for name in ("recv", "read1", "read"):
            candidate = getattr(source, name, None)
            if callable(candidate):
                read_chunk = candidate
                break
        if read_chunk is None:
            raise TypeError("reader must provide recv, read1 or read")
        self._read_chunk = read_chunk
        self._buf = bytearray()
        self._eof = False

    def _fill(self) -> bool:
        if self._eof:
            return False
        chunk = self._read_chunk(_CHUNK_SIZE)
        if not chunk:
            self._eof = True
            return False
        self._buf += chunk
        return True

    def read_line(self) -> bytes:
        """Return bytes up to and including the next newline."""
        start = 0
        while True:
            idx = self._buf.find(b"\n", start)
            if idx != -1:
                line = bytes(self._buf[: idx + 1])
                del self._buf[: idx + 1]
                return line
            start = len(self._buf)
            if not self._fill():
                self._buf.clear()
                raise EOFError("EOF")

    def read_exact(self, size: int) -> bytes:
        """Return exactly ``size`` bytes."""
        while len(self._buf) < size:
            if not self._fill():
                got = len(self._buf)
                self._buf.clear()
                if got == 0:
                    raise EOFError("EOF")
                raise _UnexpectedEOFError("unexpected EOF")
        data = bytes(self._buf[:size])
        del self._buf[:size]
        return data


def _text(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace")


def _parse_int(raw: bytes) -> Optional[int]:
    if _INT_PATTERN.fullmatch(raw) is None:
        return None
    value = int(raw)
    if not _INT64_MIN <= value <= _INT64_MAX:
        return None
    return value


def _protocol_error(msg: str) -> Payload:
    return Payload(err=ProtocolError("protocol error: " + msg))


def _parse_bulk(header: bytes, reader: _Reader) -> Iterator[Payload]:
    length = _parse_int(header[1:])
    if length is None or length < -1:
        yield _protocol_error("illegal bulk string header: " + _text(header))
        return
    if length == -1:
        yield Payload(data=NullBulkReply())
        return
    body = reader.read_exact(length + 2)
    yield Payload(data=BulkReply(body[:-2]))


def _parse_rdb_bulk(reader: _Reader) -> Iterator[Payload]:
    # no CRLF follows the RDB body, so it cannot be read as a plain bulk string
    header = reader.read_line()
    if header.endswith(b"\r\n"):
        header = header[:-2]
    if not header:
        raise ProtocolError("empty header")
    length = _parse_int(header[1:])
    if length is None or length <= 0:
        raise ProtocolError("illegal bulk header: " + _text(header))
    yield Payload(data=BulkReply(reader.read_exact(length)))


def _parse_array(header: bytes, reader: _Reader) -> Iterator[Payload]:
    count = _parse_int(header[1:])
    if count is None or count < 0:
        yield _protocol_error("illegal array header " + _text(header[1:]))
        return
    if count == 0:
        yield Payload(data=EmptyMultiBulkReply())
        return
    items: List[bytes] = []
    for _ in range(count):
        line = reader.read_line()
        if len(line) < 4 or line[-2:-1] != b"\r" or line[:1] != b"$":
            yield _protocol_error("illegal bulk string header " + _text(line))
            break
        length = _parse_int(line[1:-2])
        if length is None or length < -1:
            yield _protocol_error("illegal bulk string length " + _text(line))
            break
        if length == -1:
            items.append(b"")
        else:
            items.append(reader.read_exact(length + 2)[:-2])
    yield Payload(data=MultiBulkReply(items))


def _parse(reader: _Reader) -> Iterator[Payload]:
    while True:
        line = reader.read_line()
        if len(line) <= 2 or line[-2:-1] != b"\r":
            # empty lines appear within replication traffic
            continue
        line = line[:-2]
        kind, body = line[:1], line[1:]
        if kind == b"+":
            content = _text(body)
            yield Payload(data=StatusReply(content))
            if content.startswith("FULLRESYNC"):
                yield from _parse_rdb_bulk(reader)
        elif kind == b"-":
            yield Payload(data=StandardErrReply(_text(body)))
        elif kind == b":":
            value = _parse_int(body)
            if value is None:
                yield _protocol_error("illegal number " + _text(body))
            else:
                yield Payload(data=IntReply(value))
        elif kind == b"$":
            yield from _parse_bulk(line, reader)
        elif kind == b"*":
            yield from _parse_array(line, reader)
        else:
            yield Payload(data=MultiBulkReply(line.split(b" ")))


def parse_stream(reader: Any) -> Iterator[Payload]:
    """Yield payloads read from a socket or binary stream.

    Recoverable protocol errors are yielded and parsing goes on; the last
    payload carries the error that ended the stream, such as EOFError.
    """
    source = _Reader(reader)
    try:
        yield from _parse(source)
    except (EOFError, OSError, ProtocolError) as exc:
        yield Payload(err=exc)


def _is_clean_eof(err: BaseException) -> bool:
    return isinstance(err, EOFError) and not isinstance(err, _UnexpectedEOFError)


def parse_bytes(data: bytes) -> List[Reply]:
    """Parse every reply in ``data``; raise the first error met."""
    results: List[Reply] = []
    for payload in parse_stream(io.BytesIO(bytes(data))):
        if payload.err is not None:
            if _is_clean_eof(payload.err):
                break
            raise payload.err
        if payload.data is not None:
            results.append(payload.data)
    return results


def parse_one(data: bytes) -> Reply:
    """Parse the first reply in ``data``; raise the error if there is none."""
    stream = parse_stream(io.BytesIO(bytes(data)))
    payload = next(stream, None)
    stream.close()
    if payload is None:
        raise ProtocolError("no protocol")
    if payload.err is not None:
        raise payload.err
    assert payload.data is not None
    return payload.data