"""Helpers for building command lines and converting index ranges."""

from __future__ import annotations

from typing import List, Tuple, Union

CmdLine = List[bytes]


def to_cmd_line(*args: str) -> CmdLine:
    """Encode string arguments into a command line."""
    return [arg.encode() for arg in args]


def to_cmd_line2(command_name: str, *args: str) -> CmdLine:
    """Encode a command name and string arguments into a command line."""
    return [command_name.encode(), *(arg.encode() for arg in args)]


def to_cmd_line3(command_name: str, *args: Union[bytes, bytearray]) -> CmdLine:
    """Build a command line from a command name and binary arguments."""
    return [command_name.encode(), *(bytes(arg) for arg in args)]


def convert_range(start: int, end: int, size: int) -> Tuple[int, int]:
    """Turn an inclusive, possibly negative range into a slice ``[begin, end)``.

    Returns ``(-1, -1)`` when the range selects nothing.
    """
    if start < -size:
        return -1, -1
    if start < 0:
        start += size
    elif start >= size:
        return -1, -1

    if end < -size:
        return -1, -1
    if end < 0:
        end = size + end + 1
    elif end < size:
        end += 1
    else:
        end = size

    if start > end:
        return -1, -1
    return start, end