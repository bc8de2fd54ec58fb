"""Geohash encoding of coordinates into 64-bit codes, and neighbour search."""

from __future__ import annotations

import base64
import math
from typing import List, Tuple

DEFAULT_BIT_SIZE = 64  # 32 bits for latitude, another 32 bits for longitude

EARTH_RADIUS = 6372797.560856
MERCATOR_MAX = 20037726.37  # pi * EARTH_RADIUS
MERCATOR_MIN = -20037726.37

_UINT64_MASK = (1 << 64) - 1
_STD_BASE32 = b"ABCDEFGHIJKLMNOPQRSTUVWXYZ234567"
_GEO_BASE32 = b"0123456789bcdefghjkmnpqrstuvwxyz"
_TO_GEO_ALPHABET = bytes.maketrans(_STD_BASE32, _GEO_BASE32)

Box = List[List[float]]
Range = Tuple[int, int]


def _encode_bits(latitude: float, longitude: float, bit_size: int) -> Tuple[bytes, Box]:
    """Interleave longitude and latitude bits; return the code and its bounding box.

    The box holds the longitude range first, then the latitude range.
    """
    box = [[-180.0, 180.0], [-90.0, 90.0]]
    position = (longitude, latitude)
    code = bytearray((bit_size + 7) // 8)
    precision = 0
    while precision < bit_size:
        for direction, value in enumerate(position):
            low, high = box[direction]
            mid = (low + high) / 2
            if value < mid:
                box[direction][1] = mid
            else:
                box[direction][0] = mid
                code[precision >> 3] |= 1 << (7 - (precision & 7))
            precision += 1
            if precision == bit_size:
                break
    return bytes(code), box


def _decode_box(code: bytes) -> Box:
    box = [[-180.0, 180.0], [-90.0, 90.0]]
    direction = 0
    for byte in code:
        for shift in range(7, -1, -1):
            mid = (box[direction][0] + box[direction][1]) / 2
            if (byte >> shift) & 1:
                box[direction][0] = mid
            else:
                box[direction][1] = mid
            direction ^= 1
    return box


def encode(latitude: float, longitude: float) -> int:
    """Convert a coordinate to its 64-bit geohash code."""
    code, _ = _encode_bits(latitude, longitude, DEFAULT_BIT_SIZE)
    return int.from_bytes(code, "big")


def decode(code: int) -> Tuple[float, float]:
    """Convert a 64-bit geohash code back to ``(latitude, longitude)``."""
    box = _decode_box(from_int(code))
    longitude = (box[0][0] + box[0][1]) / 2
    latitude = (box[1][0] + box[1][1]) / 2
    return latitude, longitude


def to_string(buf: bytes) -> str:
    """Render geohash bytes as the usual base32 string, without padding."""
    encoded = base64.b32encode(bytes(buf)).translate(_TO_GEO_ALPHABET)
    return encoded.rstrip(b"=").decode("ascii")


def to_int(buf: bytes) -> int:
    """Read geohash bytes as a 64-bit code; short input is padded with zeros."""
    return int.from_bytes(bytes(buf[:8]).ljust(8, b"\x00"), "big")


def from_int(code: int) -> bytes:
    """Write a 64-bit geohash code as eight big-endian bytes."""
    return (code & _UINT64_MASK).to_bytes(8, "big")


def distance(latitude1: float, longitude1: float, latitude2: float, longitude2: float) -> float:
    """Great-circle distance in metres between two coordinates."""
    rad_lat1 = math.radians(latitude1)
    rad_lat2 = math.radians(latitude2)
    a = rad_lat1 - rad_lat2
    b = math.radians(longitude1) - math.radians(longitude2)
    return 2 * EARTH_RADIUS * math.asin(
        math.sqrt(
            math.sin(a / 2) ** 2
            + math.cos(rad_lat1) * math.cos(rad_lat2) * math.sin(b / 2) ** 2
        )
    )


def to_range(scope: bytes, precision: int) -> Range:
    """Turn a geohash prefix of ``precision`` bits into a ``[lower, upper)`` code range."""
    lower = to_int(scope)
    span = (1 << (64 - precision)) & _UINT64_MASK
    return lower, (lower + span) & _UINT64_MASK


def _estimate_precision(radius_meters: float, latitude: float) -> int:
    if radius_meters < 0:
        raise ValueError("radius must not be negative")
    if radius_meters == 0:
        return DEFAULT_BIT_SIZE - 1
    precision = 1
    while radius_meters < MERCATOR_MAX:
        radius_meters *= 2
        precision += 1
    # make sure the range is included in most of the base cases
    precision -= 2
    if latitude > 66 or latitude < -66:
        precision -= 1
        if latitude > 80 or latitude < -80:
            precision -= 1
    # the count is unsigned: going below zero wraps round to a huge value
    precision &= _UINT64_MASK
    precision = min(max(precision, 1), 32)
    return precision * 2 - 1


def _valid_lat(lat: float) -> float:
    return max(-90.0, min(90.0, lat))


def _valid_lng(lng: float) -> float:
    if lng > 180:
        return lng - 360
    if lng < -180:
        return lng + 360
    return lng


def get_neighbours(latitude: float, longitude: float, radius_meters: float) -> List[Range]:
    """Code ranges of the nine blocks around a coordinate that cover the radius.

    The ranges are ordered row by row: upper-left to lower-right, centre fifth.
    """
    precision = _estimate_precision(radius_meters, latitude)
    center, box = _encode_bits(latitude, longitude, precision)
    height = box[0][1] - box[0][0]
    width = box[1][1] - box[1][0]
    center_lng = (box[0][1] + box[0][0]) / 2
    center_lat = (box[1][1] + box[1][0]) / 2
    max_lat = _valid_lat(center_lat + height)
    min_lat = _valid_lat(center_lat - height)
    max_lng = _valid_lng(center_lng + width)
    min_lng = _valid_lng(center_lng - width)

    def block(lat: float, lng: float) -> Range:
        code, _ = _encode_bits(lat, lng, precision)
        return to_range(code, precision)

    return [
        block(max_lat, min_lng),
        block(max_lat, center_lng),
        block(max_lat, max_lng),
        block(center_lat, min_lng),
        to_range(center, precision),
        block(center_lat, max_lng),
        block(min_lat, min_lng),
        block(min_lat, center_lng),
        block(min_lat, max_lng),
    ]