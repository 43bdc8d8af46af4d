"""Encoded polyline codec (Google format, 1e5 precision)."""
from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from .models import Coordinate

PRECISION = 100_000


def _encode_value(v: int) -> str:
    v = ~(v << 1) if v < 0 else (v << 1)
    chunks = []
    while v >= 0x20:
        chunks.append(chr((0x20 | (v & 0x1F)) + 63))
        v >>= 5
    chunks.append(chr(v + 63))
    return "".join(chunks)


def encode_polyline(coords: Optional[Sequence[Coordinate]]) -> str:
    """
    Encode coordinates into a Google encoded polyline.

    Callers must drop NaN/out-of-range points first; they are not checked here.
    """
    if not coords:
        return ""
    last_lat = 0
    last_lng = 0
    out = []
    for c in coords:
        ilat = int(round(c.latitude * PRECISION))
        ilng = int(round(c.longitude * PRECISION))
        out.append(_encode_value(ilat - last_lat))
        out.append(_encode_value(ilng - last_lng))
        last_lat = ilat
        last_lng = ilng
    return "".join(out)


def _decode_value(s: str, idx: int) -> Tuple[int, int]:
    result = 0
    shift = 0
    while True:
        if idx >= len(s):
            raise ValueError("Truncated polyline")
        b = ord(s[idx]) - 63
        idx += 1
        result |= (b & 0x1F) << shift
        shift += 5
        if b < 0x20:
            break
    d = ~(result >> 1) if (result & 1) else (result >> 1)
    return d, idx


def decode_polyline(poly: str) -> List[Coordinate]:
    idx = 0
    lat = 0
    lng = 0
    coords: List[Coordinate] = []
    n = len(poly)
    while idx < n:
        dlat, idx = _decode_value(poly, idx)
        dlng, idx = _decode_value(poly, idx)
        lat += dlat
        lng += dlng
        coords.append(Coordinate(lat / PRECISION, lng / PRECISION))
    return coords
