"""Geospatial helpers."""
from __future__ import annotations

import math
from typing import Optional, Sequence

from . import config
from .models import Coordinate, RouteBoundingCircle

EARTH_RADIUS_M = 6_371_000.0
METERS_PER_DEGREE = 111_139.0


def haversine_m(a: Coordinate, b: Coordinate) -> float:
    phi1 = math.radians(a.latitude)
    phi2 = math.radians(b.latitude)
    dphi = math.radians(b.latitude - a.latitude)
    dlambda = math.radians(b.longitude - a.longitude)

    h = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_M * c


def is_valid_location(lat: Optional[float], lng: Optional[float]) -> bool:
    if lat is None or lng is None:
        return False
    try:
        lat_f = float(lat)
        lng_f = float(lng)
    except (TypeError, ValueError):
        return False
    if math.isnan(lat_f) or math.isnan(lng_f):
        return False
    return -90.0 <= lat_f <= 90.0 and -180.0 <= lng_f <= 180.0


def bounding_circle(coords: Sequence[Coordinate]) -> RouteBoundingCircle:
    """Center and half-diagonal radius of the route's lat/lng extent.

    Uses a flat meters-per-degree approximation; only meant as a search
    parameter, not for geodesy.
    """
    if not coords:
        raise ValueError("bounding_circle requires at least one coordinate")
    lats = [c.latitude for c in coords]
    lngs = [c.longitude for c in coords]
    min_lat, max_lat = min(lats), max(lats)
    min_lng, max_lng = min(lngs), max(lngs)

    center_lat = (min_lat + max_lat) / 2
    center_lng = (min_lng + max_lng) / 2

    lat_meters = (max_lat - min_lat) * METERS_PER_DEGREE
    lng_meters = (max_lng - min_lng) * METERS_PER_DEGREE * math.cos(math.radians(center_lat))

    radius = math.ceil(math.hypot(lat_meters, lng_meters) / 2)
    radius = min(max(radius, config.BOUNDING_RADIUS_MIN_M), config.BOUNDING_RADIUS_MAX_M)
    return RouteBoundingCircle(center_lat=center_lat, center_lng=center_lng, radius_meters=float(radius))


def route_center(coords: Sequence[Coordinate]) -> Optional[Coordinate]:
    """Arithmetic mean of the route points, or None if it is not a usable search center."""
    if not coords:
        return None
    lat = sum(c.latitude for c in coords) / len(coords)
    lng = sum(c.longitude for c in coords) / len(coords)
    if not is_valid_location(lat, lng):
        return None
    if lat == 0.0 and lng == 0.0:
        return None
    return Coordinate(lat, lng)
