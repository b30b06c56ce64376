"""Great-circle helpers used by trajectory tracking.

Distances use the haversine formula on a spherical earth (R = 6371 km). This is
accurate to roughly 0.5% which is fine at regional tracking scale, but it is
not an ellipsoidal geodesic and should not be used where that matters.
"""

from __future__ import annotations

import math
from typing import Sequence

EARTH_RADIUS_KM = 6371.0

_COMPASS_POINTS = ("N", "NE", "E", "SE", "S", "SW", "W", "NW")

LatLon = tuple[float, float]


def haversine_km(origin: Sequence[float], target: Sequence[float]) -> float:
    """Return the great-circle distance in kilometres between two points."""

    lat1, lon1 = origin
    lat2, lon2 = target
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)

    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(d_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def initial_bearing(origin: Sequence[float], target: Sequence[float]) -> float:
    """Return the initial great-circle bearing from origin to target.

    The result is in degrees, clockwise from true north, normalized to
    [0, 360).
    """

    lat1, lon1 = (math.radians(v) for v in origin)
    lat2, lon2 = (math.radians(v) for v in target)
    d_lon = lon2 - lon1

    y = math.sin(d_lon) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(
        d_lon
    )
    return normalize_heading(math.degrees(math.atan2(y, x)))


def normalize_heading(degrees: float) -> float:
    """Wrap an angle into [0, 360)."""

    value = math.fmod(degrees, 360.0)
    if value < 0:
        value += 360.0
    # fmod of a tiny negative number can round up to exactly 360.0
    if value >= 360.0:
        value = 0.0
    return value


def heading_delta(first: float, second: float) -> float:
    """Shortest-arc difference between two headings, in [0, 180]."""

    delta = abs(normalize_heading(second) - normalize_heading(first))
    return min(delta, 360.0 - delta)


def signed_heading_delta(first: float, second: float) -> float:
    """Shortest-arc turn from ``first`` to ``second`` in (-180, 180]."""

    delta = normalize_heading(second - first)
    if delta > 180.0:
        delta -= 360.0
    return delta


def variance(values: Sequence[float]) -> float:
    """Population variance; zero for fewer than two values."""

    if len(values) < 2:
        return 0.0
    mean = sum(values) / len(values)
    return sum((value - mean) ** 2 for value in values) / len(values)


def compass_point(degrees: float) -> str:
    """Return the 8-point compass label for a heading."""

    index = int(round(normalize_heading(degrees) / 45.0)) % len(_COMPASS_POINTS)
    return _COMPASS_POINTS[index]


def is_valid_position(position: Sequence[float]) -> bool:
    """Check that a (lat, lon) pair is finite and within range."""

    if len(position) != 2:
        return False
    lat, lon = position
    if not (math.isfinite(lat) and math.isfinite(lon)):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0


__all__ = [
    "EARTH_RADIUS_KM",
    "LatLon",
    "compass_point",
    "haversine_km",
    "heading_delta",
    "initial_bearing",
    "is_valid_position",
    "normalize_heading",
    "signed_heading_delta",
    "variance",
]
