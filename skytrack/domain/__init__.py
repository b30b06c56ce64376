"""Pure domain helpers for SkyTrack: geodesy and error types."""

from .errors import MalformedRecordError, RecordError
from .geomath import (
    compass_point,
    haversine_km,
    heading_delta,
    initial_bearing,
    normalize_heading,
    variance,
)

__all__ = [
    "MalformedRecordError",
    "RecordError",
    "compass_point",
    "haversine_km",
    "heading_delta",
    "initial_bearing",
    "normalize_heading",
    "variance",
]
