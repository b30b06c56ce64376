"""Field checks shared by entity and snapshot models."""

from __future__ import annotations

from datetime import datetime, timezone
import math

from skytrack.domain.geomath import is_valid_position, normalize_heading


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def check_position(value: tuple[float, float]) -> tuple[float, float]:
    if not is_valid_position(value):
        raise ValueError(f"position must be a finite (lat, lon) pair, got {value!r}")
    return (float(value[0]), float(value[1]))


def check_velocity(value: tuple[float, float]) -> tuple[float, float]:
    if not all(math.isfinite(v) for v in value):
        raise ValueError(f"velocity must be finite, got {value!r}")
    return (float(value[0]), float(value[1]))


def check_heading(value: float) -> float:
    if not math.isfinite(value):
        raise ValueError("heading must be finite")
    return normalize_heading(value)


def clamp_confidence(value: float) -> float:
    if math.isnan(value):
        raise ValueError("confidence must be a number")
    return min(1.0, max(0.0, value))


def check_finite(value: float) -> float:
    if not math.isfinite(value):
        raise ValueError("value must be finite")
    return value
