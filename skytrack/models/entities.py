"""Canonical record for a tracked aerial object or region-level alert."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
import re
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from skytrack.domain import geomath
from skytrack.models.validators import (
    as_utc,
    check_finite,
    check_heading,
    check_position,
    check_velocity,
    clamp_confidence,
    utcnow,
)


class Classification(str, Enum):
    """Known object classes; anything else is ``UNKNOWN``."""

    DRONE = "drone"
    CRUISE_MISSILE = "cruise-missile"
    BALLISTIC = "ballistic"
    HELICOPTER = "helicopter"
    AIRCRAFT = "aircraft"
    REGION_ALERT = "region-alert"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, raw: Any) -> "Classification":
        if isinstance(raw, Classification):
            return raw
        if raw is None:
            return cls.UNKNOWN
        key = re.sub(r"[^a-z]+", "-", str(raw).strip().lower()).strip("-")
        if key in _CLASSIFICATION_ALIASES:
            return _CLASSIFICATION_ALIASES[key]
        try:
            return cls(key)
        except ValueError:
            return cls.UNKNOWN


_CLASSIFICATION_ALIASES = {
    "shahed": Classification.DRONE,
    "uav": Classification.DRONE,
    "ballistic-missile": Classification.BALLISTIC,
    "missile": Classification.CRUISE_MISSILE,
    "region": Classification.REGION_ALERT,
    "alert": Classification.REGION_ALERT,
}


class EntityStatus(str, Enum):
    """Lifecycle state. Only active entities are evicted by reconciliation."""

    ACTIVE = "active"
    INACTIVE = "inactive"

    @classmethod
    def parse(cls, raw: Any) -> "EntityStatus":
        if isinstance(raw, EntityStatus):
            return raw
        # "destroyed", "passed" and friends are kept as historical markers
        if raw is None or str(raw).strip().lower() == cls.ACTIVE.value:
            return cls.ACTIVE
        return cls.INACTIVE


# Marker colour and glyph per class, used by map collaborators.
CLASSIFICATION_STYLES: dict[Classification, tuple[str, str]] = {
    Classification.DRONE: ("#e74c3c", "🛸"),
    Classification.CRUISE_MISSILE: ("#9b59b6", "🚀"),
    Classification.BALLISTIC: ("#f39c12", "💥"),
    Classification.HELICOPTER: ("#1abc9c", "🚁"),
    Classification.AIRCRAFT: ("#95a5a6", "✈️"),
    Classification.REGION_ALERT: ("#c0392b", "🚨"),
    Classification.UNKNOWN: ("#7f8c8d", "❓"),
}

DEFAULT_CONFIDENCE = 0.8
DEFAULT_REGION = "unspecified"


class TrackedEntity(BaseModel):
    """Live state of one tracked object.

    Movement history is not kept here; it lives in the trajectory store keyed
    by the same ``id``.
    """

    id: str = Field(..., min_length=1, description="Stable identifier")
    classification: Classification = Field(
        default=Classification.UNKNOWN, description="Object class"
    )
    position: tuple[float, float] = Field(..., description="(lat, lon) in degrees")
    speed: float = Field(default=0.0, ge=0, description="Ground speed, km/h")
    altitude: float = Field(default=0.0, description="Altitude in metres")
    heading: float = Field(
        default=0.0, description="Course in degrees clockwise from north, [0, 360)"
    )
    status: EntityStatus = Field(default=EntityStatus.ACTIVE)
    confidence: float = Field(default=DEFAULT_CONFIDENCE, description="Data confidence 0-1")
    last_seen: datetime = Field(default_factory=utcnow)
    region: str = Field(default=DEFAULT_REGION, description="Free-text region label")
    velocity: Optional[tuple[float, float]] = Field(
        default=None, description="Explicit (dlat, dlon) rate in degrees per second"
    )
    metadata: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(validate_assignment=True)

    @field_validator("classification", mode="before")
    @classmethod
    def parse_classification(cls, value: Any) -> Classification:
        return Classification.parse(value)

    @field_validator("status", mode="before")
    @classmethod
    def parse_status(cls, value: Any) -> EntityStatus:
        return EntityStatus.parse(value)

    @field_validator("position")
    @classmethod
    def validate_position(cls, value: tuple[float, float]) -> tuple[float, float]:
        return check_position(value)

    @field_validator("velocity")
    @classmethod
    def validate_velocity(
        cls, value: Optional[tuple[float, float]]
    ) -> Optional[tuple[float, float]]:
        return check_velocity(value) if value is not None else None

    @field_validator("heading")
    @classmethod
    def validate_heading(cls, value: float) -> float:
        return check_heading(value)

    @field_validator("confidence")
    @classmethod
    def validate_confidence(cls, value: float) -> float:
        return clamp_confidence(value)

    @field_validator("speed", "altitude")
    @classmethod
    def validate_finite(cls, value: float) -> float:
        return check_finite(value)

    @field_validator("last_seen")
    @classmethod
    def validate_last_seen(cls, value: datetime) -> datetime:
        return as_utc(value)

    @property
    def is_active(self) -> bool:
        return self.status is EntityStatus.ACTIVE

    @computed_field
    @property
    def speed_category(self) -> str:
        if self.speed < 100:
            return "slow"
        if self.speed < 500:
            return "medium"
        if self.speed < 1000:
            return "fast"
        return "very fast"

    @computed_field
    @property
    def altitude_category(self) -> str:
        if self.altitude < 100:
            return "very low"
        if self.altitude < 1000:
            return "low"
        if self.altitude < 5000:
            return "medium"
        return "high"

    @computed_field
    @property
    def compass_point(self) -> str:
        return geomath.compass_point(self.heading)


__all__ = [
    "CLASSIFICATION_STYLES",
    "Classification",
    "DEFAULT_CONFIDENCE",
    "DEFAULT_REGION",
    "EntityStatus",
    "TrackedEntity",
]
