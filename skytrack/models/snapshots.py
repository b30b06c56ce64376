"""Inbound snapshot records supplied by transport collaborators."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from skytrack.models.entities import Classification, EntityStatus
from skytrack.models.validators import (
    as_utc,
    check_finite,
    check_heading,
    check_position,
    check_velocity,
    clamp_confidence,
)

# Fields copied onto TrackedEntity when a record sets them.
ENTITY_FIELDS = (
    "classification",
    "position",
    "speed",
    "altitude",
    "heading",
    "status",
    "confidence",
    "region",
    "velocity",
)


class SnapshotRecord(BaseModel):
    """One entity as described by a single snapshot.

    Every field is optional so a record doubles as a partial update. Unknown
    keys are kept (``extra="allow"``) and end up in the entity metadata.
    """

    id: Optional[str] = Field(default=None, description="Entity identifier")
    classification: Optional[Classification] = Field(
        default=None,
        validation_alias=AliasChoices("classification", "type"),
        description="Object class; accepts the legacy 'type' key",
    )
    position: Optional[tuple[float, float]] = Field(
        default=None,
        validation_alias=AliasChoices("position", "coordinates"),
        description="(lat, lon) in degrees; accepts the legacy 'coordinates' key",
    )
    speed: Optional[float] = Field(default=None, ge=0, description="Ground speed, km/h")
    altitude: Optional[float] = Field(default=None, description="Altitude in metres")
    heading: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("heading", "direction"),
        description="Course in degrees; accepts the legacy 'direction' key",
    )
    region: Optional[str] = Field(default=None)
    status: Optional[EntityStatus] = Field(default=None)
    confidence: Optional[float] = Field(default=None)
    timestamp: Optional[datetime] = Field(
        default=None, description="Observation time; defaults to receipt time"
    )
    velocity: Optional[tuple[float, float]] = Field(
        default=None, description="Explicit (dlat, dlon) rate in degrees per second"
    )
    metadata: Optional[dict[str, Any]] = Field(default=None)

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        if isinstance(value, str):
            value = value.strip()
            if not value:
                raise ValueError("id must not be empty")
        return value

    @field_validator("classification", mode="before")
    @classmethod
    def parse_classification(cls, value: Any) -> Any:
        return None if value is None else Classification.parse(value)

    @field_validator("status", mode="before")
    @classmethod
    def parse_status(cls, value: Any) -> Any:
        return None if value is None else EntityStatus.parse(value)

    @field_validator("position")
    @classmethod
    def validate_position(
        cls, value: Optional[tuple[float, float]]
    ) -> Optional[tuple[float, float]]:
        return check_position(value) if value is not None else None

    @field_validator("velocity")
    @classmethod
    def validate_velocity(
        cls, value: Optional[tuple[float, float]]
    ) -> Optional[tuple[float, float]]:
        return check_velocity(value) if value is not None else None

    @field_validator("heading")
    @classmethod
    def validate_heading(cls, value: Optional[float]) -> Optional[float]:
        return check_heading(value) if value is not None else None

    @field_validator("confidence")
    @classmethod
    def validate_confidence(cls, value: Optional[float]) -> Optional[float]:
        return clamp_confidence(value) if value is not None else None

    @field_validator("speed", "altitude")
    @classmethod
    def validate_finite(cls, value: Optional[float]) -> Optional[float]:
        return check_finite(value) if value is not None else None

    @field_validator("timestamp")
    @classmethod
    def validate_timestamp(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value) if value is not None else None

    def changes(self) -> dict[str, Any]:
        """Entity fields this record sets explicitly."""

        return {
            name: getattr(self, name)
            for name in ENTITY_FIELDS
            if getattr(self, name) is not None
        }

    def extra_metadata(self) -> dict[str, Any]:
        """Opaque collaborator fields: ``metadata`` plus any unknown keys."""

        merged: dict[str, Any] = dict(self.metadata or {})
        merged.update(self.model_extra or {})
        return merged


__all__ = ["ENTITY_FIELDS", "SnapshotRecord"]
