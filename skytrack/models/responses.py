"""Response models for the HTTP surface."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class RecordErrorModel(BaseModel):
    """A snapshot record that was skipped."""

    index: int = Field(..., description="Position of the record in the snapshot")
    record_id: Optional[str] = Field(default=None, description="Record id, if known")
    reason: str = Field(..., description="Why the record was rejected")


class ReconcileResponse(BaseModel):
    """Ids touched by one reconciliation."""

    added: list[str] = Field(default_factory=list)
    updated: list[str] = Field(default_factory=list)
    removed: list[str] = Field(default_factory=list)
    errors: list[RecordErrorModel] = Field(default_factory=list)


class PredictionResponse(BaseModel):
    """Dead-reckoned position for an entity."""

    entity_id: str
    horizon_seconds: float
    position: tuple[float, float] = Field(..., description="(lat, lon) in degrees")
    timestamp: datetime
    confidence: float = Field(..., ge=0, le=1)


class ManeuverModel(BaseModel):
    """Abrupt heading change between consecutive samples."""

    sample_index: int
    heading_delta: float
    timestamp: datetime
    position: tuple[float, float]
    intensity: float


class StatisticsResponse(BaseModel):
    """Registry and trajectory counters for HUD collaborators."""

    entity_count: int
    active_count: int
    by_classification: dict[str, int]
    trajectory_count: int
    total_points: int
    total_length_km: float


__all__ = [
    "ManeuverModel",
    "PredictionResponse",
    "ReconcileResponse",
    "RecordErrorModel",
    "StatisticsResponse",
]
