"""Pydantic models for SkyTrack."""

from .entities import CLASSIFICATION_STYLES, Classification, EntityStatus, TrackedEntity
from .snapshots import SnapshotRecord

__all__ = [
    "CLASSIFICATION_STYLES",
    "Classification",
    "EntityStatus",
    "SnapshotRecord",
    "TrackedEntity",
]
