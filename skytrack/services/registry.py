"""Authoritative set of live tracked entities and snapshot reconciliation."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
import logging
import math
from typing import Any, Callable, Iterable, Mapping, Optional, Union
from uuid import uuid4

from pydantic import ValidationError

from skytrack.domain.errors import MalformedRecordError, RecordError
from skytrack.models.entities import (
    CLASSIFICATION_STYLES,
    Classification,
    EntityStatus,
    TrackedEntity,
)
from skytrack.models.snapshots import SnapshotRecord
from skytrack.models.validators import utcnow
from skytrack.services.trajectory import DEFAULT_MAX_POINTS, Maneuver, Prediction, Trajectory
from skytrack.services.trajectory_store import TrajectoryStore

logger = logging.getLogger("skytrack.registry")

RecordInput = Union[SnapshotRecord, Mapping[str, Any]]


class ChangeKind(str, Enum):
    """Kinds of registry change delivered to subscribers."""

    ADDED = "added"
    UPDATED = "updated"
    REMOVED = "removed"
    RECONCILED = "reconciled"


@dataclass
class ChangeEvent:
    """Notification emitted after a registry mutation has fully applied."""

    kind: ChangeKind
    timestamp: datetime
    entity: Optional[TrackedEntity] = None
    entities: list[TrackedEntity] = field(default_factory=list)
    added: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)


@dataclass
class ReconcileResult:
    """Outcome of applying one full snapshot."""

    added: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    errors: list[RecordError] = field(default_factory=list)

    def counts(self) -> dict[str, int]:
        return {
            "added": len(self.added),
            "updated": len(self.updated),
            "removed": len(self.removed),
            "errors": len(self.errors),
        }


Subscriber = Callable[[ChangeEvent], Any]


def _new_entity_id() -> str:
    return f"target-{uuid4().hex}"


def _raw_id(raw: Any) -> Optional[str]:
    if isinstance(raw, SnapshotRecord):
        return raw.id
    if isinstance(raw, Mapping) and raw.get("id") not in (None, ""):
        return str(raw["id"]).strip() or None
    return None


class EntityRegistry:
    """Own the ``id -> TrackedEntity`` mapping and keep trajectories in step.

    Every mutation goes through this class. Position changes are recorded in
    the trajectory store as a side effect, and subscribers are notified once
    the mutation (or whole snapshot) has been applied.
    """

    def __init__(
        self,
        *,
        trajectories: Optional[TrajectoryStore] = None,
        max_points: int = DEFAULT_MAX_POINTS,
        clock: Callable[[], datetime] = utcnow,
        id_factory: Callable[[], str] = _new_entity_id,
    ) -> None:
        self.trajectories = trajectories or TrajectoryStore(
            max_points=max_points, clock=clock
        )
        self._clock = clock
        self._id_factory = id_factory
        self._entities: dict[str, TrackedEntity] = {}
        self._subscribers: list[Subscriber] = []

    def __len__(self) -> int:
        return len(self._entities)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._entities

    def ids(self) -> list[str]:
        return list(self._entities)

    def get(self, entity_id: str) -> Optional[TrackedEntity]:
        return self._entities.get(entity_id)

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------
    def subscribe(self, callback: Subscriber) -> Callable[[], bool]:
        """Register ``callback`` for change events; returns an unsubscriber."""

        self._subscribers.append(callback)
        return lambda: self.unsubscribe(callback)

    def unsubscribe(self, callback: Subscriber) -> bool:
        try:
            self._subscribers.remove(callback)
        except ValueError:
            return False
        return True

    def _emit(self, event: ChangeEvent) -> None:
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception as exc:
                logger.warning(
                    "Subscriber %r failed on %s event: %s", callback, event.kind.value, exc
                )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def upsert(self, record: RecordInput) -> TrackedEntity:
        """Insert a new entity or shallow-merge ``record`` into an existing one.

        Records without an id get a generated one. Raises
        ``MalformedRecordError`` when the record cannot be applied.
        """

        entity, created = self._apply(self._coerce(record), require_id=False)
        self._emit(
            ChangeEvent(
                kind=ChangeKind.ADDED if created else ChangeKind.UPDATED,
                timestamp=self._clock(),
                entity=entity,
                entities=[entity],
                added=[entity.id] if created else [],
                updated=[] if created else [entity.id],
            )
        )
        return entity

    def remove(self, entity_id: str) -> bool:
        """Remove an entity and its trajectory. Returns whether it existed."""

        entity = self._discard(entity_id)
        if entity is None:
            return False
        self._emit(
            ChangeEvent(
                kind=ChangeKind.REMOVED,
                timestamp=self._clock(),
                entity=entity,
                entities=[entity],
                removed=[entity_id],
            )
        )
        return True

    def reconcile(self, snapshot: Iterable[RecordInput]) -> ReconcileResult:
        """Apply a full snapshot of the currently live entities.

        Unseen ids are added and seen ids updated. Afterwards every *active*
        entity missing from the snapshot is removed; inactive entities are
        left alone. Malformed records are skipped and reported without
        aborting the batch. One ``reconciled`` event is emitted at the end.
        """

        result = ReconcileResult()
        present: set[str] = set()

        for index, raw in enumerate(snapshot):
            try:
                entity, created = self._apply(self._coerce(raw), require_id=True)
            except MalformedRecordError as exc:
                record_id = exc.record_id or _raw_id(raw)
                if record_id:
                    # a known entity with a bad update is still in the snapshot
                    present.add(record_id)
                result.errors.append(RecordError(index, record_id, exc.reason))
                logger.warning(
                    "Skipping malformed record #%s (%s): %s", index, record_id, exc.reason
                )
                continue

            if entity.id in present:
                continue
            present.add(entity.id)
            if created:
                result.added.append(entity.id)
            else:
                result.updated.append(entity.id)

        stale = [
            entity_id
            for entity_id, entity in self._entities.items()
            if entity.is_active and entity_id not in present
        ]
        for entity_id in stale:
            self._discard(entity_id)
        result.removed = stale

        logger.debug("Reconciled snapshot: %s", result.counts())
        self._emit(
            ChangeEvent(
                kind=ChangeKind.RECONCILED,
                timestamp=self._clock(),
                entities=list(self._entities.values()),
                added=list(result.added),
                updated=list(result.updated),
                removed=list(result.removed),
            )
        )
        return result

    def clear(self) -> list[str]:
        """Drop every entity and trajectory; emits one ``reconciled`` event."""

        removed = list(self._entities)
        self._entities.clear()
        self.trajectories.clear()
        self._emit(
            ChangeEvent(kind=ChangeKind.RECONCILED, timestamp=self._clock(), removed=removed)
        )
        return removed

    def tick(self, dt: float) -> list[str]:
        """Advance active entities along their velocity for ``dt`` seconds.

        Uses the explicit ``velocity`` field when present, otherwise the rate
        implied by the last two trajectory samples. Ticking never records
        trajectory points, changes status, or emits events.
        """

        if not math.isfinite(dt):
            raise ValueError("dt must be finite")
        if dt <= 0:
            return []

        moved: list[str] = []
        for entity in self._entities.values():
            if not entity.is_active:
                continue
            rate = entity.velocity
            if rate is None:
                trajectory = self.trajectories.get(entity.id)
                rate = trajectory.velocity() if trajectory else None
            if rate is None or rate == (0.0, 0.0):
                continue

            lat = entity.position[0] + rate[0] * dt
            lon = entity.position[1] + rate[1] * dt
            lat = min(90.0, max(-90.0, lat))
            lon = (lon + 180.0) % 360.0 - 180.0
            entity.position = (lat, lon)
            moved.append(entity.id)
        return moved

    def _coerce(self, raw: RecordInput) -> SnapshotRecord:
        if isinstance(raw, SnapshotRecord):
            return raw
        if not isinstance(raw, Mapping):
            raise MalformedRecordError(f"expected a mapping, got {type(raw).__name__}")
        try:
            return SnapshotRecord.model_validate(raw)
        except ValidationError as exc:
            reasons = "; ".join(
                f"{'.'.join(str(p) for p in error['loc']) or 'record'}: {error['msg']}"
                for error in exc.errors()
            )
            raise MalformedRecordError(reasons, _raw_id(raw)) from exc

    def _apply(
        self, record: SnapshotRecord, *, require_id: bool
    ) -> tuple[TrackedEntity, bool]:
        entity_id = record.id
        if entity_id is None:
            if require_id:
                raise MalformedRecordError("id is required")
            entity_id = self._id_factory()

        timestamp = record.timestamp or self._clock()
        changes = record.changes()
        extras = record.extra_metadata()
        entity = self._entities.get(entity_id)

        if entity is None:
            if record.position is None:
                raise MalformedRecordError("position is required for a new entity", entity_id)
            classification = changes.get("classification", Classification.UNKNOWN)
            color, icon = CLASSIFICATION_STYLES[classification]
            extras.setdefault("color", color)
            extras.setdefault("icon", icon)
            try:
                entity = TrackedEntity(
                    id=entity_id, last_seen=timestamp, metadata=extras, **changes
                )
            except ValidationError as exc:
                raise MalformedRecordError(str(exc), entity_id) from exc
            self._entities[entity_id] = entity
            created = True
            position_changed = True
            logger.debug("Added entity %s (%s)", entity_id, entity.classification.value)
        else:
            created = False
            position_changed = (
                record.position is not None and record.position != entity.position
            )
            for name, value in changes.items():
                setattr(entity, name, value)
            entity.metadata.update(extras)
            entity.last_seen = timestamp

        if position_changed:
            self._record_position(entity, record, timestamp)
        return entity, created

    def _record_position(
        self, entity: TrackedEntity, record: SnapshotRecord, timestamp: datetime
    ) -> None:
        trajectory = self.trajectories.record(
            entity.id,
            entity.position,
            timestamp=timestamp,
            altitude=entity.altitude,
            speed=record.speed,
            heading=record.heading,
        )
        # reported values win over derived ones
        if record.heading is None and trajectory.heading is not None:
            entity.heading = trajectory.heading
        if record.speed is None and trajectory.speed is not None:
            entity.speed = trajectory.speed

    def _discard(self, entity_id: str) -> Optional[TrackedEntity]:
        entity = self._entities.pop(entity_id, None)
        if entity is not None:
            self.trajectories.remove(entity_id)
        return entity

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def query(
        self,
        predicate: Optional[Callable[[TrackedEntity], bool]] = None,
        *,
        classification: Optional[Union[Classification, str]] = None,
        region: Optional[str] = None,
        status: Optional[Union[EntityStatus, str]] = None,
    ) -> list[TrackedEntity]:
        """Entities matching every given filter, in insertion order."""

        wanted_class = Classification.parse(classification) if classification else None
        wanted_status = EntityStatus.parse(status) if status else None

        matches: list[TrackedEntity] = []
        for entity in self._entities.values():
            if wanted_class is not None and entity.classification is not wanted_class:
                continue
            if region is not None and entity.region != region:
                continue
            if wanted_status is not None and entity.status is not wanted_status:
                continue
            if predicate is not None and not predicate(entity):
                continue
            matches.append(entity)
        return matches

    def trajectory(self, entity_id: str) -> Optional[Trajectory]:
        if entity_id not in self._entities:
            return None
        return self.trajectories.get(entity_id)

    def predict(self, entity_id: str, horizon_seconds: float) -> Optional[Prediction]:
        trajectory = self.trajectory(entity_id)
        if trajectory is None:
            return None
        return trajectory.predict(horizon_seconds)

    def detect_maneuvers(
        self, entity_id: str, threshold_degrees: float = 30.0
    ) -> Optional[list[Maneuver]]:
        """Maneuvers for a known entity; ``None`` if the id is unknown."""

        if entity_id not in self._entities:
            return None
        trajectory = self.trajectories.get(entity_id)
        if trajectory is None:
            return []
        return trajectory.detect_maneuvers(threshold_degrees)

    def sweep_stale_trajectories(self, max_age_seconds: float) -> list[str]:
        return self.trajectories.sweep_stale(max_age_seconds)

    def statistics(self) -> dict[str, Any]:
        by_class = Counter(e.classification.value for e in self._entities.values())
        return {
            "entity_count": len(self._entities),
            "active_count": sum(1 for e in self._entities.values() if e.is_active),
            "by_classification": dict(by_class),
            "trajectories": self.trajectories.statistics().to_dict(),
        }


__all__ = [
    "ChangeEvent",
    "ChangeKind",
    "EntityRegistry",
    "ReconcileResult",
    "Subscriber",
]
