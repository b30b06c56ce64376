"""Owner of every trajectory, keyed by entity id."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
import logging
from typing import Any, Callable, Optional, Sequence

from skytrack.models.validators import utcnow
from skytrack.services.trajectory import DEFAULT_MAX_POINTS, Trajectory

logger = logging.getLogger("skytrack.trajectory_store")


@dataclass
class TrajectoryStoreStatistics:
    """Aggregate counters for HUD and health reporting."""

    count: int
    total_points: int
    total_length_km: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class TrajectoryStore:
    """Create trajectories lazily and drop them when they go stale."""

    def __init__(
        self,
        *,
        max_points: int = DEFAULT_MAX_POINTS,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        if max_points < 1:
            raise ValueError(f"max_points must be at least 1, got {max_points}")
        self.max_points = max_points
        self._clock = clock
        self._trajectories: dict[str, Trajectory] = {}

    def __len__(self) -> int:
        return len(self._trajectories)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._trajectories

    def ids(self) -> list[str]:
        return list(self._trajectories)

    def get(self, entity_id: str) -> Optional[Trajectory]:
        return self._trajectories.get(entity_id)

    def record(
        self,
        entity_id: str,
        position: Sequence[float],
        *,
        timestamp: Optional[datetime] = None,
        altitude: Optional[float] = None,
        speed: Optional[float] = None,
        heading: Optional[float] = None,
    ) -> Trajectory:
        """Append a point to ``entity_id``'s trajectory, creating it if needed."""

        trajectory = self._trajectories.get(entity_id)
        if trajectory is None:
            trajectory = Trajectory(entity_id, self.max_points)
            self._trajectories[entity_id] = trajectory
            logger.debug("Created trajectory for %s", entity_id)

        trajectory.add_point(
            position,
            timestamp=timestamp if timestamp is not None else self._clock(),
            altitude=altitude,
            speed=speed,
            heading=heading,
        )
        return trajectory

    def remove(self, entity_id: str) -> bool:
        return self._trajectories.pop(entity_id, None) is not None

    def clear(self) -> None:
        self._trajectories.clear()

    def sweep_stale(self, max_age_seconds: float) -> list[str]:
        """Drop trajectories whose newest sample is older than the cutoff.

        Empty trajectories are always dropped. Returns the removed ids.
        """

        if max_age_seconds < 0:
            raise ValueError("max_age_seconds must not be negative")

        cutoff = self._clock() - timedelta(seconds=max_age_seconds)
        stale = [
            entity_id
            for entity_id, trajectory in self._trajectories.items()
            if trajectory.newest is None or trajectory.newest.timestamp < cutoff
        ]
        for entity_id in stale:
            del self._trajectories[entity_id]

        if stale:
            logger.info("Swept %s stale trajectories", len(stale))
        return stale

    def statistics(self) -> TrajectoryStoreStatistics:
        return TrajectoryStoreStatistics(
            count=len(self._trajectories),
            total_points=sum(len(t) for t in self._trajectories.values()),
            total_length_km=sum(t.length() for t in self._trajectories.values()),
        )

    def export_all(self) -> dict[str, Any]:
        """All trajectories as a GeoJSON ``FeatureCollection``."""

        features = [trajectory.export() for trajectory in self._trajectories.values()]
        return {
            "type": "FeatureCollection",
            "features": features,
            "properties": {
                "exported_at": self._clock().isoformat(),
                "trajectory_count": len(features),
                "total_points": sum(f["properties"]["point_count"] for f in features),
            },
        }


__all__ = ["TrajectoryStore", "TrajectoryStoreStatistics"]
