"""Service-layer components for SkyTrack: trajectories, registry, scheduling."""

from .registry import ChangeEvent, ChangeKind, EntityRegistry, ReconcileResult
from .runtime import TrackingRuntime
from .scheduler import PeriodicTask
from .trajectory import Maneuver, Prediction, Sample, Trajectory
from .trajectory_store import TrajectoryStore, TrajectoryStoreStatistics

__all__ = [
    "ChangeEvent",
    "ChangeKind",
    "EntityRegistry",
    "Maneuver",
    "PeriodicTask",
    "Prediction",
    "ReconcileResult",
    "Sample",
    "TrackingRuntime",
    "Trajectory",
    "TrajectoryStore",
    "TrajectoryStoreStatistics",
]
