"""Bounded per-entity position history with dead-reckoning and maneuver checks."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Any, Iterator, Optional, Sequence

from skytrack.domain.geomath import (
    heading_delta,
    haversine_km,
    initial_bearing,
    signed_heading_delta,
    variance,
)
from skytrack.models.validators import as_utc, utcnow

DEFAULT_MAX_POINTS = 50
LOW_CONFIDENCE = 0.3
MIN_CONFIDENCE = 0.1
SPEED_VARIANCE_WEIGHT = 0.5
HEADING_VARIANCE_WEIGHT = 0.01


@dataclass(frozen=True)
class Sample:
    """A single observed position."""

    position: tuple[float, float]
    timestamp: datetime
    altitude: Optional[float] = None
    speed: Optional[float] = None
    heading: Optional[float] = None


@dataclass(frozen=True)
class Prediction:
    """Dead-reckoned position ``horizon`` seconds past the newest sample."""

    position: tuple[float, float]
    timestamp: datetime
    confidence: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "position": list(self.position),
            "timestamp": self.timestamp.isoformat(),
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class Maneuver:
    """Abrupt course change ending at ``sample_index``."""

    sample_index: int
    heading_delta: float
    timestamp: datetime
    position: tuple[float, float]
    intensity: float


@dataclass(frozen=True)
class _Segment:
    start: Sample
    end: Sample

    @property
    def seconds(self) -> float:
        return (self.end.timestamp - self.start.timestamp).total_seconds()

    @property
    def distance_km(self) -> float:
        return haversine_km(self.start.position, self.end.position)

    @property
    def bearing(self) -> Optional[float]:
        if self.start.position == self.end.position:
            return None
        return initial_bearing(self.start.position, self.end.position)


class Trajectory:
    """Ring buffer of samples for one entity.

    Once ``max_points`` samples are held each new sample evicts the oldest.
    Derived values (``heading``, ``speed``, predictions) are ``None`` until at
    least two samples with increasing timestamps exist.
    """

    def __init__(self, entity_id: str, max_points: int = DEFAULT_MAX_POINTS) -> None:
        if max_points < 1:
            raise ValueError(f"max_points must be at least 1, got {max_points}")
        self.entity_id = entity_id
        self.max_points = max_points
        self._samples: deque[Sample] = deque(maxlen=max_points)
        self.heading: Optional[float] = None
        self.speed: Optional[float] = None

    def __len__(self) -> int:
        return len(self._samples)

    def __iter__(self) -> Iterator[Sample]:
        return iter(self._samples)

    @property
    def samples(self) -> list[Sample]:
        return list(self._samples)

    @property
    def newest(self) -> Optional[Sample]:
        return self._samples[-1] if self._samples else None

    def add_point(
        self,
        position: Sequence[float],
        *,
        timestamp: Optional[datetime] = None,
        altitude: Optional[float] = None,
        speed: Optional[float] = None,
        heading: Optional[float] = None,
    ) -> Sample:
        """Append a sample and refresh the derived heading and speed.

        A ``speed`` or ``heading`` left out is filled from the derived value,
        or stays ``None`` when nothing can be derived yet.
        """

        sample = Sample(
            position=(float(position[0]), float(position[1])),
            timestamp=as_utc(timestamp) if timestamp is not None else utcnow(),
            altitude=altitude,
            speed=speed,
            heading=heading,
        )
        self._samples.append(sample)
        self._update_kinematics()

        if speed is None or heading is None:
            sample = replace(
                sample,
                speed=self.speed if speed is None else speed,
                heading=self.heading if heading is None else heading,
            )
            self._samples[-1] = sample
        return sample

    def _update_kinematics(self) -> None:
        segment = self._last_segment()
        if segment is None:
            self.heading = None
            self.speed = None
            return
        if segment.seconds <= 0:
            # out of order or duplicate time: no speed, course unchanged
            self.speed = None
            return
        # a stationary target keeps its previous course
        bearing = segment.bearing
        if bearing is not None:
            self.heading = bearing
        self.speed = segment.distance_km / segment.seconds * 3600.0

    def _last_segment(self) -> Optional[_Segment]:
        if len(self._samples) < 2:
            return None
        return _Segment(self._samples[-2], self._samples[-1])

    def _segments(self) -> list[_Segment]:
        samples = self._samples
        return [_Segment(samples[i - 1], samples[i]) for i in range(1, len(samples))]

    def velocity(self) -> Optional[tuple[float, float]]:
        """Degrees-per-second (dlat, dlon) implied by the last two samples."""

        segment = self._last_segment()
        if segment is None or segment.seconds <= 0:
            return None
        seconds = segment.seconds
        return (
            (segment.end.position[0] - segment.start.position[0]) / seconds,
            (segment.end.position[1] - segment.start.position[1]) / seconds,
        )

    def predict(self, horizon_seconds: float) -> Optional[Prediction]:
        """Extrapolate linearly along the latest velocity.

        Returns ``None`` when fewer than two samples exist or the newest two
        share a timestamp.
        """

        if horizon_seconds < 0:
            raise ValueError("horizon_seconds must not be negative")
        rate = self.velocity()
        if rate is None:
            return None

        last = self._samples[-1]
        return Prediction(
            position=(
                last.position[0] + rate[0] * horizon_seconds,
                last.position[1] + rate[1] * horizon_seconds,
            ),
            timestamp=last.timestamp + timedelta(seconds=horizon_seconds),
            confidence=self.confidence(),
        )

    def confidence(self) -> float:
        """Score in [0.1, 1] that drops as speed and heading become erratic."""

        if len(self._samples) < 3:
            return LOW_CONFIDENCE

        speeds: list[float] = []
        headings: list[float] = []
        for segment in self._segments():
            if segment.seconds <= 0:
                continue
            speeds.append(segment.distance_km / segment.seconds)
            bearing = segment.bearing
            if bearing is None:
                continue
            if headings:
                # unwrap so 359 -> 1 counts as a 2 degree turn
                bearing = headings[-1] + signed_heading_delta(headings[-1], bearing)
            headings.append(bearing)

        score = (
            1.0
            - SPEED_VARIANCE_WEIGHT * variance(speeds)
            - HEADING_VARIANCE_WEIGHT * variance(headings)
        )
        return min(1.0, max(MIN_CONFIDENCE, score))

    def detect_maneuvers(self, threshold_degrees: float = 30.0) -> list[Maneuver]:
        """Flag consecutive course changes of at least ``threshold_degrees``."""

        if threshold_degrees <= 0:
            raise ValueError("threshold_degrees must be positive")

        maneuvers: list[Maneuver] = []
        samples = self._samples
        previous: Optional[float] = None
        for index in range(1, len(samples)):
            bearing = _Segment(samples[index - 1], samples[index]).bearing
            if bearing is None:
                continue
            if previous is not None:
                delta = heading_delta(previous, bearing)
                if delta >= threshold_degrees:
                    sample = samples[index]
                    maneuvers.append(
                        Maneuver(
                            sample_index=index,
                            heading_delta=delta,
                            timestamp=sample.timestamp,
                            position=sample.position,
                            intensity=delta / threshold_degrees,
                        )
                    )
            previous = bearing
        return maneuvers

    def length(self) -> float:
        """Great-circle length in km over the retained samples only."""

        return sum(segment.distance_km for segment in self._segments())

    def average_speed(self) -> Optional[float]:
        """Mean segment speed in km/h, ignoring zero-duration segments."""

        speeds = [
            segment.distance_km / segment.seconds * 3600.0
            for segment in self._segments()
            if segment.seconds > 0
        ]
        if not speeds:
            return None
        return sum(speeds) / len(speeds)

    def smoothed_positions(self, strength: float = 0.5) -> list[tuple[float, float]]:
        """Blend each interior point towards the midpoint of its neighbours."""

        if not 0.0 <= strength <= 1.0:
            raise ValueError("strength must be within [0, 1]")
        positions = [sample.position for sample in self._samples]
        if len(positions) < 3:
            return positions

        smoothed = list(positions)
        for i in range(1, len(positions) - 1):
            prev_lat, prev_lon = positions[i - 1]
            next_lat, next_lon = positions[i + 1]
            lat, lon = positions[i]
            smoothed[i] = (
                lat * (1 - strength) + (prev_lat + next_lat) * strength / 2,
                lon * (1 - strength) + (prev_lon + next_lon) * strength / 2,
            )
        return smoothed

    def statistics(self) -> Optional[dict[str, Any]]:
        if not self._samples:
            return None

        speeds = [s.speed for s in self._samples if s.speed]
        altitudes = [s.altitude for s in self._samples if s.altitude]
        first, last = self._samples[0], self._samples[-1]
        return {
            "point_count": len(self._samples),
            "length_km": self.length(),
            "duration_s": (last.timestamp - first.timestamp).total_seconds(),
            "avg_speed": sum(speeds) / len(speeds) if speeds else 0.0,
            "max_speed": max(speeds, default=0.0),
            "avg_altitude": sum(altitudes) / len(altitudes) if altitudes else 0.0,
            "max_altitude": max(altitudes, default=0.0),
            "start_time": first.timestamp,
            "end_time": last.timestamp,
        }

    def export(self) -> dict[str, Any]:
        """GeoJSON ``Feature`` with a ``LineString`` in [lon, lat] order."""

        return {
            "type": "Feature",
            "geometry": {
                "type": "LineString",
                "coordinates": [[s.position[1], s.position[0]] for s in self._samples],
            },
            "properties": {
                "entity_id": self.entity_id,
                "point_count": len(self._samples),
                "length_km": self.length(),
                "timestamps": [s.timestamp.isoformat() for s in self._samples],
                "altitudes": [s.altitude for s in self._samples],
                "speeds": [s.speed for s in self._samples],
            },
        }

    def clear(self) -> None:
        self._samples.clear()
        self.heading = None
        self.speed = None


__all__ = [
    "DEFAULT_MAX_POINTS",
    "LOW_CONFIDENCE",
    "Maneuver",
    "Prediction",
    "Sample",
    "Trajectory",
]
