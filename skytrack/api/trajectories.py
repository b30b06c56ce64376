"""Trajectory, prediction and statistics endpoints."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from skytrack.api.dependencies import get_registry
from skytrack.config import settings
from skytrack.models.responses import ManeuverModel, PredictionResponse, StatisticsResponse
from skytrack.services.registry import EntityRegistry
from skytrack.services.trajectory import Trajectory

router = APIRouter(prefix="/api/v1", tags=["trajectories"])


def _require_entity(registry: EntityRegistry, entity_id: str) -> None:
    if entity_id not in registry:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Entity not found")


@router.get(
    "/entities/{entity_id}/trajectory",
    summary="Trajectory as a GeoJSON feature; empty once swept as stale",
)
async def get_trajectory(
    entity_id: str, registry: EntityRegistry = Depends(get_registry)
) -> dict[str, Any]:
    _require_entity(registry, entity_id)
    trajectory = registry.trajectory(entity_id)
    if trajectory is None:
        # a live entity that has not moved within the max age has no history
        return Trajectory(entity_id).export()
    return trajectory.export()


@router.get(
    "/entities/{entity_id}/prediction",
    response_model=Optional[PredictionResponse],
    summary="Dead-reckoned position; null while history is insufficient",
)
async def get_prediction(
    entity_id: str,
    horizon_seconds: float = Query(
        default=settings.prediction_horizon_seconds, ge=0, le=3600
    ),
    registry: EntityRegistry = Depends(get_registry),
) -> Optional[PredictionResponse]:
    _require_entity(registry, entity_id)
    prediction = registry.predict(entity_id, horizon_seconds)
    if prediction is None:
        return None
    return PredictionResponse(
        entity_id=entity_id,
        horizon_seconds=horizon_seconds,
        position=prediction.position,
        timestamp=prediction.timestamp,
        confidence=prediction.confidence,
    )


@router.get(
    "/entities/{entity_id}/maneuvers",
    response_model=list[ManeuverModel],
    summary="Abrupt course changes in the retained history",
)
async def get_maneuvers(
    entity_id: str,
    threshold_degrees: float = Query(
        default=settings.maneuver_threshold_deg, gt=0, le=180
    ),
    registry: EntityRegistry = Depends(get_registry),
) -> list[ManeuverModel]:
    maneuvers = registry.detect_maneuvers(entity_id, threshold_degrees)
    if maneuvers is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Entity not found")
    return [
        ManeuverModel(
            sample_index=m.sample_index,
            heading_delta=m.heading_delta,
            timestamp=m.timestamp,
            position=m.position,
            intensity=m.intensity,
        )
        for m in maneuvers
    ]


@router.get("/trajectories", summary="All trajectories as a GeoJSON feature collection")
async def export_trajectories(
    registry: EntityRegistry = Depends(get_registry),
) -> dict[str, Any]:
    return registry.trajectories.export_all()


@router.get("/statistics", response_model=StatisticsResponse, summary="Tracking counters")
async def get_statistics(
    registry: EntityRegistry = Depends(get_registry),
) -> StatisticsResponse:
    stats = registry.statistics()
    trajectories = stats["trajectories"]
    return StatisticsResponse(
        entity_count=stats["entity_count"],
        active_count=stats["active_count"],
        by_classification=stats["by_classification"],
        trajectory_count=trajectories["count"],
        total_points=trajectories["total_points"],
        total_length_km=trajectories["total_length_km"],
    )
