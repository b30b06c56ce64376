"""Snapshot ingestion and entity endpoints."""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response, status

from skytrack.api.dependencies import get_registry
from skytrack.domain.errors import MalformedRecordError
from skytrack.models.entities import TrackedEntity
from skytrack.models.responses import ReconcileResponse, RecordErrorModel
from skytrack.services.registry import EntityRegistry

router = APIRouter(prefix="/api/v1", tags=["entities"])

logger = logging.getLogger("skytrack.api.entities")


@router.post(
    "/snapshots",
    response_model=ReconcileResponse,
    summary="Reconcile a full snapshot of live entities",
)
async def reconcile_snapshot(
    records: list[dict[str, Any]] = Body(..., description="Every currently live entity"),
    registry: EntityRegistry = Depends(get_registry),
) -> ReconcileResponse:
    """Apply a snapshot; malformed records are reported, not fatal."""

    result = registry.reconcile(records)
    logger.info("Snapshot reconciled: %s", result.counts())
    return ReconcileResponse(
        added=result.added,
        updated=result.updated,
        removed=result.removed,
        errors=[
            RecordErrorModel(index=e.index, record_id=e.record_id, reason=e.reason)
            for e in result.errors
        ],
    )


@router.post("/entities", response_model=TrackedEntity, summary="Insert or merge one entity")
async def upsert_entity(
    record: dict[str, Any] = Body(...),
    registry: EntityRegistry = Depends(get_registry),
) -> TrackedEntity:
    try:
        return registry.upsert(record)
    except MalformedRecordError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.get("/entities", response_model=list[TrackedEntity], summary="List entities")
async def list_entities(
    classification: Optional[str] = Query(default=None),
    region: Optional[str] = Query(default=None),
    entity_status: Optional[str] = Query(default=None, alias="status"),
    registry: EntityRegistry = Depends(get_registry),
) -> list[TrackedEntity]:
    return registry.query(
        classification=classification, region=region, status=entity_status
    )


@router.get("/entities/{entity_id}", response_model=TrackedEntity, summary="Get one entity")
async def get_entity(
    entity_id: str, registry: EntityRegistry = Depends(get_registry)
) -> TrackedEntity:
    entity = registry.get(entity_id)
    if entity is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Entity not found")
    return entity


@router.delete(
    "/entities/{entity_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove an entity and its trajectory",
)
async def delete_entity(
    entity_id: str, registry: EntityRegistry = Depends(get_registry)
) -> Response:
    if not registry.remove(entity_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Entity not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
