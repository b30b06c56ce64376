"""API routers for the SkyTrack backend."""

from fastapi import APIRouter

from .entities import router as entities_router
from .health import router as health_router
from .trajectories import router as trajectories_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(entities_router)
api_router.include_router(trajectories_router)

__all__ = ["api_router"]
