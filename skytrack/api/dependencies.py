"""FastAPI dependencies shared by the routers."""

from __future__ import annotations

from fastapi import Request

from skytrack.services.registry import EntityRegistry


def get_registry(request: Request) -> EntityRegistry:
    """Return the registry owned by the application's tracking runtime."""

    return request.app.state.runtime.registry
