from __future__ import annotations

import contextlib
import logging
import time

from fastapi import FastAPI, Request

from skytrack.api import api_router
from skytrack.config import settings
from skytrack.services.runtime import TrackingRuntime

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger("skytrack")


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the tracking runtime and stop its periodic tasks on shutdown."""

    runtime = getattr(app.state, "runtime", None) or TrackingRuntime(settings)
    app.state.runtime = runtime
    runtime.start()
    logger.info("Tracking runtime started with %s periodic tasks", len(runtime.tasks))

    try:
        yield
    finally:
        await runtime.aclose()
        logger.info("Tracking runtime stopped")


app = FastAPI(title="SkyTrack Backend", lifespan=lifespan)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log basic request information for observability."""

    start_time = time.time()
    response = await call_next(request)
    duration_ms = (time.time() - start_time) * 1000
    logger.info(
        "HTTP %s %s -> %s (%.2f ms)",
        request.method,
        request.url.path,
        response.status_code,
        duration_ms,
    )
    return response


app.include_router(api_router)


@app.get("/", summary="Root")
def read_root() -> dict[str, str]:
    """Basic root endpoint for quick verification."""

    return {"message": "SkyTrack backend is running"}
