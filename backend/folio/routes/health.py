"""
Folio Backend — Health Check Route
====================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Checks the database and the object storage backend.

Status levels:
    - healthy:   database and storage reachable
    - degraded:  storage unreachable (reflections still work, albums do not)
    - unhealthy: database unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from folio import __version__
from folio.database import engine
from folio.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(request: Request):
    """
    Run `SELECT 1` and the storage backend's own probe.

    Both checks are cheap enough to run every few seconds.
    """
    db_status = "connected"
    storage_status = "available"
    overall = "healthy"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    storage = getattr(request.app.state, "storage", None)
    try:
        available = storage is not None and await storage.health_check()
    except Exception as e:
        available = False
        logger.warning("Health check: storage probe failed: %s", str(e))
    if not available:
        storage_status = "unavailable"
        overall = "degraded" if overall != "unhealthy" else overall

    body = HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        storage=storage_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    if overall == "unhealthy":
        return JSONResponse(status_code=503, content=body.model_dump())
    return body
