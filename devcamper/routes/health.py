"""
DevCamper API — Health Check Route
====================================

What:  GET /health for container health checks and load balancer probes.
How:   Runs SELECT 1 against the database; the service is unhealthy when the
       database is unreachable, since every endpoint depends on it.
"""

import logging
import time

from fastapi import APIRouter, Response
from sqlalchemy import text

from devcamper import __version__
from devcamper.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(response: Response) -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    try:
        from devcamper.database import engine
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        response.status_code = 503
        logger.warning("Health check: database unreachable: %s", str(e))

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
