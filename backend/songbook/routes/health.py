"""
Songbook Backend: Health Check Route
====================================

What:  Liveness/readiness probe for load balancers and container health checks.
How:   Runs SELECT 1 on the application's engine. The service is healthy only
       when the database answers.
"""

import logging
import time

from fastapi import APIRouter, Request, Response
from sqlalchemy import text

from songbook import __version__
from songbook.schemas.song import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(request: Request, response: Response) -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    try:
        async with request.app.state.engine.connect() as conn:
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
