"""
Kadzai Backend — Health Check Route
====================================

What:  Liveness/readiness check for Docker and load balancers.
How:   Runs `SELECT 1` against the pool. The service is only useful with a
       database, so an unreachable database reports "unhealthy" with HTTP 503.
       Paystack and SMTP are not contacted; a check every few seconds must not
       spend third-party quota.
"""

import logging
import time

from fastapi import APIRouter, Response
from sqlalchemy import text

from kadzai import __version__
from kadzai import database
from kadzai.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(response: Response) -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    try:
        async with database.engine.connect() as conn:
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
