"""
Harvous Backend - Health Check Route
=====================================

What:  GET /health for container probes and uptime monitoring.
How:   SELECT 1 against the database; the verse API is reported from its
       circuit breaker state without calling Bible.org.

Status levels:
    healthy   database reachable, verse API circuit closed
    degraded  database reachable, verse API circuit open or recovering
              (notes work, verse text does not)
    unhealthy database unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Response
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from harvous import __version__
from harvous.database import engine
from harvous.schemas.common import HealthResponse
from harvous.services.bible_service import bible_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


async def check_database() -> str:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Health check: database unreachable: %s", str(e))
        return "disconnected"
    return "connected"


@router.get("/health", response_model=HealthResponse, summary="Service health check")
async def health_check(response: Response) -> HealthResponse:
    database = await check_database()
    bible_api = await bible_service.health_check()

    if database != "connected":
        overall = "unhealthy"
        response.status_code = 503
    elif bible_api != "available":
        overall = "degraded"
    else:
        overall = "healthy"

    return HealthResponse(
        status=overall,
        version=__version__,
        database=database,
        bible_api=bible_api,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
