"""
TabScope Backend — Health Check Route
=======================================

What:  Liveness/readiness probe for Docker and load balancers.
How:   Runs SELECT 1 and counts seeded system defaults. A reachable
       database with zero system tabs still reports healthy; the count is
       there so monitoring can alert on an unseeded deployment.

    healthy    → 200
    unhealthy  → 503 (database unreachable)
"""

import logging
import time

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tabscope import __version__
from tabscope.database import get_db_session
from tabscope.exceptions import DatabaseError
from tabscope.schemas.tab_config import HealthResponse
from tabscope.services.store import SqlAlchemyTabStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/health", response_model=HealthResponse, summary="Service health check")
async def health_check(response: Response, db: AsyncSession = Depends(get_db_session)) -> HealthResponse:
    db_status = "connected"
    overall = "healthy"
    system_tabs = 0

    try:
        await db.execute(text("SELECT 1"))
        system_tabs = await SqlAlchemyTabStore(db).count_system_defaults()
    except (SQLAlchemyError, DatabaseError, OSError) as e:
        db_status = "disconnected"
        overall = "unhealthy"
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        logger.warning("Health check: database unreachable: %s", str(e))

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        system_tabs=system_tabs,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
