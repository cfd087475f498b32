"""
Inkpost API: Health Check Route
=================================

What:  GET /health for load balancers and uptime monitors.
How:   Runs `SELECT 1` against the database and asks the configured mail
       sender whether its transport is reachable.

Status levels:
    healthy    database and mail transport OK                  → 200
    degraded   database OK, mail transport down                → 200
               (requests still work; welcome emails wait in the queue)
    unhealthy  database unreachable                            → 503
"""

import logging
import time

from fastapi import APIRouter, Response, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app import __version__
from app.database import engine
from app.schemas.common import HealthResponse
from app.services.mailers import get_mail_sender

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/health", response_model=HealthResponse, summary="Service health check")
async def health_check(response: Response) -> HealthResponse:
    db_status = "connected"
    mail_status = "available"
    overall = "healthy"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    if not await get_mail_sender().health_check():
        mail_status = "unavailable"
        if overall == "healthy":
            overall = "degraded"

    if overall == "unhealthy":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        mail=mail_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
