"""
Skills Platform Backend — Root and Health Routes
==================================================

What:  GET / (service banner and endpoint map) and GET /api/health.
Who:   The hosting platform's health probe, uptime monitors, and humans
       checking a deployment.

Health status levels:
    - OK:        database reachable, and the model reachable or not configured
    - DEGRADED:  database reachable, model unreachable or circuit open
                 (everything except /api/ai/* still works)
    - UNHEALTHY: database unreachable (HTTP 503)
"""

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from skills_platform import __version__
from skills_platform.database import ping_database
from skills_platform.schemas.common import HealthResponse, RootResponse
from skills_platform.services.gemini_service import AI_DISABLED, AI_AVAILABLE, gemini_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()

ENDPOINTS = {
    "health": "/api/health",
    "auth": "/api/auth/*",
    "schools": "/api/schools",
    "tasks": "/api/tasks/*",
    "submissions": "/api/submissions/*",
    "performance": "/api/performance/*",
    "ai": "/api/ai/*",
}


@router.get("/", response_model=RootResponse, summary="Service banner and endpoint map")
async def root() -> RootResponse:
    return RootResponse(
        message="21st Century Skills Platform API",
        version=__version__,
        status="healthy",
        endpoints=ENDPOINTS,
    )


@router.get(
    "/api/health",
    response_model=HealthResponse,
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check():
    """
    Probes the database (SELECT 1) and the model (list_models, or the
    circuit breaker state when it is open). Neither probe spends tokens.
    """
    db_status = "connected"
    try:
        await ping_database()
    except Exception as e:
        db_status = "disconnected"
        logger.warning("Health check: database unreachable: %s", str(e))

    ai_status = await gemini_service.status()

    if db_status != "connected":
        status, message = "UNHEALTHY", "Database is unreachable"
    elif ai_status not in (AI_AVAILABLE, AI_DISABLED):
        status, message = "DEGRADED", "AI service is unavailable"
    else:
        status, message = "OK", "Server is running"

    health = HealthResponse(
        status=status,
        message=message,
        timestamp=datetime.now(timezone.utc),
        uptime_seconds=round(time.time() - _start_time, 2),
        version=__version__,
        database=db_status,
        ai=ai_status,
    )
    if status == "UNHEALTHY":
        return JSONResponse(status_code=503, content=health.model_dump(mode="json"))
    return health
