"""Health check endpoints for container orchestration."""

from typing import Any

from fastapi import APIRouter, Response, status
from fastapi.responses import JSONResponse

from voice_retention.database import check_database_connection
from voice_retention.services.scheduler import get_scheduler

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=None)
async def health_check() -> Response:
    """
    Health check with database and scheduler status.

    Returns 200 {"status": "healthy", ...} when the database answers,
    503 {"status": "degraded", ...} otherwise. The scheduler state is
    informational only.
    """
    db_connected = await check_database_connection()
    scheduler = get_scheduler()
    content = {
        "status": "healthy" if db_connected else "degraded",
        "database": "connected" if db_connected else "disconnected",
        "scheduler": "running" if scheduler is not None else "stopped",
    }

    return JSONResponse(
        status_code=(
            status.HTTP_200_OK if db_connected else status.HTTP_503_SERVICE_UNAVAILABLE
        ),
        content=content,
    )


@router.get("/health/live")
async def liveness() -> dict[str, Any]:
    """
    Kubernetes liveness check.

    Succeeds while the process is running; does not touch the database.
    """
    return {"status": "alive"}


@router.get("/health/ready", response_model=None)
async def readiness() -> Response:
    """
    Kubernetes readiness check.

    Ready only when the database is reachable, since a retention run
    cannot scan without it.
    """
    if await check_database_connection():
        return JSONResponse(
            status_code=status.HTTP_200_OK,
            content={"status": "ready", "database": "connected"},
        )
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "not_ready", "database": "disconnected"},
    )
