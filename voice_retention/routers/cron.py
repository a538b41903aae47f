"""Cron-triggered voice consent retention endpoint.

An external scheduler (e.g. Vercel Cron, Kubernetes CronJob) can trigger
the same run the in-process scheduler performs. Overlapping triggers are
safe: enforcement is idempotent.
"""

import secrets
from datetime import UTC, datetime
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Header, HTTPException, status
from fastapi.responses import JSONResponse

from voice_retention.config import settings
from voice_retention.core.retention import RetentionScanError
from voice_retention.logging_config import get_logger
from voice_retention.schemas.retention_job import RetentionRunResponse
from voice_retention.services.retention_job import run_voice_retention

logger = get_logger(__name__)

router = APIRouter(prefix="/api/cron", tags=["cron"])


async def verify_cron_secret(
    authorization: Annotated[str | None, Header()] = None,
) -> None:
    """Require ``Authorization: Bearer <CRON_SECRET>``.

    Raises:
        HTTPException: 500 if no secret is configured, 401 on mismatch.
    """
    if not settings.cron_secret:
        logger.error("CRON_SECRET not configured")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server configuration error",
        )

    expected = f"Bearer {settings.cron_secret}"
    if authorization is None or not secrets.compare_digest(
        authorization.encode(), expected.encode()
    ):
        logger.warning("Unauthorized voice retention cron attempt")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )


CronAuthorized = Annotated[None, Depends(verify_cron_secret)]


@router.post(
    "/voice-retention",
    response_model=RetentionRunResponse,
    responses={
        200: {"description": "Retention run completed"},
        401: {"description": "Missing or invalid cron secret"},
        500: {"description": "Scan failed or server misconfigured"},
    },
)
async def trigger_voice_retention(_: CronAuthorized) -> Any:
    """Run one voice consent retention enforcement pass.

    Per-record failures are reported in the response body with a 200
    status; only a failed scan aborts the run with a 500.
    """
    logger.info("Voice retention cron triggered")

    try:
        summary = await run_voice_retention()
    except RetentionScanError as e:
        body = RetentionRunResponse(
            success=False,
            timestamp=datetime.now(UTC),
            note=f"Retention scan failed: {e}",
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=body.model_dump(mode="json"),
        )

    return RetentionRunResponse.from_summary(summary)


@router.get("/voice-retention")
async def voice_retention_instructions() -> dict[str, Any]:
    """Describe how to trigger the job manually. Disabled in production."""
    if settings.environment == "production":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not available in production",
        )

    return {
        "message": "Voice retention cron endpoint",
        "usage": "POST with Authorization: Bearer <CRON_SECRET>",
        "schedule": settings.voice_retention_schedule,
        "description": (
            f"Soft-deletes voice consents older than "
            f"{settings.voice_retention_period_years} years (BIPA compliance)"
        ),
        "manual_trigger": (
            'curl -X POST -H "Authorization: Bearer $CRON_SECRET" '
            "http://localhost:8000/api/cron/voice-retention"
        ),
    }
