"""Background job scheduler.

APScheduler-based scheduler that triggers voice consent retention
enforcement once a day. Overlapping triggers (a manual cron call during
the scheduled window) are safe because enforcement is idempotent;
``max_instances=1`` only keeps the scheduler itself from stacking runs.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from voice_retention.config import settings
from voice_retention.core.retention import RetentionScanError
from voice_retention.logging_config import get_logger
from voice_retention.services.retention_job import run_voice_retention

logger = get_logger(__name__)

# Global scheduler instance
scheduler: AsyncIOScheduler | None = None


async def enforce_voice_retention() -> None:
    """Scheduled entry point for voice consent retention enforcement.

    Runs daily and soft-deletes every consent whose retention deadline
    has passed. A scan failure is logged; the next scheduled run starts
    over from scratch.
    """
    try:
        summary = await run_voice_retention()
    except RetentionScanError as e:
        logger.error("Scheduled voice retention enforcement aborted", error=str(e))
        return
    except Exception as e:
        logger.error("Unexpected error in scheduled voice retention", error=str(e))
        return

    logger.info(
        "Scheduled voice retention enforcement finished",
        records_found=summary.records_found,
        records_deleted=summary.records_deleted,
        requires_attention=summary.requires_attention,
    )


def start_scheduler() -> AsyncIOScheduler:
    """Start the background job scheduler.

    Returns:
        The started scheduler instance
    """
    global scheduler

    if scheduler is not None:
        logger.warning("Scheduler already running")
        return scheduler

    scheduler = AsyncIOScheduler(timezone="UTC")

    if settings.voice_retention_enabled:
        scheduler.add_job(
            enforce_voice_retention,
            trigger=CronTrigger.from_crontab(
                settings.voice_retention_schedule, timezone="UTC"
            ),
            id="voice_retention",
            name="Voice Consent Retention Enforcement",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        logger.info(
            "Scheduled voice retention enforcement job",
            schedule=settings.voice_retention_schedule,
        )

    scheduler.start()
    logger.info("Background scheduler started")

    return scheduler


def stop_scheduler() -> None:
    """Stop the background job scheduler."""
    global scheduler

    if scheduler is not None:
        scheduler.shutdown(wait=False)
        scheduler = None
        logger.info("Background scheduler stopped")


def get_scheduler() -> AsyncIOScheduler | None:
    """Get the current scheduler instance, or None if not started."""
    return scheduler


@asynccontextmanager
async def scheduler_lifespan() -> AsyncGenerator[None, None]:
    """Async context manager for scheduler lifecycle.

    Use this in FastAPI lifespan to manage scheduler start/stop.
    """
    start_scheduler()
    try:
        yield
    finally:
        stop_scheduler()
