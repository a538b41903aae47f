"""Voice consent retention service FastAPI application."""

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI

from voice_retention import __version__
from voice_retention.config import settings
from voice_retention.database import close_database
from voice_retention.logging_config import get_logger, setup_logging
from voice_retention.routers import cron, health
from voice_retention.services.scheduler import scheduler_lifespan

setup_logging(
    log_format=settings.log_format,
    log_level=settings.log_level,
    service_name=settings.service_name,
)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Note: Migrations are run by `voice-retention-migrate` before uvicorn starts
    logger.info("Voice retention service started")

    async with scheduler_lifespan():
        yield
        logger.info("Shutting down voice retention service...")

    await close_database()
    logger.info("Voice retention service shutdown complete")


app = FastAPI(
    title="Voice Consent Retention",
    description="Enforces the retention limit on voice-cloning consent records",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(health.router)
app.include_router(cron.router)


@app.get("/")
async def root() -> dict[str, Any]:
    """Root endpoint."""
    return {
        "name": "Voice Consent Retention",
        "version": __version__,
        "docs": "/docs",
    }
