"""Database migration utilities."""

from pathlib import Path

from alembic import command
from alembic.config import Config
from alembic.script import ScriptDirectory

from voice_retention.config import settings
from voice_retention.logging_config import get_logger, setup_logging

logger = get_logger(__name__)


def get_alembic_config() -> Config:
    """Get Alembic configuration from the repository root."""
    project_root = Path(__file__).parent.parent.parent
    alembic_ini = project_root / "alembic.ini"

    if not alembic_ini.exists():
        raise FileNotFoundError(f"alembic.ini not found at {alembic_ini}")

    config = Config(str(alembic_ini))
    config.set_main_option("script_location", str(project_root / "migrations"))

    return config


def run_migrations() -> None:
    """
    Run all pending database migrations synchronously.

    Alembic's env.py drives the async engine itself. Intended to run
    before the app starts so the schema, including the audit log
    write-once trigger, is in place.
    """
    logger.info("Running database migrations...")

    try:
        command.upgrade(get_alembic_config(), "head")
        logger.info("Database migrations completed successfully")
    except Exception as e:
        logger.error("Database migration failed", error=str(e))
        raise


def get_head_revision() -> str | None:
    """Get the newest migration revision shipped with the code."""
    script = ScriptDirectory.from_config(get_alembic_config())
    return script.get_current_head()


def main() -> None:
    """Console entry point: apply pending migrations."""
    setup_logging(
        log_format=settings.log_format,
        log_level=settings.log_level,
        service_name=settings.service_name,
    )
    run_migrations()
