"""Voice consent retention job.

Wires the retention core to the database, the configured deletion
gateway and the operator notifier. ``run_voice_retention`` is the single
trigger used by both the scheduler and the cron endpoint; callers are
already authorized by the time it runs.
"""

import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from voice_retention.config import settings
from voice_retention.core.retention import (
    ConsentRecord,
    DeletionGateway,
    EnforcerFactory,
    JobOrchestrator,
    JobSummary,
    OperatorNotifier,
    RetentionEnforcer,
    RetentionScanner,
)
from voice_retention.database import get_session_maker
from voice_retention.logging_config import get_logger, job_run_id_ctx
from voice_retention.services.audit_log import SqlAuditLog
from voice_retention.services.consent_store import SqlConsentStore
from voice_retention.services.deletion_gateway import get_deletion_gateway
from voice_retention.services.operator_notifier import LoggingOperatorNotifier

logger = get_logger(__name__)


class SqlUnitOfWork:
    """Commits or rolls back one enforcement's session."""

    def __init__(self, db: AsyncSession):
        self._db = db

    async def commit(self) -> None:
        await self._db.commit()

    async def rollback(self) -> None:
        await self._db.rollback()


class SessionScanSource:
    """Runs the due-record query in a short-lived session of its own.

    The session is closed before enforcement starts, so no per-record work
    shares the scan's transaction.
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        limit: int | None = None,
    ):
        self._session_maker = session_maker
        self._limit = limit

    async def find_due_records(self, now: datetime) -> list[ConsentRecord]:
        async with self._session_maker() as db:
            return await SqlConsentStore(db, limit=self._limit).find_due_records(now)


def session_enforcer_factory(
    session_maker: async_sessionmaker[AsyncSession],
    gateway: DeletionGateway,
) -> EnforcerFactory:
    """Return a factory opening a fresh session per record to isolate errors."""

    @asynccontextmanager
    async def open_enforcer() -> AsyncGenerator[RetentionEnforcer, None]:
        async with session_maker() as db:
            yield RetentionEnforcer(
                store=SqlConsentStore(db),
                audit_log=SqlAuditLog(db),
                gateway=gateway,
                unit_of_work=SqlUnitOfWork(db),
            )

    return open_enforcer


async def run_voice_retention(
    now: datetime | None = None,
    *,
    session_maker: async_sessionmaker[AsyncSession] | None = None,
    gateway: DeletionGateway | None = None,
    notifier: OperatorNotifier | None = None,
) -> JobSummary:
    """Run one retention enforcement pass.

    Args:
        now: Evaluation instant; defaults to the current UTC time. This is
            the only place the engine reads the clock.
        session_maker: Session factory; defaults to the application's.
        gateway: Dependent artifact gateway; defaults to the configured one.
        notifier: Operator notifier; defaults to structured-log alerts.

    Returns:
        The run's JobSummary.

    Raises:
        RetentionScanError: The due-record query failed; nothing was enforced.
    """
    now = now or datetime.now(UTC)
    session_maker = session_maker or get_session_maker()
    gateway = gateway or get_deletion_gateway()
    notifier = notifier or LoggingOperatorNotifier()

    token = job_run_id_ctx.set(uuid.uuid4().hex)
    try:
        logger.info("Starting voice consent retention enforcement", now=now.isoformat())

        orchestrator = JobOrchestrator(
            scanner=RetentionScanner(
                SessionScanSource(
                    session_maker, limit=settings.voice_retention_batch_size or None
                )
            ),
            enforcer_factory=session_enforcer_factory(session_maker, gateway),
            notifier=notifier,
            max_concurrency=settings.voice_retention_max_concurrency,
        )
        return await orchestrator.run(now)
    finally:
        job_run_id_ctx.reset(token)
