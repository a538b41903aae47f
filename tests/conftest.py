"""Pytest configuration and shared fixtures.

Core tests run against in-memory collaborators; SQL tests use an
aiosqlite in-memory database shared through a StaticPool so every
session in a test sees the same data.
"""

import os
import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Set testing mode BEFORE importing settings to use NullPool
os.environ["TESTING"] = "true"
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

from voice_retention.config import settings

settings.testing = True

from voice_retention.core.retention import (
    ArtifactDeletionResult,
    ArtifactFailure,
    AuditLogEntry,
    ConsentRecord,
    DeletedArtifact,
    RetentionEnforcer,
    compute_retention_deadline,
)
from voice_retention.models import Base


class InMemoryBackend:
    """Committed state shared by the in-memory store, audit log and unit of work."""

    def __init__(self):
        self.consents: dict[uuid.UUID, ConsentRecord] = {}
        self.audit_entries: list[AuditLogEntry] = []
        self.scan_error: Exception | None = None
        self.mark_errors: dict[uuid.UUID, Exception] = {}
        self.audit_errors: dict[uuid.UUID, Exception] = {}
        self.commits = 0
        self.rollbacks = 0

    def add(self, record: ConsentRecord) -> ConsentRecord:
        self.consents[record.id] = record
        return record

    def entries_for(self, consent_id: uuid.UUID) -> list[AuditLogEntry]:
        return [e for e in self.audit_entries if e.consent_id == consent_id]

    def reader(self) -> "InMemoryConsentStore":
        return InMemoryConsentStore(self)

    def unit_of_work(self) -> "InMemoryUnitOfWork":
        return InMemoryUnitOfWork(self)

    def enforcer(self, gateway) -> tuple[RetentionEnforcer, "InMemoryUnitOfWork"]:
        uow = self.unit_of_work()
        enforcer = RetentionEnforcer(
            store=InMemoryConsentStore(self, uow),
            audit_log=InMemoryAuditLog(self, uow),
            gateway=gateway,
            unit_of_work=uow,
        )
        return enforcer, uow

    def enforcer_factory(self, gateway):
        @asynccontextmanager
        async def open_enforcer():
            enforcer, _ = self.enforcer(gateway)
            yield enforcer

        return open_enforcer


class InMemoryUnitOfWork:
    def __init__(self, backend: InMemoryBackend):
        self._backend = backend
        self.deletions: dict[uuid.UUID, datetime] = {}
        self.entries: list[AuditLogEntry] = []

    async def commit(self) -> None:
        for consent_id, deleted_at in self.deletions.items():
            record = self._backend.consents[consent_id]
            self._backend.consents[consent_id] = record.model_copy(
                update={"deleted_at": deleted_at}
            )
        self._backend.audit_entries.extend(self.entries)
        self._backend.commits += 1
        self.deletions.clear()
        self.entries.clear()

    async def rollback(self) -> None:
        self._backend.rollbacks += 1
        self.deletions.clear()
        self.entries.clear()


class InMemoryConsentStore:
    def __init__(self, backend: InMemoryBackend, uow: InMemoryUnitOfWork | None = None):
        self._backend = backend
        self._uow = uow

    async def find_due_records(self, now: datetime) -> list[ConsentRecord]:
        if self._backend.scan_error is not None:
            raise self._backend.scan_error
        return [
            record
            for record in self._backend.consents.values()
            if record.deleted_at is None and record.retention_deadline <= now
        ]

    async def mark_deleted(self, consent_id: uuid.UUID, deleted_at: datetime) -> bool:
        if consent_id in self._backend.mark_errors:
            raise self._backend.mark_errors[consent_id]
        if self._backend.consents[consent_id].deleted_at is not None:
            return True
        self._uow.deletions[consent_id] = deleted_at
        return False


class InMemoryAuditLog:
    def __init__(self, backend: InMemoryBackend, uow: InMemoryUnitOfWork):
        self._backend = backend
        self._uow = uow

    async def append(self, entry: AuditLogEntry) -> None:
        if entry.consent_id in self._backend.audit_errors:
            raise self._backend.audit_errors[entry.consent_id]
        self._uow.entries.append(entry)


class FakeDeletionGateway:
    """Records calls; returns a fixed result or raises."""

    def __init__(self):
        self.calls: list[uuid.UUID] = []
        self.deleted_count = 1
        self.failures: dict[uuid.UUID, list[ArtifactFailure]] = {}
        self.deleted: dict[uuid.UUID, list[DeletedArtifact]] = {}
        self.error: Exception | None = None

    async def delete_dependent_artifacts(
        self, subject_id: uuid.UUID
    ) -> ArtifactDeletionResult:
        self.calls.append(subject_id)
        if self.error is not None:
            raise self.error
        deleted = self.deleted.get(subject_id, [])
        return ArtifactDeletionResult(
            deleted_count=max(self.deleted_count, len(deleted)),
            deleted=deleted,
            failures=self.failures.get(subject_id, []),
        )


class RecordingNotifier:
    def __init__(self):
        self.alerts = []

    async def notify(self, alert) -> None:
        self.alerts.append(alert)


def make_record(
    agreed_at: datetime = datetime(2022, 1, 1, tzinfo=UTC),
    deleted_at: datetime | None = None,
    user_id: uuid.UUID | None = None,
) -> ConsentRecord:
    return ConsentRecord(
        id=uuid.uuid4(),
        user_id=user_id or uuid.uuid4(),
        agreed_at=agreed_at,
        retention_deadline=compute_retention_deadline(agreed_at),
        deleted_at=deleted_at,
    )


@pytest.fixture
def backend() -> InMemoryBackend:
    return InMemoryBackend()


@pytest.fixture
def gateway() -> FakeDeletionGateway:
    return FakeDeletionGateway()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def record_factory():
    """Build a ConsentRecord; the deadline is computed from ``agreed_at``."""
    return make_record


@pytest_asyncio.fixture
async def sqlite_session_maker() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Session factory over a fresh in-memory SQLite schema."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def sqlite_session(sqlite_session_maker) -> AsyncGenerator[AsyncSession, None]:
    async with sqlite_session_maker() as session:
        yield session


@pytest.fixture
def consent_store(backend) -> InMemoryConsentStore:
    """Read side of the in-memory backend."""
    return backend.reader()
