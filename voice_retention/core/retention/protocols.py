"""Collaborator interfaces of the retention core.

Persistence, downstream artifact deletion and operator notification are
implemented outside the core (see ``voice_retention.services``); the core
depends only on these structural protocols.
"""

import uuid
from datetime import datetime
from typing import Protocol

from voice_retention.core.retention.models import (
    ArtifactDeletionResult,
    AuditLogEntry,
    ConsentRecord,
    OperatorAlert,
)


class DueRecordSource(Protocol):
    """Read side of the consent store used by the scanner."""

    async def find_due_records(self, now: datetime) -> list[ConsentRecord]:
        """Records with ``deleted_at IS NULL AND retention_deadline <= now``."""
        ...


class ConsentStore(DueRecordSource, Protocol):
    """Persisted consent records."""

    async def mark_deleted(self, consent_id: uuid.UUID, deleted_at: datetime) -> bool:
        """Set ``deleted_at`` if still unset.

        Returns True when the record was already deleted, in which case
        nothing is written.
        """
        ...


class AuditLog(Protocol):
    """Append-only audit trail. Entries cannot be read back, updated or removed."""

    async def append(self, entry: AuditLogEntry) -> None: ...


class DeletionGateway(Protocol):
    """Purges artifacts (voice models, files) that depend on a subject's consent."""

    async def delete_dependent_artifacts(
        self, subject_id: uuid.UUID
    ) -> ArtifactDeletionResult: ...


class UnitOfWork(Protocol):
    """Makes the soft-delete and its audit entry durable together."""

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...


class OperatorNotifier(Protocol):
    """Delivers an operator alert (e-mail, paging, chat)."""

    async def notify(self, alert: OperatorAlert) -> None: ...

