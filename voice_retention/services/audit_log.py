"""Voice consent audit logging service.

Append-only writer for the consent audit trail. Unlike request-level
security logging, a failed write here must propagate: the retention
enforcer rolls back the soft-delete when its audit entry cannot be
stored, so the record is retried on the next run.
"""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from voice_retention.core.retention.enums import AuditAction
from voice_retention.core.retention.models import AuditLogEntry
from voice_retention.logging_config import get_logger
from voice_retention.models.voice_consent_audit_log import VoiceConsentAuditLog

logger = get_logger(__name__)


class SqlAuditLog:
    """Writes audit entries into the caller's session without committing."""

    def __init__(self, db: AsyncSession):
        self._db = db

    async def append(self, entry: AuditLogEntry) -> None:
        row = VoiceConsentAuditLog.from_entry(entry)
        self._db.add(row)
        try:
            await self._db.flush()
        except Exception:
            logger.error(
                "Failed to write consent audit log entry",
                consent_id=str(entry.consent_id),
                action=entry.action,
            )
            raise

        logger.debug(
            "Consent audit log entry written",
            entry_id=str(entry.id),
            consent_id=str(entry.consent_id),
            action=entry.action,
        )


async def log_consent_action(
    db: AsyncSession,
    consent_id: uuid.UUID,
    action: AuditAction,
    performed_at: datetime,
    performed_by: str | None = None,
    details: dict[str, Any] | None = None,
    ip_address: str | None = None,
) -> AuditLogEntry:
    """Append an audit entry for an action outside the retention job.

    Used by the consent lifecycle (created, viewed, downloaded, revoked)
    so every entry goes through the same append-only path.
    """
    entry = AuditLogEntry(
        consent_id=consent_id,
        action=action,
        performed_by=performed_by,
        performed_at=performed_at,
        ip_address=ip_address,
        details=details or {},
    )
    await SqlAuditLog(db).append(entry)
    return entry
