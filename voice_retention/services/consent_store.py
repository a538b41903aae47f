"""SQL-backed consent store for the retention engine."""

import uuid
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from voice_retention.core.retention.models import ConsentRecord
from voice_retention.logging_config import get_logger
from voice_retention.models.voice_consent import VoiceConsent

logger = get_logger(__name__)


class SqlConsentStore:
    """Reads due consents and soft-deletes them within a caller-owned session.

    Never commits: the enforcer's unit of work commits the soft-delete
    together with its audit entry.
    """

    def __init__(self, db: AsyncSession, limit: int | None = None):
        self._db = db
        self._limit = limit or None

    async def find_due_records(self, now: datetime) -> list[ConsentRecord]:
        """Consents with no ``deleted_at`` whose deadline is at or before ``now``.

        Ordered by deadline so the most overdue records come first; when a
        limit is configured the remainder is picked up by the next run.
        """
        query = (
            select(VoiceConsent)
            .where(
                VoiceConsent.deleted_at.is_(None),
                VoiceConsent.retention_deadline <= now,
            )
            .order_by(VoiceConsent.retention_deadline.asc(), VoiceConsent.id.asc())
        )
        if self._limit is not None:
            query = query.limit(self._limit)

        result = await self._db.execute(query)
        return [consent.to_record() for consent in result.scalars().all()]

    async def mark_deleted(self, consent_id: uuid.UUID, deleted_at: datetime) -> bool:
        """Set ``deleted_at`` only if it is still NULL.

        Returns:
            True if the consent was already deleted (or no longer exists),
            False if this call performed the soft-delete.
        """
        result = await self._db.execute(
            update(VoiceConsent)
            .where(
                VoiceConsent.id == consent_id,
                VoiceConsent.deleted_at.is_(None),
            )
            .values(deleted_at=deleted_at)
            .execution_options(synchronize_session=False)
        )

        if result.rowcount == 0:
            exists = await self._db.scalar(
                select(VoiceConsent.id).where(VoiceConsent.id == consent_id)
            )
            if exists is None:
                logger.warning(
                    "Consent record vanished before soft-delete",
                    consent_id=str(consent_id),
                )
            return True

        await self._db.flush()
        return False
