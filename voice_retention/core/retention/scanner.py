"""Selection of consent records whose retention window has elapsed."""

from datetime import datetime

from voice_retention.core.retention.models import ConsentRecord
from voice_retention.core.retention.protocols import DueRecordSource
from voice_retention.logging_config import get_logger

logger = get_logger(__name__)


class RetentionScanError(Exception):
    """The due-record query failed; the whole run must abort."""


class RetentionScanner:
    """Read-only query for records due for enforcement.

    Never mutates state, so it is safe to call repeatedly and from
    dry-run tooling.
    """

    def __init__(self, store: DueRecordSource):
        self._store = store

    async def find_due_records(self, now: datetime) -> list[ConsentRecord]:
        """Return records with no ``deleted_at`` and ``retention_deadline <= now``.

        Oldest deadline first, so a time-boxed run handles the most overdue
        records before the rest.

        Args:
            now: Timezone-aware evaluation instant.

        Returns:
            Due records sorted by retention deadline ascending.

        Raises:
            ValueError: ``now`` is naive.
            RetentionScanError: The store query failed.
        """
        if now.tzinfo is None or now.utcoffset() is None:
            raise ValueError("now must be timezone-aware")

        try:
            candidates = await self._store.find_due_records(now)
        except Exception as e:
            logger.error(
                "Consent retention scan failed",
                now=now.isoformat(),
                error=str(e),
            )
            raise RetentionScanError(f"Failed to query due consent records: {e}") from e

        # The store filters in SQL; re-check here so a faulty query can
        # never delete a record early.
        due = [record for record in candidates if record.is_due(now)]
        if len(due) != len(candidates):
            logger.warning(
                "Store returned consent records that are not due",
                returned=len(candidates),
                due=len(due),
            )

        due.sort(key=lambda record: record.retention_deadline)

        logger.info(
            "Found consent records due for retention enforcement",
            record_count=len(due),
            now=now.isoformat(),
        )
        return due
