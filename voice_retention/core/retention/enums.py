"""Voice consent retention enums.

Closed vocabularies for the retention subsystem. Audit actions are
persisted verbatim, so existing member values must never change.
"""

from enum import StrEnum, auto


class ConsentStatus(StrEnum):
    """Lifecycle status of a consent record.

    Always derived from ``deleted_at``; never stored independently.
    Expiry is not a status, it is the predicate ``now >= retention_deadline``.
    """

    active = auto()
    deleted = auto()


class AuditAction(StrEnum):
    """Actions recorded in the voice consent audit log.

    ``auto_deleted_retention`` and ``voice_profile_deleted`` are written by
    the retention engine; the rest come from the consent-collection flow.
    """

    created = auto()
    viewed = auto()
    downloaded = auto()
    revoked = auto()
    auto_deleted_retention = auto()
    voice_profile_deleted = auto()


class RecordState(StrEnum):
    """Terminal state of one record within a job run."""

    succeeded = auto()
    failed = auto()


class JobPhase(StrEnum):
    """Phase of a retention job run."""

    idle = auto()
    scanning = auto()
    enforcing = auto()
    summarizing = auto()
