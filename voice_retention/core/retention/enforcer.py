"""Per-record retention enforcement.

Soft-deletes one expired consent record, asks the deletion gateway to
purge the subject's dependent artifacts, and appends the
``auto_deleted_retention`` audit entry. Every failure is returned as an
outcome value; nothing raises past ``enforce`` so sibling records in the
same run are never affected.

Order of operations for a record that is still active:

1. Cascade to the deletion gateway (best effort, per-artifact isolated)
2. Conditionally set ``deleted_at`` (only if still unset)
3. Append one ``voice_profile_deleted`` entry per artifact the gateway
   named, then exactly one ``auto_deleted_retention`` entry
4. Commit steps 2 and 3 together

A crash before step 4 leaves ``deleted_at`` unset, so the scanner selects
the record again on the next run and the cascade is simply repeated.
"""

from datetime import datetime

from voice_retention.core.retention.constants import SYSTEM_ACTOR
from voice_retention.core.retention.enums import AuditAction
from voice_retention.core.retention.models import (
    ArtifactDeletionResult,
    ArtifactFailure,
    AuditLogEntry,
    ConsentRecord,
    DeletedArtifact,
    EnforcementFailure,
    EnforcementOutcome,
    EnforcementSuccess,
    ProfileDeletionDetails,
    RetentionDeletionDetails,
)
from voice_retention.core.retention.protocols import (
    AuditLog,
    ConsentStore,
    DeletionGateway,
    UnitOfWork,
)
from voice_retention.logging_config import get_logger

logger = get_logger(__name__)


def _describe(error: Exception) -> str:
    return str(error) or type(error).__name__


class RetentionEnforcer:
    """Enforces the retention deadline on a single consent record.

    Bound to one unit of work; create a new enforcer per record.
    """

    def __init__(
        self,
        store: ConsentStore,
        audit_log: AuditLog,
        gateway: DeletionGateway,
        unit_of_work: UnitOfWork,
    ):
        self._store = store
        self._audit_log = audit_log
        self._gateway = gateway
        self._unit_of_work = unit_of_work

    async def enforce(self, record: ConsentRecord, now: datetime) -> EnforcementOutcome:
        """Delete ``record`` and audit the deletion.

        Args:
            record: A record selected by the retention scanner.
            now: Timezone-aware instant used for ``deleted_at`` and
                ``performed_at``.

        Returns:
            EnforcementSuccess (possibly with artifact failures, or with
            ``already_deleted`` for an idempotent no-op) or
            EnforcementFailure when nothing could be persisted.
        """
        if record.deleted_at is not None:
            logger.info(
                "Consent record already deleted, skipping",
                consent_id=str(record.id),
                deleted_at=record.deleted_at.isoformat(),
            )
            return EnforcementSuccess(consent_id=record.id, already_deleted=True)

        cascade = await self._delete_dependent_artifacts(record)

        try:
            already_deleted = await self._store.mark_deleted(record.id, now)
            if already_deleted:
                # Another run committed first; its audit entry stands alone.
                await self._unit_of_work.rollback()
                logger.info(
                    "Consent record deleted concurrently, no audit entry written",
                    consent_id=str(record.id),
                )
                return EnforcementSuccess(
                    consent_id=record.id,
                    profiles_deleted=cascade.deleted_count,
                    artifact_failures=cascade.failures,
                    already_deleted=True,
                )

            for artifact in cascade.deleted:
                await self._audit_log.append(
                    self._profile_entry(record, now, artifact)
                )
            await self._audit_log.append(self._deletion_entry(record, now, cascade))
            await self._unit_of_work.commit()
        except Exception as e:
            await self._rollback(record)
            logger.error(
                "Retention enforcement failed for consent record",
                consent_id=str(record.id),
                user_id=str(record.user_id),
                error=_describe(e),
            )
            return EnforcementFailure(consent_id=record.id, reason=_describe(e))

        logger.info(
            "Consent record deleted by retention policy",
            consent_id=str(record.id),
            user_id=str(record.user_id),
            retention_deadline=record.retention_deadline.isoformat(),
            profiles_deleted=cascade.deleted_count,
            artifact_failures=len(cascade.failures),
        )
        return EnforcementSuccess(
            consent_id=record.id,
            profiles_deleted=cascade.deleted_count,
            artifact_failures=cascade.failures,
        )

    async def _delete_dependent_artifacts(
        self, record: ConsentRecord
    ) -> ArtifactDeletionResult:
        """Run the cascade; a gateway exception becomes one artifact failure."""
        try:
            result = await self._gateway.delete_dependent_artifacts(record.user_id)
        except Exception as e:
            logger.warning(
                "Dependent artifact deletion raised",
                consent_id=str(record.id),
                user_id=str(record.user_id),
                error=_describe(e),
            )
            return ArtifactDeletionResult(
                deleted_count=0,
                failures=[ArtifactFailure(reason=_describe(e))],
            )

        for failure in result.failures:
            logger.warning(
                "Dependent artifact could not be deleted",
                consent_id=str(record.id),
                user_id=str(record.user_id),
                artifact_id=failure.artifact_id,
                reason=failure.reason,
            )
        return result

    def _profile_entry(
        self,
        record: ConsentRecord,
        now: datetime,
        artifact: DeletedArtifact,
    ) -> AuditLogEntry:
        details = ProfileDeletionDetails(
            profile_id=artifact.artifact_id,
            artifact_kind=artifact.kind,
        )
        return AuditLogEntry(
            consent_id=record.id,
            action=AuditAction.voice_profile_deleted,
            performed_by=SYSTEM_ACTOR,
            performed_at=now,
            details=details.model_dump(mode="json"),
        )

    def _deletion_entry(
        self,
        record: ConsentRecord,
        now: datetime,
        cascade: ArtifactDeletionResult,
    ) -> AuditLogEntry:
        details = RetentionDeletionDetails(
            retention_deadline=record.retention_deadline,
            agreed_at=record.agreed_at,
            profiles_deleted=cascade.deleted_count,
            artifact_failures=len(cascade.failures),
        )
        return AuditLogEntry(
            consent_id=record.id,
            action=AuditAction.auto_deleted_retention,
            performed_by=SYSTEM_ACTOR,
            performed_at=now,
            details=details.model_dump(mode="json"),
        )

    async def _rollback(self, record: ConsentRecord) -> None:
        try:
            await self._unit_of_work.rollback()
        except Exception:
            logger.exception(
                "Rollback failed after retention enforcement error",
                consent_id=str(record.id),
            )
