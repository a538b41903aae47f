"""Voice consent retention enforcement.

This package enforces the statutory retention limit on voice-cloning
consent records (BIPA: at most 3 years from consent). A scheduled run:

1. Scans for records whose retention deadline has passed and that have
   no ``deleted_at`` yet
2. For each record, asks the deletion gateway to purge dependent
   artifacts (cloned voice models, stored audio)
3. Soft-deletes the record and appends one ``voice_profile_deleted``
   entry per purged artifact plus one ``auto_deleted_retention`` entry,
   committed together
4. Summarizes the run and alerts an operator on any failure

Records are never physically removed and audit entries are write-once;
together they are the legal proof that a deletion happened. Re-running
a job is always safe: a deleted record is never selected again and
re-enforcing one is a no-op.

Nothing in this package reads the wall clock. Callers pass ``now``.
"""

from voice_retention.core.retention.enforcer import RetentionEnforcer
from voice_retention.core.retention.enums import (
    AuditAction,
    ConsentStatus,
    JobPhase,
    RecordState,
)
from voice_retention.core.retention.models import (
    ArtifactDeletionResult,
    ArtifactFailure,
    AuditLogEntry,
    ConsentRecord,
    DeletedArtifact,
    EnforcementFailure,
    EnforcementOutcome,
    EnforcementSuccess,
    JobSummary,
    OperatorAlert,
    ProfileDeletionDetails,
    RecordArtifactFailure,
    RecordFailure,
    RetentionDeletionDetails,
    compute_retention_deadline,
)
from voice_retention.core.retention.orchestrator import (
    EnforcerFactory,
    JobOrchestrator,
    build_summary,
)
from voice_retention.core.retention.protocols import (
    AuditLog,
    ConsentStore,
    DeletionGateway,
    DueRecordSource,
    OperatorNotifier,
    UnitOfWork,
)
from voice_retention.core.retention.scanner import RetentionScanError, RetentionScanner

__all__ = [
    "ArtifactDeletionResult",
    "ArtifactFailure",
    "AuditAction",
    "AuditLog",
    "AuditLogEntry",
    "ConsentRecord",
    "ConsentStatus",
    "ConsentStore",
    "DeletedArtifact",
    "DeletionGateway",
    "DueRecordSource",
    "EnforcementFailure",
    "EnforcementOutcome",
    "EnforcementSuccess",
    "EnforcerFactory",
    "JobOrchestrator",
    "JobPhase",
    "JobSummary",
    "OperatorAlert",
    "OperatorNotifier",
    "ProfileDeletionDetails",
    "RecordArtifactFailure",
    "RecordFailure",
    "RecordState",
    "RetentionDeletionDetails",
    "RetentionEnforcer",
    "RetentionScanError",
    "RetentionScanner",
    "UnitOfWork",
    "build_summary",
    "compute_retention_deadline",
]
