# Business Logic Services
from voice_retention.services.audit_log import SqlAuditLog, log_consent_action
from voice_retention.services.consent_store import SqlConsentStore
from voice_retention.services.deletion_gateway import (
    CompositeDeletionGateway,
    HttpDeletionGateway,
    NoopDeletionGateway,
    get_deletion_gateway,
)
from voice_retention.services.operator_notifier import LoggingOperatorNotifier
from voice_retention.services.retention_job import run_voice_retention
from voice_retention.services.scheduler import (
    enforce_voice_retention,
    get_scheduler,
    start_scheduler,
    stop_scheduler,
)

__all__ = [
    "CompositeDeletionGateway",
    "HttpDeletionGateway",
    "LoggingOperatorNotifier",
    "NoopDeletionGateway",
    "SqlAuditLog",
    "SqlConsentStore",
    "enforce_voice_retention",
    "get_deletion_gateway",
    "get_scheduler",
    "log_consent_action",
    "run_voice_retention",
    "start_scheduler",
    "stop_scheduler",
]
