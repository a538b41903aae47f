# Database Models
from voice_retention.models.base import Base, TimestampMixin
from voice_retention.models.voice_consent import CONSENT_VERSION, VoiceConsent
from voice_retention.models.voice_consent_audit_log import (
    AuditLogImmutableError,
    VoiceConsentAuditLog,
)

__all__ = [
    "AuditLogImmutableError",
    "Base",
    "CONSENT_VERSION",
    "TimestampMixin",
    "VoiceConsent",
    "VoiceConsentAuditLog",
]
