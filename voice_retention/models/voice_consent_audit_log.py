"""Voice consent audit log model.

Immutable audit trail for every compliance-relevant action on a voice
consent. Entries reference the consent by id only (no foreign key), so
the trail outlives any later purge of consent rows.
"""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Enum, String, Uuid, event, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, ORMExecuteState, Session, mapped_column

from voice_retention.core.retention.enums import AuditAction
from voice_retention.core.retention.models import AuditLogEntry
from voice_retention.models.base import Base, as_utc


class AuditLogImmutableError(Exception):
    """Raised on any attempt to modify or remove an audit log entry."""


class VoiceConsentAuditLog(Base):
    """Write-once record of an action taken against a voice consent."""

    __tablename__ = "voice_consent_audit_logs"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    consent_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        nullable=False,
        index=True,
    )

    action: Mapped[AuditAction] = mapped_column(
        Enum(
            AuditAction,
            name="voice_consent_audit_action",
            native_enum=False,
            length=50,
            values_callable=lambda e: [member.value for member in e],
        ),
        nullable=False,
        index=True,
    )

    # NULL means the automated retention job acted, not a person
    performed_by: Mapped[str | None] = mapped_column(String(255), nullable=True)

    performed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )

    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)

    details: Mapped[dict[str, Any]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
        default=dict,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    @classmethod
    def from_entry(cls, entry: AuditLogEntry) -> "VoiceConsentAuditLog":
        return cls(
            id=entry.id,
            consent_id=entry.consent_id,
            action=entry.action,
            performed_by=entry.performed_by,
            performed_at=entry.performed_at,
            ip_address=entry.ip_address,
            details=dict(entry.details),
        )

    def to_entry(self) -> AuditLogEntry:
        return AuditLogEntry(
            id=self.id,
            consent_id=self.consent_id,
            action=self.action,
            performed_by=self.performed_by,
            performed_at=as_utc(self.performed_at),
            ip_address=self.ip_address,
            details=self.details,
        )

    def __repr__(self) -> str:
        return (
            f"<VoiceConsentAuditLog(action={self.action}, "
            f"consent_id={self.consent_id}, performed_at={self.performed_at})>"
        )


@event.listens_for(VoiceConsentAuditLog, "before_update")
def _reject_update(mapper, connection, target: VoiceConsentAuditLog) -> None:
    raise AuditLogImmutableError(f"Audit log entry {target.id} cannot be modified")


@event.listens_for(VoiceConsentAuditLog, "before_delete")
def _reject_delete(mapper, connection, target: VoiceConsentAuditLog) -> None:
    raise AuditLogImmutableError(f"Audit log entry {target.id} cannot be deleted")


@event.listens_for(Session, "do_orm_execute")
def _reject_bulk_mutation(orm_execute_state: ORMExecuteState) -> None:
    """Block ORM-enabled ``update()`` / ``delete()`` statements on the audit table."""
    if not (orm_execute_state.is_update or orm_execute_state.is_delete):
        return
    mapper = orm_execute_state.bind_mapper
    if mapper is not None and mapper.class_ is VoiceConsentAuditLog:
        raise AuditLogImmutableError("Audit log entries cannot be updated or deleted")
