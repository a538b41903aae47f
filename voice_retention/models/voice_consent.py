"""Voice cloning consent model.

Stores the signed biometric consent for a voice owner. ``deleted_at`` is
the only column the retention engine writes; rows are soft-deleted and
never physically removed so the fact of deletion survives.
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, Index, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from voice_retention.config import settings
from voice_retention.core.retention.enums import ConsentStatus
from voice_retention.core.retention.models import (
    ConsentRecord,
    compute_retention_deadline,
)
from voice_retention.models.base import Base, TimestampMixin, as_utc

# Version of the consent agreement text users currently sign
CONSENT_VERSION = "v1.0"


class VoiceConsent(Base, TimestampMixin):
    """A voice owner's consent to voice cloning.

    Status is derived, never stored: a row is deleted once ``deleted_at``
    is set and active otherwise. Expiry is the predicate
    ``now >= retention_deadline``, evaluated by the retention scanner.
    """

    __tablename__ = "voice_consents"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    # Account that collected the consent (the subject whose voice data is governed)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        nullable=False,
        index=True,
    )

    voice_owner_name: Mapped[str] = mapped_column(String(200), nullable=False)

    voice_owner_email: Mapped[str | None] = mapped_column(String(320), nullable=True)

    consent_version: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=CONSENT_VERSION,
    )

    # False when recording someone else's voice on their behalf
    is_self: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)

    agreed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    # agreed_at + retention period, fixed when the consent is granted
    retention_deadline: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    revoked_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    __table_args__ = (
        CheckConstraint(
            "retention_deadline >= agreed_at",
            name="ck_voice_consents_deadline_after_agreement",
        ),
        Index(
            "ix_voice_consents_retention_due",
            "retention_deadline",
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )

    @classmethod
    def grant(
        cls,
        *,
        user_id: uuid.UUID,
        voice_owner_name: str,
        agreed_at: datetime,
        retention_period_years: int | None = None,
        **fields,
    ) -> "VoiceConsent":
        """Build a new consent with its retention deadline computed once.

        The period defaults to ``voice_retention_period_years`` from settings.
        """
        if retention_period_years is None:
            retention_period_years = settings.voice_retention_period_years
        return cls(
            user_id=user_id,
            voice_owner_name=voice_owner_name,
            agreed_at=agreed_at,
            retention_deadline=compute_retention_deadline(
                agreed_at, retention_period_years
            ),
            **fields,
        )

    @property
    def status(self) -> ConsentStatus:
        if self.deleted_at is not None:
            return ConsentStatus.deleted
        return ConsentStatus.active

    def is_active(self, now: datetime) -> bool:
        """Usable for voice cloning: not revoked, not deleted, not expired."""
        return (
            self.revoked_at is None
            and self.deleted_at is None
            and as_utc(self.retention_deadline) > now
        )

    def to_record(self) -> ConsentRecord:
        """Convert to the storage-agnostic record used by the retention core."""
        return ConsentRecord(
            id=self.id,
            user_id=self.user_id,
            agreed_at=as_utc(self.agreed_at),
            retention_deadline=as_utc(self.retention_deadline),
            deleted_at=as_utc(self.deleted_at),
        )

    def __repr__(self) -> str:
        return (
            f"<VoiceConsent(id={self.id}, user_id={self.user_id}, "
            f"deadline={self.retention_deadline}, status={self.status})>"
        )
