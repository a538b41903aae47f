"""Voice consent retention Pydantic models.

Pure data models for the retention core. No database dependencies,
no SQLAlchemy. All timestamps are timezone-aware; the engine never
reads the wall clock itself, callers pass ``now`` explicitly.
"""

import calendar
import uuid
from datetime import datetime
from typing import Annotated, Any, Literal, Self

from pydantic import (
    AwareDatetime,
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    model_validator,
)

from voice_retention.core.retention.constants import (
    DEFAULT_ARTIFACT_KIND,
    PROFILE_DELETION_REASON,
    RETENTION_DELETED_BY,
    RETENTION_DELETION_REASON,
    RETENTION_PERIOD_YEARS,
    SYSTEM_ACTOR,
)
from voice_retention.core.retention.enums import (
    AuditAction,
    ConsentStatus,
    RecordState,
)


def compute_retention_deadline(
    agreed_at: datetime,
    years: int = RETENTION_PERIOD_YEARS,
) -> datetime:
    """Return ``agreed_at`` shifted forward by ``years`` calendar years.

    Called once when a consent record is created; the result is stored
    and never recomputed. Feb 29 maps to Feb 28 when the target year is
    not a leap year.
    """
    if years < 1:
        raise ValueError("Retention period must be at least one year")
    target_year = agreed_at.year + years
    day = agreed_at.day
    if agreed_at.month == 2 and day == 29 and not calendar.isleap(target_year):
        day = 28
    return agreed_at.replace(year=target_year, day=day)


class ConsentRecord(BaseModel):
    """A voice-cloning consent record as seen by the retention engine."""

    model_config = ConfigDict(frozen=True)

    id: uuid.UUID
    user_id: uuid.UUID
    agreed_at: AwareDatetime
    retention_deadline: AwareDatetime
    deleted_at: AwareDatetime | None = None

    @model_validator(mode="after")
    def check_deadline_after_consent(self) -> Self:
        if self.retention_deadline < self.agreed_at:
            msg = "retention_deadline must not precede agreed_at"
            raise ValueError(msg)
        return self

    @property
    def status(self) -> ConsentStatus:
        if self.deleted_at is not None:
            return ConsentStatus.deleted
        return ConsentStatus.active

    def is_expired(self, now: datetime) -> bool:
        """Whether the retention window has elapsed at ``now``."""
        return now >= self.retention_deadline

    def is_due(self, now: datetime) -> bool:
        """Whether the record must be enforced at ``now``.

        Mirrors the store query: not yet deleted and deadline reached.
        """
        return self.deleted_at is None and self.is_expired(now)


class AuditLogEntry(BaseModel):
    """One write-once entry in the consent audit trail."""

    model_config = ConfigDict(frozen=True)

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    consent_id: uuid.UUID
    action: AuditAction
    performed_by: str | None = Field(
        default=SYSTEM_ACTOR,
        description="Actor identity, or None when the automated job acted.",
    )
    performed_at: AwareDatetime
    ip_address: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_system_action(self) -> bool:
        return self.performed_by is SYSTEM_ACTOR


class RetentionDeletionDetails(BaseModel):
    """Schema-stable ``details`` payload of an auto_deleted_retention entry."""

    model_config = ConfigDict(frozen=True)

    reason: str = RETENTION_DELETION_REASON
    retention_deadline: AwareDatetime
    agreed_at: AwareDatetime
    profiles_deleted: int = Field(ge=0)
    artifact_failures: int = Field(default=0, ge=0)
    deleted_by: str = RETENTION_DELETED_BY


class ProfileDeletionDetails(BaseModel):
    """Schema-stable ``details`` payload of a voice_profile_deleted entry."""

    model_config = ConfigDict(frozen=True)

    profile_id: str
    artifact_kind: str
    reason: str = PROFILE_DELETION_REASON
    deleted_by: str = RETENTION_DELETED_BY


class DeletedArtifact(BaseModel):
    """A dependent artifact the gateway confirmed as removed."""

    model_config = ConfigDict(frozen=True)

    artifact_id: str = Field(min_length=1)
    kind: str = DEFAULT_ARTIFACT_KIND


class ArtifactFailure(BaseModel):
    """A dependent artifact that could not be removed."""

    model_config = ConfigDict(frozen=True)

    artifact_id: str | None = None
    reason: str = Field(min_length=1)


class ArtifactDeletionResult(BaseModel):
    """What a deletion gateway managed to remove for one subject.

    ``deleted_count`` may exceed ``len(deleted)`` when a downstream service
    reports a total without naming every artifact.
    """

    model_config = ConfigDict(frozen=True)

    deleted_count: int = Field(default=0, ge=0)
    deleted: list[DeletedArtifact] = Field(default_factory=list)
    failures: list[ArtifactFailure] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_count_covers_named(self) -> Self:
        if self.deleted_count < len(self.deleted):
            msg = "deleted_count must not be less than the number of named artifacts"
            raise ValueError(msg)
        return self


class EnforcementSuccess(BaseModel):
    """The record is deleted (now or by an earlier run).

    ``artifact_failures`` may be non-empty: cascade failures never keep a
    record past its deadline, they are reported for an operator instead.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["success"] = "success"
    consent_id: uuid.UUID
    profiles_deleted: int = Field(default=0, ge=0)
    artifact_failures: list[ArtifactFailure] = Field(default_factory=list)
    already_deleted: bool = False


class EnforcementFailure(BaseModel):
    """Nothing was persisted for the record; the next run retries it."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["failure"] = "failure"
    consent_id: uuid.UUID
    reason: str = Field(min_length=1)


EnforcementOutcome = Annotated[
    EnforcementSuccess | EnforcementFailure,
    Field(discriminator="kind"),
]


class RecordFailure(BaseModel):
    """A record whose enforcement failed in this run."""

    model_config = ConfigDict(frozen=True)

    record_id: uuid.UUID
    reason: str


class RecordArtifactFailure(BaseModel):
    """A dependent-artifact failure attributed to its consent record."""

    model_config = ConfigDict(frozen=True)

    record_id: uuid.UUID
    artifact_id: str | None = None
    reason: str


class JobSummary(BaseModel):
    """Aggregate result of one retention run.

    Always well-formed, even when every record failed, so the caller can
    branch on ``requires_attention`` alone.
    """

    model_config = ConfigDict(frozen=True)

    records_found: int = Field(ge=0)
    records_deleted: int = Field(ge=0)
    dependent_artifacts_deleted: int = Field(default=0, ge=0)
    already_deleted: int = Field(
        default=0,
        ge=0,
        description="Records another run deleted first (idempotent no-ops).",
    )
    failures: list[RecordFailure] = Field(default_factory=list)
    artifact_failures: list[RecordArtifactFailure] = Field(default_factory=list)
    record_states: dict[uuid.UUID, RecordState] = Field(default_factory=dict)
    timestamp: AwareDatetime

    @computed_field  # type: ignore[prop-decorator]
    @property
    def requires_attention(self) -> bool:
        return bool(self.failures or self.artifact_failures)

    @model_validator(mode="after")
    def check_counts(self) -> Self:
        """Every found record ends in exactly one bucket."""
        accounted = self.records_deleted + self.already_deleted + len(self.failures)
        if accounted != self.records_found:
            msg = (
                f"records_found={self.records_found} does not match "
                f"deleted+already_deleted+failed={accounted}"
            )
            raise ValueError(msg)
        return self


class OperatorAlert(BaseModel):
    """Structured payload handed to the notification collaborator."""

    model_config = ConfigDict(frozen=True)

    subject: str
    timestamp: AwareDatetime
    records_found: int
    records_deleted: int
    failures: list[RecordFailure]
    artifact_failures: list[RecordArtifactFailure]

    @classmethod
    def from_summary(cls, summary: JobSummary) -> "OperatorAlert":
        return cls(
            subject="Voice Retention Enforcement Errors",
            timestamp=summary.timestamp,
            records_found=summary.records_found,
            records_deleted=summary.records_deleted,
            failures=summary.failures,
            artifact_failures=summary.artifact_failures,
        )
