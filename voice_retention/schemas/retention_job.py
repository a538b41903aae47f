"""Voice retention cron response schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from voice_retention.core.retention.models import (
    JobSummary,
    RecordArtifactFailure,
    RecordFailure,
)


class RetentionRunSummary(BaseModel):
    """Counts reported for one retention run."""

    consents_found: int
    consents_deleted: int
    already_deleted: int
    profiles_deleted: int
    errors: int
    artifact_errors: int
    requires_attention: bool


class RetentionRunResponse(BaseModel):
    """Response schema for POST /api/cron/voice-retention."""

    success: bool
    timestamp: datetime
    summary: RetentionRunSummary | None = None
    errors: list[RecordFailure] = Field(default_factory=list)
    artifact_errors: list[RecordArtifactFailure] = Field(default_factory=list)
    note: str

    @classmethod
    def from_summary(cls, summary: JobSummary) -> "RetentionRunResponse":
        if summary.requires_attention:
            issues = len(summary.failures) + len(summary.artifact_failures)
            note = f"Processed with {issues} error(s) - admin notification sent"
        else:
            note = "All expired consents processed successfully"

        return cls(
            success=True,
            timestamp=summary.timestamp,
            summary=RetentionRunSummary(
                consents_found=summary.records_found,
                consents_deleted=summary.records_deleted,
                already_deleted=summary.already_deleted,
                profiles_deleted=summary.dependent_artifacts_deleted,
                errors=len(summary.failures),
                artifact_errors=len(summary.artifact_failures),
                requires_attention=summary.requires_attention,
            ),
            errors=summary.failures,
            artifact_errors=summary.artifact_failures,
            note=note,
        )
