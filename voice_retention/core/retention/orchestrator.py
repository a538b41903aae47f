"""Retention job orchestration.

One run scans for due consent records, enforces each in its own unit of
work, and aggregates the outcomes into a JobSummary. Per-record problems
never escape ``run``; only a scan failure aborts the whole job.
"""

import asyncio
import uuid
from collections.abc import Callable, Sequence
from contextlib import AbstractAsyncContextManager
from datetime import datetime

from voice_retention.core.retention.enforcer import RetentionEnforcer
from voice_retention.core.retention.enums import JobPhase, RecordState
from voice_retention.core.retention.models import (
    ConsentRecord,
    EnforcementFailure,
    EnforcementOutcome,
    JobSummary,
    OperatorAlert,
    RecordArtifactFailure,
    RecordFailure,
)
from voice_retention.core.retention.protocols import OperatorNotifier
from voice_retention.core.retention.scanner import RetentionScanner
from voice_retention.logging_config import get_logger

logger = get_logger(__name__)

# Opens a fresh unit of work and yields an enforcer bound to it
EnforcerFactory = Callable[[], AbstractAsyncContextManager[RetentionEnforcer]]


def build_summary(
    records: Sequence[ConsentRecord],
    outcomes: Sequence[EnforcementOutcome],
    now: datetime,
) -> JobSummary:
    """Aggregate per-record outcomes into a JobSummary."""
    records_deleted = 0
    already_deleted = 0
    artifacts_deleted = 0
    failures: list[RecordFailure] = []
    artifact_failures: list[RecordArtifactFailure] = []
    record_states: dict[uuid.UUID, RecordState] = {}

    for record, outcome in zip(records, outcomes, strict=True):
        if isinstance(outcome, EnforcementFailure):
            failures.append(RecordFailure(record_id=record.id, reason=outcome.reason))
            record_states[record.id] = RecordState.failed
            continue

        record_states[record.id] = RecordState.succeeded
        if outcome.already_deleted:
            already_deleted += 1
        else:
            records_deleted += 1
        artifacts_deleted += outcome.profiles_deleted
        artifact_failures.extend(
            RecordArtifactFailure(
                record_id=record.id,
                artifact_id=failure.artifact_id,
                reason=failure.reason,
            )
            for failure in outcome.artifact_failures
        )

    return JobSummary(
        records_found=len(records),
        records_deleted=records_deleted,
        dependent_artifacts_deleted=artifacts_deleted,
        already_deleted=already_deleted,
        failures=failures,
        artifact_failures=artifact_failures,
        record_states=record_states,
        timestamp=now,
    )


class JobOrchestrator:
    """Scheduled entry point of the retention engine.

    Phases: idle -> scanning -> enforcing -> summarizing -> idle.
    No automatic retries within a run; a failed record is still selected
    by the next scheduled run because its ``deleted_at`` is unset.
    """

    def __init__(
        self,
        scanner: RetentionScanner,
        enforcer_factory: EnforcerFactory,
        notifier: OperatorNotifier | None = None,
        max_concurrency: int = 1,
    ):
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self._scanner = scanner
        self._enforcer_factory = enforcer_factory
        self._notifier = notifier
        self._max_concurrency = max_concurrency
        self._phase = JobPhase.idle

    @property
    def phase(self) -> JobPhase:
        return self._phase

    def _enter(self, phase: JobPhase) -> None:
        logger.debug("Retention job phase change", previous=self._phase, phase=phase)
        self._phase = phase

    async def run(self, now: datetime) -> JobSummary:
        """Enforce retention for every record due at ``now``.

        Raises:
            RetentionScanError: The scan failed; nothing was enforced.
        """
        try:
            self._enter(JobPhase.scanning)
            records = await self._scanner.find_due_records(now)

            self._enter(JobPhase.enforcing)
            outcomes = await self._enforce_all(records, now)

            self._enter(JobPhase.summarizing)
            summary = build_summary(records, outcomes, now)
            self._log_summary(summary)
            if summary.requires_attention:
                await self._alert_operator(summary)
            return summary
        finally:
            self._enter(JobPhase.idle)

    async def _enforce_all(
        self, records: list[ConsentRecord], now: datetime
    ) -> list[EnforcementOutcome]:
        if self._max_concurrency == 1:
            return [await self._enforce_one(record, now) for record in records]

        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def bounded(record: ConsentRecord) -> EnforcementOutcome:
            async with semaphore:
                return await self._enforce_one(record, now)

        return list(await asyncio.gather(*(bounded(record) for record in records)))

    async def _enforce_one(
        self, record: ConsentRecord, now: datetime
    ) -> EnforcementOutcome:
        # The enforcer already converts its own errors to outcomes; this
        # also covers failures opening or closing the unit of work.
        outcome: EnforcementOutcome | None = None
        try:
            async with self._enforcer_factory() as enforcer:
                outcome = await enforcer.enforce(record, now)
        except Exception as e:
            if outcome is not None:
                # enforce already committed or rolled back on its own
                logger.exception(
                    "Error closing enforcement unit of work",
                    consent_id=str(record.id),
                )
                return outcome
            logger.exception(
                "Unexpected error enforcing consent record",
                consent_id=str(record.id),
            )
            return EnforcementFailure(
                consent_id=record.id,
                reason=str(e) or type(e).__name__,
            )
        return outcome

    def _log_summary(self, summary: JobSummary) -> None:
        fields = {
            "records_found": summary.records_found,
            "records_deleted": summary.records_deleted,
            "already_deleted": summary.already_deleted,
            "dependent_artifacts_deleted": summary.dependent_artifacts_deleted,
            "failures": len(summary.failures),
            "artifact_failures": len(summary.artifact_failures),
        }
        if summary.requires_attention:
            logger.warning(
                "Voice retention enforcement completed with errors", **fields
            )
        else:
            logger.info("Voice retention enforcement completed", **fields)

    async def _alert_operator(self, summary: JobSummary) -> None:
        if self._notifier is None:
            return
        try:
            await self._notifier.notify(OperatorAlert.from_summary(summary))
        except Exception:
            logger.exception(
                "Failed to deliver retention operator alert",
                failures=len(summary.failures),
            )
