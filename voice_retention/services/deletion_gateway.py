"""Dependent artifact deletion gateways.

Implementations of the retention core's ``DeletionGateway``. Each returns
what it removed plus the artifacts it could not remove; transport errors
are reported as artifact failures rather than raised, so a flaky
downstream service never keeps a consent record past its deadline.
"""

import uuid
from collections.abc import Sequence

import httpx

from voice_retention.config import settings
from voice_retention.core.retention.constants import DEFAULT_ARTIFACT_KIND
from voice_retention.core.retention.models import (
    ArtifactDeletionResult,
    ArtifactFailure,
    DeletedArtifact,
)
from voice_retention.core.retention.protocols import DeletionGateway
from voice_retention.logging_config import get_logger

logger = get_logger(__name__)


class NoopDeletionGateway:
    """Gateway for deployments with no dependent artifacts wired up yet."""

    async def delete_dependent_artifacts(
        self, subject_id: uuid.UUID
    ) -> ArtifactDeletionResult:
        return ArtifactDeletionResult()


class HttpDeletionGateway:
    """Asks the voice-artifact service to purge everything for a subject.

    ``POST {base_url}/subjects/{subject_id}/artifacts:purge`` is expected
    to answer::

        {"deleted": int,
         "artifacts": [{"artifact_id", "kind"}],
         "failures": [{"artifact_id", "reason"}]}

    Every key is optional and may be null. The call must be idempotent,
    so a repeated call after a crash is harmless.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        h: dict[str, str] = {"Content-Type": "application/json"}
        if self._api_key:
            h["Authorization"] = f"Bearer {self._api_key}"
        return h

    async def delete_dependent_artifacts(
        self, subject_id: uuid.UUID
    ) -> ArtifactDeletionResult:
        url = f"{self._base_url}/subjects/{subject_id}/artifacts:purge"
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                resp = await client.post(url, headers=self._headers())
                resp.raise_for_status()
                body = resp.json()
                if not isinstance(body, dict):
                    raise ValueError("response body is not a JSON object")
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "Artifact purge rejected",
                user_id=str(subject_id),
                status_code=exc.response.status_code,
            )
            return ArtifactDeletionResult(
                failures=[
                    ArtifactFailure(
                        reason=f"Artifact service returned HTTP {exc.response.status_code}"
                    )
                ]
            )
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning(
                "Artifact purge request failed",
                user_id=str(subject_id),
                error=str(exc),
            )
            return ArtifactDeletionResult(
                failures=[
                    ArtifactFailure(
                        reason=f"Artifact service unreachable: {str(exc) or type(exc).__name__}"
                    )
                ]
            )

        failures = [
            ArtifactFailure(
                artifact_id=item.get("artifact_id"),
                reason=item.get("reason") or "unknown error",
            )
            for item in body.get("failures") or []
        ]
        deleted = [
            DeletedArtifact(
                artifact_id=str(item["artifact_id"]),
                kind=item.get("kind") or DEFAULT_ARTIFACT_KIND,
            )
            for item in body.get("artifacts") or []
            if item.get("artifact_id")
        ]
        return ArtifactDeletionResult(
            deleted_count=max(int(body.get("deleted") or 0), len(deleted)),
            deleted=deleted,
            failures=failures,
        )


class CompositeDeletionGateway:
    """Runs several gateways (voice models, stored files) for one subject.

    A gateway that raises is reported as a single failure; the others
    still run.
    """

    def __init__(self, gateways: Sequence[DeletionGateway]):
        self._gateways = list(gateways)

    async def delete_dependent_artifacts(
        self, subject_id: uuid.UUID
    ) -> ArtifactDeletionResult:
        deleted_count = 0
        deleted: list[DeletedArtifact] = []
        failures: list[ArtifactFailure] = []
        for gateway in self._gateways:
            try:
                result = await gateway.delete_dependent_artifacts(subject_id)
            except Exception as exc:
                logger.warning(
                    "Deletion gateway raised",
                    gateway=type(gateway).__name__,
                    user_id=str(subject_id),
                    error=str(exc),
                )
                failures.append(
                    ArtifactFailure(
                        reason=f"{type(gateway).__name__}: {str(exc) or type(exc).__name__}"
                    )
                )
                continue
            deleted_count += result.deleted_count
            deleted.extend(result.deleted)
            failures.extend(result.failures)
        return ArtifactDeletionResult(
            deleted_count=deleted_count, deleted=deleted, failures=failures
        )


def get_deletion_gateway() -> DeletionGateway:
    """Build the gateway configured for this deployment."""
    if not settings.deletion_gateway_url:
        return NoopDeletionGateway()
    return HttpDeletionGateway(
        base_url=settings.deletion_gateway_url,
        api_key=settings.deletion_gateway_api_key,
        timeout=settings.deletion_gateway_timeout_seconds,
    )
