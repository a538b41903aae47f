"""Tests for dependent artifact deletion gateways."""

import json
import uuid

import httpx
import pytest

from voice_retention.config import settings
from voice_retention.core.retention import (
    ArtifactDeletionResult,
    ArtifactFailure,
    DeletedArtifact,
)
from voice_retention.services.deletion_gateway import (
    CompositeDeletionGateway,
    HttpDeletionGateway,
    NoopDeletionGateway,
    get_deletion_gateway,
)

SUBJECT_ID = uuid.UUID("8d5e2f43-8a5a-4c1e-9f40-3b1a9c2d7e10")


def make_gateway(handler, api_key: str = "secret-key") -> HttpDeletionGateway:
    return HttpDeletionGateway(
        base_url="https://artifacts.internal/",
        api_key=api_key,
        transport=httpx.MockTransport(handler),
    )


class TestHttpDeletionGateway:
    """Tests for HttpDeletionGateway."""

    @pytest.mark.asyncio
    async def test_posts_purge_request(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"deleted": 2, "failures": []})

        result = await make_gateway(handler).delete_dependent_artifacts(SUBJECT_ID)

        assert result == ArtifactDeletionResult(deleted_count=2)
        assert seen[0].method == "POST"
        assert str(seen[0].url) == (
            f"https://artifacts.internal/subjects/{SUBJECT_ID}/artifacts:purge"
        )
        assert seen[0].headers["Authorization"] == "Bearer secret-key"

    @pytest.mark.asyncio
    async def test_no_auth_header_without_key(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"deleted": 0})

        await make_gateway(handler, api_key="").delete_dependent_artifacts(SUBJECT_ID)

        assert "Authorization" not in seen[0].headers

    @pytest.mark.asyncio
    async def test_reports_partial_failures(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={
                    "deleted": 1,
                    "failures": [
                        {"artifact_id": "clone-9", "reason": "provider timeout"},
                        {"artifact_id": "audio-3"},
                    ],
                },
            )

        result = await make_gateway(handler).delete_dependent_artifacts(SUBJECT_ID)

        assert result.deleted_count == 1
        assert result.failures == [
            ArtifactFailure(artifact_id="clone-9", reason="provider timeout"),
            ArtifactFailure(artifact_id="audio-3", reason="unknown error"),
        ]

    @pytest.mark.asyncio
    async def test_null_failures_treated_as_none(self):
        """A null failures list means nothing failed."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"deleted": 2, "failures": None})

        result = await make_gateway(handler).delete_dependent_artifacts(SUBJECT_ID)

        assert result.deleted_count == 2
        assert result.failures == []

    @pytest.mark.asyncio
    async def test_parses_named_artifacts(self):
        """Named artifacts are returned with their kind, defaulting to voice_profile."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={
                    "deleted": 3,
                    "artifacts": [
                        {"artifact_id": "clone-1", "kind": "voice_clone"},
                        {"artifact_id": "profile-7"},
                        {"kind": "audio_sample"},
                    ],
                },
            )

        result = await make_gateway(handler).delete_dependent_artifacts(SUBJECT_ID)

        assert result.deleted_count == 3
        assert result.deleted == [
            DeletedArtifact(artifact_id="clone-1", kind="voice_clone"),
            DeletedArtifact(artifact_id="profile-7", kind="voice_profile"),
        ]

    @pytest.mark.asyncio
    async def test_count_never_below_named_artifacts(self):
        """A missing deleted count falls back to the number of named artifacts."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={"deleted": None, "artifacts": [{"artifact_id": "profile-1"}]},
            )

        result = await make_gateway(handler).delete_dependent_artifacts(SUBJECT_ID)

        assert result.deleted_count == 1
        assert result.deleted == [DeletedArtifact(artifact_id="profile-1")]

    @pytest.mark.asyncio
    async def test_http_error_status_becomes_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, text="unavailable")

        result = await make_gateway(handler).delete_dependent_artifacts(SUBJECT_ID)

        assert result.deleted_count == 0
        assert result.failures[0].reason == "Artifact service returned HTTP 503"

    @pytest.mark.asyncio
    async def test_transport_error_becomes_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        result = await make_gateway(handler).delete_dependent_artifacts(SUBJECT_ID)

        assert result.failures[0].reason.startswith("Artifact service unreachable")

    @pytest.mark.asyncio
    async def test_invalid_json_becomes_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"not json")

        result = await make_gateway(handler).delete_dependent_artifacts(SUBJECT_ID)

        assert len(result.failures) == 1

    @pytest.mark.asyncio
    async def test_non_object_body_becomes_failure(self):
        """A JSON array body is reported as a failure."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=[1, 2])

        result = await make_gateway(handler).delete_dependent_artifacts(SUBJECT_ID)

        assert result.deleted_count == 0
        assert len(result.failures) == 1


class TestCompositeDeletionGateway:
    """Tests for CompositeDeletionGateway."""

    @pytest.mark.asyncio
    async def test_sums_results(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                content=json.dumps(
                    {"deleted": 3, "failures": [{"artifact_id": "x", "reason": "gone"}]}
                ),
            )

        composite = CompositeDeletionGateway(
            [make_gateway(handler), make_gateway(handler)]
        )

        result = await composite.delete_dependent_artifacts(SUBJECT_ID)

        assert result.deleted_count == 6
        assert len(result.failures) == 2

    @pytest.mark.asyncio
    async def test_isolates_raising_gateway(self):
        class ExplodingGateway:
            async def delete_dependent_artifacts(self, subject_id):
                raise RuntimeError("boom")

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"deleted": 1})

        composite = CompositeDeletionGateway([ExplodingGateway(), make_gateway(handler)])

        result = await composite.delete_dependent_artifacts(SUBJECT_ID)

        assert result.deleted_count == 1
        assert result.failures == [ArtifactFailure(reason="ExplodingGateway: boom")]

    @pytest.mark.asyncio
    async def test_concatenates_named_artifacts(self):
        """Artifacts named by each gateway are all reported."""

        def models(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200, json={"artifacts": [{"artifact_id": "clone-1", "kind": "voice_clone"}]}
            )

        def files(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200, json={"artifacts": [{"artifact_id": "profile-2"}]}
            )

        composite = CompositeDeletionGateway([make_gateway(models), make_gateway(files)])

        result = await composite.delete_dependent_artifacts(SUBJECT_ID)

        assert result.deleted_count == 2
        assert [a.artifact_id for a in result.deleted] == ["clone-1", "profile-2"]


class TestGetDeletionGateway:
    """Tests for gateway selection from settings."""

    def test_noop_without_url(self, monkeypatch):
        monkeypatch.setattr(settings, "deletion_gateway_url", "")
        assert isinstance(get_deletion_gateway(), NoopDeletionGateway)

    def test_http_with_url(self, monkeypatch):
        monkeypatch.setattr(settings, "deletion_gateway_url", "https://artifacts.internal")
        assert isinstance(get_deletion_gateway(), HttpDeletionGateway)

    @pytest.mark.asyncio
    async def test_noop_deletes_nothing(self):
        result = await NoopDeletionGateway().delete_dependent_artifacts(SUBJECT_ID)
        assert result == ArtifactDeletionResult()
