"""Unit tests for the SQS Lambda handler."""

import json
from unittest.mock import MagicMock, patch

import pytest

from brain_ingest.core.exceptions import ErrorCode, IngestionError
from brain_ingest.core.ingestion.lambda_handler import handler
from brain_ingest.core.ingestion.models import IngestionResult

MODULE = "brain_ingest.core.ingestion.lambda_handler"
ENV = {"S3_BUCKET": "test-bucket", "OPENSEARCH_ENDPOINT": "https://search.example.com"}


@pytest.fixture(autouse=True)
def reset_handler_state():
    """Reset cached pipelines and skip cold-start setup between tests."""
    for attr in ("_pipeline", "_transcript_pipeline"):
        if hasattr(handler, attr):
            delattr(handler, attr)
    handler._initialized = True
    yield
    for attr in ("_pipeline", "_transcript_pipeline", "_initialized"):
        if hasattr(handler, attr):
            delattr(handler, attr)


@pytest.fixture
def document_pipeline():
    with patch(f"{MODULE}.DocumentIngestionPipeline") as pipeline_cls:
        pipeline = MagicMock()
        pipeline.process.return_value = IngestionResult(
            doc_id="doc-1", chunk_count=3, total_chunks=3, processing_time_ms=120.0
        )
        pipeline_cls.return_value = pipeline
        yield pipeline


@pytest.fixture
def transcript_pipeline():
    with patch(f"{MODULE}.TranscriptIngestionPipeline") as pipeline_cls:
        pipeline = MagicMock()
        pipeline.process.return_value = IngestionResult(
            doc_id="transcript_tr-1", chunk_count=2, total_chunks=2, processing_time_ms=80.0
        )
        pipeline_cls.return_value = pipeline
        yield pipeline


def _record(message_id: str, body) -> dict:
    return {"messageId": message_id, "body": body if isinstance(body, str) else json.dumps(body)}


def _failed_ids(response: dict) -> list[str]:
    return [failure["itemIdentifier"] for failure in response["batchItemFailures"]]


@patch.dict("os.environ", ENV)
class TestHandler:
    """Test per-record outcomes and the partial batch response."""

    def test_document_success(self, document_pipeline) -> None:
        """Should process the document and report no failures."""
        response = handler({"Records": [_record("m1", {"doc_id": "doc-1", "reindex": True, "mode": "url"})]}, None)

        assert response == {"batchItemFailures": []}
        document_pipeline.process.assert_called_once_with("doc-1", reindex=True)

    def test_pipeline_is_reused_across_records(self, document_pipeline) -> None:
        """Should build the pipeline once per container."""
        event = {"Records": [_record("m1", {"doc_id": "doc-1"}), _record("m2", {"doc_id": "doc-2"})]}

        with patch(f"{MODULE}.DocumentIngestionPipeline") as pipeline_cls:
            pipeline_cls.return_value = document_pipeline
            handler(event, None)

        pipeline_cls.assert_called_once()
        assert document_pipeline.process.call_count == 2

    def test_retriable_failure_is_redelivered(self, document_pipeline) -> None:
        """Should list retriable document failures for redelivery."""
        document_pipeline.process.side_effect = IngestionError(ErrorCode.OPENSEARCH_NOT_READY, "OpenSearch not ready")

        response = handler({"Records": [_record("m1", {"doc_id": "doc-1"})]}, None)

        assert _failed_ids(response) == ["m1"]

    def test_non_retriable_failure_is_acknowledged(self, document_pipeline) -> None:
        """Should acknowledge failures already recorded as permanent."""
        document_pipeline.process.side_effect = IngestionError(ErrorCode.DOCUMENT_TOO_LARGE, "Document too large")

        response = handler({"Records": [_record("m1", {"doc_id": "doc-1"})]}, None)

        assert _failed_ids(response) == []

    def test_unexpected_error_is_redelivered(self, document_pipeline) -> None:
        """Should redeliver on exceptions outside the taxonomy."""
        document_pipeline.process.side_effect = RuntimeError("boom")

        response = handler({"Records": [_record("m1", {"doc_id": "doc-1"})]}, None)

        assert _failed_ids(response) == ["m1"]

    def test_transcript_success(self, transcript_pipeline, document_pipeline) -> None:
        """Should route transcript messages to the transcript pipeline."""
        body = {"type": "transcript", "transcript_id": "tr-1", "lesson_id": "lesson-1"}

        response = handler({"Records": [_record("m1", body)]}, None)

        assert _failed_ids(response) == []
        transcript_pipeline.process.assert_called_once_with("tr-1", "lesson-1")
        document_pipeline.process.assert_not_called()

    def test_transcript_failure_is_redelivered(self, transcript_pipeline) -> None:
        """Should redeliver any transcript failure."""
        transcript_pipeline.process.side_effect = IngestionError(ErrorCode.PROCESSING_ERROR, "Transcript tr-1 not found")
        body = {"type": "transcript", "transcript_id": "tr-1", "lesson_id": "lesson-1"}

        response = handler({"Records": [_record("m1", body)]}, None)

        assert _failed_ids(response) == ["m1"]

    @pytest.mark.parametrize(
        "body",
        ["not json", json.dumps({"reindex": True}), json.dumps({"type": "transcript", "lesson_id": "l-1"}), ""],
    )
    def test_invalid_messages_are_acknowledged(self, document_pipeline, transcript_pipeline, body) -> None:
        """Should log and skip messages without identifiers or valid JSON."""
        response = handler({"Records": [_record("m1", body)]}, None)

        assert _failed_ids(response) == []
        document_pipeline.process.assert_not_called()
        transcript_pipeline.process.assert_not_called()

    def test_mixed_batch_reports_only_failures(self, document_pipeline) -> None:
        """Should keep processing after a failed record."""

        def process(doc_id, reindex=False):
            if doc_id == "doc-bad":
                raise IngestionError(ErrorCode.TIMEOUT, "URL fetch timeout")
            return IngestionResult(doc_id=doc_id, chunk_count=1, total_chunks=1, processing_time_ms=5.0)

        document_pipeline.process.side_effect = process
        event = {
            "Records": [
                _record("m1", {"doc_id": "doc-ok"}),
                _record("m2", {"doc_id": "doc-bad"}),
                _record("m3", "{broken"),
                _record("m4", {"doc_id": "doc-ok-2"}),
            ]
        }

        response = handler(event, None)

        assert _failed_ids(response) == ["m2"]
        assert document_pipeline.process.call_count == 3


def test_missing_environment_redelivers_batch(document_pipeline, monkeypatch) -> None:
    """Should report every record when required configuration is missing."""
    monkeypatch.delenv("S3_BUCKET", raising=False)
    monkeypatch.delenv("OPENSEARCH_ENDPOINT", raising=False)
    event = {"Records": [_record("m1", {"doc_id": "doc-1"}), _record("m2", {"doc_id": "doc-2"})]}

    response = handler(event, None)

    assert _failed_ids(response) == ["m1", "m2"]
    document_pipeline.process.assert_not_called()
