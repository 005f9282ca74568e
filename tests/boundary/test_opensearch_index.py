"""Tests for the OpenSearch index writer."""

from unittest.mock import MagicMock, patch

import pytest
from opensearchpy.exceptions import RequestError

from brain_ingest.boundary.vdb.opensearch_index import (
    OpenSearchIndexWriter,
    build_opensearch_client,
    index_body,
)
from brain_ingest.core.exceptions import ErrorCode, SearchServiceNotReadyError
from brain_ingest.core.ingestion.models import VectorEntry


@pytest.fixture
def client() -> MagicMock:
    client = MagicMock()
    client.cluster.health.return_value = {"status": "green"}
    client.indices.exists.return_value = True
    return client


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def writer(client, sleeps) -> OpenSearchIndexWriter:
    return OpenSearchIndexWriter(client, index_name="brain-chunks", dimension=1536, sleep=sleeps.append)


# ============================================================================
# Client and schema
# ============================================================================


class TestClientAndSchema:
    """Test client construction and index mapping."""

    def test_rejects_empty_endpoint(self) -> None:
        """Should raise ValueError without an endpoint."""
        with pytest.raises(ValueError):
            build_opensearch_client("", "us-east-1")

    def test_strips_scheme_from_endpoint(self) -> None:
        """Should connect to the bare host over TLS on 443."""
        module = "brain_ingest.boundary.vdb.opensearch_index"
        with patch(f"{module}.boto3") as boto3_mock, patch(f"{module}.AWSV4SignerAuth") as auth_cls, patch(
            f"{module}.OpenSearch"
        ) as opensearch_cls:
            build_opensearch_client("https://abc123.us-east-1.aoss.amazonaws.com/", "us-east-1", service="aoss")

        kwargs = opensearch_cls.call_args.kwargs
        assert kwargs["hosts"] == [{"host": "abc123.us-east-1.aoss.amazonaws.com", "port": 443}]
        assert kwargs["use_ssl"] is True
        auth_cls.assert_called_once_with(
            boto3_mock.Session.return_value.get_credentials.return_value, "us-east-1", "aoss"
        )

    def test_index_body_mapping(self) -> None:
        """Should map keyword, text and knn_vector fields."""
        body = index_body(1536)
        properties = body["mappings"]["properties"]

        assert body["settings"]["index"]["knn"] is True
        for field in ("doc_id", "chunk_id", "tags", "product_suite", "lesson_id", "transcript_id"):
            assert properties[field]["type"] == "keyword"
        for field in ("text", "title", "course_title"):
            assert properties[field]["type"] == "text"
        assert properties["embedding"]["dimension"] == 1536
        assert properties["embedding"]["method"]["name"] == "hnsw"
        assert properties["embedding"]["method"]["space_type"] == "cosinesimil"


# ============================================================================
# Readiness polling
# ============================================================================


class TestEnsureReady:
    """Test readiness polling with exponential backoff."""

    def test_ready_on_first_probe(self, writer, sleeps) -> None:
        """Should return after one probe without sleeping."""
        assert writer.ensure_ready(max_wait_ms=120_000) == 1
        assert sleeps == []

    def test_backs_off_until_ready(self, writer, client, sleeps) -> None:
        """Should sleep 2s then 3s before the third probe succeeds."""
        client.cluster.health.side_effect = [
            {"status": "red"},
            {"status": "red"},
            {"status": "yellow"},
        ]

        assert writer.ensure_ready(max_wait_ms=120_000) == 3
        assert sleeps == [2.0, 3.0]

    def test_waits_for_index_to_exist(self, writer, client) -> None:
        """Should keep polling while the index is missing."""
        client.indices.exists.side_effect = [False, True]

        assert writer.ensure_ready(max_wait_ms=120_000) == 2

    def test_cluster_only_readiness_skips_index_check(self, writer, client) -> None:
        """Should not require the index when require_index is False."""
        client.indices.exists.return_value = False

        assert writer.ensure_ready(max_wait_ms=120_000, require_index=False) == 1
        client.indices.exists.assert_not_called()

    def test_probe_exception_counts_as_not_ready(self, writer, client) -> None:
        """Should treat probe exceptions as 'not ready' and keep polling."""
        client.cluster.health.side_effect = [ConnectionError("refused"), {"status": "green"}]

        assert writer.ensure_ready(max_wait_ms=120_000) == 2

    def test_budget_exhausted_raises(self, writer, client, sleeps) -> None:
        """Should raise OPENSEARCH_NOT_READY without sleeping past a 1s budget."""
        client.cluster.health.return_value = {"status": "red"}

        with pytest.raises(SearchServiceNotReadyError) as exc_info:
            writer.ensure_ready(max_wait_ms=1000)

        assert exc_info.value.code == ErrorCode.OPENSEARCH_NOT_READY
        assert exc_info.value.retriable
        assert "OpenSearch not ready" in exc_info.value.message
        assert sleeps == []


# ============================================================================
# Index management and writes
# ============================================================================


class TestIndexOperations:
    """Test index creation, deletes and upserts."""

    def test_ensure_index_skips_existing(self, writer, client) -> None:
        """Should not create an index that already exists."""
        assert writer.ensure_index() is False
        client.indices.create.assert_not_called()

    def test_ensure_index_creates_missing(self, writer, client) -> None:
        """Should create the index with the k-NN schema."""
        client.indices.exists.return_value = False

        assert writer.ensure_index() is True
        client.indices.create.assert_called_once_with(index="brain-chunks", body=index_body(1536))

    def test_ensure_index_tolerates_concurrent_create(self, writer, client) -> None:
        """Should treat resource_already_exists_exception as success."""
        client.indices.exists.return_value = False
        client.indices.create.side_effect = RequestError(400, "resource_already_exists_exception", {})

        assert writer.ensure_index() is False

    def test_ensure_index_propagates_other_errors(self, writer, client) -> None:
        """Should re-raise unrelated create failures."""
        client.indices.exists.return_value = False
        client.indices.create.side_effect = RequestError(400, "mapper_parsing_exception", {})

        with pytest.raises(RequestError):
            writer.ensure_index()

    def test_delete_by_doc_id_returns_count(self, writer, client) -> None:
        """Should delete by doc_id term and return the deleted count."""
        client.delete_by_query.return_value = {"deleted": 7}

        assert writer.delete_by_doc_id("doc-1") == 7
        client.delete_by_query.assert_called_once_with(
            index="brain-chunks", body={"query": {"term": {"doc_id": "doc-1"}}}
        )

    def test_delete_by_doc_id_never_raises(self, writer, client) -> None:
        """Should return None when the delete fails."""
        client.delete_by_query.side_effect = ConnectionError("cluster unavailable")

        assert writer.delete_by_doc_id("doc-1") is None

    def test_upsert_uses_chunk_id(self, writer, client) -> None:
        """Should index by chunk_id and omit unset transcript fields."""
        entry = VectorEntry(
            doc_id="doc-1",
            chunk_id="doc-1_chunk_0",
            text="chunk text",
            title="Guide",
            tags=["onboarding"],
            embedding=[0.1, 0.2],
        )

        writer.upsert(entry)

        kwargs = client.index.call_args.kwargs
        assert kwargs["index"] == "brain-chunks"
        assert kwargs["id"] == "doc-1_chunk_0"
        assert kwargs["body"]["embedding"] == [0.1, 0.2]
        assert "lesson_id" not in kwargs["body"]
        assert "product_suite" not in kwargs["body"]
