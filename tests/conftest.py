"""
Shared test fixtures and configuration for entire test suite.

Provides: In-memory fakes for the document store, chunk store, vector index,
object store and telemetry sink, plus a pipeline factory wired to them.
Dependencies: pytest
System role: Test infrastructure and fixture management
"""

from unittest.mock import MagicMock

import pytest

from brain_ingest.boundary.aws.s3_client import S3ObjectError
from brain_ingest.core.exceptions import ErrorCode, SearchServiceNotReadyError
from brain_ingest.core.ingestion.configs import ChunkingConfig, IngestionLimits, IngestionSettings
from brain_ingest.core.ingestion.document_pipeline import DocumentIngestionPipeline
from brain_ingest.core.ingestion.models import BrainDocument, DocumentStatus, utc_now_iso
from brain_ingest.core.ingestion.snapshots import S3SnapshotStore
from brain_ingest.core.ingestion.tasks import ChunkingTask, TextExtractionTask


class FakeObjectStore:
    """Dict-backed stand-in for S3ObjectStore."""

    def __init__(self, bucket: str = "test-bucket", objects: dict | None = None) -> None:
        self.bucket = bucket
        self.objects: dict[str, bytes] = dict(objects or {})

    def get_bytes(self, key: str, bucket: str | None = None) -> bytes:
        if key not in self.objects:
            raise S3ObjectError(f"File not found in S3: {key}", key)
        return self.objects[key]

    def put_object(self, key: str, body, content_type: str) -> str:
        self.objects[key] = body.encode("utf-8") if isinstance(body, str) else body
        return key


class FakeDocumentRepository:
    """Dict-backed stand-in for DocumentRepository that records every write."""

    def __init__(self, documents: list[BrainDocument] | None = None) -> None:
        self.documents = {doc.doc_id: doc for doc in documents or []}
        self.writes: list[tuple[str, str]] = []

    def get(self, doc_id: str) -> BrainDocument | None:
        return self.documents.get(doc_id)

    def _apply(self, doc_id: str, operation: str, **changes) -> None:
        self.writes.append((operation, doc_id))
        self.documents[doc_id] = self.documents[doc_id].model_copy(update=changes)

    def mark_ingesting(self, doc_id: str) -> None:
        self._apply(doc_id, "mark_ingesting", status=DocumentStatus.INGESTING)

    def set_storage_pointer(self, doc_id: str, s3_key: str, s3_bucket: str | None = None) -> None:
        changes = {"s3_key": s3_key}
        if s3_bucket:
            changes["s3_bucket"] = s3_bucket
        self._apply(doc_id, "set_storage_pointer", **changes)

    def mark_ready(self, doc_id: str, chunk_count: int, extraction) -> None:
        changes = {
            "status": DocumentStatus.READY,
            "chunk_count": chunk_count,
            "last_error_code": None,
            "last_error_message": None,
            "last_error_at": None,
            "last_ingest_at": utc_now_iso(),
            "extracted_char_count": extraction.char_count,
            "extracted_source": extraction.extracted_source,
        }
        if extraction.snapshot_s3_key:
            changes["snapshot_s3_key"] = extraction.snapshot_s3_key
        self._apply(doc_id, "mark_ready", **changes)

    def mark_failed(self, doc_id: str, error_code: ErrorCode, error_message: str) -> None:
        self._apply(
            doc_id,
            "mark_failed",
            status=DocumentStatus.FAILED,
            last_error_code=ErrorCode(error_code).value,
            last_error_message=error_message[:500],
            last_error_at=utc_now_iso(),
            chunk_count=0,
        )


class FakeChunkRepository:
    """Chunk rows keyed by (doc_id, chunk_id)."""

    def __init__(self) -> None:
        self.records: dict[tuple[str, str], object] = {}

    def put(self, record) -> None:
        self.records[(record.doc_id, record.chunk_id)] = record

    def delete_for_document(self, doc_id: str) -> int:
        keys = [key for key in self.records if key[0] == doc_id]
        for key in keys:
            del self.records[key]
        return len(keys)

    def for_document(self, doc_id: str) -> list:
        return [record for (owner, _), record in sorted(self.records.items()) if owner == doc_id]


class FakeIndexWriter:
    """In-memory vector index keyed by chunk_id."""

    def __init__(self, ready: bool = True) -> None:
        self.index_name = "brain-chunks"
        self.ready = ready
        self.entries: dict[str, object] = {}
        self.ready_calls: list[int] = []
        self.index_created = False
        self.fail_upsert_for: set[str] = set()

    def ensure_ready(self, max_wait_ms: int = 120_000, require_index: bool = True) -> int:
        self.ready_calls.append(max_wait_ms)
        if not self.ready:
            raise SearchServiceNotReadyError(f"OpenSearch not ready after {max_wait_ms}ms (1 attempts)")
        return 1

    def ensure_index(self) -> bool:
        created = not self.index_created
        self.index_created = True
        return created

    def delete_by_doc_id(self, doc_id: str) -> int | None:
        stale = [chunk_id for chunk_id, entry in self.entries.items() if entry.doc_id == doc_id]
        for chunk_id in stale:
            del self.entries[chunk_id]
        return len(stale)

    def upsert(self, entry) -> None:
        if entry.chunk_id in self.fail_upsert_for:
            raise ConnectionError(f"index write failed for {entry.chunk_id}")
        self.entries[entry.chunk_id] = entry

    def for_document(self, doc_id: str) -> list:
        return [entry for _, entry in sorted(self.entries.items()) if entry.doc_id == doc_id]


class FakeEmbeddingTask:
    """Deterministic embeddings; texts containing a marker in fail_on raise."""

    def __init__(self, fail_on: tuple[str, ...] = ()) -> None:
        self.model = "fake-embedding-model"
        self.fail_on = fail_on
        self.calls: list[str] = []

    def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if any(marker in text for marker in self.fail_on):
            raise RuntimeError("OpenAI API error: rate limited")
        return [float(len(text)), 0.5, 1.0]


class RecordingEventEmitter:
    """Collects emitted telemetry events."""

    def __init__(self) -> None:
        self.events: list[tuple[str, str, dict]] = []

    def emit(self, event_name: str, doc_id: str, metadata: dict | None = None) -> None:
        self.events.append((event_name, doc_id, metadata or {}))

    @property
    def names(self) -> list[str]:
        return [name for name, _, _ in self.events]


def make_document(doc_id: str = "doc-1", **fields) -> BrainDocument:
    """Build a stored-text document record with sensible defaults."""
    data = {
        "doc_id": doc_id,
        "source_type": "upload:text",
        "status": "Queued",
        "s3_bucket": "test-bucket",
        "s3_key": f"brain/{doc_id}/source.txt",
        "title": "Onboarding Guide",
        "tags": ["onboarding"],
        "product_suite": "Platform",
        "product_concept": "Setup",
    }
    data.update(fields)
    return BrainDocument.model_validate(data)


def sentence_text(sentences: int) -> str:
    """Text made of numbered sentences, 53 characters each including the separator."""
    return " ".join(f"Sentence number {i:04d} describes one enablement topic." for i in range(sentences))


@pytest.fixture
def small_chunking_config() -> ChunkingConfig:
    """Chunking config with a 200-char target and 40-char overlap."""
    return ChunkingConfig(target_tokens=50, overlap_tokens=10, max_tokens=80)


@pytest.fixture
def test_settings() -> IngestionSettings:
    """Settings isolated from the environment's .env file."""
    return IngestionSettings(_env_file=None, s3_bucket="test-bucket")


@pytest.fixture
def object_store() -> FakeObjectStore:
    return FakeObjectStore()


@pytest.fixture
def document_repository() -> FakeDocumentRepository:
    return FakeDocumentRepository()


@pytest.fixture
def chunk_repository() -> FakeChunkRepository:
    return FakeChunkRepository()


@pytest.fixture
def index_writer() -> FakeIndexWriter:
    return FakeIndexWriter()


@pytest.fixture
def embedding_task() -> FakeEmbeddingTask:
    return FakeEmbeddingTask()


@pytest.fixture
def event_emitter() -> RecordingEventEmitter:
    return RecordingEventEmitter()


@pytest.fixture
def http_client() -> MagicMock:
    """Placeholder HTTP client; URL tests pass a MockTransport client instead."""
    return MagicMock()


@pytest.fixture
def make_pipeline(
    test_settings,
    object_store,
    document_repository,
    chunk_repository,
    index_writer,
    embedding_task,
    event_emitter,
    http_client,
):
    """
    Factory for a DocumentIngestionPipeline wired to the in-memory fakes.

    Keyword arguments override individual collaborators or limits.
    """

    def _make(**overrides) -> DocumentIngestionPipeline:
        limits = overrides.pop("limits", IngestionLimits())
        extraction_task = overrides.pop(
            "extraction_task",
            TextExtractionTask(
                object_store,
                snapshot_store=S3SnapshotStore(object_store),
                http_client=overrides.pop("http_client", http_client),
                min_text_length=limits.min_extracted_text_length,
            ),
        )
        components = {
            "settings": test_settings,
            "document_repository": document_repository,
            "chunk_repository": chunk_repository,
            "extraction_task": extraction_task,
            "chunking_task": ChunkingTask(overrides.pop("chunking_config", None)),
            "embedding_task": embedding_task,
            "index_writer": index_writer,
            "event_emitter": event_emitter,
            "limits": limits,
        }
        components.update(overrides)
        return DocumentIngestionPipeline(**components)

    return _make
