"""
Document ingestion orchestrator.

Drives one document through extraction, chunking, embedding and indexing
while keeping its status record in step:

    Queued/Ready/Failed -> Ingesting -> Ready | Failed

Expired documents are rejected before anything is written. Every
document-level failure is recorded on the document, reported as a telemetry
event and re-raised as an IngestionError so the queue consumer can decide
whether to redeliver.

Dependencies: All task modules, boundary repositories, configs, telemetry
System role: Pipeline orchestration (coordinates only)
"""

import logging
import time

from brain_ingest.boundary.aws.s3_client import S3ObjectStore
from brain_ingest.boundary.db.document_repository import (
    ChunkRepository,
    DocumentRepository,
    get_dynamodb_table,
)
from brain_ingest.boundary.vdb.opensearch_index import OpenSearchIndexWriter, build_opensearch_client
from brain_ingest.core.exceptions import ErrorCode, IngestionError, classify_exception

from .configs import IngestionLimits, IngestionSettings, get_ingestion_settings
from .models import BrainDocument, IngestionResult, document_chunk_id
from .snapshots import S3SnapshotStore
from .tasks import ChunkIndexingTask, ChunkingTask, EmbeddingTask, TextExtractionTask
from .telemetry import (
    INGEST_COMPLETED,
    INGEST_FAILED,
    INGEST_STARTED,
    DynamoEventEmitter,
    EventEmitter,
)

logger = logging.getLogger(__name__)


def build_embedding_task(settings: IngestionSettings) -> EmbeddingTask:
    api_key = settings.openai_api_key.get_secret_value() if settings.openai_api_key else None
    return EmbeddingTask(
        model=settings.openai_embeddings_model,
        timeout_ms=settings.embedding_timeout_ms,
        api_key=api_key,
    )


def build_index_writer(settings: IngestionSettings) -> OpenSearchIndexWriter:
    client = build_opensearch_client(
        endpoint=settings.opensearch_endpoint,
        region=settings.aws_region,
        service=settings.opensearch_service,
        timeout_s=settings.opensearch_request_timeout_s,
    )
    return OpenSearchIndexWriter(
        client,
        index_name=settings.opensearch_index_name,
        dimension=settings.embedding_dimension,
    )


class DocumentIngestionPipeline:
    """Orchestrate document ingestion: extract -> chunk -> embed+index -> status."""

    def __init__(
        self,
        settings: IngestionSettings | None = None,
        document_repository: DocumentRepository | None = None,
        chunk_repository: ChunkRepository | None = None,
        extraction_task: TextExtractionTask | None = None,
        chunking_task: ChunkingTask | None = None,
        embedding_task: EmbeddingTask | None = None,
        index_writer: OpenSearchIndexWriter | None = None,
        event_emitter: EventEmitter | None = None,
        limits: IngestionLimits | None = None,
    ) -> None:
        """
        Initialize pipeline. Collaborators not passed in are built from settings.

        Args:
            settings: Worker settings (loaded from environment if None)
            document_repository: Document status store
            chunk_repository: Chunk tracking rows
            extraction_task: Text extractor
            chunking_task: Chunker
            embedding_task: Embedding client
            index_writer: Vector index writer
            event_emitter: Lifecycle telemetry sink
            limits: Per-document safety limits
        """
        self._settings = settings or get_ingestion_settings()
        s = self._settings
        region = s.aws_region

        self._limits = limits or s.ingestion_limits()
        self._documents = document_repository or DocumentRepository(
            get_dynamodb_table(s.ddb_table_brain_documents, region)
        )
        self._chunks = chunk_repository or ChunkRepository(
            get_dynamodb_table(s.ddb_table_brain_chunks, region)
        )
        if extraction_task is None:
            object_store = S3ObjectStore(bucket=s.s3_bucket, region=region)
            extraction_task = TextExtractionTask(
                object_store,
                snapshot_store=S3SnapshotStore(object_store),
                min_text_length=self._limits.min_extracted_text_length,
                fetch_timeout_ms=s.url_fetch_timeout_ms,
                user_agent=s.user_agent,
            )
        self._extraction_task = extraction_task
        self._chunking_task = chunking_task or ChunkingTask(s.chunking_config())
        self._index_writer = index_writer or build_index_writer(s)
        self._indexing_task = ChunkIndexingTask(
            embedding_task or build_embedding_task(s),
            self._index_writer,
            self._chunks,
        )
        self._events = event_emitter or DynamoEventEmitter(
            get_dynamodb_table(s.ddb_table_events, region)
        )

    def process(self, doc_id: str, reindex: bool = False) -> IngestionResult:
        """
        Ingest one document.

        Args:
            doc_id: Document key
            reindex: Delete the previous pass's vectors and chunk rows first

        Returns:
            IngestionResult: Chunk counts and timings

        Raises:
            IngestionError: Any document-level failure (already recorded on the
                document unless the document was missing or expired)
        """
        start_time = time.perf_counter()

        document = self._documents.get(doc_id)
        if document is None:
            raise IngestionError(ErrorCode.PROCESSING_ERROR, f"Document {doc_id} not found")
        if document.is_expired:
            logger.warning("process - Skipping expired document", extra={"doc_id": doc_id})
            raise IngestionError(
                ErrorCode.CONFIGURATION_ERROR,
                f"Document {doc_id} is expired and cannot be ingested",
            )

        self._events.emit(
            INGEST_STARTED,
            doc_id,
            {"source_type": document.source_type_value, "reindex": reindex},
        )

        if reindex:
            logger.info("process - Reindex requested, deleting previous pass", extra={"doc_id": doc_id})
            self._index_writer.delete_by_doc_id(doc_id)
            self._chunks.delete_for_document(doc_id)

        try:
            self._documents.mark_ingesting(doc_id)
            result = self._ingest(document, start_time)
        except Exception as e:
            error = classify_exception(e)
            duration_ms = _elapsed_ms(start_time)
            self._record_failure(doc_id, error)
            self._events.emit(
                INGEST_FAILED,
                doc_id,
                {
                    "error_code": error.code.value,
                    "error_message": error.truncated_message,
                    "duration_ms": round(duration_ms),
                },
            )
            logger.error(
                "process - Ingestion failed: %s: %s",
                error.code.value,
                error.message,
                extra={"doc_id": doc_id, "retriable": error.retriable},
            )
            if error is e:
                raise
            raise error from e

        self._events.emit(
            INGEST_COMPLETED,
            doc_id,
            {
                "chunk_count": result.chunk_count,
                "total_chunks": result.total_chunks,
                "duration_ms": round(result.processing_time_ms),
                "embed_duration_ms": round(result.embed_duration_ms),
            },
        )
        logger.info(
            "process - Document ingested",
            extra={
                "doc_id": doc_id,
                "chunk_count": result.chunk_count,
                "total_chunks": result.total_chunks,
                "processing_time_ms": round(result.processing_time_ms, 1),
            },
        )
        return result

    def _ingest(self, document: BrainDocument, start_time: float) -> IngestionResult:
        doc_id = document.doc_id

        extraction = self._extraction_task.extract(document)
        storage_key = document.s3_key
        if extraction.snapshot_s3_key and not storage_key:
            self._documents.set_storage_pointer(doc_id, extraction.snapshot_s3_key)
            storage_key = extraction.snapshot_s3_key

        chunks = self._chunking_task.chunk(extraction.text)
        if not chunks:
            raise IngestionError(ErrorCode.PROCESSING_ERROR, "No chunks produced from extracted text")
        self._check_limits(chunks)

        self._index_writer.ensure_ready(self._limits.opensearch_ready_timeout_ms)
        self._index_writer.ensure_index()

        embed_started = time.perf_counter()
        chunk_count = self._indexing_task.index(
            doc_id,
            chunks,
            chunk_id_for=lambda ordinal: document_chunk_id(doc_id, ordinal),
            entry_fields={
                "title": document.title,
                "tags": document.tags,
                "product_suite": document.product_suite,
                "product_concept": document.product_concept,
            },
            storage_key=storage_key,
        )
        embed_duration_ms = _elapsed_ms(embed_started)

        self._documents.mark_ready(doc_id, chunk_count, extraction)

        return IngestionResult(
            doc_id=doc_id,
            chunk_count=chunk_count,
            total_chunks=len(chunks),
            processing_time_ms=_elapsed_ms(start_time),
            embed_duration_ms=embed_duration_ms,
        )

    def _check_limits(self, chunks) -> None:
        limits = self._limits
        if len(chunks) > limits.max_chunks_per_doc:
            raise IngestionError(
                ErrorCode.DOCUMENT_TOO_LARGE,
                f"Document too large: {len(chunks)} chunks exceeds limit of "
                f"{limits.max_chunks_per_doc}",
                {"chunk_count": len(chunks)},
            )

        total_tokens = sum(self._chunking_task.estimate_tokens(chunk.text) for chunk in chunks)
        if total_tokens > limits.max_total_tokens_per_doc:
            raise IngestionError(
                ErrorCode.DOCUMENT_TOO_LARGE,
                f"Document too large: {total_tokens} estimated tokens exceeds limit of "
                f"{limits.max_total_tokens_per_doc}",
                {"total_tokens": total_tokens},
            )

    def _record_failure(self, doc_id: str, error: IngestionError) -> None:
        try:
            self._documents.mark_failed(doc_id, error.code, error.truncated_message)
        except Exception as e:
            logger.error(
                "_record_failure - Failed to update status to FAILED: %s: %s",
                type(e).__name__,
                e,
                extra={"doc_id": doc_id},
            )


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000
