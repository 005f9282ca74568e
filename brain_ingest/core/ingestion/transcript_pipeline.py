"""
Lesson transcript ingestion.

Chunks a stored transcript and indexes it as the pseudo-document
transcript_{transcript_id}, enriched with lesson and course titles.
Transcripts have no status record: failures are raised to the caller.

Dependencies: tasks, boundary.db.lms_repository, configs
System role: Transcript branch of the ingestion worker
"""

import logging
import time

from brain_ingest.boundary.db.document_repository import ChunkRepository, get_dynamodb_table
from brain_ingest.boundary.db.lms_repository import LmsRepository
from brain_ingest.boundary.vdb.opensearch_index import OpenSearchIndexWriter
from brain_ingest.core.exceptions import ErrorCode, IngestionError

from .configs import IngestionLimits, IngestionSettings, get_ingestion_settings
from .document_pipeline import build_embedding_task, build_index_writer
from .models import IngestionResult, transcript_chunk_id, transcript_doc_id
from .tasks import ChunkIndexingTask, ChunkingTask, EmbeddingTask

logger = logging.getLogger(__name__)


class TranscriptIngestionPipeline:
    """Orchestrate transcript ingestion: load -> chunk -> embed+index."""

    def __init__(
        self,
        settings: IngestionSettings | None = None,
        lms_repository: LmsRepository | None = None,
        chunk_repository: ChunkRepository | None = None,
        chunking_task: ChunkingTask | None = None,
        embedding_task: EmbeddingTask | None = None,
        index_writer: OpenSearchIndexWriter | None = None,
        limits: IngestionLimits | None = None,
    ) -> None:
        """
        Initialize pipeline. Collaborators not passed in are built from settings.

        Args:
            settings: Worker settings (loaded from environment if None)
            lms_repository: Transcript, lesson and course lookups
            chunk_repository: Chunk tracking rows
            chunking_task: Chunker
            embedding_task: Embedding client
            index_writer: Vector index writer
            limits: Per-document safety limits
        """
        s = settings or get_ingestion_settings()
        region = s.aws_region

        self._limits = limits or s.ingestion_limits()
        self._lms = lms_repository or LmsRepository(
            get_dynamodb_table(s.lms_transcripts_table, region),
            get_dynamodb_table(s.lms_lessons_table, region),
            get_dynamodb_table(s.lms_courses_table, region),
        )
        self._chunking_task = chunking_task or ChunkingTask(s.chunking_config())
        self._indexing_task = ChunkIndexingTask(
            embedding_task or build_embedding_task(s),
            index_writer or build_index_writer(s),
            chunk_repository or ChunkRepository(get_dynamodb_table(s.ddb_table_brain_chunks, region)),
        )

    def process(self, transcript_id: str, lesson_id: str = "") -> IngestionResult:
        """
        Ingest one transcript.

        Args:
            transcript_id: Transcript key
            lesson_id: Lesson the transcript belongs to (may be empty)

        Returns:
            IngestionResult: Chunk counts and timings

        Raises:
            IngestionError: Transcript missing, too short or produced no chunks
        """
        start_time = time.perf_counter()
        logger.info(
            "process - Processing transcript",
            extra={"transcript_id": transcript_id, "lesson_id": lesson_id},
        )

        transcript = self._lms.get_transcript(transcript_id)
        if transcript is None:
            raise IngestionError(ErrorCode.PROCESSING_ERROR, f"Transcript {transcript_id} not found")

        text = transcript.full_text
        if len(text) < self._limits.min_extracted_text_length:
            raise IngestionError(
                ErrorCode.PROCESSING_ERROR,
                f"Transcript {transcript_id} has insufficient text ({len(text)} chars)",
            )

        context = self._lms.resolve_lesson_context(lesson_id)

        chunks = self._chunking_task.chunk(text)
        if not chunks:
            raise IngestionError(
                ErrorCode.PROCESSING_ERROR, f"No chunks created for transcript {transcript_id}"
            )

        doc_id = transcript_doc_id(transcript_id)
        embed_started = time.perf_counter()
        chunk_count = self._indexing_task.index(
            doc_id,
            chunks,
            chunk_id_for=lambda ordinal: transcript_chunk_id(transcript_id, ordinal),
            entry_fields={
                "title": context.lesson_title,
                "tags": [],
                "lesson_id": lesson_id,
                "course_id": context.course_id,
                "course_title": context.course_title,
                "transcript_id": transcript_id,
            },
        )
        finished = time.perf_counter()

        logger.info(
            "process - Transcript indexed",
            extra={"transcript_id": transcript_id, "indexed": chunk_count, "total": len(chunks)},
        )
        return IngestionResult(
            doc_id=doc_id,
            chunk_count=chunk_count,
            total_chunks=len(chunks),
            processing_time_ms=(finished - start_time) * 1000,
            embed_duration_ms=(finished - embed_started) * 1000,
        )
