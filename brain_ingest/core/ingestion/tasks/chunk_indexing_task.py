"""
Per-chunk embed and index loop.

For each chunk in order: embed it, upsert its vector entry, then write its
chunk tracking row. A chunk that fails at any step is logged and skipped; the
loop carries on with the next chunk.

Dependencies: embedding_task, boundary.vdb.opensearch_index, boundary.db
System role: Shared final stage of document and transcript ingestion
"""

import logging
from typing import Any, Callable

from brain_ingest.boundary.db.document_repository import ChunkRepository
from brain_ingest.boundary.vdb.opensearch_index import OpenSearchIndexWriter
from brain_ingest.observability.log_utils import log_exception_with_context

from ..configs import estimate_tokens
from ..models import ChunkRecord, TextChunk, VectorEntry, utc_now_iso
from .embedding_task import EmbeddingTask

logger = logging.getLogger(__name__)


class ChunkIndexingTask:
    """Embed and index chunks one at a time, tolerating per-chunk failures."""

    def __init__(
        self,
        embedding_task: EmbeddingTask,
        index_writer: OpenSearchIndexWriter,
        chunk_repository: ChunkRepository | None = None,
    ) -> None:
        """
        Initialize indexing task.

        Args:
            embedding_task: Produces one vector per chunk
            index_writer: Target vector index
            chunk_repository: Chunk tracking rows (skipped when None)
        """
        self._embedding_task = embedding_task
        self._index_writer = index_writer
        self._chunk_repository = chunk_repository

    def index(
        self,
        doc_id: str,
        chunks: list[TextChunk],
        chunk_id_for: Callable[[int], str],
        entry_fields: dict[str, Any] | None = None,
        storage_key: str | None = None,
    ) -> int:
        """
        Embed, upsert and record each chunk.

        Args:
            doc_id: Owning document ID written on every entry
            chunks: Chunks in text order
            chunk_id_for: Maps a chunk ordinal to its deterministic ID
            entry_fields: Extra vector entry fields (title, tags, lesson metadata)
            storage_key: Source object key recorded as the chunk's source range

        Returns:
            int: Number of chunks indexed successfully
        """
        fields = entry_fields or {}
        success_count = 0

        for ordinal, chunk in enumerate(chunks):
            chunk_id = chunk_id_for(ordinal)
            try:
                embedding = self._embedding_task.embed(chunk.text)

                self._index_writer.upsert(
                    VectorEntry(
                        doc_id=doc_id,
                        chunk_id=chunk_id,
                        text=chunk.text,
                        embedding=embedding,
                        **fields,
                    )
                )

                if self._chunk_repository is not None:
                    self._chunk_repository.put(
                        ChunkRecord(
                            doc_id=doc_id,
                            chunk_id=chunk_id,
                            token_count=estimate_tokens(chunk.text),
                            embedding_model=self._embedding_task.model,
                            created_at=utc_now_iso(),
                            s3_pointer=(
                                f"{storage_key}:{chunk.start_offset}:{chunk.end_offset}"
                                if storage_key
                                else None
                            ),
                        )
                    )

                success_count += 1
            except Exception as e:
                log_exception_with_context(
                    logger,
                    "index - Failed to process chunk",
                    e,
                    doc_id=doc_id,
                    chunk_id=chunk_id,
                    ordinal=ordinal,
                )

        logger.info(
            "index - Indexed chunks",
            extra={"doc_id": doc_id, "indexed": success_count, "total": len(chunks)},
        )
        return success_count
