"""
Chunk and vector entry models for the ingestion pipeline.

TextChunk is the chunker's output (a window over extracted text).
ChunkRecord is the tracking row written per indexed chunk, and VectorEntry
is the document body written to the search index.

Dependencies: pydantic
System role: Data structures passed between chunking and indexing
"""

from pydantic import BaseModel, ConfigDict, Field


class TextChunk(BaseModel):
    """Trimmed slice of extracted text with its untrimmed window offsets."""

    model_config = ConfigDict(frozen=True)

    text: str
    start_offset: int = Field(ge=0)
    end_offset: int = Field(ge=0)


def document_chunk_id(doc_id: str, ordinal: int) -> str:
    """Deterministic chunk ID for a document chunk."""
    return f"{doc_id}_chunk_{ordinal}"


def transcript_doc_id(transcript_id: str) -> str:
    return f"transcript_{transcript_id}"


def transcript_chunk_id(transcript_id: str, ordinal: int) -> str:
    return f"transcript_{transcript_id}_chunk_{ordinal}"


class ChunkRecord(BaseModel):
    """Chunk tracking row stored in the chunks table."""

    doc_id: str
    chunk_id: str
    token_count: int
    embedding_model: str
    created_at: str
    s3_pointer: str | None = Field(
        default=None,
        description="source_range as '{storage_key}:{start}:{end}'",
    )


class VectorEntry(BaseModel):
    """Searchable unit held by the vector index."""

    doc_id: str
    chunk_id: str
    text: str
    title: str = ""
    tags: list[str] = Field(default_factory=list)
    product_suite: str | None = None
    product_concept: str | None = None
    embedding: list[float]

    # Transcript enrichment
    lesson_id: str | None = None
    course_id: str | None = None
    course_title: str | None = None
    transcript_id: str | None = None

    def to_index_body(self) -> dict:
        """Index document body; transcript fields are omitted when unset."""
        return self.model_dump(exclude_none=True)
