"""
Result models for the ingestion pipeline.

Dependencies: pydantic
System role: Return types for extraction and pipeline runs
"""

from pydantic import BaseModel, Field


class ExtractionResult(BaseModel):
    """Raw text produced by the text extractor."""

    text: str
    extracted_source: str = Field(description="Extraction method: text, pypdf, html-to-text")
    char_count: int
    snapshot_s3_key: str | None = Field(
        default=None, description="Text snapshot key for fetched URLs"
    )


class IngestionResult(BaseModel):
    """Outcome of a successful ingestion pass."""

    doc_id: str = Field(description="Document (or transcript pseudo-document) identifier")
    chunk_count: int = Field(description="Chunks embedded and indexed successfully")
    total_chunks: int = Field(description="Chunks produced by the chunker")
    processing_time_ms: float = Field(description="Total processing time in milliseconds")
    embed_duration_ms: float = Field(default=0.0, description="Time spent embedding and indexing")

    @property
    def failed_chunks(self) -> int:
        return self.total_chunks - self.chunk_count
