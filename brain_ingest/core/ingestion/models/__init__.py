"""
Models for the ingestion pipeline.

Exports: BrainDocument, DocumentStatus, SourceType, TextChunk, ChunkRecord,
VectorEntry, ExtractionResult, IngestionResult, Transcript, LessonContext,
DocumentIngestMessage, TranscriptIngestMessage
"""

from .chunk import (
    ChunkRecord,
    TextChunk,
    VectorEntry,
    document_chunk_id,
    transcript_chunk_id,
    transcript_doc_id,
)
from .document import BrainDocument, DocumentStatus, SourceType, StoragePointer, utc_now_iso
from .pipeline_result import ExtractionResult, IngestionResult
from .sqs_event import DocumentIngestMessage, TranscriptIngestMessage
from .transcript import LessonContext, Transcript

__all__ = [
    "BrainDocument",
    "DocumentStatus",
    "SourceType",
    "StoragePointer",
    "utc_now_iso",
    "TextChunk",
    "ChunkRecord",
    "VectorEntry",
    "document_chunk_id",
    "transcript_chunk_id",
    "transcript_doc_id",
    "ExtractionResult",
    "IngestionResult",
    "DocumentIngestMessage",
    "TranscriptIngestMessage",
    "Transcript",
    "LessonContext",
]
