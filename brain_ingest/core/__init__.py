"""
Core business logic module.

Contains the error taxonomy and the ingestion pipeline.
"""

from brain_ingest.core.exceptions import (
    BrainIngestException,
    EmbeddingError,
    ErrorCode,
    IngestionError,
    SearchServiceNotReadyError,
    classify_exception,
)

__all__ = [
    "BrainIngestException",
    "EmbeddingError",
    "ErrorCode",
    "IngestionError",
    "SearchServiceNotReadyError",
    "classify_exception",
]
