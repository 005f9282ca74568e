"""
Task modules for the ingestion pipeline.

Exports: TextExtractionTask, ChunkingTask, EmbeddingTask, ChunkIndexingTask
"""

from .chunk_indexing_task import ChunkIndexingTask
from .chunking_task import ChunkingTask
from .embedding_task import EmbeddingTask
from .text_extraction_task import TextExtractionTask, html_to_text

__all__ = [
    "TextExtractionTask",
    "html_to_text",
    "ChunkingTask",
    "EmbeddingTask",
    "ChunkIndexingTask",
]
