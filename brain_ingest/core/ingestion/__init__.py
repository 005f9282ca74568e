"""
Knowledge-base ingestion pipeline.

Entry points live in lambda_handler (SQS worker) and index_bootstrap (CLI).
Import pipelines from their own modules.
"""

from .configs import ChunkingConfig, IngestionLimits, IngestionSettings, get_ingestion_settings

__all__ = [
    "ChunkingConfig",
    "IngestionLimits",
    "IngestionSettings",
    "get_ingestion_settings",
]
