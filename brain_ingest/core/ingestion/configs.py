"""
Configuration settings for the ingestion worker.

Provides environment-based configuration for extraction, chunking, embedding,
indexing and persistence. Field names match the Lambda environment variables
(case-insensitive), so MAX_CHUNKS_PER_DOC maps to max_chunks_per_doc.

Size limits are handed to the pipeline as immutable ChunkingConfig and
IngestionLimits values rather than read from module globals.

Dependencies: pydantic, pydantic_settings
System role: Centralized pipeline configuration
"""

from functools import lru_cache
import math

from pydantic import BaseModel, ConfigDict, Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

CHARS_PER_TOKEN = 4


def estimate_tokens(text: str, chars_per_token: int = CHARS_PER_TOKEN) -> int:
    """Rough token estimate (~4 characters per token)."""
    return math.ceil(len(text) / chars_per_token)


class ChunkingConfig(BaseModel):
    """Immutable chunk size constants, in estimated tokens."""

    model_config = ConfigDict(frozen=True)

    target_tokens: int = Field(default=600, gt=0)
    overlap_tokens: int = Field(default=100, ge=0)
    max_tokens: int = Field(default=800, gt=0)
    chars_per_token: int = Field(default=CHARS_PER_TOKEN, gt=0)

    @model_validator(mode="after")
    def _check_sizes(self) -> "ChunkingConfig":
        if self.overlap_tokens >= self.target_tokens:
            raise ValueError("overlap_tokens must be smaller than target_tokens")
        if self.target_tokens > self.max_tokens:
            raise ValueError("target_tokens cannot exceed max_tokens")
        return self

    @property
    def target_chars(self) -> int:
        return self.target_tokens * self.chars_per_token

    @property
    def overlap_chars(self) -> int:
        return self.overlap_tokens * self.chars_per_token

    @property
    def max_chars(self) -> int:
        return self.max_tokens * self.chars_per_token


class IngestionLimits(BaseModel):
    """Immutable safety limits applied per document."""

    model_config = ConfigDict(frozen=True)

    max_chunks_per_doc: int = Field(default=200, gt=0)
    max_total_tokens_per_doc: int = Field(default=120_000, gt=0)
    min_extracted_text_length: int = Field(default=100, ge=0)
    opensearch_ready_timeout_ms: int = Field(default=120_000, gt=0)


class IngestionSettings(BaseSettings):
    """Settings for the knowledge-base ingestion worker."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    aws_region: str = Field(default="us-east-1", description="AWS region for all clients")
    log_level: str = Field(default="INFO", description="Logging level")

    # Object storage
    s3_bucket: str = Field(default="", description="Bucket for raw documents and snapshots")

    # DynamoDB tables
    ddb_table_brain_documents: str = Field(default="brain_documents")
    ddb_table_brain_chunks: str = Field(default="brain_chunks")
    ddb_table_events: str = Field(default="events")
    lms_transcripts_table: str = Field(default="lms_transcripts")
    lms_lessons_table: str = Field(default="lms_lessons")
    lms_courses_table: str = Field(default="lms_courses")

    # OpenSearch
    opensearch_endpoint: str = Field(default="", description="Collection or domain endpoint")
    opensearch_index_name: str = Field(default="brain-chunks")
    opensearch_service: str = Field(
        default="aoss",
        description="SigV4 service name: 'aoss' for Serverless, 'es' for managed domains",
    )
    opensearch_request_timeout_s: int = Field(default=30)
    opensearch_ready_timeout_ms: int = Field(default=120_000)

    # Embeddings
    openai_embeddings_model: str = Field(default="text-embedding-3-small")
    embedding_dimension: int = Field(default=1536, description="Vector size of the index field")
    embedding_timeout_ms: int = Field(default=30_000)
    openai_api_key: SecretStr | None = Field(default=None)
    openai_api_key_secret_arn: str = Field(
        default="",
        description="Secrets Manager ARN holding the OpenAI key (used when OPENAI_API_KEY is unset)",
    )

    # Chunking
    target_chunk_tokens: int = Field(default=600)
    chunk_overlap_tokens: int = Field(default=100)
    max_chunk_tokens: int = Field(default=800)

    # Safety limits
    max_chunks_per_doc: int = Field(default=200)
    max_total_tokens_per_doc: int = Field(default=120_000)
    min_extracted_text_length: int = Field(default=100)

    # URL fetching
    url_fetch_timeout_ms: int = Field(default=30_000)
    user_agent: str = Field(default="Mozilla/5.0 (compatible; EnablementPortal/1.0)")

    def chunking_config(self) -> ChunkingConfig:
        """Build the immutable chunking configuration."""
        return ChunkingConfig(
            target_tokens=self.target_chunk_tokens,
            overlap_tokens=self.chunk_overlap_tokens,
            max_tokens=self.max_chunk_tokens,
        )

    def ingestion_limits(self) -> IngestionLimits:
        """Build the immutable per-document safety limits."""
        return IngestionLimits(
            max_chunks_per_doc=self.max_chunks_per_doc,
            max_total_tokens_per_doc=self.max_total_tokens_per_doc,
            min_extracted_text_length=self.min_extracted_text_length,
            opensearch_ready_timeout_ms=self.opensearch_ready_timeout_ms,
        )


@lru_cache
def get_ingestion_settings() -> IngestionSettings:
    """
    Get cached ingestion settings instance.

    Returns:
        IngestionSettings: Singleton settings loaded from environment
    """
    return IngestionSettings()
