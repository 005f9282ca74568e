"""
Document domain model for the ingestion pipeline.

Mirrors the brain_documents table item. Attribute names are the stored
names; storage_pointer is derived from s3_bucket/s3_key.

Dependencies: pydantic
System role: Document record and lifecycle states
"""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DocumentStatus(str, Enum):
    """Document ingestion lifecycle states."""

    QUEUED = "Queued"
    INGESTING = "Ingesting"
    READY = "Ready"
    FAILED = "Failed"
    EXPIRED = "Expired"


class SourceType(str, Enum):
    """Source kinds the extractor understands."""

    STORED_TEXT = "upload:text"
    STORED_PDF = "upload:pdf"
    FETCHED_URL = "url:web"


class StoragePointer(BaseModel):
    """Bucket/key location of an object in S3."""

    model_config = ConfigDict(frozen=True)

    bucket: str
    key: str


class BrainDocument(BaseModel):
    """Source artifact being ingested into the knowledge base."""

    model_config = ConfigDict(extra="ignore")

    doc_id: str
    # Unknown kinds stay raw strings; the extractor rejects them.
    source_type: SourceType | str
    status: DocumentStatus = DocumentStatus.QUEUED
    s3_bucket: str | None = None
    s3_key: str | None = None
    source_url: str | None = None
    title: str = ""
    tags: list[str] = Field(default_factory=list)
    product_suite: str | None = None
    product_concept: str | None = None
    chunk_count: int = 0
    extracted_char_count: int | None = None
    extracted_source: str | None = None
    snapshot_s3_key: str | None = None
    last_error_code: str | None = None
    last_error_message: str | None = None
    last_error_at: str | None = None
    last_ingest_at: str | None = None

    @field_validator("status", mode="before")
    @classmethod
    def _absent_status_is_queued(cls, value):
        return value or DocumentStatus.QUEUED

    @field_validator("source_type", mode="before")
    @classmethod
    def _known_source_type(cls, value):
        try:
            return SourceType(value)
        except ValueError:
            return value

    @field_validator("tags", mode="before")
    @classmethod
    def _tags_default(cls, value):
        if value is None:
            return []
        # DynamoDB string sets come back as python sets
        return sorted(value) if isinstance(value, (set, frozenset)) else value

    @field_validator("chunk_count", "extracted_char_count", mode="before")
    @classmethod
    def _coerce_decimal(cls, value):
        # boto3 returns numbers as Decimal
        return int(value) if value is not None else value

    @property
    def storage_pointer(self) -> StoragePointer | None:
        if not self.s3_key:
            return None
        return StoragePointer(bucket=self.s3_bucket or "", key=self.s3_key)

    @property
    def source_type_value(self) -> str:
        if isinstance(self.source_type, SourceType):
            return self.source_type.value
        return self.source_type

    @property
    def is_expired(self) -> bool:
        return self.status == DocumentStatus.EXPIRED


def utc_now_iso() -> str:
    """UTC timestamp in ISO-8601 with millisecond precision and a Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
