"""
SQS event schema for ingestion messages.

Validates message bodies received from the ingestion queue. The body is
discriminated by its 'type' field: 'transcript' selects transcript
ingestion, anything else (including absent) selects document ingestion.

Dependencies: pydantic
System role: Data validation and contract definition
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class DocumentIngestMessage(BaseModel):
    """Queue message requesting (re)ingestion of one document."""

    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "example": {
                "doc_id": "doc_01HZX4Q6W8",
                "reindex": True,
                "mode": "url",
            }
        },
    )

    type: str | None = None
    doc_id: str = Field(..., min_length=1, description="Document key in the documents table")
    reindex: bool = Field(default=False, description="Delete existing vectors first")
    mode: str | None = Field(default=None, description="Informational, e.g. 'url'")


class TranscriptIngestMessage(BaseModel):
    """Queue message requesting ingestion of a lesson transcript."""

    model_config = ConfigDict(extra="ignore")

    type: Literal["transcript"] = "transcript"
    transcript_id: str = Field(..., min_length=1)
    lesson_id: str = Field(default="")

