"""
Exception hierarchy for knowledge-base ingestion.

Every document-level failure is an IngestionError carrying an ErrorCode.
The code decides whether the queue should redeliver the message and is
persisted on the document record for operator visibility.

Dependencies: None (pure domain layer)
System role: Centralized error taxonomy and classification
"""

from enum import Enum
from typing import Any

MAX_ERROR_MESSAGE_LENGTH = 500


class ErrorCode(str, Enum):
    """Failure classifications recorded as last_error_code."""

    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    UNSUPPORTED_SOURCE_TYPE = "UNSUPPORTED_SOURCE_TYPE"
    PDF_TEXT_EXTRACTION_FAILED = "PDF_TEXT_EXTRACTION_FAILED"
    DOCUMENT_TOO_LARGE = "DOCUMENT_TOO_LARGE"
    OPENSEARCH_NOT_READY = "OPENSEARCH_NOT_READY"
    TIMEOUT = "TIMEOUT"
    OPENAI_API_ERROR = "OPENAI_API_ERROR"
    PROCESSING_ERROR = "PROCESSING_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"

    @property
    def retriable(self) -> bool:
        """Whether redelivering the message can succeed without user action."""
        return self not in _NON_RETRIABLE


_NON_RETRIABLE = frozenset(
    {
        ErrorCode.CONFIGURATION_ERROR,
        ErrorCode.UNSUPPORTED_SOURCE_TYPE,
        ErrorCode.PDF_TEXT_EXTRACTION_FAILED,
        ErrorCode.DOCUMENT_TOO_LARGE,
    }
)


class BrainIngestException(Exception):
    """Base exception for all ingestion errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class IngestionError(BrainIngestException):
    """Classified ingestion failure."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize ingestion error.

        Args:
            code: Failure classification
            message: Human-readable error message
            details: Additional context
        """
        self.code = ErrorCode(code)
        super().__init__(message, details)

    @property
    def retriable(self) -> bool:
        return self.code.retriable

    @property
    def truncated_message(self) -> str:
        """Message capped for the document record."""
        return self.message[:MAX_ERROR_MESSAGE_LENGTH]


class SearchServiceNotReadyError(IngestionError):
    """Raised when the search service is not ready within the wait budget."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.OPENSEARCH_NOT_READY, message, details)


class EmbeddingError(IngestionError):
    """Raised when the embedding provider times out or fails."""


def classify_exception(exc: BaseException) -> IngestionError:
    """
    Map an arbitrary exception onto the error taxonomy.

    Already-classified errors pass through unchanged. Otherwise the exception
    type is inspected first, then the message content.

    Args:
        exc: Exception raised somewhere in the pipeline

    Returns:
        IngestionError: Classified error wrapping the original message
    """
    if isinstance(exc, IngestionError):
        return exc

    message = str(exc) or type(exc).__name__
    lowered = message.lower()

    if isinstance(exc, TimeoutError) or type(exc).__name__.endswith("TimeoutError"):
        code = ErrorCode.TIMEOUT
    elif "opensearch not ready" in lowered:
        code = ErrorCode.OPENSEARCH_NOT_READY
    elif "timeout" in lowered or "timed out" in lowered:
        code = ErrorCode.TIMEOUT
    elif "openai" in lowered or "ai provider" in lowered:
        code = ErrorCode.OPENAI_API_ERROR
    else:
        code = ErrorCode.PROCESSING_ERROR

    return IngestionError(code, message, {"error_type": type(exc).__name__})
