"""
Lambda handler for SQS-triggered knowledge-base ingestion.

Each record is either a document request ({"doc_id", "reindex", "mode"}) or
a transcript request ({"type": "transcript", "transcript_id", "lesson_id"}).
Records are processed one at a time. The handler returns an SQS partial batch
response so only failed records are redelivered:

- retriable document failures, unexpected errors and transcript failures
  are reported in batchItemFailures
- non-retriable document failures are acknowledged (the document record
  already carries the error)
- unparseable messages are logged and acknowledged

Environment variables: see IngestionSettings (S3_BUCKET and
OPENSEARCH_ENDPOINT are required).

Dependencies: lambda_utils, document_pipeline, transcript_pipeline
System role: Lambda entry point for async ingestion
"""

import logging
from typing import Any, Dict

from dotenv import load_dotenv

from brain_ingest.core.exceptions import IngestionError
from brain_ingest.observability import configure_logging, log_with_context

from .configs import get_ingestion_settings
from .document_pipeline import DocumentIngestionPipeline
from .lambda_utils import MessageParseError, configure_secrets, parse_ingest_message, validate_environment
from .models import TranscriptIngestMessage
from .transcript_pipeline import TranscriptIngestionPipeline

# Load environment variables from .env if present
load_dotenv()

logger = logging.getLogger(__name__)


def _cold_start() -> None:
    """Configure logging and secrets once per execution environment."""
    if getattr(handler, "_initialized", False):
        return
    configure_secrets()
    configure_logging(get_ingestion_settings().log_level)
    handler._initialized = True


def _document_pipeline() -> DocumentIngestionPipeline:
    if not hasattr(handler, "_pipeline"):
        handler._pipeline = DocumentIngestionPipeline()
    return handler._pipeline


def _transcript_pipeline() -> TranscriptIngestionPipeline:
    if not hasattr(handler, "_transcript_pipeline"):
        handler._transcript_pipeline = TranscriptIngestionPipeline()
    return handler._transcript_pipeline


def _process_record(record: Dict[str, Any]) -> bool:
    """
    Process one SQS record.

    Returns:
        bool: True when the record should be redelivered
    """
    message_id = record.get("messageId")
    try:
        message = parse_ingest_message(record)
    except MessageParseError as e:
        logger.warning("%s:handler - MessageParseError: %s", __name__, e, extra={"message_id": message_id})
        return False

    if isinstance(message, TranscriptIngestMessage):
        try:
            result = _transcript_pipeline().process(message.transcript_id, message.lesson_id)
        except Exception as e:
            logger.error(
                "%s:handler - Transcript failed: %s: %s",
                __name__,
                type(e).__name__,
                e,
                extra={"transcript_id": message.transcript_id},
            )
            return True
    else:
        try:
            result = _document_pipeline().process(message.doc_id, reindex=message.reindex)
        except IngestionError as e:
            logger.error(
                "%s:handler - Document failed: %s: %s",
                __name__,
                e.code.value,
                e.message,
                extra={"doc_id": message.doc_id, "retriable": e.retriable},
            )
            return e.retriable
        except Exception as e:
            logger.error(
                "%s:handler - %s: %s",
                __name__,
                type(e).__name__,
                e,
                extra={"doc_id": message.doc_id},
            )
            return True

    log_with_context(
        logger,
        logging.INFO,
        "handler - Record processed",
        message_id=message_id,
        doc_id=result.doc_id,
        chunk_count=result.chunk_count,
        total_chunks=result.total_chunks,
        processing_time_ms=round(result.processing_time_ms, 1),
    )
    return False


def handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler for SQS ingestion events.

    Args:
        event: SQS event with Records array
        context: Lambda context object

    Returns:
        Dict: {"batchItemFailures": [{"itemIdentifier": messageId}, ...]}
    """
    _cold_start()
    records = event.get("Records", [])
    logger.info("handler - Received SQS event", extra={"record_count": len(records)})

    try:
        validate_environment()
    except ValueError as e:
        logger.error("%s:handler - ValueError: %s", __name__, e)
        # Redeliver the whole batch
        return {"batchItemFailures": [{"itemIdentifier": r.get("messageId")} for r in records]}

    failures = []
    for record in records:
        if _process_record(record):
            failures.append({"itemIdentifier": record.get("messageId")})

    logger.info(
        "%s:handler - Processing complete",
        __name__,
        extra={"record_count": len(records), "failed_count": len(failures)},
    )
    return {"batchItemFailures": failures}
