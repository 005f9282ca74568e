"""
SQS message parsing utilities for Lambda.

Bodies are JSON objects discriminated by 'type': 'transcript' selects
transcript ingestion, anything else (or absent) selects document ingestion.
"""

import json
import logging
from typing import Any, Dict

from pydantic import ValidationError

from brain_ingest.core.ingestion.models import DocumentIngestMessage, TranscriptIngestMessage
from brain_ingest.core.ingestion.lambda_utils.exceptions import MessageParseError

logger = logging.getLogger(__name__)

TRANSCRIPT_MESSAGE_TYPE = "transcript"

IngestMessage = DocumentIngestMessage | TranscriptIngestMessage


def parse_ingest_message(record: Dict[str, Any]) -> IngestMessage:
    """
    Parse and validate an SQS record body.

    Args:
        record: Single SQS record from event['Records']

    Returns:
        DocumentIngestMessage | TranscriptIngestMessage: Validated request

    Raises:
        MessageParseError: Invalid JSON or missing identifier
    """
    try:
        message_body = record.get("body")
        if not message_body:
            raise ValueError("Empty message body")

        payload = json.loads(message_body)
        if not isinstance(payload, dict):
            raise ValueError("Message body must be a JSON object")

        if payload.get("type") == TRANSCRIPT_MESSAGE_TYPE:
            message: IngestMessage = TranscriptIngestMessage.model_validate(payload)
            logger.info(
                "parse_ingest_message - Parsed transcript message",
                extra={"message_id": record.get("messageId"), "transcript_id": message.transcript_id},
            )
        else:
            message = DocumentIngestMessage.model_validate(payload)
            logger.info(
                "parse_ingest_message - Parsed document message",
                extra={
                    "message_id": record.get("messageId"),
                    "doc_id": message.doc_id,
                    "reindex": message.reindex,
                    "mode": message.mode,
                },
            )
        return message

    except json.JSONDecodeError as e:
        logger.error("parse_ingest_message - JSONDecodeError: %s", e)
        raise MessageParseError(f"Invalid JSON in message body: {e}") from e
    except ValidationError as e:
        logger.error("parse_ingest_message - ValidationError: %s", e)
        raise MessageParseError(f"Invalid message schema: {e}") from e
    except ValueError as e:
        logger.error("parse_ingest_message - ValueError: %s", e)
        raise MessageParseError(f"Invalid message: {e}") from e
