"""
Ingestion lifecycle telemetry.

Emits started/completed/failed events to the events table. Emission is
fire-and-forget: any failure is logged and swallowed.

Dependencies: boto3 (table resource)
System role: Best-effort side effect injected into the pipelines
"""

import logging
import uuid
from typing import Any, Protocol

from .models import utc_now_iso

logger = logging.getLogger(__name__)

SYSTEM_ACTOR = "system"

INGEST_STARTED = "brain_document_ingest_started"
INGEST_COMPLETED = "brain_document_ingest_completed"
INGEST_FAILED = "brain_document_ingest_failed"


class EventEmitter(Protocol):
    """Records an ingestion lifecycle event; must never raise."""

    def emit(self, event_name: str, doc_id: str, metadata: dict[str, Any] | None = None) -> None: ...


class NullEventEmitter:
    """Event emitter that drops every event."""

    def emit(self, event_name: str, doc_id: str, metadata: dict[str, Any] | None = None) -> None:
        return None


class DynamoEventEmitter:
    """Writes events as rows partitioned by UTC date."""

    def __init__(self, table) -> None:
        """
        Initialize emitter.

        Args:
            table: boto3 Table resource for the events table
        """
        self._table = table

    def emit(self, event_name: str, doc_id: str, metadata: dict[str, Any] | None = None) -> None:
        timestamp = utc_now_iso()
        event_id = uuid.uuid4().hex[:12]
        try:
            self._table.put_item(
                Item={
                    "date_bucket": timestamp[:10],
                    "ts#event_id": f"{timestamp}#{event_id}",
                    "event_name": event_name,
                    "user_id": SYSTEM_ACTOR,
                    "metadata": {"doc_id": doc_id, **(metadata or {})},
                    "timestamp": timestamp,
                }
            )
        except Exception as e:
            logger.warning(
                "emit - Failed to emit event %s: %s: %s",
                event_name,
                type(e).__name__,
                e,
                extra={"doc_id": doc_id},
            )
