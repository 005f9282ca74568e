"""
Snapshot persistence for fetched web pages.

A snapshot is the raw HTML plus the derived text of a fetched URL, stored so
later passes and reviewers can see exactly what was indexed.

Dependencies: boundary.aws.s3_client
System role: Best-effort side effect injected into the text extractor
"""

import logging
from typing import Protocol

from brain_ingest.boundary.aws.s3_client import S3ObjectStore

logger = logging.getLogger(__name__)


def snapshot_keys(doc_id: str) -> tuple[str, str]:
    """Return (html_key, text_key) for a document's snapshot."""
    return f"brain/{doc_id}/snapshot.html", f"brain/{doc_id}/snapshot.txt"


class SnapshotStore(Protocol):
    """Persists URL snapshots and returns the text snapshot key."""

    def save(self, doc_id: str, html: str, text: str) -> str | None: ...


class NullSnapshotStore:
    """Snapshot store that keeps nothing."""

    def save(self, doc_id: str, html: str, text: str) -> str | None:
        return None


class S3SnapshotStore:
    """Writes snapshot.html and snapshot.txt under brain/{doc_id}/."""

    def __init__(self, object_store: S3ObjectStore) -> None:
        self._object_store = object_store

    def save(self, doc_id: str, html: str, text: str) -> str | None:
        html_key, text_key = snapshot_keys(doc_id)
        self._object_store.put_object(html_key, html, "text/html")
        self._object_store.put_object(text_key, text, "text/plain")

        logger.info(
            "save - Stored snapshot",
            extra={"doc_id": doc_id, "html_key": html_key, "text_key": text_key},
        )
        return text_key
