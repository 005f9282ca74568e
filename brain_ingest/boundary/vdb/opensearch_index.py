"""
OpenSearch index writer for chunk vectors.

Waits for the search service to become ready, creates the k-NN index when
missing, deletes a document's previous vectors on reindex and upserts new
vector entries keyed by chunk_id.

Readiness polling uses tenacity: 2s initial delay, x1.5 per attempt, capped
at 10s, and never sleeps past the wait budget.

Dependencies: opensearch-py, boto3 (SigV4 credentials), tenacity
System role: Final stage of document ingestion pipeline
"""

import logging
import re
import time
from typing import Any, Callable

import boto3
from opensearchpy import AWSV4SignerAuth, OpenSearch, RequestsHttpConnection
from opensearchpy.exceptions import RequestError
from tenacity import RetryError, Retrying, retry_if_result, stop_before_delay, wait_exponential

from brain_ingest.core.exceptions import SearchServiceNotReadyError
from brain_ingest.core.ingestion.models import VectorEntry

logger = logging.getLogger(__name__)

READY_INITIAL_DELAY_S = 2.0
READY_BACKOFF_MULTIPLIER = 1.5
READY_MAX_DELAY_S = 10.0
HEALTHY_STATUSES = ("green", "yellow")


def build_opensearch_client(
    endpoint: str,
    region: str,
    service: str = "aoss",
    timeout_s: int = 30,
) -> OpenSearch:
    """
    Create a SigV4-signed OpenSearch client from the boto3 credential chain.

    Args:
        endpoint: Collection/domain endpoint, with or without scheme
        region: AWS region of the collection
        service: 'aoss' for Serverless collections, 'es' for managed domains
        timeout_s: Per-request timeout

    Raises:
        ValueError: When endpoint is empty
    """
    if not endpoint:
        raise ValueError("OpenSearch endpoint cannot be empty")

    host = re.sub(r"^https?://", "", endpoint).rstrip("/")
    credentials = boto3.Session().get_credentials()
    return OpenSearch(
        hosts=[{"host": host, "port": 443}],
        http_auth=AWSV4SignerAuth(credentials, region, service),
        use_ssl=True,
        verify_certs=True,
        connection_class=RequestsHttpConnection,
        timeout=timeout_s,
    )


def index_body(dimension: int) -> dict[str, Any]:
    """Index settings and mappings for chunk vectors (HNSW, cosine)."""
    return {
        "settings": {"index": {"knn": True}},
        "mappings": {
            "properties": {
                "doc_id": {"type": "keyword"},
                "chunk_id": {"type": "keyword"},
                "text": {"type": "text"},
                "title": {"type": "text"},
                "tags": {"type": "keyword"},
                "product_suite": {"type": "keyword"},
                "product_concept": {"type": "keyword"},
                "lesson_id": {"type": "keyword"},
                "course_id": {"type": "keyword"},
                "course_title": {"type": "text"},
                "transcript_id": {"type": "keyword"},
                "embedding": {
                    "type": "knn_vector",
                    "dimension": dimension,
                    "method": {
                        "name": "hnsw",
                        "space_type": "cosinesimil",
                        "engine": "nmslib",
                    },
                },
            }
        },
    }


class OpenSearchIndexWriter:
    """Write vector entries to one OpenSearch index."""

    def __init__(
        self,
        client: OpenSearch,
        index_name: str = "brain-chunks",
        dimension: int = 1536,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """
        Initialize index writer.

        Args:
            client: OpenSearch client
            index_name: Target index
            dimension: Embedding vector size
            sleep: Sleep function used between readiness probes
        """
        if not index_name:
            raise ValueError("index_name cannot be empty")

        self._client = client
        self.index_name = index_name
        self.dimension = dimension
        self._sleep = sleep

    def _probe_ready(self, require_index: bool = True) -> bool:
        try:
            health = self._client.cluster.health(timeout="5s")
            if health.get("status") not in HEALTHY_STATUSES:
                return False
            if not require_index:
                return True
            return bool(self._client.indices.exists(index=self.index_name))
        except Exception as e:
            logger.warning("_probe_ready - Not ready yet: %s: %s", type(e).__name__, e)
            return False

    def ensure_ready(self, max_wait_ms: int = 120_000, require_index: bool = True) -> int:
        """
        Poll cluster health and index existence until both hold.

        Args:
            max_wait_ms: Total wait budget
            require_index: Also wait for the index to exist

        Returns:
            int: Number of probes it took

        Raises:
            SearchServiceNotReadyError: Budget exhausted
        """
        retryer = Retrying(
            retry=retry_if_result(lambda ready: not ready),
            stop=stop_before_delay(max_wait_ms / 1000),
            wait=wait_exponential(
                multiplier=READY_INITIAL_DELAY_S,
                exp_base=READY_BACKOFF_MULTIPLIER,
                max=READY_MAX_DELAY_S,
            ),
            sleep=self._sleep,
            before_sleep=lambda state: logger.info(
                "ensure_ready - Attempt %s not ready, retrying in %.1fs",
                state.attempt_number,
                state.upcoming_sleep,
            ),
        )
        try:
            retryer(self._probe_ready, require_index)
        except RetryError as e:
            attempts = e.last_attempt.attempt_number
            raise SearchServiceNotReadyError(
                f"OpenSearch not ready after {max_wait_ms}ms ({attempts} attempts)",
                {"index": self.index_name, "attempts": attempts},
            ) from e

        attempts = retryer.statistics.get("attempt_number", 1)
        logger.info("ensure_ready - OpenSearch ready", extra={"attempts": attempts})
        return attempts

    def ensure_index(self) -> bool:
        """
        Create the index with its schema if it does not exist.

        Returns:
            bool: True when the index was created by this call
        """
        if self._client.indices.exists(index=self.index_name):
            return False

        try:
            self._client.indices.create(index=self.index_name, body=index_body(self.dimension))
        except RequestError as e:
            if e.error == "resource_already_exists_exception":
                return False
            raise

        logger.info("ensure_index - Created index", extra={"index": self.index_name})
        return True

    def delete_by_doc_id(self, doc_id: str) -> int | None:
        """
        Best-effort delete of every entry for a document.

        Returns:
            int | None: Deleted count, or None when the delete failed
        """
        try:
            response = self._client.delete_by_query(
                index=self.index_name,
                body={"query": {"term": {"doc_id": doc_id}}},
            )
        except Exception as e:
            logger.warning(
                "delete_by_doc_id - Failed to delete existing vectors: %s: %s",
                type(e).__name__,
                e,
                extra={"doc_id": doc_id},
            )
            return None

        deleted = int(response.get("deleted", 0))
        logger.info(
            "delete_by_doc_id - Deleted existing vectors",
            extra={"doc_id": doc_id, "deleted": deleted},
        )
        return deleted

    def upsert(self, entry: VectorEntry) -> None:
        """Index an entry under its chunk_id, overwriting any previous version."""
        self._client.index(
            index=self.index_name,
            id=entry.chunk_id,
            body=entry.to_index_body(),
        )
