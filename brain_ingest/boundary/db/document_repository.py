"""
Document and chunk repositories for DynamoDB.

Updates document ingestion status in the documents table:
Queued -> Ingesting -> Ready (or Failed with error code and message).
Expired is set elsewhere and only read here.

Chunk tracking rows go to the chunks table keyed by (doc_id, chunk_id).

Dependencies: boto3
System role: Document store persistence layer for the Lambda worker
"""

import logging

import boto3
from boto3.dynamodb.conditions import Key

from brain_ingest.core.exceptions import ErrorCode, MAX_ERROR_MESSAGE_LENGTH
from brain_ingest.core.ingestion.models import (
    BrainDocument,
    ChunkRecord,
    DocumentStatus,
    ExtractionResult,
    utc_now_iso,
)

logger = logging.getLogger(__name__)


def get_dynamodb_table(table_name: str, region: str):
    """
    Create a DynamoDB Table resource.

    Args:
        table_name: Table name
        region: AWS region

    Returns:
        Table: boto3 DynamoDB Table resource
    """
    return boto3.resource("dynamodb", region_name=region).Table(table_name)


class DocumentRepository:
    """Read documents and record their ingestion status."""

    def __init__(self, table) -> None:
        """
        Initialize with a DynamoDB table.

        Args:
            table: boto3 Table resource for the documents table
        """
        self._table = table

    def get(self, doc_id: str) -> BrainDocument | None:
        """
        Load a document with a strongly consistent read.

        Returns:
            BrainDocument | None: Document, or None when missing
        """
        response = self._table.get_item(Key={"doc_id": doc_id}, ConsistentRead=True)
        item = response.get("Item")
        if not item:
            return None
        return BrainDocument.model_validate(item)

    def _update(self, doc_id: str, assignments: dict, operation: str) -> None:
        names = {f"#{field}": field for field in assignments}
        values = {f":{field}": value for field, value in assignments.items()}
        expression = "SET " + ", ".join(f"#{field} = :{field}" for field in assignments)

        try:
            self._table.update_item(
                Key={"doc_id": doc_id},
                UpdateExpression=expression,
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
            )
        except Exception as e:
            logger.error("%s - %s: %s", operation, type(e).__name__, e, extra={"doc_id": doc_id})
            raise

        logger.info(f"{operation} - Document updated", extra={"doc_id": doc_id})

    def mark_ingesting(self, doc_id: str) -> None:
        """Mark document as Ingesting."""
        self._update(doc_id, {"status": DocumentStatus.INGESTING.value}, "mark_ingesting")

    def set_storage_pointer(self, doc_id: str, s3_key: str, s3_bucket: str | None = None) -> None:
        """Point the document at a stored object (used for URL snapshots)."""
        assignments = {"s3_key": s3_key}
        if s3_bucket:
            assignments["s3_bucket"] = s3_bucket
        self._update(doc_id, assignments, "set_storage_pointer")

    def mark_ready(self, doc_id: str, chunk_count: int, extraction: ExtractionResult) -> None:
        """
        Mark document as Ready, clear error fields and record extraction metadata.

        Args:
            doc_id: Document key
            chunk_count: Chunks indexed successfully
            extraction: Extraction outcome
        """
        assignments = {
            "status": DocumentStatus.READY.value,
            "chunk_count": chunk_count,
            "last_error_code": None,
            "last_error_message": None,
            "last_error_at": None,
            "last_ingest_at": utc_now_iso(),
            "extracted_char_count": extraction.char_count,
            "extracted_source": extraction.extracted_source,
        }
        if extraction.snapshot_s3_key:
            assignments["snapshot_s3_key"] = extraction.snapshot_s3_key
        self._update(doc_id, assignments, "mark_ready")

    def mark_failed(self, doc_id: str, error_code: ErrorCode, error_message: str) -> None:
        """
        Mark document as Failed with error details.

        Args:
            doc_id: Document key
            error_code: Failure classification
            error_message: Human-readable error (truncated to 500 chars)
        """
        self._update(
            doc_id,
            {
                "status": DocumentStatus.FAILED.value,
                "last_error_code": ErrorCode(error_code).value,
                "last_error_message": error_message[:MAX_ERROR_MESSAGE_LENGTH],
                "last_error_at": utc_now_iso(),
                "chunk_count": 0,
            },
            "mark_failed",
        )


class ChunkRepository:
    """Chunk tracking rows for indexed chunks."""

    def __init__(self, table) -> None:
        self._table = table

    def put(self, record: ChunkRecord) -> None:
        self._table.put_item(Item=record.model_dump(exclude_none=True))

    def delete_for_document(self, doc_id: str) -> int:
        """
        Best-effort delete of every chunk row for a document.

        Returns:
            int: Rows deleted (0 when the delete failed)
        """
        deleted = 0
        try:
            query_kwargs = {
                "KeyConditionExpression": Key("doc_id").eq(doc_id),
                "ProjectionExpression": "doc_id, chunk_id",
            }
            with self._table.batch_writer() as batch:
                while True:
                    response = self._table.query(**query_kwargs)
                    for item in response.get("Items", []):
                        batch.delete_item(Key={"doc_id": item["doc_id"], "chunk_id": item["chunk_id"]})
                        deleted += 1
                    last_key = response.get("LastEvaluatedKey")
                    if not last_key:
                        break
                    query_kwargs["ExclusiveStartKey"] = last_key
        except Exception as e:
            logger.warning(
                "delete_for_document - Failed to delete chunk rows: %s: %s",
                type(e).__name__,
                e,
                extra={"doc_id": doc_id},
            )
            return 0

        logger.info("delete_for_document - Deleted chunk rows", extra={"doc_id": doc_id, "deleted": deleted})
        return deleted
