"""
S3 client for document bucket operations.

Reads raw source objects for extraction and writes URL snapshots.

Dependencies: boto3
System role: Object storage boundary for the ingestion pipeline
"""

import logging

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)


class S3ObjectError(Exception):
    """Raised when an S3 read or write fails."""

    def __init__(self, message: str, s3_key: str | None = None) -> None:
        self.s3_key = s3_key
        super().__init__(message)


class S3ObjectStore:
    """S3 reads/writes used by the text extractor and snapshot store."""

    def __init__(
        self,
        bucket: str,
        region: str = "us-east-1",
        timeout_s: int = 30,
        s3_client=None,
    ) -> None:
        """
        Initialize S3 object store.

        Args:
            bucket: Default bucket for reads and writes
            region: AWS region for the bucket
            timeout_s: Connect/read timeout for S3 calls
            s3_client: Preconfigured boto3 S3 client (tests)
        """
        self._bucket = bucket
        self._s3_client = s3_client or boto3.client(
            "s3",
            region_name=region,
            config=Config(connect_timeout=timeout_s, read_timeout=timeout_s),
        )

    @property
    def bucket(self) -> str:
        return self._bucket

    def get_bytes(self, key: str, bucket: str | None = None) -> bytes:
        """
        Read an object's full body.

        Args:
            key: S3 object key
            bucket: Bucket override (documents record their own bucket)

        Returns:
            bytes: Object body

        Raises:
            S3ObjectError: When the object is missing or the read fails
        """
        if not key:
            raise S3ObjectError("S3 key is required", key)

        try:
            response = self._s3_client.get_object(Bucket=bucket or self._bucket, Key=key)
            return response["Body"].read()
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            if error_code in ("404", "NoSuchKey"):
                raise S3ObjectError(f"File not found in S3: {key}", key) from e
            raise S3ObjectError(f"Failed to read from S3: {e}", key) from e

    def put_object(self, key: str, body: str | bytes, content_type: str) -> str:
        """
        Write an object to the default bucket.

        Returns:
            str: The written key

        Raises:
            S3ObjectError: When the write fails
        """
        if isinstance(body, str):
            body = body.encode("utf-8")
        try:
            self._s3_client.put_object(
                Bucket=self._bucket,
                Key=key,
                Body=body,
                ContentType=content_type,
            )
        except ClientError as e:
            raise S3ObjectError(f"Failed to write to S3: {e}", key) from e

        logger.debug("put_object - Wrote object", extra={"s3_key": key, "bytes": len(body)})
        return key
