"""
Create the chunk vector index if it does not exist.

Usage:
    brain-ingest-bootstrap-index
    brain-ingest-bootstrap-index --index brain-chunks --wait-ms 60000
    python -m brain_ingest.core.ingestion.index_bootstrap

Dependencies: boundary.vdb.opensearch_index, configs
System role: Deploy-time helper for the search index schema
"""

import argparse
import logging
import sys

from brain_ingest.boundary.vdb.opensearch_index import OpenSearchIndexWriter, build_opensearch_client
from brain_ingest.core.exceptions import SearchServiceNotReadyError
from brain_ingest.observability import configure_logging

from .configs import get_ingestion_settings

logger = logging.getLogger(__name__)


def bootstrap_index(writer: OpenSearchIndexWriter, wait_ms: int = 0) -> bool:
    """
    Wait for the cluster (optional) and create the index.

    Args:
        writer: Index writer for the target index
        wait_ms: Cluster health wait budget; 0 skips the wait

    Returns:
        bool: True when the index was created by this call
    """
    if wait_ms > 0:
        writer.ensure_ready(wait_ms, require_index=False)
    created = writer.ensure_index()
    logger.info(
        "bootstrap_index - %s",
        "Index created" if created else "Index already exists",
        extra={"index": writer.index_name},
    )
    return created


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    settings = get_ingestion_settings()
    parser = argparse.ArgumentParser(description="Create the knowledge-base vector index")
    parser.add_argument("--endpoint", default=settings.opensearch_endpoint)
    parser.add_argument("--index", default=settings.opensearch_index_name)
    parser.add_argument("--dimension", type=int, default=settings.embedding_dimension)
    parser.add_argument("--region", default=settings.aws_region)
    parser.add_argument("--service", default=settings.opensearch_service)
    parser.add_argument("--wait-ms", type=int, default=0, help="Wait for cluster health first")
    args = parser.parse_args(argv)

    configure_logging(settings.log_level)

    if not args.endpoint:
        logger.error("main - OPENSEARCH_ENDPOINT or --endpoint is required")
        return 1

    try:
        client = build_opensearch_client(
            endpoint=args.endpoint,
            region=args.region,
            service=args.service,
            timeout_s=settings.opensearch_request_timeout_s,
        )
        writer = OpenSearchIndexWriter(client, index_name=args.index, dimension=args.dimension)
        created = bootstrap_index(writer, args.wait_ms)
    except SearchServiceNotReadyError as e:
        logger.error("main - %s", e.message)
        return 1
    except Exception as e:
        logger.error("main - %s: %s", type(e).__name__, e)
        return 1

    print(f"{args.index}: {'created' if created else 'exists'}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
