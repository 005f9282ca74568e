"""
Vector index boundary (OpenSearch k-NN).
"""

from .opensearch_index import OpenSearchIndexWriter, build_opensearch_client, index_body

__all__ = ["OpenSearchIndexWriter", "build_opensearch_client", "index_body"]
