"""
DynamoDB repositories for documents, chunk rows and LMS lookups.
"""

from .document_repository import ChunkRepository, DocumentRepository, get_dynamodb_table
from .lms_repository import LmsRepository

__all__ = ["DocumentRepository", "ChunkRepository", "LmsRepository", "get_dynamodb_table"]
