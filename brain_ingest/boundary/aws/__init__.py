"""
AWS object storage clients.
"""

from .s3_client import S3ObjectError, S3ObjectStore

__all__ = ["S3ObjectStore", "S3ObjectError"]
