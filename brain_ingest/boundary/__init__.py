"""
Boundary layer for external system integrations.

Handles all interactions with external systems (S3, DynamoDB, OpenSearch).
"""
