"""
Exceptions for the Lambda queue consumer.
"""


class MessageParseError(Exception):
    """Raised when an SQS message cannot be parsed into an ingest request."""
