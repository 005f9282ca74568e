"""
Lambda helpers: message parsing, environment validation and secrets.
"""

from .config import configure_secrets, validate_environment
from .event_parser import parse_ingest_message
from .exceptions import MessageParseError

__all__ = [
    "configure_secrets",
    "validate_environment",
    "parse_ingest_message",
    "MessageParseError",
]
