"""
Text chunking task with sentence-boundary preference.

Splits extracted text into overlapping windows bounded by an estimated token
budget. Window ends snap back to the nearest sentence terminator or newline
when one exists in the second half of the window.

Dependencies: configs
System role: Second stage of document ingestion pipeline
"""

from ..configs import ChunkingConfig, estimate_tokens
from ..models import TextChunk

BOUNDARY_CHARS = (".", "!", "?", "\n")
MIN_BOUNDARY_FRACTION = 0.5


class ChunkingTask:
    """Split text into overlapping, token-bounded chunks."""

    def __init__(self, config: ChunkingConfig | None = None) -> None:
        """
        Initialize chunking task with size configuration.

        Args:
            config: Immutable chunk size constants (defaults: 600/100/800 tokens)
        """
        self._config = config or ChunkingConfig()

    @property
    def config(self) -> ChunkingConfig:
        return self._config

    def estimate_tokens(self, text: str) -> int:
        return estimate_tokens(text, self._config.chars_per_token)

    def chunk(self, text: str) -> list[TextChunk]:
        """
        Split text into chunks.

        Args:
            text: Extracted document text

        Returns:
            list[TextChunk]: Chunks in text order; empty for blank input
        """
        target_chars = self._config.target_chars
        overlap_chars = self._config.overlap_chars
        min_break = int(target_chars * MIN_BOUNDARY_FRACTION)
        length = len(text)

        chunks: list[TextChunk] = []
        start = 0
        while start < length:
            end = min(start + target_chars, length)

            if end < length:
                boundary = _last_boundary(text, start, end)
                if boundary >= start + min_break:
                    end = boundary + 1

            piece = text[start:end].strip()
            if piece:
                chunks.append(TextChunk(text=piece, start_offset=start, end_offset=end))

            if end >= length:
                break
            start = max(end - overlap_chars, start + 1)

        return chunks


def _last_boundary(text: str, start: int, end: int) -> int:
    """Index of the last boundary character in text[start:end], or -1."""
    return max(text.rfind(char, start, end) for char in BOUNDARY_CHARS)
