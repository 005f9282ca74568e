"""
Embedding generation task using OpenAI embeddings via LangChain.

Turns one chunk of text into a fixed-dimension vector under a timeout.
Failures are classified so the caller can skip the chunk and continue.

Dependencies: langchain_openai, openai
System role: Third stage of document ingestion pipeline
"""

import logging
import time

import openai
from langchain_openai import OpenAIEmbeddings

from brain_ingest.core.exceptions import EmbeddingError, ErrorCode

logger = logging.getLogger(__name__)


class EmbeddingTask:
    """Generate one embedding per chunk through the OpenAI embeddings API."""

    def __init__(
        self,
        model: str = "text-embedding-3-small",
        timeout_ms: int = 30_000,
        api_key: str | None = None,
        embeddings: OpenAIEmbeddings | None = None,
    ) -> None:
        """
        Initialize embedding task.

        Args:
            model: OpenAI embedding model ID
            timeout_ms: Per-call timeout
            api_key: OpenAI key (falls back to OPENAI_API_KEY)
            embeddings: Preconfigured LangChain embeddings (tests)

        Raises:
            ValueError: When model is empty
        """
        if not model:
            raise ValueError("model cannot be empty")

        self.model = model
        if embeddings is None:
            client_kwargs: dict = {"model": model, "timeout": timeout_ms / 1000, "max_retries": 0}
            if api_key:
                client_kwargs["api_key"] = api_key
            embeddings = OpenAIEmbeddings(**client_kwargs)
        self._embeddings = embeddings

    def embed(self, text: str) -> list[float]:
        """
        Embed a single chunk.

        Args:
            text: Chunk text

        Returns:
            list[float]: Embedding vector

        Raises:
            EmbeddingError: TIMEOUT on deadline, OPENAI_API_ERROR otherwise
        """
        started = time.monotonic()
        try:
            vector = self._embeddings.embed_query(text)
        except openai.APITimeoutError as e:
            raise EmbeddingError(ErrorCode.TIMEOUT, f"OpenAI embedding timeout: {e}") from e
        except openai.OpenAIError as e:
            raise EmbeddingError(ErrorCode.OPENAI_API_ERROR, f"OpenAI API error: {e}") from e

        if not vector:
            raise EmbeddingError(ErrorCode.OPENAI_API_ERROR, "OpenAI returned an empty embedding")

        logger.debug(
            "embed - Embedding generated",
            extra={
                "model": self.model,
                "latency_ms": round((time.monotonic() - started) * 1000, 1),
            },
        )
        return vector
