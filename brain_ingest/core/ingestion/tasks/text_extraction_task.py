"""
Text extraction task for stored text, stored PDF and fetched URL sources.

Stored objects are read from S3. PDFs are parsed page by page with
LangChain's PyPDFLoader. Web pages are fetched with httpx and converted to
text with BeautifulSoup after dropping non-content elements.

Dependencies: boto3 (via S3ObjectStore), httpx, bs4, langchain_community
System role: First stage of document ingestion pipeline
"""

import logging
import os
import tempfile

import httpx
from bs4 import BeautifulSoup
from langchain_community.document_loaders import PyPDFLoader

from brain_ingest.boundary.aws.s3_client import S3ObjectStore
from brain_ingest.core.exceptions import ErrorCode, IngestionError

from ..models import BrainDocument, ExtractionResult, SourceType
from ..snapshots import NullSnapshotStore, SnapshotStore

logger = logging.getLogger(__name__)

SKIPPED_HTML_TAGS = ("script", "style", "nav", "header", "footer", "noscript")


def html_to_text(html: str) -> str:
    """
    Convert HTML to plain text, discarding scripts, styles and page chrome.

    Args:
        html: Raw HTML document

    Returns:
        str: Non-empty text lines joined by newlines
    """
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(SKIPPED_HTML_TAGS):
        tag.decompose()

    lines = (line.strip() for line in soup.get_text(separator="\n").splitlines())
    return "\n".join(line for line in lines if line)


class TextExtractionTask:
    """Produce raw text for a document according to its source type."""

    def __init__(
        self,
        object_store: S3ObjectStore,
        snapshot_store: SnapshotStore | None = None,
        http_client: httpx.Client | None = None,
        min_text_length: int = 100,
        fetch_timeout_ms: int = 30_000,
        user_agent: str = "Mozilla/5.0 (compatible; EnablementPortal/1.0)",
    ) -> None:
        """
        Initialize extraction task.

        Args:
            object_store: S3 reads for stored sources
            snapshot_store: Persists fetched pages (no-op when None)
            http_client: httpx client for URL sources (built when None)
            min_text_length: Minimum trimmed PDF text length
            fetch_timeout_ms: URL fetch timeout
            user_agent: User-Agent header sent on URL fetches
        """
        self._object_store = object_store
        self._snapshot_store = snapshot_store or NullSnapshotStore()
        self._min_text_length = min_text_length
        self._http_client = http_client or httpx.Client(
            timeout=httpx.Timeout(fetch_timeout_ms / 1000),
            headers={"User-Agent": user_agent},
            follow_redirects=True,
        )

    def extract(self, document: BrainDocument) -> ExtractionResult:
        """
        Extract raw text from a document.

        Args:
            document: Document record describing the source

        Returns:
            ExtractionResult: Text, extraction method and char count

        Raises:
            IngestionError: Classified extraction failure
        """
        if document.source_type == SourceType.FETCHED_URL:
            result = self._extract_url(document)
        elif document.source_type == SourceType.STORED_PDF:
            result = self._extract_pdf(document)
        elif document.source_type == SourceType.STORED_TEXT:
            text = self._read_stored(document).decode("utf-8", errors="replace")
            result = ExtractionResult(text=text, extracted_source="text", char_count=len(text))
        else:
            raise IngestionError(
                ErrorCode.UNSUPPORTED_SOURCE_TYPE,
                f"Unsupported source_type: {document.source_type}",
            )

        if not result.text.strip():
            raise IngestionError(ErrorCode.PROCESSING_ERROR, "Empty file or unsupported format")

        logger.info(
            "extract - Extracted text",
            extra={
                "doc_id": document.doc_id,
                "extracted_source": result.extracted_source,
                "char_count": result.char_count,
            },
        )
        return result

    def _read_stored(self, document: BrainDocument) -> bytes:
        pointer = document.storage_pointer
        if pointer is None:
            raise IngestionError(ErrorCode.PROCESSING_ERROR, f"Document {document.doc_id} has no stored object")
        return self._object_store.get_bytes(pointer.key, pointer.bucket or None)

    def _extract_pdf(self, document: BrainDocument) -> ExtractionResult:
        data = self._read_stored(document)
        if not data:
            raise IngestionError(ErrorCode.PROCESSING_ERROR, "Empty PDF file")

        text = self._parse_pdf(data)
        if len(text.strip()) < self._min_text_length:
            raise IngestionError(
                ErrorCode.PDF_TEXT_EXTRACTION_FAILED,
                f"PDF text extraction failed or produced too little text ({len(text)} chars). "
                "The PDF may be image-based or corrupted. Consider using OCR or "
                "converting to text manually.",
            )
        return ExtractionResult(text=text, extracted_source="pypdf", char_count=len(text))

    def _parse_pdf(self, data: bytes) -> str:
        """Parse PDF bytes via a temp file (PyPDFLoader reads from disk)."""
        fd, local_path = tempfile.mkstemp(prefix="brain_ingest_", suffix=".pdf")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
            pages = PyPDFLoader(local_path).load()
        except Exception as e:
            raise IngestionError(
                ErrorCode.PROCESSING_ERROR, f"PDF extraction failed: {e}"
            ) from e
        finally:
            if os.path.exists(local_path):
                os.remove(local_path)

        return "\n".join(page.page_content for page in pages)

    def _extract_url(self, document: BrainDocument) -> ExtractionResult:
        if not document.source_url:
            raise IngestionError(
                ErrorCode.CONFIGURATION_ERROR,
                "source_url is required for url:web sources",
            )

        logger.info(
            "_extract_url - Fetching URL",
            extra={"doc_id": document.doc_id, "source_url": document.source_url},
        )
        html = self._fetch(document.source_url)
        text = html_to_text(html)

        snapshot_key = None
        try:
            snapshot_key = self._snapshot_store.save(document.doc_id, html, text)
        except Exception as e:
            logger.warning(
                "_extract_url - Snapshot not stored: %s: %s",
                type(e).__name__,
                e,
                extra={"doc_id": document.doc_id},
            )

        return ExtractionResult(
            text=text,
            extracted_source="html-to-text",
            char_count=len(text),
            snapshot_s3_key=snapshot_key,
        )

    def _fetch(self, url: str) -> str:
        try:
            response = self._http_client.get(url)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise IngestionError(ErrorCode.TIMEOUT, "URL fetch timeout") from e
        except httpx.HTTPStatusError as e:
            raise IngestionError(
                ErrorCode.PROCESSING_ERROR,
                f"URL fetch failed: HTTP {e.response.status_code}: {e.response.reason_phrase}",
            ) from e
        except httpx.HTTPError as e:
            raise IngestionError(ErrorCode.PROCESSING_ERROR, f"URL fetch failed: {e}") from e
        return response.text
