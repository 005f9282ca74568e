"""
Knowledge-base ingestion worker.

Extracts text from uploaded documents, fetched web pages and lesson
transcripts, chunks it, embeds each chunk and writes the vectors to
OpenSearch.
"""

__version__ = "0.1.0"
