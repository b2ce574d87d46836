"""Ingestion pipeline: chunk, extract metadata, embed, store, track."""

from contentdesk.services.ingestion.chunker import TextChunker, chunk_text, split_large_text
from contentdesk.services.ingestion.embedding_client import EmbeddingClient
from contentdesk.services.ingestion.ingestion_service import IngestionService
from contentdesk.services.ingestion.metadata_extractor import MetadataExtractor

__all__ = [
    "EmbeddingClient",
    "IngestionService",
    "MetadataExtractor",
    "TextChunker",
    "chunk_text",
    "split_large_text",
]
