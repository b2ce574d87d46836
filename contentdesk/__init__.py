"""contentdesk: document ingestion, transcription, and semantic search service."""

__version__ = "0.1.0"
