"""Utility modules for contentdesk.

- **errors** -- Domain exception hierarchy rooted at ContentDeskError; the
  ``retryable`` flag on each class tells the job runner whether replaying a
  failed job can help.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
"""

from contentdesk.utils.errors import (
    ConfigurationError,
    ContentDeskError,
    DocumentNotFoundError,
    EmptyExtractionError,
    EmptyTranscriptError,
    IngestionProducedNoVectorsError,
    JobError,
    LLMError,
    PersistenceError,
    ProviderUnavailableError,
    RAGError,
    StorageError,
    TranscriptionError,
    TranscriptionTimeoutError,
    is_retryable,
)
from contentdesk.utils.logging import configure_logging, get_logger

__all__ = [
    "ConfigurationError",
    "ContentDeskError",
    "DocumentNotFoundError",
    "EmptyExtractionError",
    "EmptyTranscriptError",
    "IngestionProducedNoVectorsError",
    "JobError",
    "LLMError",
    "PersistenceError",
    "ProviderUnavailableError",
    "RAGError",
    "StorageError",
    "TranscriptionError",
    "TranscriptionTimeoutError",
    "configure_logging",
    "get_logger",
    "is_retryable",
]
