"""Custom exception hierarchy for contentdesk.

All application exceptions inherit from :class:`ContentDeskError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "openai", "assemblyai", "sqlite") caused the failure.

The hierarchy is organized by how the job runner should treat the failure:

    ContentDeskError  (base -- catch-all for any contentdesk error)
    +-- DocumentNotFoundError           (terminal input error)
    +-- EmptyTranscriptError            (terminal input error)
    +-- EmptyExtractionError            (terminal input error)
    +-- IngestionProducedNoVectorsError (terminal, every chunk failed embedding)
    +-- TranscriptionError              (speech-to-text / transcript fetch failure)
    |   +-- TranscriptionTimeoutError   (poll attempts exhausted)
    +-- LLMError                        (structured extraction call failure)
    +-- RAGError                        (embedding or vector-store failure)
    +-- StorageError                    (blob storage failure)
    +-- PersistenceError                (document store failure)
    +-- ProviderUnavailableError        (external service down / unreachable)
    +-- ConfigurationError              (startup / missing config)
    +-- JobError                        (job runner bookkeeping)

Terminal input errors set ``retryable = False`` so the job runner stops
instead of replaying the job.  Everything else is retryable at task level.
"""


class ContentDeskError(Exception):
    """Base exception for all contentdesk errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  The ``__str__`` method prefixes the provider name in brackets
    for structured log output, e.g. ``[assemblyai] Transcription failed``.
    """

    retryable: bool = True

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Terminal input errors
# ---------------------------------------------------------------------------

class DocumentNotFoundError(ContentDeskError):
    """Raised when a document id does not resolve to a stored record."""

    retryable = False

    def __init__(
        self,
        message: str = "Document not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class EmptyTranscriptError(ContentDeskError):
    """Raised when a document has no transcript text to work with."""

    retryable = False

    def __init__(
        self,
        message: str = "No transcript available",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class EmptyExtractionError(ContentDeskError):
    """Raised when text extraction from a stored document yields nothing."""

    retryable = False

    def __init__(
        self,
        message: str = "No text could be extracted from the document",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class IngestionProducedNoVectorsError(ContentDeskError):
    """Raised when chunking succeeded but every chunk failed to embed or insert.

    Signals that the source text may be unembeddable (too short, language
    issue) or that the embedding service is persistently down, rather than
    marking the document ingested with zero vectors.
    """

    retryable = False

    def __init__(
        self,
        message: str = "No vectors were successfully inserted",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# External service / provider errors
# ---------------------------------------------------------------------------

class TranscriptionError(ContentDeskError):
    """Raised when the speech-to-text or transcript-fetch service fails."""

    def __init__(
        self,
        message: str = "Transcription failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class TranscriptionTimeoutError(TranscriptionError):
    """Raised when the transcription poll loop exhausts its attempt budget."""

    def __init__(
        self,
        message: str = "Transcription polling timed out",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class LLMError(ContentDeskError):
    """Raised when an LLM API call fails or returns an unparseable response."""

    def __init__(
        self,
        message: str = "LLM API call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class RAGError(ContentDeskError):
    """Raised when an embedding or vector-store operation fails."""

    def __init__(
        self,
        message: str = "Embedding or vector store operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class StorageError(ContentDeskError):
    """Raised when a blob storage operation fails."""

    def __init__(
        self,
        message: str = "Blob storage operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class PersistenceError(ContentDeskError):
    """Raised when the document store rejects or fails an operation."""

    def __init__(
        self,
        message: str = "Persistence operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ProviderUnavailableError(ContentDeskError):
    """Raised when an external service or provider is unreachable or unconfigured."""

    def __init__(
        self,
        message: str = "External service is unavailable",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Orchestration / configuration errors
# ---------------------------------------------------------------------------

class ConfigurationError(ContentDeskError):
    """Raised when configuration is invalid or missing at startup."""

    retryable = False

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class JobError(ContentDeskError):
    """Raised for job runner bookkeeping failures (unknown job id, bad step use)."""

    retryable = False

    def __init__(
        self,
        message: str = "Job execution failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


def is_retryable(exc: BaseException) -> bool:
    """Return ``True`` when the job runner should replay the job after *exc*.

    Unknown (non-contentdesk) exceptions are treated as transient.
    """
    if isinstance(exc, ContentDeskError):
        return exc.retryable
    return True
