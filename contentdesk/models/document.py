"""Document record models and their lifecycle state machine.

A :class:`Document` is one ingested source artifact (an uploaded file, a
YouTube link, or pasted text).  Its status is never stored separately from
its metadata: the metadata payload is a tagged union keyed by lifecycle
stage, and :attr:`Document.status` is derived from the active variant.  That
makes states like "error text present while completed" unrepresentable.

State machine::

    processing --complete()--> completed --mark_ingested()--> completed
        |
        +------fail()--------> error

``start_processing()`` is the only way back to ``processing`` and is used
exclusively when a brand-new transcription job begins.

All models are frozen; transitions return new instances via
``model_copy(update={...})``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SourceKind(str, Enum):  # noqa: UP042
    """Kind of source artifact a document was created from.

    ``PDF`` is a legacy value kept so older rows still load; new PDF uploads
    are registered as ``DOCUMENT``.
    """

    VIDEO = "video"
    AUDIO = "audio"
    DOCUMENT = "document"
    YOUTUBE = "youtube"
    PDF = "pdf"


class DocumentStatus(str, Enum):  # noqa: UP042
    """Lifecycle status, derived from the metadata variant."""

    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


# ---------------------------------------------------------------------------
# Metadata variants, one per lifecycle stage.
# ---------------------------------------------------------------------------
class ProcessingMetadata(BaseModel):
    """Metadata while a transcription/extraction job is running."""

    model_config = ConfigDict(frozen=True)

    stage: Literal["processing"] = "processing"
    progress: int = Field(default=0, ge=0, le=100, description="Indicative progress percentage.")
    size: int | None = Field(default=None, ge=0, description="Uploaded blob size in bytes.")


class CompletedMetadata(BaseModel):
    """Metadata once text is available.  Ingestion flags live only here."""

    model_config = ConfigDict(frozen=True)

    stage: Literal["completed"] = "completed"
    progress: int = Field(default=100, ge=100, le=100)
    ingested: bool = Field(default=False, description="True once at least one vector row exists.")
    vector_count: int = Field(default=0, ge=0)
    external_link: str | None = None
    transcript_job_id: str | None = Field(
        default=None, description="Speech-to-text job id, for audio/video sources."
    )
    content_type: str | None = Field(
        default=None, description='"freeform_text" for pasted documents.'
    )
    word_count: int | None = Field(default=None, ge=0)
    char_count: int | None = Field(default=None, ge=0)
    size: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _ingested_requires_vectors(self) -> CompletedMetadata:
        if self.ingested and self.vector_count < 1:
            raise ValueError("ingested documents must reference at least one vector")
        return self


class ErrorMetadata(BaseModel):
    """Metadata after a job failed.  The message is the operator-facing error."""

    model_config = ConfigDict(frozen=True)

    stage: Literal["error"] = "error"
    error: str = Field(min_length=1)
    progress: int = Field(default=0, ge=0, le=0)


DocumentMetadata = Annotated[
    Union[ProcessingMetadata, CompletedMetadata, ErrorMetadata],
    Field(discriminator="stage"),
]


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------
class Document(BaseModel):
    """One ingested source artifact and its extracted text."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Document UUID.")
    owner_id: str = Field(description="Owning account identifier.")
    filename: str = Field(description="Display filename or title.")
    source_kind: SourceKind
    source_url: str | None = Field(
        default=None, description="Blob storage path or external URL."
    )
    transcript: str | None = Field(default=None, description="Extracted full text.")
    metadata: DocumentMetadata = Field(default_factory=ProcessingMetadata)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @model_validator(mode="after")
    def _completed_requires_text(self) -> Document:
        if isinstance(self.metadata, CompletedMetadata) and self.transcript is None:
            raise ValueError("completed documents must carry transcript text")
        return self

    @property
    def status(self) -> DocumentStatus:
        return DocumentStatus(self.metadata.stage)

    @property
    def is_terminal(self) -> bool:
        return self.status is not DocumentStatus.PROCESSING

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def start_processing(self, progress: int = 0) -> Document:
        """Enter ``processing`` for a new job, discarding any previous text."""
        size = getattr(self.metadata, "size", None)
        return self.model_copy(
            update={
                "metadata": ProcessingMetadata(progress=progress, size=size),
                "transcript": None,
                "updated_at": _utcnow(),
            }
        )

    def with_progress(self, progress: int) -> Document:
        """Record indicative progress.  Only valid while processing."""
        if not isinstance(self.metadata, ProcessingMetadata):
            raise ValueError(f"cannot report progress on a {self.status.value} document")
        return self.model_copy(
            update={
                "metadata": self.metadata.model_copy(update={"progress": progress}),
                "updated_at": _utcnow(),
            }
        )

    def complete(self, transcript: str, **extra: object) -> Document:
        """Transition to ``completed`` with *transcript* as the document text.

        A failed document must re-enter ``processing`` first.
        """
        if isinstance(self.metadata, ErrorMetadata):
            raise ValueError("cannot complete a document in error; start processing first")
        size = getattr(self.metadata, "size", None)
        fields: dict[str, object] = {"size": size}
        fields.update(extra)
        return self.model_copy(
            update={
                "metadata": CompletedMetadata(**fields),
                "transcript": transcript,
                "updated_at": _utcnow(),
            }
        )

    def fail(self, error: str) -> Document:
        """Transition to ``error``; the text stays unset."""
        return self.model_copy(
            update={
                "metadata": ErrorMetadata(error=error or "Unknown error"),
                "transcript": None,
                "updated_at": _utcnow(),
            }
        )

    def mark_ingested(self, vector_count: int, external_link: str | None = None) -> Document:
        """Set the ingestion flags after at least one vector row was written."""
        if not isinstance(self.metadata, CompletedMetadata):
            raise ValueError(f"cannot mark a {self.status.value} document as ingested")
        update: dict[str, object] = {"ingested": True, "vector_count": vector_count}
        if external_link:
            update["external_link"] = external_link
        metadata = CompletedMetadata(**{**self.metadata.model_dump(), **update})
        return self.model_copy(update={"metadata": metadata, "updated_at": _utcnow()})


class DocumentPage(BaseModel):
    """A page of documents plus the total row count for pagination."""

    model_config = ConfigDict(frozen=True)

    documents: list[Document] = Field(default_factory=list)
    total: int = Field(default=0, ge=0)
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=50, ge=1)
