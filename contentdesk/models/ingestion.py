"""Ingestion pipeline data models.

Defines the transient :class:`Chunk`, the persisted vector and tracking
records, metadata-field definitions, and the result objects returned by the
ingestion and deletion orchestrators.  All models are frozen.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class VectorTarget(str, Enum):  # noqa: UP042
    """Known vector-store destinations ("knowledge bases").

    The value is the table name the target persists to.  Targets are
    resolved to a concrete repository through
    :class:`~contentdesk.providers.vector_store.registry.VectorStoreRegistry`,
    never by interpolating caller-supplied table names.
    """

    PRIMARY = "vector_documents"
    SECONDARY = "documents"

    @classmethod
    def from_table_name(cls, table_name: str) -> VectorTarget:
        """Resolve a stored table name back to its target.

        Raises
        ------
        ValueError
            If *table_name* is not a known target.
        """
        return cls(table_name)


class Chunk(BaseModel):
    """A bounded slice of document text, the unit of embedding.  Never persisted."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=0, description="Zero-based position within the parent document.")
    content: str = Field(min_length=1)


class EmbeddingOutcome(BaseModel):
    """Result of embedding one chunk, including retry diagnostics."""

    model_config = ConfigDict(frozen=True)

    embedding: list[float] | None = None
    attempts: int = Field(default=0, ge=0)
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.embedding is not None


class VectorRecord(BaseModel):
    """A vector row ready to be inserted into a target table."""

    model_config = ConfigDict(frozen=True)

    owner_id: str
    content: str
    embedding: list[float]
    metadata: dict[str, Any] = Field(default_factory=dict)


class VectorMatch(BaseModel):
    """A stored vector row returned from a similarity query."""

    model_config = ConfigDict(frozen=True)

    id: int
    content: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    similarity: float


class IngestionTracking(BaseModel):
    """Manifest linking a document to the vector rows one ingestion run produced."""

    model_config = ConfigDict(frozen=True)

    id: int | None = None
    owner_id: str
    document_id: str
    chunk_count: int = Field(default=0, ge=0, description="Chunks stored as vector rows.")
    vector_ids: list[int] = Field(default_factory=list)
    chunk_count: int = Field(default=0, ge=0)
    target: VectorTarget = VectorTarget.PRIMARY
    external_link: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)


class MetadataFieldDefinition(BaseModel):
    """A user-configured field the metadata extractor should look for."""

    model_config = ConfigDict(frozen=True)

    id: int | None = None
    owner_id: str
    field_name: str = Field(min_length=1)
    example_value: str | None = None
    enabled: bool = True
    created_at: datetime = Field(default_factory=_utcnow)


class IngestionResult(BaseModel):
    """Summary returned by a successful ingestion run."""

    model_config = ConfigDict(frozen=True)

    document_id: str
    vector_count: int = Field(ge=1)
    chunk_count: int = Field(ge=0)
    target: VectorTarget
    vector_ids: list[int] = Field(default_factory=list)


class DeletionResult(BaseModel):
    """Summary returned by a single-document deletion."""

    model_config = ConfigDict(frozen=True)

    document_id: str
    deleted_vectors: int = Field(default=0, ge=0)
    blob_removed: bool = False


class DocumentDeletionError(BaseModel):
    """Per-document failure detail from a multi-document deletion."""

    model_config = ConfigDict(frozen=True)

    document_id: str
    error: str


class BatchDeletionResult(BaseModel):
    """Aggregated outcome of a multi-document deletion."""

    model_config = ConfigDict(frozen=True)

    deleted: int = Field(default=0, ge=0)
    deleted_vectors: int = Field(default=0, ge=0)
    errors: list[DocumentDeletionError] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        """Overall success if at least one document was deleted or nothing failed."""
        return self.deleted > 0 or not self.errors


class CompleteDeletion(BaseModel):
    """What the persistence layer's atomic aggregate delete removed for one document."""

    model_config = ConfigDict(frozen=True)

    document_id: str
    source_url: str | None = None
    deleted_vectors: int = Field(default=0, ge=0)
    deleted_tracking: int = Field(default=0, ge=0)
