"""Pydantic request/response schemas for the contentdesk API.

Request schemas end with ``Request`` and response schemas with
``Response``.  Domain models are reused as nested fields where their shape
is already the public contract.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from contentdesk.models.document import Document, SourceKind
from contentdesk.models.ingestion import DocumentDeletionError, MetadataFieldDefinition, VectorTarget
from contentdesk.models.job import JobRecord
from contentdesk.models.link import LinkRecord, SearchHit


class DocumentResponse(BaseModel):
    """A document with its derived status."""

    id: str
    filename: str
    source_kind: SourceKind
    source_url: str | None = None
    status: str
    transcript: str | None = None
    metadata: dict[str, Any]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_document(cls, document: Document, include_transcript: bool = True) -> DocumentResponse:
        return cls(
            id=document.id,
            filename=document.filename,
            source_kind=document.source_kind,
            source_url=document.source_url,
            status=document.status.value,
            transcript=document.transcript if include_transcript else None,
            metadata=document.metadata.model_dump(),
            created_at=document.created_at,
            updated_at=document.updated_at,
        )


class DocumentListResponse(BaseModel):
    documents: list[DocumentResponse] = Field(default_factory=list)
    total: int
    page: int
    limit: int


class UploadedBlobInput(BaseModel):
    """A file the client already placed in blob storage."""

    filename: str = Field(min_length=1)
    storage_path: str = Field(min_length=1)
    size: int | None = Field(default=None, ge=0)
    source_kind: SourceKind | None = None


class RegisterUploadsRequest(BaseModel):
    files: list[UploadedBlobInput] = Field(min_length=1)
    transcribe: bool = Field(default=True, description="Start a transcription job per document.")


class CreateTextDocumentRequest(BaseModel):
    title: str = ""
    text: str = Field(min_length=1)


class CreateYouTubeDocumentRequest(BaseModel):
    url: str = Field(min_length=1)
    title: str | None = None


class DocumentsCreatedResponse(BaseModel):
    """Documents created by a request plus any jobs started for them."""

    documents: list[DocumentResponse]
    job_ids: list[str] = Field(default_factory=list)


class IngestRequest(BaseModel):
    target: VectorTarget = VectorTarget.PRIMARY
    external_link: str | None = None


class DeleteDocumentsRequest(BaseModel):
    document_ids: list[str] = Field(min_length=1)


class DeleteDocumentsResponse(BaseModel):
    success: bool
    deleted: int
    deleted_vectors: int
    errors: list[DocumentDeletionError] = Field(default_factory=list)


class JobSubmittedResponse(BaseModel):
    job_id: str
    status: str = "queued"


class JobResponse(BaseModel):
    job: JobRecord


class JobListResponse(BaseModel):
    jobs: list[JobRecord]


class CreateLinkRequest(BaseModel):
    name: str = Field(min_length=1)
    url: str = Field(min_length=1)
    description: str = ""
    document_ids: list[str] = Field(default_factory=list)


class LinkResponse(BaseModel):
    id: str
    name: str
    url: str
    description: str
    document_ids: list[str]
    created_at: datetime

    @classmethod
    def from_link(cls, link: LinkRecord) -> LinkResponse:
        return cls(
            id=link.id,
            name=link.name,
            url=link.url,
            description=link.description,
            document_ids=link.document_ids,
            created_at=link.created_at,
        )


class CreateMetadataFieldRequest(BaseModel):
    field_name: str = Field(min_length=1)
    example_value: str | None = None


class UpdateMetadataFieldRequest(BaseModel):
    enabled: bool


class MetadataFieldListResponse(BaseModel):
    fields: list[MetadataFieldDefinition]


class SearchRequest(BaseModel):
    query: str = Field(min_length=1)
    threshold: float | None = Field(default=None, ge=0.0, le=1.0)
    count: int | None = Field(default=None, ge=1, le=100)
    target: VectorTarget = VectorTarget.PRIMARY


class SearchResponse(BaseModel):
    query: str
    results: list[SearchHit]


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any]


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
