"""Document registration and listing.

Creates document records in their initial lifecycle state:

- uploaded files and YouTube links start ``processing`` (a transcription
  job is expected to follow);
- pasted text starts ``completed`` immediately, since the text is already
  known.
"""

from __future__ import annotations

import re
import uuid
from datetime import datetime
from typing import TYPE_CHECKING

import structlog
from pydantic import BaseModel, ConfigDict, Field

from contentdesk.models.document import Document, DocumentPage, ProcessingMetadata, SourceKind
from contentdesk.models.ingestion import BatchDeletionResult
from contentdesk.services.transcription_service import AUDIO_EXTENSIONS, file_extension
from contentdesk.utils.errors import DocumentNotFoundError, EmptyTranscriptError

if TYPE_CHECKING:
    from contentdesk.interfaces.blob_storage_provider import IBlobStorageProvider
    from contentdesk.interfaces.document_store import IDocumentStore
    from contentdesk.services.deletion_service import DeletionService

logger = structlog.get_logger(logger_name=__name__)

VIDEO_EXTENSIONS = frozenset({"mp4", "mov", "m4v", "webm", "mkv", "avi"})

_UNSAFE_FILENAME_RE = re.compile(r"[^A-Za-z0-9._-]+")


def source_kind_for(filename: str) -> SourceKind:
    """Classify an upload by its extension (audio, video, else document)."""
    extension = file_extension(filename)
    if extension in AUDIO_EXTENSIONS:
        return SourceKind.AUDIO
    if extension in VIDEO_EXTENSIONS:
        return SourceKind.VIDEO
    return SourceKind.DOCUMENT


def storage_path_for(owner_id: str, filename: str) -> str:
    safe_name = _UNSAFE_FILENAME_RE.sub("_", filename).strip("_") or "upload"
    return f"{owner_id}/{uuid.uuid4()}-{safe_name}"


class UploadedBlob(BaseModel):
    """A file the client already wrote to blob storage."""

    model_config = ConfigDict(frozen=True)

    filename: str = Field(min_length=1)
    storage_path: str = Field(min_length=1)
    size: int | None = Field(default=None, ge=0)
    source_kind: SourceKind | None = None


class DocumentService:
    """Creates and lists document records.

    Parameters
    ----------
    document_store:
        Document persistence.
    blob_storage:
        Destination for uploaded file bytes.
    deletion_service:
        Handles multi-document deletion.
    """

    def __init__(
        self,
        document_store: IDocumentStore,
        blob_storage: IBlobStorageProvider,
        deletion_service: DeletionService,
    ) -> None:
        self._store = document_store
        self._blobs = blob_storage
        self._deletion = deletion_service

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def upload(
        self,
        owner_id: str,
        filename: str,
        data: bytes,
        content_type: str | None = None,
        source_kind: SourceKind | None = None,
    ) -> Document:
        """Store an uploaded file and register a ``processing`` document for it."""
        path = await self._blobs.upload(storage_path_for(owner_id, filename), data, content_type)
        return await self.register_upload(
            owner_id,
            filename=filename,
            storage_path=path,
            size=len(data),
            source_kind=source_kind or source_kind_for(filename),
        )

    async def register_upload(
        self,
        owner_id: str,
        filename: str,
        storage_path: str,
        size: int | None = None,
        source_kind: SourceKind | None = None,
    ) -> Document:
        """Register a document for a blob that is already in storage."""
        document = Document(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            filename=filename,
            source_kind=source_kind or source_kind_for(filename),
            source_url=storage_path,
            metadata=ProcessingMetadata(progress=0, size=size),
        )
        stored = await self._store.insert_document(document)
        logger.info(
            "upload_registered",
            document_id=stored.id,
            source_kind=stored.source_kind.value,
            size=size,
        )
        return stored

    async def register_uploads(self, owner_id: str, uploads: list[UploadedBlob]) -> list[Document]:
        """Register one ``processing`` document per already-stored blob."""
        return [
            await self.register_upload(
                owner_id,
                filename=upload.filename,
                storage_path=upload.storage_path,
                size=upload.size,
                source_kind=upload.source_kind,
            )
            for upload in uploads
        ]

    async def create_text_document(self, owner_id: str, title: str, text: str) -> Document:
        """Create a ``completed`` document from pasted text."""
        if not text.strip():
            raise EmptyTranscriptError("Pasted text is empty")
        document = Document(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            filename=title.strip() or "Untitled",
            source_kind=SourceKind.DOCUMENT,
            metadata=ProcessingMetadata(),
        ).complete(
            text,
            content_type="freeform_text",
            word_count=len(text.split()),
            char_count=len(text),
        )
        stored = await self._store.insert_document(document)
        logger.info("text_document_created", document_id=stored.id, chars=len(text))
        return stored

    async def create_youtube_document(
        self, owner_id: str, video_url: str, title: str | None = None
    ) -> Document:
        """Register a ``processing`` document for a YouTube URL."""
        document = Document(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            filename=title or video_url,
            source_kind=SourceKind.YOUTUBE,
            source_url=video_url,
        )
        stored = await self._store.insert_document(document)
        logger.info("youtube_document_created", document_id=stored.id)
        return stored

    async def get_document(self, owner_id: str, document_id: str) -> Document:
        document = await self._store.get_document(document_id)
        if document is None or document.owner_id != owner_id:
            raise DocumentNotFoundError(f"Document {document_id} not found")
        return document

    async def list_documents(
        self,
        owner_id: str,
        page: int = 1,
        limit: int = 50,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
    ) -> DocumentPage:
        return await self._store.list_documents(
            owner_id, page=page, limit=limit, date_from=date_from, date_to=date_to
        )

    async def delete_documents(self, owner_id: str, document_ids: list[str]) -> BatchDeletionResult:
        return await self._deletion.delete_many(owner_id, document_ids)
