"""Shared pytest fixtures for the contentdesk test suite.

The stores and blob storage are real in-memory implementations of the
interfaces so orchestrator tests can assert on resulting state.  External
services (LLM, speech-to-text, transcript fetch, extractors) are
``MagicMock(spec=...)`` doubles with ``AsyncMock`` coroutines.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

# Imported at collection time: ``contentdesk.main`` configures logging on import,
# and doing that inside a ``capsys`` test would bind structlog to a stream
# pytest closes when that test ends.
import contentdesk.main  # noqa: F401
from contentdesk.interfaces.blob_storage_provider import BlobInfo, IBlobStorageProvider
from contentdesk.interfaces.document_store import IDocumentStore
from contentdesk.interfaces.embedding_provider import IEmbeddingProvider
from contentdesk.interfaces.llm_provider import ILLMProvider
from contentdesk.interfaces.speech_to_text_provider import (
    ISpeechToTextProvider,
    SpeechToTextJob,
    SpeechToTextStatus,
)
from contentdesk.interfaces.text_extractor import IAudioExtractor, IDocumentTextExtractor
from contentdesk.interfaces.transcript_fetch_provider import ITranscriptFetchProvider
from contentdesk.interfaces.vector_store_provider import IVectorStoreProvider
from contentdesk.models.document import Document, DocumentPage, ProcessingMetadata, SourceKind
from contentdesk.models.ingestion import (
    CompleteDeletion,
    IngestionTracking,
    MetadataFieldDefinition,
    VectorMatch,
    VectorRecord,
    VectorTarget,
)
from contentdesk.models.link import LinkRecord
from contentdesk.providers.vector_store.registry import VectorStoreRegistry
from contentdesk.providers.vector_store.similarity import rank
from contentdesk.utils.errors import DocumentNotFoundError, RAGError, StorageError

OWNER = "owner-1"
OTHER_OWNER = "owner-2"


# ---------------------------------------------------------------------------
# In-memory implementations
# ---------------------------------------------------------------------------


class InMemoryVectorStore(IVectorStoreProvider):
    """Vector rows for one target held in a dict.

    ``fail_on_insert`` holds chunk contents whose insert should raise;
    ``fail_deletes`` makes every delete raise.
    """

    def __init__(self, target: VectorTarget) -> None:
        self._target = target
        self.rows: dict[int, VectorRecord] = {}
        self._next_id = 1
        self.fail_on_insert: set[str] = set()
        self.fail_deletes = False

    def get_target(self) -> VectorTarget:
        return self._target

    async def insert(self, record: VectorRecord) -> int:
        if record.content in self.fail_on_insert:
            raise RAGError("insert rejected", provider_name=self.get_provider_name())
        row_id = self._next_id
        self._next_id += 1
        self.rows[row_id] = record
        return row_id

    async def delete_by_ids(self, ids: list[int]) -> int:
        if self.fail_deletes:
            raise RAGError("delete rejected", provider_name=self.get_provider_name())
        removed = 0
        for row_id in ids:
            if self.rows.pop(row_id, None) is not None:
                removed += 1
        return removed

    async def query(
        self,
        embedding: list[float],
        top_k: int = 10,
        min_similarity: float = 0.0,
        owner_id: str | None = None,
    ) -> list[VectorMatch]:
        items = [
            (row_id, record)
            for row_id, record in self.rows.items()
            if owner_id is None or record.owner_id == owner_id
        ]
        ranked = rank(embedding, [r.embedding for _, r in items], top_k, min_similarity)
        return [
            VectorMatch(
                id=items[i][0],
                content=items[i][1].content,
                metadata=items[i][1].metadata,
                similarity=score,
            )
            for i, score in ranked
        ]

    async def count(self, owner_id: str | None = None) -> int:
        return sum(1 for r in self.rows.values() if owner_id is None or r.owner_id == owner_id)

    def get_provider_name(self) -> str:
        return f"memory:{self._target.value}"


class InMemoryDocumentStore(IDocumentStore):
    """Dict-backed document store.

    ``delete_document_complete`` removes vectors through *vector_stores* so
    multi-document deletion can be exercised without SQLite.
    """

    def __init__(self, vector_stores: VectorStoreRegistry | None = None) -> None:
        self.documents: dict[str, Document] = {}
        self.fields: dict[int, MetadataFieldDefinition] = {}
        self.tracking: dict[int, IngestionTracking] = {}
        self.links: dict[str, LinkRecord] = {}
        self._vector_stores = vector_stores
        self._next_field_id = 1
        self._next_tracking_id = 1
        self.fail_document_delete = False

    async def initialize(self) -> None:
        return None

    # -- Documents --

    async def insert_document(self, document: Document) -> Document:
        self.documents[document.id] = document
        return document

    async def get_document(self, document_id: str) -> Document | None:
        return self.documents.get(document_id)

    async def update_document(self, document: Document) -> Document:
        if document.id not in self.documents:
            raise DocumentNotFoundError(f"Document {document.id} not found")
        self.documents[document.id] = document
        return document

    async def delete_document(self, document_id: str) -> bool:
        if self.fail_document_delete:
            return False
        return self.documents.pop(document_id, None) is not None

    async def list_documents(
        self,
        owner_id: str,
        page: int = 1,
        limit: int = 50,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
    ) -> DocumentPage:
        docs = [
            d
            for d in self.documents.values()
            if d.owner_id == owner_id
            and (date_from is None or d.created_at >= date_from)
            and (date_to is None or d.created_at <= date_to)
        ]
        docs.sort(key=lambda d: d.created_at, reverse=True)
        start = (page - 1) * limit
        return DocumentPage(
            documents=docs[start : start + limit], total=len(docs), page=page, limit=limit
        )

    async def delete_document_complete(self, owner_id: str, document_id: str) -> CompleteDeletion:
        document = self.documents.get(document_id)
        if document is None or document.owner_id != owner_id:
            raise DocumentNotFoundError(f"Document {document_id} not found")

        manifests = [t for t in self.tracking.values() if t.document_id == document_id]
        deleted_vectors = 0
        for manifest in manifests:
            if self._vector_stores is not None and manifest.vector_ids:
                store = self._vector_stores.resolve(manifest.target)
                deleted_vectors += await store.delete_by_ids(manifest.vector_ids)
            del self.tracking[manifest.id]
        del self.documents[document_id]
        return CompleteDeletion(
            document_id=document_id,
            source_url=document.source_url,
            deleted_vectors=deleted_vectors,
            deleted_tracking=len(manifests),
        )

    # -- Metadata fields --

    async def list_metadata_fields(
        self, owner_id: str, enabled_only: bool = False
    ) -> list[MetadataFieldDefinition]:
        return [
            f
            for _, f in sorted(self.fields.items())
            if f.owner_id == owner_id and (f.enabled or not enabled_only)
        ]

    async def create_metadata_field(
        self, field: MetadataFieldDefinition
    ) -> MetadataFieldDefinition:
        stored = field.model_copy(update={"id": self._next_field_id})
        self.fields[self._next_field_id] = stored
        self._next_field_id += 1
        return stored

    async def set_metadata_field_enabled(
        self, owner_id: str, field_id: int, enabled: bool
    ) -> MetadataFieldDefinition | None:
        field = self.fields.get(field_id)
        if field is None or field.owner_id != owner_id:
            return None
        updated = field.model_copy(update={"enabled": enabled})
        self.fields[field_id] = updated
        return updated

    async def delete_metadata_field(self, owner_id: str, field_id: int) -> bool:
        field = self.fields.get(field_id)
        if field is None or field.owner_id != owner_id:
            return False
        del self.fields[field_id]
        return True

    # -- Tracking --

    async def insert_tracking(self, tracking: IngestionTracking) -> IngestionTracking:
        stored = tracking.model_copy(update={"id": self._next_tracking_id})
        self.tracking[self._next_tracking_id] = stored
        self._next_tracking_id += 1
        return stored

    async def list_tracking(self, document_id: str) -> list[IngestionTracking]:
        rows = [t for t in self.tracking.values() if t.document_id == document_id]
        return sorted(rows, key=lambda t: t.id or 0, reverse=True)

    async def delete_tracking(self, tracking_ids: list[int]) -> int:
        removed = 0
        for tracking_id in tracking_ids:
            if self.tracking.pop(tracking_id, None) is not None:
                removed += 1
        return removed

    # -- Links --

    async def insert_link(self, link: LinkRecord) -> LinkRecord:
        self.links[link.id] = link
        return link

    async def get_link(self, link_id: str) -> LinkRecord | None:
        return self.links.get(link_id)

    async def list_links(self, owner_id: str) -> list[LinkRecord]:
        links = [link for link in self.links.values() if link.owner_id == owner_id]
        return sorted(links, key=lambda link: link.created_at, reverse=True)

    async def delete_link(self, owner_id: str, link_id: str) -> bool:
        link = self.links.get(link_id)
        if link is None or link.owner_id != owner_id:
            return False
        del self.links[link_id]
        return True

    async def search_links(
        self,
        embedding: list[float],
        top_k: int = 10,
        min_similarity: float = 0.0,
        owner_id: str | None = None,
    ) -> list[tuple[LinkRecord, float]]:
        links = [
            link
            for link in self.links.values()
            if link.embedding is not None and (owner_id is None or link.owner_id == owner_id)
        ]
        ranked = rank(embedding, [link.embedding or [] for link in links], top_k, min_similarity)
        return [(links[i], score) for i, score in ranked]

    def get_provider_name(self) -> str:
        return "memory"


class InMemoryBlobStorage(IBlobStorageProvider):
    """Dict-backed blob storage recording every ``remove`` call."""

    def __init__(self) -> None:
        self.blobs: dict[str, tuple[bytes, datetime]] = {}
        self.remove_calls: list[list[str]] = []
        self.fail_removes = False

    def put(self, path: str, data: bytes, created_at: datetime | None = None) -> None:
        self.blobs[path] = (data, created_at or datetime.now(timezone.utc))

    async def upload(self, path: str, data: bytes, content_type: str | None = None) -> str:
        self.put(path, data)
        return path

    async def download(self, path: str) -> bytes:
        if path not in self.blobs:
            raise StorageError(f"Blob {path} not found", provider_name="memory")
        return self.blobs[path][0]

    async def create_signed_url(self, path: str, expires_in: int) -> str:
        return f"https://blobs.test/{path}?expires_in={expires_in}"

    async def remove(self, paths: list[str]) -> int:
        self.remove_calls.append(list(paths))
        if self.fail_removes:
            raise StorageError("remove rejected", provider_name="memory")
        removed = 0
        for path in paths:
            if self.blobs.pop(path, None) is not None:
                removed += 1
        return removed

    async def list(self, prefix: str = "", limit: int = 1000) -> list[BlobInfo]:
        infos = [
            BlobInfo(path=path, size=len(data), created_at=created_at)
            for path, (data, created_at) in self.blobs.items()
            if path.startswith(prefix)
        ]
        infos.sort(key=lambda b: b.created_at)
        return infos[:limit]

    def get_provider_name(self) -> str:
        return "memory"


class FakeEmbeddingProvider(IEmbeddingProvider):
    """Deterministic embeddings with scriptable failures.

    ``vectors`` maps exact texts to fixed embeddings; other texts get a
    small vector derived from their length.  ``failures`` maps a text to the
    number of times ``embed_single`` should raise for it before succeeding
    (``-1`` means always).
    """

    def __init__(self, vectors: dict[str, list[float]] | None = None) -> None:
        self.vectors = dict(vectors or {})
        self.failures: dict[str, int] = {}
        self.calls: list[str] = []

    async def embed(self, texts: list[str]) -> list[list[float]]:
        return [await self.embed_single(t) for t in texts]

    async def embed_single(self, text: str) -> list[float]:
        self.calls.append(text)
        remaining = self.failures.get(text, 0)
        if remaining != 0:
            if remaining > 0:
                self.failures[text] = remaining - 1
            raise RAGError("embedding service unavailable", provider_name="fake-embed")
        if text in self.vectors:
            return self.vectors[text]
        return [1.0, float(len(text) % 7), 0.5]

    def get_dimension(self) -> int:
        return 3

    def get_provider_name(self) -> str:
        return "fake-embed"

    def is_available(self) -> bool:
        return True


async def no_sleep(_seconds: float) -> None:
    return None


def make_document(
    document_id: str = "doc-1",
    owner_id: str = OWNER,
    filename: str = "talk.txt",
    source_kind: SourceKind = SourceKind.DOCUMENT,
    source_url: str | None = "owner-1/abc-talk.txt",
    transcript: str | None = None,
    **kwargs: Any,
) -> Document:
    """Build a document; pass ``transcript`` to get a completed one."""
    document = Document(
        id=document_id,
        owner_id=owner_id,
        filename=filename,
        source_kind=source_kind,
        source_url=source_url,
        metadata=ProcessingMetadata(size=kwargs.pop("size", None)),
        **kwargs,
    )
    if transcript is not None:
        document = document.complete(transcript)
    return document


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def primary_store() -> InMemoryVectorStore:
    return InMemoryVectorStore(VectorTarget.PRIMARY)


@pytest.fixture
def secondary_store() -> InMemoryVectorStore:
    return InMemoryVectorStore(VectorTarget.SECONDARY)


@pytest.fixture
def vector_stores(
    primary_store: InMemoryVectorStore, secondary_store: InMemoryVectorStore
) -> VectorStoreRegistry:
    return VectorStoreRegistry([primary_store, secondary_store])


@pytest.fixture
def document_store(vector_stores: VectorStoreRegistry) -> InMemoryDocumentStore:
    return InMemoryDocumentStore(vector_stores=vector_stores)


@pytest.fixture
def blob_storage() -> InMemoryBlobStorage:
    return InMemoryBlobStorage()


@pytest.fixture
def embedding_provider() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider()


@pytest.fixture
def mock_llm_provider() -> ILLMProvider:
    """Mock ILLMProvider; override ``complete.return_value`` per test."""
    mock = MagicMock(spec=ILLMProvider)
    mock.get_provider_name.return_value = "mock-llm"
    mock.is_available.return_value = True
    mock.complete = AsyncMock(return_value="{}")
    return mock


@pytest.fixture
def mock_speech_to_text() -> ISpeechToTextProvider:
    """Mock speech-to-text service that completes on the first poll."""
    mock = MagicMock(spec=ISpeechToTextProvider)
    mock.get_provider_name.return_value = "mock-stt"
    mock.is_available.return_value = True
    mock.upload = AsyncMock(return_value="https://stt.test/upload/1")
    mock.submit = AsyncMock(return_value="stt-job-1")
    mock.get_status = AsyncMock(
        return_value=SpeechToTextJob(
            job_id="stt-job-1", status=SpeechToTextStatus.COMPLETED, text="hello from audio"
        )
    )
    return mock


@pytest.fixture
def mock_transcript_fetcher() -> ITranscriptFetchProvider:
    mock = MagicMock(spec=ITranscriptFetchProvider)
    mock.get_provider_name.return_value = "mock-youtube"
    mock.is_available.return_value = True
    mock.fetch_transcript = AsyncMock(return_value="youtube transcript text")
    return mock


@pytest.fixture
def mock_text_extractor() -> IDocumentTextExtractor:
    mock = MagicMock(spec=IDocumentTextExtractor)
    mock.extract_pdf_pages.return_value = ["Page one.", "Page two."]
    mock.extract_docx_text.return_value = "Docx body."
    return mock


@pytest.fixture
def mock_audio_extractor() -> IAudioExtractor:
    mock = MagicMock(spec=IAudioExtractor)
    mock.extract_audio.return_value = b"mp3-bytes"
    mock.is_available.return_value = True
    return mock
