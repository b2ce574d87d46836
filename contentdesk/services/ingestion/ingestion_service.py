"""Orchestrator for the document ingestion pipeline.

Pipeline steps: **fetch -> extract metadata -> chunk -> embed & store ->
record tracking -> mark ingested**.

The :class:`IngestionService` implements the **Orchestrator pattern**: it
coordinates the chunker, metadata extractor, embedding client, vector-store
registry, and document store without any of them knowing about each other.

Each step runs through an :class:`~contentdesk.interfaces.job_context.IJobContext`
under a stable name, so when the job runner retries a failed job, steps that
already completed return their recorded result instead of running again.
Effects inside the step that was interrupted may repeat (for example a
vector row inserted just before a crash); ingestion is at-least-once.

Partial success is deliberate: a chunk whose embedding fails after every
retry is skipped and the run still succeeds with fewer vectors.  Only when
*no* vector row is produced does the run fail with
:class:`~contentdesk.utils.errors.IngestionProducedNoVectorsError`, leaving
any earlier tracking record untouched.

Re-running ingestion for a document that already has a tracking record adds
a second batch of vectors and a second tracking record; callers delete
first to avoid duplicates.
"""

from __future__ import annotations

import math
import time
from typing import TYPE_CHECKING, Any

import structlog

from contentdesk.models.document import CompletedMetadata, Document
from contentdesk.models.ingestion import (
    Chunk,
    IngestionResult,
    IngestionTracking,
    VectorRecord,
    VectorTarget,
)
from contentdesk.pipeline.job_runner import InlineJobContext
from contentdesk.utils.errors import (
    DocumentNotFoundError,
    EmptyTranscriptError,
    IngestionProducedNoVectorsError,
)

if TYPE_CHECKING:
    from contentdesk.interfaces.document_store import IDocumentStore
    from contentdesk.interfaces.job_context import IJobContext
    from contentdesk.interfaces.vector_store_provider import IVectorStoreProvider
    from contentdesk.providers.vector_store.registry import VectorStoreRegistry
    from contentdesk.services.ingestion.chunker import TextChunker
    from contentdesk.services.ingestion.embedding_client import EmbeddingClient
    from contentdesk.services.ingestion.metadata_extractor import MetadataExtractor

logger = structlog.get_logger(logger_name=__name__)

# Rough chars-per-token ratio used for the diagnostic token estimate.
_CHARS_PER_TOKEN = 4


class IngestionService:
    """Turns a completed document's text into tracked vector rows.

    Parameters
    ----------
    document_store:
        Persistence for documents, field definitions, and tracking rows.
    vector_stores:
        Resolves a :class:`VectorTarget` to its repository.
    chunker:
        Splits document text into bounded chunks.
    metadata_extractor:
        Fills the owner's enabled metadata fields from the text.
    embedding_client:
        Embeds one chunk at a time with bounded retry.
    """

    def __init__(
        self,
        document_store: IDocumentStore,
        vector_stores: VectorStoreRegistry,
        chunker: TextChunker,
        metadata_extractor: MetadataExtractor,
        embedding_client: EmbeddingClient,
    ) -> None:
        self._store = document_store
        self._vector_stores = vector_stores
        self._chunker = chunker
        self._metadata_extractor = metadata_extractor
        self._embedding_client = embedding_client

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def ingest(
        self,
        owner_id: str,
        document_id: str,
        target: VectorTarget = VectorTarget.PRIMARY,
        external_link: str | None = None,
        job: IJobContext | None = None,
    ) -> IngestionResult:
        """Ingest one document into *target*.

        Returns
        -------
        IngestionResult
            Vector and chunk counts for the run.

        Raises
        ------
        DocumentNotFoundError
            If the document does not exist for *owner_id*.
        EmptyTranscriptError
            If the document has no text.
        IngestionProducedNoVectorsError
            If every chunk failed to embed or insert.
        """
        job = job or InlineJobContext()
        vector_store = self._vector_stores.resolve(target)
        start = time.monotonic()

        document = await job.run(
            "fetch-document", lambda: self._fetch_document(owner_id, document_id)
        )
        fields = await job.run(
            "extract-metadata", lambda: self._extract_metadata(owner_id, document)
        )
        chunks = await job.run("chunk-text", lambda: self._chunk(document))

        vector_ids = await job.run(
            "embed-and-store",
            lambda: self._embed_and_store(
                owner_id, document, chunks, fields, vector_store, external_link
            ),
        )

        if not vector_ids:
            logger.error(
                "ingestion_no_vectors",
                document_id=document_id,
                chunks=len(chunks),
                target=target.value,
            )
            raise IngestionProducedNoVectorsError()

        await job.run(
            "record-tracking",
            lambda: self._store.insert_tracking(
                IngestionTracking(
                    owner_id=owner_id,
                    document_id=document_id,
                    vector_ids=vector_ids,
                    chunk_count=len(vector_ids),
                    target=target,
                    external_link=external_link,
                )
            ),
        )
        await job.run(
            "mark-ingested",
            lambda: self._mark_ingested(document_id, len(vector_ids), external_link),
        )

        elapsed = round(time.monotonic() - start, 2)
        logger.info(
            "ingestion_complete",
            document_id=document_id,
            target=target.value,
            chunks=len(chunks),
            vectors=len(vector_ids),
            skipped=len(chunks) - len(vector_ids),
            time_s=elapsed,
        )
        return IngestionResult(
            document_id=document_id,
            vector_count=len(vector_ids),
            chunk_count=len(chunks),
            target=target,
            vector_ids=vector_ids,
        )

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def _fetch_document(self, owner_id: str, document_id: str) -> Document:
        document = await self._store.get_document(document_id)
        if document is None or document.owner_id != owner_id:
            raise DocumentNotFoundError(f"Document {document_id} not found")
        if not document.transcript or not document.transcript.strip():
            raise EmptyTranscriptError(f"Document {document_id} has no transcript")

        prior = await self._store.list_tracking(document_id)
        if prior:
            logger.warning(
                "reingest_duplicates_vectors",
                document_id=document_id,
                existing_tracking=len(prior),
            )
        return document

    async def _extract_metadata(self, owner_id: str, document: Document) -> dict[str, str]:
        definitions = await self._store.list_metadata_fields(owner_id, enabled_only=True)
        if not definitions:
            logger.info("metadata_extraction_skipped", document_id=document.id)
            return {}

        examples = {d.field_name: d.example_value for d in definitions if d.example_value}
        return await self._metadata_extractor.extract(
            [d.field_name for d in definitions],
            document.transcript or "",
            examples=examples,
        )

    async def _chunk(self, document: Document) -> list[Chunk]:
        chunks = self._chunker.chunk(document.transcript or "")
        logger.info("document_chunked", document_id=document.id, chunks=len(chunks))
        return chunks

    async def _embed_and_store(
        self,
        owner_id: str,
        document: Document,
        chunks: list[Chunk],
        fields: dict[str, str],
        vector_store: IVectorStoreProvider,
        external_link: str | None,
    ) -> list[int]:
        vector_ids: list[int] = []

        for chunk in chunks:
            outcome = await self._embedding_client.embed(chunk.content)
            if not outcome.succeeded:
                logger.warning(
                    "chunk_skipped",
                    document_id=document.id,
                    chunk_index=chunk.index,
                    attempts=outcome.attempts,
                    error=outcome.error,
                )
                continue

            metadata: dict[str, Any] = {
                **fields,
                "document_id": document.id,
                "filename": document.filename,
                "source_type": document.source_kind.value,
                "user_id": owner_id,
                "_source": document.source_url,
                "_original_filename": document.filename,
                "_chunk_index": chunk.index,
                "_embedding_status": "success",
                "_embedding_attempts": outcome.attempts,
                "_embedding_error": outcome.error,
                "_estimated_tokens": math.ceil(len(chunk.content) / _CHARS_PER_TOKEN),
            }
            if external_link:
                metadata["link_to_resource"] = external_link

            record = VectorRecord(
                owner_id=owner_id,
                content=chunk.content,
                embedding=outcome.embedding or [],
                metadata=metadata,
            )
            try:
                vector_ids.append(await vector_store.insert(record))
            except Exception as exc:  # noqa: BLE001 - one bad row must not sink the run
                logger.warning(
                    "vector_insert_failed",
                    document_id=document.id,
                    chunk_index=chunk.index,
                    error=str(exc),
                )

        return vector_ids

    async def _mark_ingested(
        self, document_id: str, vector_count: int, external_link: str | None
    ) -> Document | None:
        document = await self._store.get_document(document_id)
        if document is None or not isinstance(document.metadata, CompletedMetadata):
            # Deleted or re-transcribed while ingesting; last write wins.
            logger.warning("document_changed_during_ingestion", document_id=document_id)
            return None
        return await self._store.update_document(
            document.mark_ingested(vector_count, external_link)
        )
