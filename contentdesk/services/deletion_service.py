"""Deletion orchestrator: reverses ingestion and removes a document.

Single-document deletion (:meth:`DeletionService.delete`) runs as ordered
steps, each independently fault tolerant where that is safe:

1. load the document (its storage path is needed for blob cleanup);
2. load its tracking manifests (none means zero vectors, not an error);
3. delete the referenced vector rows from each manifest's target
   -- failure is logged and the run continues;
4. delete the tracking manifests;
5. delete the document row -- failure is fatal and aborts before step 6;
6. remove the blob -- failure is logged as an orphaned blob, not raised.

The ordering is not atomic: a crash or failure at step 5 leaves vectors and
tracking rows already gone while the document row remains.

Multi-document deletion (:meth:`DeletionService.delete_many`) instead uses
the store's transactional
:meth:`~contentdesk.interfaces.document_store.IDocumentStore.delete_document_complete`
per document, then removes all collected blobs in one batch.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from contentdesk.models.document import Document, SourceKind
from contentdesk.models.ingestion import (
    BatchDeletionResult,
    DeletionResult,
    DocumentDeletionError,
    IngestionTracking,
)
from contentdesk.pipeline.job_runner import InlineJobContext
from contentdesk.utils.errors import DocumentNotFoundError, PersistenceError

if TYPE_CHECKING:
    from contentdesk.interfaces.blob_storage_provider import IBlobStorageProvider
    from contentdesk.interfaces.document_store import IDocumentStore
    from contentdesk.interfaces.job_context import IJobContext
    from contentdesk.providers.vector_store.registry import VectorStoreRegistry

logger = structlog.get_logger(logger_name=__name__)


def blob_path_for(document: Document) -> str | None:
    """Return the document's blob storage path, or ``None`` for external URLs."""
    locator = document.source_url
    if not locator or document.source_kind is SourceKind.YOUTUBE:
        return None
    if locator.startswith(("http://", "https://")):
        return None
    return locator


class DeletionService:
    """Deletes documents together with their vectors, tracking rows, and blobs.

    Parameters
    ----------
    document_store:
        Persistence for documents and tracking manifests.
    vector_stores:
        Resolves each manifest's target to its repository.
    blob_storage:
        Where uploaded source files live.
    """

    def __init__(
        self,
        document_store: IDocumentStore,
        vector_stores: VectorStoreRegistry,
        blob_storage: IBlobStorageProvider,
    ) -> None:
        self._store = document_store
        self._vector_stores = vector_stores
        self._blobs = blob_storage

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def delete(
        self,
        owner_id: str,
        document_id: str,
        job: IJobContext | None = None,
    ) -> DeletionResult:
        """Delete one document with best-effort cleanup of its dependents.

        Raises
        ------
        DocumentNotFoundError
            If the document does not exist for *owner_id*.
        PersistenceError
            If the document row itself could not be deleted.
        """
        job = job or InlineJobContext()

        document = await job.run("load-document", lambda: self._load(owner_id, document_id))
        manifests = await job.run("load-tracking", lambda: self._store.list_tracking(document_id))
        deleted_vectors = await job.run(
            "delete-vectors", lambda: self._delete_vectors(document_id, manifests)
        )
        if manifests:
            await job.run(
                "delete-tracking",
                lambda: self._store.delete_tracking([m.id for m in manifests if m.id is not None]),
            )
        await job.run("delete-document", lambda: self._delete_document(document_id))
        blob_removed = await job.run("remove-blob", lambda: self._remove_blob(document))

        logger.info(
            "document_deleted",
            document_id=document_id,
            deleted_vectors=deleted_vectors,
            tracking_rows=len(manifests),
            blob_removed=blob_removed,
        )
        return DeletionResult(
            document_id=document_id,
            deleted_vectors=deleted_vectors,
            blob_removed=blob_removed,
        )

    async def delete_many(self, owner_id: str, document_ids: list[str]) -> BatchDeletionResult:
        """Delete several documents, collecting per-document failures.

        Each document's row, tracking manifests, and vectors are removed in
        one transaction.  Blobs of deleted documents are removed together at
        the end; a blob failure is logged and does not affect the result.
        """
        deleted = 0
        deleted_vectors = 0
        errors: list[DocumentDeletionError] = []
        blob_paths: list[str] = []

        for document_id in document_ids:
            try:
                document = await self._store.get_document(document_id)
                outcome = await self._store.delete_document_complete(owner_id, document_id)
            except Exception as exc:  # noqa: BLE001 - aggregated per document
                logger.warning("batch_delete_item_failed", document_id=document_id, error=str(exc))
                errors.append(DocumentDeletionError(document_id=document_id, error=str(exc)))
                continue

            deleted += 1
            deleted_vectors += outcome.deleted_vectors
            path = blob_path_for(document) if document is not None else None
            if path:
                blob_paths.append(path)

        if blob_paths:
            try:
                await self._blobs.remove(blob_paths)
            except Exception as exc:  # noqa: BLE001 - rows are already gone
                logger.warning("orphaned_blobs", paths=blob_paths, error=str(exc))

        result = BatchDeletionResult(
            deleted=deleted, deleted_vectors=deleted_vectors, errors=errors
        )
        logger.info(
            "batch_delete_complete",
            requested=len(document_ids),
            deleted=deleted,
            failed=len(errors),
            deleted_vectors=deleted_vectors,
        )
        return result

    # ------------------------------------------------------------------
    # Step bodies
    # ------------------------------------------------------------------

    async def _load(self, owner_id: str, document_id: str) -> Document:
        document = await self._store.get_document(document_id)
        if document is None or document.owner_id != owner_id:
            raise DocumentNotFoundError(f"Document {document_id} not found")
        return document

    async def _delete_vectors(self, document_id: str, manifests: list[IngestionTracking]) -> int:
        total = 0
        for manifest in manifests:
            if not manifest.vector_ids:
                continue
            try:
                store = self._vector_stores.resolve(manifest.target)
                total += await store.delete_by_ids(manifest.vector_ids)
            except Exception as exc:  # noqa: BLE001 - best effort, document deletion continues
                logger.warning(
                    "vector_delete_failed",
                    document_id=document_id,
                    target=manifest.target.value,
                    vector_ids=len(manifest.vector_ids),
                    error=str(exc),
                )
        return total

    async def _delete_document(self, document_id: str) -> bool:
        if not await self._store.delete_document(document_id):
            raise PersistenceError(f"Document {document_id} could not be deleted")
        return True

    async def _remove_blob(self, document: Document) -> bool:
        path = blob_path_for(document)
        if path is None:
            return False
        try:
            await self._blobs.remove([path])
        except Exception as exc:  # noqa: BLE001 - the record is already gone
            logger.warning("orphaned_blob", document_id=document.id, path=path, error=str(exc))
            return False
        return True
