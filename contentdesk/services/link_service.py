"""External link management.

A link is embedded once from its name and description and stored with that
embedding for link-level search.  On creation it is also auto-ingested as a
single vector row in the primary target, so document-level search surfaces
it too.  Auto-ingest failures are logged; the link itself is kept.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

import structlog

from contentdesk.models.ingestion import VectorRecord, VectorTarget
from contentdesk.models.link import LinkRecord
from contentdesk.utils.errors import DocumentNotFoundError

if TYPE_CHECKING:
    from contentdesk.interfaces.document_store import IDocumentStore
    from contentdesk.interfaces.embedding_provider import IEmbeddingProvider
    from contentdesk.providers.vector_store.registry import VectorStoreRegistry

logger = structlog.get_logger(logger_name=__name__)


class LinkService:
    """Creates, ingests, lists, and deletes link records."""

    def __init__(
        self,
        document_store: IDocumentStore,
        embedding_provider: IEmbeddingProvider,
        vector_stores: VectorStoreRegistry,
    ) -> None:
        self._store = document_store
        self._embedding = embedding_provider
        self._vector_stores = vector_stores

    async def create_link(
        self,
        owner_id: str,
        name: str,
        url: str,
        description: str = "",
        document_ids: list[str] | None = None,
    ) -> LinkRecord:
        """Embed and store a link, then auto-ingest it into the primary target.

        Raises
        ------
        contentdesk.utils.errors.RAGError
            If the link's embedding cannot be generated.
        """
        draft = LinkRecord(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            name=name,
            url=url,
            description=description,
            document_ids=document_ids or [],
        )
        embedding = await self._embedding.embed_single(draft.embedding_text())
        link = await self._store.insert_link(draft.model_copy(update={"embedding": embedding}))
        logger.info("link_created", link_id=link.id)

        try:
            await self.ingest_link(owner_id, link.id)
        except Exception as exc:  # noqa: BLE001 - link stays searchable on its own
            logger.warning("link_auto_ingest_failed", link_id=link.id, error=str(exc))
        return link

    async def ingest_link(self, owner_id: str, link_id: str) -> int:
        """Write one vector row for the link and return its id."""
        link = await self._get(owner_id, link_id)
        embedding = link.embedding or await self._embedding.embed_single(link.embedding_text())
        store = self._vector_stores.resolve(VectorTarget.PRIMARY)
        vector_id = await store.insert(
            VectorRecord(
                owner_id=owner_id,
                content=link.vector_content(),
                embedding=embedding,
                metadata={
                    "link_id": link.id,
                    "link_name": link.name,
                    "link_url": link.url,
                    "source_type": "link",
                    "user_id": owner_id,
                },
            )
        )
        logger.info("link_ingested", link_id=link.id, vector_id=vector_id)
        return vector_id

    async def list_links(self, owner_id: str) -> list[LinkRecord]:
        return await self._store.list_links(owner_id)

    async def delete_link(self, owner_id: str, link_id: str) -> None:
        if not await self._store.delete_link(owner_id, link_id):
            raise DocumentNotFoundError(f"Link {link_id} not found")
        logger.info("link_deleted", link_id=link_id)

    async def _get(self, owner_id: str, link_id: str) -> LinkRecord:
        link = await self._store.get_link(link_id)
        if link is None or link.owner_id != owner_id:
            raise DocumentNotFoundError(f"Link {link_id} not found")
        return link
