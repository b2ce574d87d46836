"""Semantic search across ingested document chunks and links."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from contentdesk.models.ingestion import VectorTarget
from contentdesk.models.link import SearchHit

if TYPE_CHECKING:
    from contentdesk.interfaces.document_store import IDocumentStore
    from contentdesk.interfaces.embedding_provider import IEmbeddingProvider
    from contentdesk.providers.vector_store.registry import VectorStoreRegistry

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_THRESHOLD = 0.5
_DEFAULT_COUNT = 10


class SearchService:
    """Embeds a query and merges chunk and link matches by similarity.

    Parameters
    ----------
    document_store:
        Source of link matches.
    embedding_provider:
        Embeds the query text.
    vector_stores:
        Source of chunk matches.
    threshold, count:
        Default similarity floor and per-source match count.
    """

    def __init__(
        self,
        document_store: IDocumentStore,
        embedding_provider: IEmbeddingProvider,
        vector_stores: VectorStoreRegistry,
        threshold: float = _DEFAULT_THRESHOLD,
        count: int = _DEFAULT_COUNT,
    ) -> None:
        self._store = document_store
        self._embedding = embedding_provider
        self._vector_stores = vector_stores
        self._threshold = threshold
        self._count = count

    async def search(
        self,
        owner_id: str,
        query: str,
        target: VectorTarget = VectorTarget.PRIMARY,
        threshold: float | None = None,
        count: int | None = None,
    ) -> list[SearchHit]:
        """Return chunk and link hits for *query*, most similar first."""
        threshold = self._threshold if threshold is None else threshold
        count = count or self._count

        embedding = await self._embedding.embed_single(query)

        chunk_matches = await self._vector_stores.resolve(target).query(
            embedding, top_k=count, min_similarity=threshold, owner_id=owner_id
        )
        link_matches = await self._store.search_links(
            embedding, top_k=count, min_similarity=threshold, owner_id=owner_id
        )

        hits = [
            SearchHit(
                kind="document",
                id=str(match.id),
                content=match.content,
                similarity=match.similarity,
                metadata=match.metadata,
            )
            for match in chunk_matches
        ]
        hits.extend(
            SearchHit(
                kind="link",
                id=link.id,
                content=link.vector_content(),
                similarity=similarity,
                metadata={"name": link.name, "url": link.url, "document_ids": link.document_ids},
            )
            for link, similarity in link_matches
        )
        hits.sort(key=lambda h: h.similarity, reverse=True)

        logger.info(
            "search_complete",
            query_length=len(query),
            chunk_hits=len(chunk_matches),
            link_hits=len(link_matches),
        )
        return hits
