"""Unit tests for LinkService embedding and auto-ingest."""

from __future__ import annotations

import pytest

from contentdesk.services.link_service import LinkService
from contentdesk.utils.errors import DocumentNotFoundError, RAGError

from conftest import OTHER_OWNER, OWNER

_CONTENT = "Link: Docs\nDescription: Manual\nURL: https://docs.test"


@pytest.fixture
def service(document_store, embedding_provider, vector_stores):
    return LinkService(document_store, embedding_provider, vector_stores)


class TestCreateLink:
    @pytest.mark.asyncio
    async def test_embeds_stores_and_auto_ingests(
        self, service, document_store, primary_store, embedding_provider
    ) -> None:
        embedding_provider.vectors["Docs Manual"] = [0.3, 0.4, 0.0]

        link = await service.create_link(
            OWNER, "Docs", "https://docs.test", "Manual", document_ids=["doc-1"]
        )

        assert link.embedding == [0.3, 0.4, 0.0]
        assert (await document_store.get_link(link.id)).document_ids == ["doc-1"]
        row = next(iter(primary_store.rows.values()))
        assert row.content == _CONTENT
        assert row.embedding == [0.3, 0.4, 0.0]
        assert row.metadata["link_id"] == link.id
        assert row.metadata["source_type"] == "link"
        assert embedding_provider.calls == ["Docs Manual"]

    @pytest.mark.asyncio
    async def test_auto_ingest_failure_keeps_link(
        self, service, document_store, primary_store
    ) -> None:
        primary_store.fail_on_insert.add(_CONTENT)

        link = await service.create_link(OWNER, "Docs", "https://docs.test", "Manual")

        assert await document_store.get_link(link.id) is not None
        assert primary_store.rows == {}

    @pytest.mark.asyncio
    async def test_embedding_failure_stores_nothing(
        self, service, document_store, embedding_provider
    ) -> None:
        embedding_provider.failures["Docs Manual"] = -1

        with pytest.raises(RAGError):
            await service.create_link(OWNER, "Docs", "https://docs.test", "Manual")
        assert document_store.links == {}


class TestLinkLifecycle:
    @pytest.mark.asyncio
    async def test_list_and_delete_are_owner_scoped(self, service) -> None:
        link = await service.create_link(OWNER, "Docs", "https://docs.test")

        assert [x.id for x in await service.list_links(OWNER)] == [link.id]
        assert await service.list_links(OTHER_OWNER) == []
        with pytest.raises(DocumentNotFoundError):
            await service.delete_link(OTHER_OWNER, link.id)

        await service.delete_link(OWNER, link.id)
        assert await service.list_links(OWNER) == []

    @pytest.mark.asyncio
    async def test_ingest_link_for_other_owner(self, service) -> None:
        link = await service.create_link(OWNER, "Docs", "https://docs.test")

        with pytest.raises(DocumentNotFoundError):
            await service.ingest_link(OTHER_OWNER, link.id)

    @pytest.mark.asyncio
    async def test_deleting_link_leaves_its_vector(self, service, primary_store) -> None:
        link = await service.create_link(OWNER, "Docs", "https://docs.test")

        await service.delete_link(OWNER, link.id)

        assert len(primary_store.rows) == 1
