"""Unit tests for SQLiteVectorStore against a temporary database."""

from __future__ import annotations

import pytest

from contentdesk.models.ingestion import VectorRecord, VectorTarget
from contentdesk.providers.vector_store.sqlite_vector_store import SQLiteVectorStore
from contentdesk.utils.errors import RAGError

from conftest import OTHER_OWNER, OWNER


@pytest.fixture
async def store(tmp_path):
    vector_store = SQLiteVectorStore(VectorTarget.PRIMARY, db_path=tmp_path / "vectors.db")
    await vector_store.initialize()
    return vector_store


def _record(content: str, embedding: list[float], owner: str = OWNER) -> VectorRecord:
    return VectorRecord(owner_id=owner, content=content, embedding=embedding, metadata={"k": content})


class TestSQLiteVectorStore:
    @pytest.mark.asyncio
    async def test_insert_returns_increasing_ids(self, store) -> None:
        first = await store.insert(_record("a", [1.0, 0.0]))
        second = await store.insert(_record("b", [0.0, 1.0]))

        assert second > first
        assert await store.count() == 2

    @pytest.mark.asyncio
    async def test_query_ranks_and_scopes_by_owner(self, store) -> None:
        await store.insert(_record("east", [1.0, 0.0]))
        await store.insert(_record("north", [0.0, 1.0]))
        await store.insert(_record("theirs", [1.0, 0.0], owner=OTHER_OWNER))

        matches = await store.query([1.0, 0.1], top_k=5, owner_id=OWNER)

        assert [m.content for m in matches] == ["east", "north"]
        assert matches[0].metadata == {"k": "east"}
        assert matches[0].similarity > matches[1].similarity
        assert len(await store.query([1.0, 0.0], top_k=5)) == 3

    @pytest.mark.asyncio
    async def test_delete_by_ids(self, store) -> None:
        keep = await store.insert(_record("keep", [1.0]))
        drop = await store.insert(_record("drop", [1.0]))

        assert await store.delete_by_ids([drop, 9999]) == 1
        assert await store.delete_by_ids([]) == 0
        remaining = await store.query([1.0], top_k=5)
        assert [m.id for m in remaining] == [keep]

    @pytest.mark.asyncio
    async def test_count_by_owner(self, store) -> None:
        await store.insert(_record("a", [1.0]))
        await store.insert(_record("b", [1.0], owner=OTHER_OWNER))

        assert await store.count(OWNER) == 1

    @pytest.mark.asyncio
    async def test_insert_into_missing_table_raises_rag_error(self, tmp_path) -> None:
        uninitialized = SQLiteVectorStore(VectorTarget.SECONDARY, db_path=tmp_path / "empty.db")

        with pytest.raises(RAGError) as exc_info:
            await uninitialized.insert(_record("a", [1.0]))
        assert exc_info.value.provider_name == "sqlite:documents"
