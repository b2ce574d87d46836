"""Unit tests for the DeletionService (single and multi-document)."""

from __future__ import annotations

import pytest

from contentdesk.models.document import SourceKind
from contentdesk.models.ingestion import IngestionTracking, VectorRecord, VectorTarget
from contentdesk.pipeline.job_runner import LocalJobRunner
from contentdesk.services.deletion_service import DeletionService, blob_path_for
from contentdesk.utils.errors import DocumentNotFoundError, PersistenceError

from conftest import OTHER_OWNER, OWNER, make_document, no_sleep


@pytest.fixture
def service(document_store, vector_stores, blob_storage):
    return DeletionService(
        document_store=document_store,
        vector_stores=vector_stores,
        blob_storage=blob_storage,
    )


async def _seed_ingested(
    document_store,
    blob_storage,
    vector_store,
    document_id: str = "doc-1",
    vectors: int = 4,
    target: VectorTarget = VectorTarget.PRIMARY,
) -> list[int]:
    """Insert a document, its blob, *vectors* rows, and one tracking manifest."""
    path = f"owner-1/{document_id}-talk.txt"
    blob_storage.put(path, b"data")
    if await document_store.get_document(document_id) is None:
        await document_store.insert_document(
            make_document(document_id=document_id, source_url=path, transcript="text")
        )
    ids = [
        await vector_store.insert(
            VectorRecord(owner_id=OWNER, content=f"{document_id} chunk {i}", embedding=[1.0, 0.0])
        )
        for i in range(vectors)
    ]
    await document_store.insert_tracking(
        IngestionTracking(
            owner_id=OWNER, document_id=document_id, vector_ids=ids, chunk_count=vectors, target=target
        )
    )
    return ids


# ---------------------------------------------------------------------------
# Single document
# ---------------------------------------------------------------------------


class TestDeleteOne:
    @pytest.mark.asyncio
    async def test_removes_vectors_tracking_document_and_blob(
        self, service, document_store, blob_storage, primary_store
    ) -> None:
        await _seed_ingested(document_store, blob_storage, primary_store)
        unrelated = await primary_store.insert(
            VectorRecord(owner_id=OWNER, content="keep me", embedding=[0.0, 1.0])
        )

        result = await service.delete(OWNER, "doc-1")

        assert result.deleted_vectors == 4
        assert result.blob_removed is True
        assert list(primary_store.rows) == [unrelated]
        assert document_store.tracking == {}
        assert await document_store.get_document("doc-1") is None
        assert blob_storage.blobs == {}

    @pytest.mark.asyncio
    async def test_without_tracking_deletes_zero_vectors(
        self, service, document_store, blob_storage
    ) -> None:
        blob_storage.put("owner-1/abc-talk.txt", b"data")
        await document_store.insert_document(make_document())

        result = await service.delete(OWNER, "doc-1")

        assert result.deleted_vectors == 0
        assert result.blob_removed is True
        assert await document_store.get_document("doc-1") is None

    @pytest.mark.asyncio
    async def test_every_manifest_and_target_is_cleaned(
        self, service, document_store, blob_storage, primary_store, secondary_store
    ) -> None:
        await _seed_ingested(document_store, blob_storage, primary_store, vectors=2)
        await _seed_ingested(
            document_store, blob_storage, secondary_store, vectors=3, target=VectorTarget.SECONDARY
        )

        result = await service.delete(OWNER, "doc-1")

        assert result.deleted_vectors == 5
        assert primary_store.rows == {}
        assert secondary_store.rows == {}
        assert document_store.tracking == {}

    @pytest.mark.asyncio
    async def test_vector_failure_does_not_block_deletion(
        self, service, document_store, blob_storage, primary_store
    ) -> None:
        await _seed_ingested(document_store, blob_storage, primary_store)
        primary_store.fail_deletes = True

        result = await service.delete(OWNER, "doc-1")

        assert result.deleted_vectors == 0
        assert len(primary_store.rows) == 4
        assert document_store.tracking == {}
        assert await document_store.get_document("doc-1") is None

    @pytest.mark.asyncio
    async def test_document_delete_failure_is_fatal(
        self, service, document_store, blob_storage, primary_store
    ) -> None:
        await _seed_ingested(document_store, blob_storage, primary_store)
        document_store.fail_document_delete = True

        with pytest.raises(PersistenceError):
            await service.delete(OWNER, "doc-1")

        # Earlier steps are not rolled back; the blob step never ran.
        assert primary_store.rows == {}
        assert document_store.tracking == {}
        assert await document_store.get_document("doc-1") is not None
        assert blob_storage.remove_calls == []

    @pytest.mark.asyncio
    async def test_retry_after_document_delete_failure_finishes_the_job(
        self, service, document_store, blob_storage, primary_store
    ) -> None:
        await _seed_ingested(document_store, blob_storage, primary_store)
        document_store.fail_document_delete = True
        runner = LocalJobRunner(max_attempts=2, sleep=no_sleep)

        async def handler(job):
            if job.attempt == 2:
                document_store.fail_document_delete = False
            return await service.delete(OWNER, "doc-1", job=job)

        result = await runner.run("delete", handler, job_id="del-1")

        # Vector and tracking steps replay their first-attempt results.
        assert result.deleted_vectors == 4
        assert result.blob_removed is True
        assert primary_store.rows == {}
        assert await document_store.get_document("doc-1") is None
        assert blob_storage.blobs == {}
        assert runner.get("del-1").attempts == 2

    @pytest.mark.asyncio
    async def test_blob_failure_is_logged_not_raised(
        self, service, document_store, blob_storage, primary_store
    ) -> None:
        await _seed_ingested(document_store, blob_storage, primary_store)
        blob_storage.fail_removes = True

        result = await service.delete(OWNER, "doc-1")

        assert result.blob_removed is False
        assert await document_store.get_document("doc-1") is None

    @pytest.mark.asyncio
    async def test_youtube_document_has_no_blob(
        self, service, document_store, blob_storage
    ) -> None:
        await document_store.insert_document(
            make_document(source_kind=SourceKind.YOUTUBE, source_url="https://youtu.be/x")
        )

        result = await service.delete(OWNER, "doc-1")

        assert result.blob_removed is False
        assert blob_storage.remove_calls == []

    @pytest.mark.asyncio
    async def test_missing_document(self, service) -> None:
        with pytest.raises(DocumentNotFoundError):
            await service.delete(OWNER, "nope")

    @pytest.mark.asyncio
    async def test_other_owner_cannot_delete(self, service, document_store) -> None:
        await document_store.insert_document(make_document())

        with pytest.raises(DocumentNotFoundError):
            await service.delete(OTHER_OWNER, "doc-1")

        assert await document_store.get_document("doc-1") is not None


# ---------------------------------------------------------------------------
# Multiple documents
# ---------------------------------------------------------------------------


class TestDeleteMany:
    @pytest.mark.asyncio
    async def test_collects_failures_and_removes_blobs_in_one_batch(
        self, service, document_store, blob_storage, primary_store
    ) -> None:
        await _seed_ingested(document_store, blob_storage, primary_store, "doc-a", vectors=2)
        await _seed_ingested(document_store, blob_storage, primary_store, "doc-b", vectors=3)

        result = await service.delete_many(OWNER, ["doc-a", "missing", "doc-b"])

        assert result.success
        assert result.deleted == 2
        assert result.deleted_vectors == 5
        assert [e.document_id for e in result.errors] == ["missing"]
        assert blob_storage.remove_calls == [["owner-1/doc-a-talk.txt", "owner-1/doc-b-talk.txt"]]
        assert primary_store.rows == {}
        assert document_store.documents == {}

    @pytest.mark.asyncio
    async def test_all_failures_is_not_success(self, service) -> None:
        result = await service.delete_many(OWNER, ["x", "y"])

        assert not result.success
        assert result.deleted == 0
        assert len(result.errors) == 2

    @pytest.mark.asyncio
    async def test_other_owner_documents_are_errors(self, service, document_store) -> None:
        await document_store.insert_document(make_document())

        result = await service.delete_many(OTHER_OWNER, ["doc-1"])

        assert result.deleted == 0
        assert await document_store.get_document("doc-1") is not None

    @pytest.mark.asyncio
    async def test_blob_failure_does_not_change_result(
        self, service, document_store, blob_storage, primary_store
    ) -> None:
        await _seed_ingested(document_store, blob_storage, primary_store)
        blob_storage.fail_removes = True

        result = await service.delete_many(OWNER, ["doc-1"])

        assert result.success
        assert result.deleted == 1


class TestBlobPath:
    def test_storage_paths_and_external_urls(self) -> None:
        assert blob_path_for(make_document(source_url="owner-1/a.mp3")) == "owner-1/a.mp3"
        assert blob_path_for(make_document(source_url="https://cdn.test/a.mp3")) is None
        assert blob_path_for(make_document(source_url=None)) is None
        youtube = make_document(source_kind=SourceKind.YOUTUBE, source_url="youtu.be/x")
        assert blob_path_for(youtube) is None
