"""Unit tests for LocalBlobStorageProvider and its signed URLs."""

from __future__ import annotations

import os
from urllib.parse import parse_qs, urlparse

import pytest

from contentdesk.providers.storage.local_blob_storage import LocalBlobStorageProvider
from contentdesk.utils.errors import StorageError


@pytest.fixture
def storage(tmp_path):
    return LocalBlobStorageProvider(
        root_dir=tmp_path / "blobs",
        signing_secret="test-secret",
        public_base_url="http://api.test/",
    )


class TestBlobFiles:
    @pytest.mark.asyncio
    async def test_upload_download_remove(self, storage) -> None:
        path = await storage.upload("owner-1/abc-talk.mp3", b"audio")

        assert path == "owner-1/abc-talk.mp3"
        assert await storage.download(path) == b"audio"
        assert storage.local_path(path).is_file()
        assert await storage.remove([path, "owner-1/missing.mp3"]) == 1
        with pytest.raises(StorageError):
            await storage.download(path)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["../escape.txt", "owner-1/../../escape.txt", ""])
    async def test_paths_outside_root_rejected(self, storage, path) -> None:
        with pytest.raises(StorageError, match="Invalid blob path"):
            await storage.upload(path, b"x")

    @pytest.mark.asyncio
    async def test_list_oldest_first_with_prefix_and_limit(self, storage) -> None:
        for i, name in enumerate(["owner-1/new.mp3", "owner-1/old.mp3", "owner-2/mid.mp3"]):
            await storage.upload(name, b"x" * (i + 1))
        os.utime(storage.local_path("owner-1/old.mp3"), (1_000_000, 1_000_000))
        os.utime(storage.local_path("owner-2/mid.mp3"), (2_000_000, 2_000_000))
        os.utime(storage.local_path("owner-1/new.mp3"), (3_000_000, 3_000_000))

        everything = await storage.list()
        owner_one = await storage.list(prefix="owner-1/")
        limited = await storage.list(limit=1)

        assert [b.path for b in everything] == ["owner-1/old.mp3", "owner-2/mid.mp3", "owner-1/new.mp3"]
        assert [b.path for b in owner_one] == ["owner-1/old.mp3", "owner-1/new.mp3"]
        assert [b.path for b in limited] == ["owner-1/old.mp3"]
        assert everything[0].size == 2

    @pytest.mark.asyncio
    async def test_list_before_any_upload(self, storage) -> None:
        assert await storage.list() == []


class TestSignedUrls:
    @pytest.mark.asyncio
    async def test_signed_url_verifies(self, storage) -> None:
        await storage.upload("owner-1/a b.mp3", b"x")

        url = await storage.create_signed_url("owner-1/a b.mp3", expires_in=60)

        parsed = urlparse(url)
        query = parse_qs(parsed.query)
        assert parsed.netloc == "api.test"
        assert parsed.path == "/api/v1/blobs/owner-1/a%20b.mp3"
        expires = int(query["expires"][0])
        assert storage.verify("owner-1/a b.mp3", expires, query["signature"][0])

    def test_expired_signature(self, storage) -> None:
        signature = storage.sign("owner-1/a.mp3", 100)
        assert not storage.verify("owner-1/a.mp3", 100, signature, now=101)
        assert storage.verify("owner-1/a.mp3", 100, signature, now=99)

    def test_tampered_signature_or_path(self, storage) -> None:
        signature = storage.sign("owner-1/a.mp3", 100)
        assert not storage.verify("owner-1/b.mp3", 100, signature, now=0)
        assert not storage.verify("owner-1/a.mp3", 101, signature, now=0)
        assert not storage.verify("owner-1/a.mp3", 100, "0" * 64, now=0)
