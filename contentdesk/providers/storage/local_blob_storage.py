"""Local-filesystem blob storage with HMAC-signed read URLs.

Blobs live under ``blob_storage_dir`` at their relative storage path.
Signed URLs point at the API's ``/api/v1/blobs/{path}`` route and carry an
expiry timestamp plus an HMAC-SHA256 signature over ``path`` and expiry,
so the speech-to-text service can fetch media without credentials.
Filesystem calls run via ``asyncio.to_thread``.
"""

from __future__ import annotations

import asyncio
import hashlib
import hmac
import time
from datetime import datetime, timezone
from pathlib import Path
from urllib.parse import quote, urlencode

import structlog

from contentdesk.interfaces.blob_storage_provider import BlobInfo, IBlobStorageProvider
from contentdesk.utils.errors import StorageError

logger = structlog.get_logger(logger_name=__name__)

_PROVIDER_NAME = "local_blob_storage"


class LocalBlobStorageProvider(IBlobStorageProvider):
    """Blob storage rooted at a local directory.

    Parameters
    ----------
    root_dir:
        Directory that holds all blobs.
    signing_secret:
        HMAC key for signed URLs.
    public_base_url:
        Externally reachable base URL of the API.
    """

    def __init__(self, root_dir: str | Path, signing_secret: str, public_base_url: str) -> None:
        self._root = Path(root_dir).resolve()
        self._secret = signing_secret.encode("utf-8")
        self._base_url = public_base_url.rstrip("/")

    def get_provider_name(self) -> str:
        return _PROVIDER_NAME

    # ------------------------------------------------------------------
    # IBlobStorageProvider implementation
    # ------------------------------------------------------------------

    async def upload(self, path: str, data: bytes, content_type: str | None = None) -> str:
        target = self._resolve(path)
        try:
            await asyncio.to_thread(self._write_sync, target, data)
        except OSError as exc:
            raise StorageError(
                message=f"Failed to store blob {path}: {exc}", provider_name=_PROVIDER_NAME
            ) from exc
        logger.info("blob_uploaded", path=path, size=len(data), content_type=content_type)
        return path

    async def download(self, path: str) -> bytes:
        target = self._resolve(path)
        try:
            return await asyncio.to_thread(target.read_bytes)
        except OSError as exc:
            raise StorageError(
                message=f"Failed to read blob {path}: {exc}", provider_name=_PROVIDER_NAME
            ) from exc

    async def create_signed_url(self, path: str, expires_in: int) -> str:
        self._resolve(path)
        expires = int(time.time()) + expires_in
        query = urlencode({"expires": expires, "signature": self.sign(path, expires)})
        return f"{self._base_url}/api/v1/blobs/{quote(path)}?{query}"

    async def remove(self, paths: list[str]) -> int:
        targets = [self._resolve(p) for p in paths]
        removed = await asyncio.to_thread(self._remove_sync, targets)
        logger.info("blobs_removed", requested=len(paths), removed=removed)
        return removed

    async def list(self, prefix: str = "", limit: int = 1000) -> list[BlobInfo]:
        return await asyncio.to_thread(self._list_sync, prefix, limit)

    # ------------------------------------------------------------------
    # Signing
    # ------------------------------------------------------------------

    def sign(self, path: str, expires: int) -> str:
        message = f"{path}:{expires}".encode()
        return hmac.new(self._secret, message, hashlib.sha256).hexdigest()

    def verify(self, path: str, expires: int, signature: str, now: float | None = None) -> bool:
        """Return ``True`` if *signature* is valid for *path* and not expired."""
        if (now if now is not None else time.time()) > expires:
            return False
        return hmac.compare_digest(self.sign(path, expires), signature)

    def local_path(self, path: str) -> Path:
        """Return the filesystem path for a storage path."""
        return self._resolve(path)

    # ------------------------------------------------------------------
    # Sync helpers (executed via asyncio.to_thread)
    # ------------------------------------------------------------------

    def _resolve(self, path: str) -> Path:
        target = (self._root / path.lstrip("/")).resolve()
        if target == self._root or self._root not in target.parents:
            raise StorageError(
                message=f"Invalid blob path: {path!r}", provider_name=_PROVIDER_NAME
            )
        return target

    @staticmethod
    def _write_sync(target: Path, data: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)

    @staticmethod
    def _remove_sync(targets: list[Path]) -> int:
        removed = 0
        for target in targets:
            try:
                target.unlink()
                removed += 1
            except FileNotFoundError:
                continue
        return removed

    def _list_sync(self, prefix: str, limit: int) -> list[BlobInfo]:
        if not self._root.exists():
            return []
        blobs: list[BlobInfo] = []
        for file in self._root.rglob("*"):
            if not file.is_file():
                continue
            relative = file.relative_to(self._root).as_posix()
            if not relative.startswith(prefix):
                continue
            stat = file.stat()
            blobs.append(
                BlobInfo(
                    path=relative,
                    size=stat.st_size,
                    created_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                )
            )
        blobs.sort(key=lambda b: b.created_at)
        return blobs[:limit]
