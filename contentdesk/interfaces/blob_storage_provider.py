"""Abstract base class for blob storage providers.

Blobs are addressed by a relative storage path (``"<owner>/<uuid>-name.mp4"``).
Signed URLs grant time-limited read access so external services such as the
speech-to-text provider can fetch media without credentials.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class BlobInfo(BaseModel):
    """A stored blob and when it was created."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(description="Storage path relative to the bucket root.")
    size: int = Field(default=0, ge=0)
    created_at: datetime


# Concrete implementation: LocalBlobStorageProvider (contentdesk/providers/storage/)
class IBlobStorageProvider(ABC):
    """Contract for blob upload, download, signing, listing, and removal."""

    @abstractmethod
    async def upload(self, path: str, data: bytes, content_type: str | None = None) -> str:
        """Store *data* at *path* (overwriting) and return the path."""

    @abstractmethod
    async def download(self, path: str) -> bytes:
        """Return the blob's bytes.

        Raises
        ------
        contentdesk.utils.errors.StorageError
            If the blob does not exist or cannot be read.
        """

    @abstractmethod
    async def create_signed_url(self, path: str, expires_in: int) -> str:
        """Return a URL granting read access to *path* for *expires_in* seconds."""

    @abstractmethod
    async def remove(self, paths: list[str]) -> int:
        """Delete blobs and return how many existed.  Missing paths are ignored."""

    @abstractmethod
    async def list(self, prefix: str = "", limit: int = 1000) -> list[BlobInfo]:
        """List up to *limit* blobs under *prefix*, oldest first."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""
