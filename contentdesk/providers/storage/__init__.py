"""Blob storage providers."""

from contentdesk.providers.storage.local_blob_storage import LocalBlobStorageProvider

__all__ = ["LocalBlobStorageProvider"]
