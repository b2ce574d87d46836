"""Scheduled removal of old blobs from storage.

Uploaded media is only needed until transcription finishes, so blobs older
than ``max_age_days`` (30 by default) are removed.  Intended to run daily,
e.g. from cron ``0 3 * * *`` via ``python -m contentdesk.cli purge``.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from contentdesk.interfaces.blob_storage_provider import IBlobStorageProvider

logger = structlog.get_logger(logger_name=__name__)


class PurgeService:
    def __init__(
        self,
        blob_storage: IBlobStorageProvider,
        max_age_days: int = 30,
        list_limit: int = 1000,
    ) -> None:
        self._blobs = blob_storage
        self._max_age = timedelta(days=max_age_days)
        self._list_limit = list_limit

    async def purge(self, now: datetime | None = None) -> int:
        """Remove blobs created before ``now - max_age``; return how many."""
        now = now or datetime.now(timezone.utc)
        cutoff = now - self._max_age

        blobs = await self._blobs.list(limit=self._list_limit)
        stale = [blob.path for blob in blobs if blob.created_at < cutoff]
        if not stale:
            logger.info("purge_nothing_to_do", scanned=len(blobs))
            return 0

        removed = await self._blobs.remove(stale)
        logger.info("purge_complete", scanned=len(blobs), removed=removed, cutoff=cutoff.isoformat())
        return removed
