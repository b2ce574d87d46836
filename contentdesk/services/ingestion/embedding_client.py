"""Per-chunk embedding with bounded, linearly backed-off retry.

The embedding service is external and rate limited, so an individual call
may fail transiently.  :class:`EmbeddingClient` retries each chunk a fixed
number of times, sleeping ``attempt * backoff_seconds`` between attempts
(0.25 s, 0.5 s, ... by default; linear, not exponential).

When every attempt fails the chunk is skipped: :meth:`EmbeddingClient.embed`
returns an :class:`~contentdesk.models.ingestion.EmbeddingOutcome` without an
embedding instead of raising, so one bad chunk never fails the whole
ingestion run.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

import structlog

from contentdesk.models.ingestion import EmbeddingOutcome

if TYPE_CHECKING:
    from contentdesk.interfaces.embedding_provider import IEmbeddingProvider

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_MAX_ATTEMPTS = 3
_DEFAULT_BACKOFF_SECONDS = 0.25


class EmbeddingClient:
    """Wraps an :class:`IEmbeddingProvider` with per-chunk retry.

    Parameters
    ----------
    provider:
        The embedding backend (injected, swappable).
    max_attempts:
        Attempts per chunk before giving up (default 3).
    backoff_seconds:
        Base delay; the wait after attempt *n* is ``n * backoff_seconds``.
    sleep:
        Awaitable sleep function.  Defaults to :func:`asyncio.sleep`; tests
        inject a no-op to keep runs instant.
    """

    def __init__(
        self,
        provider: IEmbeddingProvider,
        max_attempts: int = _DEFAULT_MAX_ATTEMPTS,
        backoff_seconds: float = _DEFAULT_BACKOFF_SECONDS,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._provider = provider
        self._max_attempts = max_attempts
        self._backoff_seconds = backoff_seconds
        self._sleep = sleep or asyncio.sleep

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def embed(self, content: str) -> EmbeddingOutcome:
        """Embed *content*, retrying on any provider failure.

        Returns
        -------
        EmbeddingOutcome
            ``embedding`` is set on success.  On exhaustion it is ``None``
            and ``error`` holds the last failure message.
        """
        last_error: str | None = None

        for attempt in range(1, self._max_attempts + 1):
            try:
                embedding = await self._provider.embed_single(content)
            except Exception as exc:  # noqa: BLE001 - any provider failure is retried
                last_error = str(exc) or type(exc).__name__
                logger.warning(
                    "embedding_attempt_failed",
                    attempt=attempt,
                    max_attempts=self._max_attempts,
                    error=last_error,
                    provider=self._provider.get_provider_name(),
                )
                if attempt < self._max_attempts:
                    await self._sleep(attempt * self._backoff_seconds)
                continue

            if not embedding:
                last_error = "Embedding service returned an empty vector"
                logger.warning("embedding_attempt_empty", attempt=attempt)
                if attempt < self._max_attempts:
                    await self._sleep(attempt * self._backoff_seconds)
                continue

            return EmbeddingOutcome(embedding=embedding, attempts=attempt, error=last_error)

        logger.error(
            "embedding_exhausted",
            attempts=self._max_attempts,
            error=last_error,
            content_preview=content[:80],
        )
        return EmbeddingOutcome(embedding=None, attempts=self._max_attempts, error=last_error)
