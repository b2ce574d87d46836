"""Unit tests for EmbeddingClient retry and backoff behaviour."""

from __future__ import annotations

import pytest

from contentdesk.services.ingestion.embedding_client import EmbeddingClient

from conftest import FakeEmbeddingProvider


def _client(provider: FakeEmbeddingProvider, sleeps: list[float], **kwargs) -> EmbeddingClient:
    async def record_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    return EmbeddingClient(provider=provider, sleep=record_sleep, **kwargs)


class TestEmbeddingClient:
    @pytest.mark.asyncio
    async def test_first_attempt_success(self) -> None:
        provider = FakeEmbeddingProvider({"hello": [0.1, 0.2, 0.3]})
        sleeps: list[float] = []

        outcome = await _client(provider, sleeps).embed("hello")

        assert outcome.succeeded
        assert outcome.embedding == [0.1, 0.2, 0.3]
        assert outcome.attempts == 1
        assert outcome.error is None
        assert sleeps == []

    @pytest.mark.asyncio
    async def test_retries_with_linear_backoff(self) -> None:
        provider = FakeEmbeddingProvider()
        provider.failures["flaky"] = 2
        sleeps: list[float] = []

        outcome = await _client(provider, sleeps).embed("flaky")

        assert outcome.succeeded
        assert outcome.attempts == 3
        assert sleeps == [0.25, 0.5]
        assert provider.calls == ["flaky", "flaky", "flaky"]

    @pytest.mark.asyncio
    async def test_exhaustion_returns_outcome_without_embedding(self) -> None:
        provider = FakeEmbeddingProvider()
        provider.failures["doomed"] = -1
        sleeps: list[float] = []

        outcome = await _client(provider, sleeps).embed("doomed")

        assert not outcome.succeeded
        assert outcome.embedding is None
        assert outcome.attempts == 3
        assert "unavailable" in (outcome.error or "")
        # No sleep after the final attempt.
        assert sleeps == [0.25, 0.5]

    @pytest.mark.asyncio
    async def test_empty_vector_counts_as_failure(self) -> None:
        provider = FakeEmbeddingProvider({"blank": []})
        sleeps: list[float] = []

        outcome = await _client(provider, sleeps, max_attempts=2).embed("blank")

        assert not outcome.succeeded
        assert outcome.attempts == 2
        assert outcome.error == "Embedding service returned an empty vector"

    @pytest.mark.asyncio
    async def test_custom_attempts_and_backoff(self) -> None:
        provider = FakeEmbeddingProvider()
        provider.failures["x"] = -1
        sleeps: list[float] = []

        await _client(provider, sleeps, max_attempts=4, backoff_seconds=1.0).embed("x")

        assert sleeps == [1.0, 2.0, 3.0]

    def test_max_attempts_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            EmbeddingClient(provider=FakeEmbeddingProvider(), max_attempts=0)
