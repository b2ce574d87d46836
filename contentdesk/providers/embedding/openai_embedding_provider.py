"""OpenAI-compatible embedding provider adapter.

Implements :class:`IEmbeddingProvider` on the ``openai`` async client.  The
ingestion pipeline embeds one chunk per call (see
:class:`~contentdesk.services.ingestion.embedding_client.EmbeddingClient`),
so ``embed_single`` is the hot path; ``embed`` batches for link and search
callers that hold several strings at once.
"""

from __future__ import annotations

import openai
import structlog

from contentdesk.config.settings import Settings
from contentdesk.interfaces.embedding_provider import IEmbeddingProvider
from contentdesk.utils.errors import RAGError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_MODEL = "text-embedding-3-small"
_MAX_INPUTS_PER_REQUEST = 2048

_DIMENSIONS_BY_MODEL: dict[str, int] = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}


class OpenAIEmbeddingProvider(IEmbeddingProvider):
    """Chunk and query embeddings from an OpenAI-compatible endpoint."""

    def __init__(self, settings: Settings, client: openai.AsyncOpenAI | None = None) -> None:
        self._api_key = settings.openai_api_key
        self._model = settings.openai_embedding_model or _DEFAULT_MODEL
        self._name = (
            "openai-compatible_embedding" if settings.openai_base_url else "openai_embedding"
        )
        if client is None:
            client = openai.AsyncOpenAI(
                api_key=self._api_key or "unset",
                base_url=settings.openai_base_url or None,
            )
        self._client = client

    async def embed(self, texts: list[str]) -> list[list[float]]:
        vectors: list[list[float]] = []
        for offset in range(0, len(texts), _MAX_INPUTS_PER_REQUEST):
            vectors.extend(await self._request(texts[offset : offset + _MAX_INPUTS_PER_REQUEST]))
        return vectors

    async def embed_single(self, text: str) -> list[float]:
        vectors = await self._request([text])
        if not vectors:
            raise RAGError(
                message="Embedding API returned no vectors",
                provider_name=self._name,
            )
        return vectors[0]

    def get_dimension(self) -> int:
        return _DIMENSIONS_BY_MODEL.get(self._model, 1536)

    def get_provider_name(self) -> str:
        return self._name

    def is_available(self) -> bool:
        return bool(self._api_key)

    async def _request(self, inputs: list[str]) -> list[list[float]]:
        try:
            response = await self._client.embeddings.create(input=inputs, model=self._model)
        except openai.APITimeoutError as exc:
            raise RAGError(
                message=f"Embedding request timed out ({len(inputs)} input(s))",
                provider_name=self._name,
            ) from exc
        except openai.APIError as exc:
            raise RAGError(message=f"Embedding API error: {exc}", provider_name=self._name) from exc

        usage = getattr(response, "usage", None)
        logger.debug(
            "embedding_request_completed",
            model=self._model,
            inputs=len(inputs),
            input_chars=sum(len(text) for text in inputs),
            tokens=usage.total_tokens if usage else None,
        )
        return [item.embedding for item in response.data]
