"""Embedding provider implementations.

OpenAIEmbeddingProvider talks to OpenAI or any OpenAI-compatible embeddings
endpoint (text-embedding-3-small, 1536 dims, by default).
"""

from contentdesk.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

__all__ = ["OpenAIEmbeddingProvider"]
