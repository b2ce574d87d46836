"""LLM provider adapters (used for metadata extraction)."""

from contentdesk.providers.llm.openai_provider import OpenAILLMProvider

__all__ = ["OpenAILLMProvider"]
