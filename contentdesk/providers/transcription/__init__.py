"""Speech-to-text providers (submit-then-poll)."""

from contentdesk.providers.transcription.assemblyai_provider import AssemblyAIProvider

__all__ = ["AssemblyAIProvider"]
