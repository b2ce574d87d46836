"""Abstract base class for hosted-video transcript fetch services (YouTube)."""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementation: ScrapeCreatorsTranscriptProvider (contentdesk/providers/transcript/)
class ITranscriptFetchProvider(ABC):
    """Contract for fetching an existing transcript for a video URL."""

    @abstractmethod
    async def fetch_transcript(self, video_url: str) -> str:
        """Return the raw transcript text for *video_url*.

        May return an empty string when the video has no transcript; the
        caller decides whether that is an error.

        Raises
        ------
        contentdesk.utils.errors.TranscriptionError
            If the service call fails.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if credentials are configured."""
