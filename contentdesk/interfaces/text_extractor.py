"""Abstract bases for document text and audio-track extraction.

Both operate on in-memory bytes downloaded from blob storage.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementation: DocumentTextExtractor (contentdesk/providers/extraction/)
class IDocumentTextExtractor(ABC):
    """Contract for binary document formats that need a parser."""

    @abstractmethod
    def extract_pdf_pages(self, data: bytes) -> list[str]:
        """Return the text of each PDF page, in page order."""

    @abstractmethod
    def extract_docx_text(self, data: bytes) -> str:
        """Return the raw text of a DOCX document."""


# Concrete implementation: PydubAudioExtractor (contentdesk/providers/audio/)
class IAudioExtractor(ABC):
    """Contract for pulling an audio-only track out of a media file."""

    @abstractmethod
    def extract_audio(self, data: bytes, source_format: str) -> bytes | None:
        """Transcode *data* to MP3.

        Returns ``None`` when the media has no decodable audio track or the
        transcoder is unavailable; callers then fall back to the original
        media.
        """

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the underlying transcoder can be used."""
