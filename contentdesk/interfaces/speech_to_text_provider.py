"""Abstract base class for asynchronous speech-to-text services.

Unlike a synchronous transcriber, these services accept a job and report
its status later.  The transcription orchestrator submits a job and then
polls :meth:`ISpeechToTextProvider.get_status` between job-runner sleeps.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class SpeechToTextStatus(str, Enum):  # noqa: UP042
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


class SpeechToTextJob(BaseModel):
    """Status snapshot of a remote transcription job."""

    model_config = ConfigDict(frozen=True)

    job_id: str
    status: SpeechToTextStatus
    text: str | None = Field(default=None, description="Transcript, once completed.")
    error: str | None = Field(default=None, description="Service error, if it failed.")


# Concrete implementation: AssemblyAIProvider (contentdesk/providers/transcription/)
class ISpeechToTextProvider(ABC):
    """Contract for submit-then-poll transcription services."""

    @abstractmethod
    async def upload(self, data: bytes) -> str:
        """Upload raw audio to the service and return a URL it can read."""

    @abstractmethod
    async def submit(self, audio_url: str) -> str:
        """Submit a transcription job for *audio_url* and return its id.

        Raises
        ------
        contentdesk.utils.errors.TranscriptionError
            If the service rejects the submission.
        """

    @abstractmethod
    async def get_status(self, job_id: str) -> SpeechToTextJob:
        """Return the current status of a submitted job."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"assemblyai"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if credentials are configured."""
