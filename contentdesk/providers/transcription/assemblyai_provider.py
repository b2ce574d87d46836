"""AssemblyAI speech-to-text provider (REST over ``httpx``).

Three calls are used:

- ``POST /upload`` with raw audio bytes returns an ``upload_url`` the
  service can read;
- ``POST /transcript`` with ``{"audio_url": ..., "speaker_labels": false}``
  creates a job;
- ``GET /transcript/{id}`` reports ``queued``/``processing``/``completed``/
  ``error`` plus ``text`` or ``error``.

Follows the adapter pattern used for the other HTTP providers: an injected
``httpx.AsyncClient`` and every transport failure wrapped in
:class:`TranscriptionError`.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from contentdesk.interfaces.speech_to_text_provider import (
    ISpeechToTextProvider,
    SpeechToTextJob,
    SpeechToTextStatus,
)
from contentdesk.utils.errors import TranscriptionError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_BASE_URL = "https://api.assemblyai.com/v2"
_PROVIDER_NAME = "assemblyai"


class AssemblyAIProvider(ISpeechToTextProvider):
    """Submit-then-poll transcription via AssemblyAI.

    Parameters
    ----------
    http_client:
        Injected ``httpx.AsyncClient`` for testability and connection pooling.
    api_key:
        AssemblyAI API key, sent in the ``authorization`` header.
    base_url:
        API root; defaults to the public v2 endpoint.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_key: str,
        base_url: str = _DEFAULT_BASE_URL,
    ) -> None:
        self._http = http_client
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")

    # ------------------------------------------------------------------
    # ISpeechToTextProvider implementation
    # ------------------------------------------------------------------

    async def upload(self, data: bytes) -> str:
        payload = await self._request(
            "POST",
            "/upload",
            content=data,
            headers={"content-type": "application/octet-stream"},
        )
        upload_url = payload.get("upload_url")
        if not upload_url:
            raise TranscriptionError(
                message="AssemblyAI upload returned no upload_url", provider_name=_PROVIDER_NAME
            )
        logger.info("assemblyai_audio_uploaded", size=len(data))
        return str(upload_url)

    async def submit(self, audio_url: str) -> str:
        payload = await self._request(
            "POST", "/transcript", json={"audio_url": audio_url, "speaker_labels": False}
        )
        job_id = payload.get("id")
        if not job_id:
            raise TranscriptionError(
                message="AssemblyAI did not return a transcript id", provider_name=_PROVIDER_NAME
            )
        logger.info("assemblyai_job_submitted", job_id=job_id)
        return str(job_id)

    async def get_status(self, job_id: str) -> SpeechToTextJob:
        payload = await self._request("GET", f"/transcript/{job_id}")
        raw_status = str(payload.get("status", "queued"))
        try:
            status = SpeechToTextStatus(raw_status)
        except ValueError:
            logger.warning("assemblyai_unknown_status", job_id=job_id, status=raw_status)
            status = SpeechToTextStatus.PROCESSING
        return SpeechToTextJob(
            job_id=job_id,
            status=status,
            text=payload.get("text"),
            error=payload.get("error"),
        )

    def get_provider_name(self) -> str:
        return _PROVIDER_NAME

    def is_available(self) -> bool:
        return bool(self._api_key)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        headers = {"authorization": self._api_key, **kwargs.pop("headers", {})}
        try:
            response = await self._http.request(
                method, f"{self._base_url}{path}", headers=headers, **kwargs
            )
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            raise TranscriptionError(
                message=f"AssemblyAI error {exc.response.status_code}: {exc.response.text}",
                provider_name=_PROVIDER_NAME,
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise TranscriptionError(
                message=f"AssemblyAI request failed: {exc}", provider_name=_PROVIDER_NAME
            ) from exc
