"""ScrapeCreators YouTube transcript provider.

Issues ``GET /youtube/video/transcript?url=...`` with the ``x-api-key``
header and reads ``transcript_only_text`` from the JSON response.
"""

from __future__ import annotations

import httpx
import structlog

from contentdesk.interfaces.transcript_fetch_provider import ITranscriptFetchProvider
from contentdesk.utils.errors import TranscriptionError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_BASE_URL = "https://api.scrapecreators.com/v1"
_PROVIDER_NAME = "scrapecreators"


class ScrapeCreatorsTranscriptProvider(ITranscriptFetchProvider):
    """Fetches existing YouTube transcripts.

    Parameters
    ----------
    http_client:
        Injected ``httpx.AsyncClient``.
    api_key:
        ScrapeCreators API key.
    base_url:
        API root.
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

    async def fetch_transcript(self, video_url: str) -> str:
        if not self._api_key:
            raise TranscriptionError(
                message="ScrapeCreators API key not configured", provider_name=_PROVIDER_NAME
            )
        try:
            response = await self._http.get(
                f"{self._base_url}/youtube/video/transcript",
                params={"url": video_url},
                headers={"x-api-key": self._api_key, "accept": "application/json"},
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as exc:
            raise TranscriptionError(
                message=(
                    f"ScrapeCreators error {exc.response.status_code}: "
                    f"{exc.response.text or exc.response.reason_phrase}"
                ),
                provider_name=_PROVIDER_NAME,
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise TranscriptionError(
                message=f"ScrapeCreators request failed: {exc}", provider_name=_PROVIDER_NAME
            ) from exc

        text = str((data or {}).get("transcript_only_text") or "").strip()
        logger.info("youtube_transcript_fetched", chars=len(text))
        return text

    def get_provider_name(self) -> str:
        return _PROVIDER_NAME

    def is_available(self) -> bool:
        return bool(self._api_key)
