"""Unit tests for the httpx-based AssemblyAI and ScrapeCreators adapters."""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import httpx
import pytest

from contentdesk.interfaces.speech_to_text_provider import SpeechToTextStatus
from contentdesk.providers.transcript.scrape_creators_provider import (
    ScrapeCreatorsTranscriptProvider,
)
from contentdesk.providers.transcription.assemblyai_provider import AssemblyAIProvider
from contentdesk.utils.errors import TranscriptionError


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestAssemblyAIProvider:
    @pytest.mark.asyncio
    async def test_upload_submit_and_poll(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            if request.url.path == "/v2/upload":
                return httpx.Response(200, json={"upload_url": "https://cdn.assemblyai.test/u1"})
            if request.url.path == "/v2/transcript":
                return httpx.Response(200, json={"id": "t-1", "status": "queued"})
            return httpx.Response(200, json={"id": "t-1", "status": "completed", "text": "hi"})

        async with _client(handler) as http:
            provider = AssemblyAIProvider(http, api_key="aai-key")
            upload_url = await provider.upload(b"mp3")
            job_id = await provider.submit(upload_url)
            job = await provider.get_status(job_id)

        assert upload_url == "https://cdn.assemblyai.test/u1"
        assert job_id == "t-1"
        assert job.status is SpeechToTextStatus.COMPLETED
        assert job.text == "hi"
        assert all(r.headers["authorization"] == "aai-key" for r in seen)
        assert seen[0].content == b"mp3"
        assert json.loads(seen[1].content) == {
            "audio_url": "https://cdn.assemblyai.test/u1",
            "speaker_labels": False,
        }
        assert seen[2].url.path == "/v2/transcript/t-1"

    @pytest.mark.asyncio
    async def test_service_error_status(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200, json={"id": "t-1", "status": "error", "error": "Audio too short"}
            )

        async with _client(handler) as http:
            job = await AssemblyAIProvider(http, api_key="k").get_status("t-1")

        assert job.status is SpeechToTextStatus.ERROR
        assert job.error == "Audio too short"

    @pytest.mark.asyncio
    async def test_unknown_status_treated_as_processing(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"id": "t-1", "status": "throttled"})

        async with _client(handler) as http:
            job = await AssemblyAIProvider(http, api_key="k").get_status("t-1")

        assert job.status is SpeechToTextStatus.PROCESSING

    @pytest.mark.asyncio
    async def test_http_error_wrapped(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, text="Invalid API key")

        async with _client(handler) as http:
            with pytest.raises(TranscriptionError, match="401"):
                await AssemblyAIProvider(http, api_key="bad").submit("https://x.test/a.mp3")

    @pytest.mark.asyncio
    async def test_missing_transcript_id(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={})

        async with _client(handler) as http:
            with pytest.raises(TranscriptionError, match="transcript id"):
                await AssemblyAIProvider(http, api_key="k").submit("https://x.test/a.mp3")

    @pytest.mark.asyncio
    async def test_transport_error_wrapped(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(handler) as http:
            with pytest.raises(TranscriptionError, match="request failed"):
                await AssemblyAIProvider(http, api_key="k").upload(b"mp3")

    def test_availability(self) -> None:
        http = MagicMock(spec=httpx.AsyncClient)
        assert AssemblyAIProvider(http, api_key="").is_available() is False
        assert AssemblyAIProvider(http, api_key="k").get_provider_name() == "assemblyai"


class TestScrapeCreatorsTranscriptProvider:
    @pytest.mark.asyncio
    async def test_fetch_transcript(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"transcript_only_text": "  spoken words \n"})

        async with _client(handler) as http:
            provider = ScrapeCreatorsTranscriptProvider(http, api_key="sc-key")
            text = await provider.fetch_transcript("https://youtu.be/abc")

        assert text == "spoken words"
        assert seen[0].url.path == "/v1/youtube/video/transcript"
        assert seen[0].url.params["url"] == "https://youtu.be/abc"
        assert seen[0].headers["x-api-key"] == "sc-key"

    @pytest.mark.asyncio
    async def test_missing_field_returns_empty(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"transcript": []})

        async with _client(handler) as http:
            provider = ScrapeCreatorsTranscriptProvider(http, api_key="sc-key")
            assert await provider.fetch_transcript("https://youtu.be/abc") == ""

    @pytest.mark.asyncio
    async def test_http_error_wrapped(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, text="Video not found")

        async with _client(handler) as http:
            provider = ScrapeCreatorsTranscriptProvider(http, api_key="sc-key")
            with pytest.raises(TranscriptionError, match="404"):
                await provider.fetch_transcript("https://youtu.be/abc")

    @pytest.mark.asyncio
    async def test_unconfigured_key(self) -> None:
        async with httpx.AsyncClient() as http:
            provider = ScrapeCreatorsTranscriptProvider(http, api_key="")
            with pytest.raises(TranscriptionError, match="not configured"):
                await provider.fetch_transcript("https://youtu.be/abc")
