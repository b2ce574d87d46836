"""Transcription orchestrator: turns a stored source into document text.

One sub-flow per source kind, all driving the same state machine on the
document record::

    processing --> completed   (text populated)
    processing --> error       (error message populated, text unset)

- **Audio / video** -- resolve a URL the speech-to-text service can read
  (a signed URL for audio files; for video, an uploaded MP3 of the audio
  track, falling back to a signed URL of the original when no audio can be
  extracted), submit, then poll.  Polling is a resumable step sequence
  (sleep -> check -> report progress -> repeat) bounded by
  ``max_poll_attempts``; running out raises
  :class:`~contentdesk.utils.errors.TranscriptionTimeoutError`.
- **Document** -- download the blob and extract text by extension: PDF pages
  joined with blank lines, DOCX raw text, anything else decoded as UTF-8.
- **YouTube** -- fetch the existing transcript from the transcript API.

Any failure inside a sub-flow writes ``status = error`` with the exception
message and progress 0, then re-raises so the job runner's retry policy also
sees it.  Every attempt starts by putting the document back into
``processing``, and media attempts submit a fresh remote job: the submit
and poll step ids carry the attempt number, so a retry never replays an
earlier attempt's terminal remote status.  Two concurrent jobs for the same
document are not excluded; the last write wins.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

from contentdesk.interfaces.speech_to_text_provider import SpeechToTextJob, SpeechToTextStatus
from contentdesk.models.document import Document, DocumentStatus, SourceKind
from contentdesk.pipeline.job_runner import InlineJobContext
from contentdesk.utils.errors import (
    DocumentNotFoundError,
    EmptyExtractionError,
    EmptyTranscriptError,
    TranscriptionError,
    TranscriptionTimeoutError,
)

if TYPE_CHECKING:
    from contentdesk.interfaces.blob_storage_provider import IBlobStorageProvider
    from contentdesk.interfaces.document_store import IDocumentStore
    from contentdesk.interfaces.job_context import IJobContext
    from contentdesk.interfaces.speech_to_text_provider import ISpeechToTextProvider
    from contentdesk.interfaces.text_extractor import IAudioExtractor, IDocumentTextExtractor
    from contentdesk.interfaces.transcript_fetch_provider import ITranscriptFetchProvider

logger = structlog.get_logger(logger_name=__name__)

AUDIO_EXTENSIONS = frozenset({"mp3", "m4a", "aac", "wav", "flac", "ogg", "opus"})

_MEDIA_START_PROGRESS = 5
_TEXT_START_PROGRESS = 10
_POLL_PROGRESS_BASE = 10
_POLL_PROGRESS_CAP = 95

_DEFAULT_POLL_INTERVAL_SECONDS = 10.0
_DEFAULT_MAX_POLL_ATTEMPTS = 90
_DEFAULT_SIGNED_URL_TTL = 60 * 60 * 24 * 3


def file_extension(locator: str | None) -> str:
    """Return the lower-cased extension of a storage path or URL.

    Query strings and fragments are ignored.  Returns ``""`` when there is
    no extension.
    """
    if not locator:
        return ""
    path = locator.split("?", 1)[0].split("#", 1)[0]
    name = path.rsplit("/", 1)[-1]
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[-1].lower()


def poll_progress(attempt: int) -> int:
    """Indicative progress written after poll *attempt* (1-based)."""
    return min(_POLL_PROGRESS_CAP, _POLL_PROGRESS_BASE + attempt)


class TranscriptionService:
    """Drives a document from ``processing`` to ``completed`` or ``error``.

    Parameters
    ----------
    document_store:
        Persistence for document status, text, and metadata.
    blob_storage:
        Source of uploaded media and documents.
    speech_to_text:
        Submit-then-poll transcription service for audio/video.
    transcript_fetcher:
        Transcript API for YouTube sources.
    text_extractor:
        PDF / DOCX parsers.
    audio_extractor:
        Pulls an MP3 audio track out of video files.
    poll_interval_seconds:
        Sleep between status checks (default 10 s).
    max_poll_attempts:
        Status checks before timing out (default 90).
    signed_url_ttl_seconds:
        Lifetime of signed media URLs (default 3 days).
    """

    def __init__(
        self,
        document_store: IDocumentStore,
        blob_storage: IBlobStorageProvider,
        speech_to_text: ISpeechToTextProvider,
        transcript_fetcher: ITranscriptFetchProvider,
        text_extractor: IDocumentTextExtractor,
        audio_extractor: IAudioExtractor,
        poll_interval_seconds: float = _DEFAULT_POLL_INTERVAL_SECONDS,
        max_poll_attempts: int = _DEFAULT_MAX_POLL_ATTEMPTS,
        signed_url_ttl_seconds: int = _DEFAULT_SIGNED_URL_TTL,
    ) -> None:
        self._store = document_store
        self._blobs = blob_storage
        self._stt = speech_to_text
        self._fetcher = transcript_fetcher
        self._text_extractor = text_extractor
        self._audio_extractor = audio_extractor
        self._poll_interval = poll_interval_seconds
        self._max_poll_attempts = max_poll_attempts
        self._signed_url_ttl = signed_url_ttl_seconds

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def transcribe(
        self,
        owner_id: str,
        document_id: str,
        job: IJobContext | None = None,
    ) -> Document:
        """Run the sub-flow matching the document's source kind.

        Returns
        -------
        Document
            The completed document.

        Raises
        ------
        DocumentNotFoundError
            If the document does not exist for *owner_id* (nothing is written).
        EmptyExtractionError
            If the document has no source locator (nothing is written).
        ContentDeskError
            Any sub-flow failure, after it has been recorded on the document.
        """
        job = job or InlineJobContext()
        document = await job.run("load-document", lambda: self._load(owner_id, document_id))

        start_progress = (
            _MEDIA_START_PROGRESS
            if document.source_kind in (SourceKind.AUDIO, SourceKind.VIDEO)
            else _TEXT_START_PROGRESS
        )
        # Outside the journal: a retry must not run under the previous error.
        await self._mark_processing(document_id, start_progress)

        try:
            if document.source_kind in (SourceKind.AUDIO, SourceKind.VIDEO):
                completed = await self._transcribe_media(job, document)
            elif document.source_kind is SourceKind.YOUTUBE:
                completed = await self._fetch_youtube(job, document)
            else:
                completed = await self._extract_document(job, document)
        except Exception as exc:
            await self._record_failure(document_id, exc)
            raise

        logger.info(
            "transcription_complete",
            document_id=document_id,
            source_kind=document.source_kind.value,
            chars=len(completed.transcript or ""),
        )
        return completed

    # ------------------------------------------------------------------
    # Sub-flows
    # ------------------------------------------------------------------

    async def _transcribe_media(self, job: IJobContext, document: Document) -> Document:
        audio_url = await job.run("resolve-audio-url", lambda: self._resolve_audio_url(document))
        stt_job_id = await job.run(
            f"submit-transcription-{job.attempt}", lambda: self._stt.submit(audio_url)
        )
        logger.info(
            "transcription_submitted",
            document_id=document.id,
            stt_job_id=stt_job_id,
            attempt=job.attempt,
        )

        result = await self._poll_until_done(job, document.id, stt_job_id)
        text = (result.text or "").strip()
        if not text:
            raise EmptyTranscriptError(
                "Speech-to-text returned an empty transcript",
                provider_name=self._stt.get_provider_name(),
            )

        return await job.run(
            "save-transcript",
            lambda: self._complete(document.id, text, transcript_job_id=stt_job_id),
        )

    async def _extract_document(self, job: IJobContext, document: Document) -> Document:
        text = await job.run("extract-text", lambda: self._extract_text(document))
        if not text.strip():
            raise EmptyExtractionError(f"No text could be extracted from {document.filename}")
        return await job.run("save-transcript", lambda: self._complete(document.id, text))

    async def _fetch_youtube(self, job: IJobContext, document: Document) -> Document:
        video_url = document.source_url or ""
        text = await job.run("fetch-transcript", lambda: self._fetcher.fetch_transcript(video_url))
        if not text or not text.strip():
            raise EmptyTranscriptError(
                "No transcript available for this video",
                provider_name=self._fetcher.get_provider_name(),
            )
        return await job.run("save-transcript", lambda: self._complete(document.id, text))

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    async def _poll_until_done(
        self, job: IJobContext, document_id: str, stt_job_id: str
    ) -> SpeechToTextJob:
        """Sleep, check, and report progress until the remote job settles."""
        run = job.attempt
        for attempt in range(1, self._max_poll_attempts + 1):
            await job.sleep(f"poll-wait-{run}-{attempt}", self._poll_interval)
            status = await job.run(
                f"poll-status-{run}-{attempt}", lambda: self._stt.get_status(stt_job_id)
            )

            if status.status is SpeechToTextStatus.COMPLETED:
                return status
            if status.status is SpeechToTextStatus.ERROR:
                raise TranscriptionError(
                    f"Speech-to-text error: {status.error or 'unknown error'}",
                    provider_name=self._stt.get_provider_name(),
                )

            progress = poll_progress(attempt)
            await job.run(
                f"poll-progress-{run}-{attempt}",
                lambda: self._write_progress(document_id, progress),
            )

        logger.error(
            "transcription_poll_timeout",
            document_id=document_id,
            stt_job_id=stt_job_id,
            attempts=self._max_poll_attempts,
        )
        raise TranscriptionTimeoutError(provider_name=self._stt.get_provider_name())

    # ------------------------------------------------------------------
    # Step bodies
    # ------------------------------------------------------------------

    async def _load(self, owner_id: str, document_id: str) -> Document:
        document = await self._store.get_document(document_id)
        if document is None or document.owner_id != owner_id:
            raise DocumentNotFoundError(f"Document {document_id} not found")
        if not document.source_url:
            raise EmptyExtractionError(f"Document {document_id} has no source to transcribe")
        return document

    async def _mark_processing(self, document_id: str, progress: int) -> Document:
        document = await self._require(document_id)
        return await self._store.update_document(document.start_processing(progress))

    async def _resolve_audio_url(self, document: Document) -> str:
        path = document.source_url or ""
        extension = file_extension(path)
        if extension in AUDIO_EXTENSIONS:
            return await self._blobs.create_signed_url(path, self._signed_url_ttl)

        data = await self._blobs.download(path)
        audio = await asyncio.to_thread(self._audio_extractor.extract_audio, data, extension)
        if audio:
            logger.info(
                "audio_track_extracted",
                document_id=document.id,
                source_bytes=len(data),
                audio_bytes=len(audio),
            )
            return await self._stt.upload(audio)

        logger.warning("audio_extraction_fallback", document_id=document.id, extension=extension)
        return await self._blobs.create_signed_url(path, self._signed_url_ttl)

    async def _extract_text(self, document: Document) -> str:
        path = document.source_url or ""
        extension = file_extension(path) or "txt"
        data = await self._blobs.download(path)

        if extension == "pdf":
            pages = await asyncio.to_thread(self._text_extractor.extract_pdf_pages, data)
            return "\n\n".join(pages)
        if extension == "docx":
            return await asyncio.to_thread(self._text_extractor.extract_docx_text, data)
        return data.decode("utf-8", errors="replace")

    async def _write_progress(self, document_id: str, progress: int) -> None:
        document = await self._store.get_document(document_id)
        if document is None or document.status is not DocumentStatus.PROCESSING:
            logger.debug("progress_update_skipped", document_id=document_id)
            return
        await self._store.update_document(document.with_progress(progress))

    async def _complete(self, document_id: str, text: str, **extra: object) -> Document:
        document = await self._require(document_id)
        return await self._store.update_document(document.complete(text, **extra))

    async def _record_failure(self, document_id: str, exc: Exception) -> None:
        message = str(exc) or type(exc).__name__
        logger.error(
            "transcription_failed",
            document_id=document_id,
            error=message,
            error_type=type(exc).__name__,
        )
        try:
            document = await self._store.get_document(document_id)
            if document is None:
                return
            await self._store.update_document(document.fail(message))
        except Exception as store_exc:  # noqa: BLE001 - the original error is re-raised by the caller
            logger.error(
                "failure_status_write_failed",
                document_id=document_id,
                error=str(store_exc),
            )

    async def _require(self, document_id: str) -> Document:
        document = await self._store.get_document(document_id)
        if document is None:
            raise DocumentNotFoundError(f"Document {document_id} not found")
        return document
