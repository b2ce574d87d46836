"""Audio-track extraction via pydub (requires ffmpeg on PATH).

Video uploads are transcoded to a mono MP3 before being sent to the
speech-to-text service, which keeps uploads small.  Any decode failure
returns ``None`` so the caller falls back to sending the original media.
"""

from __future__ import annotations

import io
import shutil

import structlog
from pydub import AudioSegment

from contentdesk.interfaces.text_extractor import IAudioExtractor

logger = structlog.get_logger(logger_name=__name__)

_MP3_BITRATE = "64k"


class PydubAudioExtractor(IAudioExtractor):
    """Transcodes media bytes to MP3 with pydub/ffmpeg."""

    def extract_audio(self, data: bytes, source_format: str) -> bytes | None:
        if not self.is_available():
            logger.warning("ffmpeg_unavailable")
            return None
        try:
            segment = AudioSegment.from_file(io.BytesIO(data), format=source_format or None)
            if len(segment) == 0:
                logger.warning("audio_track_empty", source_format=source_format)
                return None
            buffer = io.BytesIO()
            segment.set_channels(1).export(buffer, format="mp3", bitrate=_MP3_BITRATE)
        except Exception as exc:  # noqa: BLE001 - caller falls back to the original media
            logger.warning("audio_extraction_failed", source_format=source_format, error=str(exc))
            return None

        mp3 = buffer.getvalue()
        logger.info(
            "audio_extracted",
            source_format=source_format,
            input_bytes=len(data),
            output_bytes=len(mp3),
        )
        return mp3 or None

    def is_available(self) -> bool:
        return shutil.which("ffmpeg") is not None
