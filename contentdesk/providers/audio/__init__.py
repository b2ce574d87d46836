"""Audio-track extraction for video uploads (pydub + ffmpeg)."""

from contentdesk.providers.audio.pydub_audio_extractor import PydubAudioExtractor

__all__ = ["PydubAudioExtractor"]
