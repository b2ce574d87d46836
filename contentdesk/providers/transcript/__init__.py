"""Hosted-video transcript fetch providers."""

from contentdesk.providers.transcript.scrape_creators_provider import (
    ScrapeCreatorsTranscriptProvider,
)

__all__ = ["ScrapeCreatorsTranscriptProvider"]
