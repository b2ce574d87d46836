"""Paragraph-respecting text chunking with a hard size ceiling.

Splits extracted document text into :class:`~contentdesk.models.ingestion.Chunk`
objects sized for the embedding model.

The strategy has two layers:

1. **Greedy paragraph accumulation** -- paragraphs (blank-line separated) are
   packed into a buffer until adding the next one would push it past the
   target size, at which point the buffer is emitted.  Paragraphs are never
   split in this layer, so chunk boundaries align with paragraph breaks.

2. **Hard-maximum sub-splitting** -- a paragraph longer than
   :data:`HARD_MAX_CHARS` (24000 characters, roughly an 8000-token budget at
   ~3 chars/token) is cut on its own: preferably just after the last
   sentence terminator in the window, else at the last whitespace, else
   exactly at the ceiling.  Boundaries earlier than the window midpoint are
   rejected so pieces stay reasonably large.

Chunking is pure and deterministic; the same text always yields the same
chunks.
"""

from __future__ import annotations

import re

import structlog

from contentdesk.models.ingestion import Chunk

logger = structlog.get_logger(logger_name=__name__)

HARD_MAX_CHARS = 24000
DEFAULT_TARGET_CHARS = 1200

_PARAGRAPH_SEP = "\n\n"
_PARAGRAPH_SPLIT_RE = re.compile(r"\n{2,}")
_SENTENCE_TERMINATORS = (".", "?", "!")
_WHITESPACE = (" ", "\n", "\t")


def _last_index(window: str, chars: tuple[str, ...]) -> int:
    """Return the highest index in *window* holding any of *chars*, or -1."""
    return max(window.rfind(ch) for ch in chars)


def split_large_text(text: str, max_chars: int = HARD_MAX_CHARS) -> list[str]:
    """Cut *text* into stripped, non-empty pieces of at most *max_chars*.

    Each cut prefers the position right after the latest ``.``, ``?`` or
    ``!`` in the window, then the latest whitespace, provided the candidate
    lies past the window midpoint; otherwise the cut lands exactly at
    *max_chars*.
    """
    pieces: list[str] = []
    length = len(text)
    start = 0

    while start < length:
        end = min(start + max_chars, length)
        if end < length:
            window = text[start:end]
            midpoint = max_chars // 2

            sentence_idx = _last_index(window, _SENTENCE_TERMINATORS)
            if sentence_idx > midpoint:
                end = start + sentence_idx + 1
            else:
                space_idx = _last_index(window, _WHITESPACE)
                if space_idx > midpoint:
                    end = start + space_idx

        piece = text[start:end].strip()
        if piece:
            pieces.append(piece)
        start = end

    return pieces


class TextChunker:
    """Splits text into paragraph-aligned chunks no longer than the hard maximum.

    Parameters
    ----------
    target_chars:
        Default target chunk size in characters (1200).  Values above
        :data:`HARD_MAX_CHARS` are clamped.
    """

    def __init__(self, target_chars: int = DEFAULT_TARGET_CHARS) -> None:
        if target_chars < 1:
            raise ValueError("target_chars must be positive")
        self._target_chars = target_chars

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def chunk(self, text: str, target_chars: int | None = None) -> list[Chunk]:
        """Split *text* into ordered chunks.

        Parameters
        ----------
        text:
            Raw document text.  ``\\r\\n`` line endings are normalised first.
        target_chars:
            Per-call override of the target size.

        Returns
        -------
        list[Chunk]
            Chunks in document order with indices ``0..n-1``.  Empty or
            whitespace-only input yields an empty list.
        """
        normalized = text.replace("\r\n", "\n")
        if not normalized.strip():
            return []

        target = min(target_chars or self._target_chars, HARD_MAX_CHARS)
        paragraphs = [
            p.strip() for p in _PARAGRAPH_SPLIT_RE.split(normalized) if p.strip()
        ]

        pieces: list[str] = []
        buffer: list[str] = []
        size = 0

        def flush() -> None:
            nonlocal buffer, size
            if not buffer:
                return
            joined = _PARAGRAPH_SEP.join(buffer)
            if len(joined) > HARD_MAX_CHARS:
                pieces.extend(split_large_text(joined))
            else:
                pieces.append(joined)
            buffer = []
            size = 0

        for paragraph in paragraphs:
            if len(paragraph) > HARD_MAX_CHARS:
                flush()
                pieces.extend(split_large_text(paragraph))
                continue

            separator = len(_PARAGRAPH_SEP) if buffer else 0
            if size + len(paragraph) + separator > target:
                flush()

            buffer.append(paragraph)
            size += len(paragraph) + (len(_PARAGRAPH_SEP) if len(buffer) > 1 else 0)

        flush()

        if not pieces:
            # Only reachable when every paragraph stripped to nothing.
            logger.warning("chunker_fallback_single_chunk", text_length=len(normalized))
            return [Chunk(index=0, content=normalized[:target])]

        return [Chunk(index=i, content=piece) for i, piece in enumerate(pieces)]


def chunk_text(text: str, target_chars: int = DEFAULT_TARGET_CHARS) -> list[Chunk]:
    """Module-level convenience wrapper around :meth:`TextChunker.chunk`."""
    return TextChunker(target_chars=target_chars).chunk(text)
