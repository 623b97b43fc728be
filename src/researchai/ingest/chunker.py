"""Word-window chunker with overlap."""

from __future__ import annotations

import re
from dataclasses import dataclass

from researchai.errors import ValidationError

DEFAULT_CHUNK_SIZE = 300
DEFAULT_OVERLAP = 50

_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class Chunk:
    content: str
    index: int
    total_chunks: int

    @property
    def number(self) -> int:
        return self.index + 1

    @property
    def word_count(self) -> int:
        return len(self.content.split())


def _check_params(chunk_size: int, overlap: int) -> None:
    if chunk_size < 1:
        raise ValidationError(f"chunk_size must be >= 1, got {chunk_size}")
    if overlap < 0:
        raise ValidationError(f"overlap must be >= 0, got {overlap}")
    if overlap >= chunk_size:
        raise ValidationError(
            f"overlap must be smaller than chunk_size, got overlap={overlap} "
            f"chunk_size={chunk_size}"
        )


def chunk_text(
    text: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    overlap: int = DEFAULT_OVERLAP,
) -> list[str]:
    """Split *text* into windows of *chunk_size* words sharing *overlap* words.

    Words are runs of non-whitespace. Text of at most *chunk_size* words comes
    back as a single chunk (the stripped text, original spacing kept).
    Whitespace-only text yields no chunks.

    Raises:
        ValidationError: If chunk_size < 1, overlap < 0 or overlap >= chunk_size.
    """
    _check_params(chunk_size, overlap)

    words = [w for w in _WHITESPACE_RE.split(text) if w]
    if not words:
        return []
    if len(words) <= chunk_size:
        return [text.strip()]

    step = chunk_size - overlap
    chunks: list[str] = []
    start = 0
    while start < len(words):
        end = start + chunk_size
        chunks.append(" ".join(words[start:end]))
        if end >= len(words):
            break
        start += step
    return chunks


class WordChunker:
    """Produce indexed :class:`Chunk` values for a document.

    Args:
        chunk_size: Words per chunk.
        overlap:    Words shared by consecutive chunks.
    """

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE, overlap: int = DEFAULT_OVERLAP) -> None:
        _check_params(chunk_size, overlap)
        self.chunk_size = chunk_size
        self.overlap = overlap

    def chunk(self, content: str) -> list[Chunk]:
        texts = chunk_text(content, self.chunk_size, self.overlap)
        return [
            Chunk(content=t, index=i, total_chunks=len(texts))
            for i, t in enumerate(texts)
        ]
