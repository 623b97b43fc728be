"""Domain models for the vector store."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class EmbeddedRecord:
    filename: str
    content: str
    embedding: list[float]
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: str | None = None
    id: int | None = None  # assigned by the store on insert


@dataclass(frozen=True)
class SearchResult:
    """A ranked match returned by a similarity search. Never mutated."""

    id: int
    content: str
    metadata: dict[str, Any]
    similarity: float

    @property
    def filename(self) -> str:
        return str(self.metadata.get("source_filename", "Unknown"))

    @property
    def similarity_percent(self) -> str:
        return f"{self.similarity * 100:.1f}%"
