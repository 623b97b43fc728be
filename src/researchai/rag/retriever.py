"""Dense retriever: embed the query, rank stored chunks by cosine similarity.

Ranking, thresholding and metadata containment all happen in a single store
query (Repository.search):

  similarity = 1 - cosine_distance(query, record)
  keep       similarity > threshold AND metadata ⊇ filter
  order      similarity DESC, id ASC
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from researchai.db.models import SearchResult
from researchai.db.repository import Repository
from researchai.errors import EmbeddingError, PersistenceError, ValidationError
from researchai.events import EventLog, get_event_log
from researchai.ingest.embedder import Embedder

DEFAULT_MATCH_COUNT = 5
DEFAULT_MATCH_THRESHOLD = 0.1
BY_NAME_MATCH_COUNT = 10

_PREVIEW_CHARS = 150


@dataclass
class RetrievalResult:
    """Outcome of a search. ``error`` is set instead of raising on failure."""

    results: list[SearchResult] = field(default_factory=list)
    error: str | None = None
    query_embedding: list[float] | None = None
    match_count: int = 0


class Retriever:
    """Similarity search over the vector store.

    Args:
        repo:     Repository bound to the vector store.
        embedder: Embedder using the same model as ingestion.
        events:   Event log; defaults to the process-wide instance.
    """

    def __init__(
        self,
        repo: Repository,
        embedder: Embedder,
        events: EventLog | None = None,
    ) -> None:
        self._repo = repo
        self._embedder = embedder
        self._events = events or get_event_log()

    def retrieve(
        self,
        query: str,
        match_count: int = DEFAULT_MATCH_COUNT,
        match_threshold: float = DEFAULT_MATCH_THRESHOLD,
        metadata_filter: dict[str, Any] | None = None,
    ) -> RetrievalResult:
        """Return up to *match_count* records with similarity above *match_threshold*.

        Raises:
            ValidationError: Empty query or match_count < 1. Every other
                failure is returned in ``RetrievalResult.error``.
        """
        if not query or not query.strip():
            raise ValidationError("Query is required and must be a non-empty string")
        if match_count < 1:
            raise ValidationError(f"match_count must be >= 1, got {match_count}")

        self._events.header("SEMANTIC SEARCH")
        self._events.data("SEARCH", f'Query: "{query}"')
        self._events.data(
            "SEARCH", f"Settings: max_results={match_count}, threshold={match_threshold}"
        )
        if metadata_filter:
            self._events.data("SEARCH", f"Metadata filter: {json.dumps(metadata_filter)}")

        try:
            query_embedding = self._embedder.embed(query)
        except EmbeddingError as exc:
            self._events.error("SEARCH", f"Error generating embedding: {exc}")
            return RetrievalResult(error=str(exc), match_count=match_count)
        self._events.success("SEARCH", f"Embedding generated ({len(query_embedding)} dimensions)")

        try:
            results = self._repo.search(
                query_embedding,
                match_count=match_count,
                match_threshold=match_threshold,
                metadata_filter=metadata_filter,
            )
        except PersistenceError as exc:
            self._events.error("SEARCH", f"Error during similarity search: {exc}")
            return RetrievalResult(
                error=str(exc), query_embedding=query_embedding, match_count=match_count
            )

        if results:
            self._report_hits(results)
        else:
            self._report_no_hits(match_threshold)

        return RetrievalResult(
            results=results, query_embedding=query_embedding, match_count=match_count
        )

    def retrieve_by_field(
        self,
        query: str,
        field_name: str,
        value: Any,
        match_count: int = DEFAULT_MATCH_COUNT,
    ) -> RetrievalResult:
        """Search with threshold 0 among records whose ``metadata[field_name]`` contains *value*."""
        if not field_name:
            raise ValidationError("field is required")
        return self.retrieve(query, match_count, 0.0, {field_name: value})

    def retrieve_by_name(self, name: str, match_count: int = BY_NAME_MATCH_COUNT) -> RetrievalResult:
        if not name or not name.strip():
            raise ValidationError("Name parameter is required")
        return self.retrieve(f"Information about {name}", match_count, 0.0, {"name": name})

    # ------------------------------------------------------------------
    # Event reporting
    # ------------------------------------------------------------------

    def _report_hits(self, results: list[SearchResult]) -> None:
        self._events.success("SEARCH", f"RESULTS FOUND: {len(results)} matching chunk(s)")
        for rank, hit in enumerate(results, start=1):
            meta = hit.metadata
            summary: dict[str, Any] = {
                "similarity": hit.similarity_percent,
                "preview": hit.content[:_PREVIEW_CHARS],
                "source": meta.get("source_filename"),
            }
            if meta.get("name"):
                summary["name"] = meta["name"]
            if meta.get("location"):
                summary["location"] = meta["location"]
            if meta.get("chunk_number"):
                summary["chunk"] = f"{meta['chunk_number']}/{meta.get('total_chunks')}"
            self._events.data("RESULT", f"Result {rank}: {hit.similarity_percent}", summary)

    def _report_no_hits(self, match_threshold: float) -> None:
        self._events.warning("SEARCH", "NO RESULTS FOUND")
        self._events.info("SEARCH", "Tips to improve results:")
        self._events.info(
            "SEARCH", f"  • Try lowering the match_threshold (currently {match_threshold})"
        )
        self._events.info(
            "SEARCH", "  • Rephrase your query to be more similar to the stored content"
        )
        self._events.info("SEARCH", "  • Check if data has been ingested into the database")
