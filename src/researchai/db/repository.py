"""Repository for all vector store operations.

Single interface for: record insert, bulk delete, listing, and the
similarity search that implements ranking, threshold and metadata filtering.
"""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from typing import Any

from researchai.db.models import EmbeddedRecord, SearchResult
from researchai.errors import PersistenceError

_SEARCH_SQL = """
SELECT id, content, metadata, similarity FROM (
    SELECT r.id AS id,
           r.content AS content,
           r.metadata AS metadata,
           1.0 - vec_distance_cosine(v.embedding, ?) AS similarity
    FROM records r
    JOIN {table} v ON v.rowid = r.id
    WHERE metadata_contains(r.metadata, ?)
)
WHERE similarity > ?
ORDER BY similarity DESC, id ASC
LIMIT ?
"""


class Repository:
    """Data access layer for embedded records.

    Wraps an open sqlite3.Connection (see researchai.db.connection.Database)
    whose schema has been initialised. The connection is owned by the caller.

    Args:
        conn: Open connection with sqlite-vec loaded.
        vec_table: Name of the vec table returned by ``initialize()``.
        embedding_model: Model that produced the stored vectors.
    """

    def __init__(self, conn: sqlite3.Connection, vec_table: str, embedding_model: str) -> None:
        self._conn = conn
        self._vec_table = vec_table
        self._embedding_model = embedding_model

    @property
    def embedding_model(self) -> str:
        return self._embedding_model

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert_record(self, record: EmbeddedRecord) -> int:
        """Insert *record* and its embedding atomically. Returns the new id.

        Raises:
            PersistenceError: On any SQLite failure, including an embedding
                whose width does not match the vec table.
        """
        created_at = record.created_at or datetime.now(timezone.utc).isoformat()
        try:
            cur = self._conn.execute(
                """
                INSERT INTO records (filename, content, metadata, embedding_model, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    record.filename,
                    record.content,
                    json.dumps(record.metadata),
                    self._embedding_model,
                    created_at,
                ),
            )
            record_id = cur.lastrowid
            self._conn.execute(
                f"INSERT INTO {self._vec_table}(rowid, embedding) VALUES (?, ?)",
                (record_id, json.dumps(record.embedding)),
            )
            self._conn.commit()
        except sqlite3.Error as exc:
            self._conn.rollback()
            raise PersistenceError(f"Insert failed for {record.filename!r}: {exc}") from exc

        record.id = record_id
        record.created_at = created_at
        return record_id

    def delete_all(self) -> int:
        """Delete every record and embedding in one transaction. Returns rows removed."""
        try:
            self._conn.execute(f"DELETE FROM {self._vec_table}")
            cur = self._conn.execute("DELETE FROM records")
            deleted = cur.rowcount
            self._conn.commit()
        except sqlite3.Error as exc:
            self._conn.rollback()
            raise PersistenceError(f"Delete failed: {exc}") from exc
        return deleted

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_record(self, record_id: int) -> EmbeddedRecord | None:
        """Return the stored record (without its embedding), or None."""
        row = self._conn.execute(
            "SELECT id, filename, content, metadata, created_at FROM records WHERE id = ?",
            (record_id,),
        ).fetchone()
        if row is None:
            return None
        return EmbeddedRecord(
            id=row["id"],
            filename=row["filename"],
            content=row["content"],
            embedding=[],
            metadata=json.loads(row["metadata"]),
            created_at=row["created_at"],
        )

    def count_records(self) -> int:
        return self._conn.execute("SELECT COUNT(*) FROM records").fetchone()[0]

    def list_filenames(self) -> list[tuple[str, int]]:
        """Return [(filename, record_count), ...] ordered by filename."""
        rows = self._conn.execute(
            "SELECT filename, COUNT(*) AS n FROM records GROUP BY filename ORDER BY filename"
        ).fetchall()
        return [(r["filename"], r["n"]) for r in rows]

    # ------------------------------------------------------------------
    # Similarity search
    # ------------------------------------------------------------------

    def search(
        self,
        query_embedding: list[float],
        match_count: int = 5,
        match_threshold: float = 0.1,
        metadata_filter: dict[str, Any] | None = None,
    ) -> list[SearchResult]:
        """Rank records by cosine similarity to *query_embedding*.

        Keeps rows with ``similarity > match_threshold`` whose metadata
        contains *metadata_filter*, best first (ties by id), at most
        *match_count* of them.
        """
        filter_json = json.dumps(metadata_filter) if metadata_filter is not None else None
        try:
            rows = self._conn.execute(
                _SEARCH_SQL.format(table=self._vec_table),
                (json.dumps(query_embedding), filter_json, match_threshold, match_count),
            ).fetchall()
        except sqlite3.Error as exc:
            raise PersistenceError(f"Similarity search failed: {exc}") from exc

        return [
            SearchResult(
                id=row["id"],
                content=row["content"],
                metadata=json.loads(row["metadata"]) if row["metadata"] else {},
                similarity=float(row["similarity"]),
            )
            for row in rows
        ]
