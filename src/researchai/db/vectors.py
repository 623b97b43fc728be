"""sqlite-vec tables, one per embedding model.

The vec table's ``float[D]`` column fixes the embedding width. sqlite-vec
rejects vectors of any other length at insert time, so a database built with
one width cannot be reused with another: ensure_vec_table() refuses instead.
"""

from __future__ import annotations

import re
import sqlite3

from researchai.errors import PersistenceError

_WIDTH_RE = re.compile(r"float\[(\d+)\]")


def model_to_slug(model: str) -> str:
    """Lower-case *model* and replace anything outside [a-z0-9] with '_'.

    "openai/text-embedding-3-small" -> "openai_text_embedding_3_small"
    """
    return re.sub(r"[^a-z0-9]", "_", model.lower())


def vec_table_name(model: str) -> str:
    return f"vec_records_{model_to_slug(model)}"


def vec_table_width(conn: sqlite3.Connection, table: str) -> int | None:
    """Declared ``float[D]`` width of *table*, or None when the table is absent."""
    row = conn.execute(
        "SELECT sql FROM sqlite_master WHERE type='table' AND name=?", (table,)
    ).fetchone()
    if row is None:
        return None
    match = _WIDTH_RE.search(row[0] or "")
    return int(match.group(1)) if match else None


def ensure_vec_table(conn: sqlite3.Connection, model: str, dimensions: int) -> str:
    """Create the vec table for *model* with width *dimensions* unless it exists.

    Returns:
        The table name.

    Raises:
        ValueError: dimensions < 1.
        PersistenceError: The table exists with a different width.
    """
    if dimensions < 1:
        raise ValueError(f"dimensions must be >= 1, got {dimensions}")

    table = vec_table_name(model)
    width = vec_table_width(conn, table)
    if width is None:
        conn.execute(f"CREATE VIRTUAL TABLE {table} USING vec0(embedding float[{dimensions}])")
        conn.commit()
    elif width != dimensions:
        raise PersistenceError(
            f"{table} stores {width}-dim vectors but embedding.dimensions is {dimensions}"
        )
    return table
