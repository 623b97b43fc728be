"""Database initialization."""

from __future__ import annotations

import sqlite3

from researchai.db.migrations import run_migrations
from researchai.db.vectors import ensure_vec_table


def initialize(conn: sqlite3.Connection, embedding_model: str, dimensions: int) -> str:
    """Run migrations and ensure the vec table for *embedding_model* (idempotent).

    Returns the vec table name.

    Raises:
        PersistenceError: The store was built with a different embedding width.
    """
    run_migrations(conn)
    return ensure_vec_table(conn, embedding_model, dimensions)
