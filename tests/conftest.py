"""Shared pytest fixtures."""

from __future__ import annotations

import math

import pytest

from researchai.db.connection import Database
from researchai.db.repository import Repository
from researchai.db.schema import initialize
from researchai.events import EventLog

TEST_MODEL = "openai/text-embedding-3-small"
TEST_DIMS = 4


def unit_vector(similarity: float) -> list[float]:
    """4-dim unit vector whose cosine similarity to [1, 0, 0, 0] is *similarity*."""
    return [similarity, math.sqrt(max(0.0, 1.0 - similarity**2)), 0.0, 0.0]


@pytest.fixture
def tmp_db(tmp_path):
    """File-based DB in tmp_path with schema initialized, closed after test."""
    db = Database(tmp_path / ".researchai.db")
    conn = db.connect()
    initialize(conn, TEST_MODEL, TEST_DIMS)
    yield conn
    conn.close()


@pytest.fixture
def repo(tmp_db):
    vec_table = initialize(tmp_db, TEST_MODEL, TEST_DIMS)
    return Repository(tmp_db, vec_table, TEST_MODEL)


@pytest.fixture
def events():
    """Isolated event log so tests never share history."""
    return EventLog(history_size=500)


@pytest.fixture
def vec():
    """Factory: similarity → 4-dim vector with that cosine similarity to QUERY."""
    return unit_vector


QUERY = [1.0, 0.0, 0.0, 0.0]
