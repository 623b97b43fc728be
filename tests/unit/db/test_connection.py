"""Tests for Database connection layer."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from researchai.db.connection import Database


def test_connect_creates_file(tmp_path):
    db_path = tmp_path / ".researchai.db"
    db = Database(db_path)
    conn = db.connect()
    conn.close()
    assert db_path.exists()


def test_sqlite_vec_loads(tmp_path):
    db = Database(tmp_path / ".researchai.db")
    conn = db.connect()
    version = conn.execute("SELECT vec_version()").fetchone()[0]
    conn.close()
    assert version.startswith("v")


def test_wal_journal_mode(tmp_path):
    db = Database(tmp_path / ".researchai.db")
    conn = db.connect()
    mode = conn.execute("PRAGMA journal_mode").fetchone()[0]
    conn.close()
    assert mode == "wal"


def test_row_factory_set(tmp_path):
    db = Database(tmp_path / ".researchai.db")
    conn = db.connect()
    conn.execute("CREATE TABLE t (x INTEGER)")
    conn.execute("INSERT INTO t VALUES (42)")
    row = conn.execute("SELECT x FROM t").fetchone()
    conn.close()
    assert row["x"] == 42


def test_metadata_contains_registered(tmp_path):
    db = Database(tmp_path / ".researchai.db")
    conn = db.connect()
    meta = json.dumps({"location": "Ohio", "skills": ["Python", "SQL"]})
    hit = conn.execute(
        "SELECT metadata_contains(?, ?)", (meta, json.dumps({"skills": ["SQL"]}))
    ).fetchone()[0]
    miss = conn.execute(
        "SELECT metadata_contains(?, ?)", (meta, json.dumps({"location": "Texas"}))
    ).fetchone()[0]
    conn.close()
    assert hit == 1
    assert miss == 0


def test_metadata_contains_null_filter_matches(tmp_path):
    db = Database(tmp_path / ".researchai.db")
    conn = db.connect()
    result = conn.execute("SELECT metadata_contains('{}', NULL)").fetchone()[0]
    conn.close()
    assert result == 1


def test_context_manager_closes_connection(tmp_path):
    db = Database(tmp_path / ".researchai.db")
    with db as conn:
        conn.execute("CREATE TABLE t (x INTEGER)")
    with pytest.raises(Exception):
        conn.execute("SELECT 1")


def test_context_manager_accepts_path_str(tmp_path):
    db = Database(str(tmp_path / ".researchai.db"))
    assert isinstance(db.db_path, Path)
    with db as conn:
        result = conn.execute("SELECT 1").fetchone()[0]
    assert result == 1
