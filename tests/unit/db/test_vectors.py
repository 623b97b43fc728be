"""Tests for per-model sqlite-vec tables."""

from __future__ import annotations

import json
import sqlite3

import pytest

from researchai.db.connection import Database
from researchai.db.schema import initialize
from researchai.db.vectors import (
    ensure_vec_table,
    model_to_slug,
    vec_table_name,
    vec_table_width,
)
from researchai.errors import PersistenceError


@pytest.mark.parametrize("model,expected", [
    ("openai/text-embedding-3-small", "openai_text_embedding_3_small"),
    ("cohere/embed-english-v3.0", "cohere_embed_english_v3_0"),
    ("local/all-MiniLM-L6-v2", "local_all_minilm_l6_v2"),
    ("x; DROP TABLE records", "x__drop_table_records"),
])
def test_model_to_slug(model, expected):
    assert model_to_slug(model) == expected


def test_vec_table_name():
    assert vec_table_name("openai/text-embedding-3-small") == "vec_records_openai_text_embedding_3_small"


def test_ensure_vec_table_idempotent(tmp_db):
    assert ensure_vec_table(tmp_db, "local/test-model", 8) == ensure_vec_table(
        tmp_db, "local/test-model", 8
    )


def test_ensure_vec_table_rejects_zero_dimensions(tmp_db):
    with pytest.raises(ValueError, match="dimensions"):
        ensure_vec_table(tmp_db, "local/model", 0)


def test_vec_table_width(tmp_db):
    table = ensure_vec_table(tmp_db, "local/model", 12)
    assert vec_table_width(tmp_db, table) == 12
    assert vec_table_width(tmp_db, "vec_records_missing") is None


def test_ensure_vec_table_rejects_width_change(tmp_db):
    ensure_vec_table(tmp_db, "local/model", 3)
    with pytest.raises(PersistenceError, match="3-dim"):
        ensure_vec_table(tmp_db, "local/model", 5)


def test_vec_table_enforces_width(tmp_db):
    table = ensure_vec_table(tmp_db, "local/model", 3)
    tmp_db.execute(
        f"INSERT INTO {table}(rowid, embedding) VALUES (1, ?)", (json.dumps([0.1, 0.2, 0.3]),)
    )
    with pytest.raises(sqlite3.Error):
        tmp_db.execute(
            f"INSERT INTO {table}(rowid, embedding) VALUES (2, ?)", (json.dumps([0.1, 0.2]),)
        )


def test_each_model_gets_its_own_table(tmp_db):
    a = ensure_vec_table(tmp_db, "openai/text-embedding-3-small", 4)
    b = ensure_vec_table(tmp_db, "openai/text-embedding-3-large", 8)
    assert a != b


def test_initialize_returns_vec_table(tmp_path):
    conn = Database(tmp_path / "x.db").connect()
    table = initialize(conn, "openai/text-embedding-3-small", 4)
    conn.close()
    assert table == "vec_records_openai_text_embedding_3_small"
