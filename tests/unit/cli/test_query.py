"""Tests for researchai query / answer / ask / by-field / by-name."""

from __future__ import annotations

import pytest
from typer.testing import CliRunner

from researchai.cli.main import app

runner = CliRunner()


@pytest.fixture
def ingested(project, documents, fake_llm):
    result = runner.invoke(app, ["ingest"])
    assert result.exit_code == 0, result.output
    return fake_llm


# ------------------------------------------------------------------
# query
# ------------------------------------------------------------------


def test_query_returns_matching_chunk(ingested):
    result = runner.invoke(app, ["query", "What did Ada write?"])
    assert result.exit_code == 0, result.output
    assert "1 result(s)" in result.output
    assert "ada.txt" in result.output
    assert "grace.txt" not in result.output


def test_query_filter_restricts_results(ingested):
    result = runner.invoke(app, ["query", "Ada", "--filter", "location=Paris"])
    assert result.exit_code == 0
    assert "No results found" in result.output


def test_query_filter_matches(ingested):
    result = runner.invoke(app, ["query", "Ada", "-f", "name=Ada Lovelace"])
    assert result.exit_code == 0
    assert "ada.txt" in result.output


def test_query_bad_filter_exits_2(ingested):
    result = runner.invoke(app, ["query", "Ada", "--filter", "no-equals-sign"])
    assert result.exit_code == 2
    assert "Invalid filter" in result.output


def test_query_blank_text_exits_2(ingested):
    result = runner.invoke(app, ["query", "   "])
    assert result.exit_code == 2
    assert "non-empty" in result.output


def test_query_zero_match_count_exits_2(ingested):
    result = runner.invoke(app, ["query", "Ada", "-k", "0"])
    assert result.exit_code == 2


def test_query_embedding_failure_exits_1(ingested):
    emb, _ = ingested
    emb.side_effect = RuntimeError("network down")
    result = runner.invoke(app, ["query", "Ada"])
    assert result.exit_code == 1
    assert "Search failed" in result.output


def test_query_without_api_key_exits_1(project, monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    result = runner.invoke(app, ["query", "Ada"])
    assert result.exit_code == 1
    assert "OPENAI_API_KEY" in result.output


# ------------------------------------------------------------------
# answer
# ------------------------------------------------------------------


def test_answer_prints_best_chunk(ingested):
    result = runner.invoke(app, ["answer", "What did Ada write?"])
    assert result.exit_code == 0, result.output
    assert "Ada Lovelace wrote notes" in result.output
    assert "ada.txt" in result.output


def test_answer_nothing_found_exits_1(project, fake_llm):
    result = runner.invoke(app, ["answer", "What did Ada write?"])
    assert result.exit_code == 1
    assert "No relevant information" in result.output


# ------------------------------------------------------------------
# ask
# ------------------------------------------------------------------


def test_ask_prints_answer_and_sources(ingested):
    result = runner.invoke(app, ["ask", "What did Ada write?"])
    assert result.exit_code == 0, result.output
    assert "Ada wrote the notes" in result.output
    assert "Sources" in result.output
    assert "ada.txt" in result.output


def test_ask_without_context_uses_canned_answer(project, fake_llm):
    _, comp = fake_llm
    result = runner.invoke(app, ["ask", "What did Ada write?"])
    assert result.exit_code == 0
    assert "couldn't find any relevant information" in result.output
    comp.assert_not_called()


def test_ask_generation_failure_exits_1(ingested):
    _, comp = ingested
    comp.side_effect = RuntimeError("rate limited")
    result = runner.invoke(app, ["ask", "What did Ada write?"])
    assert result.exit_code == 1
    assert "Failed to generate answer" in result.output


# ------------------------------------------------------------------
# by-field / by-name
# ------------------------------------------------------------------


def test_by_field_matches_metadata(ingested):
    result = runner.invoke(
        app, ["by-field", "Ada's work", "--field", "location", "--value", "London"]
    )
    assert result.exit_code == 0, result.output
    assert "ada.txt" in result.output


def test_by_field_excludes_other_values(ingested):
    result = runner.invoke(
        app, ["by-field", "Ada's work", "--field", "location", "--value", "New York"]
    )
    assert result.exit_code == 0
    assert "No results found" in result.output


def test_by_name_finds_person(ingested):
    result = runner.invoke(app, ["by-name", "Ada Lovelace"])
    assert result.exit_code == 0, result.output
    assert "ada.txt" in result.output
    assert "grace.txt" not in result.output


def test_by_name_blank_exits_2(ingested):
    result = runner.invoke(app, ["by-name", " "])
    assert result.exit_code == 2
