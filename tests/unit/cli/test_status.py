"""Tests for researchai status command."""

from __future__ import annotations

from typer.testing import CliRunner

from researchai.cli.main import app

runner = CliRunner()


def test_status_without_database(project):
    result = runner.invoke(app, ["status"])
    assert result.exit_code == 0
    assert "No database found" in result.output
    assert not (project / ".researchai.db").exists()


def test_status_empty_database(project, fake_llm):
    runner.invoke(app, ["ingest"])
    result = runner.invoke(app, ["status"])
    assert result.exit_code == 0, result.output
    assert "Records:" in result.output
    assert "Files: 0" in result.output


def test_status_lists_ingested_files(project, documents, fake_llm):
    runner.invoke(app, ["ingest"])
    result = runner.invoke(app, ["status"])
    assert result.exit_code == 0, result.output
    assert "Files: 2" in result.output
    assert "ada.txt" in result.output
    assert "grace.txt" in result.output
    assert "(4 dims)" in result.output


def test_status_custom_db_flag(project, documents, fake_llm):
    db = project / "kb.db"
    runner.invoke(app, ["ingest", "--db", str(db)])
    result = runner.invoke(app, ["status", "--db", str(db)])
    assert result.exit_code == 0
    assert "Files: 2" in result.output


def test_dimension_change_exits_1(project, fake_llm):
    runner.invoke(app, ["ingest"])
    (project / "researchai.yaml").write_text("embedding:\n  dimensions: 8\n", encoding="utf-8")
    result = runner.invoke(app, ["status"])
    assert result.exit_code == 1
    assert "dimension mismatch" in result.output


def test_status_without_database_suggests_ingest(project):
    result = runner.invoke(app, ["status"])
    assert "researchai ingest" in result.output
