"""Shared wiring for CLI commands: config, store, and pipeline components."""

from __future__ import annotations

import sqlite3
from pathlib import Path

import typer
from rich.console import Console

from researchai.cli.errors import err_config, err_dimension_mismatch, err_no_api_key
from researchai.config import ConfigError, ResearchAIConfig, load_config
from researchai.db.connection import Database
from researchai.db.repository import Repository
from researchai.db.schema import initialize
from researchai.errors import PersistenceError
from researchai.events import EventLog, set_event_log
from researchai.ingest.embedder import Embedder
from researchai.ingest.metadata import MetadataExtractor
from researchai.rag.answer import AnswerSynthesizer
from researchai.rag.llm_client import validate_api_key
from researchai.rag.retriever import Retriever

console = Console()


def load_settings(
    *,
    info_dir: Path | None = None,
    db: Path | None = None,
    concurrency: int | None = None,
) -> ResearchAIConfig:
    """Load config and apply CLI flag overrides. Exits 2 on invalid config."""
    try:
        cfg = load_config()
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(2)

    if info_dir is not None:
        cfg.ingest.info_dir = str(info_dir)
    if db is not None:
        cfg.ingest.db_path = str(db)
    if concurrency is not None:
        cfg.ingest.concurrency = concurrency

    set_event_log(EventLog(history_size=cfg.logging.history_size))
    return cfg


def require_api_keys(*models: str) -> None:
    """Exit 1 with an actionable message if any model's API key is missing."""
    for model in models:
        try:
            validate_api_key(model)
        except EnvironmentError:
            provider = model.split("/")[0] if "/" in model else "openai"
            console.print(err_no_api_key(provider))
            raise typer.Exit(1)


def open_repository(cfg: ResearchAIConfig) -> tuple[sqlite3.Connection, Repository]:
    """Open (or create) the vector store and run migrations.

    Exits 1 when the store was built with a different embedding width.
    """
    conn = Database(Path(cfg.ingest.db_path)).connect()
    try:
        vec_table = initialize(conn, cfg.embedding.model, cfg.embedding.dimensions)
    except PersistenceError as exc:
        conn.close()
        console.print(err_dimension_mismatch(str(exc), cfg.ingest.db_path))
        raise typer.Exit(1)
    return conn, Repository(conn, vec_table, cfg.embedding.model)


def build_embedder(cfg: ResearchAIConfig) -> Embedder:
    e = cfg.embedding
    return Embedder(
        model=e.model,
        dimensions=e.dimensions,
        max_input_tokens=e.max_input_tokens,
        timeout=e.timeout,
        num_retries=e.num_retries,
    )


def build_extractor(cfg: ResearchAIConfig) -> MetadataExtractor:
    g = cfg.generation
    return MetadataExtractor(
        model=g.extraction_model,
        temperature=g.extraction_temperature,
        max_tokens=g.extraction_max_tokens,
        max_chars=g.extraction_max_chars,
        timeout=g.timeout,
        num_retries=g.num_retries,
    )


def build_synthesizer(cfg: ResearchAIConfig, repo: Repository) -> AnswerSynthesizer:
    g = cfg.generation
    return AnswerSynthesizer(
        Retriever(repo, build_embedder(cfg)),
        model=g.answer_model,
        temperature=g.answer_temperature,
        max_tokens=g.answer_max_tokens,
        timeout=g.timeout,
        num_retries=g.num_retries,
    )
