"""researchai query / answer / ask / by-field / by-name: search the knowledge base.

Usage:
  researchai query "python developer" --match-count 3 --filter location=Ohio
  researchai answer "Who knows Rust?"
  researchai ask "Summarise the team's cloud experience"
  researchai by-field "backend work" --field role --value "Backend Engineer"
  researchai by-name "Ada Lovelace"
"""

from __future__ import annotations

import json
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from researchai.cli.errors import err_bad_filter, err_invalid_input, err_search_failed
from researchai.cli.runtime import (
    build_embedder,
    build_synthesizer,
    load_settings,
    open_repository,
    require_api_keys,
)
from researchai.errors import ValidationError
from researchai.rag.retriever import BY_NAME_MATCH_COUNT, RetrievalResult, Retriever

console = Console()

_PREVIEW_CHARS = 200


def query_cmd(
    text: Annotated[str, typer.Argument(help="Natural-language search query.")],
    match_count: Annotated[
        int | None,
        typer.Option("--match-count", "-k", help="Maximum number of results."),
    ] = None,
    threshold: Annotated[
        float | None,
        typer.Option("--threshold", "-t", help="Minimum similarity (exclusive)."),
    ] = None,
    filters: Annotated[
        list[str] | None,
        typer.Option("--filter", "-f", help="Metadata filter key=value (repeatable)."),
    ] = None,
) -> None:
    """Rank stored chunks by similarity to TEXT."""
    cfg = load_settings()
    metadata_filter = _parse_filters(filters or [])
    require_api_keys(cfg.embedding.model)

    conn, repo = open_repository(cfg)
    try:
        retriever = Retriever(repo, build_embedder(cfg))
        result = _guard(
            lambda: retriever.retrieve(
                text,
                match_count if match_count is not None else cfg.retrieval.match_count,
                threshold if threshold is not None else cfg.retrieval.match_threshold,
                metadata_filter,
            )
        )
    finally:
        conn.close()

    _print_results(result)


def answer_cmd(
    question: Annotated[str, typer.Argument(help="Question to answer.")],
) -> None:
    """Return the single best-matching chunk as the answer (no generation)."""
    cfg = load_settings()
    require_api_keys(cfg.embedding.model)

    conn, repo = open_repository(cfg)
    try:
        basic = _guard(lambda: build_synthesizer(cfg, repo).get_answer(question))
    finally:
        conn.close()

    if basic.answer is None:
        console.print(f"[yellow]{basic.error}[/]")
        raise typer.Exit(1)

    ctx = basic.context or {}
    console.print(
        Panel(
            basic.answer,
            title=f"[bold]{ctx.get('source')}[/] ({ctx.get('similarity', 0.0) * 100:.1f}%)",
            expand=False,
        )
    )


def ask_cmd(
    question: Annotated[str, typer.Argument(help="Question to answer.")],
    match_count: Annotated[
        int | None,
        typer.Option("--match-count", "-k", help="Maximum number of context chunks."),
    ] = None,
    threshold: Annotated[
        float | None,
        typer.Option("--threshold", "-t", help="Minimum similarity (exclusive)."),
    ] = None,
) -> None:
    """Answer QUESTION with a generated, source-cited response."""
    cfg = load_settings()
    require_api_keys(cfg.embedding.model, cfg.generation.answer_model)

    conn, repo = open_repository(cfg)
    try:
        synthesizer = build_synthesizer(cfg, repo)
        enhanced = _guard(
            lambda: synthesizer.get_enhanced_answer(
                question,
                match_count if match_count is not None else cfg.retrieval.match_count,
                threshold if threshold is not None else cfg.retrieval.match_threshold,
            )
        )
    finally:
        conn.close()

    if enhanced.answer is None:
        console.print(f"[red]✗ Failed to generate answer:[/] {enhanced.error}")
        raise typer.Exit(1)

    console.print(Panel(Markdown(enhanced.answer), title="[bold]Answer[/]"))
    if not enhanced.sources:
        return

    table = Table(title="Sources", show_header=True)
    table.add_column("#", justify="right")
    table.add_column("File", style="bold")
    table.add_column("Similarity", justify="right")
    table.add_column("Preview")
    for src in enhanced.sources:
        table.add_row(
            str(src.source_number), src.filename, src.similarity_percent, src.content_preview
        )
    console.print(table)
    ctx = enhanced.context
    if ctx is not None:
        tokens = f" · {ctx.tokens_used} tokens" if ctx.tokens_used is not None else ""
        console.print(f"[dim]{ctx.retrieved_count} chunk(s) · {ctx.model}{tokens}[/]")


def by_field_cmd(
    text: Annotated[str, typer.Argument(help="Natural-language search query.")],
    field_name: Annotated[str, typer.Option("--field", help="Metadata field to match.")],
    value: Annotated[str, typer.Option("--value", help="Required value (JSON allowed).")],
    match_count: Annotated[
        int | None,
        typer.Option("--match-count", "-k", help="Maximum number of results."),
    ] = None,
) -> None:
    """Search among chunks whose metadata FIELD contains VALUE."""
    cfg = load_settings()
    require_api_keys(cfg.embedding.model)

    conn, repo = open_repository(cfg)
    try:
        retriever = Retriever(repo, build_embedder(cfg))
        result = _guard(
            lambda: retriever.retrieve_by_field(
                text,
                field_name,
                _parse_value(value),
                match_count if match_count is not None else cfg.retrieval.match_count,
            )
        )
    finally:
        conn.close()

    _print_results(result)


def by_name_cmd(
    name: Annotated[str, typer.Argument(help="Name stored in document metadata.")],
    match_count: Annotated[
        int,
        typer.Option("--match-count", "-k", help="Maximum number of results."),
    ] = BY_NAME_MATCH_COUNT,
) -> None:
    """Find everything known about NAME."""
    cfg = load_settings()
    require_api_keys(cfg.embedding.model)

    conn, repo = open_repository(cfg)
    try:
        retriever = Retriever(repo, build_embedder(cfg))
        result = _guard(lambda: retriever.retrieve_by_name(name, match_count))
    finally:
        conn.close()

    _print_results(result)


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _guard(call):
    """Run *call*, turning a ValidationError into exit code 2."""
    try:
        return call()
    except ValidationError as exc:
        console.print(err_invalid_input(str(exc)))
        raise typer.Exit(2)


def _parse_value(raw: str) -> Any:
    """Interpret *raw* as JSON when possible (numbers, booleans, lists), else a string."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def _parse_filters(items: list[str]) -> dict[str, Any] | None:
    if not items:
        return None
    parsed: dict[str, Any] = {}
    for item in items:
        key, sep, raw = item.partition("=")
        if not sep or not key.strip():
            console.print(err_bad_filter(item))
            raise typer.Exit(2)
        parsed[key.strip()] = _parse_value(raw)
    return parsed


def _print_results(result: RetrievalResult) -> None:
    if result.error:
        console.print(err_search_failed(result.error))
        raise typer.Exit(1)

    if not result.results:
        console.print("[yellow]No results found.[/] Try lowering --threshold or rephrasing.")
        return

    table = Table(title=f"{len(result.results)} result(s)", show_header=True)
    table.add_column("#", justify="right")
    table.add_column("Similarity", justify="right")
    table.add_column("Source", style="bold")
    table.add_column("Chunk", justify="right")
    table.add_column("Content")
    for rank, hit in enumerate(result.results, start=1):
        meta = hit.metadata
        chunk = (
            f"{meta['chunk_number']}/{meta.get('total_chunks', '?')}"
            if "chunk_number" in meta
            else ""
        )
        preview = hit.content[:_PREVIEW_CHARS] + ("..." if len(hit.content) > _PREVIEW_CHARS else "")
        table.add_row(str(rank), hit.similarity_percent, hit.filename, chunk, preview)
    console.print(table)
