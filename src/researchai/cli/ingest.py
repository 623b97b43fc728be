"""researchai ingest / clear / files: build and manage the knowledge base.

  researchai ingest                  clear, then ingest every file in info/
  researchai ingest --keep           ingest without clearing first
  researchai clear --yes             delete all records
  researchai files                   list files available for ingestion
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from researchai.cli.errors import err_info_dir_missing
from researchai.cli.runtime import (
    build_embedder,
    build_extractor,
    load_settings,
    open_repository,
    require_api_keys,
)
from researchai.errors import PersistenceError
from researchai.ingest.chunker import WordChunker
from researchai.ingest.loader import describe_documents
from researchai.ingest.pipeline import IngestionPipeline, IngestionReport

console = Console()


def ingest_cmd(
    keep: Annotated[
        bool,
        typer.Option("--keep", help="Keep existing records instead of clearing first."),
    ] = False,
    info_dir: Annotated[
        Path | None,
        typer.Option("--info-dir", help="Directory of documents to ingest."),
    ] = None,
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to the vector store (created if missing)."),
    ] = None,
    concurrency: Annotated[
        int | None,
        typer.Option("--concurrency", min=1, help="Documents processed in parallel."),
    ] = None,
) -> None:
    """Ingest every file in the info directory into the knowledge base."""
    cfg = load_settings(info_dir=info_dir, db=db, concurrency=concurrency)
    require_api_keys(cfg.embedding.model, cfg.generation.extraction_model)

    conn, repo = open_repository(cfg)
    try:
        pipeline = IngestionPipeline(
            repo,
            Path(cfg.ingest.info_dir),
            extractor=build_extractor(cfg),
            embedder=build_embedder(cfg),
            chunker=WordChunker(cfg.chunking.chunk_size, cfg.chunking.overlap),
            concurrency=cfg.ingest.concurrency,
        )
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
            console=console,
        ) as prog:
            prog.add_task(f"Ingesting {cfg.ingest.info_dir}…", total=None)
            report = pipeline.run(clear_first=not keep)
    finally:
        conn.close()

    _print_report(report)
    if not report.success:
        raise typer.Exit(1)


def clear_cmd(
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to the vector store."),
    ] = None,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
) -> None:
    """Delete every record from the knowledge base."""
    cfg = load_settings(db=db)
    if not yes:
        if not typer.confirm(f"Delete all records in {cfg.ingest.db_path}?", default=False):
            console.print("[dim]Cancelled.[/]")
            raise typer.Exit(0)

    conn, repo = open_repository(cfg)
    try:
        deleted = repo.delete_all()
    except PersistenceError as exc:
        console.print(f"[red]✗ Failed to clear database:[/] {exc}")
        raise typer.Exit(1)
    finally:
        conn.close()

    console.print(f"[green]✓[/] Database cleared ({deleted} records removed)")


def files_cmd(
    info_dir: Annotated[
        Path | None,
        typer.Option("--info-dir", help="Directory of documents to list."),
    ] = None,
) -> None:
    """List the files available for ingestion."""
    cfg = load_settings(info_dir=info_dir)
    directory = Path(cfg.ingest.info_dir)
    if not directory.is_dir():
        console.print(err_info_dir_missing(str(directory)))
        raise typer.Exit(1)

    infos = describe_documents(directory)
    if not infos:
        console.print(f"[yellow]No files found in {directory}.[/]")
        return

    table = Table(title=f"Files in {directory}", show_header=True)
    table.add_column("File", style="bold")
    table.add_column("Characters", justify="right")
    table.add_column("Words", justify="right")
    for info in infos:
        table.add_row(info.filename, f"{info.character_count:,}", f"{info.word_count:,}")
    console.print(table)
    console.print(f"[dim]{len(infos)} file(s)[/]")


# ------------------------------------------------------------------
# Report rendering
# ------------------------------------------------------------------


def _print_report(report: IngestionReport) -> None:
    if not report.success:
        console.print(f"[red]✗ {report.message}:[/] {report.error}")
        return

    table = Table(title="Ingestion summary", show_header=False)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Files processed", str(report.files_processed))
    table.add_row("Chunks created", str(report.chunks_created))
    table.add_row("Records inserted", str(report.records_inserted))
    table.add_row("Insert failures", str(report.insert_failures))
    table.add_row("Failed documents", str(len(report.failed_documents)))
    table.add_row("Duration", f"{report.duration_seconds:.1f}s")
    console.print(table)

    for failed in report.failed_documents:
        console.print(f"  [yellow]✗ {failed.filename}:[/] {failed.error}")
    console.print(f"[green]✓[/] {report.message}")
