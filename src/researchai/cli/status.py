"""researchai status command.

Shows the knowledge base overview: database, embedding model, record count,
and the ingested files.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from researchai.cli.errors import err_no_db
from researchai.cli.runtime import load_settings, open_repository

console = Console()


def status_cmd(
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to the vector store."),
    ] = None,
) -> None:
    """Show knowledge base status: records, files, and embedding model."""
    cfg = load_settings(db=db)
    db_path = Path(cfg.ingest.db_path)

    if not db_path.exists():
        console.print(err_no_db(str(db_path)))
        return

    conn, repo = open_repository(cfg)
    try:
        total = repo.count_records()
        files = repo.list_filenames()
    finally:
        conn.close()

    size_mb = db_path.stat().st_size / (1024 * 1024)
    lines = [
        f"Database:  {db_path} ({size_mb:.1f} MB)",
        f"Model:     {cfg.embedding.model} ({cfg.embedding.dimensions} dims)",
        f"Records:   [bold]{total:,}[/]  |  Files: [bold]{len(files)}[/]",
        f"Info dir:  {cfg.ingest.info_dir}",
    ]
    console.print(Panel("\n".join(lines), title="[bold]Knowledge Base[/]", expand=False))

    if files:
        table = Table(show_header=True)
        table.add_column("File", style="bold")
        table.add_column("Chunks", justify="right")
        for filename, count in files:
            table.add_row(filename, str(count))
        console.print(table)
