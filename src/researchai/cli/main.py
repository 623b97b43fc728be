"""ResearchAI CLI entry point."""

from __future__ import annotations

import importlib.metadata
import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from researchai.cli.ingest import clear_cmd, files_cmd, ingest_cmd
from researchai.cli.query import answer_cmd, ask_cmd, by_field_cmd, by_name_cmd, query_cmd
from researchai.cli.status import status_cmd
from researchai.config import ConfigError, load_config


def _package_version() -> str:
    try:
        return importlib.metadata.version("researchai")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"researchai {_package_version()}")
        raise typer.Exit()


def _setup_logging(verbose: bool) -> None:
    """Route stdlib logging (and so every pipeline event) through rich."""
    if verbose:
        level = "DEBUG"
    else:
        try:
            level = load_config().logging.level
        except ConfigError:
            level = "INFO"

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[
            RichHandler(
                console=Console(stderr=True),
                show_path=False,
                rich_tracebacks=True,
            )
        ],
        force=True,
    )
    for noisy in ("LiteLLM", "litellm", "httpx", "openai"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


app = typer.Typer(
    name="researchai",
    help=(
        "ResearchAI: question answering over your own documents.\n\n"
        "  researchai ingest  Chunk, embed and store every file in info/.\n"
        "  researchai ask     Answer a question with cited sources."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging."),
    ] = False,
) -> None:
    """ResearchAI: question answering over your own documents."""
    _setup_logging(verbose)


app.command("ingest")(ingest_cmd)
app.command("clear")(clear_cmd)
app.command("files")(files_cmd)
app.command("query")(query_cmd)
app.command("answer")(answer_cmd)
app.command("ask")(ask_cmd)
app.command("by-field")(by_field_cmd)
app.command("by-name")(by_name_cmd)
app.command("status")(status_cmd)


@app.command("version")
def version_cmd() -> None:
    """Show the installed ResearchAI version."""
    typer.echo(f"researchai {_package_version()}")


if __name__ == "__main__":
    app()
