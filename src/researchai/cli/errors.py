"""ResearchAI rich error messages: actionable feedback.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it

Usage:
    from researchai.cli.errors import err_no_api_key
    console.print(err_no_api_key("openai"))
    raise typer.Exit(1)
"""

from __future__ import annotations


def err_no_api_key(provider: str) -> str:
    """No API key for *provider*.

    Example:
        No API key for 'openai'. Set:  export OPENAI_API_KEY=sk-...
    """
    env_map = {
        "openai": "OPENAI_API_KEY",
        "anthropic": "ANTHROPIC_API_KEY",
        "cohere": "COHERE_API_KEY",
        "gemini": "GEMINI_API_KEY",
        "mistral": "MISTRAL_API_KEY",
        "azure": "AZURE_API_KEY",
    }
    env_var = env_map.get(provider.lower(), f"{provider.upper()}_API_KEY")
    return (
        f"[red]Error:[/] No API key for '{provider}'.\n"
        f"  Set:  export {env_var}=sk-..."
    )


def err_no_db(db_path: str = ".researchai.db") -> str:
    """No database at *db_path*."""
    return (
        f"[red]Error:[/] No database found at '{db_path}'.\n"
        "  Run:  researchai ingest"
    )


def err_invalid_input(message: str) -> str:
    """Rejected query, question or parameter."""
    return f"[red]Error:[/] {message}\n  Run the command with --help to see valid options."


def err_config(message: str) -> str:
    """researchai.yaml or ~/.researchai/config.yaml is invalid."""
    return (
        f"[red]Error:[/] Invalid configuration.\n"
        f"  {message}\n"
        "  Fix researchai.yaml (or ~/.researchai/config.yaml) and retry."
    )


def err_info_dir_missing(info_dir: str) -> str:
    """Info directory does not exist."""
    return (
        f"[red]Error:[/] Info directory not found: '{info_dir}'.\n"
        "  Create it and add documents, or pass --info-dir PATH."
    )


def err_search_failed(message: str) -> str:
    """Embedding or similarity search failed."""
    return (
        f"[red]Error:[/] Search failed: {message}\n"
        "  Check your network connection and API key, then retry."
    )


def err_bad_filter(item: str) -> str:
    """--filter value is not key=value."""
    return (
        f"[red]Error:[/] Invalid filter '{item}'.\n"
        "  Use:  --filter key=value  (value may be JSON, e.g. --filter skills='[\"Python\"]')"
    )


def err_dimension_mismatch(message: str, db_path: str) -> str:
    """Store was built with a different embedding width than the config."""
    return (
        f"[red]Error:[/] Embedding dimension mismatch.\n"
        f"  {message}\n"
        f"  Set embedding.dimensions to match, or delete '{db_path}' and re-ingest."
    )
