"""ResearchAI configuration loader.

Priority (high → low):
  1. CLI flags           (handled at call site, not in this module)
  2. Environment variables  (RESEARCHAI_*)
  3. Per-project researchai.yaml
  4. Global ~/.researchai/config.yaml
  5. Hardcoded defaults

API keys are never read from config files; providers pick them up from their
own environment variables (OPENAI_API_KEY, ...).
All YAML reads use yaml.safe_load(), never yaml.load().
"""

from __future__ import annotations

import os
import re
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".researchai"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_PROJECT_CONFIG_NAME: str = "researchai.yaml"

# Key names that look like credentials. Does not match max_tokens, num_retries etc.
_API_KEY_RE: re.Pattern[str] = re.compile(
    r"api[_\-]?(?:key|secret)"
    r"|_token$"
    r"|^token$"
    r"|_secret$"
    r"|^secret$"
    r"|passw(?:ord|d)"
    r"|credential",
    re.IGNORECASE,
)

_KNOWN_SECTIONS: frozenset[str] = frozenset(
    ["embedding", "generation", "chunking", "retrieval", "ingest", "logging"]
)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a config file contains an invalid or forbidden value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class EmbeddingCfg:
    """Embedding model configuration (researchai.yaml: embedding:).

    ``dimensions`` fixes the width of the vector table; it must match what
    the model returns or every insert fails.
    """

    model: str = "openai/text-embedding-3-small"
    dimensions: int = 1536
    max_input_tokens: int = 8_191
    timeout: float = 60.0
    num_retries: int = 3


@dataclass
class GenerationCfg:
    """Chat model configuration (researchai.yaml: generation:)."""

    extraction_model: str = "openai/gpt-4o-mini"
    extraction_temperature: float = 0.1
    extraction_max_tokens: int = 1_000
    extraction_max_chars: int = 24_000
    answer_model: str = "openai/gpt-4o"
    answer_temperature: float = 0.3
    answer_max_tokens: int = 1_500
    timeout: float = 60.0
    num_retries: int = 3


@dataclass
class ChunkingCfg:
    """Word-window chunking (researchai.yaml: chunking:)."""

    chunk_size: int = 300
    overlap: int = 50


@dataclass
class RetrievalCfg:
    """Default search parameters (researchai.yaml: retrieval:)."""

    match_count: int = 5
    match_threshold: float = 0.1


@dataclass
class IngestCfg:
    """Ingestion source and target (researchai.yaml: ingest:)."""

    info_dir: str = "info"
    db_path: str = ".researchai.db"
    concurrency: int = 1


@dataclass
class LoggingCfg:
    """Event log configuration (researchai.yaml: logging:)."""

    history_size: int = 1_000
    level: str = "INFO"


@dataclass
class ResearchAIConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    embedding: EmbeddingCfg = field(default_factory=EmbeddingCfg)
    generation: GenerationCfg = field(default_factory=GenerationCfg)
    chunking: ChunkingCfg = field(default_factory=ChunkingCfg)
    retrieval: RetrievalCfg = field(default_factory=RetrievalCfg)
    ingest: IngestCfg = field(default_factory=IngestCfg)
    logging: LoggingCfg = field(default_factory=LoggingCfg)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _check_no_api_keys(data: dict[str, Any], source: Path) -> None:
    """Raise ConfigError if *data* contains any API-key-like key names."""

    def _scan(obj: Any, path: str) -> None:
        if isinstance(obj, dict):
            for k, v in obj.items():
                full = f"{path}.{k}" if path else k
                if _API_KEY_RE.search(str(k)):
                    raise ConfigError(
                        f"Config '{source}' contains a forbidden key '{full}'.\n"
                        f"  API keys must be set via environment variables, not config files.\n"
                        f"  Remove '{full}' from {source.name} and use:\n"
                        f"    export {str(k).upper().replace('-', '_')}=<value>"
                    )
                _scan(v, full)

    _scan(data, "")


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised top-level keys."""
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}'; ignored.",
                UserWarning,
                stacklevel=4,
            )


def _validate(cfg: ResearchAIConfig) -> None:
    if cfg.chunking.chunk_size < 1:
        raise ConfigError(f"chunking.chunk_size must be >= 1, got {cfg.chunking.chunk_size}")
    if not 0 <= cfg.chunking.overlap < cfg.chunking.chunk_size:
        raise ConfigError(
            f"chunking.overlap must be in [0, chunk_size), got {cfg.chunking.overlap} "
            f"with chunk_size {cfg.chunking.chunk_size}"
        )
    if cfg.embedding.dimensions < 1:
        raise ConfigError(f"embedding.dimensions must be >= 1, got {cfg.embedding.dimensions}")
    if cfg.ingest.concurrency < 1:
        raise ConfigError(f"ingest.concurrency must be >= 1, got {cfg.ingest.concurrency}")
    if cfg.retrieval.match_count < 1:
        raise ConfigError(f"retrieval.match_count must be >= 1, got {cfg.retrieval.match_count}")


# ---------------------------------------------------------------------------
# Merge + build
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict that is *base* deep-merged with *override*."""
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _cfg_from_dict(data: dict[str, Any]) -> ResearchAIConfig:
    """Build a *ResearchAIConfig* from a merged raw YAML dict."""
    cfg = ResearchAIConfig()

    if "embedding" in data:
        e = data["embedding"] or {}
        d = cfg.embedding
        cfg.embedding = EmbeddingCfg(
            model=str(e.get("model", d.model)),
            dimensions=int(e.get("dimensions", d.dimensions)),
            max_input_tokens=int(e.get("max_input_tokens", d.max_input_tokens)),
            timeout=float(e.get("timeout", d.timeout)),
            num_retries=int(e.get("num_retries", d.num_retries)),
        )

    if "generation" in data:
        g = data["generation"] or {}
        d = cfg.generation
        cfg.generation = GenerationCfg(
            extraction_model=str(g.get("extraction_model", d.extraction_model)),
            extraction_temperature=float(
                g.get("extraction_temperature", d.extraction_temperature)
            ),
            extraction_max_tokens=int(g.get("extraction_max_tokens", d.extraction_max_tokens)),
            extraction_max_chars=int(g.get("extraction_max_chars", d.extraction_max_chars)),
            answer_model=str(g.get("answer_model", d.answer_model)),
            answer_temperature=float(g.get("answer_temperature", d.answer_temperature)),
            answer_max_tokens=int(g.get("answer_max_tokens", d.answer_max_tokens)),
            timeout=float(g.get("timeout", d.timeout)),
            num_retries=int(g.get("num_retries", d.num_retries)),
        )

    if "chunking" in data:
        c = data["chunking"] or {}
        cfg.chunking = ChunkingCfg(
            chunk_size=int(c.get("chunk_size", cfg.chunking.chunk_size)),
            overlap=int(c.get("overlap", cfg.chunking.overlap)),
        )

    if "retrieval" in data:
        r = data["retrieval"] or {}
        cfg.retrieval = RetrievalCfg(
            match_count=int(r.get("match_count", cfg.retrieval.match_count)),
            match_threshold=float(r.get("match_threshold", cfg.retrieval.match_threshold)),
        )

    if "ingest" in data:
        i = data["ingest"] or {}
        cfg.ingest = IngestCfg(
            info_dir=str(i.get("info_dir", cfg.ingest.info_dir)),
            db_path=str(i.get("db_path", cfg.ingest.db_path)),
            concurrency=int(i.get("concurrency", cfg.ingest.concurrency)),
        )

    if "logging" in data:
        lg = data["logging"] or {}
        cfg.logging = LoggingCfg(
            history_size=int(lg.get("history_size", cfg.logging.history_size)),
            level=str(lg.get("level", cfg.logging.level)).upper(),
        )

    return cfg


def _apply_env_overrides(cfg: ResearchAIConfig) -> ResearchAIConfig:
    """Apply RESEARCHAI_* environment variable overrides."""
    if model := os.environ.get("RESEARCHAI_EMBEDDING_MODEL"):
        cfg.embedding.model = model
    if model := os.environ.get("RESEARCHAI_ANSWER_MODEL"):
        cfg.generation.answer_model = model
    if model := os.environ.get("RESEARCHAI_EXTRACTION_MODEL"):
        cfg.generation.extraction_model = model
    if info_dir := os.environ.get("RESEARCHAI_INFO_DIR"):
        cfg.ingest.info_dir = info_dir
    if db_path := os.environ.get("RESEARCHAI_DB_PATH"):
        cfg.ingest.db_path = db_path
    return cfg


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> ResearchAIConfig:
    """Load and return a merged *ResearchAIConfig*.

    Applies layers in order: global → per-project → env vars.
    CLI flag overrides must be applied by the caller after this function.

    Args:
        project_dir: Directory to search for *researchai.yaml*. Defaults to CWD.
        global_config_path: Override the global config path (for testing).

    Raises:
        ConfigError: If a config file contains API-key-like fields or an
            invalid value (overlap >= chunk_size, dimensions < 1, ...).
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = project_dir if project_dir is not None else Path.cwd()

    merged: dict[str, Any] = {}

    if global_path.exists():
        raw_global = yaml.safe_load(global_path.read_text(encoding="utf-8")) or {}
        _check_no_api_keys(raw_global, global_path)
        _warn_unknown_keys(raw_global, global_path)
        merged = _deep_merge(merged, raw_global)

    project_cfg_path = search_dir / _PROJECT_CONFIG_NAME
    if project_cfg_path.exists():
        raw_project = yaml.safe_load(project_cfg_path.read_text(encoding="utf-8")) or {}
        _check_no_api_keys(raw_project, project_cfg_path)
        _warn_unknown_keys(raw_project, project_cfg_path)
        merged = _deep_merge(merged, raw_project)

    cfg = _cfg_from_dict(merged)
    cfg = _apply_env_overrides(cfg)
    _validate(cfg)
    return cfg
