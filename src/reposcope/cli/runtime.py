"""Shared wiring for CLI commands: config, logging and the embedding store."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from reposcope.cli.errors import err_config, err_no_api_key
from reposcope.config import ConfigError, ReposcopeConfig, load_config
from reposcope.db.connection import Database
from reposcope.embeddings.client import EmbeddingClient, provider_of, validate_api_key
from reposcope.embeddings.store import EmbeddingStore
from reposcope.ingest.chunker import CodeChunker
from reposcope.log_config import setup_logging

console = Console()


def load_settings() -> ReposcopeConfig:
    """Load config and install logging; exit 1 on a config error."""
    try:
        cfg = load_config()
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1) from exc
    setup_logging(cfg.logging.level)
    return cfg


def db_path(cfg: ReposcopeConfig, override: Path | None) -> Path:
    return override if override is not None else Path(cfg.store.path)


def require_api_key(cfg: ReposcopeConfig) -> None:
    try:
        validate_api_key(cfg.embedding.model)
    except EnvironmentError as exc:
        console.print(err_no_api_key(provider_of(cfg.embedding.model)))
        raise typer.Exit(1) from exc


def open_store(cfg: ReposcopeConfig, path: Path) -> EmbeddingStore:
    client = EmbeddingClient(model=cfg.embedding.model, num_retries=cfg.embedding.num_retries)
    return EmbeddingStore(
        Database(path),
        client,
        batch_size=cfg.embedding.batch_size,
        batch_delay=cfg.embedding.batch_delay,
    )


def build_chunker(cfg: ReposcopeConfig) -> CodeChunker:
    profiles, default = cfg.chunking.build_profiles()
    return CodeChunker(
        profiles=profiles,
        default_profile=default,
        overlap_line_divisor=cfg.chunking.overlap_line_divisor,
        max_overlap_lines=cfg.chunking.max_overlap_lines,
    )
