"""reposcope search — semantic search over a repository's stored chunks.

Usage:
  reposcope search "where is the retry policy configured" --repo acme/api
  reposcope search "dockerfile base image" --repo acme/api --limit 5
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table

from reposcope.analysis.repo_url import InvalidRepositoryUrlError, parse_repo_url
from reposcope.cli.errors import err_collection_not_found, err_invalid_repo, err_no_db
from reposcope.cli.runtime import console, db_path, load_settings, open_store, require_api_key

_PREVIEW_CHARS = 120


def search_cmd(
    query: Annotated[str, typer.Argument(help="Natural-language or code query.")],
    repo: Annotated[
        str,
        typer.Option("--repo", "-r", help="Repository id (owner/name or GitHub URL)."),
    ],
    limit: Annotated[
        int,
        typer.Option("--limit", "-n", min=1, help="Maximum number of results."),
    ] = 10,
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to .reposcope.db."),
    ] = None,
) -> None:
    """Rank a repository's chunks by similarity to QUERY."""
    cfg = load_settings()
    path = db_path(cfg, db)
    if not path.exists():
        console.print(err_no_db(str(path)))
        raise typer.Exit(1)

    try:
        repo_id = parse_repo_url(repo)
    except InvalidRepositoryUrlError:
        console.print(err_invalid_repo(repo))
        raise typer.Exit(1)

    store = open_store(cfg, path)
    if store.get_collection_stats(repo_id).count == 0:
        console.print(err_collection_not_found(repo_id))
        raise typer.Exit(0)

    require_api_key(cfg)
    results = store.search_similar(repo_id, query, limit)

    table = Table(title=f"Results for '{query}' in {repo_id}", show_lines=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Score", justify="right")
    table.add_column("Location", style="cyan")
    table.add_column("Preview")
    for rank, result in enumerate(results, start=1):
        meta = result.chunk.metadata
        table.add_row(
            str(rank),
            f"{result.score:.3f}",
            f"{meta.file_path}:{meta.start_line}-{meta.end_line}",
            _preview(result.chunk.content),
        )
    console.print(table)
    console.print(f"[dim]{len(results)} result(s)[/]")


def _preview(content: str) -> str:
    """First body line of a chunk, skipping the File/Language/Type header."""
    _, _, body = content.partition("\n\n")
    text = " ".join((body or content).split())
    if len(text) > _PREVIEW_CHARS:
        return text[: _PREVIEW_CHARS - 1] + "…"
    return text
