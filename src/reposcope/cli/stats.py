"""reposcope stats — stored chunk counts per repository collection."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table

from reposcope.analysis.repo_url import InvalidRepositoryUrlError, parse_repo_url
from reposcope.cli.errors import err_invalid_repo, err_no_db
from reposcope.cli.runtime import console, db_path, load_settings
from reposcope.db.connection import Database
from reposcope.db.repository import Repository
from reposcope.db.schema import initialize


def stats_cmd(
    repo: Annotated[
        str | None,
        typer.Option("--repo", "-r", help="Only this repository (owner/name)."),
    ] = None,
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to .reposcope.db."),
    ] = None,
) -> None:
    """Show stored chunk counts for one or all repositories."""
    cfg = load_settings()
    path = db_path(cfg, db)
    if not path.exists():
        console.print(err_no_db(str(path)))
        raise typer.Exit(1)

    repo_ids: list[str] | None = None
    if repo is not None:
        try:
            repo_ids = [parse_repo_url(repo)]
        except InvalidRepositoryUrlError:
            console.print(err_invalid_repo(repo))
            raise typer.Exit(1)

    conn = Database(path).connect()
    try:
        initialize(conn)
        repository = Repository(conn)
        if repo_ids is None:
            repo_ids = [repo_id for _, repo_id in repository.list_collections()]
        rows = [(r, repository.count_stored_chunks(r)) for r in repo_ids]
    finally:
        conn.close()

    if not rows:
        console.print("[yellow]No repositories analyzed yet.[/]")
        return

    table = Table(title="Collections")
    table.add_column("Repository", style="cyan")
    table.add_column("Chunks", justify="right")
    for repo_id, count in rows:
        table.add_row(repo_id, f"{count:,}")
    console.print(table)
