"""reposcope remove — drop a repository's stored chunks and embeddings.

Usage:
  reposcope remove --repo acme/api
  reposcope remove --repo acme/api --yes
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from reposcope.analysis.repo_url import InvalidRepositoryUrlError, parse_repo_url
from reposcope.cli.errors import err_collection_not_found, err_invalid_repo, err_no_db
from reposcope.cli.runtime import console, db_path, load_settings
from reposcope.db.collections import collection_name
from reposcope.db.connection import Database
from reposcope.db.repository import Repository
from reposcope.db.schema import initialize


def remove_cmd(
    repo: Annotated[
        str,
        typer.Option("--repo", "-r", help="Repository id (owner/name or GitHub URL)."),
    ],
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to .reposcope.db."),
    ] = None,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
) -> None:
    """Remove a repository collection and all its embeddings."""
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

    conn = Database(path).connect()
    try:
        initialize(conn)
        repository = Repository(conn)
        if not repository.has_collection(repo_id):
            console.print(err_collection_not_found(repo_id))
            raise typer.Exit(0)

        count = repository.count_stored_chunks(repo_id)
        console.print(f"\nRemove collection: [bold]{collection_name(repo_id)}[/]")
        console.print(f"  Repository: {repo_id}  |  Chunks: {count}")

        if not yes and not typer.confirm("Confirm removal?", default=False):
            console.print("[dim]Cancelled.[/]")
            raise typer.Exit(0)

        removed = repository.drop_collection(repo_id)
    finally:
        conn.close()

    console.print(f"[green]✓[/] Removed {removed} chunks for {repo_id}")
