"""reposcope chunk — preview how a checkout would be chunked (no embedding).

Usage:
  reposcope chunk ./my-service
  reposcope chunk ./my-service --show 3
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table

from reposcope.analysis.local_fetcher import LocalRepositoryFetcher
from reposcope.cli.errors import err_path_not_found
from reposcope.cli.runtime import build_chunker, console, load_settings
from reposcope.ingest.chunker import CodeChunker


def chunk_cmd(
    path: Annotated[
        Path,
        typer.Argument(help="Path to the local repository checkout."),
    ],
    repo: Annotated[
        str | None,
        typer.Option("--repo", "-r", help="Repository id recorded on each chunk."),
    ] = None,
    show: Annotated[
        int,
        typer.Option("--show", min=0, help="Print the first N chunks."),
    ] = 0,
) -> None:
    """Chunk a repository checkout and show chunking statistics."""
    cfg = load_settings()
    if not path.is_dir():
        console.print(err_path_not_found(str(path)))
        raise typer.Exit(1)

    repo_id = repo or f"local/{path.resolve().name}"
    owner, _, name = repo_id.partition("/")
    fetched = LocalRepositoryFetcher(path).fetch(owner, name or owner)
    chunks = build_chunker(cfg).chunk_files(fetched.files, repo_id)
    stats = CodeChunker.get_chunking_stats(chunks)

    console.print(
        f"Files: [bold]{len(fetched.files)}[/]  |  "
        f"Chunks: [bold]{stats.total_chunks}[/]  |  "
        f"Average size: [bold]{stats.average_size}[/] chars"
    )

    table = Table(title="Chunks by language")
    table.add_column("Language")
    table.add_column("Chunks", justify="right")
    for language, count in sorted(
        stats.language_distribution.items(), key=lambda kv: (-kv[1], kv[0])
    ):
        table.add_row(language, str(count))
    console.print(table)

    for chunk in chunks[:show]:
        meta = chunk.metadata
        console.rule(f"{meta.file_path}:{meta.start_line}-{meta.end_line}")
        console.print(chunk.content, markup=False, highlight=False)
