"""reposcope CLI entry point."""

from __future__ import annotations

import importlib.metadata
from typing import Annotated

import typer

from reposcope.cli.analyze import analyze_cmd
from reposcope.cli.chunk import chunk_cmd
from reposcope.cli.remove import remove_cmd
from reposcope.cli.search import search_cmd
from reposcope.cli.stats import stats_cmd


def _installed_version() -> str:
    try:
        return importlib.metadata.version("reposcope")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"reposcope {_installed_version()}")
        raise typer.Exit()


app = typer.Typer(
    name="reposcope",
    help=(
        "reposcope — repository code intelligence.\n\n"
        "  reposcope analyze  Chunk, embed and score a repository checkout.\n"
        "  reposcope search   Semantic search over an analyzed repository."
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
) -> None:
    """reposcope — repository code intelligence."""


app.command("analyze")(analyze_cmd)
app.command("search")(search_cmd)
app.command("chunk")(chunk_cmd)
app.command("remove")(remove_cmd)
app.command("stats")(stats_cmd)


@app.command("version")
def version_cmd() -> None:
    """Show the installed reposcope version."""
    typer.echo(f"reposcope {_installed_version()}")


if __name__ == "__main__":
    app()
