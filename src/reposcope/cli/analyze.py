"""reposcope analyze — chunk, embed and score a local repository checkout.

Runs the background analysis pipeline on a local clone and follows its
status until it finishes:
  fetching → chunking → embedding → analyzing → completed

Usage:
  reposcope analyze ./my-service --repo acme/my-service
  reposcope analyze ./my-service --repo acme/my-service --yes
"""

from __future__ import annotations

import uuid
from pathlib import Path
from typing import Annotated

import typer
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn

from reposcope.analysis.local_fetcher import LocalRepositoryFetcher
from reposcope.analysis.orchestrator import AnalysisOrchestrator
from reposcope.analysis.readiness import ReadinessAnalyzer
from reposcope.analysis.repo_url import InvalidRepositoryUrlError, parse_repo_url
from reposcope.analysis.status import AnalysisState, AnalysisStatus
from reposcope.cli.errors import err_invalid_repo, err_path_not_found
from reposcope.cli.runtime import (
    build_chunker,
    console,
    db_path,
    load_settings,
    open_store,
    require_api_key,
)

_POLL_SECONDS = 0.2


def analyze_cmd(
    path: Annotated[
        Path,
        typer.Argument(help="Path to the local repository checkout."),
    ],
    repo: Annotated[
        str | None,
        typer.Option("--repo", "-r", help="Repository id (owner/name or GitHub URL)."),
    ] = None,
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to .reposcope.db (created if missing)."),
    ] = None,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Replace existing embeddings without asking."),
    ] = False,
) -> None:
    """Analyze a local repository checkout and store its embeddings."""
    cfg = load_settings()

    if not path.is_dir():
        console.print(err_path_not_found(str(path)))
        raise typer.Exit(1)

    repo_ref = repo or f"local/{path.resolve().name}"
    try:
        repo_id = parse_repo_url(repo_ref)
    except InvalidRepositoryUrlError:
        console.print(err_invalid_repo(repo_ref))
        raise typer.Exit(1)

    require_api_key(cfg)
    store = open_store(cfg, db_path(cfg, db))

    existing = store.get_collection_stats(repo_id).count
    if existing:
        console.print(f"'{repo_id}' already has [bold]{existing}[/] stored chunks.")
        if not yes and not typer.confirm("Replace them?", default=False):
            console.print("[dim]Cancelled.[/]")
            raise typer.Exit(0)
        store.delete_collection(repo_id)

    orchestrator = AnalysisOrchestrator(
        fetcher=LocalRepositoryFetcher(path),
        analyzer=ReadinessAnalyzer(),
        store=store,
        chunker=build_chunker(cfg),
        batch_size=cfg.analysis.batch_size,
        batch_delay=cfg.analysis.batch_delay,
        max_workers=cfg.analysis.max_workers,
    )
    analysis_id = str(uuid.uuid4())
    try:
        orchestrator.start_analysis(repo_id, user_id="cli", analysis_id=analysis_id)
        status = _follow(orchestrator, analysis_id)
    finally:
        orchestrator.shutdown(wait=True)

    if status is None or status.state is not AnalysisState.COMPLETED:
        error = status.error if status is not None else "analysis record lost"
        console.print(f"[red]✗ Analysis failed:[/] {error}")
        raise typer.Exit(1)

    _show_summary(status)


def _follow(orchestrator: AnalysisOrchestrator, analysis_id: str) -> AnalysisStatus | None:
    """Poll the job status into a progress bar until it is terminal."""
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Starting analysis", total=100)
        while True:
            status = orchestrator.wait(analysis_id, timeout=_POLL_SECONDS)
            if status is None:
                return None
            progress.update(task, completed=status.progress, description=status.current_step)
            if status.state.is_terminal:
                return status


def _show_summary(status: AnalysisStatus) -> None:
    stats = status.stats
    analysis = status.devops_analysis or {}
    lines = [
        f"Repository:  [bold]{status.repo_id}[/]",
        f"Files:       {stats.total_files if stats else 0}",
        f"Chunks:      {stats.total_chunks if stats else 0}",
        f"Embeddings:  {stats.embeddings_generated if stats else 0}",
        f"Score:       [bold]{analysis.get('overall_score', 0)}[/]/100"
        f"  |  Readiness: {analysis.get('deployment_readiness', 0)}%"
        f"  |  Complexity: {analysis.get('estimated_complexity', 'unknown')}",
    ]
    recommendations = analysis.get("recommendations") or []
    if recommendations:
        lines.append("")
        lines.extend(f"  • {r}" for r in recommendations)
    console.print(Panel("\n".join(lines), title="[bold]Analysis complete[/]", expand=False))
