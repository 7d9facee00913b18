"""Background analysis pipeline.

fetch → chunk → embed → analyze, run on a worker thread per job. Each job
works on its own ``AnalysisStatus`` and publishes a snapshot to the
``StatusRegistry`` after every step, so status readers can poll at any time.

Deleting an analysis does not stop its job: the job keeps running and its
later status updates are dropped by the registry.
"""

from __future__ import annotations

import copy
import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_futures
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from reposcope.analysis.collaborators import (
    DevOpsAnalyzer,
    FileFetcher,
    ProjectTokenStore,
    TokenDecryptor,
)
from reposcope.analysis.repo_url import parse_repo_url, split_repo_id
from reposcope.analysis.status import (
    AnalysisState,
    AnalysisStats,
    AnalysisStatus,
    StatusRegistry,
)
from reposcope.db.models import CollectionStats
from reposcope.embeddings.store import EmbeddingStore
from reposcope.ingest.chunker import CodeChunker

logger = logging.getLogger(__name__)


@dataclass
class SearchHit:
    content: str
    file_path: str
    start_line: int
    end_line: int
    score: float


@dataclass
class SearchResponse:
    results: list[SearchHit]
    total_results: int


@dataclass
class RepositorySummary:
    metadata: dict[str, Any] | None
    devops_analysis: dict[str, Any] | None
    vector_stats: CollectionStats


class AnalysisOrchestrator:
    """Run repository analyses in the background and track their status.

    Args:
        fetcher: Source of repository files and metadata.
        analyzer: DevOps analyzer run on the fetched files.
        store: Embedding store the chunks are written to.
        chunker: Chunker (a default ``CodeChunker`` if omitted).
        registry: Status registry (a private one if omitted).
        token_store: Optional lookup of a project's encrypted access token.
        decryptor: Decrypts the token returned by ``token_store``.
        batch_size: Chunks handed to the store per embedding step.
        batch_delay: Seconds to wait between embedding steps.
        max_workers: Concurrent analysis jobs.
    """

    def __init__(
        self,
        fetcher: FileFetcher,
        analyzer: DevOpsAnalyzer,
        store: EmbeddingStore,
        chunker: CodeChunker | None = None,
        registry: StatusRegistry | None = None,
        token_store: ProjectTokenStore | None = None,
        decryptor: TokenDecryptor | None = None,
        batch_size: int = 50,
        batch_delay: float = 1.0,
        max_workers: int = 4,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        if batch_delay < 0:
            raise ValueError("batch_delay must be >= 0")
        self._fetcher = fetcher
        self._analyzer = analyzer
        self._store = store
        self._chunker = chunker or CodeChunker()
        self._registry = registry if registry is not None else StatusRegistry()
        self._token_store = token_store
        self._decryptor = decryptor
        self.batch_size = batch_size
        self.batch_delay = batch_delay

        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="reposcope-analysis"
        )
        self._futures: dict[str, Future] = {}
        self._start_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def start_analysis(
        self,
        repo_url: str,
        user_id: str,
        analysis_id: str,
        project_id: str | None = None,
    ) -> AnalysisStatus:
        """Register a pending analysis and start it in the background.

        Raises:
            InvalidRepositoryUrlError: If *repo_url* cannot be parsed.
            ValueError: If *analysis_id* belongs to a job still running.
        """
        repo_id = parse_repo_url(repo_url)
        status = AnalysisStatus(
            analysis_id=analysis_id,
            repo_id=repo_id,
            user_id=user_id,
            project_id=project_id,
        )

        with self._start_lock:
            existing = self._registry.get(analysis_id)
            if existing is not None:
                if not existing.state.is_terminal:
                    raise ValueError(f"analysis {analysis_id} is already running")
                self._registry.remove(analysis_id)
            self._registry.insert(status)
            snapshot = copy.deepcopy(status)
            self._futures[analysis_id] = self._executor.submit(self._run, status)

        logger.info("Started analysis %s for %s", analysis_id, repo_id)
        return snapshot

    def get_analysis_status(self, analysis_id: str) -> AnalysisStatus | None:
        return self._registry.get(analysis_id)

    def get_all_analyses(self) -> list[AnalysisStatus]:
        return self._registry.list()

    def delete_analysis(self, analysis_id: str) -> None:
        """Drop the analysis and its repository collection. Unknown ids are ignored.

        The collection goes first; if dropping it fails, the status record is
        kept so the delete can be retried.
        """
        status = self._registry.get(analysis_id)
        if status is None:
            return
        self._store.delete_collection(status.repo_id)
        with self._start_lock:
            self._registry.remove(analysis_id)
            self._futures.pop(analysis_id, None)
        logger.info("Deleted analysis %s", analysis_id)

    def search_repository(self, repo_id: str, query: str, limit: int = 10) -> SearchResponse:
        results = self._store.search_similar(repo_id, query, limit)
        hits = [
            SearchHit(
                content=r.chunk.content,
                file_path=r.chunk.metadata.file_path,
                start_line=r.chunk.metadata.start_line,
                end_line=r.chunk.metadata.end_line,
                score=r.score,
            )
            for r in results
        ]
        return SearchResponse(results=hits, total_results=len(hits))

    def get_repository_summary(self, repo_id: str) -> RepositorySummary | None:
        """Summary of the latest completed analysis of *repo_id*, if any."""
        completed = [
            s
            for s in self._registry.list()
            if s.repo_id == repo_id and s.state is AnalysisState.COMPLETED
        ]
        if not completed:
            return None
        latest = max(
            completed,
            key=lambda s: s.completed_at or datetime.min.replace(tzinfo=timezone.utc),
        )
        return RepositorySummary(
            metadata=latest.metadata,
            devops_analysis=latest.devops_analysis,
            vector_stats=self._store.get_collection_stats(repo_id),
        )

    def wait(self, analysis_id: str, timeout: float | None = None) -> AnalysisStatus | None:
        """Block until the job finishes (or *timeout* passes); return its status."""
        future = self._futures.get(analysis_id)
        if future is not None:
            wait_futures([future], timeout=timeout)
        return self._registry.get(analysis_id)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    # ------------------------------------------------------------------
    # Job
    # ------------------------------------------------------------------

    def _run(self, status: AnalysisStatus) -> None:
        try:
            self._execute(status)
        except Exception as exc:
            status.fail(str(exc) or type(exc).__name__)
            self._registry.publish(status)
            logger.exception("Analysis %s failed for %s", status.analysis_id, status.repo_id)
            raise

    def _step(self, status: AnalysisStatus, state: AnalysisState, progress: int, step: str) -> None:
        status.advance(state, progress, step)
        self._registry.publish(status)
        logger.info("Analysis %s: %s (%d%%)", status.analysis_id, step, status.progress)

    def _execute(self, status: AnalysisStatus) -> None:
        repo_id = status.repo_id
        owner, name = split_repo_id(repo_id)

        self._step(status, AnalysisState.FETCHING, 10, "Fetching repository files")
        token = self._project_token(status.project_id)
        fetched = self._fetcher.fetch(owner, name, token)
        status.metadata = fetched.metadata
        self._step(
            status, AnalysisState.FETCHING, 25, f"Fetched {len(fetched.files)} files"
        )

        self._step(status, AnalysisState.FETCHING, 30, "Initializing vector store")
        self._store.initialize_collection(repo_id)

        self._step(status, AnalysisState.CHUNKING, 35, "Chunking code files")
        chunks = self._chunker.chunk_files(fetched.files, repo_id)
        self._step(status, AnalysisState.CHUNKING, 50, f"Created {len(chunks)} code chunks")

        self._step(status, AnalysisState.EMBEDDING, 55, "Generating embeddings")
        total_batches = -(-len(chunks) // self.batch_size)
        for number, start in enumerate(range(0, len(chunks), self.batch_size), start=1):
            self._store.add_chunks(repo_id, chunks[start : start + self.batch_size])
            self._step(
                status,
                AnalysisState.EMBEDDING,
                55 + round(number / total_batches * 20),
                f"Processed embeddings batch {number}/{total_batches}",
            )
            if number < total_batches and self.batch_delay > 0:
                time.sleep(self.batch_delay)

        self._step(status, AnalysisState.ANALYZING, 80, "Analyzing DevOps readiness")
        analysis = self._analyzer.analyze(repo_id, fetched.metadata, fetched.files)
        status.devops_analysis = analysis
        self._step(status, AnalysisState.ANALYZING, 95, "Finalizing analysis")

        status.stats = AnalysisStats(
            total_files=len(fetched.files),
            total_chunks=len(chunks),
            embeddings_generated=self._store.get_collection_stats(repo_id).count,
            analysis_score=analysis.get("overall_score", 0),
        )
        status.completed_at = datetime.now(timezone.utc)
        self._step(status, AnalysisState.COMPLETED, 100, "Analysis completed")
        logger.info(
            "Completed analysis for %s with score: %s", repo_id, status.stats.analysis_score
        )

    def _project_token(self, project_id: str | None) -> str | None:
        """Decrypted access token for *project_id*; None when unavailable."""
        if project_id is None or self._token_store is None or self._decryptor is None:
            return None
        try:
            encrypted = self._token_store.get_encrypted_token(project_id)
            if not encrypted:
                return None
            return self._decryptor.decrypt(encrypted)
        except Exception:
            logger.warning(
                "Failed to load access token for project %s; continuing without it",
                project_id,
                exc_info=True,
            )
            return None
