"""Analysis status records and the process-wide status registry.

``StatusRegistry`` is the only structure shared between analysis jobs and
status readers. It stores copies: a job mutates its own working
``AnalysisStatus`` and publishes a snapshot after every change, so readers
never observe a half-updated record.
"""

from __future__ import annotations

import copy
import logging
import threading
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class AnalysisState(str, Enum):
    PENDING = "pending"
    FETCHING = "fetching"
    CHUNKING = "chunking"
    EMBEDDING = "embedding"
    ANALYZING = "analyzing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (AnalysisState.COMPLETED, AnalysisState.FAILED)


@dataclass
class AnalysisStats:
    total_files: int = 0
    total_chunks: int = 0
    embeddings_generated: int = 0
    analysis_score: float = 0


@dataclass
class AnalysisStatus:
    """Mutable record of one analysis job.

    Attributes:
        analysis_id: Caller-supplied unique id.
        repo_id: ``owner/name`` parsed from the request URL.
        state: Current state machine position.
        progress: 0-100; non-decreasing until a failure resets it to 0.
        current_step: Human-readable description of the running step.
        error: Failure message (``failed`` state only).
        metadata: Repository metadata from the file fetcher.
        devops_analysis: Result of the DevOps analyzer.
        stats: Aggregate statistics, set on completion.
    """

    analysis_id: str
    repo_id: str
    state: AnalysisState = AnalysisState.PENDING
    progress: int = 0
    current_step: str = "Initializing analysis"
    error: str | None = None
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: datetime | None = None
    metadata: dict[str, Any] | None = None
    devops_analysis: dict[str, Any] | None = None
    stats: AnalysisStats | None = None
    user_id: str | None = None
    project_id: str | None = None

    def advance(self, state: AnalysisState, progress: int, step: str) -> None:
        """Move to *state* at *progress* with a new step description."""
        if self.state.is_terminal:
            raise ValueError(f"analysis {self.analysis_id} is already {self.state.value}")
        if not 0 <= progress <= 100:
            raise ValueError("progress must be in [0, 100]")
        self.state = state
        self.progress = max(self.progress, progress)
        self.current_step = step

    def fail(self, message: str) -> None:
        self.state = AnalysisState.FAILED
        self.error = message
        self.progress = 0

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe representation (enum values, ISO timestamps)."""
        data = asdict(self)
        data["state"] = self.state.value
        data["started_at"] = self.started_at.isoformat()
        data["completed_at"] = self.completed_at.isoformat() if self.completed_at else None
        return data


class StatusRegistry:
    """Lock-guarded ``analysis_id → AnalysisStatus`` map holding snapshots."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._statuses: dict[str, AnalysisStatus] = {}

    def insert(self, status: AnalysisStatus) -> None:
        """Register a new analysis. Raises ValueError if the id is taken."""
        with self._lock:
            if status.analysis_id in self._statuses:
                raise ValueError(f"analysis id already exists: {status.analysis_id}")
            self._statuses[status.analysis_id] = copy.deepcopy(status)

    def publish(self, status: AnalysisStatus) -> bool:
        """Store a snapshot of *status*. Returns False if the id was removed."""
        snapshot = copy.deepcopy(status)
        with self._lock:
            if status.analysis_id not in self._statuses:
                published = False
            else:
                self._statuses[status.analysis_id] = snapshot
                published = True
        if not published:
            logger.debug("Dropped update for deleted analysis %s", status.analysis_id)
        return published

    def get(self, analysis_id: str) -> AnalysisStatus | None:
        with self._lock:
            status = self._statuses.get(analysis_id)
            return copy.deepcopy(status) if status is not None else None

    def list(self) -> list[AnalysisStatus]:
        with self._lock:
            return [copy.deepcopy(s) for s in self._statuses.values()]

    def remove(self, analysis_id: str) -> AnalysisStatus | None:
        with self._lock:
            return self._statuses.pop(analysis_id, None)

    def __contains__(self, analysis_id: object) -> bool:
        with self._lock:
            return analysis_id in self._statuses

    def __len__(self) -> int:
        with self._lock:
            return len(self._statuses)
