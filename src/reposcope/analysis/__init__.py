"""Repository analysis pipeline: status tracking and the background orchestrator."""

from reposcope.analysis.orchestrator import (
    AnalysisOrchestrator,
    RepositorySummary,
    SearchHit,
    SearchResponse,
)
from reposcope.analysis.repo_url import InvalidRepositoryUrlError, parse_repo_url
from reposcope.analysis.status import (
    AnalysisState,
    AnalysisStats,
    AnalysisStatus,
    StatusRegistry,
)

__all__ = [
    "AnalysisOrchestrator",
    "AnalysisState",
    "AnalysisStats",
    "AnalysisStatus",
    "InvalidRepositoryUrlError",
    "RepositorySummary",
    "SearchHit",
    "SearchResponse",
    "StatusRegistry",
    "parse_repo_url",
]
