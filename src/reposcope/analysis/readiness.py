"""Heuristic DevOps readiness analyzer.

Scores a repository from its metadata and file contents without calling a
model. Each checklist item gets a confidence in [0, 1]; the overall score is
the mean confidence as a percentage.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import asdict, dataclass
from typing import Any

from reposcope.db.models import RepoFile

logger = logging.getLogger(__name__)


@dataclass
class ChecklistItem:
    id: str
    detected: str
    confidence: float


def _contains(files: list[RepoFile], *needles: str) -> bool:
    return any(needle in f.content for f in files for needle in needles)


def _check_containerization(metadata: dict[str, Any], files: list[RepoFile]) -> ChecklistItem:
    if metadata.get("has_dockerfile"):
        return ChecklistItem("containerization", "Docker", 0.9)
    return ChecklistItem("containerization", "Not containerized", 0.5)


def _check_ci(metadata: dict[str, Any], files: list[RepoFile]) -> ChecklistItem:
    if metadata.get("has_ci"):
        return ChecklistItem("ci_cd", "CI pipeline", 0.9)
    return ChecklistItem("ci_cd", "Manual builds", 0.4)


def _check_orchestration(metadata: dict[str, Any], files: list[RepoFile]) -> ChecklistItem:
    if metadata.get("has_kubernetes"):
        return ChecklistItem("orchestration", "Kubernetes", 0.9)
    return ChecklistItem("orchestration", "None", 0.5)


def _check_environments(metadata: dict[str, Any], files: list[RepoFile]) -> ChecklistItem:
    markers = ("env", "config", "staging", "prod")
    if any(marker in f.path for f in files for marker in markers):
        return ChecklistItem("environments", "Multi-Environment", 0.8)
    return ChecklistItem("environments", "Single Environment", 0.7)


def _check_resources(metadata: dict[str, Any], files: list[RepoFile]) -> ChecklistItem:
    if _contains(files, "resources:", "limits:", "requests:"):
        return ChecklistItem("resource_mgmt", "Resource Limits Configured", 0.9)
    return ChecklistItem("resource_mgmt", "Basic Resources", 0.6)


def _check_secrets(metadata: dict[str, Any], files: list[RepoFile]) -> ChecklistItem:
    if _contains(files, "secretKeyRef", "kind: Secret", "vault", "secrets."):
        return ChecklistItem("secrets_mgmt", "Managed Secrets", 0.8)
    return ChecklistItem("secrets_mgmt", "Environment Variables", 0.6)


def _check_observability(metadata: dict[str, Any], files: list[RepoFile]) -> ChecklistItem:
    if _contains(files, "prometheus", "opentelemetry", "grafana", "/metrics"):
        return ChecklistItem("observability", "Metrics Instrumented", 0.8)
    return ChecklistItem("observability", "Logs Only", 0.5)


_CHECKS: tuple[Callable[[dict[str, Any], list[RepoFile]], ChecklistItem], ...] = (
    _check_containerization,
    _check_ci,
    _check_orchestration,
    _check_environments,
    _check_resources,
    _check_secrets,
    _check_observability,
)

# Checklist items that count towards deployment readiness once confident.
_CONFIG_ITEMS = frozenset({"secrets_mgmt", "observability", "resource_mgmt"})


class ReadinessAnalyzer:
    """Score containerization, CI, Kubernetes and configuration practices."""

    def analyze(
        self, repo_id: str, metadata: dict[str, Any], files: list[RepoFile]
    ) -> dict[str, Any]:
        logger.info("Starting DevOps analysis for repository: %s", repo_id)
        checklist = [check(metadata, files) for check in _CHECKS]

        result = {
            "repo_id": repo_id,
            "checklist": [asdict(item) for item in checklist],
            "overall_score": overall_score(checklist),
            "deployment_readiness": deployment_readiness(checklist, metadata),
            "estimated_complexity": estimate_complexity(metadata),
            "recommendations": recommendations(metadata),
        }
        logger.info(
            "Completed DevOps analysis for %s with score: %d", repo_id, result["overall_score"]
        )
        return result


def overall_score(checklist: list[ChecklistItem]) -> int:
    if not checklist:
        return 0
    return round(sum(item.confidence for item in checklist) / len(checklist) * 100)


def deployment_readiness(checklist: list[ChecklistItem], metadata: dict[str, Any]) -> int:
    score = 0.0
    if metadata.get("has_dockerfile"):
        score += 30
    if metadata.get("has_ci"):
        score += 25
    if metadata.get("has_kubernetes"):
        score += 25
    confident = [i for i in checklist if i.id in _CONFIG_ITEMS and i.confidence > 0.7]
    score += len(confident) / len(_CONFIG_ITEMS) * 20
    return min(100, round(score))


def estimate_complexity(metadata: dict[str, Any]) -> str:
    """'low', 'medium' or 'high' from file and language counts."""
    score = metadata.get("total_files", 0) + len(metadata.get("languages") or {}) * 5
    if score > 200:
        return "high"
    if score > 50:
        return "medium"
    return "low"


def recommendations(metadata: dict[str, Any]) -> list[str]:
    result = []
    if metadata.get("has_dockerfile"):
        result.append("Application is containerized and ready for Kubernetes deployment")
    else:
        result.append("Add a Dockerfile for containerization")
    if metadata.get("has_ci"):
        result.append("CI/CD pipeline detected")
    else:
        result.append("Set up a CI/CD pipeline for automated deployments")
    if metadata.get("has_kubernetes"):
        result.append("Kubernetes configurations found")
    else:
        result.append("Add Kubernetes manifests for deployment")
    return result
