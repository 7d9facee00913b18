"""Tests for AnalysisStatus and the StatusRegistry."""

from __future__ import annotations

import threading
from datetime import datetime, timezone

import pytest

from reposcope.analysis.status import (
    AnalysisState,
    AnalysisStats,
    AnalysisStatus,
    StatusRegistry,
)


def _status(analysis_id: str = "job-1", repo_id: str = "acme/api") -> AnalysisStatus:
    return AnalysisStatus(analysis_id=analysis_id, repo_id=repo_id, user_id="u1")


# ------------------------------------------------------------------
# AnalysisStatus
# ------------------------------------------------------------------

def test_new_status_is_pending():
    status = _status()
    assert status.state is AnalysisState.PENDING
    assert status.progress == 0
    assert status.error is None
    assert status.started_at.tzinfo is not None


@pytest.mark.parametrize(
    "state, terminal",
    [(s, s in (AnalysisState.COMPLETED, AnalysisState.FAILED)) for s in AnalysisState],
)
def test_is_terminal(state, terminal):
    assert state.is_terminal is terminal


def test_advance_updates_state_and_step():
    status = _status()
    status.advance(AnalysisState.FETCHING, 10, "Fetching repository files")
    assert status.state is AnalysisState.FETCHING
    assert status.progress == 10
    assert status.current_step == "Fetching repository files"


def test_progress_never_decreases():
    status = _status()
    status.advance(AnalysisState.CHUNKING, 50, "Chunked")
    status.advance(AnalysisState.EMBEDDING, 40, "Embedding")
    assert status.progress == 50


@pytest.mark.parametrize("progress", [-1, 101])
def test_advance_rejects_out_of_range(progress):
    with pytest.raises(ValueError):
        _status().advance(AnalysisState.FETCHING, progress, "x")


def test_advance_after_terminal_raises():
    status = _status()
    status.fail("boom")
    with pytest.raises(ValueError, match="already failed"):
        status.advance(AnalysisState.FETCHING, 10, "again")


def test_fail_resets_progress():
    status = _status()
    status.advance(AnalysisState.EMBEDDING, 60, "Embedding")
    status.fail("rate limited")
    assert status.state is AnalysisState.FAILED
    assert status.error == "rate limited"
    assert status.progress == 0


def test_to_dict_is_json_friendly():
    status = _status()
    status.completed_at = datetime(2026, 1, 2, tzinfo=timezone.utc)
    status.stats = AnalysisStats(total_files=3, total_chunks=4, embeddings_generated=4, analysis_score=71)
    data = status.to_dict()

    assert data["state"] == "pending"
    assert data["completed_at"] == "2026-01-02T00:00:00+00:00"
    assert isinstance(data["started_at"], str)
    assert data["stats"]["total_chunks"] == 4
    assert data["user_id"] == "u1"


# ------------------------------------------------------------------
# StatusRegistry
# ------------------------------------------------------------------

def test_insert_and_get_returns_copy():
    registry = StatusRegistry()
    status = _status()
    registry.insert(status)

    snapshot = registry.get("job-1")
    assert snapshot == status
    assert snapshot is not status

    snapshot.progress = 99
    assert registry.get("job-1").progress == 0


def test_insert_stores_copy():
    registry = StatusRegistry()
    status = _status()
    registry.insert(status)
    status.progress = 42
    assert registry.get("job-1").progress == 0


def test_insert_duplicate_raises():
    registry = StatusRegistry()
    registry.insert(_status())
    with pytest.raises(ValueError, match="already exists"):
        registry.insert(_status())


def test_publish_replaces_snapshot():
    registry = StatusRegistry()
    status = _status()
    registry.insert(status)
    status.advance(AnalysisState.FETCHING, 25, "Fetched")

    assert registry.publish(status) is True
    assert registry.get("job-1").progress == 25


def test_publish_after_remove_is_dropped():
    registry = StatusRegistry()
    status = _status()
    registry.insert(status)
    registry.remove("job-1")

    assert registry.publish(status) is False
    assert registry.get("job-1") is None
    assert "job-1" not in registry


def test_get_unknown_is_none():
    assert StatusRegistry().get("missing") is None


def test_remove_unknown_is_none():
    assert StatusRegistry().remove("missing") is None


def test_list_and_len():
    registry = StatusRegistry()
    registry.insert(_status("a"))
    registry.insert(_status("b"))
    assert len(registry) == 2
    assert {s.analysis_id for s in registry.list()} == {"a", "b"}


def test_concurrent_publishers():
    registry = StatusRegistry()
    statuses = [_status(f"job-{i}") for i in range(20)]
    for status in statuses:
        registry.insert(status)

    def work(status: AnalysisStatus) -> None:
        for progress in range(0, 101, 5):
            status.advance(AnalysisState.EMBEDDING, progress, f"{progress}%")
            registry.publish(status)

    threads = [threading.Thread(target=work, args=(s,)) for s in statuses]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert all(s.progress == 100 for s in registry.list())
