"""Tests for EmbeddingStore: batching, persistence, search and stats."""

from __future__ import annotations

import sqlite3

import pytest

from reposcope.db.models import Chunk, ChunkMetadata
from reposcope.db.repository import Repository
from reposcope.embeddings.client import EmbeddingError
from reposcope.embeddings.store import EmbeddingStore

REPO = "acme/api"


def _chunk(i: int, repo_id: str = REPO, body: str | None = None) -> Chunk:
    return Chunk(
        id=f"{repo_id}-{i}",
        content=f"File: src/mod_{i}.py\nLanguage: python\n\n{body or f'def f{i}(): return {i}'}",
        metadata=ChunkMetadata(
            file_path=f"src/mod_{i}.py",
            start_line=1,
            end_line=1,
            language="python",
            repo_id=repo_id,
        ),
    )


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def store(database, embedder, sleeps):
    return EmbeddingStore(database, embedder, batch_size=2, batch_delay=0.5, sleep=sleeps.append)


# ------------------------------------------------------------------
# Construction
# ------------------------------------------------------------------

@pytest.mark.parametrize("kwargs", [{"batch_size": 0}, {"batch_delay": -1.0}])
def test_invalid_settings(database, embedder, kwargs):
    with pytest.raises(ValueError):
        EmbeddingStore(database, embedder, **kwargs)


def test_construction_initializes_schema(database, embedder):
    EmbeddingStore(database, embedder)
    conn = database.connect()
    try:
        assert Repository(conn).list_collections() == []
    finally:
        conn.close()


# ------------------------------------------------------------------
# Collections
# ------------------------------------------------------------------

def test_initialize_collection_is_idempotent(store):
    store.initialize_collection(REPO)
    store.initialize_collection(REPO)
    assert store.get_collection_stats(REPO).count == 0


def test_initialize_collection_logs(store, caplog):
    with caplog.at_level("INFO", logger="reposcope.embeddings.store"):
        store.initialize_collection(REPO)
        store.initialize_collection(REPO)
    assert "Created collection: repo_acme_api" in caplog.text
    assert "already exists" in caplog.text


def test_delete_collection(store):
    store.add_chunks(REPO, [_chunk(0)])
    store.delete_collection(REPO)
    assert store.get_collection_stats(REPO).count == 0


def test_delete_unknown_collection_is_noop(store):
    store.delete_collection("nobody/nothing")


def test_stats_error_reports_zero(store, monkeypatch):
    def broken(self, repo_id):
        raise sqlite3.OperationalError("disk I/O error")

    monkeypatch.setattr(Repository, "count_stored_chunks", broken)
    assert store.get_collection_stats(REPO).count == 0


# ------------------------------------------------------------------
# add_chunks
# ------------------------------------------------------------------

def test_add_chunks_batches_and_waits_between(store, embedder, sleeps):
    chunks = [_chunk(i) for i in range(5)]
    assert store.add_chunks(REPO, chunks) == 5

    assert [len(call) for call in embedder.calls] == [2, 2, 1]
    assert sleeps == [0.5, 0.5]
    assert store.get_collection_stats(REPO).count == 5


def test_add_chunks_sends_chunk_content(store, embedder):
    chunk = _chunk(0)
    store.add_chunks(REPO, [chunk])
    assert embedder.calls == [[chunk.content]]


def test_add_no_chunks(store, embedder):
    assert store.add_chunks(REPO, []) == 0
    assert embedder.calls == []


def test_zero_delay_never_sleeps(database, embedder, sleeps):
    store = EmbeddingStore(database, embedder, batch_size=1, batch_delay=0, sleep=sleeps.append)
    store.add_chunks(REPO, [_chunk(0), _chunk(1)])
    assert sleeps == []


def test_collection_dropped_between_batches_is_recreated(database, embedder):
    dropped = []

    def drop_once(seconds):
        if not dropped:
            dropped.append(seconds)
            store.delete_collection(REPO)

    store = EmbeddingStore(database, embedder, batch_size=2, batch_delay=0.5, sleep=drop_once)
    assert store.add_chunks(REPO, [_chunk(i) for i in range(5)]) == 5
    assert dropped == [0.5]
    assert store.get_collection_stats(REPO).count == 3


def test_failed_batch_keeps_earlier_batches(store, embedder):
    calls = {"n": 0}
    real_embed = embedder.embed

    def flaky(texts):
        calls["n"] += 1
        if calls["n"] == 2:
            raise RuntimeError("provider unavailable")
        return real_embed(texts)

    embedder.embed = flaky
    with pytest.raises(RuntimeError, match="provider unavailable"):
        store.add_chunks(REPO, [_chunk(i) for i in range(4)])
    assert store.get_collection_stats(REPO).count == 2


def test_vector_count_mismatch_raises(database):
    class ShortEmbedder:
        def embed(self, texts):
            return [[1.0, 0.0]]

    store = EmbeddingStore(database, ShortEmbedder(), batch_size=2, batch_delay=0)
    with pytest.raises(EmbeddingError):
        store.add_chunks(REPO, [_chunk(0), _chunk(1)])
    assert store.get_collection_stats(REPO).count == 0


# ------------------------------------------------------------------
# search_similar
# ------------------------------------------------------------------

def test_search_own_content_scores_one(store):
    chunks = [_chunk(i) for i in range(4)]
    store.add_chunks(REPO, chunks)

    [top] = store.search_similar(REPO, chunks[2].content, limit=1)
    assert top.chunk.id == chunks[2].id
    assert top.score == pytest.approx(1.0, abs=1e-6)


def test_search_results_sorted_and_limited(store):
    store.add_chunks(REPO, [_chunk(i) for i in range(6)])
    results = store.search_similar(REPO, "def handler", limit=4)

    assert len(results) == 4
    scores = [r.score for r in results]
    assert scores == sorted(scores, reverse=True)


def test_search_limit_below_one_returns_nothing(store, embedder):
    store.add_chunks(REPO, [_chunk(0)])
    embedder.calls.clear()
    assert store.search_similar(REPO, "anything", limit=0) == []
    assert embedder.calls == []


def test_search_unknown_repository_is_empty(store):
    assert store.search_similar("nobody/nothing", "query") == []


def test_search_is_scoped_to_repository(store):
    store.add_chunks(REPO, [_chunk(0)])
    store.add_chunks("acme/web", [_chunk(0, repo_id="acme/web")])

    results = store.search_similar("acme/web", "query", limit=10)
    assert [r.chunk.metadata.repo_id for r in results] == ["acme/web"]
