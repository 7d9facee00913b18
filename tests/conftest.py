"""Shared pytest fixtures."""

from __future__ import annotations

import hashlib

import pytest

from reposcope.db.connection import Database
from reposcope.db.schema import initialize


class FakeEmbedder:
    """Deterministic embedding model: a non-zero vector derived from the text hash."""

    def __init__(self, dimensions: int = 8) -> None:
        self.dimensions = dimensions
        self.calls: list[list[str]] = []

    def embed(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return [self.vector(t) for t in texts]

    def vector(self, text: str) -> list[float]:
        digest = hashlib.sha256(text.encode("utf-8")).digest()
        return [float(b % 17) + 1.0 for b in digest[: self.dimensions]]


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / ".reposcope.db"


@pytest.fixture
def database(db_path):
    return Database(db_path)


@pytest.fixture
def tmp_db(database):
    """File-based DB in tmp_path with schema initialized, closed after test."""
    conn = database.connect()
    initialize(conn)
    yield conn
    conn.close()


@pytest.fixture
def embedder():
    return FakeEmbedder()
