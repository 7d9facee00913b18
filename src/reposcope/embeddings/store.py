"""Embedding store — batched embedding, per-repository persistence, cosine search.

Each batch is one embedding-model round-trip. Vectors are paired with their
chunks by position, so the model client must return them in input order
(``EmbeddingClient`` restores order from the response ``index`` field).

A batch failure aborts ``add_chunks``; batches already written stay written.
Searches read whatever is stored at the time, including a collection that a
running job is still filling.
"""

from __future__ import annotations

import logging
import sqlite3
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Protocol

from reposcope.db.collections import collection_name
from reposcope.db.connection import Database
from reposcope.db.models import Chunk, CollectionStats, SearchResult, StoredChunk
from reposcope.db.repository import Repository
from reposcope.db.schema import initialize
from reposcope.embeddings.client import EmbeddingError
from reposcope.embeddings.similarity import cosine_similarity

logger = logging.getLogger(__name__)


class EmbeddingModel(Protocol):
    def embed(self, texts: list[str]) -> list[list[float]]: ...


class EmbeddingStore:
    """Generate, persist and search chunk embeddings per repository.

    Args:
        database: Database holding the collections.
        client: Embedding model (``EmbeddingClient`` or any ``embed(texts)``).
        batch_size: Chunks per embedding call.
        batch_delay: Seconds to wait between batches (rate limiting).
        sleep: Sleep function (injectable for tests).
    """

    def __init__(
        self,
        database: Database,
        client: EmbeddingModel,
        batch_size: int = 10,
        batch_delay: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        if batch_delay < 0:
            raise ValueError("batch_delay must be >= 0")
        self._db = database
        self._client = client
        self.batch_size = batch_size
        self.batch_delay = batch_delay
        self._sleep = sleep

        conn = self._db.connect()
        try:
            initialize(conn)
        finally:
            conn.close()

    @contextmanager
    def _repository(self) -> Iterator[Repository]:
        conn = self._db.connect()
        try:
            yield Repository(conn)
        finally:
            conn.close()

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------

    def initialize_collection(self, repo_id: str) -> None:
        """Create the collection for *repo_id* if it doesn't exist (idempotent)."""
        with self._repository() as repo:
            created = repo.ensure_collection(repo_id)
        if created:
            logger.info("Created collection: %s", collection_name(repo_id))
        else:
            logger.info("Collection %s already exists", collection_name(repo_id))

    def delete_collection(self, repo_id: str) -> None:
        """Drop every stored chunk for *repo_id* (irreversible)."""
        with self._repository() as repo:
            removed = repo.drop_collection(repo_id)
        logger.info("Deleted collection: %s (%d chunks)", collection_name(repo_id), removed)

    def get_collection_stats(self, repo_id: str) -> CollectionStats:
        """Return the stored chunk count. Storage errors are logged and yield 0."""
        try:
            with self._repository() as repo:
                return CollectionStats(count=repo.count_stored_chunks(repo_id))
        except sqlite3.Error:
            logger.warning(
                "Error getting collection stats for %s", repo_id, exc_info=True
            )
            return CollectionStats(count=0)

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def add_chunks(self, repo_id: str, chunks: list[Chunk]) -> int:
        """Embed and persist *chunks* in batches. Returns the number stored."""
        if not chunks:
            return 0

        name = collection_name(repo_id)
        stored_total = 0
        with self._repository() as repo:
            for start in range(0, len(chunks), self.batch_size):
                batch = chunks[start : start + self.batch_size]
                vectors = self._client.embed([c.content for c in batch])
                if len(vectors) != len(batch):
                    raise EmbeddingError(
                        f"Got {len(vectors)} embeddings for a batch of {len(batch)} chunks"
                    )

                created_at = datetime.now(timezone.utc).isoformat()
                stored = [
                    StoredChunk(chunk=chunk, embedding=vector, created_at=created_at)
                    for chunk, vector in zip(batch, vectors)
                ]
                # The collection may have been dropped while the previous batch waited.
                repo.ensure_collection(repo_id)
                stored_total += repo.add_stored_chunks(repo_id, stored)
                logger.info(
                    "Added batch %d (%d chunks) to %s",
                    start // self.batch_size + 1,
                    len(stored),
                    name,
                )

                if start + self.batch_size < len(chunks) and self.batch_delay > 0:
                    self._sleep(self.batch_delay)

        logger.info("Successfully added %d chunks to %s", stored_total, name)
        return stored_total

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def search_similar(self, repo_id: str, query: str, limit: int = 10) -> list[SearchResult]:
        """Rank every stored chunk of *repo_id* by cosine similarity to *query*."""
        if limit < 1:
            return []
        query_vector = self._client.embed([query])[0]

        with self._repository() as repo:
            stored = repo.list_stored_chunks(repo_id)

        results = [
            SearchResult(chunk=s.chunk, score=cosine_similarity(query_vector, s.embedding))
            for s in stored
        ]
        results.sort(key=lambda r: r.score, reverse=True)
        return results[:limit]
