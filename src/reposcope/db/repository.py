"""Repository pattern for all vector store database operations.

Single interface for collections and stored chunks. Embeddings are written as
float32 blobs (``sqlite_vec.serialize_float32``) and read back through the
``vec_to_json()`` SQL function.
"""

from __future__ import annotations

import json
import sqlite3

import sqlite_vec

from reposcope.db.collections import (
    collection_exists,
    collection_name,
    drop_collection,
    ensure_collection,
)
from reposcope.db.models import Chunk, ChunkMetadata, StoredChunk


class Repository:
    """Data access layer for collections and stored chunks.

    Wraps an open sqlite3.Connection. The connection is owned by the caller
    and must be closed after use.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        """Initialise with an open database connection.

        Args:
            conn: An open sqlite3.Connection with sqlite-vec loaded and schema
                initialised (see reposcope.db.schema.initialize).
        """
        self._conn = conn

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------

    def ensure_collection(self, repo_id: str) -> bool:
        """Create the collection for *repo_id* if missing. Returns True if created."""
        _, created = ensure_collection(self._conn, repo_id)
        return created

    def has_collection(self, repo_id: str) -> bool:
        return collection_exists(self._conn, collection_name(repo_id))

    def list_collections(self) -> list[tuple[str, str]]:
        """Return [(name, repo_id), ...] ordered by name."""
        rows = self._conn.execute(
            "SELECT name, repo_id FROM collections ORDER BY name"
        ).fetchall()
        return [(r["name"], r["repo_id"]) for r in rows]

    def drop_collection(self, repo_id: str) -> int:
        """Drop the collection for *repo_id*. Returns the number of chunks removed."""
        return drop_collection(self._conn, collection_name(repo_id))

    # ------------------------------------------------------------------
    # Stored chunks
    # ------------------------------------------------------------------

    def add_stored_chunks(self, repo_id: str, stored: list[StoredChunk]) -> int:
        """Insert a batch of stored chunks in one transaction. Returns rows inserted."""
        if not stored:
            return 0
        name = collection_name(repo_id)
        rows = [
            (
                s.chunk.id,
                name,
                s.chunk.content,
                s.chunk.metadata.file_path,
                s.chunk.metadata.start_line,
                s.chunk.metadata.end_line,
                s.chunk.metadata.language,
                s.chunk.metadata.repo_id,
                sqlite_vec.serialize_float32(s.embedding),
                len(s.embedding),
                s.created_at,
            )
            for s in stored
        ]
        with self._conn:
            self._conn.executemany(
                """
                INSERT INTO stored_chunks (
                    id, collection, content, file_path, start_line, end_line,
                    language, repo_id, embedding, dimensions, created_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                rows,
            )
        return len(rows)

    def list_stored_chunks(self, repo_id: str) -> list[StoredChunk]:
        """Return every stored chunk in the collection for *repo_id*."""
        rows = self._conn.execute(
            """
            SELECT id, content, file_path, start_line, end_line, language, repo_id,
                   vec_to_json(embedding) AS embedding_json, created_at
            FROM stored_chunks WHERE collection = ?
            ORDER BY file_path, start_line
            """,
            (collection_name(repo_id),),
        ).fetchall()
        return [_row_to_stored_chunk(r) for r in rows]

    def count_stored_chunks(self, repo_id: str) -> int:
        """Return the number of stored chunks in the collection (0 if absent)."""
        return self._conn.execute(
            "SELECT COUNT(*) FROM stored_chunks WHERE collection = ?",
            (collection_name(repo_id),),
        ).fetchone()[0]


# ------------------------------------------------------------------
# Row → model helpers
# ------------------------------------------------------------------

def _row_to_stored_chunk(row: sqlite3.Row) -> StoredChunk:
    chunk = Chunk(
        id=row["id"],
        content=row["content"],
        metadata=ChunkMetadata(
            file_path=row["file_path"],
            start_line=row["start_line"],
            end_line=row["end_line"],
            language=row["language"],
            repo_id=row["repo_id"],
        ),
    )
    return StoredChunk(
        chunk=chunk,
        embedding=[float(v) for v in json.loads(row["embedding_json"])],
        created_at=row["created_at"],
    )
