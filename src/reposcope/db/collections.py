"""Per-repository collection naming and lifecycle."""

from __future__ import annotations

import re
import sqlite3

_UNSAFE_RE = re.compile(r"[^a-zA-Z0-9]")


def collection_name(repo_id: str) -> str:
    """Convert an ``owner/name`` repository id to its collection name.

    Examples:
        "octocat/Hello-World" -> "repo_octocat_Hello_World"
        "acme/api.v2"         -> "repo_acme_api_v2"
    """
    if not repo_id:
        raise ValueError("repo_id must not be empty")
    return f"repo_{_UNSAFE_RE.sub('_', repo_id)}"


def collection_exists(conn: sqlite3.Connection, name: str) -> bool:
    """Return True if the collection row *name* exists."""
    row = conn.execute(
        "SELECT name FROM collections WHERE name = ?", (name,)
    ).fetchone()
    return row is not None


def ensure_collection(conn: sqlite3.Connection, repo_id: str) -> tuple[str, bool]:
    """Create the collection for *repo_id* if it doesn't already exist.

    Args:
        conn: Active database connection with the schema initialised.
        repo_id: Repository identifier (``owner/name``).

    Returns:
        ``(name, created)`` where *created* is False if it already existed.
    """
    name = collection_name(repo_id)
    if collection_exists(conn, name):
        return name, False

    conn.execute(
        "INSERT OR IGNORE INTO collections (name, repo_id) VALUES (?, ?)",
        (name, repo_id),
    )
    conn.commit()
    return name, True


def drop_collection(conn: sqlite3.Connection, name: str) -> int:
    """Delete the collection *name* and every stored chunk in it.

    Returns the number of stored chunks removed (0 if the collection is absent).
    """
    cur = conn.execute("DELETE FROM stored_chunks WHERE collection = ?", (name,))
    removed = cur.rowcount
    conn.execute("DELETE FROM collections WHERE name = ?", (name,))
    conn.commit()
    return removed
