"""reposcope vector store database layer."""

from reposcope.db.collections import collection_name, ensure_collection
from reposcope.db.connection import Database
from reposcope.db.migrations import MIGRATIONS, run_migrations
from reposcope.db.repository import Repository
from reposcope.db.schema import initialize

__all__ = [
    "Database",
    "Repository",
    "initialize",
    "run_migrations",
    "MIGRATIONS",
    "collection_name",
    "ensure_collection",
]
