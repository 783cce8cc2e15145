"""
Store module - path-keyed document persistence.

Services talk to the DocumentStore interface; SQLiteDocumentStore is the
bundled backend.
"""

from pathlib import Path

from .base import Document, DocumentStore, Filter, new_id
from .paths import StorePaths
from .sqlite_store import SQLiteDocumentStore


def create_store(db_path: Path, namespace: str = "") -> DocumentStore:
    """Create the configured document store."""
    return SQLiteDocumentStore(db_path, namespace=namespace)


__all__ = [
    "Document",
    "DocumentStore",
    "Filter",
    "new_id",
    "StorePaths",
    "SQLiteDocumentStore",
    "create_store",
]
