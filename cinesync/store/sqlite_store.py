"""
SQLiteDocumentStore - JSON documents in a local SQLite file.

Each document is one row of the `documents` table, keyed by its full path,
with its fields stored as a JSON object. Predicates and ordering run inside
SQLite via json_extract(), and increment() is a single UPDATE statement, so
concurrent increments on the same document never lose updates.
"""

import json
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from ..exceptions import DocumentExists, DocumentNotFound, StoreError
from .base import Document, DocumentStore, Filter, new_id, validate_field
from .connection import StoreConnection
from .converters import to_store_value
from .paths import StorePaths, split_path

logger = logging.getLogger(__name__)

_SQL_OPERATORS = {
    "==": "=",
    "!=": "!=",
    "<": "<",
    "<=": "<=",
    ">": ">",
    ">=": ">=",
}


def _json_path(field: str) -> str:
    return f"$.{field}"


def _bind(value: Any) -> Any:
    """Convert a predicate value into something sqlite3 can bind."""
    value = to_store_value(value)
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return value


class SQLiteDocumentStore(DocumentStore):
    """Document store backed by a single SQLite database file."""

    def __init__(self, db_path: Path, namespace: str = ""):
        self._connection = StoreConnection(db_path)
        self.paths = StorePaths(namespace)

    # ─────────────────────────────────────────────────────────────
    # Internal helpers
    # ─────────────────────────────────────────────────────────────

    @contextmanager
    def _guard(self, operation: str, target: str) -> Iterator[sqlite3.Connection]:
        """Open a connection and wrap sqlite errors into StoreError."""
        try:
            with self._connection.conn() as conn:
                yield conn
        except StoreError:
            raise
        except sqlite3.Error as e:
            logger.error(f"Store {operation} failed for {target}: {e}")
            raise StoreError(f"Store {operation} failed for {target}") from e

    @staticmethod
    def _row_to_document(row: sqlite3.Row) -> Document:
        try:
            data = json.loads(row["data"]) or {}
        except json.JSONDecodeError:
            data = {}
        return Document(id=row["doc_id"], path=row["path"], data=data)

    @staticmethod
    def _encode(data: dict[str, Any]) -> str:
        return json.dumps(to_store_value(data))

    @staticmethod
    def _where_clause(where: list[Filter] | tuple[Filter, ...]) -> tuple[str, list, bool]:
        """Build SQL predicates. The bool is False when no row can match."""
        clauses: list[str] = []
        params: list = []
        for f in where:
            if f.op == "in":
                values = list(f.value or [])
                if not values:
                    return "", [], False
                placeholders = ", ".join("?" for _ in values)
                clauses.append(f"json_extract(data, ?) IN ({placeholders})")
                params.append(_json_path(f.field))
                params.extend(_bind(v) for v in values)
            elif f.value is None and f.op in ("==", "!="):
                negate = "NOT " if f.op == "!=" else ""
                clauses.append(f"json_extract(data, ?) IS {negate}NULL")
                params.append(_json_path(f.field))
            else:
                clauses.append(f"json_extract(data, ?) {_SQL_OPERATORS[f.op]} ?")
                params.extend([_json_path(f.field), _bind(f.value)])
        return "".join(f" AND {c}" for c in clauses), params, True

    # ─────────────────────────────────────────────────────────────
    # Reads
    # ─────────────────────────────────────────────────────────────

    def get(self, path: str) -> Document | None:
        with self._guard("get", path) as conn:
            row = conn.execute(
                "SELECT path, doc_id, data FROM documents WHERE path = ?",
                (path.strip("/"),)
            ).fetchone()
            return self._row_to_document(row) if row else None

    def query(
        self,
        collection: str,
        where: list[Filter] | tuple[Filter, ...] = (),
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
        start_after: str | None = None,
    ) -> list[Document]:
        collection = collection.strip("/")
        predicates, params, satisfiable = self._where_clause(where)
        if not satisfiable:
            return []

        query = "SELECT path, doc_id, data FROM documents WHERE collection = ?" + predicates
        params = [collection, *params]

        if order_by is not None:
            validate_field(order_by)
            order_path = _json_path(order_by)
            query += " AND json_extract(data, ?) IS NOT NULL"
            params.append(order_path)

        with self._guard("query", collection) as conn:
            if start_after is not None:
                cursor_path = f"{collection}/{start_after}"
                if order_by is None:
                    query += " AND path > ?"
                    params.append(cursor_path)
                else:
                    row = conn.execute(
                        "SELECT json_extract(data, ?) AS v FROM documents WHERE path = ?",
                        (order_path, cursor_path)
                    ).fetchone()
                    if row is None or row["v"] is None:
                        raise DocumentNotFound(f"Unknown cursor: {start_after}")
                    direction = "<" if descending else ">"
                    query += (
                        f" AND (json_extract(data, ?) {direction} ?"
                        " OR (json_extract(data, ?) = ? AND path > ?))"
                    )
                    params.extend([order_path, row["v"], order_path, row["v"], cursor_path])

            if order_by is None:
                query += " ORDER BY path ASC"
            else:
                query += f" ORDER BY json_extract(data, ?) {'DESC' if descending else 'ASC'}, path ASC"
                params.append(order_path)

            if limit is not None:
                query += " LIMIT ?"
                params.append(int(limit))

            rows = conn.execute(query, params).fetchall()
            return [self._row_to_document(row) for row in rows]

    def query_group(
        self,
        collection_id: str,
        where: list[Filter] | tuple[Filter, ...] = (),
    ) -> list[Document]:
        predicates, predicate_params, satisfiable = self._where_clause(where)
        if not satisfiable:
            return []

        query = "SELECT path, doc_id, data FROM documents WHERE collection_id = ?"
        params = [collection_id]
        if self.paths.root:
            query += " AND path LIKE ?"
            params.append(f"{self.paths.root}/%")
        query += predicates + " ORDER BY path ASC"
        params.extend(predicate_params)

        with self._guard("query_group", collection_id) as conn:
            rows = conn.execute(query, params).fetchall()
            return [self._row_to_document(row) for row in rows]

    # ─────────────────────────────────────────────────────────────
    # Writes
    # ─────────────────────────────────────────────────────────────

    def create(self, collection: str, data: dict[str, Any], doc_id: str | None = None) -> str:
        collection = collection.strip("/")
        doc_id = doc_id or new_id()
        path = f"{collection}/{doc_id}"
        with self._guard("create", path) as conn:
            try:
                conn.execute(
                    """INSERT INTO documents (path, collection, collection_id, doc_id, data)
                       VALUES (?, ?, ?, ?, ?)""",
                    (path, collection, collection.rsplit("/", 1)[-1], doc_id, self._encode(data))
                )
            except sqlite3.IntegrityError as e:
                raise DocumentExists(f"Document already exists: {path}") from e
        return doc_id

    def upsert(self, path: str, data: dict[str, Any], merge: bool = True) -> None:
        path = path.strip("/")
        collection, doc_id = split_path(path)
        with self._guard("upsert", path) as conn:
            merged = dict(data)
            if merge:
                row = conn.execute(
                    "SELECT path, doc_id, data FROM documents WHERE path = ?", (path,)
                ).fetchone()
                if row:
                    merged = {**self._row_to_document(row).data, **data}
            conn.execute(
                """INSERT INTO documents (path, collection, collection_id, doc_id, data)
                   VALUES (?, ?, ?, ?, ?)
                   ON CONFLICT(path) DO UPDATE SET
                       data = excluded.data,
                       updated_at = CURRENT_TIMESTAMP""",
                (path, collection, collection.rsplit("/", 1)[-1], doc_id, self._encode(merged))
            )

    def update(self, path: str, data: dict[str, Any]) -> None:
        path = path.strip("/")
        with self._guard("update", path) as conn:
            row = conn.execute(
                "SELECT path, doc_id, data FROM documents WHERE path = ?", (path,)
            ).fetchone()
            if row is None:
                raise DocumentNotFound(f"No document to update: {path}")
            merged = {**self._row_to_document(row).data, **data}
            conn.execute(
                "UPDATE documents SET data = ?, updated_at = CURRENT_TIMESTAMP WHERE path = ?",
                (self._encode(merged), path)
            )

    def delete(self, path: str) -> None:
        path = path.strip("/")
        with self._guard("delete", path) as conn:
            conn.execute("DELETE FROM documents WHERE path = ?", (path,))

    def increment(self, path: str, deltas: dict[str, int | float]) -> None:
        if not deltas:
            return
        path = path.strip("/")
        assignments: list[str] = []
        params: list = []
        for field, delta in deltas.items():
            validate_field(field)
            assignments.append("?, COALESCE(json_extract(data, ?), 0) + ?")
            params.extend([_json_path(field), _json_path(field), delta])

        with self._guard("increment", path) as conn:
            cursor = conn.execute(
                f"""UPDATE documents
                    SET data = json_set(data, {', '.join(assignments)}),
                        updated_at = CURRENT_TIMESTAMP
                    WHERE path = ?""",
                (*params, path)
            )
            if cursor.rowcount == 0:
                raise DocumentNotFound(f"No document to increment: {path}")
