"""
Abstract document store interface.

Services depend on DocumentStore, never on a concrete backend, so the
SQLite store used locally and in tests can be swapped for a hosted
document database without touching service code.

Documents are addressed by slash-separated paths: `{collection}/{id}` at
the top level and `{collection}/{parentId}/{subcollection}/{id}` for
nested records. No operation here spans more than one document.
"""

from __future__ import annotations

import re
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from .paths import StorePaths

FIELD_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

OPERATORS = ("==", "!=", "<", "<=", ">", ">=", "in")


def new_id() -> str:
    """Generate a 20 character document id."""
    return uuid.uuid4().hex[:20]


def validate_field(name: str) -> str:
    """Reject field names that are not plain identifiers."""
    if not FIELD_NAME_PATTERN.match(name):
        raise ValueError(f"Invalid field name: {name!r}")
    return name


@dataclass(frozen=True)
class Filter:
    """A single field predicate, e.g. Filter("category", "==", "Bollywood")."""

    field: str
    op: str
    value: Any

    def __post_init__(self):
        validate_field(self.field)
        if self.op not in OPERATORS:
            raise ValueError(f"Unsupported operator: {self.op!r}")


@dataclass
class Document:
    """A stored document: its id, full path and field data."""

    id: str
    path: str
    data: dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)


class DocumentStore(ABC):
    """Path-keyed document persistence.

    `paths` builds the namespaced paths for every logical collection.
    Implementations raise StoreError (or a subclass) when a call fails;
    callers decide whether that is fatal for their operation.
    """

    paths: StorePaths

    @abstractmethod
    def get(self, path: str) -> Document | None:
        """Return the document at path, or None if it does not exist."""

    @abstractmethod
    def query(
        self,
        collection: str,
        where: list[Filter] | tuple[Filter, ...] = (),
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
        start_after: str | None = None,
    ) -> list[Document]:
        """Return documents of one collection matching every predicate.

        Documents missing the order_by field are excluded. Ties on the
        order_by field are broken by path. start_after is the id of a
        document in the same collection; only documents strictly after it
        in the requested order are returned.
        """

    @abstractmethod
    def query_group(
        self,
        collection_id: str,
        where: list[Filter] | tuple[Filter, ...] = (),
    ) -> list[Document]:
        """Return documents from every collection whose last segment is collection_id."""

    @abstractmethod
    def create(self, collection: str, data: dict[str, Any], doc_id: str | None = None) -> str:
        """Create a document and return its id.

        A generated id is used when doc_id is None. Raises DocumentExists
        if a document with doc_id is already present.
        """

    @abstractmethod
    def upsert(self, path: str, data: dict[str, Any], merge: bool = True) -> None:
        """Write a document, merging top-level fields into any existing one when merge is set."""

    @abstractmethod
    def update(self, path: str, data: dict[str, Any]) -> None:
        """Merge fields into an existing document. Raises DocumentNotFound if missing."""

    @abstractmethod
    def delete(self, path: str) -> None:
        """Delete a document. Deleting a missing document is not an error."""

    @abstractmethod
    def increment(self, path: str, deltas: dict[str, int | float]) -> None:
        """Atomically add each delta to its numeric field (missing fields count as 0).

        Raises DocumentNotFound if the document does not exist.
        """

    def close(self) -> None:
        """Release any resources held by the store.

        Default is a no-op so callers can always call close() safely.
        """
