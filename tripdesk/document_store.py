"""Document store contract with in-memory and SQLite implementations."""

from __future__ import annotations

from dataclasses import dataclass, field
import json
import logging
from pathlib import Path
import re
import sqlite3
import threading
from typing import Any, Literal, Protocol, Sequence


logger = logging.getLogger(__name__)

_FIELD_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class DocumentNotFoundError(LookupError):
    """Raised by a store when no document has the requested id."""


@dataclass(frozen=True)
class Query:
    kind: Literal["limit", "offset", "order_desc", "equal"]
    field_name: str | None = None
    value: Any = None

    @classmethod
    def limit(cls, value: int) -> "Query":
        if value < 0:
            raise ValueError("limit must be >= 0")
        return cls(kind="limit", value=int(value))

    @classmethod
    def offset(cls, value: int) -> "Query":
        if value < 0:
            raise ValueError("offset must be >= 0")
        return cls(kind="offset", value=int(value))

    @classmethod
    def order_desc(cls, field_name: str) -> "Query":
        return cls(kind="order_desc", field_name=_checked_field(field_name))

    @classmethod
    def equal(cls, field_name: str, value: Any) -> "Query":
        return cls(kind="equal", field_name=_checked_field(field_name), value=value)


@dataclass
class Document:
    id: str
    fields: dict[str, Any] = field(default_factory=dict)


@dataclass
class DocumentPage:
    documents: list[Document]
    total: int


class DocumentStore(Protocol):
    def create_document(self, collection: str, document_id: str, fields: dict[str, Any]) -> Document:
        ...

    def get_document(self, collection: str, document_id: str) -> Document:
        ...

    def list_documents(self, collection: str, queries: Sequence[Query] = ()) -> DocumentPage:
        ...


@dataclass
class _QueryPlan:
    limit: int | None = None
    offset: int = 0
    order_desc: list[str] = field(default_factory=list)
    equal: list[tuple[str, Any]] = field(default_factory=list)


def _plan_queries(queries: Sequence[Query]) -> _QueryPlan:
    plan = _QueryPlan()
    for query in queries:
        if query.kind == "limit":
            plan.limit = query.value
        elif query.kind == "offset":
            plan.offset = query.value
        elif query.kind == "order_desc":
            plan.order_desc.append(query.field_name or "")
        elif query.kind == "equal":
            plan.equal.append((query.field_name or "", query.value))
    return plan


def _sort_key(value: Any) -> tuple[bool, Any]:
    # Missing values sort last in descending order.
    return (value is not None, value)


def _checked_field(field_name: str) -> str:
    if not _FIELD_NAME.match(field_name):
        raise ValueError(f"Invalid document field name: {field_name!r}")
    return field_name


class InMemoryDocumentStore:
    """Thread-safe dict-backed store."""

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._lock = threading.Lock()

    def create_document(self, collection: str, document_id: str, fields: dict[str, Any]) -> Document:
        with self._lock:
            documents = self._collections.setdefault(collection, {})
            if document_id in documents:
                raise ValueError(f"Document '{document_id}' already exists in '{collection}'.")
            documents[document_id] = json.loads(json.dumps(fields))
            return Document(id=document_id, fields=json.loads(json.dumps(fields)))

    def get_document(self, collection: str, document_id: str) -> Document:
        with self._lock:
            stored = self._collections.get(collection, {}).get(document_id)
            if stored is None:
                raise DocumentNotFoundError(f"Document '{document_id}' not found in '{collection}'.")
            return Document(id=document_id, fields=json.loads(json.dumps(stored)))

    def list_documents(self, collection: str, queries: Sequence[Query] = ()) -> DocumentPage:
        plan = _plan_queries(queries)
        with self._lock:
            rows = [
                Document(id=doc_id, fields=json.loads(json.dumps(fields)))
                for doc_id, fields in self._collections.get(collection, {}).items()
            ]

        for name, value in plan.equal:
            rows = [row for row in rows if row.fields.get(name) == value]
        for name in reversed(plan.order_desc):
            rows.sort(key=lambda row: _sort_key(row.fields.get(name)), reverse=True)

        total = len(rows)
        end = None if plan.limit is None else plan.offset + plan.limit
        return DocumentPage(documents=rows[plan.offset:end], total=total)


class SqliteDocumentStore:
    """SQLite-backed store keeping each document's fields as a JSON column."""

    def __init__(self, db_path: str = "tripdesk.db") -> None:
        self.db_path = db_path
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._lock = threading.Lock()
        self._create_table()

    def _create_table(self) -> None:
        with self._lock:
            self._conn.execute(
                """
                CREATE TABLE IF NOT EXISTS documents (
                    collection TEXT NOT NULL,
                    id TEXT NOT NULL,
                    fields_json TEXT NOT NULL,
                    PRIMARY KEY (collection, id)
                )
                """
            )
            self._conn.commit()

    def create_document(self, collection: str, document_id: str, fields: dict[str, Any]) -> Document:
        fields_json = json.dumps(fields, ensure_ascii=False)
        with self._lock:
            self._conn.execute(
                "INSERT INTO documents (collection, id, fields_json) VALUES (?, ?, ?)",
                (collection, document_id, fields_json),
            )
            self._conn.commit()
        logger.debug("Stored document %s in %s", document_id, collection)
        return Document(id=document_id, fields=json.loads(fields_json))

    def get_document(self, collection: str, document_id: str) -> Document:
        with self._lock:
            row = self._conn.execute(
                "SELECT id, fields_json FROM documents WHERE collection = ? AND id = ?",
                (collection, document_id),
            ).fetchone()
        if row is None:
            raise DocumentNotFoundError(f"Document '{document_id}' not found in '{collection}'.")
        return Document(id=row[0], fields=json.loads(row[1]))

    def list_documents(self, collection: str, queries: Sequence[Query] = ()) -> DocumentPage:
        plan = _plan_queries(queries)
        where = ["collection = ?"]
        params: list[Any] = [collection]
        for name, value in plan.equal:
            where.append(f"json_extract(fields_json, '$.{name}') = ?")
            params.append(value)
        where_sql = " AND ".join(where)

        order_sql = ""
        if plan.order_desc:
            order_sql = " ORDER BY " + ", ".join(
                f"json_extract(fields_json, '$.{name}') DESC" for name in plan.order_desc
            )
        limit_sql = " LIMIT ? OFFSET ?"
        page_params = [-1 if plan.limit is None else plan.limit, plan.offset]

        with self._lock:
            total = self._conn.execute(
                f"SELECT COUNT(*) FROM documents WHERE {where_sql}",  # nosec B608 - field names are validated
                params,
            ).fetchone()[0]
            rows = self._conn.execute(
                f"SELECT id, fields_json FROM documents WHERE {where_sql}{order_sql}{limit_sql}",  # nosec B608
                [*params, *page_params],
            ).fetchall()
        return DocumentPage(
            documents=[Document(id=row[0], fields=json.loads(row[1])) for row in rows],
            total=int(total),
        )

    def close(self) -> None:
        with self._lock:
            self._conn.close()
