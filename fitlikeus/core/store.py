"""
Document store handle.

A small schema-less store with the primitives the app consumes from its
backend: get/add/set/update/delete by id, filtered/ordered/limited queries,
and change subscriptions. Two implementations share the query semantics:

- MemoryDocumentStore: process-local, used in development and tests.
- SqlDocumentStore: one `documents` table (SQLAlchemy core) holding JSON.

The handle is built once per process (`init_store`) and read by request
handlers through the `get_store` dependency.
"""
from __future__ import annotations

import copy
import logging
import threading
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple
from uuid import uuid4

from fastapi import Request
from sqlalchemy import select, insert, update, delete
from sqlalchemy.exc import SQLAlchemyError

from fitlikeus.core.config import Settings, settings
from fitlikeus.core.database import (
    build_engine,
    check_connection,
    create_all_tables,
    documents,
    get_database_url,
    get_db_session,
)
from fitlikeus.core.errors import BackendError

logger = logging.getLogger("fitlikeus")


class _ServerTimestamp:
    """Sentinel resolved to the write time by the store."""

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()

_OPERATORS = {"==", "!=", "<", "<=", ">", ">=", "in", "array-contains"}


@dataclass(frozen=True)
class Filter:
    field: str
    op: str
    value: Any

    def matches(self, data: Dict[str, Any]) -> bool:
        if self.field not in data:
            return False
        current = data[self.field]
        try:
            if self.op == "==":
                return current == self.value
            if self.op == "!=":
                return current != self.value
            if self.op == "in":
                return current in self.value
            if self.op == "array-contains":
                return isinstance(current, list) and self.value in current
            if current is None:
                return False
            if self.op == "<":
                return current < self.value
            if self.op == "<=":
                return current <= self.value
            if self.op == ">":
                return current > self.value
            if self.op == ">=":
                return current >= self.value
        except TypeError:
            return False
        return False


@dataclass(frozen=True)
class Query:
    """Immutable query builder: `Query("workouts").where(...).order_by(...).limit(n)`."""

    collection: str
    filters: Tuple[Filter, ...] = ()
    order_field: Optional[str] = None
    descending: bool = False
    max_results: Optional[int] = None

    def where(self, field_name: str, op: str, value: Any) -> "Query":
        if op not in _OPERATORS:
            raise ValueError(f"unsupported operator: {op}")
        return replace(self, filters=self.filters + (Filter(field_name, op, value),))

    def order_by(self, field_name: str, descending: bool = False) -> "Query":
        return replace(self, order_field=field_name, descending=descending)

    def limit(self, count: int) -> "Query":
        if count < 0:
            raise ValueError("limit must be non-negative")
        return replace(self, max_results=count)


@dataclass
class Document:
    id: str
    data: Dict[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, **self.data}


def _sort_key(value: Any):
    # Group by type so mixed values never compare across types.
    if isinstance(value, bool):
        return (1, int(value))
    if isinstance(value, (int, float)):
        return (2, value)
    if isinstance(value, datetime):
        aware = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
        return (3, aware.timestamp())
    if isinstance(value, date):
        return (3, datetime(value.year, value.month, value.day, tzinfo=timezone.utc).timestamp())
    if isinstance(value, str):
        return (4, value)
    return (0, 0) if value is None else (5, str(value))


def apply_query(docs: Iterable[Document], query: Query) -> List[Document]:
    """Filter, order and limit documents with the store's query semantics.

    Documents missing the order field are excluded from ordered results.
    """
    results = [doc for doc in docs if all(f.matches(doc.data) for f in query.filters)]
    if query.order_field:
        results = [doc for doc in results if query.order_field in doc.data]
        results.sort(key=lambda d: _sort_key(d.data[query.order_field]), reverse=query.descending)
    if query.max_results is not None:
        results = results[: query.max_results]
    return results


def _resolve_sentinels(data: Dict[str, Any], now: datetime) -> Dict[str, Any]:
    return {key: (now if value is SERVER_TIMESTAMP else value) for key, value in data.items()}


Listener = Callable[[List[Document]], None]


class DocumentStore:
    """Shared behaviour: sentinels, queries and change listeners."""

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._listeners: Dict[str, List[Tuple[Query, Listener]]] = {}
        self._listener_lock = threading.Lock()

    # Storage primitives implemented by subclasses -------------------------
    def _read(self, collection: str, doc_id: str) -> Optional[Document]:
        raise NotImplementedError

    def _write(self, collection: str, doc: Document, *, create: bool) -> None:
        raise NotImplementedError

    def _remove(self, collection: str, doc_id: str) -> None:
        raise NotImplementedError

    def _scan(self, collection: str) -> List[Document]:
        raise NotImplementedError

    def ping(self) -> bool:
        return True

    # Public API -----------------------------------------------------------
    def now(self) -> datetime:
        return self._clock()

    def get(self, collection: str, doc_id: str) -> Optional[Document]:
        return self._read(collection, doc_id)

    def add(self, collection: str, data: Dict[str, Any]) -> Document:
        return self.set(collection, uuid4().hex, data)

    def set(self, collection: str, doc_id: str, data: Dict[str, Any], *, merge: bool = False) -> Document:
        now = self.now()
        existing = self._read(collection, doc_id)
        resolved = _resolve_sentinels(data, now)
        if existing and merge:
            resolved = {**existing.data, **resolved}
        doc = Document(
            id=doc_id,
            data=resolved,
            created_at=existing.created_at if existing else now,
            updated_at=now,
        )
        self._write(collection, doc, create=existing is None)
        self._notify(collection)
        return doc

    def update(self, collection: str, doc_id: str, changes: Dict[str, Any]) -> Document:
        existing = self._read(collection, doc_id)
        if existing is None:
            raise BackendError("not-found", f"{collection}/{doc_id}")
        now = self.now()
        doc = Document(
            id=doc_id,
            data={**existing.data, **_resolve_sentinels(changes, now)},
            created_at=existing.created_at,
            updated_at=now,
        )
        self._write(collection, doc, create=False)
        self._notify(collection)
        return doc

    def delete(self, collection: str, doc_id: str) -> None:
        """Delete a document; deleting a missing id is a no-op."""
        self._remove(collection, doc_id)
        self._notify(collection)

    def query(self, query: Query) -> List[Document]:
        return apply_query(self._scan(query.collection), query)

    def subscribe(self, query: Query, callback: Listener) -> Callable[[], None]:
        """Call `callback` with the current results now and after every write
        to the query's collection. Returns an unsubscribe function."""
        entry = (query, callback)
        with self._listener_lock:
            self._listeners.setdefault(query.collection, []).append(entry)
        callback(self.query(query))

        def unsubscribe() -> None:
            with self._listener_lock:
                entries = self._listeners.get(query.collection, [])
                if entry in entries:
                    entries.remove(entry)

        return unsubscribe

    def _notify(self, collection: str) -> None:
        with self._listener_lock:
            entries = list(self._listeners.get(collection, []))
        for query, callback in entries:
            try:
                callback(self.query(query))
            except Exception:
                logger.exception("store.listener_failed", extra={"event_type": "store.listener_failed"})


class MemoryDocumentStore(DocumentStore):
    """Process-local store; values are deep-copied in and out."""

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        super().__init__(clock)
        self._collections: Dict[str, Dict[str, Document]] = {}
        self._lock = threading.RLock()

    def _read(self, collection: str, doc_id: str) -> Optional[Document]:
        with self._lock:
            doc = self._collections.get(collection, {}).get(doc_id)
            return copy.deepcopy(doc) if doc else None

    def _write(self, collection: str, doc: Document, *, create: bool) -> None:
        with self._lock:
            self._collections.setdefault(collection, {})[doc.id] = copy.deepcopy(doc)

    def _remove(self, collection: str, doc_id: str) -> None:
        with self._lock:
            self._collections.get(collection, {}).pop(doc_id, None)

    def _scan(self, collection: str) -> List[Document]:
        with self._lock:
            return [copy.deepcopy(doc) for doc in self._collections.get(collection, {}).values()]

    def clear(self) -> None:
        with self._lock:
            self._collections.clear()


def _encode(value: Any) -> Any:
    if isinstance(value, datetime):
        aware = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
        return {"$date": aware.isoformat()}
    if isinstance(value, dict):
        return {k: _encode(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_encode(v) for v in value]
    return value


def _decode(value: Any) -> Any:
    if isinstance(value, dict):
        if set(value.keys()) == {"$date"}:
            return datetime.fromisoformat(value["$date"])
        return {k: _decode(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_decode(v) for v in value]
    return value


def _aware(moment: Optional[datetime]) -> Optional[datetime]:
    if moment is not None and moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


class SqlDocumentStore(DocumentStore):
    """Documents persisted as JSON rows in the `documents` table."""

    def __init__(self, engine, clock: Optional[Callable[[], datetime]] = None, *, create_tables: bool = True):
        super().__init__(clock)
        self._engine = engine
        if create_tables:
            create_all_tables(engine)

    def _row_to_doc(self, row) -> Document:
        return Document(
            id=row.doc_id,
            data=_decode(row.data),
            created_at=_aware(row.created_at),
            updated_at=_aware(row.updated_at),
        )

    def _read(self, collection: str, doc_id: str) -> Optional[Document]:
        try:
            with get_db_session(self._engine) as session:
                row = session.execute(
                    select(documents).where(
                        documents.c.collection == collection,
                        documents.c.doc_id == doc_id,
                    )
                ).first()
        except SQLAlchemyError as e:
            raise BackendError("unavailable", str(e)) from e
        return self._row_to_doc(row) if row else None

    def _write(self, collection: str, doc: Document, *, create: bool) -> None:
        payload = _encode(doc.data)
        try:
            with get_db_session(self._engine) as session:
                if create:
                    session.execute(
                        insert(documents).values(
                            collection=collection,
                            doc_id=doc.id,
                            data=payload,
                            created_at=doc.created_at,
                            updated_at=doc.updated_at,
                        )
                    )
                else:
                    session.execute(
                        update(documents)
                        .where(
                            documents.c.collection == collection,
                            documents.c.doc_id == doc.id,
                        )
                        .values(data=payload, updated_at=doc.updated_at)
                    )
        except SQLAlchemyError as e:
            raise BackendError("unavailable", str(e)) from e

    def _remove(self, collection: str, doc_id: str) -> None:
        try:
            with get_db_session(self._engine) as session:
                session.execute(
                    delete(documents).where(
                        documents.c.collection == collection,
                        documents.c.doc_id == doc_id,
                    )
                )
        except SQLAlchemyError as e:
            raise BackendError("unavailable", str(e)) from e

    def _scan(self, collection: str) -> List[Document]:
        try:
            with get_db_session(self._engine) as session:
                rows = session.execute(
                    select(documents).where(documents.c.collection == collection)
                ).all()
        except SQLAlchemyError as e:
            raise BackendError("unavailable", str(e)) from e
        return [self._row_to_doc(row) for row in rows]

    def ping(self) -> bool:
        return check_connection(self._engine)


def build_store(settings_obj: Optional[Settings] = None) -> DocumentStore:
    """Construct the store selected by STORE_BACKEND."""
    cfg = settings_obj or settings
    backend = (cfg.STORE_BACKEND or "memory").lower()
    if backend == "sql":
        url = get_database_url() if settings_obj is None else (cfg.TEST_DATABASE_URL or cfg.DATABASE_URL)
        if not url:
            raise ValueError("DATABASE_URL is not configured. Set DATABASE_URL in environment or .env file.")
        logger.info("store.init", extra={"event_type": "store.init", "path": "sql"})
        return SqlDocumentStore(build_engine(url))
    logger.info("store.init", extra={"event_type": "store.init", "path": "memory"})
    return MemoryDocumentStore()


def init_store(app, settings_obj: Optional[Settings] = None) -> DocumentStore:
    """Attach the process-wide store to the app (idempotent)."""
    existing = getattr(app.state, "store", None)
    if existing is not None:
        return existing
    app.state.store = build_store(settings_obj)
    return app.state.store


def get_store(request: Request) -> DocumentStore:
    """FastAPI dependency returning the shared store handle."""
    return init_store(request.app)
