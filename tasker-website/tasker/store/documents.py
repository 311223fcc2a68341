"""SQLAlchemy-backed document store with live subscriptions.

Records are stored as JSON text in a single ``documents`` table keyed by
(namespace, collection, id). Queries are single-field filters evaluated on
the decoded records, which keeps the schema portable between SQLite and
PostgreSQL.

Every mutation commits, then re-runs the query of each live subscription
on the touched collection and pushes the full matching set. Delivery order
inside a snapshot is not defined; callers sort what they need sorted.
"""

from __future__ import annotations

import functools
import logging
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Set, Tuple

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from ..errors import NotFoundError, StoreError
from .db import create_sessionmaker, create_store_engine
from .filters import Filter, matches
from .models import Base, DocumentRow
from .subscriptions import ErrorCallback, SnapshotCallback, Subscription, SubscriptionHub


logger = logging.getLogger(__name__)


@dataclass
class StoredDocument:
    id: str
    data: Dict[str, Any] = field(default_factory=dict)


def _store_op(name: str):
    """Translate SQLAlchemy failures into StoreError for the named operation."""

    def decorator(fn):
        @functools.wraps(fn)
        def wrapper(*args, **kwargs):
            try:
                return fn(*args, **kwargs)
            except SQLAlchemyError as exc:
                raise StoreError(name, str(exc)) from exc

        return wrapper

    return decorator


class DocumentStore:
    def __init__(self, database_url: str, namespace: str) -> None:
        self.database_url = database_url
        self.namespace = namespace
        self._engine = create_store_engine(database_url)
        self._sessionmaker = create_sessionmaker(self._engine)
        self._hub = SubscriptionHub()

    # ---------------- lifecycle ----------------

    @_store_op("init_db")
    def init_db(self) -> None:
        Base.metadata.create_all(self._engine)

    def dispose(self) -> None:
        self._engine.dispose()

    @property
    def hub(self) -> SubscriptionHub:
        return self._hub

    # ---------------- reads ----------------

    @_store_op("get")
    def get(self, collection: str, doc_id: str) -> Optional[StoredDocument]:
        with self._sessionmaker() as s:
            row = s.get(DocumentRow, (self.namespace, collection, doc_id))
            return StoredDocument(row.id, row.data()) if row else None

    @_store_op("get_all")
    def get_all(self, collection: str, flt: Optional[Filter] = None) -> List[StoredDocument]:
        with self._sessionmaker() as s:
            q = (
                select(DocumentRow)
                .where(DocumentRow.namespace == self.namespace)
                .where(DocumentRow.collection == collection)
            )
            rows = s.execute(q).scalars().all()
            docs = [StoredDocument(r.id, r.data()) for r in rows]
        return [d for d in docs if matches(flt, d.data)]

    # ---------------- writes ----------------

    @_store_op("insert")
    def insert(self, collection: str, record: Dict[str, Any]) -> str:
        doc_id = uuid.uuid4().hex
        with self._sessionmaker() as s:
            row = DocumentRow(namespace=self.namespace, collection=collection, id=doc_id)
            row.set_data(dict(record))
            s.add(row)
            s.commit()
        logger.debug("inserted %s/%s", collection, doc_id)
        self._publish({collection})
        return doc_id

    @_store_op("update")
    def update(self, collection: str, doc_id: str, partial: Dict[str, Any]) -> None:
        with self._sessionmaker() as s:
            row = self._get_for_update(s, collection, doc_id)
            if row is None:
                raise NotFoundError("update", f"{collection}/{doc_id} does not exist")
            data = row.data()
            data.update(partial)
            row.set_data(data)
            s.commit()
        self._publish({collection})

    @_store_op("set_union")
    def set_union(self, collection: str, doc_id: str, field_name: str, value: Any) -> None:
        self._rewrite_set(collection, doc_id, field_name, value, add=True)

    @_store_op("set_remove")
    def set_remove(self, collection: str, doc_id: str, field_name: str, value: Any) -> None:
        self._rewrite_set(collection, doc_id, field_name, value, add=False)

    @_store_op("delete")
    def delete(self, collection: str, doc_id: str) -> None:
        with self._sessionmaker() as s:
            row = s.get(DocumentRow, (self.namespace, collection, doc_id))
            if row is None:
                return
            s.delete(row)
            s.commit()
        logger.debug("deleted %s/%s", collection, doc_id)
        self._publish({collection})

    @contextmanager
    def batch(self) -> Iterator["WriteBatch"]:
        """Queue deletes/updates and commit them in one transaction.

        Nothing is written if the block raises or the commit fails.
        """
        wb = WriteBatch()
        yield wb
        self._commit_batch(wb)

    @_store_op("batch")
    def _commit_batch(self, wb: "WriteBatch") -> None:
        if not wb.operations:
            return
        touched: Set[str] = set()
        with self._sessionmaker() as s:
            for op, collection, doc_id, partial in wb.operations:
                row = self._get_for_update(s, collection, doc_id)
                if op == "delete":
                    if row is not None:
                        s.delete(row)
                else:
                    if row is None:
                        raise NotFoundError("batch", f"{collection}/{doc_id} does not exist")
                    data = row.data()
                    data.update(partial or {})
                    row.set_data(data)
                touched.add(collection)
            s.commit()
        logger.debug("committed batch of %d operations", len(wb.operations))
        self._publish(touched)

    # ---------------- live queries ----------------

    def subscribe(
        self,
        collection: str,
        flt: Optional[Filter],
        on_snapshot: SnapshotCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> Subscription:
        """Register a standing query and deliver its current result at once."""
        sub = self._hub.add(collection, flt, on_snapshot, on_error)
        self._deliver(sub)
        return sub

    # ---------------- internals ----------------

    def _get_for_update(self, s, collection: str, doc_id: str) -> Optional[DocumentRow]:
        q = (
            select(DocumentRow)
            .where(DocumentRow.namespace == self.namespace)
            .where(DocumentRow.collection == collection)
            .where(DocumentRow.id == doc_id)
            .with_for_update()
        )
        return s.execute(q).scalars().first()

    def _rewrite_set(self, collection: str, doc_id: str, field_name: str, value: Any, *, add: bool) -> None:
        # Row lock (where the backend supports it) serialises concurrent writers.
        with self._sessionmaker() as s:
            row = self._get_for_update(s, collection, doc_id)
            if row is None:
                raise NotFoundError("set_union" if add else "set_remove", f"{collection}/{doc_id} does not exist")
            data = row.data()
            current = list(data.get(field_name) or [])
            if add and value not in current:
                current.append(value)
            elif not add:
                current = [v for v in current if v != value]
            data[field_name] = current
            row.set_data(data)
            s.commit()
        self._publish({collection})

    def _publish(self, collections: Set[str]) -> None:
        for collection in collections:
            for sub in self._hub.active_for(collection):
                self._deliver(sub)

    def _deliver(self, sub: Subscription) -> None:
        try:
            docs = self.get_all(sub.collection, sub.filter)
        except StoreError as exc:
            logger.exception("live query on %s failed", sub.collection)
            if sub.on_error is not None:
                sub.on_error(exc)
            return
        if not sub.active:
            return
        try:
            sub.on_snapshot(docs)
        except Exception:
            # Callback failures never reach the writer that triggered the push.
            logger.exception("snapshot callback for %s raised", sub.collection)


class WriteBatch:
    """Operations queued by :meth:`DocumentStore.batch`."""

    def __init__(self) -> None:
        self.operations: List[Tuple[str, str, str, Optional[Dict[str, Any]]]] = []

    def delete(self, collection: str, doc_id: str) -> None:
        self.operations.append(("delete", collection, doc_id, None))

    def update(self, collection: str, doc_id: str, partial: Dict[str, Any]) -> None:
        self.operations.append(("update", collection, doc_id, dict(partial)))

    def __len__(self) -> int:
        return len(self.operations)
