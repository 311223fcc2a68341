"""Glue between store subscriptions and Streamlit reruns.

A Streamlit page is a script re-executed on every interaction, so a view
cannot own a subscription the way a long-lived widget would. Instead each
browser session keeps a ``SubscriptionScope``: during a run every visible
view acquires its subscription by key, and at the end of the run anything
not acquired again is released. Leaving a page or closing a detail view
therefore unsubscribes on the next run.
"""

from __future__ import annotations

import logging
import threading
import weakref
from typing import Callable, Dict, Generic, List, Optional, Set, TypeVar

from .store import Subscription


logger = logging.getLogger(__name__)

T = TypeVar("T")


class LiveQuery(Generic[T]):
    """Latest snapshot pushed by a subscription."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._items: List[T] = []
        self._loaded = False
        self.version = 0
        self.subscription: Optional[Subscription] = None

    def push(self, items: List[T]) -> None:
        with self._lock:
            self._items = list(items)
            self._loaded = True
            self.version += 1

    @property
    def items(self) -> List[T]:
        with self._lock:
            return list(self._items)

    @property
    def loaded(self) -> bool:
        return self._loaded

    def release(self) -> None:
        if self.subscription is not None:
            self.subscription.unsubscribe()
            self.subscription = None


def _release_all(queries: Dict[str, LiveQuery]) -> None:
    for key in list(queries):
        query = queries.pop(key, None)
        if query is not None:
            query.release()


class SubscriptionScope:
    def __init__(self) -> None:
        self._queries: Dict[str, LiveQuery] = {}
        self._seen: Set[str] = set()
        # Streamlit drops session_state without notice when a tab goes away;
        # the subscriptions of a collected scope are released with it.
        self._finalizer = weakref.finalize(self, _release_all, self._queries)

    def begin_run(self) -> None:
        self._seen = set()

    def acquire(
        self,
        key: str,
        subscribe: Callable[[Callable[[list], None]], Optional[Subscription]],
    ) -> LiveQuery:
        """Return the live query for ``key``, subscribing on first use.

        ``subscribe`` receives the push callback and returns the store
        subscription (or None when the view cannot query yet).
        """
        self._seen.add(key)
        query = self._queries.get(key)
        if query is not None and query.subscription is not None:
            return query
        query = query or LiveQuery()
        query.subscription = subscribe(query.push)
        self._queries[key] = query
        return query

    def release(self, key: str) -> None:
        query = self._queries.pop(key, None)
        if query is not None:
            query.release()
            logger.debug("released live query %s", key)

    def end_run(self) -> List[str]:
        """Release every query not acquired since ``begin_run``."""
        stale = [k for k in self._queries if k not in self._seen]
        for key in stale:
            self.release(key)
        return stale

    def close(self) -> None:
        _release_all(self._queries)

    def keys(self) -> List[str]:
        return list(self._queries)
