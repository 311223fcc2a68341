from __future__ import annotations

import logging
import threading
import uuid
from typing import TYPE_CHECKING, Callable, Dict, List, Optional

from .filters import Filter

if TYPE_CHECKING:
    from .documents import StoredDocument


logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[List["StoredDocument"]], None]
ErrorCallback = Callable[[Exception], None]


class Subscription:
    """A standing query. Stays live until :meth:`unsubscribe` is called."""

    def __init__(
        self,
        hub: "SubscriptionHub",
        collection: str,
        flt: Optional[Filter],
        on_snapshot: SnapshotCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        self.id = uuid.uuid4().hex
        self.collection = collection
        self.filter = flt
        self.on_snapshot = on_snapshot
        self.on_error = on_error
        self._hub = hub
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        with self._hub.lock:
            if not self._active:
                return
            self._active = False
            self._hub.remove(self)

    def __repr__(self) -> str:
        return f"Subscription(collection={self.collection!r}, filter={self.filter!r}, active={self._active})"


class SubscriptionHub:
    """Registry of live subscriptions keyed by collection.

    Thread-safe: publishes can come from any Streamlit session thread.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._by_collection: Dict[str, Dict[str, Subscription]] = {}

    @property
    def lock(self):
        return self._lock

    def add(
        self,
        collection: str,
        flt: Optional[Filter],
        on_snapshot: SnapshotCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> Subscription:
        sub = Subscription(self, collection, flt, on_snapshot, on_error)
        with self._lock:
            self._by_collection.setdefault(collection, {})[sub.id] = sub
        logger.debug("subscribed %r", sub)
        return sub

    def remove(self, sub: Subscription) -> None:
        with self._lock:
            subs = self._by_collection.get(sub.collection)
            if subs is not None:
                subs.pop(sub.id, None)
                if not subs:
                    self._by_collection.pop(sub.collection, None)
        logger.debug("unsubscribed %r", sub)

    def active_for(self, collection: str) -> List[Subscription]:
        with self._lock:
            return list(self._by_collection.get(collection, {}).values())

    def count(self, collection: Optional[str] = None) -> int:
        with self._lock:
            if collection is not None:
                return len(self._by_collection.get(collection, {}))
            return sum(len(v) for v in self._by_collection.values())
