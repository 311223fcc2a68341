"""Document store boundary.

The app only shapes and mutates JSON records; storage, querying and live
delivery are the store's job. This package ships a SQLAlchemy-backed
implementation (SQLite by default, PostgreSQL via DATABASE_URL) with an
in-process subscription hub, so the app runs without a hosted backend.
"""

from .documents import DocumentStore, StoredDocument, WriteBatch
from .filters import ARRAY_CONTAINS, EQUALS, Filter
from .subscriptions import Subscription

COLLECTION_PROJECTS = "projects"
COLLECTION_TASKS = "tasks"
COLLECTION_COMMENTS = "comments"
COLLECTION_CHAT_MESSAGES = "chatMessages"

__all__ = [
    "ARRAY_CONTAINS",
    "COLLECTION_CHAT_MESSAGES",
    "COLLECTION_COMMENTS",
    "COLLECTION_PROJECTS",
    "COLLECTION_TASKS",
    "DocumentStore",
    "EQUALS",
    "Filter",
    "StoredDocument",
    "Subscription",
    "WriteBatch",
]
