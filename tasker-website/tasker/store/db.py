"""Document store engine and session management."""

from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool


_MEMORY_URLS = {"sqlite://", "sqlite:///:memory:"}


def create_store_engine(database_url: str) -> Engine:
    """Create the SQLAlchemy engine behind a document store.

    SQLite is opened with ``check_same_thread=False`` because every
    Streamlit session runs its script on its own thread. In-memory SQLite
    keeps a single connection so all sessions see the same data.
    """
    kwargs = {}
    if database_url.startswith("sqlite:"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if database_url in _MEMORY_URLS:
            kwargs["poolclass"] = StaticPool

    return create_engine(
        database_url,
        future=True,
        echo=False,
        pool_pre_ping=True,
        **kwargs,
    )


def create_sessionmaker(engine: Engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, future=True)
