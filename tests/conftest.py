import pytest

from tasker.config import TaskerConfig
from tasker.context import AppContext, build_context
from tasker.errors import StoreError
from tasker.identity import LocalIdentityProvider, issue_token
from tasker.models import Project
from tasker.projects import ProjectDirectory
from tasker.store import COLLECTION_PROJECTS, DocumentStore


SECRET = "test-secret"


def make_config(**overrides) -> TaskerConfig:
    values = dict(
        database_url="sqlite://",
        app_id="test",
        initial_auth_token=None,
        auth_secret=SECRET,
        auth_max_attempts=3,
        auth_backoff_seconds=0.0,
        refresh_seconds=1.0,
        log_level="DEBUG",
    )
    values.update(overrides)
    return TaskerConfig(**values)


def make_context(store, user_id: str) -> AppContext:
    """A signed-in context for ``user_id`` sharing ``store``."""
    config = make_config(initial_auth_token=issue_token(SECRET, user_id))
    ctx = build_context(config, store, LocalIdentityProvider(SECRET))
    assert ctx.session.start()
    return ctx


class FailingStore:
    """Delegates to a real store, raising StoreError for the named operations."""

    def __init__(self, inner: DocumentStore) -> None:
        self.inner = inner
        self.fail_on = set()

    def __getattr__(self, name):
        attr = getattr(self.inner, name)
        if name in self.fail_on:
            def _fail(*args, **kwargs):
                raise StoreError(name, "injected failure")

            return _fail
        return attr


@pytest.fixture
def store():
    s = DocumentStore("sqlite://", "test")
    s.init_db()
    yield s
    s.dispose()


@pytest.fixture
def owner(store):
    return make_context(store, "owner")


@pytest.fixture
def project(owner):
    """A project owned by ``owner``."""
    project_id = ProjectDirectory(owner).create("Launch", "Ship it")
    doc = owner.store.get(COLLECTION_PROJECTS, project_id)
    return Project.from_doc(doc.id, doc.data)
