from __future__ import annotations

import weakref
from dataclasses import dataclass, field
from typing import Optional

from .config import TaskerConfig
from .confirm import ConfirmationGate
from .errors import ErrorSlot
from .identity import LocalIdentityProvider, SessionManager
from .store import DocumentStore


@dataclass
class AppContext:
    """Everything a view or service needs, passed in explicitly.

    Only ``session.identity`` and ``errors`` change after construction;
    both notify their listeners.
    """

    config: TaskerConfig
    store: DocumentStore
    session: SessionManager
    errors: ErrorSlot = field(default_factory=ErrorSlot)
    confirmations: ConfirmationGate = field(default_factory=ConfirmationGate)

    @property
    def user_id(self) -> Optional[str]:
        return self.session.user_id

    @property
    def ready(self) -> bool:
        return self.session.ready


def build_context(config: TaskerConfig, store: DocumentStore, provider: LocalIdentityProvider) -> AppContext:
    """Wire one browser session's context around a shared store."""
    errors = ErrorSlot()
    session = SessionManager(
        provider,
        errors,
        token=config.initial_auth_token,
        max_attempts=config.auth_max_attempts,
        backoff_seconds=config.auth_backoff_seconds,
    )
    ctx = AppContext(config=config, store=store, session=session, errors=errors)
    # The session stops listening to the provider once its context is collected.
    weakref.finalize(ctx, session.close)
    return ctx
