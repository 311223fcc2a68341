"""Per-process and per-browser-session state for the Streamlit pages."""

from __future__ import annotations

import logging

import streamlit as st

from tasker.config import get_config
from tasker.context import AppContext, build_context
from tasker.identity import LocalIdentityProvider
from tasker.live import SubscriptionScope
from tasker.logging_setup import configure_logging
from tasker.store import DocumentStore


logger = logging.getLogger(__name__)

_CTX_KEY = "tasker_ctx"
_SCOPE_KEY = "tasker_scope"


@st.cache_resource
def get_store() -> DocumentStore:
    """One document store (and subscription hub) shared by every session."""
    cfg = get_config()
    store = DocumentStore(cfg.database_url, cfg.app_id)
    store.init_db()
    logger.info("document store ready (%s, namespace=%s)", store.database_url.split(":", 1)[0], cfg.app_id)
    return store


def get_context() -> AppContext:
    ctx = st.session_state.get(_CTX_KEY)
    if ctx is None:
        cfg = get_config()
        configure_logging(cfg.log_level)
        ctx = build_context(cfg, get_store(), LocalIdentityProvider(cfg.auth_secret))
        st.session_state[_CTX_KEY] = ctx
    return ctx


def get_scope() -> SubscriptionScope:
    scope = st.session_state.get(_SCOPE_KEY)
    if scope is None:
        scope = SubscriptionScope()
        st.session_state[_SCOPE_KEY] = scope
    return scope
