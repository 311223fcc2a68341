"""Shared page chrome: session gate, header, error banner, confirmation dialog."""

from __future__ import annotations

import html
from datetime import date
from typing import Optional

import streamlit as st

from tasker.context import AppContext
from tasker.models import Task
from tasker.theme import set_theme
from tasker.ui.state import get_context, get_scope


def start_page(page_title: str, page_icon: str = "📋") -> AppContext:
    """Top of every page: theme, session, header, error banner.

    Stops the script while no identity is established; nothing below may
    query the store without one.
    """
    set_theme(page_title=page_title, page_icon=page_icon)
    ctx = get_context()

    if not ctx.ready and ctx.session.error is None:
        with st.spinner("Loading the app…"):
            ctx.session.start()

    if not ctx.ready:
        render_error_banner(ctx)
        st.info("Signing in… the app is not ready yet.")
        if st.button("Try again", key="tt-session-retry"):
            ctx.session.retry()
            st.rerun()
        st.stop()

    get_scope().begin_run()
    render_header(ctx)
    render_error_banner(ctx)
    return ctx


def finish_page(ctx: AppContext) -> None:
    """Bottom of every page: pending confirmation, then release stale subscriptions."""
    render_confirmation(ctx)
    get_scope().end_run()


def render_header(ctx: AppContext) -> None:
    left, right = st.columns([3, 1.4])
    with left:
        st.title("Projects & Teams")
    with right:
        st.markdown(
            f"<span class='tt-user-pill'>User ID: <b>{html.escape(ctx.user_id or '')}</b></span>",
            unsafe_allow_html=True,
        )
        if st.button("Sign out", key="tt-sign-out", help="Continue with a new anonymous identity"):
            ctx.session.sign_out()
            st.session_state.pop("open_project_id", None)
            for key in [k for k in st.session_state.keys() if str(k).endswith("-open-task")]:
                st.session_state.pop(key, None)
            st.rerun()


def render_error_banner(ctx: AppContext) -> None:
    message = ctx.errors.message
    if not message:
        return
    col_msg, col_close = st.columns([12, 1])
    with col_msg:
        st.error(message)
    with col_close:
        if st.button("✕", key="tt-dismiss-error", help="Dismiss"):
            ctx.errors.clear()
            st.rerun()


def render_confirmation(ctx: AppContext) -> None:
    gate = ctx.confirmations
    if not gate.pending:
        return

    @st.dialog("Please confirm")
    def _dlg() -> None:
        st.write(gate.message)
        col_cancel, col_ok = st.columns(2)
        with col_cancel:
            if st.button("Cancel", use_container_width=True, key="tt-confirm-cancel"):
                gate.cancel()
                st.rerun()
        with col_ok:
            if st.button("Confirm", type="primary", use_container_width=True, key="tt-confirm-ok"):
                with st.spinner("Working…"):
                    gate.confirm()
                st.rerun()

    _dlg()


def badge(kind: str, value: str, label: str) -> str:
    return f"<span class='tt-badge tt-{kind}-{html.escape(value)}'>{html.escape(label)}</span>"


def task_card_html(task: Task, today: Optional[date] = None) -> str:
    overdue = task.is_overdue(today)
    labels = "".join(f"<span class='tt-label'>{html.escape(x)}</span>" for x in task.labels)
    due = f"Due {task.due_date.isoformat()}" if task.due_date else "No due date"
    assignee = html.escape(task.assigned_to or "unassigned")
    return (
        f"<div class='tt-card{' tt-overdue' if overdue else ''}'>"
        f"<div class='tt-card-title'>{html.escape(task.title)}</div>"
        f"{badge('status', task.status, task.status_label)}"
        f"{badge('priority', task.priority, task.priority_label)}"
        f"<div class='tt-card-meta'>{due}{' · OVERDUE' if overdue else ''} · {assignee}</div>"
        f"<div>{labels}</div>"
        "</div>"
    )
