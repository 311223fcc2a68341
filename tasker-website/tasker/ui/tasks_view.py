"""Task board, task form, task detail and the My Tasks list."""

from __future__ import annotations

import html
from typing import Any, Dict, List, Optional, Tuple

import streamlit as st

from tasker.config import get_config
from tasker.context import AppContext
from tasker.errors import ValidationError
from tasker.models import PRIORITIES, PRIORITY_LABELS, STATUS_LABELS, STATUSES, Comment, Task
from tasker.task_detail import TaskDetail, progress
from tasker.task_form import TaskEditor
from tasker.tasks import TaskBoard, group_by_status
from tasker.ui.components import task_card_html
from tasker.ui.state import get_scope
from tasker.ui.tables import status_chart, tasks_to_df


_REFRESH = get_config().refresh_seconds


def _board_key(ctx: AppContext, board: TaskBoard) -> str:
    return f"tasks:{board.scope}:{board.project_id or ctx.user_id}"


def _open_key(prefix: str) -> str:
    return f"{prefix}-open-task"


def _editing_key(prefix: str) -> str:
    return f"{prefix}-editing"


# ---------------- form ----------------

def render_task_form(editor: TaskEditor, key: str, title: str) -> Tuple[Optional[str], Optional[Dict[str, Any]]]:
    """Render the task form. Returns ("submit", values), ("cancel", None) or (None, None)."""
    init = editor.initial_values()
    with st.form(key):
        st.markdown(f"**{title}**")
        values: Dict[str, Any] = {}
        values["title"] = st.text_input("Title", value=init["title"], placeholder="Task title…")
        values["description"] = st.text_area("Description", value=init["description"], height=100)
        c1, c2, c3 = st.columns(3)
        with c1:
            values["assigned_to"] = st.text_input("Assigned to", value=init["assigned_to"], placeholder="User ID")
        with c2:
            values["priority"] = st.selectbox(
                "Priority",
                PRIORITIES,
                index=PRIORITIES.index(init["priority"]),
                format_func=lambda p: PRIORITY_LABELS[p],
            )
        with c3:
            values["status"] = st.selectbox(
                "Status",
                STATUSES,
                index=STATUSES.index(init["status"]),
                format_func=lambda s: STATUS_LABELS[s],
            )
        values["due_date"] = st.date_input("Due date", value=init["due_date"], format="YYYY-MM-DD")
        values["labels"] = st.text_input("Labels (comma separated)", value=init["labels"], placeholder="e.g. frontend, bug")
        b1, b2 = st.columns(2)
        with b1:
            submitted = st.form_submit_button("Save task", type="primary", use_container_width=True)
        with b2:
            cancelled = st.form_submit_button("Cancel", use_container_width=True)
    if submitted:
        return "submit", values
    if cancelled:
        return "cancel", None
    return None, None


def _render_create_form(ctx: AppContext, board: TaskBoard, prefix: str) -> None:
    show_key = f"{prefix}-show-create"
    if not st.session_state.get(show_key):
        if st.button("➕ Add new task", key=f"{prefix}-add-task"):
            st.session_state[show_key] = True
            st.rerun()
        return
    editor = TaskEditor(ctx.user_id)
    action, values = render_task_form(editor, f"{prefix}-create-form", "Add new task")
    if action == "cancel":
        st.session_state[show_key] = False
        st.rerun()
    if action == "submit":
        try:
            fields = editor.submit(values or {})
        except ValidationError as exc:
            ctx.errors.set(str(exc))
            st.rerun()
        with st.spinner("Saving…"):
            created = board.create(fields)
        if created:
            st.session_state[show_key] = False
        st.rerun()


# ---------------- board ----------------

@st.fragment(run_every=_REFRESH)
def _board_fragment(ctx: AppContext, board: TaskBoard, prefix: str) -> None:
    query = get_scope().acquire(_board_key(ctx, board), board.list)
    if not query.loaded:
        st.caption("Loading tasks…")
        return
    tasks: List[Task] = query.items

    if not tasks:
        st.caption("No tasks yet. Add the first one!")
        return

    with st.expander(f"Overview · {len(tasks)} tasks", expanded=False):
        st.plotly_chart(status_chart(tasks), use_container_width=True, key=f"{prefix}-chart")

    columns = group_by_status(tasks)
    cols = st.columns(len(STATUSES))
    for col, status in zip(cols, STATUSES):
        with col:
            st.markdown(
                f"<div class='tt-column-header tt-badge tt-status-{status}'>{STATUS_LABELS[status]} · {len(columns[status])}</div>",
                unsafe_allow_html=True,
            )
            for task in columns[status]:
                _render_card(ctx, board, task, prefix)


def _render_card(ctx: AppContext, board: TaskBoard, task: Task, prefix: str) -> None:
    st.markdown(task_card_html(task), unsafe_allow_html=True)
    idx = STATUSES.index(task.status) if task.status in STATUSES else 0
    b_prev, b_open, b_next, b_del = st.columns(4)
    with b_prev:
        if idx > 0 and st.button("◀", key=f"{prefix}-prev-{task.id}", help=f"Move to {STATUS_LABELS[STATUSES[idx - 1]]}"):
            board.set_status(task.id, STATUSES[idx - 1])
            st.rerun()
    with b_open:
        if st.button("Detail", key=f"{prefix}-open-{task.id}"):
            st.session_state[_open_key(prefix)] = task.id
            st.session_state[_editing_key(prefix)] = False
            st.rerun()
    with b_next:
        if idx < len(STATUSES) - 1 and st.button("▶", key=f"{prefix}-next-{task.id}", help=f"Move to {STATUS_LABELS[STATUSES[idx + 1]]}"):
            board.set_status(task.id, STATUSES[idx + 1])
            st.rerun()
    with b_del:
        if st.button("🗑", key=f"{prefix}-del-{task.id}", help="Delete task"):
            _request_delete(board, task.id, prefix)
            st.rerun()


def _request_delete(board: TaskBoard, task_id: str, prefix: str) -> None:
    def _closed() -> None:
        if st.session_state.get(_open_key(prefix)) == task_id:
            st.session_state.pop(_open_key(prefix), None)

    board.delete(task_id, on_deleted=_closed)


def render_task_board(ctx: AppContext, project_id: str) -> None:
    board = TaskBoard.for_project(ctx, project_id)
    prefix = f"board-{project_id}"
    _render_create_form(ctx, board, prefix)
    _render_open_detail(ctx, board, prefix)
    _board_fragment(ctx, board, prefix)


# ---------------- my tasks ----------------

@st.fragment(run_every=_REFRESH)
def _my_tasks_fragment(ctx: AppContext, board: TaskBoard, prefix: str) -> None:
    query = get_scope().acquire(_board_key(ctx, board), board.list)
    if not query.loaded:
        st.caption("Loading your tasks…")
        return
    tasks: List[Task] = query.items
    if not tasks:
        st.caption("No tasks are assigned to you.")
        return

    st.dataframe(tasks_to_df(tasks), use_container_width=True, hide_index=True)
    for task in sorted(tasks, key=lambda t: (STATUSES.index(t.status) if t.status in STATUSES else 0, t.title.lower())):
        left, right = st.columns([5, 1.2])
        with left:
            st.markdown(task_card_html(task), unsafe_allow_html=True)
        with right:
            if st.button("Detail", key=f"{prefix}-open-{task.id}"):
                st.session_state[_open_key(prefix)] = task.id
                st.session_state[_editing_key(prefix)] = False
                st.rerun()
            if st.button("Delete", key=f"{prefix}-del-{task.id}"):
                _request_delete(board, task.id, prefix)
                st.rerun()


def render_my_tasks(ctx: AppContext) -> None:
    board = TaskBoard.for_assignee(ctx)
    prefix = "my-tasks"
    st.subheader("My tasks")
    st.caption("Every task assigned to you, across all of your projects.")
    _render_open_detail(ctx, board, prefix)
    _my_tasks_fragment(ctx, board, prefix)


# ---------------- detail ----------------

def _render_open_detail(ctx: AppContext, board: TaskBoard, prefix: str) -> None:
    if st.session_state.get(_open_key(prefix)):
        _detail_fragment(ctx, board, prefix)


@st.fragment(run_every=_REFRESH)
def _detail_fragment(ctx: AppContext, board: TaskBoard, prefix: str) -> None:
    task_id = st.session_state.get(_open_key(prefix))
    if not task_id:
        return
    query = get_scope().acquire(_board_key(ctx, board), board.list)
    task = next((t for t in query.items if t.id == task_id), None)
    if task is None:
        if query.loaded:
            st.session_state.pop(_open_key(prefix), None)
            st.caption("This task is no longer available.")
        return
    detail = TaskDetail(ctx, board, task)
    detail.editing = bool(st.session_state.get(_editing_key(prefix)))
    with st.container(border=True):
        render_task_detail(ctx, detail, prefix)


def render_task_detail(ctx: AppContext, detail: TaskDetail, prefix: str) -> None:
    task = detail.task
    edit_key = _editing_key(prefix)

    if detail.editing:
        action, values = render_task_form(detail.editor(), f"{prefix}-edit-{task.id}", "Edit task")
        if action == "cancel":
            st.session_state[edit_key] = False
            st.rerun()
        if action == "submit":
            with st.spinner("Saving…"):
                if detail.edit(values or {}):
                    st.session_state[edit_key] = False
            st.rerun()
        return

    head, actions = st.columns([4, 2])
    with head:
        st.markdown(f"### {html.escape(task.title)}")
    with actions:
        a1, a2, a3 = st.columns(3)
        with a1:
            if st.button("Edit", key=f"{prefix}-edit-btn-{task.id}"):
                st.session_state[edit_key] = True
                st.rerun()
        with a2:
            if st.button("Delete", key=f"{prefix}-detail-del-{task.id}"):
                _request_delete(detail.board, task.id, prefix)
                st.rerun()
        with a3:
            if st.button("Close", key=f"{prefix}-close-{task.id}"):
                st.session_state.pop(_open_key(prefix), None)
                st.rerun()

    st.write(task.description or "_No description._")
    m1, m2, m3, m4 = st.columns(4)
    m1.metric("Status", task.status_label)
    m2.metric("Priority", task.priority_label)
    m3.metric("Due", task.due_date.isoformat() if task.due_date else "None")
    m4.caption(f"Assigned to: {task.assigned_to or 'unassigned'}")
    if task.labels:
        st.caption("Labels: " + ", ".join(task.labels))

    sub_col, chk_col = st.columns(2)
    with sub_col:
        _render_items(
            detail,
            "Subtasks",
            task.subtasks,
            f"{prefix}-sub-{task.id}",
            detail.toggle_subtask,
            detail.delete_subtask,
            detail.add_subtask,
        )
    with chk_col:
        _render_items(
            detail,
            "Checklist",
            task.checklists,
            f"{prefix}-chk-{task.id}",
            detail.toggle_checklist_item,
            detail.delete_checklist_item,
            detail.add_checklist_item,
        )

    _render_comments(ctx, detail, prefix)


def _render_items(detail, title, items, key, on_toggle, on_delete, on_add) -> None:
    done, total = progress(items)
    st.markdown(f"**{title}** ({done}/{total})")
    if total:
        st.progress(done / total)
    for item in items:
        c_chk, c_del = st.columns([6, 1])
        with c_chk:
            checked = st.checkbox(item.text, value=item.completed, key=f"{key}-{item.id}-{int(item.completed)}")
            if checked != item.completed:
                on_toggle(item.id)
                st.rerun()
        with c_del:
            if st.button("✕", key=f"{key}-del-{item.id}"):
                on_delete(item.id)
                st.rerun()
    new_text = st.text_input(f"New {title.lower()} item", key=f"{key}-new", label_visibility="collapsed", placeholder=f"Add to {title.lower()}…")
    if st.button("Add", key=f"{key}-add"):
        if on_add(new_text):
            st.session_state.pop(f"{key}-new", None)
        st.rerun()


def _render_comments(ctx: AppContext, detail: TaskDetail, prefix: str) -> None:
    task = detail.task
    st.markdown("**Comments**")
    query = get_scope().acquire(f"comments:{task.id}", detail.comments)
    comments: List[Comment] = query.items
    if query.loaded and not comments:
        st.caption("No comments yet.")
    for c in comments:
        who = "You" if c.user_id == ctx.user_id else f"User {c.user_id}"
        when = c.created_at.strftime("%Y-%m-%d %H:%M") if c.created_at else ""
        body, action = st.columns([8, 1])
        with body:
            st.markdown(f"**{html.escape(who)}** · {when}  \n{html.escape(c.text)}")
        with action:
            if detail.can_delete_comment(c) and st.button("✕", key=f"{prefix}-cdel-{c.id}"):
                detail.delete_comment(c)
                st.rerun()
    ckey = f"{prefix}-comment-{task.id}"
    text = st.text_area("Add a comment", key=ckey, height=80)
    if st.button("Post comment", key=f"{ckey}-post"):
        if detail.add_comment(text):
            st.session_state.pop(ckey, None)
        st.rerun()
