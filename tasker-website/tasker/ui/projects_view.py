"""Project directory and project workspace views."""

from __future__ import annotations

import html
from typing import List, Optional

import streamlit as st

from tasker.config import get_config
from tasker.context import AppContext
from tasker.models import Project
from tasker.projects import TAB_LABELS, TABS, ProjectDirectory, ProjectWorkspace
from tasker.ui.chat_view import render_project_chat
from tasker.ui.state import get_scope
from tasker.ui.tasks_view import render_task_board


OPEN_PROJECT_KEY = "open_project_id"

_REFRESH = get_config().refresh_seconds


def _projects_key(ctx: AppContext) -> str:
    return f"projects:{ctx.user_id}"


def render_projects_page(ctx: AppContext) -> None:
    directory = ProjectDirectory(ctx)
    query = get_scope().acquire(_projects_key(ctx), directory.list)

    open_id: Optional[str] = st.session_state.get(OPEN_PROJECT_KEY)
    if open_id:
        projects = query.items
        project = next((p for p in projects if p.id == open_id), None)
        if project is not None:
            render_workspace(ctx, project, projects)
            return
        if query.loaded:
            # Deleted, or the viewer was removed from it.
            st.session_state.pop(OPEN_PROJECT_KEY, None)

    _render_create_project(directory)
    st.subheader("My projects")
    _project_list_fragment(directory)


def _render_create_project(directory: ProjectDirectory) -> None:
    with st.container(border=True):
        st.subheader("Create a new project")
        with st.form("tt-create-project", clear_on_submit=True):
            name = st.text_input("Project name", placeholder="Enter a project name…")
            description = st.text_area("Description (optional)", placeholder="Short project description…", height=80)
            submitted = st.form_submit_button("Create project", type="primary")
        if submitted:
            with st.spinner("Creating…"):
                directory.create(name, description)
            st.rerun()


@st.fragment(run_every=_REFRESH)
def _project_list_fragment(directory: ProjectDirectory) -> None:
    ctx = directory.ctx
    query = get_scope().acquire(_projects_key(ctx), directory.list)
    if not query.loaded:
        st.caption("Loading projects…")
        return
    projects: List[Project] = sorted(query.items, key=lambda p: p.name.lower())
    if not projects:
        st.caption("You have no projects yet. Create one!")
        return
    for project in projects:
        with st.container(border=True):
            info, actions = st.columns([4, 1.4])
            with info:
                st.markdown(f"**{html.escape(project.name)}**")
                if project.description:
                    st.caption(project.description)
                st.caption(f"{len(project.members)} member(s)")
            with actions:
                if st.button("Open", key=f"tt-open-{project.id}", use_container_width=True):
                    st.session_state[OPEN_PROJECT_KEY] = project.id
                    st.rerun()
                if directory.can_delete(project) and st.button(
                    "Delete", key=f"tt-delete-{project.id}", use_container_width=True
                ):
                    directory.delete(project.id)
                    st.rerun()


def _workspace(ctx: AppContext, project: Project, projects: List[Project]) -> ProjectWorkspace:
    key = f"tt-workspace-{project.id}"
    ws = st.session_state.get(key)
    if ws is None:
        ws = ProjectWorkspace(ctx, project)
        st.session_state[key] = ws
    ws.refresh(projects)
    return ws


def render_workspace(ctx: AppContext, project: Project, projects: List[Project]) -> None:
    ws = _workspace(ctx, project, projects)

    if st.button("← Back to projects", key="tt-back"):
        st.session_state.pop(OPEN_PROJECT_KEY, None)
        st.rerun()

    _workspace_header_fragment(ws)

    tab = st.radio(
        "View",
        TABS,
        index=TABS.index(ws.active_tab),
        format_func=lambda t: TAB_LABELS[t],
        horizontal=True,
        label_visibility="collapsed",
        key=f"tt-tab-{project.id}",
    )
    ws.select_tab(tab)

    # Only the active tab renders, so the others hold no subscriptions.
    if ws.active_tab == "tasks":
        render_task_board(ctx, project.id)
    elif ws.active_tab == "chat":
        render_project_chat(ctx, project.id)
    else:
        _members_fragment(ws)


@st.fragment(run_every=_REFRESH)
def _workspace_header_fragment(ws: ProjectWorkspace) -> None:
    project = _refresh_workspace(ws)
    if project is None:
        return
    st.header(project.name)
    if project.description:
        st.caption(project.description)


def _refresh_workspace(ws: ProjectWorkspace) -> Optional[Project]:
    """Re-read the project from the directory snapshot.

    Leaves the workspace (full rerun) once the project is deleted or the
    viewer was removed from it.
    """
    query = get_scope().acquire(_projects_key(ws.ctx), ProjectDirectory(ws.ctx).list)
    if not query.loaded:
        return ws.project
    project = ws.refresh(query.items)
    if project is None:
        st.session_state.pop(OPEN_PROJECT_KEY, None)
        st.rerun()
    return project


@st.fragment(run_every=_REFRESH)
def _members_fragment(ws: ProjectWorkspace) -> None:
    project = _refresh_workspace(ws)
    if project is None:
        return
    with st.form(f"tt-add-member-{project.id}", clear_on_submit=True):
        new_member = st.text_input("Add member", placeholder="User ID…")
        submitted = st.form_submit_button("Add member")
    if submitted:
        with st.spinner("Adding…"):
            ws.add_member(new_member)
        st.rerun()

    st.markdown("**Members**")
    if not ws.members:
        st.caption("No members.")
    for member_id in ws.members:
        name, action = st.columns([5, 1])
        with name:
            tags = []
            if member_id == project.owner_id:
                tags.append("owner")
            if member_id == ws.ctx.user_id:
                tags.append("you")
            suffix = f" ({', '.join(tags)})" if tags else ""
            st.markdown(f"`{member_id}`{suffix}")
        with action:
            if ws.can_remove(member_id) and st.button("Remove", key=f"tt-rm-{project.id}-{member_id}"):
                ws.remove_member(member_id)
                st.rerun()
