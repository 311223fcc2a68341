"""Project directory and the per-project workspace."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from .cascade import delete_project_cascade
from .context import AppContext
from .errors import ValidationError, guard
from .models import Project, utcnow
from .store import ARRAY_CONTAINS, COLLECTION_PROJECTS, Filter, StoredDocument, Subscription


logger = logging.getLogger(__name__)

TABS = ("tasks", "chat", "members")
TAB_LABELS = {"tasks": "Tasks", "chat": "Team chat", "members": "Members"}


def _projects(docs: List[StoredDocument]) -> List[Project]:
    return [Project.from_doc(d.id, d.data) for d in docs]


class ProjectDirectory:
    """Projects the current user is a member of."""

    def __init__(self, ctx: AppContext) -> None:
        self.ctx = ctx

    def list(self, on_change: Callable[[List[Project]], None]) -> Optional[Subscription]:
        user_id = self.ctx.user_id
        if not self.ctx.ready or not user_id:
            return None

        def _on_error(exc: Exception) -> None:
            self.ctx.errors.set("Could not load projects.")

        return self.ctx.store.subscribe(
            COLLECTION_PROJECTS,
            Filter("members", ARRAY_CONTAINS, user_id),
            lambda docs: on_change(_projects(docs)),
            _on_error,
        )

    def create(self, name: str, description: str = "") -> Optional[str]:
        project_id: Optional[str] = None
        with guard(self.ctx.errors, "Could not create the project.") as outcome:
            if not (name or "").strip():
                raise ValidationError("Project name cannot be empty.")
            user_id = self.ctx.user_id
            if not user_id:
                raise ValidationError("You must be signed in to create a project.")
            project = Project(
                id="",
                name=name.strip(),
                description=(description or "").strip(),
                owner_id=user_id,
                members=[user_id],
                created_at=utcnow(),
            )
            project_id = self.ctx.store.insert(COLLECTION_PROJECTS, project.to_doc())
            logger.info("project %s created by %s", project_id, user_id)
        return project_id if outcome.ok else None

    def can_delete(self, project: Project) -> bool:
        return project.is_owner(self.ctx.user_id)

    def delete(self, project_id: str) -> None:
        self.ctx.confirmations.request(
            "Do you really want to delete this project? This cannot be undone.",
            lambda: self._delete_now(project_id),
        )

    def _delete_now(self, project_id: str) -> bool:
        with guard(self.ctx.errors, "Could not delete the project.") as outcome:
            delete_project_cascade(self.ctx.store, project_id)
        return outcome.ok


class ProjectWorkspace:
    """One open project: active tab plus membership management.

    Member ids are raw identity ids; there is no profile directory.
    """

    def __init__(self, ctx: AppContext, project: Project) -> None:
        self.ctx = ctx
        self.project: Optional[Project] = project
        self.project_id = project.id
        self.active_tab = TABS[0]

    def select_tab(self, tab: str) -> None:
        if tab not in TABS:
            raise ValueError(f"Unknown tab: {tab!r}")
        self.active_tab = tab

    def refresh(self, projects: List[Project]) -> Optional[Project]:
        """Take the latest copy from a directory snapshot.

        ``project`` becomes None once the project is gone or the viewer is
        no longer a member.
        """
        self.project = next((p for p in projects if p.id == self.project_id), None)
        return self.project

    @property
    def members(self) -> List[str]:
        return list(self.project.members) if self.project else []

    def can_remove(self, member_id: str) -> bool:
        if self.project is None:
            return False
        return self.project.is_owner(self.ctx.user_id) and member_id != self.ctx.user_id

    def add_member(self, user_id: str) -> bool:
        with guard(self.ctx.errors, "Could not add the member. Make sure the user id is valid.") as outcome:
            member_id = (user_id or "").strip()
            if not member_id:
                raise ValidationError("The new member's user id cannot be empty.")
            if self.project is None:
                raise ValidationError("This project is no longer available.")
            if member_id in self.project.members:
                raise ValidationError("This user is already a member of the project.")
            self.ctx.store.set_union(COLLECTION_PROJECTS, self.project_id, "members", member_id)
            self.project.members = self.project.members + [member_id]
            logger.info("added %s to project %s", member_id, self.project_id)
        return outcome.ok

    def remove_member(self, user_id: str) -> None:
        self.ctx.confirmations.request(
            f"Do you really want to remove user {user_id} from this project?",
            lambda: self._remove_now(user_id),
        )

    def _remove_now(self, user_id: str) -> bool:
        with guard(self.ctx.errors, "Could not remove the member.") as outcome:
            if self.project is None:
                raise ValidationError("This project is no longer available.")
            if self.project.owner_id == user_id:
                raise ValidationError("The project owner cannot be removed.")
            self.ctx.store.set_remove(COLLECTION_PROJECTS, self.project_id, "members", user_id)
            self.project.members = [m for m in self.project.members if m != user_id]
            logger.info("removed %s from project %s", user_id, self.project_id)
        return outcome.ok
