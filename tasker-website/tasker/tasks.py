"""Task board: tasks of one project, or every task assigned to the viewer."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Callable, Dict, List, Optional

from .cascade import delete_task_cascade
from .context import AppContext
from .errors import ValidationError, guard
from .models import STATUSES, Task, utcnow
from .store import COLLECTION_TASKS, EQUALS, Filter, StoredDocument, Subscription


logger = logging.getLogger(__name__)

SCOPE_PROJECT = "project"
SCOPE_ASSIGNEE = "assignee"


def _board_key(t: Task):
    created = t.created_at.timestamp() if t.created_at else 0.0
    return (t.due_date or date.max, created, t.title.lower())


def group_by_status(tasks: List[Task]) -> Dict[str, List[Task]]:
    """Bucket tasks into board columns; unknown statuses land in ``todo``."""
    columns: Dict[str, List[Task]] = {s: [] for s in STATUSES}
    for t in tasks:
        columns.get(t.status, columns["todo"]).append(t)
    for bucket in columns.values():
        bucket.sort(key=_board_key)
    return columns


class TaskBoard:
    def __init__(self, ctx: AppContext, scope: str, project_id: Optional[str] = None) -> None:
        if scope == SCOPE_PROJECT and not project_id:
            raise ValueError("project scope needs a project_id")
        self.ctx = ctx
        self.scope = scope
        self.project_id = project_id

    @classmethod
    def for_project(cls, ctx: AppContext, project_id: str) -> "TaskBoard":
        return cls(ctx, SCOPE_PROJECT, project_id)

    @classmethod
    def for_assignee(cls, ctx: AppContext) -> "TaskBoard":
        return cls(ctx, SCOPE_ASSIGNEE)

    def _filter(self) -> Optional[Filter]:
        if self.scope == SCOPE_PROJECT:
            return Filter("projectId", EQUALS, self.project_id)
        user_id = self.ctx.user_id
        return Filter("assignedTo", EQUALS, user_id) if user_id else None

    def list(self, on_change: Callable[[List[Task]], None]) -> Optional[Subscription]:
        flt = self._filter()
        if flt is None or not self.ctx.ready:
            return None

        message = "Could not load your tasks." if self.scope == SCOPE_ASSIGNEE else "Could not load tasks."

        def _on_error(exc: Exception) -> None:
            self.ctx.errors.set(message)

        def _on_snapshot(docs: List[StoredDocument]) -> None:
            on_change([Task.from_doc(d.id, d.data) for d in docs])

        return self.ctx.store.subscribe(COLLECTION_TASKS, flt, _on_snapshot, _on_error)

    def create(self, fields: Dict[str, Any]) -> Optional[str]:
        task_id: Optional[str] = None
        with guard(self.ctx.errors, "Could not add the task.") as outcome:
            if not str(fields.get("title") or "").strip():
                raise ValidationError("Task title is required.")
            record = dict(fields)
            # Embedded sequences always start empty.
            record["subtasks"] = []
            record["checklists"] = []
            record["createdAt"] = utcnow()
            if self.scope == SCOPE_PROJECT:
                record["projectId"] = self.project_id
            task_id = self.ctx.store.insert(COLLECTION_TASKS, record)
            logger.info("task %s created in project %s", task_id, record.get("projectId"))
        return task_id if outcome.ok else None

    def update(self, task_id: str, partial: Dict[str, Any]) -> bool:
        with guard(self.ctx.errors, "Could not update the task.") as outcome:
            self.ctx.store.update(COLLECTION_TASKS, task_id, dict(partial))
        return outcome.ok

    def set_status(self, task_id: str, status: str) -> bool:
        if status not in STATUSES:
            self.ctx.errors.set(f"Unknown status: {status}")
            return False
        return self.update(task_id, {"status": status})

    def delete(self, task_id: str, on_deleted: Optional[Callable[[], None]] = None) -> None:
        def _run() -> None:
            if self._delete_now(task_id) and on_deleted is not None:
                on_deleted()

        self.ctx.confirmations.request("Do you really want to delete this task? This cannot be undone.", _run)

    def _delete_now(self, task_id: str) -> bool:
        with guard(self.ctx.errors, "Could not delete the task.") as outcome:
            delete_task_cascade(self.ctx.store, task_id)
        return outcome.ok
