"""One task: embedded subtasks/checklist plus its comment stream.

Subtasks and checklist items live inside the task document. Every change
rewrites the whole sequence from this view's copy, so two people editing
the same task concurrently race and the later write wins.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from .context import AppContext
from .errors import ValidationError, guard
from .models import Comment, Subtask, Task, utcnow
from .store import COLLECTION_COMMENTS, EQUALS, Filter, StoredDocument, Subscription
from .task_form import TaskEditor
from .tasks import TaskBoard


logger = logging.getLogger(__name__)

SUBTASKS = "subtasks"
CHECKLISTS = "checklists"


def progress(items: List[Subtask]) -> Tuple[int, int]:
    """(completed, total)"""
    return sum(1 for i in items if i.completed), len(items)


def _sort_comments(comments: List[Comment]) -> List[Comment]:
    return sorted(comments, key=lambda c: (c.created_at is None, c.created_at.timestamp() if c.created_at else 0.0))


class TaskDetail:
    def __init__(self, ctx: AppContext, board: TaskBoard, task: Task) -> None:
        self.ctx = ctx
        self.board = board
        self.task = task
        self.editing = False

    # ---------------- embedded sequences ----------------

    def _items(self, kind: str) -> List[Subtask]:
        return self.task.subtasks if kind == SUBTASKS else self.task.checklists

    def _persist(self, kind: str, items: List[Subtask]) -> bool:
        if not self.board.update(self.task.id, {kind: [i.to_doc() for i in items]}):
            return False
        if kind == SUBTASKS:
            self.task.subtasks = items
        else:
            self.task.checklists = items
        return True

    def _add(self, kind: str, text: str) -> bool:
        text = (text or "").strip()
        if not text:
            return False
        return self._persist(kind, self._items(kind) + [Subtask.new(text)])

    def _toggle(self, kind: str, item_id: str) -> bool:
        items = [
            Subtask(id=i.id, text=i.text, completed=not i.completed) if i.id == item_id else i
            for i in self._items(kind)
        ]
        return self._persist(kind, items)

    def _delete_now(self, kind: str, item_id: str) -> bool:
        return self._persist(kind, [i for i in self._items(kind) if i.id != item_id])

    def add_subtask(self, text: str) -> bool:
        return self._add(SUBTASKS, text)

    def toggle_subtask(self, item_id: str) -> bool:
        return self._toggle(SUBTASKS, item_id)

    def delete_subtask(self, item_id: str) -> None:
        self.ctx.confirmations.request(
            "Do you really want to delete this subtask?",
            lambda: self._delete_now(SUBTASKS, item_id),
        )

    def add_checklist_item(self, text: str) -> bool:
        return self._add(CHECKLISTS, text)

    def toggle_checklist_item(self, item_id: str) -> bool:
        return self._toggle(CHECKLISTS, item_id)

    def delete_checklist_item(self, item_id: str) -> None:
        self.ctx.confirmations.request(
            "Do you really want to delete this checklist item?",
            lambda: self._delete_now(CHECKLISTS, item_id),
        )

    # ---------------- comments ----------------

    def comments(self, on_change: Callable[[List[Comment]], None]) -> Subscription:
        def _on_snapshot(docs: List[StoredDocument]) -> None:
            on_change(_sort_comments([Comment.from_doc(d.id, d.data) for d in docs]))

        def _on_error(exc: Exception) -> None:
            self.ctx.errors.set("Could not load comments.")

        return self.ctx.store.subscribe(
            COLLECTION_COMMENTS,
            Filter("taskId", EQUALS, self.task.id),
            _on_snapshot,
            _on_error,
        )

    def add_comment(self, text: str) -> Optional[str]:
        comment_id: Optional[str] = None
        with guard(self.ctx.errors, "Could not add the comment.") as outcome:
            if not (text or "").strip():
                raise ValidationError("Comment cannot be empty.")
            comment_id = self.ctx.store.insert(
                COLLECTION_COMMENTS,
                {
                    "taskId": self.task.id,
                    "userId": self.ctx.user_id,
                    "text": text.strip(),
                    "createdAt": utcnow(),
                },
            )
        return comment_id if outcome.ok else None

    def can_delete_comment(self, comment: Comment) -> bool:
        return bool(self.ctx.user_id) and comment.user_id == self.ctx.user_id

    def delete_comment(self, comment: Comment) -> None:
        self.ctx.confirmations.request(
            "Do you really want to delete this comment?",
            lambda: self._delete_comment_now(comment),
        )

    def _delete_comment_now(self, comment: Comment) -> bool:
        with guard(self.ctx.errors, "Could not delete the comment.") as outcome:
            if not self.can_delete_comment(comment):
                raise ValidationError("You can only delete your own comments.")
            self.ctx.store.delete(COLLECTION_COMMENTS, comment.id)
        return outcome.ok

    # ---------------- full edit ----------------

    def editor(self) -> TaskEditor:
        return TaskEditor(self.ctx.user_id, self.task)

    def start_edit(self) -> None:
        self.editing = True

    def cancel_edit(self) -> None:
        self.editing = False

    def edit(self, values: Mapping[str, Any]) -> bool:
        try:
            fields: Dict[str, Any] = self.editor().submit(values)
        except ValidationError as exc:
            self.ctx.errors.set(str(exc))
            return False
        if not self.board.update(self.task.id, fields):
            return False
        self.task = Task.from_doc(self.task.id, {**self.task.to_doc(), **fields})
        self.editing = False
        return True
