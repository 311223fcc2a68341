from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Mapping, Optional

from .errors import ValidationError
from .models import DEFAULT_PRIORITY, DEFAULT_STATUS, PRIORITIES, STATUSES, Task, parse_date


def parse_labels(text: Any) -> List[str]:
    """Split comma-separated labels, trimming and dropping empty entries."""
    if not text:
        return []
    if isinstance(text, (list, tuple)):
        text = ",".join(str(x) for x in text)
    return [part.strip() for part in str(text).split(",") if part.strip()]


class TaskEditor:
    """Turns raw form values into the field set stored on a task.

    Has no side effects: the caller decides whether the result creates a
    task or updates one.
    """

    def __init__(self, user_id: Optional[str], initial: Optional[Task] = None) -> None:
        self.user_id = user_id
        self.initial = initial

    def initial_values(self) -> Dict[str, Any]:
        t = self.initial
        if t is None:
            return {
                "title": "",
                "description": "",
                "assigned_to": self.user_id or "",
                "priority": DEFAULT_PRIORITY,
                "status": DEFAULT_STATUS,
                "due_date": None,
                "labels": "",
            }
        return {
            "title": t.title,
            "description": t.description,
            "assigned_to": t.assigned_to or self.user_id or "",
            "priority": t.priority if t.priority in PRIORITIES else DEFAULT_PRIORITY,
            "status": t.status if t.status in STATUSES else DEFAULT_STATUS,
            "due_date": t.due_date,
            "labels": ", ".join(t.labels),
        }

    def submit(self, values: Mapping[str, Any]) -> Dict[str, Any]:
        title = str(values.get("title") or "").strip()
        if not title:
            raise ValidationError("Task title is required.")

        priority = values.get("priority") or DEFAULT_PRIORITY
        if priority not in PRIORITIES:
            raise ValidationError(f"Unknown priority: {priority}")
        status = values.get("status") or DEFAULT_STATUS
        if status not in STATUSES:
            raise ValidationError(f"Unknown status: {status}")

        raw_due = values.get("due_date")
        due: Optional[date] = parse_date(raw_due)
        if raw_due not in (None, "") and due is None:
            raise ValidationError("Due date must be a valid date (YYYY-MM-DD).")

        assigned_to = str(values.get("assigned_to") or "").strip() or self.user_id

        return {
            "title": title,
            "description": str(values.get("description") or "").strip(),
            "assignedTo": assigned_to,
            "priority": priority,
            "status": status,
            "dueDate": due,
            "labels": parse_labels(values.get("labels")),
        }
