"""Domain records as the app shapes them.

Field names in ``to_doc()`` are the stored document keys (camelCase),
matching what other clients of the same collections read.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional


PRIORITIES = ("low", "medium", "high")
DEFAULT_PRIORITY = "medium"
PRIORITY_LABELS = {"low": "Low", "medium": "Medium", "high": "High"}

STATUSES = ("todo", "in_progress", "review", "done")
DEFAULT_STATUS = "todo"
STATUS_LABELS = {"todo": "To Do", "in_progress": "In Progress", "review": "Review", "done": "Done"}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return None
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def parse_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


@dataclass
class Project:
    id: str
    name: str
    owner_id: str
    members: List[str] = field(default_factory=list)
    description: str = ""
    created_at: Optional[datetime] = None

    @classmethod
    def from_doc(cls, doc_id: str, data: Dict[str, Any]) -> "Project":
        return cls(
            id=doc_id,
            name=str(data.get("name") or ""),
            owner_id=str(data.get("ownerId") or ""),
            members=list(data.get("members") or []),
            description=str(data.get("description") or ""),
            created_at=parse_datetime(data.get("createdAt")),
        )

    def to_doc(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "ownerId": self.owner_id,
            "members": list(self.members),
            "createdAt": self.created_at,
        }

    def is_owner(self, user_id: Optional[str]) -> bool:
        return bool(user_id) and self.owner_id == user_id

    def is_member(self, user_id: Optional[str]) -> bool:
        return bool(user_id) and user_id in self.members


@dataclass
class Subtask:
    """Embedded item of ``Task.subtasks``; checklist items share the shape."""

    id: str
    text: str
    completed: bool = False

    @classmethod
    def new(cls, text: str) -> "Subtask":
        return cls(id=uuid.uuid4().hex, text=text, completed=False)

    @classmethod
    def from_doc(cls, data: Dict[str, Any]) -> "Subtask":
        return cls(
            id=str(data.get("id") or uuid.uuid4().hex),
            text=str(data.get("text") or ""),
            completed=bool(data.get("completed")),
        )

    def to_doc(self) -> Dict[str, Any]:
        return {"id": self.id, "text": self.text, "completed": self.completed}


ChecklistItem = Subtask


@dataclass
class Task:
    id: str
    project_id: Optional[str]
    title: str
    description: str = ""
    assigned_to: Optional[str] = None
    priority: str = DEFAULT_PRIORITY
    status: str = DEFAULT_STATUS
    due_date: Optional[date] = None
    labels: List[str] = field(default_factory=list)
    subtasks: List[Subtask] = field(default_factory=list)
    checklists: List[ChecklistItem] = field(default_factory=list)
    created_at: Optional[datetime] = None

    @classmethod
    def from_doc(cls, doc_id: str, data: Dict[str, Any]) -> "Task":
        return cls(
            id=doc_id,
            project_id=data.get("projectId"),
            title=str(data.get("title") or ""),
            description=str(data.get("description") or ""),
            assigned_to=data.get("assignedTo") or None,
            priority=data.get("priority") or DEFAULT_PRIORITY,
            status=data.get("status") or DEFAULT_STATUS,
            due_date=parse_date(data.get("dueDate")),
            labels=[str(x) for x in (data.get("labels") or [])],
            subtasks=[Subtask.from_doc(x) for x in (data.get("subtasks") or [])],
            checklists=[ChecklistItem.from_doc(x) for x in (data.get("checklists") or [])],
            created_at=parse_datetime(data.get("createdAt")),
        )

    def to_doc(self) -> Dict[str, Any]:
        return {
            "projectId": self.project_id,
            "title": self.title,
            "description": self.description,
            "assignedTo": self.assigned_to,
            "priority": self.priority,
            "status": self.status,
            "dueDate": self.due_date,
            "labels": list(self.labels),
            "subtasks": [s.to_doc() for s in self.subtasks],
            "checklists": [c.to_doc() for c in self.checklists],
            "createdAt": self.created_at,
        }

    @property
    def priority_label(self) -> str:
        return PRIORITY_LABELS.get(self.priority, self.priority)

    @property
    def status_label(self) -> str:
        return STATUS_LABELS.get(self.status, self.status)

    def is_overdue(self, today: Optional[date] = None) -> bool:
        if self.due_date is None or self.status == "done":
            return False
        return self.due_date < (today or date.today())


@dataclass
class Comment:
    id: str
    task_id: str
    user_id: str
    text: str
    created_at: Optional[datetime] = None

    @classmethod
    def from_doc(cls, doc_id: str, data: Dict[str, Any]) -> "Comment":
        return cls(
            id=doc_id,
            task_id=str(data.get("taskId") or ""),
            user_id=str(data.get("userId") or ""),
            text=str(data.get("text") or ""),
            created_at=parse_datetime(data.get("createdAt")),
        )


@dataclass
class ChatMessage:
    id: str
    project_id: str
    user_id: str
    message: str
    created_at: Optional[datetime] = None

    @classmethod
    def from_doc(cls, doc_id: str, data: Dict[str, Any]) -> "ChatMessage":
        return cls(
            id=doc_id,
            project_id=str(data.get("projectId") or ""),
            user_id=str(data.get("userId") or ""),
            message=str(data.get("message") or ""),
            created_at=parse_datetime(data.get("createdAt")),
        )
