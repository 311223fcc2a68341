from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from .context import AppContext
from .errors import ValidationError, guard
from .models import ChatMessage, utcnow
from .store import COLLECTION_CHAT_MESSAGES, EQUALS, Filter, StoredDocument, Subscription


logger = logging.getLogger(__name__)

_LATEST = datetime.max.replace(tzinfo=timezone.utc)


def sort_messages(messages: List[ChatMessage]) -> List[ChatMessage]:
    """Oldest first. Messages without a timestamp yet go last."""
    return sorted(messages, key=lambda m: m.created_at or _LATEST)


class ProjectChat:
    """Append-only message stream of one project.

    The store does not deliver messages in creation order, so every
    snapshot is re-sorted before it reaches the view.
    """

    def __init__(self, ctx: AppContext, project_id: str) -> None:
        self.ctx = ctx
        self.project_id = project_id

    def messages(self, on_change: Callable[[List[ChatMessage]], None]) -> Subscription:
        def _on_snapshot(docs: List[StoredDocument]) -> None:
            on_change(sort_messages([ChatMessage.from_doc(d.id, d.data) for d in docs]))

        def _on_error(exc: Exception) -> None:
            self.ctx.errors.set("Could not load chat messages.")

        return self.ctx.store.subscribe(
            COLLECTION_CHAT_MESSAGES,
            Filter("projectId", EQUALS, self.project_id),
            _on_snapshot,
            _on_error,
        )

    def send(self, text: str) -> Optional[str]:
        message_id: Optional[str] = None
        with guard(self.ctx.errors, "Could not send the message.") as outcome:
            if not (text or "").strip():
                raise ValidationError("Message cannot be empty.")
            message_id = self.ctx.store.insert(
                COLLECTION_CHAT_MESSAGES,
                {
                    "projectId": self.project_id,
                    "userId": self.ctx.user_id,
                    "message": text.strip(),
                    "createdAt": utcnow(),
                },
            )
            logger.debug("chat message %s sent to project %s", message_id, self.project_id)
        return message_id if outcome.ok else None

    def author_label(self, message: ChatMessage) -> str:
        if message.user_id and message.user_id == self.ctx.user_id:
            return "You"
        return f"User {message.user_id}"
