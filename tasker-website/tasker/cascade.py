"""Cascading deletes.

The store enforces no referential integrity, so the app removes dependent
records itself. Dependents are enumerated with one-shot reads, then every
delete is committed in one store batch: either the whole cascade lands or
none of it does.
"""

from __future__ import annotations

import logging
from typing import List

from .store import (
    COLLECTION_CHAT_MESSAGES,
    COLLECTION_COMMENTS,
    COLLECTION_PROJECTS,
    COLLECTION_TASKS,
    EQUALS,
    DocumentStore,
    Filter,
)


logger = logging.getLogger(__name__)


def _comment_ids(store: DocumentStore, task_id: str) -> List[str]:
    return [d.id for d in store.get_all(COLLECTION_COMMENTS, Filter("taskId", EQUALS, task_id))]


def delete_task_cascade(store: DocumentStore, task_id: str) -> None:
    comment_ids = _comment_ids(store, task_id)
    with store.batch() as wb:
        wb.delete(COLLECTION_TASKS, task_id)
        for cid in comment_ids:
            wb.delete(COLLECTION_COMMENTS, cid)
    logger.info("deleted task %s with %d comments", task_id, len(comment_ids))


def delete_project_cascade(store: DocumentStore, project_id: str) -> None:
    task_ids = [d.id for d in store.get_all(COLLECTION_TASKS, Filter("projectId", EQUALS, project_id))]
    comment_ids: List[str] = []
    for tid in task_ids:
        comment_ids.extend(_comment_ids(store, tid))
    message_ids = [
        d.id for d in store.get_all(COLLECTION_CHAT_MESSAGES, Filter("projectId", EQUALS, project_id))
    ]

    with store.batch() as wb:
        wb.delete(COLLECTION_PROJECTS, project_id)
        for tid in task_ids:
            wb.delete(COLLECTION_TASKS, tid)
        for cid in comment_ids:
            wb.delete(COLLECTION_COMMENTS, cid)
        for mid in message_ids:
            wb.delete(COLLECTION_CHAT_MESSAGES, mid)

    logger.info(
        "deleted project %s with %d tasks, %d comments, %d chat messages",
        project_id,
        len(task_ids),
        len(comment_ids),
        len(message_ids),
    )
