import threading
from datetime import datetime, timezone

import pytest

from tasker.errors import NotFoundError, StoreError
from tasker.store import ARRAY_CONTAINS, EQUALS, DocumentStore, Filter
from tasker.store.filters import matches
from tasker.store.models import DocumentRow
from tasker.tasks import TaskBoard


def test_filter_equals_and_array_contains():
    assert Filter("projectId", EQUALS, "p1").matches({"projectId": "p1"})
    assert not Filter("projectId", EQUALS, "p1").matches({"projectId": "p2"})
    assert Filter("members", ARRAY_CONTAINS, "u1").matches({"members": ["u0", "u1"]})
    assert not Filter("members", ARRAY_CONTAINS, "u1").matches({"members": "u1"})
    assert matches(None, {"anything": 1})


def test_filter_rejects_unknown_operator():
    with pytest.raises(ValueError):
        Filter("a", ">", 1)


def test_insert_and_get(store):
    doc_id = store.insert("tasks", {"title": "Write docs", "createdAt": datetime(2024, 1, 2, tzinfo=timezone.utc)})
    doc = store.get("tasks", doc_id)
    assert doc.id == doc_id
    assert doc.data["title"] == "Write docs"
    assert doc.data["createdAt"] == "2024-01-02T00:00:00+00:00"
    assert store.get("tasks", "missing") is None


def test_namespaces_are_isolated(tmp_path):
    url = f"sqlite:///{(tmp_path / 'shared.db').as_posix()}"
    mine = DocumentStore(url, "mine")
    other = DocumentStore(url, "other")
    mine.init_db()
    try:
        mine.insert("projects", {"name": "mine"})
        assert len(mine.get_all("projects")) == 1
        assert other.get_all("projects") == []
    finally:
        mine.dispose()
        other.dispose()


def test_update_merges_top_level_fields(store):
    doc_id = store.insert("tasks", {"title": "A", "status": "todo"})
    store.update("tasks", doc_id, {"status": "done"})
    assert store.get("tasks", doc_id).data == {"title": "A", "status": "done"}


def test_update_missing_document_raises(store):
    with pytest.raises(NotFoundError):
        store.update("tasks", "nope", {"status": "done"})


def test_set_union_is_idempotent_and_set_remove(store):
    doc_id = store.insert("projects", {"members": ["owner"]})
    store.set_union("projects", doc_id, "members", "u2")
    store.set_union("projects", doc_id, "members", "u2")
    store.set_union("projects", doc_id, "members", "u3")
    assert store.get("projects", doc_id).data["members"] == ["owner", "u2", "u3"]

    store.set_remove("projects", doc_id, "members", "u2")
    store.set_remove("projects", doc_id, "members", "u2")
    assert store.get("projects", doc_id).data["members"] == ["owner", "u3"]


def test_delete_missing_is_noop(store):
    doc_id = store.insert("comments", {"text": "x"})
    store.delete("comments", doc_id)
    store.delete("comments", doc_id)
    assert store.get("comments", doc_id) is None


def test_subscribe_delivers_now_and_after_each_change(store):
    snapshots = []
    sub = store.subscribe("tasks", Filter("projectId", EQUALS, "p1"), lambda docs: snapshots.append(docs))
    assert snapshots == [[]]

    t1 = store.insert("tasks", {"projectId": "p1", "title": "one"})
    store.insert("tasks", {"projectId": "p2", "title": "other project"})
    assert [d.id for d in snapshots[1]] == [t1]
    # The p2 insert still pushes, but the matching set is unchanged.
    assert [d.id for d in snapshots[2]] == [t1]

    store.delete("tasks", t1)
    assert snapshots[-1] == []

    sub.unsubscribe()
    sub.unsubscribe()
    count = len(snapshots)
    store.insert("tasks", {"projectId": "p1", "title": "late"})
    assert len(snapshots) == count
    assert store.hub.count("tasks") == 0


def test_snapshot_callback_failure_does_not_reach_writer(store):
    def _broken(docs):
        if docs:
            raise RuntimeError("view crashed")

    store.subscribe("tasks", None, _broken)
    doc_id = store.insert("tasks", {"title": "still written"})
    assert store.get("tasks", doc_id) is not None


def test_batch_commits_all_operations(store):
    t1 = store.insert("tasks", {"title": "t1"})
    c1 = store.insert("comments", {"taskId": t1})
    pushes = []
    store.subscribe("comments", None, lambda docs: pushes.append(len(docs)))

    with store.batch() as wb:
        wb.delete("tasks", t1)
        wb.delete("comments", c1)
        assert len(wb) == 2

    assert store.get("tasks", t1) is None
    assert store.get("comments", c1) is None
    assert pushes == [1, 0]


def test_batch_is_atomic(store):
    t1 = store.insert("tasks", {"title": "t1"})
    with pytest.raises(NotFoundError):
        with store.batch() as wb:
            wb.delete("tasks", t1)
            wb.update("tasks", "missing", {"title": "x"})
    assert store.get("tasks", t1) is not None


def test_corrupt_document_raises_store_error(store):
    doc_id = store.insert("tasks", {"title": "ok"})
    with store._sessionmaker() as s:
        row = s.get(DocumentRow, ("test", "tasks", doc_id))
        row.data_json = "{not json"
        s.commit()

    with pytest.raises(StoreError):
        store.get("tasks", doc_id)
    with pytest.raises(StoreError):
        store.update("tasks", doc_id, {"title": "x"})


def test_corrupt_document_is_reported_to_the_user(store, owner, project):
    board = TaskBoard.for_project(owner, project.id)
    task_id = board.create({"title": "ok"})
    with store._sessionmaker() as s:
        s.get(DocumentRow, ("test", "tasks", task_id)).data_json = "{not json"
        s.commit()

    assert not board.set_status(task_id, "done")
    assert owner.errors.message == "Could not update the task."


def test_unsubscribe_from_many_threads(store):
    sub = store.subscribe("tasks", None, lambda docs: None)
    threads = [threading.Thread(target=sub.unsubscribe) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert not sub.active
    assert store.hub.count() == 0
