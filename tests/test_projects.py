import pytest

from conftest import FailingStore, make_context
from tasker.chat import ProjectChat
from tasker.models import Project, Task
from tasker.projects import ProjectDirectory, ProjectWorkspace
from tasker.store import (
    COLLECTION_CHAT_MESSAGES,
    COLLECTION_COMMENTS,
    COLLECTION_PROJECTS,
    COLLECTION_TASKS,
)
from tasker.task_detail import TaskDetail
from tasker.tasks import TaskBoard


def _reload(store, project_id):
    doc = store.get(COLLECTION_PROJECTS, project_id)
    return Project.from_doc(doc.id, doc.data) if doc else None


def _task(store, task_id):
    doc = store.get(COLLECTION_TASKS, task_id)
    return Task.from_doc(doc.id, doc.data)


def test_create_makes_owner_a_member(owner, project):
    assert project.owner_id == "owner"
    assert project.members == ["owner"]
    assert project.name == "Launch"
    assert project.description == "Ship it"
    assert project.created_at is not None


def test_create_rejects_empty_name(owner):
    directory = ProjectDirectory(owner)
    assert directory.create("   ") is None
    assert owner.errors.message == "Project name cannot be empty."
    assert owner.store.get_all(COLLECTION_PROJECTS) == []


def test_create_surfaces_store_failure(store):
    ctx = make_context(store, "owner")
    failing = FailingStore(store)
    failing.fail_on.add("insert")
    ctx.store = failing
    assert ProjectDirectory(ctx).create("Launch") is None
    assert ctx.errors.message == "Could not create the project."


def test_list_only_shows_member_projects(store, owner, project):
    stranger = make_context(store, "stranger")
    ProjectDirectory(stranger).create("Secret")

    seen = []
    ProjectDirectory(owner).list(seen.append)
    assert [p.id for p in seen[-1]] == [project.id]

    ProjectWorkspace(owner, project).add_member("stranger")
    assert sorted(p.name for p in seen[-1]) == ["Launch"]

    stranger_seen = []
    ProjectDirectory(stranger).list(stranger_seen.append)
    assert sorted(p.name for p in stranger_seen[-1]) == ["Launch", "Secret"]


def test_only_owner_can_delete(store, owner, project):
    member = make_context(store, "member")
    assert ProjectDirectory(owner).can_delete(project)
    assert not ProjectDirectory(member).can_delete(project)


def test_add_member_rejects_empty_and_duplicates(owner, project):
    ws = ProjectWorkspace(owner, project)
    assert not ws.add_member("  ")
    assert owner.errors.message == "The new member's user id cannot be empty."

    assert ws.add_member("u2")
    assert owner.errors.message is None
    assert not ws.add_member("u2")
    assert owner.errors.message == "This user is already a member of the project."

    assert _reload(owner.store, project.id).members == ["owner", "u2"]
    assert ws.members == ["owner", "u2"]


def test_remove_member_is_confirmed(owner, project):
    ws = ProjectWorkspace(owner, project)
    ws.add_member("u2")
    ws.add_member("u3")

    ws.remove_member("u2")
    assert owner.confirmations.pending
    assert _reload(owner.store, project.id).members == ["owner", "u2", "u3"]

    owner.confirmations.confirm()
    assert _reload(owner.store, project.id).members == ["owner", "u3"]
    assert ws.members == ["owner", "u3"]


def test_owner_cannot_be_removed(owner, project):
    ws = ProjectWorkspace(owner, project)
    ws.remove_member("owner")
    owner.confirmations.confirm()
    assert owner.errors.message == "The project owner cannot be removed."
    assert _reload(owner.store, project.id).members == ["owner"]


def test_can_remove(store, owner, project):
    ws = ProjectWorkspace(owner, project)
    ws.add_member("u2")
    assert ws.can_remove("u2")
    assert not ws.can_remove("owner")

    member = make_context(store, "u2")
    assert not ProjectWorkspace(member, _reload(store, project.id)).can_remove("owner")


def test_tabs(owner, project):
    ws = ProjectWorkspace(owner, project)
    assert ws.active_tab == "tasks"
    ws.select_tab("chat")
    assert ws.active_tab == "chat"
    with pytest.raises(ValueError):
        ws.select_tab("settings")


def test_refresh_tracks_directory_snapshot(owner, project):
    ws = ProjectWorkspace(owner, project)
    renamed = Project(id=project.id, name="Launch v2", owner_id="owner", members=["owner"])
    assert ws.refresh([renamed]).name == "Launch v2"
    assert ws.refresh([]) is None
    assert ws.members == []
    assert not ws.add_member("u9")


def test_delete_cascades_to_tasks_comments_and_chat(store, owner, project):
    other_id = ProjectDirectory(owner).create("Other")
    board = TaskBoard.for_project(owner, project.id)
    t1 = board.create({"title": "t1"})
    t2 = board.create({"title": "t2"})
    other_task = TaskBoard.for_project(owner, other_id).create({"title": "keep"})

    task = _task(store, t1)
    TaskDetail(owner, board, task).add_comment("looks good")
    ProjectChat(owner, project.id).send("hello team")
    ProjectChat(owner, other_id).send("still here")

    directory = ProjectDirectory(owner)
    directory.delete(project.id)
    assert store.get(COLLECTION_PROJECTS, project.id) is not None

    owner.confirmations.confirm()
    assert store.get(COLLECTION_PROJECTS, project.id) is None
    assert store.get(COLLECTION_TASKS, t1) is None
    assert store.get(COLLECTION_TASKS, t2) is None
    assert store.get_all(COLLECTION_COMMENTS) == []
    assert [d.data["message"] for d in store.get_all(COLLECTION_CHAT_MESSAGES)] == ["still here"]
    assert store.get(COLLECTION_TASKS, other_task) is not None
    assert store.get(COLLECTION_PROJECTS, other_id) is not None


def test_failed_cascade_leaves_everything(store, owner, project):
    TaskBoard.for_project(owner, project.id).create({"title": "t1"})
    failing = FailingStore(store)
    failing.fail_on.add("batch")
    owner.store = failing

    ProjectDirectory(owner).delete(project.id)
    owner.confirmations.confirm()
    assert owner.errors.message == "Could not delete the project."
    assert store.get(COLLECTION_PROJECTS, project.id) is not None
    assert len(store.get_all(COLLECTION_TASKS)) == 1
