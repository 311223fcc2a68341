import pytest

from conftest import make_context
from tasker.live import SubscriptionScope
from tasker.models import Task
from tasker.projects import ProjectDirectory, ProjectWorkspace
from tasker.store import COLLECTION_TASKS
from tasker.task_detail import TaskDetail
from tasker.tasks import TaskBoard
from tasker.ui import chat_view, projects_view, tasks_view


@pytest.mark.parametrize(
    "view",
    [
        projects_view._project_list_fragment,
        projects_view._workspace_header_fragment,
        projects_view._members_fragment,
        tasks_view._board_fragment,
        tasks_view._my_tasks_fragment,
        tasks_view._detail_fragment,
        chat_view._messages_fragment,
    ],
)
def test_live_views_are_fragments(view):
    # st.fragment wraps the view; the wrapper reruns it on the refresh timer.
    assert hasattr(view, "__wrapped__")


def test_open_detail_sees_other_members_changes(store, owner, project):
    member = make_context(store, "member")
    ProjectWorkspace(owner, project).add_member("member")
    board = TaskBoard.for_project(owner, project.id)
    task_id = board.create({"title": "Release"})
    doc = store.get(COLLECTION_TASKS, task_id)
    detail = TaskDetail(owner, board, Task.from_doc(doc.id, doc.data))

    scope = SubscriptionScope()
    scope.begin_run()
    tasks = scope.acquire("tasks", board.list)
    comments = scope.acquire(f"comments:{task_id}", detail.comments)
    scope.end_run()

    member_board = TaskBoard.for_project(member, project.id)
    member_detail = TaskDetail(member, member_board, Task.from_doc(doc.id, doc.data))
    member_detail.add_comment("from a teammate")
    member_detail.add_subtask("teammate subtask")

    assert [c.text for c in comments.items] == ["from a teammate"]
    assert [s.text for s in tasks.items[0].subtasks] == ["teammate subtask"]
    scope.close()


def test_workspace_notices_removal(store, owner, project):
    member = make_context(store, "member")
    owner_ws = ProjectWorkspace(owner, project)
    owner_ws.add_member("member")

    scope = SubscriptionScope()
    scope.begin_run()
    projects = scope.acquire("projects:member", ProjectDirectory(member).list)
    member_ws = ProjectWorkspace(member, projects.items[0])

    owner_ws.remove_member("member")
    owner.confirmations.confirm()

    assert member_ws.refresh(projects.items) is None
    scope.close()
