from datetime import datetime, timedelta, timezone

from conftest import make_context
from tasker.chat import ProjectChat, sort_messages
from tasker.models import ChatMessage
from tasker.store import COLLECTION_CHAT_MESSAGES


T = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


def _msg(msg_id, minutes):
    created = T + timedelta(minutes=minutes) if minutes is not None else None
    return ChatMessage(id=msg_id, project_id="p", user_id="u", message=msg_id, created_at=created)


def test_sort_messages_ascending():
    ordered = sort_messages([_msg("five", 5), _msg("one", 1), _msg("three", 3)])
    assert [m.id for m in ordered] == ["one", "three", "five"]


def test_messages_without_timestamp_go_last():
    ordered = sort_messages([_msg("pending", None), _msg("one", 1)])
    assert [m.id for m in ordered] == ["one", "pending"]


def test_send_rejects_empty(owner, project):
    chat = ProjectChat(owner, project.id)
    assert chat.send(" \n ") is None
    assert owner.errors.message == "Message cannot be empty."
    assert owner.store.get_all(COLLECTION_CHAT_MESSAGES) == []


def test_send_and_live_snapshot(store, owner, project):
    member = make_context(store, "member")
    seen = []
    ProjectChat(member, project.id).messages(seen.append)
    assert seen == [[]]

    message_id = ProjectChat(owner, project.id).send("  hello  ")
    assert message_id
    latest = seen[-1]
    assert [m.message for m in latest] == ["hello"]
    assert latest[0].user_id == "owner"
    assert latest[0].project_id == project.id
    assert latest[0].created_at is not None


def test_snapshot_is_scoped_to_project(store, owner, project):
    seen = []
    ProjectChat(owner, project.id).messages(seen.append)
    ProjectChat(owner, "another-project").send("elsewhere")
    assert seen[-1] == []


def test_author_label(store, owner, project):
    chat = ProjectChat(owner, project.id)
    assert chat.author_label(ChatMessage(id="1", project_id=project.id, user_id="owner", message="x")) == "You"
    assert chat.author_label(ChatMessage(id="2", project_id=project.id, user_id="bob", message="x")) == "User bob"
