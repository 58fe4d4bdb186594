import pytest

from chat_core.domain.conversation import ConversationStore
from chat_core.domain.exceptions import InvalidStateError


def test_store_starts_with_system_message():
    store = ConversationStore("sys")
    snap = store.snapshot()
    assert len(snap) == 1
    assert snap[0].role == "system"
    assert snap[0].content == "sys"
    assert len(store) == 0
    assert store.turn_count() == 0


def test_turns_alternate_user_assistant():
    store = ConversationStore("sys")
    for i in range(3):
        store.append_user(f"q{i}")
        store.append_assistant(f"a{i}")
    snap = store.snapshot()
    assert store.turn_count() == 3
    assert [m.role for m in snap[1:]] == ["user", "assistant"] * 3
    assert snap[0].role == "system"


def test_snapshot_is_not_aliased():
    store = ConversationStore("sys")
    store.append_user("hi")
    snap = store.snapshot()
    store.append_assistant("hello")
    assert len(snap) == 2
    assert len(store.snapshot()) == 3


def test_reset_restores_single_system_message():
    store = ConversationStore("sys")
    for i in range(5):
        store.append_user("q")
        store.append_assistant("a")
    store.reset()
    snap = store.snapshot()
    assert len(snap) == 1
    assert snap[0].role == "system"
    assert snap[0].content == "sys"
    assert store.turn_count() == 0


def test_assistant_requires_preceding_user():
    store = ConversationStore("sys")
    with pytest.raises(InvalidStateError):
        store.append_assistant("orphan")
    store.append_user("q")
    store.append_assistant("a")
    with pytest.raises(InvalidStateError):
        store.append_assistant("again")


def test_empty_assistant_reply_is_legal():
    store = ConversationStore("sys")
    store.append_user("q")
    store.append_assistant("")
    assert store.turn_count() == 1
    assert store.history()[-1].content == ""


def test_consecutive_user_messages_after_failed_turn():
    store = ConversationStore("sys")
    store.append_user("first")
    store.append_user("second")
    store.append_assistant("reply")
    assert [m.role for m in store.history()] == ["user", "user", "assistant"]
    assert store.turn_count() == 1


def test_history_excludes_system():
    store = ConversationStore("sys")
    store.append_user("q")
    hist = store.history()
    assert [m.content for m in hist] == ["q"]
