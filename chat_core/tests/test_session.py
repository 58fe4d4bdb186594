"""测试单轮对话状态机。"""

import threading

import pytest

from chat_core.agents.session import Session
from chat_core.domain.conversation import ConversationStore
from chat_core.domain.exceptions import InvalidStateError, ServerError, TransportError, ValidationError
from chat_core.domain.models import TurnState


class FakeTransport:
    """模拟的传输层，按顺序返回预设回复或抛出预设异常。"""

    name = "fake"
    base_url = "http://fake"

    def __init__(self, outcomes=None):
        self._outcomes = list(outcomes or [])
        self._model = "llama3.2"
        self.requests = []

    @property
    def model(self):
        return self._model

    def set_model(self, name):
        self._model = name

    def check_connection(self):
        return False

    def list_models(self):
        return ["llama3.2", "qwen2"]

    def send_message(self, messages, model=None, stream=True):
        self.requests.append({"messages": messages, "model": model, "stream": stream})
        outcome = self._outcomes.pop(0) if self._outcomes else "ok"
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def test_n_successful_turns():
    transport = FakeTransport(["a1", "a2", "a3"])
    session = Session(transport, system_prompt="sys")
    for i in range(3):
        assert session.send(f"q{i}") == f"a{i + 1}"
    assert session.turn_count() == 3
    assert [m.role for m in session.history()] == ["user", "assistant"] * 3
    assert session.state is TurnState.IDLE


def test_request_carries_snapshot_model_and_stream_flag():
    transport = FakeTransport(["r"])
    session = Session(transport, system_prompt="sys", streaming=False)
    session.set_model("qwen2")
    session.send("hello")
    req = transport.requests[0]
    assert req["model"] == "qwen2"
    assert req["stream"] is False
    assert [(m.role, m.content) for m in req["messages"]] == [("system", "sys"), ("user", "hello")]
    # 快照不受后续提交的影响
    assert len(req["messages"]) == 2


def test_server_error_keeps_user_message():
    error = ServerError("HTTP 404", status_code=404, body="not found")
    transport = FakeTransport([error, "finally"])
    session = Session(transport, system_prompt="sys")

    with pytest.raises(ServerError):
        session.send("first")
    assert session.state is TurnState.FAILED
    assert session.last_error is error
    assert [(m.role, m.content) for m in session.history()] == [("user", "first")]

    assert session.send("second") == "finally"
    roles = [m.role for m in session.history()]
    assert roles == ["user", "user", "assistant"]
    assert session.turn_count() == 1
    assert session.state is TurnState.IDLE


def test_transport_error_propagates():
    transport = FakeTransport([TransportError("refused")])
    session = Session(transport, system_prompt="sys")
    with pytest.raises(TransportError):
        session.send("hi")
    assert session.turn_count() == 0


def test_empty_input_rejected():
    transport = FakeTransport()
    session = Session(transport, system_prompt="sys")
    with pytest.raises(InvalidStateError):
        session.send("   ")
    assert transport.requests == []
    assert session.history() == []


def test_second_turn_while_awaiting_is_rejected():
    entered = threading.Event()
    release = threading.Event()
    errors = []

    class SlowTransport(FakeTransport):
        def send_message(self, messages, model=None, stream=True):
            entered.set()
            release.wait(timeout=5)
            return "slow"

    session = Session(SlowTransport(), system_prompt="sys")
    worker = threading.Thread(target=lambda: session.send("first"))
    worker.start()
    assert entered.wait(timeout=5)
    assert session.state is TurnState.AWAITING_RESPONSE
    try:
        session.send("second")
    except InvalidStateError as e:
        errors.append(e)
    with pytest.raises(InvalidStateError):
        session.clear()
    release.set()
    worker.join(timeout=5)

    assert len(errors) == 1
    assert [m.content for m in session.history()] == ["first", "slow"]


def test_clear_resets_to_system_prompt():
    transport = FakeTransport(["a", "b"])
    session = Session(transport, system_prompt="sys")
    session.send("q1")
    session.send("q2")
    session.clear()
    assert session.history() == []
    assert session.turn_count() == 0
    session.send("q3")
    assert transport.requests[-1]["messages"][0].content == "sys"


def test_model_and_streaming_accessors():
    session = Session(FakeTransport(), system_prompt="sys")
    assert session.current_model() == "llama3.2"
    session.set_model(" codellama ")
    assert session.current_model() == "codellama"
    with pytest.raises(ValidationError):
        session.set_model("")
    assert session.is_streaming() is True
    session.set_streaming(False)
    assert session.is_streaming() is False
    assert session.list_models() == ["llama3.2", "qwen2"]
    assert session.check_connection() is False


def test_injected_store_receives_turns():
    store = ConversationStore("custom")
    transport = FakeTransport(["reply"])
    session = Session(transport, system_prompt="other", store=store)
    session.send("hi")
    assert [(m.role, m.content) for m in store.snapshot()] == [
        ("system", "custom"),
        ("user", "hi"),
        ("assistant", "reply"),
    ]
    assert transport.requests[0]["messages"][0].content == "custom"
