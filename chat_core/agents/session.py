"""会话编排核心模块。

Session 把 ConversationStore 与 ChatTransport 组合成一轮轮的对话：

    Idle -> AwaitingResponse -> Committed   (成功，回到 Idle)
    Idle -> AwaitingResponse -> Failed      (TransportError / ServerError / DecodeError)

失败时 user 消息保留在存储里、不回滚，也不追加 assistant 消息；
下一轮会在其后再追加一条 user 消息，这是“相邻消息角色不重复”约束的唯一例外。

同一时刻最多只有一轮在进行中，第二个并发的 send 直接以 InvalidStateError 失败，
不会排队等待；因此传输层内部无需加锁。
"""

import logging
import threading
import time
from typing import Any, Dict, List, Optional
from uuid import uuid4

from chat_core.domain.conversation import ConversationStore
from chat_core.domain.exceptions import BusinessError, InvalidStateError, ValidationError
from chat_core.domain.models import ChatMessage, TurnState
from chat_core.infrastructure.logging.logger import logger
from chat_core.providers.base import ChatTransport


class Session:
    def __init__(
        self,
        transport: ChatTransport,
        system_prompt: str,
        streaming: bool = True,
        store: Optional[ConversationStore] = None,
    ):
        self._transport = transport
        self._store = store if store is not None else ConversationStore(system_prompt)
        self._streaming = streaming
        self._state = TurnState.IDLE
        self._turn_lock = threading.Lock()
        self.last_error: Optional[BusinessError] = None

    # ---- 模型与模式 ----

    def set_model(self, name: str) -> None:
        name = (name or "").strip()
        if not name:
            raise ValidationError("model name must not be empty")
        previous = self._transport.model
        self._transport.set_model(name)
        self._log(logging.INFO, "Model changed", {}, previous=previous, model=name)

    def current_model(self) -> str:
        return self._transport.model

    def set_streaming(self, enabled: bool) -> None:
        self._streaming = bool(enabled)

    def is_streaming(self) -> bool:
        return self._streaming

    @property
    def state(self) -> TurnState:
        return self._state

    # ---- 服务端查询 ----

    def check_connection(self) -> bool:
        return self._transport.check_connection()

    def list_models(self) -> List[str]:
        return self._transport.list_models()

    # ---- 对话 ----

    def send(self, user_text: str) -> str:
        """执行一轮对话，返回完整的助手回复。

        Raises:
            InvalidStateError: 输入为空，或上一轮仍在 AwaitingResponse。
            TransportError / ServerError / DecodeError: 来自传输层，原样上抛。
        """
        if not user_text or not user_text.strip():
            raise InvalidStateError("refusing to start a turn with empty input", state=self._state.value)
        if not self._turn_lock.acquire(blocking=False):
            raise InvalidStateError(
                "another turn is still awaiting its response",
                state=TurnState.AWAITING_RESPONSE.value,
            )
        start_time = time.time()
        log_ctx: Dict[str, Any] = {
            "trace_id": f"tr-{uuid4().hex}",
            "model": self._transport.model,
            "stream": self._streaming,
        }
        try:
            self._store.append_user(user_text)
            self._state = TurnState.AWAITING_RESPONSE
            snapshot = self._store.snapshot()
            self._log(logging.INFO, "Sending turn", log_ctx, message_count=len(snapshot))
            try:
                reply = self._transport.send_message(
                    snapshot,
                    model=self._transport.model,
                    stream=self._streaming,
                )
            except BusinessError as e:
                self._state = TurnState.FAILED
                self.last_error = e
                self._log(
                    logging.ERROR,
                    "Turn failed",
                    log_ctx,
                    code=e.code,
                    error=e.message,
                    elapsed_seconds=round(time.time() - start_time, 2),
                )
                raise
            self._store.append_assistant(reply)
            self._state = TurnState.COMMITTED
            self.last_error = None
            self._log(
                logging.INFO,
                "Committed turn",
                log_ctx,
                reply_chars=len(reply),
                turn_count=self._store.turn_count(),
                elapsed_seconds=round(time.time() - start_time, 2),
            )
            self._state = TurnState.IDLE
            return reply
        finally:
            if self._state is TurnState.AWAITING_RESPONSE:
                self._state = TurnState.FAILED
            self._turn_lock.release()

    # ---- 历史 ----

    def history(self) -> List[ChatMessage]:
        return self._store.history()

    def turn_count(self) -> int:
        return self._store.turn_count()

    def clear(self) -> None:
        if self._state is TurnState.AWAITING_RESPONSE:
            raise InvalidStateError("cannot clear while a turn is in flight", state=self._state.value)
        self._store.reset()
        self._state = TurnState.IDLE
        self.last_error = None
        self._log(logging.INFO, "Conversation cleared", {})

    @staticmethod
    def _log(level: int, message: str, log_ctx: Dict[str, Any], **fields: Any) -> None:
        payload = dict(log_ctx)
        payload.update(fields)
        logger.log(level, message, extra={"extra": payload})
