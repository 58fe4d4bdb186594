"""内存会话存储。

ConversationStore 是一个只追加的有序消息日志：

- 下标 0 永远是 system 消息，创建时写入，reset 时原样恢复。
- 之后按轮次追加 user / assistant 消息，从不重排。
- 唯一允许的连续同角色情况：某轮失败后保留了 user 消息，
  下一轮又追加新的 user 消息，形成两条相邻的 user 消息。

存储只在两轮之间被修改（发送前追加 user、提交时追加 assistant），
不做任何加锁，串行化由上层 Session 的状态机保证。
"""

from typing import List, Optional, Tuple

from .exceptions import InvalidStateError
from .models import ChatMessage


class ConversationStore:
    def __init__(self, system_prompt: str):
        self._system_prompt = system_prompt
        self._messages: List[ChatMessage] = [ChatMessage(role="system", content=system_prompt)]

    @property
    def system_prompt(self) -> str:
        return self._system_prompt

    def append_user(self, text: str) -> ChatMessage:
        """追加用户消息。空输入的过滤由调用方负责，这里不拦截。"""

        msg = ChatMessage(role="user", content=text)
        self._messages.append(msg)
        return msg

    def append_assistant(self, text: str) -> ChatMessage:
        """追加助手回复，允许空字符串（退化回复）。

        助手消息只能紧跟在 user 消息之后。
        """

        last = self._messages[-1]
        if last.role != "user":
            raise InvalidStateError(
                f"assistant reply must follow a user message, last role is {last.role!r}",
                last_role=last.role,
            )
        msg = ChatMessage(role="assistant", content=text)
        self._messages.append(msg)
        return msg

    def snapshot(self) -> Tuple[ChatMessage, ...]:
        """返回当前全部消息的不可变副本，之后的修改不会影响它。"""

        return tuple(self._messages)

    def history(self) -> List[ChatMessage]:
        """返回除 system 消息之外的对话记录，供展示使用。"""

        return list(self._messages[1:])

    def reset(self, system_prompt: Optional[str] = None) -> None:
        """清空会话，只保留一条 system 消息。"""

        if system_prompt is not None:
            self._system_prompt = system_prompt
        self._messages = [ChatMessage(role="system", content=self._system_prompt)]

    def turn_count(self) -> int:
        """已完成的 user/assistant 轮数。"""

        return sum(1 for m in self._messages if m.role == "assistant")

    def __len__(self) -> int:
        # 不含 system 消息
        return len(self._messages) - 1
