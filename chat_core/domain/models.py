"""统一的对话数据模型。

本模块定义了会话层与传输层之间共享的标准数据结构：

- ChatMessage: 一条对话消息（system/user/assistant）。
- ChatRequest: 一轮对话发给本地推理服务的完整请求。
- StreamFragment: 流式响应中某一行解析出的增量内容。
- TurnState: 单轮对话的状态机取值。

传输层（如 OllamaClient）只依赖这些模型，
并负责在服务端 JSON 与这些模型之间做转换。
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Literal, Tuple


# 消息角色，与 /api/chat 的 role 字段一一对应
Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class ChatMessage:
    """一条对话消息，创建后不可修改。

    - role: 消息角色。
    - content: UTF-8 纯文本；仅助手回复允许为空字符串。
    """

    role: Role
    content: str

    def to_payload(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class ChatRequest:
    """一轮对话的请求值对象。

    由会话快照构造，构造后不再修改，也不会跨轮次复用。
    """

    model: str
    messages: Tuple[ChatMessage, ...]
    stream: bool = True

    def to_payload(self) -> Dict[str, Any]:
        """转换为 POST /api/chat 的请求体。"""

        return {
            "model": self.model,
            "messages": [m.to_payload() for m in self.messages],
            "stream": self.stream,
        }


@dataclass(frozen=True)
class StreamFragment:
    """流式响应中单行的解码结果，消费后即丢弃。"""

    role: Role
    content: str


class TurnState(str, Enum):
    """单轮对话状态：Idle -> AwaitingResponse -> Committed / Failed。"""

    IDLE = "idle"
    AWAITING_RESPONSE = "awaiting_response"
    COMMITTED = "committed"
    FAILED = "failed"
