"""传输层抽象接口。

上层 Session 不直接依赖 httpx，而是依赖此协议：

- 每种推理服务实现一个 ChatTransport（目前为 OllamaClient）。
- 负责：把会话快照转成 HTTP 请求，并把响应解码为完整的回复文本。

传输层持有的 HTTP 句柄不支持并发调用，串行化由 Session 的状态机保证。
"""

from typing import List, Optional, Protocol, Sequence

from chat_core.domain.models import ChatMessage


class ChatTransport(Protocol):
    """本地推理服务客户端协议。"""

    name: str
    base_url: str

    @property
    def model(self) -> str:
        ...

    def set_model(self, name: str) -> None:
        ...

    def check_connection(self) -> bool:
        ...

    def list_models(self) -> List[str]:
        ...

    def send_message(
        self,
        messages: Sequence[ChatMessage],
        model: Optional[str] = None,
        stream: bool = True,
    ) -> str:
        """发送一轮对话，阻塞直到完整回复解码完成。"""

        ...
