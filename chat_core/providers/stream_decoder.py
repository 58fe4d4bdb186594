"""流式响应解码器。

本地推理服务的 /api/chat 在流式模式下按行返回 JSON，
实际会遇到两种分帧方式：

- 裸 NDJSON：每行就是一个 JSON 对象；
- SSE 风格：每行带 "data: " 前缀，可能以 "data: [DONE]" 结尾。

解码器把两种分帧统一成同一套取值逻辑：只消费 message.content，
按行序拼接成完整回复。单行 JSON 损坏只记录日志并跳过，不会中断整个流。
"""

import json
import logging
from typing import Any, Iterable, Optional

from chat_core.domain.models import StreamFragment
from chat_core.infrastructure.logging.logger import logger


SSE_PREFIX = "data: "
DONE_TOKEN = "[DONE]"


def extract_message_content(data: Any) -> Optional[str]:
    """安全读取 data["message"]["content"]，任一层缺失或类型不符都返回 None。"""

    if not isinstance(data, dict):
        return None
    message = data.get("message")
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    if not isinstance(content, str):
        return None
    return content


class StreamDecoder:
    """逐行喂入、累积回复文本的解码器，每轮对话新建一个实例。"""

    def __init__(self) -> None:
        self._parts: list[str] = []
        self.lines_seen = 0
        self.skipped = 0

    @property
    def reply(self) -> str:
        return "".join(self._parts)

    def feed(self, line: str) -> Optional[StreamFragment]:
        """处理一行原始文本，产出内容增量时返回 StreamFragment。"""

        self.lines_seen += 1
        data_str = line
        if data_str.startswith(SSE_PREFIX):
            data_str = data_str[len(SSE_PREFIX):]
        data_str = data_str.strip()
        if not data_str or data_str == DONE_TOKEN:
            return None
        try:
            payload = json.loads(data_str)
        except (ValueError, RecursionError) as e:
            # RecursionError: 嵌套过深的损坏行
            self.skipped += 1
            logger.warning(
                "Skipped malformed stream line",
                extra={"extra": {"line_no": self.lines_seen, "error": str(e)}},
            )
            return None
        content = extract_message_content(payload)
        if content is None:
            return None
        role = payload["message"].get("role") or "assistant"
        if role not in ("system", "user", "assistant"):
            role = "assistant"
        fragment = StreamFragment(role=role, content=content)
        self._parts.append(content)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Stream fragment",
                extra={"extra": {"line_no": self.lines_seen, "delta": content}},
            )
        return fragment

    def feed_lines(self, lines: Iterable[str]) -> str:
        for line in lines:
            self.feed(line)
        return self.reply


def decode_stream_body(body: str) -> str:
    """解码一个已经完整缓冲的流式响应体。"""

    return StreamDecoder().feed_lines(body.splitlines())
