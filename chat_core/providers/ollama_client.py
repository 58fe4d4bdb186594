"""Ollama Provider 适配器。

本模块负责：

1. 接收会话快照，构造 ChatRequest 并序列化为 /api/chat 请求体。
2. 调用 HTTP 接口并把网络错误/非 200 状态映射为统一的业务异常。
3. 把响应（单个 JSON 对象或逐行 JSON 流）解码为完整的回复文本。
4. 提供连通性检查与模型列表查询（GET /api/tags）。

客户端持有一个可复用的 httpx.Client，不支持并发调用；
三类请求的超时时间固定，不开放配置（本地推理较慢，对话请求至少 60 秒）。
"""

import time
from typing import Any, List, Optional, Sequence

import httpx

from chat_core.config.settings import settings
from chat_core.domain.exceptions import DecodeError, ServerError, TransportError
from chat_core.domain.models import ChatMessage, ChatRequest
from chat_core.infrastructure.logging.logger import logger
from chat_core.providers.stream_decoder import StreamDecoder, extract_message_content


DEFAULT_BASE_URL = "http://localhost:11434"
DEFAULT_MODEL = "llama3.2"

TAGS_PATH = "/api/tags"
CHAT_PATH = "/api/chat"

CONNECT_TIMEOUT = 5.0
LIST_TIMEOUT = 10.0
CHAT_TIMEOUT = 60.0

JSON_HEADERS = {"Content-Type": "application/json"}


class OllamaClient:
    """Ollama 客户端实现。

    - name: Provider 名称（供日志/调试使用）。
    - send_message: 对外统一调用入口，返回完整回复字符串。
    """

    name = "ollama"

    def __init__(self, cfg=settings, model: Optional[str] = None):
        self._settings = cfg
        base = getattr(cfg, "ollama_base_url", None) or DEFAULT_BASE_URL
        self.base_url = base.rstrip("/")
        self._model = model or getattr(cfg, "default_model", None) or DEFAULT_MODEL
        self._client: Optional[httpx.Client] = None

    # ---- 模型选择 ----

    @property
    def model(self) -> str:
        return self._model

    def set_model(self, name: str) -> None:
        self._model = name

    # ---- 连通性与模型列表 ----

    def check_connection(self) -> bool:
        """探测服务是否可达，任何失败都折叠为 False，不重试。"""

        try:
            # 独立的短连接，不占用对话用的 HTTP 句柄
            with httpx.Client(timeout=CONNECT_TIMEOUT, trust_env=False) as client:
                resp = client.get(self._url(TAGS_PATH))
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.info("Connectivity check failed", extra={"extra": {"base_url": self.base_url, "error": str(e)}})
            return False
        return resp.status_code == 200

    def list_models(self) -> List[str]:
        """返回服务端已安装模型名，保持服务端顺序。

        解析失败或结构不符时返回空列表，方便上层直接展示“没有模型”。
        """

        try:
            resp = self._http().get(self._url(TAGS_PATH), timeout=LIST_TIMEOUT)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning("Model listing failed", extra={"extra": {"base_url": self.base_url, "error": str(e)}})
            return []
        if resp.status_code != 200:
            logger.warning("Model listing returned non-200", extra={"extra": {"status": resp.status_code}})
            return []
        try:
            data = resp.json()
        except ValueError:
            logger.warning("Model listing body is not JSON")
            return []
        return self._parse_model_names(data)

    # ---- 对话 ----

    def send_message(
        self,
        messages: Sequence[ChatMessage],
        model: Optional[str] = None,
        stream: bool = True,
    ) -> str:
        """执行一轮对话调用。

        步骤：
        1. 用会话快照构造不可变的 ChatRequest。
        2. POST /api/chat，超时 60 秒。
        3. 网络错误 -> TransportError；非 200 -> ServerError。
        4. 按流式/非流式模式解码出完整回复。
        """

        req = ChatRequest(model=model or self._model, messages=tuple(messages), stream=stream)
        url = self._url(CHAT_PATH)
        try:
            if req.stream:
                return self._send_stream(url, req)
            return self._send_once(url, req)
        except (httpx.RequestError, httpx.InvalidURL) as e:
            raise TransportError(
                f"HTTP request failed: {e}\nMake sure Ollama is running: ollama serve",
                cause=e,
                base_url=self.base_url,
            ) from e

    def _send_once(self, url: str, req: ChatRequest) -> str:
        resp = self._http().post(url, json=req.to_payload(), headers=JSON_HEADERS, timeout=CHAT_TIMEOUT)
        self._check_status(resp.status_code, resp.text, req.model)
        try:
            data = resp.json()
        except ValueError as e:
            raise DecodeError(f"JSON parsing error: {e}", body=resp.text) from e
        return extract_message_content(data) or ""

    def _send_stream(self, url: str, req: ChatRequest) -> str:
        decoder = StreamDecoder()
        # httpx 的 timeout 只约束单次读写，这里再限制整个响应的总时长
        deadline = time.monotonic() + CHAT_TIMEOUT
        with self._http().stream(
            "POST",
            url,
            json=req.to_payload(),
            headers=JSON_HEADERS,
            timeout=CHAT_TIMEOUT,
        ) as resp:
            if resp.status_code != 200:
                resp.read()
                self._check_status(resp.status_code, resp.text, req.model)
            for line in resp.iter_lines():
                if time.monotonic() > deadline:
                    raise httpx.ReadTimeout(f"chat response exceeded {CHAT_TIMEOUT:g}s")
                decoder.feed(line)
        if decoder.skipped:
            logger.warning(
                "Stream contained malformed lines",
                extra={"extra": {"skipped": decoder.skipped, "lines": decoder.lines_seen}},
            )
        return decoder.reply

    # ---- 资源管理 ----

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> "OllamaClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ---- 辅助方法 ----

    def _http(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(trust_env=False)
        return self._client

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    @staticmethod
    def _check_status(status_code: int, body: str, model: str) -> None:
        if status_code == 200:
            return
        raise ServerError(
            f"Ollama API request failed with HTTP {status_code}: {body}\n"
            f"Make sure the model '{model}' is installed: ollama pull {model}",
            status_code=status_code,
            body=body,
            model=model,
        )

    @staticmethod
    def _parse_model_names(data: Any) -> List[str]:
        if not isinstance(data, dict):
            return []
        models = data.get("models")
        if not isinstance(models, list):
            return []
        names: List[str] = []
        for item in models:
            if isinstance(item, dict) and isinstance(item.get("name"), str):
                names.append(item["name"])
        return names
