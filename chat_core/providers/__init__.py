"""推理服务集成层。

该包下的模块负责：
- 定义传输层抽象接口 (base)。
- 流式响应的逐行解码 (stream_decoder)。
- 提供具体实现 (ollama_client)。
"""

from typing import Optional

from chat_core.config.settings import settings
from chat_core.providers.base import ChatTransport
from chat_core.providers.ollama_client import OllamaClient


def create_transport(model: Optional[str] = None) -> ChatTransport:
    """根据配置创建传输层实例，model 为空时使用配置中的默认模型。"""

    return OllamaClient(settings, model=model)
