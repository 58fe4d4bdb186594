"""Chat Core 顶层包。

该包提供本地推理服务（Ollama 兼容）对话客户端的核心实现，
包括配置加载、领域模型、流式响应解码、传输层与单轮对话状态机。
"""

from chat_core.agents.session import Session
from chat_core.api.service import initialize

__all__ = ["Session", "initialize"]
