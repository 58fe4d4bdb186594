"""对外 API 服务模块。

提供简化的函数接口供上层终端/命令层调用，进程内只维护一个 Session。
"""

from typing import Any, Dict, List, Optional

from chat_core.agents.session import Session
from chat_core.config.settings import settings
from chat_core.infrastructure.logging.logger import logger
from chat_core.prompts import load_system_prompt
from chat_core.providers import create_transport


_session: Optional[Session] = None


def initialize(default_model: Optional[str] = None) -> Session:
    """创建进程级 Session，并替换已有实例。

    Args:
        default_model: 初始模型名（可选，不提供则使用配置中的 default_model）
    """
    global _session
    system_prompt = load_system_prompt(settings.prompt_locale, override=settings.system_prompt)
    transport = create_transport(model=default_model or settings.default_model)
    _session = Session(
        transport=transport,
        system_prompt=system_prompt,
        streaming=settings.stream_enabled,
    )
    logger.info(
        "Session initialized",
        extra={"extra": {"model": transport.model, "base_url": transport.base_url}},
    )
    return _session


def get_default_session() -> Session:
    """获取默认的 Session 实例（单例）。"""
    if _session is None:
        return initialize()
    return _session


def send_message(user_input: str) -> Dict[str, Any]:
    """发送一轮对话。

    Returns:
        包含模型名、助手回复和已完成轮数的字典

    Raises:
        各种 domain.exceptions 中定义的异常
    """
    session = get_default_session()
    try:
        reply = session.send(user_input)
    except Exception as e:
        logger.error(f"Chat failed: {e}", extra={"extra": {
            "model": session.current_model(),
            "error": str(e),
        }})
        raise
    return {
        "model": session.current_model(),
        "reply": reply,
        "turn_count": session.turn_count(),
    }


def check_connection() -> bool:
    return get_default_session().check_connection()


def list_models() -> List[str]:
    return get_default_session().list_models()


def get_history() -> List[Dict[str, str]]:
    """获取当前会话的全部消息（不含 system 消息）。"""
    return [
        {"role": m.role, "content": m.content}
        for m in get_default_session().history()
    ]


def clear_conversation() -> None:
    get_default_session().clear()
