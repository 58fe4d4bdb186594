"""JSON 行日志。

每条记录写成一行 JSON：ts / level / name / msg，再合并调用方通过
extra={"extra": {...}} 传入的结构化字段。

开启 log_redact_content 后，msg 以及携带对话内容的字段
（流式增量、错误信息、服务端响应体等）都只保留前 REDACT_LIMIT 个字符。
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

from chat_core.config.settings import settings


REDACT_LIMIT = 64
CONTENT_KEYS = frozenset({"delta", "content", "reply", "body", "error"})


def _redact(value: Any) -> Any:
    if isinstance(value, str) and len(value) > REDACT_LIMIT:
        return value[:REDACT_LIMIT] + "..."
    return value


class JsonFormatter(logging.Formatter):
    def __init__(self, redact_content: bool = False):
        super().__init__()
        self.redact_content = redact_content

    def format(self, record: logging.LogRecord) -> str:
        msg = record.getMessage() or ""
        fields: Dict[str, Any] = {}
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            fields = dict(extra)
        if self.redact_content:
            msg = _redact(msg)
            for key in CONTENT_KEYS.intersection(fields):
                fields[key] = _redact(fields[key])
        payload = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "name": record.name,
            "msg": msg,
        }
        payload.update(fields)
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logger() -> logging.Logger:
    logger = logging.getLogger("chat_core")
    logger.setLevel(getattr(logging, settings.log_level, logging.INFO))
    if logger.handlers:
        return logger
    log_dir = Path(settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    fh = logging.FileHandler(log_dir / "chat.log", encoding="utf-8")
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(JsonFormatter(redact_content=settings.log_redact_content))
    logger.addHandler(fh)
    return logger


logger = setup_logger()
