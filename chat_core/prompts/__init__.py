"""系统提示词加载工具。

按语言(locale) 从 prompts/<locale> 目录读取 system prompt 文本，
用于构造会话下标 0 处的 ChatMessage(role="system")。
"""

from pathlib import Path
from typing import Optional


PROMPTS_DIR = Path(__file__).resolve().parent


def load_system_prompt(locale: str = "en", override: Optional[str] = None) -> str:
    """加载系统提示词文本。

    配置中显式给出的 override 优先；找不到对应语言目录时回退到 en。
    """

    if override:
        return override
    fname = PROMPTS_DIR / locale / "system.md"
    if not fname.exists():
        fname = PROMPTS_DIR / "en" / "system.md"
    return fname.read_text(encoding="utf-8").strip()
