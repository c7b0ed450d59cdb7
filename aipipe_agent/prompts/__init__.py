"""系统提示词加载工具。

按语言(locale) 从 prompts/<locale> 目录读取 `<name>_system.md`，
用于构造 chat/completions 请求的 system 消息。目前只有 ai_pipe 工具的
workflow 提示词。
"""

from pathlib import Path


PROMPTS_DIR = Path(__file__).resolve().parent


def load_system_prompt(name: str, locale: str = "en") -> str:
    fname = PROMPTS_DIR / locale / f"{name}_system.md"
    return fname.read_text(encoding="utf-8").strip()
