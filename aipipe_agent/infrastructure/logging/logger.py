"""结构化日志。

每条记录写成一行 JSON（logs/agent.log）。调用方把业务字段放在
``extra={"extra": {...}}`` 中，它们会被平铺到 JSON 顶层。

工具在线程池中并发执行，所以每条记录都带上线程名，方便按调用拆分。
开启 log_redact_content 后，消息正文与会话内容类字段只保留前缀。
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

from aipipe_agent.config.settings import Settings, settings

# 这些字段可能带有用户输入或工具输出
CONTENT_KEYS = frozenset(["content", "query", "code", "workflow", "text", "error"])
REDACT_PREFIX = 64


def _redact(value: Any) -> Any:
    if isinstance(value, str) and len(value) > REDACT_PREFIX:
        return value[:REDACT_PREFIX] + "…"
    return value


class JsonFormatter(logging.Formatter):
    def __init__(self, redact: bool = False):
        super().__init__()
        self.redact = redact

    def format(self, record: logging.LogRecord) -> str:
        msg = record.getMessage()
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "name": record.name,
            "thread": record.threadName,
            "msg": _redact(msg) if self.redact else msg,
        }
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            for key, value in extra.items():
                payload[key] = _redact(value) if self.redact and key in CONTENT_KEYS else value
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logger(cfg: Settings = settings) -> logging.Logger:
    """初始化 ``aipipe_agent`` logger，重复调用不会叠加 handler。"""
    logger = logging.getLogger("aipipe_agent")
    logger.setLevel(cfg.log_level)
    if logger.handlers:
        return logger
    log_dir = Path(cfg.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    fh = logging.FileHandler(log_dir / "agent.log", encoding="utf-8")
    fh.setFormatter(JsonFormatter(redact=cfg.log_redact_content))
    logger.addHandler(fh)
    return logger


logger = setup_logger()
