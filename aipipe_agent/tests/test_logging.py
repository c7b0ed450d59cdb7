import json
import logging
import sys

from aipipe_agent.infrastructure.logging.logger import JsonFormatter


def _record(msg, extra=None, exc_info=None):
    record = logging.LogRecord("aipipe_agent", logging.INFO, __file__, 1, msg, None, exc_info)
    if extra is not None:
        record.extra = extra
    return record


def test_extra_fields_are_flattened():
    line = JsonFormatter().format(_record("tool.dispatch", {"tool": "execute_js", "call_id": "js_1"}))
    data = json.loads(line)
    assert data["msg"] == "tool.dispatch"
    assert data["tool"] == "execute_js"
    assert data["call_id"] == "js_1"
    assert data["level"] == "INFO"
    assert "thread" in data


def test_redaction_truncates_content_fields_only():
    long_text = "x" * 200
    data = json.loads(JsonFormatter(redact=True).format(_record("m", {"query": long_text, "tool": long_text})))
    assert data["query"] == "x" * 64 + "…"
    assert data["tool"] == long_text


def test_exception_is_included():
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        data = json.loads(JsonFormatter().format(_record("failed", exc_info=sys.exc_info())))
    assert "RuntimeError: boom" in data["exc"]
