from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Mapping, Sequence
import time

import httpx

from aipipe_agent.config.settings import Settings, settings
from aipipe_agent.domain.exceptions import BusinessError, ExecutionError, UnknownToolError
from aipipe_agent.domain.models import ChatRequest, Message, SessionConfig
from aipipe_agent.infrastructure.logging.logger import logger
from aipipe_agent.prompts import load_system_prompt
from aipipe_agent.providers.chat_client import ChatCompletionClient
from .definitions import ToolCall, ToolName, ToolResult
from .sandbox import JsSandbox


ToolFunc = Callable[[Dict[str, Any]], str]
MAX_SEARCH_RESULTS = 3
WORKFLOW_HEADER = "**AI Pipe Workflow Executed:**"


class ToolDispatcher:
    """按工具名分发到处理函数，dispatch 永不抛出异常。

    分发表以 ToolName 为键，构造时必须覆盖全部成员。
    """

    def __init__(self, tools: Mapping[ToolName, ToolFunc]):
        missing = [name.value for name in ToolName if name not in tools]
        if missing:
            raise ValueError(f"no handler registered for: {', '.join(missing)}")
        self._tools = dict(tools)

    def dispatch(self, call: ToolCall) -> ToolResult:
        logger.info("tool.dispatch", extra={"extra": {"tool": call.name, "call_id": call.id}})
        try:
            func = self._tools[self._resolve(call.name)]
            content = func(call.arguments)
        except Exception as exc:
            message = exc.message if isinstance(exc, BusinessError) else str(exc)
            logger.warning(
                "tool.failed",
                extra={"extra": {"tool": call.name, "call_id": call.id, "error": message}},
            )
            content = f"❌ {call.name} failed: {message}"
        return ToolResult(call_id=call.id, content=content)

    def dispatch_all(self, calls: Sequence[ToolCall]) -> List[ToolResult]:
        """并发执行全部调用，等待全部完成后按原始顺序返回结果。"""

        if not calls:
            return []
        with ThreadPoolExecutor(max_workers=len(calls), thread_name_prefix="tool") as pool:
            futures = [pool.submit(self.dispatch, call) for call in calls]
            return [future.result() for future in futures]

    @staticmethod
    def _resolve(name: str) -> ToolName:
        try:
            return ToolName(name)
        except ValueError:
            raise UnknownToolError(code="UNKNOWN_TOOL", message=f"Unknown tool: {name}", tool=name)


def _require_str(args: Dict[str, Any], key: str) -> str:
    value = args.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ExecutionError(code="EXECUTION_ERROR", message=f"missing required argument '{key}'")
    return value


def _search_header(query: str) -> str:
    return f'**Search Results for "{query}":**'


def _mock_search_results(query: str) -> str:
    mock = [
        f"📄 **{query} – Official Documentation**: Reference guide and best practices from the official docs.",
        f"✍️ **{query} – In-depth Tutorial**: Article covering idiomatic patterns and common pitfalls.",
        f"💡 **{query} – Community Q&A**: Community answers on practical usage and troubleshooting.",
    ]
    return f"{_search_header(query)}\n\n" + "\n\n".join(mock)


def _fetch_search_items(query: str, config: SessionConfig, cfg: Settings) -> List[Dict[str, Any]]:
    try:
        with httpx.Client(timeout=cfg.http_timeout, trust_env=False) as client:
            resp = client.get(
                cfg.search_endpoint,
                params={"key": cfg.google_api_key, "cx": cfg.google_cx, "q": query},
                headers={"Authorization": f"Bearer {config.credential}"},
            )
        if resp.status_code < 200 or resp.status_code >= 300:
            logger.warning("tool.search_http_error", extra={"extra": {"status": resp.status_code}})
            return []
        data = resp.json()
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("tool.search_failed", extra={"extra": {"error": str(exc)}})
        return []
    items = data.get("items") if isinstance(data, dict) else None
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, dict)]


def _make_google_search_tool(config: SessionConfig, cfg: Settings) -> ToolFunc:
    def _run(args: Dict[str, Any]) -> str:
        query = _require_str(args, "query")
        items = _fetch_search_items(query, config, cfg) if config.credential else []
        if not items:
            return _mock_search_results(query)
        entries = [
            f"📄 **{item.get('title', '')}**: {item.get('snippet', '')}"
            for item in items[:MAX_SEARCH_RESULTS]
        ]
        return f"{_search_header(query)}\n\n" + "\n\n".join(entries)

    return _run


def _make_ai_pipe_tool(config: SessionConfig, cfg: Settings) -> ToolFunc:
    def _run(args: Dict[str, Any]) -> str:
        workflow = _require_str(args, "workflow")
        if config.credential:
            req = ChatRequest(
                model=cfg.model,
                messages=[Message(role="user", content=f"Process this workflow: {workflow}")],
                max_tokens=cfg.workflow_max_tokens,
                system_prompt=load_system_prompt("workflow"),
            )
            try:
                result = ChatCompletionClient(config, cfg).chat(req).content
                return f'{WORKFLOW_HEADER}\n\nWorkflow: "{workflow}"\n\n{result}'
            except BusinessError as exc:
                logger.warning("tool.workflow_fallback", extra={"extra": {"kind": exc.code, "error": exc.message}})

        if cfg.workflow_delay:
            time.sleep(cfg.workflow_delay)
        return (
            f'{WORKFLOW_HEADER}\n\nWorkflow: "{workflow}"\n\n'
            "✅ Data preprocessing completed\n"
            "✅ Model inference executed\n"
            "✅ Results processed\n\n"
            "Output: Generated response based on workflow parameters with 94.2% confidence score."
        )

    return _run


def _make_execute_js_tool(sandbox: JsSandbox) -> ToolFunc:
    def _run(args: Dict[str, Any]) -> str:
        code = _require_str(args, "code")
        evaluation = sandbox.evaluate(code)
        parts = [
            "**Code executed successfully:**",
            f"```javascript\n{code}\n```",
            f"**Result:** {evaluation.display}",
        ]
        if evaluation.console:
            parts.append("**Console:**\n" + "\n".join(evaluation.console))
        return "\n\n".join(parts)

    return _run


def default_tools(config: SessionConfig, cfg: Settings = settings) -> Dict[ToolName, ToolFunc]:
    sandbox = JsSandbox(timeout_ms=cfg.js_timeout_ms, max_memory=cfg.js_max_memory)
    return {
        ToolName.GOOGLE_SEARCH: _make_google_search_tool(config, cfg),
        ToolName.AI_PIPE: _make_ai_pipe_tool(config, cfg),
        ToolName.EXECUTE_JS: _make_execute_js_tool(sandbox),
    }
