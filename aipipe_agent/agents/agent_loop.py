"""Agent 引擎核心模块。

AgentLoop 负责执行一轮对话：查询 Provider、并发执行工具、按原始顺序回填结果、
生成收尾回复。状态机本身由 flows.graph 中的 LangGraph 图实现，这里负责
记录阶段轨迹、日志与本轮新增消息。

调用方（Session）保证同一时间只有一轮在执行；AgentLoop 是本轮唯一的写入者。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional
from uuid import uuid4
import time
import logging

from aipipe_agent.domain.conversation import ConversationStore
from aipipe_agent.domain.models import Message
from aipipe_agent.flows.graph import build_turn_graph
from aipipe_agent.flows.state import TurnPhase, TurnState
from aipipe_agent.infrastructure.logging.logger import logger
from aipipe_agent.providers.gateway import ProviderGateway
from aipipe_agent.tools.executor import ToolDispatcher
from aipipe_agent.tools.registry import ToolRegistry


@dataclass
class TurnOutcome:
    """一轮对话的结果。

    - status: "completed" 或 "failed"。
    - phases: 本轮经过的阶段（TurnPhase 的值）。
    - messages: 本轮在用户消息之后追加的消息。
    - source: 作答的 Provider（"real" / "simulated"），失败时可能为空。
    """

    status: Literal["completed", "failed"]
    phases: List[str] = field(default_factory=list)
    messages: List[Message] = field(default_factory=list)
    source: Optional[str] = None
    error: Optional[str] = None

    @property
    def final_text(self) -> str:
        for message in reversed(self.messages):
            if message.role == "assistant" and message.content:
                return message.content
        return ""


class AgentLoop:
    def __init__(
        self,
        store: ConversationStore,
        gateway: ProviderGateway,
        dispatcher: ToolDispatcher,
        registry: Optional[ToolRegistry] = None,
    ):
        self._store = store
        self._registry = registry or ToolRegistry()
        self._graph = build_turn_graph(store, gateway, dispatcher, self._registry, listener=self._on_phase)
        self.phase = TurnPhase.IDLE
        self.trace: List[str] = []

    def run_turn(self) -> TurnOutcome:
        """对最近一条用户消息执行一轮对话。

        Returns:
            TurnOutcome，messages 为本轮新增的 assistant/tool 消息。

        Raises:
            ProviderGateway 与工具层未能就地恢复的异常，交给 Session 处理。
        """

        start_time = time.time()
        log_ctx: Dict[str, Any] = {"trace_id": f"tr-{uuid4().hex}"}
        self.trace = []
        self.phase = TurnPhase.IDLE
        start_len = len(self._store)

        initial: TurnState = {"phase": TurnPhase.IDLE.value, "trace": [], "tool_calls": [], "tool_results": []}
        result = self._graph.invoke(initial)

        appended = list(self._store.snapshot()[start_len:])
        reply = result.get("reply")
        outcome = TurnOutcome(
            status="completed",
            phases=list(result.get("trace", [])),
            messages=appended,
            source=reply.source if reply else None,
        )
        self._log(
            logging.INFO,
            "Completed agent turn",
            log_ctx,
            elapsed_seconds=round(time.time() - start_time, 2),
            phases=outcome.phases,
            source=outcome.source,
            tool_calls=len(result.get("tool_calls", [])),
        )
        return outcome

    def _on_phase(self, phase: TurnPhase) -> None:
        self.phase = phase
        self.trace.append(phase.value)

    @staticmethod
    def _log(level: int, message: str, log_ctx: Dict[str, Any], **fields: Any) -> None:
        payload = dict(log_ctx)
        payload.update(fields)
        logger.log(level, message, extra={"extra": payload})
