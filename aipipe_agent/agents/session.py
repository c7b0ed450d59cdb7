"""会话对象。

Session 显式持有一个聊天会话的全部可变状态：Provider 配置、消息历史、
“处理中”标志与用户通知，取代全局变量。生命周期与 UI 会话一致。

同一 Session 同一时间只允许一轮对话：处理中再次提交会抛出 TurnInProgressError，
绝不交错执行。
"""

import random
import threading
from collections import deque
from dataclasses import dataclass
from typing import Deque, Optional, Tuple

from aipipe_agent.agents.agent_loop import AgentLoop, TurnOutcome
from aipipe_agent.config.settings import ProviderKind, Settings, settings
from aipipe_agent.domain.conversation import ConversationStore
from aipipe_agent.domain.exceptions import AuthError, TurnInProgressError
from aipipe_agent.domain.models import Message, SessionConfig
from aipipe_agent.infrastructure.logging.logger import logger
from aipipe_agent.providers import create_gateway
from aipipe_agent.providers.gateway import ProviderGateway
from aipipe_agent.tools.executor import ToolDispatcher, default_tools
from aipipe_agent.tools.registry import ToolRegistry


@dataclass(frozen=True)
class Notice:
    """面向用户的状态提示，level 取 info / success / warning / danger。"""

    level: str
    message: str


class Session:
    def __init__(
        self,
        config: Optional[SessionConfig] = None,
        cfg: Settings = settings,
        *,
        gateway: Optional[ProviderGateway] = None,
        dispatcher: Optional[ToolDispatcher] = None,
        rng: Optional[random.Random] = None,
    ):
        self.config = config or SessionConfig.from_settings(cfg)
        self.store = ConversationStore()
        self.registry = ToolRegistry()
        self._settings = cfg
        self._rng = rng
        self._notices: Deque[Notice] = deque(maxlen=cfg.max_notices)
        self._busy = threading.Lock()
        self._build(gateway, dispatcher)

    @property
    def is_processing(self) -> bool:
        return self._busy.locked()

    @property
    def messages(self) -> Tuple[Message, ...]:
        return self.store.snapshot()

    @property
    def notices(self) -> Tuple[Notice, ...]:
        return tuple(self._notices)

    def configure(
        self,
        provider_kind: Optional[ProviderKind],
        credential: Optional[str] = None,
        base_url: Optional[str] = None,
    ) -> None:
        """切换 Provider 配置，重新装配 gateway 与工具（对话历史保留）。"""

        if self.is_processing:
            raise TurnInProgressError(code="TURN_IN_PROGRESS", message="cannot reconfigure during a turn")
        self.config = SessionConfig(provider_kind=provider_kind, credential=credential, base_url=base_url)
        self._build(None, None)
        if provider_kind:
            self.notify(f"{provider_kind} provider configured successfully!", "success")

    def send(self, text: str) -> Optional[TurnOutcome]:
        """提交一条用户消息并执行一轮对话。

        空白输入直接忽略（返回 None）。未配置 Provider 时抛出 AuthError；
        上一轮尚未结束时抛出 TurnInProgressError。轮内未被就地恢复的异常
        会记录为 danger 通知并以 failed 结果返回，处理中标志始终会被重置。
        """

        text = (text or "").strip()
        if not text:
            return None
        if not self.config.is_configured:
            raise AuthError(code="AUTH_REQUIRED", message="No LLM provider configured")
        if not self._busy.acquire(blocking=False):
            raise TurnInProgressError(code="TURN_IN_PROGRESS", message="a turn is already in progress")
        try:
            self.store.append(Message(role="user", content=text))
            return self._loop.run_turn()
        except Exception as exc:
            logger.exception("session.turn_failed", extra={"extra": {"error": str(exc)}})
            self.notify(f"Error: {exc}", "danger")
            return TurnOutcome(status="failed", phases=list(self._loop.trace), error=str(exc))
        finally:
            self._busy.release()

    def clear(self) -> None:
        if self.is_processing:
            raise TurnInProgressError(code="TURN_IN_PROGRESS", message="cannot clear during a turn")
        self.store.clear()
        self.notify("Chat cleared successfully!", "info")

    def notify(self, message: str, level: str = "info") -> None:
        self._notices.append(Notice(level=level, message=message))

    def _build(self, gateway: Optional[ProviderGateway], dispatcher: Optional[ToolDispatcher]) -> None:
        gateway = gateway or create_gateway(self.config, self._settings, notify=self.notify, rng=self._rng)
        dispatcher = dispatcher or ToolDispatcher(default_tools(self.config, self._settings))
        self._loop = AgentLoop(self.store, gateway, dispatcher, self.registry)
