"""Provider 选择与回退。

- 会话具备真实调用能力（有凭证，或使用 aipipe 代理）时，先调用一次真实 Provider。
- 真实调用任何失败都记录日志，并仅在本轮改用 SimulatedProvider。
- 回退通知每个配置只发一次（重新配置会新建 gateway），避免每轮重复提示。
- 不重试，也没有第二级回退：SimulatedProvider 不会失败。
"""

from typing import Callable, Optional, Sequence

from aipipe_agent.domain.exceptions import AuthError, BusinessError
from aipipe_agent.domain.models import Message, ProviderReply, SessionConfig
from aipipe_agent.infrastructure.logging.logger import logger
from aipipe_agent.providers.base import Provider
from aipipe_agent.tools.definitions import ToolDef


Notifier = Callable[[str, str], None]

FALLBACK_NOTICE = "LLM API error, switching to simulation mode"


class ProviderGateway:
    def __init__(
        self,
        config: SessionConfig,
        real: Provider,
        simulated: Provider,
        notify: Optional[Notifier] = None,
    ):
        self._config = config
        self._real = real
        self._simulated = simulated
        self._notify = notify
        self._fallback_notified = False

    def query(self, messages: Sequence[Message], tools: Sequence[ToolDef]) -> ProviderReply:
        if not self._config.is_configured:
            raise AuthError(code="AUTH_REQUIRED", message="No LLM provider configured")
        if not self._config.real_capable:
            return self._simulated.query(messages, tools)

        logger.info(
            "gateway.real_query",
            extra={"extra": {"provider": self._real.name, "message_count": len(messages)}},
        )
        try:
            return self._real.query(messages, tools)
        except Exception as exc:
            kind = exc.code if isinstance(exc, BusinessError) else type(exc).__name__
            logger.warning(
                "gateway.fallback",
                extra={"extra": {"provider": self._real.name, "kind": kind, "error": str(exc)}},
            )
            if self._notify and not self._fallback_notified:
                self._fallback_notified = True
                self._notify(FALLBACK_NOTICE, "warning")
            return self._simulated.query(messages, tools)
