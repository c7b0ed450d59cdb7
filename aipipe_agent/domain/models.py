"""统一的对话与结果数据模型。

本模块定义了 Agent 内部在不同 Provider 之间共享的标准数据结构：

- Message: 会话中的一条消息（user/assistant/tool），追加后不可变。
- ChatRequest: 发给 chat/completions 端点的完整请求。
- ProviderReply: Provider 返回的统一结果（文本 + 可选的工具调用）。
- SessionConfig: 会话级 Provider 配置。

所有 Provider（真实的 ChatCompletionClient 与 SimulatedProvider）都只依赖这些模型。
"""

from dataclasses import dataclass
from typing import Literal, Optional, List, Tuple, TYPE_CHECKING

from aipipe_agent.config.settings import ProviderKind, Settings

if TYPE_CHECKING:
    # 仅在类型检查时导入，避免运行时循环依赖
    from aipipe_agent.tools.definitions import ToolCall, ToolDef


Role = Literal["user", "assistant", "tool"]


@dataclass(frozen=True)
class Message:
    """会话中的一条消息。

    - role: 消息角色。
    - content: 纯文本内容。
    - tool_call_id: role 为 "tool" 时关联的工具调用 ID。
    - tool_calls: assistant 消息发起的工具调用，真实 Provider 需要它来
      匹配随后的 tool 消息。
    """

    role: Role
    content: str
    tool_call_id: Optional[str] = None
    tool_calls: Optional[Tuple["ToolCall", ...]] = None


@dataclass
class ChatRequest:
    """一次 chat/completions 请求。"""

    model: str
    messages: List[Message]
    max_tokens: int
    system_prompt: Optional[str] = None
    tools: Optional[List["ToolDef"]] = None
    tool_choice: Literal["auto", "none", "required"] = "auto"


@dataclass
class ProviderReply:
    """Provider 的统一响应。

    source 标记实际作答的 Provider（"real" 或 "simulated"），用于日志与回退统计。
    """

    output_text: Optional[str] = None
    tool_calls: Optional[List["ToolCall"]] = None
    source: str = "simulated"


@dataclass(frozen=True)
class SessionConfig:
    """会话级 Provider 配置。

    provider_kind 为 None 表示尚未配置，此时不允许发送消息。
    """

    provider_kind: Optional[ProviderKind] = None
    credential: Optional[str] = None
    base_url: Optional[str] = None

    @property
    def is_configured(self) -> bool:
        return self.provider_kind is not None

    @property
    def real_capable(self) -> bool:
        """存在凭证，或使用集成代理（aipipe）时才会尝试真实 Provider。"""
        if self.provider_kind == "simulated":
            return False
        return bool(self.credential) or self.provider_kind == "aipipe"

    @classmethod
    def from_settings(cls, cfg: Settings) -> "SessionConfig":
        return cls(provider_kind=cfg.provider_kind, credential=cfg.api_key, base_url=cfg.base_url)
