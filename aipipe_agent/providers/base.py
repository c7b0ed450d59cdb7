"""Provider 抽象接口。

AgentLoop 不直接依赖具体的 HTTP 客户端，而是依赖此协议：

- 真实 Provider（ChatCompletionClient）把会话快照和工具描述转成 HTTP 请求。
- SimulatedProvider 用规则在本地生成同样结构的 ProviderReply。

ProviderGateway 在两者之间选择并负责回退。
"""

from typing import Protocol, Sequence

from aipipe_agent.domain.models import Message, ProviderReply
from aipipe_agent.tools.definitions import ToolDef


class Provider(Protocol):
    """LLM Provider 协议。

    实现者需要提供：
    - name: Provider 名称，用于日志。
    - query(messages, tools): 返回统一的 ProviderReply。
    """

    name: str

    def query(self, messages: Sequence[Message], tools: Sequence[ToolDef]) -> ProviderReply:
        ...
