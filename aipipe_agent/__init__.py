"""AI Pipe Agent 顶层包。

该包提供单轮工具调用聊天 Agent 的核心实现：
配置加载、领域模型、Provider 选择与回退（真实 chat/completions 与规则模拟）、
工具分发（搜索、AI 工作流、沙箱 JavaScript）、单轮状态机与会话对象。
"""

from aipipe_agent.agents.session import Session
from aipipe_agent.agents.agent_loop import TurnOutcome

__all__ = ["Session", "TurnOutcome"]
