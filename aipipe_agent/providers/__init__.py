"""LLM Provider 集成层。

该包下的模块负责：
- 定义 Provider 抽象接口 (base)。
- 维护真实 Provider 的端点配置 (registry)。
- 提供真实客户端 (chat_client)、规则模拟 (simulated) 与选择/回退逻辑 (gateway)。
"""

import random
from typing import Optional

from aipipe_agent.config.settings import Settings, settings
from aipipe_agent.domain.models import SessionConfig
from aipipe_agent.providers.chat_client import ChatCompletionClient
from aipipe_agent.providers.gateway import Notifier, ProviderGateway
from aipipe_agent.providers.simulated import SimulatedProvider


def create_gateway(
    config: SessionConfig,
    cfg: Settings = settings,
    notify: Optional[Notifier] = None,
    rng: Optional[random.Random] = None,
) -> ProviderGateway:
    """根据会话配置创建 ProviderGateway，模拟 Provider 的随机源与延迟取自配置。"""

    simulated = SimulatedProvider(
        rng=rng or random.Random(cfg.random_seed),
        delay=cfg.simulate_delay,
    )
    return ProviderGateway(
        config=config,
        real=ChatCompletionClient(config, cfg),
        simulated=simulated,
        notify=notify,
    )
