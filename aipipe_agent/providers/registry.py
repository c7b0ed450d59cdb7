"""Provider 端点配置。

真实 Provider 都走 OpenAI 兼容的 chat/completions 协议，差别只在基础 URL：
- aipipe: 通过 AI Pipe 代理访问，凭证为 AI Pipe token。
- openai: 直连 OpenAI，凭证为 API key。
"""

from dataclasses import dataclass
from typing import Mapping, Optional


@dataclass(frozen=True)
class ProviderConfig:
    """某个真实 Provider 的整体配置。"""

    name: str
    base_url: str


AIPIPE_CONFIG = ProviderConfig(name="aipipe", base_url="https://aipipe.org/openai/v1")

OPENAI_CONFIG = ProviderConfig(name="openai", base_url="https://api.openai.com/v1")


PROVIDER_REGISTRY: Mapping[str, ProviderConfig] = {
    "aipipe": AIPIPE_CONFIG,
    "openai": OPENAI_CONFIG,
}


def get_provider_config(name: str) -> ProviderConfig:
    """根据名称获取 ProviderConfig，名称不区分大小写。"""

    key = name.lower()
    for k, cfg in PROVIDER_REGISTRY.items():
        if k.lower() == key:
            return cfg
    raise KeyError(f"Unknown provider: {name!r}")


def resolve_base_url(kind: Optional[str], override: Optional[str] = None) -> str:
    """优先使用会话配置里的 base_url，否则按 Provider 类型取默认值。"""

    if override:
        return override.rstrip("/")
    if kind and kind.lower() in PROVIDER_REGISTRY:
        return get_provider_config(kind).base_url
    return AIPIPE_CONFIG.base_url
