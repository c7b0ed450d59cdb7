"""配置管理模块。

支持从环境变量、.env 以及 config.yaml 加载配置，优先级依次降低。
"""

import os
import warnings
from pathlib import Path
from typing import Any, Dict, Literal, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


ProviderKind = Literal["aipipe", "openai", "simulated"]


def _load_config_from_yaml() -> Dict[str, Any]:
    """从 config.yaml 加载配置（若存在）。"""
    candidates = []
    explicit = os.getenv("AGENT_CONFIG_FILE")
    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.extend([
        Path.cwd() / "config.yaml",
        Path(__file__).resolve().parents[2] / "config.yaml",
    ])

    seen: set[Path] = set()
    for path in candidates:
        if not path or path in seen:
            continue
        seen.add(path)
        try:
            if path.exists():
                data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
                if isinstance(data, dict):
                    return data
                warnings.warn(f"Config file {path} is not a mapping, ignored")
        except (OSError, yaml.YAMLError) as exc:
            warnings.warn(f"Failed to read config file {path}: {exc}")
    return {}


class Settings(BaseSettings):
    """配置设置（使用 Pydantic）。"""

    # ---- Provider 相关配置 ----
    provider_kind: Optional[ProviderKind] = Field(
        default=None,
        description="Provider 类型：aipipe（代理）、openai（直连）或 simulated；为空表示尚未配置",
    )
    api_key: Optional[str] = Field(default=None, description="Provider 凭证（AI Pipe token 或 API key）")
    base_url: Optional[str] = Field(
        default=None,
        description="chat/completions 基础 URL，为空时按 provider_kind 从 registry 取默认值",
    )
    model: str = Field(default="gpt-4o-mini", description="请求使用的模型 ID")
    max_tokens: int = Field(default=1000, ge=1, description="单次回复的最大 token 数")
    workflow_max_tokens: int = Field(default=500, ge=1, description="ai_pipe 工具请求的最大 token 数")
    http_timeout: float = Field(default=30.0, ge=1.0, description="HTTP 超时时间（秒）")

    # ---- 工具相关配置 ----
    search_endpoint: str = Field(
        default="https://aipipe.org/proxy/https://www.googleapis.com/customsearch/v1",
        description="搜索代理地址",
    )
    google_api_key: str = Field(default="YOUR_KEY", description="Custom Search API key")
    google_cx: str = Field(default="YOUR_CX", description="Custom Search engine id")
    workflow_delay: float = Field(default=1.5, ge=0.0, description="模拟工作流的人工延迟（秒）")
    js_timeout_ms: int = Field(default=2000, ge=1, description="JavaScript 执行超时（毫秒）")
    js_max_memory: int = Field(default=32 * 1024 * 1024, ge=1024 * 1024, description="JavaScript 堆内存上限（字节）")

    # ---- 模拟模式 ----
    simulate_delay: float = Field(default=0.8, ge=0.0, description="模拟 Provider 的人工延迟（秒）")
    random_seed: Optional[int] = Field(default=None, description="模拟回复随机源的种子")

    # ---- 会话 ----
    max_notices: int = Field(default=50, ge=1, description="会话保留的最近通知条数")

    # ---- 日志 ----
    log_dir: str = Field(default="logs", description="日志目录")
    log_level: str = Field(default="INFO", description="日志级别")
    log_redact_content: bool = Field(default=False, description="是否脱敏日志内容")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @staticmethod
    def _config_source() -> Dict[str, Any]:
        return _load_config_from_yaml()

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, v: Optional[str]) -> Optional[str]:
        if v and len(v) < 10:
            raise ValueError("API key seems too short")
        return v or None

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            cls._config_source,
            file_secret_settings,
        )


settings = Settings()
