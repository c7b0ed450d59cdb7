import pytest
from pydantic import ValidationError as PydanticValidationError

from aipipe_agent.config.settings import Settings
from aipipe_agent.domain.models import SessionConfig
from aipipe_agent.providers.registry import resolve_base_url


def test_defaults():
    cfg = Settings()
    assert cfg.model == "gpt-4o-mini"
    assert cfg.max_tokens == 1000
    assert cfg.workflow_max_tokens == 500
    assert cfg.search_endpoint.startswith("https://aipipe.org/proxy/")


def test_short_api_key_rejected():
    with pytest.raises(PydanticValidationError):
        Settings(api_key="short")


def test_empty_api_key_becomes_none():
    assert Settings(api_key="").api_key is None


def test_yaml_file_is_lowest_priority(tmp_path, monkeypatch):
    path = tmp_path / "agent.yaml"
    path.write_text("model: gpt-4o\nmax_tokens: 256\nprovider_kind: openai\n", encoding="utf-8")
    monkeypatch.setenv("AGENT_CONFIG_FILE", str(path))
    monkeypatch.setenv("MAX_TOKENS", "512")

    cfg = Settings()
    assert cfg.model == "gpt-4o"
    assert cfg.max_tokens == 512
    assert cfg.provider_kind == "openai"


def test_session_config_from_settings():
    cfg = Settings(provider_kind="aipipe", api_key="token-1234567890", base_url="http://localhost/v1")
    config = SessionConfig.from_settings(cfg)
    assert config.is_configured
    assert config.credential == "token-1234567890"
    assert config.base_url == "http://localhost/v1"


@pytest.mark.parametrize(
    "kind, credential, expected",
    [
        ("aipipe", None, True),
        ("aipipe", "token-1234567890", True),
        ("openai", "sk-1234567890", True),
        ("openai", None, False),
        ("simulated", "sk-1234567890", False),
        (None, None, False),
    ],
)
def test_real_capable(kind, credential, expected):
    assert SessionConfig(provider_kind=kind, credential=credential).real_capable is expected


def test_resolve_base_url():
    assert resolve_base_url("aipipe", None) == "https://aipipe.org/openai/v1"
    assert resolve_base_url("openai", None) == "https://api.openai.com/v1"
    assert resolve_base_url("simulated", None) == "https://aipipe.org/openai/v1"
    assert resolve_base_url("openai", "http://proxy/v1/") == "http://proxy/v1"
