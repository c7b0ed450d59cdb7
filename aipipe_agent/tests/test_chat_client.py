import httpx
import pytest

from aipipe_agent.config.settings import Settings
from aipipe_agent.domain.exceptions import AuthError, FormatError, HttpError, NetworkError, RateLimitError
from aipipe_agent.domain.models import Message, SessionConfig
from aipipe_agent.providers.chat_client import ChatCompletionClient
from aipipe_agent.tools.definitions import ToolCall
from aipipe_agent.tools.registry import ToolRegistry


def _settings():
    return Settings(model="gpt-4o-mini", max_tokens=1000, http_timeout=1.0)


def _client(kind="aipipe", credential="token-1234567890", base_url=None):
    return ChatCompletionClient(SessionConfig(provider_kind=kind, credential=credential, base_url=base_url), _settings())


class Resp:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


def _patch_client(monkeypatch, resp, captured=None):
    class Client:
        def __init__(self, *a, **kw):
            pass

        def __enter__(self):
            return self

        def __exit__(self, *a):
            return False

        def post(self, url, json=None, headers=None, **_):
            if captured is not None:
                captured.update({"url": url, "payload": json, "headers": headers})
            if isinstance(resp, Exception):
                raise resp
            return resp

    monkeypatch.setattr("httpx.Client", Client)


def test_query_builds_payload(monkeypatch):
    captured = {}
    _patch_client(
        monkeypatch,
        Resp(payload={"choices": [{"message": {"role": "assistant", "content": "ok"}}]}),
        captured,
    )
    reply = _client().query([Message(role="user", content="hi")], ToolRegistry().describe())

    assert reply.output_text == "ok"
    assert reply.tool_calls is None
    assert reply.source == "real"
    assert captured["url"] == "https://aipipe.org/openai/v1/chat/completions"
    assert captured["headers"]["Authorization"] == "Bearer token-1234567890"
    payload = captured["payload"]
    assert payload["model"] == "gpt-4o-mini"
    assert payload["max_tokens"] == 1000
    assert payload["tool_choice"] == "auto"
    assert payload["messages"] == [{"role": "user", "content": "hi"}]
    names = [t["function"]["name"] for t in payload["tools"]]
    assert names == ["google_search", "ai_pipe", "execute_js"]
    params = payload["tools"][0]["function"]["parameters"]
    assert params["type"] == "object"
    assert params["required"] == ["query"]
    assert params["properties"]["query"]["type"] == "string"


def test_base_url_by_kind_and_override(monkeypatch):
    assert _client(kind="openai").base_url == "https://api.openai.com/v1"
    assert _client(base_url="http://localhost:8000/v1/").base_url == "http://localhost:8000/v1"


def test_parse_tool_calls(monkeypatch):
    _patch_client(
        monkeypatch,
        Resp(
            payload={
                "choices": [
                    {
                        "message": {
                            "role": "assistant",
                            "content": "",
                            "tool_calls": [
                                {
                                    "id": "call_1",
                                    "type": "function",
                                    "function": {"name": "google_search", "arguments": '{"query": "rust"}'},
                                },
                                {
                                    "id": "call_2",
                                    "type": "function",
                                    "function": {"name": "execute_js", "arguments": "not json"},
                                },
                            ],
                        }
                    }
                ]
            }
        ),
    )
    reply = _client().query([Message(role="user", content="hi")], ())
    assert reply.output_text == ""
    assert [c.id for c in reply.tool_calls] == ["call_1", "call_2"]
    assert reply.tool_calls[0].arguments == {"query": "rust"}
    assert reply.tool_calls[1].arguments == {"_raw": "not json"}


def test_history_with_tool_calls_is_serialized(monkeypatch):
    captured = {}
    _patch_client(monkeypatch, Resp(payload={"choices": [{"message": {"content": "fine"}}]}), captured)
    call = ToolCall(id="call_1", name="google_search", arguments={"query": "rust"})
    history = [
        Message(role="user", content="rust"),
        Message(role="assistant", content="", tool_calls=(call,)),
        Message(role="tool", content="results", tool_call_id="call_1"),
    ]
    _client().query(history, ())
    msgs = captured["payload"]["messages"]
    assert msgs[1]["content"] is None
    assert msgs[1]["tool_calls"][0]["function"] == {"name": "google_search", "arguments": '{"query": "rust"}'}
    assert msgs[2] == {"role": "tool", "content": "results", "tool_call_id": "call_1"}
    assert "tools" not in captured["payload"]


def test_non_success_status_raises_http_error(monkeypatch):
    _patch_client(monkeypatch, Resp(status_code=500, text="boom"))
    with pytest.raises(HttpError) as info:
        _client().query([Message(role="user", content="hi")], ())
    assert info.value.kind == "HTTP_ERROR"
    assert info.value.http_status == 500


def test_rate_limit(monkeypatch):
    _patch_client(monkeypatch, Resp(status_code=429))
    with pytest.raises(RateLimitError):
        _client().query([Message(role="user", content="hi")], ())


def test_network_error(monkeypatch):
    _patch_client(monkeypatch, httpx.ConnectError("unreachable"))
    with pytest.raises(NetworkError):
        _client().query([Message(role="user", content="hi")], ())


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"choices": []},
        {"choices": [{"message": {"role": "assistant", "content": None}}]},
        {"choices": [{"message": {"role": "assistant", "content": 42}}]},
        ValueError("not json"),
    ],
)
def test_invalid_shape_raises_format_error(monkeypatch, payload):
    _patch_client(monkeypatch, Resp(payload=payload))
    with pytest.raises(FormatError):
        _client().query([Message(role="user", content="hi")], ())


def test_missing_credential_raises_auth_error():
    with pytest.raises(AuthError):
        _client(credential=None).query([Message(role="user", content="hi")], ())
