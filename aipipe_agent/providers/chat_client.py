"""OpenAI 兼容的 chat/completions 客户端（真实 Provider）。

本模块负责：

1. 接收会话快照与工具描述，构造统一的 ChatRequest。
2. 将其转换为 chat/completions 的 HTTP 请求：
   - URL: {base_url}/chat/completions
   - 认证: Authorization: Bearer <credential>
3. 调用 HTTP 接口并把网络/状态码/结构错误映射为 ProviderError 子类。
4. 将响应 JSON 解析为 ProviderReply（含工具调用）。

ai_pipe 工具复用同一个客户端，只是换成固定的 system 提示词且不带工具。
"""

import json
from typing import Any, Dict, List, Optional, Sequence

import httpx

from aipipe_agent.config.settings import Settings, settings
from aipipe_agent.domain.exceptions import AuthError, FormatError, HttpError, NetworkError, RateLimitError
from aipipe_agent.domain.models import ChatRequest, Message, ProviderReply, SessionConfig
from aipipe_agent.providers.registry import resolve_base_url
from aipipe_agent.tools.definitions import ToolCall, ToolDef


class ChatCompletionClient:
    """真实 Provider 客户端实现。

    - name: Provider 名称（aipipe / openai），供日志使用。
    - query: Provider 协议入口，返回 ProviderReply。
    - chat: 执行一次 chat/completions 调用，返回通过校验的 assistant Message。
    """

    def __init__(self, config: SessionConfig, cfg: Settings = settings):
        self._config = config
        self._settings = cfg
        self.name = config.provider_kind or "aipipe"

    @property
    def base_url(self) -> str:
        return resolve_base_url(self._config.provider_kind, self._config.base_url)

    def query(self, messages: Sequence[Message], tools: Sequence[ToolDef]) -> ProviderReply:
        req = ChatRequest(
            model=self._settings.model,
            messages=list(messages),
            max_tokens=self._settings.max_tokens,
            tools=list(tools) or None,
            tool_choice="auto",
        )
        message = self.chat(req)
        return ProviderReply(
            output_text=message.content,
            tool_calls=list(message.tool_calls) if message.tool_calls else None,
            source="real",
        )

    def chat(self, req: ChatRequest) -> Message:
        """执行一次非流式调用。

        步骤：
        1. 校验凭证。
        2. 构造 HTTP 请求 payload。
        3. 发送请求并捕获网络错误/限流/服务端错误。
        4. 校验响应结构并解析为 Message。
        """

        if not self._config.credential:
            raise AuthError(code="AUTH_REQUIRED", message="provider credential not set", provider=self.name)
        payload = self._build_payload(req)
        try:
            with httpx.Client(timeout=self._settings.http_timeout, trust_env=False) as client:
                resp = client.post(
                    f"{self.base_url}/chat/completions",
                    json=payload,
                    headers={
                        "Authorization": f"Bearer {self._config.credential}",
                        "Content-Type": "application/json",
                    },
                )
        except httpx.RequestError as e:
            # 网络错误：DNS 失败、连接超时等
            raise NetworkError(code="NETWORK_ERROR", message=str(e), provider=self.name)
        if resp.status_code == 429:
            raise RateLimitError(code="RATE_LIMIT", message=f"{self.name} rate limit", http_status=429)
        if resp.status_code < 200 or resp.status_code >= 300:
            raise HttpError(
                code="HTTP_ERROR",
                message=f"HTTP {resp.status_code}: {resp.text}",
                http_status=resp.status_code,
            )
        try:
            data = resp.json()
        except ValueError as e:
            raise FormatError(code="FORMAT_ERROR", message=f"response is not JSON: {e}")
        return self._parse_response(data)

    def _build_payload(self, req: ChatRequest) -> Dict[str, Any]:
        msgs: List[Dict[str, Any]] = []
        if req.system_prompt:
            msgs.append({"role": "system", "content": req.system_prompt})
        msgs.extend(self._message_to_payload(m) for m in req.messages)
        payload: Dict[str, Any] = {
            "model": req.model,
            "messages": msgs,
            "max_tokens": req.max_tokens,
        }
        if req.tools:
            payload["tools"] = [self._serialize_tool(tool) for tool in req.tools]
            payload["tool_choice"] = req.tool_choice
        return payload

    def _parse_response(self, data: Any) -> Message:
        """校验并解析 choices[0].message。

        content 必须是字符串，否则视为 FormatError 交给上层回退。
        """

        choices = data.get("choices") if isinstance(data, dict) else None
        if not isinstance(choices, list) or not choices:
            raise FormatError(code="FORMAT_ERROR", message="Invalid LLM response format: no choices")
        msg = choices[0].get("message") if isinstance(choices[0], dict) else None
        if not isinstance(msg, dict) or not isinstance(msg.get("content"), str):
            raise FormatError(code="FORMAT_ERROR", message="Invalid LLM response format")
        tool_calls = self._parse_tool_calls(msg.get("tool_calls"))
        return Message(
            role="assistant",
            content=msg["content"],
            tool_calls=tuple(tool_calls) if tool_calls else None,
        )

    def _parse_tool_calls(self, raw: Any) -> List[ToolCall]:
        if not isinstance(raw, list):
            return []
        tool_calls: List[ToolCall] = []
        for idx, call in enumerate(raw):
            if not isinstance(call, dict):
                continue
            func = call.get("function") or {}
            tool_calls.append(
                ToolCall(
                    id=call.get("id") or f"tool_call_{idx}",
                    name=func.get("name") or call.get("name") or "",
                    arguments=self._parse_arguments(func.get("arguments")),
                )
            )
        return tool_calls

    def _message_to_payload(self, message: Message) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"role": message.role}
        if message.content or not message.tool_calls:
            payload["content"] = message.content
        else:
            payload["content"] = None
        if message.tool_calls:
            payload["tool_calls"] = [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {
                        "name": call.name,
                        "arguments": json.dumps(call.arguments, ensure_ascii=False),
                    },
                }
                for call in message.tool_calls
            ]
        if message.tool_call_id:
            payload["tool_call_id"] = message.tool_call_id
        return payload

    def _serialize_tool(self, tool: ToolDef) -> Dict[str, Any]:
        """把内部的 ToolDef 转成 function tool 描述。"""

        properties: Dict[str, Any] = {}
        required: List[str] = []
        for name, param in tool.params.items():
            schema = param.schema or {"type": "string"}
            if param.description:
                schema = {**schema, "description": param.description}
            properties[name] = schema
            if param.required:
                required.append(name)
        return {
            "type": "function",
            "function": {
                "name": tool.name,
                "description": tool.description,
                "parameters": {
                    "type": "object",
                    "properties": properties,
                    "required": required,
                },
            },
        }

    @staticmethod
    def _parse_arguments(raw: Optional[Any]) -> Dict[str, Any]:
        """解析工具调用的 arguments 字段。

        arguments 通常是 JSON 字符串，解析失败时保留原始字符串到 `_raw`，
        交给工具处理函数报出缺参错误。
        """

        if isinstance(raw, dict):
            return raw
        if isinstance(raw, str):
            try:
                parsed = json.loads(raw)
            except json.JSONDecodeError:
                return {"_raw": raw}
            return parsed if isinstance(parsed, dict) else {"_raw": raw}
        return {}
