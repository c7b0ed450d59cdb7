"""对外 API 服务模块。

提供简化的函数接口供上层应用（聊天界面、脚本）调用。
"""

from typing import Optional, Dict, Any, List

from aipipe_agent.agents.session import Session
from aipipe_agent.config.settings import ProviderKind
from aipipe_agent.infrastructure.logging.logger import logger


_session: Optional[Session] = None


def get_default_session() -> Session:
    """获取默认会话实例（单例），配置取自 settings。"""
    global _session
    if _session is None:
        _session = Session()
    return _session


def reset_default_session(session: Optional[Session] = None) -> None:
    """替换（或丢弃）默认会话，主要供测试使用。"""
    global _session
    _session = session


def configure_provider(
    provider_kind: Optional[ProviderKind],
    credential: Optional[str] = None,
    base_url: Optional[str] = None,
) -> None:
    get_default_session().configure(provider_kind, credential=credential, base_url=base_url)


def send_message(user_input: str) -> Dict[str, Any]:
    """发送一条用户消息并执行一轮对话。

    Args:
        user_input: 用户输入内容

    Returns:
        包含状态、阶段轨迹、本轮新增消息与最终回复的字典；空白输入返回 status="ignored"

    Raises:
        AuthError: 尚未配置 Provider
        TurnInProgressError: 上一轮尚未结束
    """
    session = get_default_session()
    try:
        outcome = session.send(user_input)
    except Exception as e:
        logger.error(f"Send failed: {e}", extra={"extra": {"error": str(e)}})
        raise
    if outcome is None:
        return {"status": "ignored", "phases": [], "messages": [], "reply": ""}
    return {
        "status": outcome.status,
        "phases": outcome.phases,
        "source": outcome.source,
        "error": outcome.error,
        "messages": [_message_to_dict(m) for m in outcome.messages],
        "reply": outcome.final_text,
    }


def clear_chat() -> None:
    get_default_session().clear()


def get_messages() -> List[Dict[str, Any]]:
    """获取当前会话的全部消息。"""
    return [_message_to_dict(m) for m in get_default_session().messages]


def get_notices() -> List[Dict[str, str]]:
    return [{"level": n.level, "message": n.message} for n in get_default_session().notices]


def _message_to_dict(message) -> Dict[str, Any]:
    data: Dict[str, Any] = {"role": message.role, "content": message.content}
    if message.tool_call_id:
        data["tool_call_id"] = message.tool_call_id
    if message.tool_calls:
        data["tool_calls"] = [
            {"id": call.id, "name": call.name, "arguments": call.arguments}
            for call in message.tool_calls
        ]
    return data
