from typing import List, Optional, Sequence, Tuple

from .exceptions import ValidationError
from .models import Message


def last_user_message(messages: Sequence[Message]) -> Optional[Message]:
    """从后向前找最近一条 user 消息。"""
    for message in reversed(messages):
        if message.role == "user":
            return message
    return None


class ConversationStore:
    """会话内的有序消息历史，只追加、整体清空。

    同一轮对话内只有 AgentLoop 写入，调用方保证轮次串行，因此不加锁。
    """

    def __init__(self) -> None:
        self._messages: List[Message] = []

    def append(self, message: Message) -> None:
        if not message.role or message.content is None:
            raise ValidationError(code="VALIDATION_ERROR", message="message requires role and content")
        self._messages.append(message)

    def snapshot(self) -> Tuple[Message, ...]:
        return tuple(self._messages)

    def clear(self) -> None:
        self._messages = []

    def last_user_message(self) -> Optional[Message]:
        return last_user_message(self._messages)

    def __len__(self) -> int:
        return len(self._messages)
