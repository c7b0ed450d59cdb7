"""State definition for the single-turn LangGraph flow."""

from __future__ import annotations

from enum import Enum
from typing import List, Optional, TypedDict

from aipipe_agent.domain.models import ProviderReply
from aipipe_agent.tools.definitions import ToolCall, ToolResult


class TurnPhase(str, Enum):
    IDLE = "idle"
    AWAITING_PROVIDER = "awaiting_provider"
    DISPATCHING_TOOLS = "dispatching_tools"
    SYNTHESIZING = "synthesizing"
    DONE = "done"


class TurnState(TypedDict, total=False):
    """State shared across LangGraph nodes for one turn."""

    phase: str
    trace: List[str]
    reply: Optional[ProviderReply]
    tool_calls: List[ToolCall]
    tool_results: List[ToolResult]
    closing: Optional[str]
