"""LangGraph construction and node implementations for one turn.

awaiting_provider -> (done | dispatching_tools -> synthesizing -> done)

At most one round of tool calls per turn: the tools node never routes back
to the provider node.
"""

from __future__ import annotations

from typing import Callable, Optional, Sequence

from langgraph.graph import END, StateGraph
from langgraph.graph.state import CompiledStateGraph

from aipipe_agent.domain.conversation import ConversationStore
from aipipe_agent.domain.models import Message
from aipipe_agent.flows.state import TurnPhase, TurnState
from aipipe_agent.infrastructure.logging.logger import logger
from aipipe_agent.providers.gateway import ProviderGateway
from aipipe_agent.tools.definitions import ToolResult
from aipipe_agent.tools.executor import ToolDispatcher
from aipipe_agent.tools.registry import ToolRegistry

PhaseListener = Callable[[TurnPhase], None]

WORKFLOW_MARKER = "AI Pipe Workflow Executed"
SEARCH_MARKER = "Search Results"
CODE_MARKER = "Code executed successfully"

WORKFLOW_CLOSING = (
    "The AI workflow has been completed! The results look good. "
    "Let me know if you need any other AI processing."
)
SEARCH_CLOSING = (
    "I found some great resources for you! These should help with your query. "
    "Would you like me to search for anything more specific?"
)
CODE_CLOSING = "The code has been executed successfully! Is there anything else you'd like me to calculate or run?"
GENERIC_CLOSING = "Task completed! How else can I assist you?"


def synthesize_closing(results: Sequence[ToolResult]) -> str:
    """Pick the closing reply from the first tool result's content."""

    content = results[0].content if results else ""
    if WORKFLOW_MARKER in content:
        return WORKFLOW_CLOSING
    if SEARCH_MARKER in content:
        return SEARCH_CLOSING
    if CODE_MARKER in content:
        return CODE_CLOSING
    return GENERIC_CLOSING


def _enter(state: TurnState, phase: TurnPhase, listener: Optional[PhaseListener]) -> TurnState:
    if listener:
        listener(phase)
    logger.info("turn.phase", extra={"extra": {"phase": phase.value}})
    return {"phase": phase.value, "trace": list(state.get("trace", [])) + [phase.value]}


def provider_node(
    state: TurnState,
    store: ConversationStore,
    gateway: ProviderGateway,
    registry: ToolRegistry,
    listener: Optional[PhaseListener] = None,
) -> TurnState:
    update = _enter(state, TurnPhase.AWAITING_PROVIDER, listener)
    reply = gateway.query(store.snapshot(), registry.describe())
    tool_calls = list(reply.tool_calls or [])
    if reply.output_text or tool_calls:
        store.append(
            Message(
                role="assistant",
                content=reply.output_text or "",
                tool_calls=tuple(tool_calls) or None,
            )
        )
    update.update({"reply": reply, "tool_calls": tool_calls})
    return update


def tools_node(
    state: TurnState,
    store: ConversationStore,
    dispatcher: ToolDispatcher,
    listener: Optional[PhaseListener] = None,
) -> TurnState:
    update = _enter(state, TurnPhase.DISPATCHING_TOOLS, listener)
    results = dispatcher.dispatch_all(state.get("tool_calls", []))
    for result in results:
        store.append(Message(role="tool", content=result.content, tool_call_id=result.call_id))
    update["tool_results"] = results
    return update


def synthesize_node(
    state: TurnState,
    store: ConversationStore,
    listener: Optional[PhaseListener] = None,
) -> TurnState:
    update = _enter(state, TurnPhase.SYNTHESIZING, listener)
    closing = synthesize_closing(state.get("tool_results", []))
    store.append(Message(role="assistant", content=closing))
    update["closing"] = closing
    return update


def done_node(state: TurnState, listener: Optional[PhaseListener] = None) -> TurnState:
    return _enter(state, TurnPhase.DONE, listener)


def provider_router(state: TurnState) -> str:
    if state.get("tool_calls"):
        return "tools"
    return "done"


def build_turn_graph(
    store: ConversationStore,
    gateway: ProviderGateway,
    dispatcher: ToolDispatcher,
    registry: ToolRegistry,
    listener: Optional[PhaseListener] = None,
) -> CompiledStateGraph:
    graph = StateGraph(TurnState)
    graph.add_node("provider", lambda s: provider_node(s, store, gateway, registry, listener))
    graph.add_node("tools", lambda s: tools_node(s, store, dispatcher, listener))
    graph.add_node("synthesize", lambda s: synthesize_node(s, store, listener))
    graph.add_node("done", lambda s: done_node(s, listener))
    graph.set_entry_point("provider")
    graph.add_conditional_edges("provider", provider_router, {"tools": "tools", "done": "done"})
    graph.add_edge("tools", "synthesize")
    graph.add_edge("synthesize", "done")
    graph.add_edge("done", END)
    return graph.compile()
