from aipipe_agent.flows.graph import build_turn_graph, synthesize_closing
from aipipe_agent.flows.state import TurnPhase, TurnState

__all__ = ["TurnPhase", "TurnState", "build_turn_graph", "synthesize_closing"]
