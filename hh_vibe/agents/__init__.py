"""Chat agent for HH Vibe.

The chat is a stateless LangGraph graph: every turn receives the message,
the client-held history and persona, and returns the next assistant message.
Conversation position travels in the metadata of the last assistant message.

Modules:
    intent: Intent classification
    persona: Persona detection and merge rules
    state: Sub-flow tagged union and graph state
    subflows: One handler per sub-flow / intent
    orchestrator: Priority-ordered routing graph
"""

from hh_vibe.agents.intent import Intent, IntentResult, classify_intent
from hh_vibe.agents.orchestrator import INTENT_HANDLERS, ROUTES, ChatOrchestrator, select_route
from hh_vibe.agents.persona import detect_persona, merge_persona
from hh_vibe.agents.state import (
    ChatAgentState,
    SubflowState,
    parse_subflow_state,
    state_from_history,
)

__all__ = [
    # Orchestrator
    "ChatOrchestrator",
    "INTENT_HANDLERS",
    "ROUTES",
    "select_route",
    # Intent
    "Intent",
    "IntentResult",
    "classify_intent",
    # Persona
    "detect_persona",
    "merge_persona",
    # State
    "ChatAgentState",
    "SubflowState",
    "parse_subflow_state",
    "state_from_history",
]
