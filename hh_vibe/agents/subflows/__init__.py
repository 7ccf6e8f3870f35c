"""Sub-flow handlers for the chat orchestrator.

Each handler takes a SubflowContext and returns a SubflowResult; the
orchestrator decides which one runs.

Modules:
    base: Context/result types and LLM fallback helpers
    greeting: Greeting and scenario choice
    uncertain: Soft questions, final profession, confirmation
    clarification: Pre-generation clarification sequence
    game_day: Interactive working day
    comparison: Two-profession comparison
    explainers: Impact, similar, tasks, career path, levels
    cards: Save and share
    search: Profession search ladder
    suggestions: Clarifying questions and suggestions for undecided users
    general: Free-form chat
"""

from hh_vibe.agents.subflows.base import Handler, SubflowContext, SubflowResult
from hh_vibe.agents.subflows.cards import handle_save_card, handle_share_card
from hh_vibe.agents.subflows.clarification import (
    handle_clarification_step,
    handle_profession_clarification,
)
from hh_vibe.agents.subflows.comparison import handle_compare_intent, handle_compare_reply
from hh_vibe.agents.subflows.explainers import (
    handle_explain_levels,
    handle_show_career_details,
    handle_show_impact,
    handle_show_similar,
    handle_show_tasks,
)
from hh_vibe.agents.subflows.game_day import (
    handle_game_day,
    handle_game_day_intent,
    handle_game_day_profession,
)
from hh_vibe.agents.subflows.general import handle_general_chat
from hh_vibe.agents.subflows.greeting import greeting, handle_greeting_reply
from hh_vibe.agents.subflows.search import handle_search_intent
from hh_vibe.agents.subflows.suggestions import (
    handle_clarification_intent,
    handle_uncertain_intent,
)
from hh_vibe.agents.subflows.uncertain import (
    handle_profession_confirmation,
    handle_uncertain_flow,
)

__all__ = [
    # Types
    "Handler",
    "SubflowContext",
    "SubflowResult",
    # Greeting
    "greeting",
    "handle_greeting_reply",
    # In-progress sub-flows
    "handle_clarification_step",
    "handle_compare_reply",
    "handle_game_day",
    "handle_game_day_profession",
    "handle_profession_clarification",
    "handle_profession_confirmation",
    "handle_uncertain_flow",
    # Intent handlers
    "handle_clarification_intent",
    "handle_compare_intent",
    "handle_explain_levels",
    "handle_game_day_intent",
    "handle_general_chat",
    "handle_save_card",
    "handle_search_intent",
    "handle_share_card",
    "handle_show_career_details",
    "handle_show_impact",
    "handle_show_similar",
    "handle_show_tasks",
    "handle_uncertain_intent",
]
