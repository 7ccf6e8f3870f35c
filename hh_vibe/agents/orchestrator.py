"""Dialogue orchestrator: one chat turn as a LangGraph graph.

Architecture:
    receive_message → [empty history?]
        ├─ yes → greeting → finalize
        └─ no  → analyze (intent + persona) → [first matching route] →
                 <route node> → finalize
    → END

Route priority (first match wins; in-progress sub-flows beat the classifier):

    1.  greeting_reply            previous message was the greeting
    2.  game_day                  game day in progress
    3.  game_day_profession       waiting for a profession for a game day
    4.  compare_reply             waiting for two professions to compare
    5.  uncertain_flow            soft-question flow, fewer than 7 answers
    6.  profession_confirmation   waiting for "do you like it?"
    7.  result_intent             show_impact, show_similar, show_tasks,
                                  show_career_details, explain_levels,
                                  save_card, share_card,
                                  compare_professions, game_day
    8.  clarification_step        level / work format / ... / motivation
    9.  profession_clarification  "what do you mean by X?" answered
    10. uncertain                 uncertain intent or uncertain persona
    11. search                    search_profession intent
    12. clarification             clarification intent
    13. general_chat              everything else

The backend holds no session memory: all state arrives in the request
(history, persona) and leaves in the response. Dependencies are injected
through the constructor, so tests can pass a mock LLM and market.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from langgraph.graph import END, StateGraph

from hh_vibe.adapters.market import MarketDataAdapter
from hh_vibe.agents.intent import Intent, IntentResult, classify_intent
from hh_vibe.agents.persona import detect_persona
from hh_vibe.agents.state import (
    AwaitingCompareProfessions,
    AwaitingGameDayProfession,
    AwaitingProfessionConfirmation,
    ChatAgentState,
    ClarificationInProgress,
    GameDayInProgress,
    Greeting,
    Idle,
    ProfessionClarification,
    UncertainFlow,
    state_from_history,
)
from hh_vibe.agents.subflows import (
    Handler,
    SubflowContext,
    SubflowResult,
    greeting,
    handle_clarification_intent,
    handle_clarification_step,
    handle_compare_intent,
    handle_compare_reply,
    handle_explain_levels,
    handle_game_day,
    handle_game_day_intent,
    handle_game_day_profession,
    handle_general_chat,
    handle_greeting_reply,
    handle_profession_clarification,
    handle_profession_confirmation,
    handle_save_card,
    handle_search_intent,
    handle_share_card,
    handle_show_career_details,
    handle_show_impact,
    handle_show_similar,
    handle_show_tasks,
    handle_uncertain_flow,
    handle_uncertain_intent,
)
from hh_vibe.providers.llm.base import LLMProvider
from hh_vibe.schemas.chat import ChatRequest, ChatResponse, Persona, ResponseMessage
from hh_vibe.services.card_store import CardStore
from hh_vibe.services.profession_catalog import ProfessionCatalog

logger = logging.getLogger(__name__)

FALLBACK_CONTENT = "Как я могу помочь?"

_GREETING_NODE = "greeting"
_ANALYZE_NODE = "analyze"
_FINALIZE_NODE = "finalize"


# =============================================================================
# Routes
# =============================================================================

# Classifier intents that bypass the remaining sub-flow checks.
INTENT_HANDLERS: dict[Intent, Handler] = {
    Intent.SHOW_IMPACT: handle_show_impact,
    Intent.SHOW_SIMILAR: handle_show_similar,
    Intent.SHOW_TASKS: handle_show_tasks,
    Intent.SHOW_CAREER_DETAILS: handle_show_career_details,
    Intent.EXPLAIN_LEVELS: handle_explain_levels,
    Intent.SAVE_CARD: handle_save_card,
    Intent.SHARE_CARD: handle_share_card,
    Intent.COMPARE_PROFESSIONS: handle_compare_intent,
    Intent.GAME_DAY: handle_game_day_intent,
}


async def handle_result_intent(ctx: SubflowContext) -> SubflowResult:
    return await INTENT_HANDLERS[ctx.intent.intent](ctx)


def _intent(state: ChatAgentState) -> Intent:
    result = state.get("intent")
    return result.intent if result else Intent.GENERAL_CHAT


def _persona_uncertain(state: ChatAgentState) -> bool:
    persona = state.get("persona")
    return bool(persona and persona.is_uncertain)


def _in_state(*kinds: type) -> Callable[[ChatAgentState], bool]:
    def guard(state: ChatAgentState) -> bool:
        return isinstance(state.get("subflow"), kinds)

    return guard


def _uncertain_flow_active(state: ChatAgentState) -> bool:
    subflow = state.get("subflow")
    return isinstance(subflow, UncertainFlow) and subflow.is_active


@dataclass(frozen=True)
class Route:
    """One entry of the priority cascade.

    Attributes:
        name: Graph node name; also reported in logs.
        guard: Predicate over the graph state.
        handler: Sub-flow handler to run when the guard matches.
    """

    name: str
    guard: Callable[[ChatAgentState], bool]
    handler: Handler


ROUTES: tuple[Route, ...] = (
    Route("greeting_reply", _in_state(Greeting), handle_greeting_reply),
    Route("game_day", _in_state(GameDayInProgress), handle_game_day),
    Route(
        "game_day_profession",
        _in_state(AwaitingGameDayProfession),
        handle_game_day_profession,
    ),
    Route("compare_reply", _in_state(AwaitingCompareProfessions), handle_compare_reply),
    Route("uncertain_flow", _uncertain_flow_active, handle_uncertain_flow),
    Route(
        "profession_confirmation",
        _in_state(AwaitingProfessionConfirmation),
        handle_profession_confirmation,
    ),
    Route("result_intent", lambda s: _intent(s) in INTENT_HANDLERS, handle_result_intent),
    Route(
        "clarification_step",
        _in_state(ClarificationInProgress),
        handle_clarification_step,
    ),
    Route(
        "profession_clarification",
        _in_state(ProfessionClarification),
        handle_profession_clarification,
    ),
    Route(
        "uncertain",
        lambda s: _intent(s) is Intent.UNCERTAIN or _persona_uncertain(s),
        handle_uncertain_intent,
    ),
    Route("search", lambda s: _intent(s) is Intent.SEARCH_PROFESSION, handle_search_intent),
    Route(
        "clarification",
        lambda s: _intent(s) is Intent.CLARIFICATION,
        handle_clarification_intent,
    ),
    Route("general_chat", lambda s: True, handle_general_chat),
)


def select_route(state: ChatAgentState) -> str:
    """Name of the first route whose guard matches."""
    return next(route.name for route in ROUTES if route.guard(state))


def route_after_receive(state: ChatAgentState) -> str:
    """Empty history gets the greeting; everything else is analyzed."""
    return _GREETING_NODE if not state.get("history") else _ANALYZE_NODE


# =============================================================================
# Orchestrator
# =============================================================================


class ChatOrchestrator:
    """Runs one chat turn.

    Args:
        llm: LLM provider for every call in the turn.
        market: Job-market adapter.
        store: Profession card store.
        base_url: Public site URL used in share links.
    """

    def __init__(
        self,
        llm: LLMProvider,
        market: MarketDataAdapter,
        store: CardStore,
        base_url: str,
    ) -> None:
        self.llm = llm
        self.market = market
        self.store = store
        self.base_url = base_url
        self._graph = self._create_graph().compile()

    # -------------------------------------------------------------------------
    # Nodes
    # -------------------------------------------------------------------------

    async def receive_message(self, state: ChatAgentState) -> ChatAgentState:
        """Decode the sub-flow state and default the persona."""
        new_state: ChatAgentState = dict(state)  # type: ignore[assignment]
        history = state.get("history") or []
        new_state["history"] = history
        new_state["subflow"] = state_from_history(history) if history else Idle()
        new_state["route"] = None
        new_state["response"] = None
        return new_state

    async def greet(self, state: ChatAgentState) -> ChatAgentState:
        result = greeting(state.get("persona"))
        return self._apply(state, _GREETING_NODE, result, state.get("persona"))

    async def analyze(self, state: ChatAgentState) -> ChatAgentState:
        """Classify the message and re-detect the persona.

        Runs on every turn with history, before any route is chosen.
        """
        new_state: ChatAgentState = dict(state)  # type: ignore[assignment]
        message = state["message"]
        history = state["history"]

        new_state["catalog"] = await ProfessionCatalog.load(self.store)
        new_state["intent"] = await classify_intent(self.llm, message, history)
        new_state["persona"] = await detect_persona(
            self.llm, message, history, state.get("persona")
        )
        return new_state

    def _route_node(self, route: Route) -> Callable:
        async def run(state: ChatAgentState) -> ChatAgentState:
            ctx = self._context(state)
            result = await route.handler(ctx)
            return self._apply(state, route.name, result, ctx.persona)

        run.__name__ = route.name
        return run

    async def finalize(self, state: ChatAgentState) -> ChatAgentState:
        """Guarantee a non-empty reply."""
        new_state: ChatAgentState = dict(state)  # type: ignore[assignment]
        response = state.get("response") or ResponseMessage(content=FALLBACK_CONTENT)
        if not response.content.strip():
            response = response.model_copy(update={"content": FALLBACK_CONTENT})
        new_state["response"] = response
        new_state["stage"] = state.get("stage") or "initial"
        if new_state.get("persona") is None:
            new_state["persona"] = Persona(is_uncertain=False)
        return new_state

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _context(self, state: ChatAgentState) -> SubflowContext:
        return SubflowContext(
            llm=self.llm,
            market=self.market,
            store=self.store,
            catalog=state.get("catalog") or ProfessionCatalog([]),
            base_url=self.base_url,
            message=state["message"],
            history=state["history"],
            persona=state.get("persona") or Persona(is_uncertain=False),
            intent=state.get("intent") or IntentResult.fallback(),
            subflow=state.get("subflow") or Idle(),
        )

    @staticmethod
    def _apply(
        state: ChatAgentState,
        route: str,
        result: SubflowResult,
        persona: Persona | None,
    ) -> ChatAgentState:
        new_state: ChatAgentState = dict(state)  # type: ignore[assignment]
        new_state["route"] = route
        new_state["response"] = result.message
        new_state["stage"] = result.stage
        new_state["persona"] = result.persona or persona
        return new_state

    def _create_graph(self) -> StateGraph:
        graph = StateGraph(ChatAgentState)

        graph.add_node("receive_message", self.receive_message)
        graph.add_node(_GREETING_NODE, self.greet)
        graph.add_node(_ANALYZE_NODE, self.analyze)
        graph.add_node(_FINALIZE_NODE, self.finalize)
        for route in ROUTES:
            graph.add_node(route.name, self._route_node(route))

        graph.set_entry_point("receive_message")
        graph.add_conditional_edges(
            "receive_message",
            route_after_receive,
            {_GREETING_NODE: _GREETING_NODE, _ANALYZE_NODE: _ANALYZE_NODE},
        )
        graph.add_conditional_edges(
            _ANALYZE_NODE,
            select_route,
            {route.name: route.name for route in ROUTES},
        )

        graph.add_edge(_GREETING_NODE, _FINALIZE_NODE)
        for route in ROUTES:
            graph.add_edge(route.name, _FINALIZE_NODE)
        graph.add_edge(_FINALIZE_NODE, END)

        return graph

    # -------------------------------------------------------------------------
    # Entry point
    # -------------------------------------------------------------------------

    async def handle(self, request: ChatRequest) -> ChatResponse:
        """Process one chat turn.

        Args:
            request: Message, client-held history and persona.

        Returns:
            Assistant message, updated persona and stage.
        """
        initial: ChatAgentState = {
            "message": request.message,
            "history": list(request.history),
            "persona": request.persona or Persona(is_uncertain=False),
        }
        final = await self._graph.ainvoke(initial)

        intent = final.get("intent")
        logger.info(
            "Chat turn handled by %s (intent=%s, stage=%s, type=%s)",
            final.get("route"),
            intent.intent.value if intent else None,
            final["stage"],
            final["response"].type,
        )
        return ChatResponse(
            message=final["response"],
            persona=final["persona"],
            stage=final["stage"],
        )
