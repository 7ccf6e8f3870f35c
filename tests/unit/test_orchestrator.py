"""Tests for the chat orchestrator: route priority and whole turns."""

import pytest

from hh_vibe.agents.intent import Intent
from hh_vibe.agents.orchestrator import (
    FALLBACK_CONTENT,
    INTENT_HANDLERS,
    ROUTES,
    ChatOrchestrator,
    select_route,
)
from hh_vibe.agents.state import (
    AwaitingCompareProfessions,
    AwaitingGameDayProfession,
    AwaitingProfessionConfirmation,
    ClarificationInProgress,
    ClarificationStep,
    GameDayInProgress,
    Greeting,
    Idle,
    ProfessionClarification,
    UncertainFlow,
)
from hh_vibe.agents.subflows.greeting import GREETING_BUTTONS
from hh_vibe.providers import TransientError
from hh_vibe.providers.llm.base import TaskType
from hh_vibe.schemas.chat import ChatRequest, Persona, ResponseMessage
from tests.conftest import as_json, assistant, intent, make_card, user


@pytest.fixture
def orchestrator(mock_llm, market, card_store) -> ChatOrchestrator:
    return ChatOrchestrator(mock_llm, market, card_store, base_url="https://vibe.test")


def turn(message: str, metadata: dict | None, persona: Persona | None = None) -> ChatRequest:
    """A request whose last assistant message carries ``metadata``."""
    return ChatRequest(
        message=message,
        history=[user("привет"), assistant("...", metadata=metadata)],
        persona=persona,
    )


class TestSelectRoute:
    """First matching guard wins."""

    def test_route_names_unique(self):
        names = [r.name for r in ROUTES]
        assert len(names) == len(set(names))
        assert names[-1] == "general_chat"

    def test_running_game_day_beats_classifier(self):
        state = {
            "subflow": GameDayInProgress(profession="Бариста", step=2),
            "intent": intent("search_profession", profession="Флорист"),
        }

        assert select_route(state) == "game_day"

    def test_result_intent_beats_clarification_step(self):
        state = {
            "subflow": ClarificationInProgress(
                step=ClarificationStep.LEVEL, profession="Бариста"
            ),
            "intent": intent("show_tasks"),
        }

        assert select_route(state) == "result_intent"

    def test_finished_uncertain_flow_is_not_resumed(self):
        state = {"subflow": UncertainFlow(step=7), "intent": intent("general_chat")}

        assert select_route(state) == "general_chat"

    def test_uncertain_persona_routes_to_suggestions(self):
        state = {
            "subflow": Idle(),
            "intent": intent("general_chat"),
            "persona": Persona(is_uncertain=True),
        }

        assert select_route(state) == "uncertain"

    @pytest.mark.parametrize(
        ("subflow", "expected"),
        [
            (Greeting(), "greeting_reply"),
            (AwaitingGameDayProfession(), "game_day_profession"),
            (AwaitingCompareProfessions(), "compare_reply"),
            (UncertainFlow(step=3), "uncertain_flow"),
            (AwaitingProfessionConfirmation("Флорист"), "profession_confirmation"),
            (ProfessionClarification("Дизайнер"), "profession_clarification"),
        ],
    )
    def test_in_progress_states(self, subflow, expected):
        assert select_route({"subflow": subflow, "intent": intent("general_chat")}) == expected

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("search_profession", "search"),
            ("clarification", "clarification"),
            ("uncertain", "uncertain"),
            ("scenario_choice", "general_chat"),
        ],
    )
    def test_idle_intents(self, name, expected):
        assert select_route({"subflow": Idle(), "intent": intent(name)}) == expected

    def test_every_result_intent_routed(self):
        for name in INTENT_HANDLERS:
            assert select_route({"subflow": Idle(), "intent": intent(name.value)}) == (
                "result_intent"
            )
        assert Intent.SEARCH_PROFESSION not in INTENT_HANDLERS


class TestChatTurn:
    """Whole turns through the graph."""

    @pytest.mark.asyncio
    async def test_empty_history_gets_greeting(self, orchestrator, mock_llm):
        response = await orchestrator.handle(ChatRequest(message="привет"))

        assert response.stage == "initial"
        assert response.message.buttons == GREETING_BUTTONS
        assert response.persona == Persona(is_uncertain=False)
        assert mock_llm.calls == []

    @pytest.mark.asyncio
    async def test_known_profession_choice_asks_for_name(self, orchestrator):
        response = await orchestrator.handle(
            turn("🎯 Я уже знаю профессию", {"isGreeting": True})
        )

        assert response.message.type == "text"
        assert response.message.metadata is None
        assert response.message.content

    @pytest.mark.asyncio
    async def test_persona_detected_each_turn(self, orchestrator, mock_llm):
        mock_llm.set_response(
            TaskType.PERSONA_DETECTION, as_json({"interests": ["кофе"], "isUncertain": False})
        )

        response = await orchestrator.handle(
            turn("люблю кофе", None, persona=Persona(interests=["музыка"]))
        )

        assert response.persona.interests == ["музыка", "кофе"]
        mock_llm.assert_called_with_task(TaskType.INTENT_CLASSIFICATION)

    @pytest.mark.asyncio
    async def test_seventh_soft_answer_suggests_profession(
        self, orchestrator, mock_llm, card_store
    ):
        await card_store.put("florist", make_card("Флорист", "florist"))
        mock_llm.set_response(
            TaskType.FINAL_PROFESSION,
            as_json({"profession": "Флорист", "source": "existing", "slug": "florist"}),
        )

        response = await orchestrator.handle(
            turn("люблю цветы", UncertainFlow(step=6).to_metadata())
        )

        assert response.stage == "showing_results"
        assert response.message.metadata["awaitingProfessionConfirmation"] is True
        assert [c.slug for c in response.message.cards] == ["florist"]

    @pytest.mark.asyncio
    async def test_result_intent_interrupts_clarification(self, orchestrator, mock_llm):
        mock_llm.set_response(TaskType.INTENT_CLASSIFICATION, as_json({"intent": "show_tasks"}))
        metadata = ClarificationInProgress(
            step=ClarificationStep.LEVEL, profession="Бариста"
        ).to_metadata()

        response = await orchestrator.handle(turn("а какие там задачи?", metadata))

        assert response.message.metadata["showingTasks"] is True

    @pytest.mark.parametrize(
        ("message", "metadata", "persona"),
        [
            ("эээ", {"isGreeting": True}, None),
            ("дальше", GameDayInProgress(profession="Бариста", step=2).to_metadata(), None),
            ("Бариста", {"awaitingGameDayProfession": True}, None),
            ("Бариста, Повар", {"awaitingCompareProfessions": True}, None),
            ("не знаю", UncertainFlow(step=2).to_metadata(), None),
            ("нет", AwaitingProfessionConfirmation("Флорист").to_metadata(), None),
            ("Мидл", ClarificationInProgress(ClarificationStep.LEVEL, "Повар").to_metadata(), None),
            ("Развитие", ClarificationInProgress(ClarificationStep.MOTIVATION, "Повар").to_metadata(), None),
            ("UX", ProfessionClarification("Дизайнер").to_metadata(), None),
            ("хм", None, Persona(is_uncertain=True)),
            ("как дела?", None, None),
        ],
        ids=[
            "greeting", "game_day", "game_day_profession", "compare", "uncertain_flow",
            "confirmation", "clarification_step", "final_generation",
            "profession_clarification", "uncertain", "general",
        ],
    )
    @pytest.mark.asyncio
    async def test_every_route_answers_when_llm_is_down(
        self, orchestrator, mock_llm, message, metadata, persona
    ):
        mock_llm.default_error = TransientError("down")

        response = await orchestrator.handle(turn(message, metadata, persona=persona))

        assert response.message.content.strip()
        assert response.stage in ("initial", "clarifying", "showing_results")

    @pytest.mark.asyncio
    async def test_finalize_replaces_blank_reply(self, orchestrator):
        state = await orchestrator.finalize({"response": ResponseMessage(content="   ")})

        assert state["response"].content == FALLBACK_CONTENT
        assert state["stage"] == "initial"
        assert state["persona"] == Persona(is_uncertain=False)
