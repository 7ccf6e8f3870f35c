"""Tests for profession search, suggestions and general chat."""

import pytest

from hh_vibe.agents.state import ClarificationStep, ProfessionClarification, parse_subflow_state
from hh_vibe.agents.subflows.clarification import (
    handle_clarification_step,
    handle_profession_clarification,
)
from hh_vibe.agents.subflows.game_day import handle_game_day
from hh_vibe.agents.subflows.general import FALLBACK_CHAT_REPLY, handle_general_chat
from hh_vibe.agents.subflows.search import FOUND_TEXT, handle_search_intent, search_professions
from hh_vibe.agents.subflows.suggestions import (
    DEFAULT_QUESTION,
    DEFAULT_QUESTION_BUTTONS,
    FALLBACK_KEYWORDS,
    handle_clarification_intent,
    handle_uncertain_intent,
)
from hh_vibe.agents.subflows.uncertain import (
    handle_profession_confirmation,
    handle_uncertain_flow,
)
from hh_vibe.providers import TransientError
from hh_vibe.providers.llm.base import TaskType
from tests.conftest import as_json, assistant, intent, listing, make_card, make_context, user

LONG_QUERY = "хочу работать с людьми и чтобы был творческий подход к задачам"


@pytest.fixture
async def stocked_store(card_store):
    """Store with three cards."""
    await card_store.put("barista", make_card("Бариста", "barista"))
    await card_store.put("florist", make_card("Флорист", "florist"))
    await card_store.put(
        "python-razrabotchik", make_card("Python-разработчик", "python-razrabotchik")
    )
    return card_store


class TestSearchLadder:
    """First matching rung wins."""

    @pytest.mark.asyncio
    async def test_extracted_name_with_stored_card(self, mock_llm, market, stocked_store):
        ctx = await make_context(
            mock_llm, market, stocked_store, "расскажи про бариста",
            classified=intent("search_profession", profession="Бариста"),
        )

        outcome = await search_professions(ctx)

        assert outcome.content == FOUND_TEXT
        assert [c.slug for c in outcome.cards] == ["barista"]
        assert mock_llm.calls == []

    @pytest.mark.asyncio
    async def test_extracted_unknown_name_is_generated(self, mock_llm, market, stocked_store):
        ctx = await make_context(
            mock_llm, market, stocked_store, "кто такой сомелье",
            classified=intent("search_profession", profession="Сомелье"),
        )

        outcome = await search_professions(ctx)

        assert outcome.profession_to_generate == "Сомелье"

    @pytest.mark.asyncio
    async def test_short_query_matches_partially(self, mock_llm, market, stocked_store):
        ctx = await make_context(mock_llm, market, stocked_store, "Старший бариста")

        outcome = await search_professions(ctx)

        assert [c.slug for c in outcome.cards] == ["barista"]
        assert mock_llm.calls == []

    @pytest.mark.asyncio
    async def test_llm_catalog_match(self, mock_llm, market, stocked_store):
        mock_llm.set_response(
            TaskType.CATALOG_MATCH,
            as_json({"content": "Подойдут:", "professionSlugs": ["florist", "barista", "ghost"]}),
        )
        ctx = await make_context(mock_llm, market, stocked_store, LONG_QUERY)

        outcome = await search_professions(ctx)

        assert outcome.content == "Подойдут:"
        # Catalog order, unknown slugs dropped
        assert [c.slug for c in outcome.cards] == ["barista", "florist"]

    @pytest.mark.asyncio
    async def test_catalog_match_failure_shows_first_entries(
        self, mock_llm, market, stocked_store
    ):
        mock_llm.set_error(TaskType.CATALOG_MATCH, TransientError("down"))
        ctx = await make_context(mock_llm, market, stocked_store, LONG_QUERY)

        outcome = await search_professions(ctx)

        assert [c.slug for c in outcome.cards] == ["barista", "florist"]

    @pytest.mark.asyncio
    async def test_market_names_become_virtual_cards(self, mock_llm, market, card_store):
        mock_llm.set_response(TaskType.CATALOG_MATCH, as_json({"professionSlugs": []}))
        mock_llm.set_response(
            TaskType.MARKET_NAME_SELECTION,
            as_json({"selectedNames": ["Менеджер по продажам", "Ивент-менеджер"]}),
        )
        market.add(
            LONG_QUERY,
            [
                listing("Менеджер по продажам"),
                listing("Менеджер по продажам (B2B)"),
                listing("Ивент-менеджер"),
                listing("Курьер"),
            ],
        )
        ctx = await make_context(mock_llm, market, card_store, LONG_QUERY)

        outcome = await search_professions(ctx)

        assert [(c.profession, c.vacancies_count) for c in outcome.cards] == [
            ("Менеджер по продажам", 2),
            ("Ивент-менеджер", 1),
        ]
        assert all(c.is_virtual for c in outcome.cards)
        assert outcome.content.startswith("Нашел 2 профессии")

    @pytest.mark.asyncio
    async def test_market_failure_with_long_query_shows_catalog(
        self, mock_llm, market, stocked_store
    ):
        mock_llm.set_response(TaskType.CATALOG_MATCH, as_json({"professionSlugs": []}))
        market.fail_all = True
        ctx = await make_context(mock_llm, market, stocked_store, LONG_QUERY)

        outcome = await search_professions(ctx)

        assert outcome.content.startswith("К сожалению, пока нет профессий")
        assert len(outcome.cards) == 3


class TestSearchRouting:
    """What the user sees after the search."""

    @pytest.mark.asyncio
    async def test_single_card_starts_clarification(self, mock_llm, market, stocked_store):
        ctx = await make_context(
            mock_llm, market, stocked_store, "Бариста",
            classified=intent("search_profession", profession="Бариста"),
        )

        result = await handle_search_intent(ctx)

        assert result.stage == "clarifying"
        assert result.message.content.startswith('Отлично! Я нашел профессию "Бариста".')
        state = parse_subflow_state(result.message.metadata)
        assert state.step is ClarificationStep.LEVEL
        assert state.existing_slug == "barista"

    @pytest.mark.asyncio
    async def test_several_cards_listed(self, mock_llm, market, stocked_store):
        mock_llm.set_response(
            TaskType.CATALOG_MATCH,
            as_json({"content": "Вот:", "professionSlugs": ["florist", "barista"]}),
        )
        ctx = await make_context(mock_llm, market, stocked_store, LONG_QUERY)

        result = await handle_search_intent(ctx)

        assert result.message.type == "cards"
        assert result.message.content == "Вот:\n\nВыбери любую, чтобы узнать больше!"
        assert result.stage == "showing_results"

    @pytest.mark.asyncio
    async def test_unknown_name_asks_what_is_meant(self, mock_llm, market, card_store):
        mock_llm.set_response(
            TaskType.PROFESSION_CLARIFICATION,
            as_json({"content": "Какой именно сомелье?", "buttons": ["Вино", "Чай"]}),
        )
        ctx = await make_context(
            mock_llm, market, card_store, "сомелье",
            classified=intent("search_profession", profession="Сомелье"),
        )

        result = await handle_search_intent(ctx)

        assert parse_subflow_state(result.message.metadata) == ProfessionClarification(
            profession="Сомелье"
        )
        assert mock_llm.calls_for(TaskType.CARD_GENERATION) == []


class TestSuggestions:
    """Questions early, suggestions later."""

    @pytest.mark.asyncio
    async def test_first_exchange_asks_questions(self, mock_llm, market, card_store):
        ctx = await make_context(
            mock_llm, market, card_store, "не знаю кем быть",
            history=[user("привет"), assistant("Привет!")],
            classified=intent("uncertain"),
        )

        result = await handle_uncertain_intent(ctx)

        assert result.stage == "clarifying"
        assert result.message.content == DEFAULT_QUESTION
        assert result.message.buttons == DEFAULT_QUESTION_BUTTONS

    @pytest.mark.asyncio
    async def test_later_turns_suggest_cards(self, mock_llm, market, stocked_store):
        mock_llm.set_response(
            TaskType.SUGGESTION_KEYWORDS, as_json({"keywords": ["кофе"], "reasoning": "любит кофе"})
        )
        market.add("кофе", [listing("Бариста-бармен"), listing("Бариста-бармен")])
        mock_llm.set_response(
            TaskType.PROFESSION_SUGGESTION,
            as_json(
                {
                    "content": "Смотри:",
                    "selectedProfessions": [
                        {"name": "Бариста-бармен", "source": "hh"},
                        {"name": "Флорист", "source": "existing", "slug": "florist"},
                        {"name": "Призрак", "source": "existing", "slug": "ghost"},
                    ],
                }
            ),
        )
        ctx = await make_context(
            mock_llm, market, stocked_store, "люблю кофе",
            history=[user("привет"), assistant("Привет!"), user("не знаю")],
            classified=intent("uncertain"),
        )

        result = await handle_uncertain_intent(ctx)

        assert result.message.type == "cards"
        assert result.message.content.startswith("Смотри:")
        cards = result.message.cards
        assert [(c.profession, c.is_virtual) for c in cards] == [
            ("Бариста-бармен", True),
            ("Флорист", False),
        ]
        assert cards[0].vacancies_count == 2

    @pytest.mark.asyncio
    async def test_keyword_failure_uses_fallback_keywords(self, mock_llm, market, stocked_store):
        ctx = await make_context(
            mock_llm, market, stocked_store, "что-нибудь",
            history=[user("1"), assistant("2"), user("3"), assistant("4"), user("5"),
                     assistant("6"), user("7"), assistant("8")],
            classified=intent("clarification"),
        )

        result = await handle_clarification_intent(ctx)

        assert [q.text for q in market.queries] == FALLBACK_KEYWORDS
        # Selection failed too: first catalog entries
        assert [c.slug for c in result.message.cards] == [
            "barista", "florist", "python-razrabotchik"
        ]

    @pytest.mark.asyncio
    async def test_short_clarification_keeps_asking(self, mock_llm, market, card_store):
        ctx = await make_context(
            mock_llm, market, card_store, "что-нибудь",
            history=[user("1"), assistant("2")],
            classified=intent("clarification"),
        )

        result = await handle_clarification_intent(ctx)

        assert result.stage == "clarifying"
        mock_llm.assert_called_with_task(TaskType.CLARIFYING_QUESTIONS)


class TestGeneralChat:
    @pytest.mark.asyncio
    async def test_llm_reply_returned(self, mock_llm, market, card_store):
        mock_llm.set_response(TaskType.CHAT_RESPONSE, "  Привет! Чем помочь?  ")
        ctx = await make_context(mock_llm, market, card_store, "привет")

        result = await handle_general_chat(ctx)

        assert result.message.content == "Привет! Чем помочь?"
        assert result.stage == "initial"

    @pytest.mark.asyncio
    async def test_failure_uses_static_reply(self, mock_llm, market, card_store):
        mock_llm.set_error(TaskType.CHAT_RESPONSE, TransientError("down"))
        ctx = await make_context(mock_llm, market, card_store, "привет")

        result = await handle_general_chat(ctx)

        assert result.message.content == FALLBACK_CHAT_REPLY

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "handler",
        [
            handle_clarification_step,
            handle_profession_clarification,
            handle_game_day,
            handle_uncertain_flow,
            handle_profession_confirmation,
        ],
    )
    async def test_state_handler_without_its_state_chats(
        self, mock_llm, market, card_store, handler
    ):
        mock_llm.set_response(TaskType.CHAT_RESPONSE, "Расскажи о себе")
        ctx = await make_context(mock_llm, market, card_store, "привет")

        result = await handler(ctx)

        assert result.message.content == "Расскажи о себе"
        assert result.stage == "initial"
        assert [c["task"] for c in mock_llm.calls] == [TaskType.CHAT_RESPONSE]
