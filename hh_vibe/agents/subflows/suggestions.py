"""Clarifying questions and profession suggestions for undecided users.

Suggestions are two LLM calls around a market lookup: the dialogue becomes
search keywords, the keywords become ranked profession names from live
listings, and the LLM picks 3-5 of those or of the stored cards.
"""

import logging

from hh_vibe.agents.subflows.base import (
    SubflowContext,
    SubflowResult,
    ask_json,
    cards_from_selection,
    list_field,
    market_lines,
    reply,
    text_field,
)
from hh_vibe.prompts.chat import (
    build_clarifying_questions_prompt,
    build_suggestion_keywords_prompt,
    build_suggestion_selection_prompt,
)
from hh_vibe.providers.llm.base import TaskType
from hh_vibe.schemas.chat import ProfessionCardRef
from hh_vibe.services.market_stats import find_market_professions

logger = logging.getLogger(__name__)

_QUESTIONS_TEMPERATURE = 0.7
_KEYWORDS_TEMPERATURE = 0.7
_SELECTION_TEMPERATURE = 0.6

MAX_SUGGESTED_CARDS = 5

# Early turns ask questions; later ones suggest.
UNCERTAIN_QUESTION_TURNS = 2
CLARIFICATION_QUESTION_TURNS = 8

DEFAULT_QUESTION = "Расскажи подробнее о том, что тебя интересует?"
DEFAULT_QUESTION_BUTTONS = ["Разработка", "Дизайн", "Менеджмент", "Не уверен"]
FALLBACK_KEYWORDS = ["разработка", "менеджмент", "дизайн", "аналитика"]
SUGGESTIONS_TEXT = "Вот несколько интересных профессий для тебя:"


async def generate_clarifying_questions(ctx: SubflowContext) -> SubflowResult:
    data = await ask_json(
        ctx.llm,
        build_clarifying_questions_prompt(
            intent=ctx.intent.intent.value,
            extracted=ctx.intent.extracted_info,
            persona=ctx.persona,
            profession_names=ctx.catalog.names(),
        ),
        task=TaskType.CLARIFYING_QUESTIONS,
        temperature=_QUESTIONS_TEMPERATURE,
    )
    if data is None:
        content, buttons = DEFAULT_QUESTION, list(DEFAULT_QUESTION_BUTTONS)
    else:
        content = text_field(data, "content", DEFAULT_QUESTION)
        buttons = list_field(data, "buttons") or list(DEFAULT_QUESTION_BUTTONS)

    return reply(content, "clarifying", type="buttons", buttons=buttons)


async def _suggestion_keywords(ctx: SubflowContext) -> list[str]:
    data = await ask_json(
        ctx.llm,
        build_suggestion_keywords_prompt(history=ctx.history, persona=ctx.persona),
        task=TaskType.SUGGESTION_KEYWORDS,
        temperature=_KEYWORDS_TEMPERATURE,
    )
    if data is None:
        return list(FALLBACK_KEYWORDS)
    keywords = list_field(data, "keywords")
    logger.info(
        "Suggestion keywords %s (%s)", keywords, text_field(data, "reasoning", "no reasoning")
    )
    return keywords


async def suggest_professions(ctx: SubflowContext) -> tuple[str, list[ProfessionCardRef]]:
    """Pick 3-5 professions that fit the dialogue so far.

    Returns:
        ``(content, cards)``. Stored cards are preferred; market picks come
        back as virtual cards. Falls back to the first catalog entries.
    """
    keywords = await _suggestion_keywords(ctx)
    names = await find_market_professions(ctx.market, keywords, limit=30)

    data = await ask_json(
        ctx.llm,
        build_suggestion_selection_prompt(
            history=ctx.history,
            persona=ctx.persona,
            market_lines=market_lines(names),
            catalog_lines=ctx.catalog.prompt_lines(),
        ),
        task=TaskType.PROFESSION_SUGGESTION,
        temperature=_SELECTION_TEMPERATURE,
    )
    if data is None:
        return SUGGESTIONS_TEXT, [e.to_ref() for e in ctx.catalog.entries[:3]]

    cards = cards_from_selection(
        ctx,
        data.get("selectedProfessions"),
        vacancy_counts=dict(names),
        limit=MAX_SUGGESTED_CARDS,
    )
    logger.info(
        "Suggested %d professions (%d virtual)",
        len(cards),
        sum(1 for c in cards if c.is_virtual),
    )
    return text_field(data, "content", SUGGESTIONS_TEXT), cards


async def handle_uncertain_intent(ctx: SubflowContext) -> SubflowResult:
    """Ask on the first exchange, suggest afterwards."""
    if len(ctx.history) <= UNCERTAIN_QUESTION_TURNS:
        return await generate_clarifying_questions(ctx)

    content, cards = await suggest_professions(ctx)
    return reply(
        f"{content}\n\nВыбери любую, чтобы узнать больше!",
        "showing_results",
        type="cards",
        cards=cards,
    )


async def handle_clarification_intent(ctx: SubflowContext) -> SubflowResult:
    """Keep clarifying on short conversations, suggest on long ones."""
    if len(ctx.history) < CLARIFICATION_QUESTION_TURNS:
        return await generate_clarifying_questions(ctx)

    content, cards = await suggest_professions(ctx)
    return reply(content, "showing_results", type="cards", cards=cards)
