"""Profession search for a named or described profession.

Search ladder, first hit wins:

    1. classifier extracted a name  -> stored card / catalog exact / generate
    2. short query                  -> stored card / catalog exact or partial
    3. LLM catalog match            -> catalog cards by slug
    4. partial catalog matches      -> up to 3 cards
    5. market names + LLM pick      -> virtual cards with vacancy counts
    6. short query                  -> generate
    7. otherwise                    -> first catalog entries

A single match does not show the card directly: the clarification sequence
runs first so the card can be personalised.
"""

import json
import logging
from dataclasses import dataclass, field

from hh_vibe.agents.state import ClarificationStep
from hh_vibe.agents.subflows.base import (
    CARD_FOLLOWUP_BUTTONS,
    SubflowContext,
    SubflowResult,
    ask_json,
    list_field,
    market_lines,
    reply,
    text_field,
    virtual_card,
)
from hh_vibe.agents.subflows.clarification import ask_step, start_profession_clarification
from hh_vibe.prompts.explainers import (
    build_catalog_match_prompt,
    build_market_name_selection_prompt,
)
from hh_vibe.providers.llm.base import TaskType
from hh_vibe.schemas.chat import ProfessionCardRef
from hh_vibe.services.market_stats import find_market_professions
from hh_vibe.services.slug import slugify

logger = logging.getLogger(__name__)

_CATALOG_MATCH_TEMPERATURE = 0.3
_MARKET_SELECTION_TEMPERATURE = 0.3

# Queries shorter than this are treated as a profession name.
MAX_NAME_QUERY_LENGTH = 50

FOUND_TEXT = "Вот что я нашел:"


@dataclass
class SearchOutcome:
    """Result of the search ladder.

    Attributes:
        content: Text shown above the cards.
        cards: Matching card references.
        profession_to_generate: Name to generate a card for when nothing
            matched, else None.
    """

    content: str
    cards: list[ProfessionCardRef] = field(default_factory=list)
    profession_to_generate: str | None = None


def _is_name_query(query: str) -> bool:
    return 0 < len(query) < MAX_NAME_QUERY_LENGTH


def _profession_word(count: int) -> str:
    return "профессию" if count == 1 else "профессии"


async def _stored_card(ctx: SubflowContext, name: str) -> ProfessionCardRef | None:
    card = await ctx.store.get(slugify(name))
    return card.to_ref() if card is not None else None


async def _search_market(ctx: SubflowContext, query: str) -> SearchOutcome | None:
    """Market-derived names picked by the LLM, as virtual cards."""
    logger.info("Searching market listings for %r", query)
    names = await find_market_professions(ctx.market, [query], limit=10)
    if not names:
        return None

    data = await ask_json(
        ctx.llm,
        build_market_name_selection_prompt(query=query, market_lines=market_lines(names)),
        task=TaskType.MARKET_NAME_SELECTION,
        temperature=_MARKET_SELECTION_TEMPERATURE,
    )
    if data is None:
        return None

    selected = set(list_field(data, "selectedNames"))
    cards = [
        virtual_card(name, vacancies_count=count) for name, count in names if name in selected
    ]
    if not cards:
        return None

    default = (
        f"Нашел {len(cards)} {_profession_word(len(cards))} по запросу "
        f'"{query}" в базе вакансий:'
    )
    return SearchOutcome(content=text_field(data, "content", default), cards=cards)


async def search_professions(ctx: SubflowContext) -> SearchOutcome:
    """Run the search ladder for the current message."""
    catalog = ctx.catalog
    query = ctx.message.strip()

    extracted = ctx.intent.extracted_str("profession")
    if extracted:
        stored = await _stored_card(ctx, extracted)
        if stored is not None:
            return SearchOutcome(FOUND_TEXT, [stored])
        entry = catalog.find_exact(extracted)
        if entry is not None:
            return SearchOutcome(FOUND_TEXT, [entry.to_ref()])
        return SearchOutcome(
            f'Профессия "{extracted}" не найдена в базе. Генерирую карточку...',
            profession_to_generate=extracted,
        )

    if _is_name_query(query):
        stored = await _stored_card(ctx, query)
        if stored is not None:
            return SearchOutcome(FOUND_TEXT, [stored])
        entry = catalog.find_exact(query)
        if entry is None:
            partial = catalog.find_partial(query)
            entry = partial[0] if partial else None
        if entry is not None:
            return SearchOutcome(FOUND_TEXT, [entry.to_ref()])

    data = await ask_json(
        ctx.llm,
        build_catalog_match_prompt(
            query=query,
            extracted=json.dumps(ctx.intent.extracted_info, ensure_ascii=False),
            catalog_lines=catalog.prompt_lines(),
        ),
        task=TaskType.CATALOG_MATCH,
        temperature=_CATALOG_MATCH_TEMPERATURE,
    )
    if data is None:
        return SearchOutcome(FOUND_TEXT, [e.to_ref() for e in catalog.entries[:2]])

    content = text_field(data, "content", FOUND_TEXT)
    slugs = list_field(data, "professionSlugs")
    matched = [e.to_ref() for e in catalog.entries if e.slug in slugs]
    if matched:
        return SearchOutcome(content, matched)

    partial = catalog.find_partial(query)
    if partial:
        return SearchOutcome(content, [e.to_ref() for e in partial[:3]])

    market = await _search_market(ctx, query)
    if market is not None:
        return market

    if _is_name_query(query):
        return SearchOutcome(
            f'Ищу информацию о профессии "{query}"...',
            profession_to_generate=query,
        )

    return SearchOutcome(
        "К сожалению, пока нет профессий, точно соответствующих твоему запросу. "
        "Вот что есть:",
        [e.to_ref() for e in catalog.entries[:3]],
    )


async def handle_search_intent(ctx: SubflowContext) -> SubflowResult:
    """Search and route: clarify before generating, or list the matches."""
    outcome = await search_professions(ctx)

    if outcome.profession_to_generate is not None:
        return await start_profession_clarification(ctx, outcome.profession_to_generate)

    if len(outcome.cards) == 1:
        card = outcome.cards[0]
        return await ask_step(
            ctx,
            ClarificationStep.LEVEL,
            card.profession,
            existing_slug=card.slug,
            prefix=f'Отлично! Я нашел профессию "{card.profession}". Перед тем как покажу '
            "карточку, уточни пару деталей 👇\n\n",
        )

    if outcome.cards:
        return reply(
            f"{outcome.content}\n\nВыбери любую, чтобы узнать больше!",
            "showing_results",
            type="cards",
            cards=outcome.cards,
        )

    return reply(
        f"{outcome.content}\n\nЧто хочешь узнать дополнительно?",
        "showing_results",
        buttons=list(CARD_FOLLOWUP_BUTTONS),
        metadata={"showingProfessionCard": True},
    )
