"""Shared types and helpers for chat sub-flow handlers.

Every handler has the same shape: ``async (SubflowContext) -> SubflowResult``.
Handlers never raise on LLM failure. Each LLM call goes through
``ask_json`` / ``ask_text``, which log the failure and return None so the
handler can substitute its static fallback.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from hh_vibe.adapters.market import MarketDataAdapter
from hh_vibe.agents.intent import IntentResult
from hh_vibe.agents.state import Idle, SubflowState, last_assistant_message
from hh_vibe.prompts.chat import CAREER_ADVISOR_SYSTEM_PROMPT
from hh_vibe.providers import ProviderError, generate, generate_json
from hh_vibe.providers.llm.base import LLMProvider, TaskType
from hh_vibe.schemas.chat import (
    Message,
    MessageType,
    Persona,
    ProfessionCardRef,
    ResponseMessage,
    Stage,
)
from hh_vibe.services.card_store import CardStore
from hh_vibe.services.profession_catalog import ProfessionCatalog
from hh_vibe.services.slug import slugify

logger = logging.getLogger(__name__)

# Used by result-display flows when neither the classifier nor the last
# shown card names a profession.
DEFAULT_PROFESSION = "Frontend разработчик"

MAIN_MENU_BUTTON = "Главное меню"

# Buttons shown under a freshly generated profession card.
CARD_FOLLOWUP_BUTTONS = [
    "📋 Примеры задач",
    "📈 Карьерный рост",
    "🔍 Похожие профессии",
    "💾 Сохранить",
]


# =============================================================================
# Types
# =============================================================================


@dataclass
class SubflowContext:
    """Everything a handler needs for one chat turn.

    Attributes:
        llm: LLM provider.
        market: Job-market adapter.
        store: Profession card store.
        catalog: Snapshot of the stored cards.
        base_url: Public site URL (share links).
        message: The incoming user message.
        history: Conversation so far, oldest first.
        persona: Persona after this turn's detection step.
        intent: Classification of the message.
        subflow: Sub-flow state decoded from the last assistant message.
    """

    llm: LLMProvider
    market: MarketDataAdapter
    store: CardStore
    catalog: ProfessionCatalog
    base_url: str
    message: str
    history: list[Message]
    persona: Persona
    intent: IntentResult = field(default_factory=IntentResult.fallback)
    subflow: SubflowState = field(default_factory=Idle)

    @property
    def last_assistant(self) -> Message | None:
        return last_assistant_message(self.history)

    @property
    def last_card(self) -> ProfessionCardRef | None:
        """First card of the last assistant message, if it showed any."""
        last = self.last_assistant
        if last and last.cards:
            return last.cards[0]
        return None

    def resolve_profession(self) -> str:
        """Profession for result-display flows.

        Resolution order: classifier extraction, last shown card, default.
        """
        extracted = self.intent.extracted_str("profession")
        if extracted:
            return extracted
        card = self.last_card
        if card:
            return card.profession
        return DEFAULT_PROFESSION


@dataclass
class SubflowResult:
    """Outcome of one handler.

    Attributes:
        message: Assistant message to return.
        stage: Conversation stage for the client.
        persona: Updated persona when the handler changed it, else None.
    """

    message: ResponseMessage
    stage: Stage
    persona: Persona | None = None


Handler = Callable[[SubflowContext], Awaitable[SubflowResult]]


def reply(
    content: str,
    stage: Stage,
    *,
    type: MessageType = "text",
    buttons: list[str] | None = None,
    cards: list[ProfessionCardRef] | None = None,
    metadata: dict[str, Any] | None = None,
    persona: Persona | None = None,
) -> SubflowResult:
    """Build a SubflowResult in one call."""
    return SubflowResult(
        message=ResponseMessage(
            type=type,
            content=content,
            buttons=buttons,
            cards=cards,
            metadata=metadata,
        ),
        stage=stage,
        persona=persona,
    )


# =============================================================================
# LLM calls with fallback
# =============================================================================


async def ask_json(
    llm: LLMProvider,
    prompt: str,
    *,
    task: TaskType,
    temperature: float,
) -> dict[str, Any] | None:
    """Run a JSON-mode call; return None on any provider failure.

    Args:
        llm: LLM provider.
        prompt: Prompt text.
        task: Call site.
        temperature: Sampling temperature for the call site.

    Returns:
        Parsed JSON object, or None if the call failed or returned bad JSON.
    """
    try:
        return await generate_json(
            llm,
            prompt,
            task=task,
            temperature=temperature,
            system=CAREER_ADVISOR_SYSTEM_PROMPT,
        )
    except ProviderError as e:
        logger.warning("LLM call %s failed, using fallback: %s", task.value, e)
        return None


async def ask_text(
    llm: LLMProvider,
    prompt: str,
    *,
    task: TaskType,
    temperature: float,
) -> str | None:
    """Run a free-text call; return None on any provider failure."""
    try:
        return await generate(
            llm,
            prompt,
            task=task,
            temperature=temperature,
            system=CAREER_ADVISOR_SYSTEM_PROMPT,
        )
    except ProviderError as e:
        logger.warning("LLM call %s failed, using fallback: %s", task.value, e)
        return None


# =============================================================================
# JSON field helpers
# =============================================================================


def text_field(data: dict[str, Any], key: str, default: str) -> str:
    """Non-empty string at ``key``, else ``default``."""
    value = data.get(key)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def list_field(data: dict[str, Any], key: str) -> list[str]:
    """List of non-empty strings at ``key`` (other items dropped)."""
    value = data.get(key)
    if not isinstance(value, list):
        return []
    return [str(v).strip() for v in value if isinstance(v, (str, int, float)) and str(v).strip()]


def dict_field(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key)
    return value if isinstance(value, dict) else {}


def as_text(value: Any) -> str:
    """Render a JSON scalar or list for display ("a, b" for lists)."""
    if isinstance(value, list):
        return ", ".join(str(v) for v in value)
    if value is None:
        return ""
    return str(value)


def contains_any(text: str, keywords: tuple[str, ...]) -> bool:
    """Case-insensitive substring match against any keyword."""
    text_lower = text.lower()
    return any(k in text_lower for k in keywords)


# =============================================================================
# Card references
# =============================================================================


def virtual_card(
    profession: str,
    *,
    level: str = "Middle",
    vacancies_count: int | None = None,
) -> ProfessionCardRef:
    """Reference to a profession that is not in the card store yet."""
    return ProfessionCardRef(
        slug=slugify(profession),
        profession=profession,
        level=level,
        company="IT-компания",
        is_virtual=True,
        vacancies_count=vacancies_count,
    )


def cards_from_selection(
    ctx: SubflowContext,
    selected: Any,
    *,
    level: str = "Middle",
    vacancy_counts: dict[str, int] | None = None,
    limit: int,
) -> list[ProfessionCardRef]:
    """Turn an LLM ``selectedProfessions`` list into card references.

    ``existing`` picks resolve against the catalog (unknown slugs are
    dropped); ``hh`` picks become virtual cards.
    """
    if not isinstance(selected, list):
        return []

    counts = vacancy_counts or {}
    cards: list[ProfessionCardRef] = []
    for item in selected:
        if not isinstance(item, dict):
            continue
        name = item.get("name")
        if item.get("source") == "existing":
            entry = ctx.catalog.by_slug(item.get("slug"))
            if entry is not None:
                cards.append(entry.to_ref())
        elif item.get("source") == "hh" and isinstance(name, str) and name.strip():
            cards.append(
                virtual_card(name.strip(), level=level, vacancies_count=counts.get(name))
            )
    return cards[:limit]


def market_lines(names: list[tuple[str, int]]) -> list[str]:
    """Render ``(name, count)`` pairs for a prompt."""
    return [f"{name} ({count} вакансий)" for name, count in names]
