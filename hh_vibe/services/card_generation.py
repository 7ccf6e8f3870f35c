"""Profession card generation service.

Async service that:
1. Fetches live market statistics for the profession
2. Asks the LLM (TaskType.CARD_GENERATION, JSON mode) for the card body
3. Merges both into a validated ProfessionCard

Persisting the card is the caller's job (see hh_vibe.services.card_store).
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from hh_vibe.adapters.market import MarketDataAdapter
from hh_vibe.core.errors import UpstreamError
from hh_vibe.prompts.card import CARD_SYSTEM_PROMPT, build_card_prompt
from hh_vibe.providers import ProviderError, generate_json
from hh_vibe.providers.llm.base import LLMProvider, TaskType
from hh_vibe.schemas.profession import ProfessionCard, UserPreferences
from hh_vibe.services.market_stats import fetch_profession_stats
from hh_vibe.services.slug import slugify

logger = logging.getLogger(__name__)

_CARD_TEMPERATURE = 0.7

ProgressCallback = Callable[[str, int], Awaitable[None] | None]


# =============================================================================
# Types
# =============================================================================


class CardGenerationError(UpstreamError):
    """Error during profession card generation.

    Raised when the LLM provider fails (missing credentials, unsupported
    region, malformed output) or the profession name has no usable slug.
    """

    default_code = "CARD_GENERATION_FAILED"


@dataclass
class CardOptions:
    """Optional personalization for a generated card.

    Attributes:
        company_size: Preferred company size ("startup", "medium", ...).
        location: Preferred location ("moscow", "remote", ...).
        specialization: Preferred specialization inside the profession.
        profession_description: The user's own description of the profession.
        user_preferences: Persona answers recorded on the card.
        generate_audio: Accepted for compatibility; audio is not produced.
        progress_callback: Called with (message, percent) as generation advances.
    """

    company_size: str | None = None
    location: str | None = None
    specialization: str | None = None
    profession_description: str | None = None
    user_preferences: UserPreferences | None = None
    generate_audio: bool = False
    progress_callback: ProgressCallback | None = None


async def _report(options: CardOptions, message: str, progress: int) -> None:
    if options.progress_callback is None:
        return
    result = options.progress_callback(message, progress)
    if result is not None:
        await result


# =============================================================================
# Service Function
# =============================================================================


async def generate_card(
    llm: LLMProvider,
    market: MarketDataAdapter,
    *,
    profession: str,
    level: str,
    company: str,
    options: CardOptions | None = None,
) -> ProfessionCard:
    """Generate a profession card.

    Args:
        llm: LLM provider for the card body.
        market: Market adapter for live statistics.
        profession: Profession name.
        level: Card level (Junior / Middle / Senior).
        company: Company label.
        options: Personalization and progress reporting.

    Returns:
        A validated ProfessionCard (not yet stored).

    Raises:
        CardGenerationError: If the LLM fails or returns an unusable body.
    """
    options = options or CardOptions()
    slug = slugify(profession)
    if not slug:
        raise CardGenerationError(f"Cannot derive a card key from {profession!r}")

    await _report(options, "Собираю данные рынка труда...", 10)
    stats = await fetch_profession_stats(market, profession)

    await _report(options, "Генерирую описание профессии...", 40)
    prompt = build_card_prompt(
        profession=profession,
        level=level,
        company=company,
        stats=stats,
        company_size=options.company_size,
        location=options.location,
        specialization=options.specialization,
        profession_description=options.profession_description,
    )
    try:
        body = await generate_json(
            llm,
            prompt,
            task=TaskType.CARD_GENERATION,
            temperature=_CARD_TEMPERATURE,
            system=CARD_SYSTEM_PROMPT,
        )
    except ProviderError as e:
        logger.error("Card generation failed for %r: %s", profession, e)
        raise CardGenerationError(
            f"Не удалось сгенерировать карточку: {e}"
        ) from e

    card_data: dict[str, Any] = {
        **body,
        "slug": slug,
        "profession": profession,
        "level": level,
        "company": company,
        "vacancies": stats.vacancies,
        "competition": stats.competition,
        "avgSalary": stats.avg_salary,
        "companySize": options.company_size,
        "location": options.location,
        "specialization": options.specialization,
    }
    if options.user_preferences is not None:
        card_data["userPreferences"] = options.user_preferences.model_dump(
            by_alias=True, exclude_none=True
        )
    try:
        card = ProfessionCard.model_validate(card_data)
    except PydanticValidationError as e:
        logger.error("Generated card for %r failed validation: %s", profession, e)
        raise CardGenerationError(
            "Не удалось сгенерировать карточку: модель вернула некорректные данные"
        ) from e

    await _report(options, "Карточка готова ✅", 100)
    logger.info("Generated card %s (%d vacancies)", slug, stats.vacancies)
    return card
