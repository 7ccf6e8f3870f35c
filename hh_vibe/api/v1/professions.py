"""Professions API router.

Card catalog backed by the file card store:

- GET  /professions            list stored cards
- GET  /professions/{slug}     one stored card
- POST /professions/generate   return the stored card or generate it
"""

import structlog
from fastapi import APIRouter, Request
from pydantic import BaseModel

from hh_vibe.api.deps import Store
from hh_vibe.core.config import settings
from hh_vibe.core.errors import NotFoundError
from hh_vibe.core.rate_limiting import limiter
from hh_vibe.core.responses import DataResponse
from hh_vibe.schemas.profession import GenerateCardRequest, ProfessionCard, ProfessionSummary
from hh_vibe.services.card_generation import CardOptions
from hh_vibe.services.slug import slugify

logger = structlog.get_logger()

router = APIRouter()


class GenerateCardResponse(BaseModel):
    """Generated or cached card, with a flag telling which."""

    data: ProfessionCard
    cached: bool


@router.get("", response_model_by_alias=True)
async def list_professions(store: Store) -> DataResponse[list[ProfessionSummary]]:
    """List all stored profession cards.

    Args:
        store: Card store (injected).

    Returns:
        DataResponse with one summary per card, sorted by profession.
    """
    return DataResponse(data=await store.list_summaries())


@router.get("/{slug}", response_model_by_alias=True, response_model_exclude_none=True)
async def get_profession(slug: str, store: Store) -> DataResponse[ProfessionCard]:
    """Get a stored profession card.

    Args:
        slug: Card slug.
        store: Card store (injected).

    Returns:
        DataResponse with the card.

    Raises:
        NotFoundError: If no card is stored under the slug.
    """
    card = await store.get(slugify(slug))
    if card is None:
        raise NotFoundError("Profession", slug)
    return DataResponse(data=card)


@router.post(
    "/generate",
    response_model_by_alias=True,
    response_model_exclude_none=True,
)
@limiter.limit(settings.rate_limit_generation)
async def generate_profession(
    request: Request,  # noqa: ARG001
    body: GenerateCardRequest,
    store: Store,
) -> GenerateCardResponse:
    """Return the stored card for a profession, generating it on a miss.

    Security: Rate limited; generation costs several LLM and market calls.

    Args:
        request: HTTP request (required by the rate limiter).
        body: Profession, level, company and personalization.
        store: Card store (injected).

    Returns:
        The card and whether it came from the store.

    Raises:
        CardGenerationError: If generation fails (502).
    """
    slug = slugify(body.profession)
    cached = await store.get(slug)
    if cached is not None:
        return GenerateCardResponse(data=cached, cached=True)

    options = CardOptions(
        company_size=body.company_size,
        location=body.location,
        specialization=body.specialization,
    )
    card = await store.generate(body.profession, body.level, body.company, options)
    logger.info("profession_card_generated", slug=card.slug)
    return GenerateCardResponse(data=card, cached=False)
