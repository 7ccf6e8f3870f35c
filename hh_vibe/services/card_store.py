"""Persisted profession card store.

Cards are JSON documents at ``{cards_dir}/{slug}.json`` in the camelCase
ProfessionCard shape. The store is the cache for generated cards: a slug
that is present is never generated again.

Concurrency: generation for one slug is serialized by a per-slug
``asyncio.Lock``. A caller that waited on the lock re-checks the store and
reuses the card the first caller produced, so each slug is generated at
most once per process.
"""

import asyncio
import json
import logging
import weakref
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from hh_vibe.adapters.market import MarketDataAdapter
from hh_vibe.providers.llm.base import LLMProvider
from hh_vibe.schemas.profession import ProfessionCard, ProfessionSummary
from hh_vibe.services.card_generation import CardOptions, generate_card
from hh_vibe.services.slug import slugify

logger = logging.getLogger(__name__)


class CardStore:
    """File-backed key-value store of profession cards.

    Args:
        cards_dir: Directory holding ``{slug}.json`` files. Created on first write.
        llm: LLM provider used by ``generate``.
        market: Market adapter used by ``generate``.
    """

    def __init__(
        self,
        cards_dir: Path,
        llm: LLMProvider,
        market: MarketDataAdapter,
    ) -> None:
        self.cards_dir = Path(cards_dir)
        self._llm = llm
        self._market = market
        # An entry lives only while some caller holds or awaits its lock
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def _path(self, slug: str) -> Path:
        return self.cards_dir / f"{slug}.json"

    def _read(self, path: Path) -> ProfessionCard | None:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return ProfessionCard.model_validate(data)
        except FileNotFoundError:
            return None
        except (json.JSONDecodeError, PydanticValidationError) as e:
            logger.warning("Skipping unreadable card file %s: %s", path.name, e)
            return None

    def _write(self, slug: str, card: ProfessionCard) -> None:
        self.cards_dir.mkdir(parents=True, exist_ok=True)
        payload = card.model_dump(mode="json", by_alias=True, exclude_none=True)
        tmp_path = self._path(slug).with_suffix(".json.tmp")
        tmp_path.write_text(
            json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8"
        )
        # Atomic replace so readers never see a half-written card
        tmp_path.replace(self._path(slug))

    # =========================================================================
    # Key-value operations
    # =========================================================================

    async def get(self, slug: str) -> ProfessionCard | None:
        """Load a card by slug.

        Args:
            slug: Card key. Anything that is not a valid slug misses.

        Returns:
            The stored card, or None.
        """
        if not slug or slugify(slug) != slug:
            return None
        return await asyncio.to_thread(self._read, self._path(slug))

    async def put(self, slug: str, card: ProfessionCard) -> None:
        """Store a card under ``slug``, replacing any previous version.

        Raises:
            ValueError: If ``slug`` is not a normalized slug.
        """
        if not slug or slugify(slug) != slug:
            raise ValueError(f"Invalid card slug: {slug!r}")
        await asyncio.to_thread(self._write, slug, card)
        logger.info("Stored card %s", slug)

    async def list_cards(self) -> list[ProfessionCard]:
        """Load every stored card, sorted by slug. Unreadable files are skipped."""

        def _load_all() -> list[ProfessionCard]:
            if not self.cards_dir.is_dir():
                return []
            cards = (self._read(path) for path in sorted(self.cards_dir.glob("*.json")))
            return [card for card in cards if card is not None]

        return await asyncio.to_thread(_load_all)

    async def list_summaries(self) -> list[ProfessionSummary]:
        """Catalog view of the store."""
        return [
            ProfessionSummary(
                slug=card.slug,
                profession=card.profession,
                level=card.level,
                company=card.company,
                vacancies=card.vacancies,
                competition=card.competition,
                location=card.location,
                image=card.images[0] if card.images else None,
            )
            for card in await self.list_cards()
        ]

    # =========================================================================
    # Generation
    # =========================================================================

    async def generate(
        self,
        profession: str,
        level: str,
        company: str,
        options: CardOptions | None = None,
        *,
        force: bool = False,
    ) -> ProfessionCard:
        """Return the stored card for ``profession``, generating it on a miss.

        Args:
            profession: Profession name; its slug is the store key.
            level: Card level (Junior / Middle / Senior).
            company: Company label.
            options: Personalization and progress reporting.
            force: Generate even when a card is stored, replacing it.
                Personalized cards use this.

        Returns:
            The stored or newly generated card.

        Raises:
            CardGenerationError: If generation fails. Nothing is stored.
        """
        slug = slugify(profession)
        lock = self._locks.get(slug)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[slug] = lock

        async with lock:
            cached = None if force else await self.get(slug)
            if cached is not None:
                logger.info("Card %s served from store", slug)
                return cached

            card = await generate_card(
                self._llm,
                self._market,
                profession=profession,
                level=level,
                company=company,
                options=options,
            )
            await self.put(card.slug, card)
            return card
