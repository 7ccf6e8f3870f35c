"""In-process profession catalog.

A snapshot of the card store taken once per chat turn: the search, similar
and suggestion flows offer these cards to the LLM and match user queries
against them.
"""

from dataclasses import dataclass

from hh_vibe.schemas.chat import ProfessionCardRef
from hh_vibe.schemas.profession import ProfessionSummary
from hh_vibe.services.card_store import CardStore
from hh_vibe.services.slug import slugify


@dataclass(frozen=True)
class CatalogEntry:
    """One stored profession as seen by the chat flows."""

    slug: str
    profession: str
    level: str
    company: str
    image: str | None = None

    def to_ref(self) -> ProfessionCardRef:
        """Return the chat card reference for this entry."""
        return ProfessionCardRef(
            slug=self.slug,
            profession=self.profession,
            level=self.level,
            company=self.company,
            image=self.image,
        )

    def prompt_line(self) -> str:
        """Render the entry for a catalog listing inside a prompt."""
        return f"{self.profession} ({self.level}, {self.company}) - slug: {self.slug}"

    @classmethod
    def from_summary(cls, summary: ProfessionSummary) -> "CatalogEntry":
        return cls(
            slug=summary.slug,
            profession=summary.profession,
            level=summary.level,
            company=summary.company,
            image=summary.image,
        )


class ProfessionCatalog:
    """Immutable list of catalog entries with lookup helpers."""

    def __init__(self, entries: list[CatalogEntry]) -> None:
        self.entries = entries

    @classmethod
    async def load(cls, store: CardStore) -> "ProfessionCatalog":
        """Snapshot the card store."""
        summaries = await store.list_summaries()
        return cls([CatalogEntry.from_summary(s) for s in summaries])

    def __len__(self) -> int:
        return len(self.entries)

    def by_slug(self, slug: str | None) -> CatalogEntry | None:
        """Find an entry by exact slug."""
        if not slug:
            return None
        return next((e for e in self.entries if e.slug == slug), None)

    def find_exact(self, name: str) -> CatalogEntry | None:
        """Find an entry whose name or slug equals ``name`` (case-insensitive)."""
        name_lower = name.strip().lower()
        slug = slugify(name)
        return next(
            (
                e
                for e in self.entries
                if e.profession.lower() == name_lower or e.slug == slug
            ),
            None,
        )

    def find_partial(self, query: str) -> list[CatalogEntry]:
        """Entries whose name contains the query or is contained in it."""
        query_lower = query.strip().lower()
        if not query_lower:
            return []
        return [
            e
            for e in self.entries
            if query_lower in e.profession.lower() or e.profession.lower() in query_lower
        ]

    def names(self) -> list[str]:
        return [e.profession for e in self.entries]

    def prompt_lines(self) -> list[str]:
        return [e.prompt_line() for e in self.entries]
