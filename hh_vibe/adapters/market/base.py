"""Abstract base class and types for job-market data adapters.

MarketDataAdapter interface with search() and normalize(). The chat flow
uses live vacancy listings for market statistics, task examples, career
levels and profession-name discovery.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


class MarketDataError(Exception):
    """The market API could not answer (network, HTTP error, bad payload)."""

    pass


class MarketDataUnavailableError(MarketDataError):
    """Temporary market API failure (timeout, 429, 5xx). Safe to retry."""

    pass


@dataclass
class SearchParams:
    """Search parameters for vacancy queries.

    Attributes:
        text: Free-text query (usually a profession name).
        page_size: Number of listings to return.
        area: Optional region filter; None uses the adapter default.
        order_by: Result ordering understood by the source.
    """

    text: str
    page_size: int = 20
    area: int | None = None
    order_by: str = "relevance"


@dataclass
class SalaryRange:
    """Salary fork of a listing. Either bound may be missing."""

    min: int | None = None
    max: int | None = None
    currency: str | None = None


@dataclass
class Listing:
    """One vacancy listing in source-agnostic form.

    Attributes:
        title: Vacancy title.
        salary: Optional salary fork.
        responsibility_snippet: Short responsibilities excerpt (may contain HTML).
        requirement_snippet: Short requirements excerpt (may contain HTML).
        employer_name: Employer display name.
        raw_data: Full source item for debugging.
    """

    title: str
    salary: SalaryRange | None = None
    responsibility_snippet: str | None = None
    requirement_snippet: str | None = None
    employer_name: str | None = None
    raw_data: dict[str, Any] | None = field(default=None, repr=False)


@dataclass
class SearchResult:
    """Result page of a vacancy search.

    Attributes:
        total_count: Total vacancies matching the query (not just this page).
        items: Listings on this page.
    """

    total_count: int
    items: list[Listing] = field(default_factory=list)


class MarketDataAdapter(ABC):
    """Abstract base class for market data adapters."""

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Return the canonical name for this source (e.g., "HeadHunter")."""
        ...

    @abstractmethod
    async def search(self, params: SearchParams) -> SearchResult:
        """Search vacancies.

        Args:
            params: Search parameters.

        Returns:
            SearchResult with the total count and the requested page.

        Raises:
            MarketDataError: On API failure after retries.
        """
        ...

    @abstractmethod
    def normalize(self, raw_item: dict[str, Any]) -> Listing:
        """Convert a source-specific item to a Listing.

        Args:
            raw_item: Raw item dict from the source.

        Returns:
            Normalized Listing.
        """
        ...
