"""Job-market statistics derived from HeadHunter listings.

Turns raw listings into the numbers the chat and the card generator show:
vacancy count, competition label and a RUR salary range. Also extracts
candidate profession names from vacancy titles for the search and
similar-professions flows.

Market failures never propagate from here: statistics degrade to zero
values and name extraction to an empty list.
"""

import asyncio
import logging
import re
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass

from hh_vibe.adapters.market import (
    Listing,
    MarketDataAdapter,
    MarketDataError,
    SearchParams,
)

logger = logging.getLogger(__name__)

UNKNOWN_COMPETITION = "неизвестно"
_STATS_PAGE_SIZE = 20

# (lower bound of vacancies, label), checked top-down with ">".
_COMPETITION_THRESHOLDS: tuple[tuple[int, str], ...] = (
    (1000, "высокая"),
    (500, "средняя"),
    (100, "низкая"),
)
_LOWEST_COMPETITION = "очень низкая"

_PARENTHESES = re.compile(r"\(.*?\)")
_AT_COMPANY_SUFFIX = re.compile(r"\s*в\s+компани[юи].*$", re.IGNORECASE)
_REMOTE_SUFFIX = re.compile(r"\s*-\s*удалённо.*$", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")
_NAME_SPLIT = re.compile(r"[,/]")
_HTML_TAG = re.compile(r"<[^>]*>")

MIN_NAME_LENGTH = 3
MAX_NAME_LENGTH = 50


@dataclass(frozen=True)
class ProfessionStats:
    """Market statistics for one profession query.

    Attributes:
        vacancies: Total vacancies reported by the market.
        avg_salary: Mean RUR salary rounded to the nearest 1000.
        min_salary: Lowest lower bound among RUR salaries.
        max_salary: Highest upper bound among RUR salaries.
        competition: Russian label derived from ``vacancies``.
    """

    vacancies: int = 0
    avg_salary: int | None = None
    min_salary: int | None = None
    max_salary: int | None = None
    competition: str = UNKNOWN_COMPETITION

    @classmethod
    def empty(cls) -> "ProfessionStats":
        """Zero-valued statistics used when the market is unavailable."""
        return cls()

    def format_salary(self) -> str:
        """Render the salary line used in comparison prompts."""
        if not self.avg_salary:
            return "не указана в вакансиях"
        if self.min_salary and self.max_salary:
            return (
                f"{format_rubles(self.min_salary)} - {format_rubles(self.max_salary)} "
                f"руб. (средняя: {format_rubles(self.avg_salary)} руб.)"
            )
        return f"~{format_rubles(self.avg_salary)} руб."


def format_rubles(amount: int) -> str:
    """Format an amount with Russian thousands grouping (``150 000``)."""
    return f"{amount:,}".replace(",", " ")


def competition_label(vacancies: int) -> str:
    """Map a vacancy count to a competition label.

    Args:
        vacancies: Total vacancy count.

    Returns:
        "высокая", "средняя", "низкая" or "очень низкая".
    """
    for threshold, label in _COMPETITION_THRESHOLDS:
        if vacancies > threshold:
            return label
    return _LOWEST_COMPETITION


def summarize_listings(total_count: int, listings: Iterable[Listing]) -> ProfessionStats:
    """Build statistics from a search result.

    Only RUR salaries count. A listing with both bounds contributes its
    midpoint to the average; a listing with one bound contributes that bound.

    Args:
        total_count: Vacancies reported by the market.
        listings: Listings returned for the query.

    Returns:
        ProfessionStats for the query.
    """
    salaries: list[float] = []
    lower_bounds: list[int] = []
    upper_bounds: list[int] = []

    for listing in listings:
        salary = listing.salary
        if salary is None or salary.currency != "RUR":
            continue
        if salary.min and salary.max:
            salaries.append((salary.min + salary.max) / 2)
            lower_bounds.append(salary.min)
            upper_bounds.append(salary.max)
        elif salary.min:
            salaries.append(salary.min)
            lower_bounds.append(salary.min)
        elif salary.max:
            salaries.append(salary.max)
            upper_bounds.append(salary.max)

    avg_salary = None
    if salaries:
        avg_salary = round(sum(salaries) / len(salaries) / 1000) * 1000

    return ProfessionStats(
        vacancies=total_count,
        avg_salary=avg_salary,
        min_salary=min(lower_bounds) if lower_bounds else None,
        max_salary=max(upper_bounds) if upper_bounds else None,
        competition=competition_label(total_count),
    )


async def fetch_profession_stats(
    market: MarketDataAdapter,
    profession: str,
) -> ProfessionStats:
    """Fetch market statistics for a profession name.

    Args:
        market: Market data adapter.
        profession: Free-text profession name used as the search query.

    Returns:
        ProfessionStats; zero-valued if the market call fails.
    """
    try:
        result = await market.search(
            SearchParams(text=profession, page_size=_STATS_PAGE_SIZE)
        )
    except MarketDataError as e:
        logger.warning("Market stats unavailable for %r: %s", profession, e)
        return ProfessionStats.empty()

    stats = summarize_listings(result.total_count, result.items)
    logger.info(
        "Market stats for %r: %d vacancies, avg salary %s",
        profession,
        stats.vacancies,
        stats.avg_salary,
    )
    return stats


async def fetch_stats_pair(
    market: MarketDataAdapter,
    first: str,
    second: str,
) -> tuple[ProfessionStats, ProfessionStats]:
    """Fetch statistics for two professions concurrently."""
    first_stats, second_stats = await asyncio.gather(
        fetch_profession_stats(market, first),
        fetch_profession_stats(market, second),
    )
    return first_stats, second_stats


def clean_vacancy_title(title: str) -> str:
    """Reduce a vacancy title to a bare profession name.

    Drops parenthesised text, "в компании ..." and "- удалённо" suffixes,
    then keeps the part before the first comma or slash.

        >>> clean_vacancy_title("Бариста (кофейня) в компании Кофемания")
        'Бариста'
    """
    name = _PARENTHESES.sub("", title)
    name = _AT_COMPANY_SUFFIX.sub("", name)
    name = _REMOTE_SUFFIX.sub("", name)
    name = _WHITESPACE.sub(" ", name).strip()
    return _NAME_SPLIT.split(name)[0].strip()


def extract_profession_names(
    listings: Iterable[Listing],
    exclude: str | None = None,
    limit: int = 10,
) -> list[tuple[str, int]]:
    """Rank candidate profession names found in vacancy titles.

    Args:
        listings: Listings to mine.
        exclude: Profession to skip (case-insensitive), e.g. the one the
            user already looks at.
        limit: Maximum number of names to return.

    Returns:
        ``(name, count)`` pairs, most frequent first.
    """
    excluded = exclude.lower() if exclude else None
    counts: Counter[str] = Counter()

    for listing in listings:
        if not listing.title:
            continue
        name = clean_vacancy_title(listing.title)
        if excluded is not None and name.lower() == excluded:
            continue
        if MIN_NAME_LENGTH <= len(name) <= MAX_NAME_LENGTH:
            counts[name] += 1

    return counts.most_common(limit)


async def find_market_professions(
    market: MarketDataAdapter,
    keywords: Iterable[str],
    limit: int = 20,
    page_size: int = 100,
    exclude: str | None = None,
) -> list[tuple[str, int]]:
    """Search the market by keywords and rank profession names across results.

    A keyword whose search fails is skipped.

    Args:
        market: Market data adapter.
        keywords: Search queries, one request each.
        limit: Maximum number of names to return.
        page_size: Listings requested per keyword.
        exclude: Profession name to leave out.

    Returns:
        ``(name, count)`` pairs, most frequent first.
    """
    listings: list[Listing] = []
    for keyword in keywords:
        try:
            result = await market.search(SearchParams(text=keyword, page_size=page_size))
        except MarketDataError as e:
            logger.warning("Market search failed for keyword %r: %s", keyword, e)
            continue
        listings.extend(result.items)

    names = extract_profession_names(listings, exclude=exclude, limit=limit)
    logger.info("Extracted %d profession names from market listings", len(names))
    return names


def strip_html(text: str | None) -> str:
    """Remove HTML tags (HeadHunter highlights matches with ``<highlighttext>``)."""
    if not text:
        return ""
    return _HTML_TAG.sub("", text).strip()
