"""Job-market data adapters.

This module provides:
- MarketDataAdapter base class and listing types
- HeadHunterAdapter for api.hh.ru
- Factory function to get adapters by source name
"""

from hh_vibe.adapters.market.base import (
    Listing,
    MarketDataAdapter,
    MarketDataError,
    MarketDataUnavailableError,
    SalaryRange,
    SearchParams,
    SearchResult,
)
from hh_vibe.adapters.market.hh import HeadHunterAdapter

# Case-insensitive lookup; "hh" is the short name used in configuration.
_ADAPTER_REGISTRY: dict[str, type[MarketDataAdapter]] = {
    "hh": HeadHunterAdapter,
    "headhunter": HeadHunterAdapter,
}


def get_market_adapter(source_name: str, **kwargs: object) -> MarketDataAdapter:
    """Get a market adapter instance by source name.

    Args:
        source_name: Name of the market source (e.g., "hh", "HeadHunter").
            Case-insensitive matching.
        **kwargs: Passed to the adapter constructor.

    Returns:
        Instantiated adapter for the specified source.

    Raises:
        ValueError: If source_name is not a known source.
    """
    adapter_class = _ADAPTER_REGISTRY.get(source_name.lower())
    if adapter_class is None:
        known_sources = ", ".join(_ADAPTER_REGISTRY.keys())
        raise ValueError(
            f"Unknown market source: '{source_name}'. Known sources: {known_sources}"
        )
    return adapter_class(**kwargs)  # type: ignore[arg-type]


__all__ = [
    "get_market_adapter",
    "HeadHunterAdapter",
    "Listing",
    "MarketDataAdapter",
    "MarketDataError",
    "MarketDataUnavailableError",
    "SalaryRange",
    "SearchParams",
    "SearchResult",
]
