"""Shared dependencies for API endpoints.

Builds the LLM provider, market adapter, card store and chat orchestrator
once per process and hands them to routers through FastAPI Depends. Tests
replace them through ``app.dependency_overrides``. The card store is a
single instance so its per-slug generation locks span all requests.
"""

from typing import Annotated

from fastapi import Depends

from hh_vibe.adapters.market import MarketDataAdapter, get_market_adapter
from hh_vibe.agents.orchestrator import ChatOrchestrator
from hh_vibe.core.config import settings
from hh_vibe.providers.factory import get_llm_provider
from hh_vibe.providers.llm.base import LLMProvider
from hh_vibe.services.card_store import CardStore

_market: MarketDataAdapter | None = None
_card_store: CardStore | None = None
_orchestrator: ChatOrchestrator | None = None


def get_llm() -> LLMProvider:
    """Return the configured LLM provider singleton."""
    return get_llm_provider()


def get_market() -> MarketDataAdapter:
    """Return the HeadHunter adapter configured from settings."""
    global _market
    if _market is None:
        _market = get_market_adapter(
            "hh",
            base_url=settings.hh_api_url,
            user_agent=settings.hh_user_agent,
            area=settings.hh_area,
            timeout=settings.hh_timeout_seconds,
        )
    return _market


LLM = Annotated[LLMProvider, Depends(get_llm)]
Market = Annotated[MarketDataAdapter, Depends(get_market)]


def get_card_store(llm: LLM, market: Market) -> CardStore:
    """Return the process-wide card store."""
    global _card_store
    if _card_store is None:
        _card_store = CardStore(settings.cards_dir, llm, market)
    return _card_store


Store = Annotated[CardStore, Depends(get_card_store)]


def get_orchestrator(llm: LLM, market: Market, store: Store) -> ChatOrchestrator:
    """Return the process-wide chat orchestrator (graph compiled once)."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = ChatOrchestrator(llm, market, store, settings.base_url)
    return _orchestrator


Orchestrator = Annotated[ChatOrchestrator, Depends(get_orchestrator)]


def reset_dependencies() -> None:
    """Drop cached singletons.

    Used in tests to ensure isolation between test cases.
    """
    global _market, _card_store, _orchestrator
    _market = None
    _card_store = None
    _orchestrator = None
