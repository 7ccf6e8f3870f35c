"""Shared fixtures and builders for the HH Vibe test suite.

- MockLLMProvider keyed by TaskType (injected into the factory singleton)
- FakeMarket: in-memory MarketDataAdapter with scripted search results
- card_store: CardStore over a temp directory
- client: httpx AsyncClient against create_app() with dependencies overridden
"""

import json
from collections.abc import AsyncIterator, Iterator
from pathlib import Path
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from hh_vibe.adapters.market import (
    Listing,
    MarketDataAdapter,
    MarketDataUnavailableError,
    SalaryRange,
    SearchParams,
    SearchResult,
)
from hh_vibe.agents.intent import Intent, IntentResult
from hh_vibe.agents.state import Idle, SubflowState
from hh_vibe.agents.subflows.base import SubflowContext
from hh_vibe.api import deps
from hh_vibe.core.rate_limiting import limiter
from hh_vibe.providers import factory
from hh_vibe.providers.llm.mock_adapter import MockLLMProvider
from hh_vibe.schemas.chat import Message, Persona, ProfessionCardRef
from hh_vibe.schemas.profession import ProfessionCard
from hh_vibe.services.card_store import CardStore
from hh_vibe.services.profession_catalog import ProfessionCatalog

# =============================================================================
# Builders
# =============================================================================


def user(content: str) -> Message:
    """Build a user history message."""
    return Message(role="user", content=content)


def assistant(
    content: str = "...",
    metadata: dict[str, Any] | None = None,
    cards: list[ProfessionCardRef] | None = None,
) -> Message:
    """Build an assistant history message carrying sub-flow metadata."""
    return Message(role="assistant", content=content, metadata=metadata, cards=cards)


def as_json(data: dict[str, Any]) -> str:
    """Serialize a scripted LLM answer."""
    return json.dumps(data, ensure_ascii=False)


def make_card(profession: str, slug: str, **overrides: Any) -> ProfessionCard:
    """Build a minimal stored profession card."""
    fields: dict[str, Any] = {
        "slug": slug,
        "profession": profession,
        "level": "Middle",
        "company": "IT-компания",
        "vacancies": 1200,
        "competition": "высокая",
    }
    fields.update(overrides)
    return ProfessionCard(**fields)


def listing(
    title: str,
    salary_from: int | None = None,
    salary_to: int | None = None,
    currency: str = "RUR",
    responsibility: str | None = None,
    requirement: str | None = None,
) -> Listing:
    """Build a market listing."""
    salary = None
    if salary_from is not None or salary_to is not None:
        salary = SalaryRange(min=salary_from, max=salary_to, currency=currency)
    return Listing(
        title=title,
        salary=salary,
        responsibility_snippet=responsibility,
        requirement_snippet=requirement,
        employer_name="ООО Ромашка",
    )


def intent(name: str, **extracted: Any) -> IntentResult:
    """Build a classifier result with extracted entities."""
    return IntentResult(intent=Intent(name), confidence=0.9, extracted_info=extracted)


async def make_context(
    llm: MockLLMProvider,
    market: "FakeMarket",
    store: CardStore,
    message: str,
    *,
    history: list[Message] | None = None,
    persona: Persona | None = None,
    classified: IntentResult | None = None,
    subflow: SubflowState | None = None,
) -> SubflowContext:
    """Build a handler context with the catalog loaded from ``store``."""
    return SubflowContext(
        llm=llm,
        market=market,
        store=store,
        catalog=await ProfessionCatalog.load(store),
        base_url="https://vibe.test",
        message=message,
        history=history or [],
        persona=persona or Persona(),
        intent=classified or IntentResult.fallback(),
        subflow=subflow or Idle(),
    )


# =============================================================================
# Market
# =============================================================================


class FakeMarket(MarketDataAdapter):
    """In-memory market adapter.

    Attributes:
        results: SearchResult per exact query text.
        failing: Query texts that raise MarketDataUnavailableError.
        fail_all: Raise for every query.
        queries: Every SearchParams received, in order.
    """

    def __init__(self) -> None:
        self.results: dict[str, SearchResult] = {}
        self.failing: set[str] = set()
        self.fail_all = False
        self.queries: list[SearchParams] = []

    @property
    def source_name(self) -> str:
        return "Fake"

    def add(self, text: str, items: list[Listing], total_count: int | None = None) -> None:
        self.results[text] = SearchResult(
            total_count=len(items) if total_count is None else total_count,
            items=items,
        )

    async def search(self, params: SearchParams) -> SearchResult:
        self.queries.append(params)
        if self.fail_all or params.text in self.failing:
            raise MarketDataUnavailableError(f"market down for {params.text!r}")
        result = self.results.get(params.text, SearchResult(total_count=0))
        return SearchResult(
            total_count=result.total_count,
            items=result.items[: params.page_size],
        )

    def normalize(self, raw_item: dict[str, Any]) -> Listing:
        return Listing(title=raw_item.get("name", ""))


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def mock_llm() -> Iterator[MockLLMProvider]:
    """Mock LLM injected into the factory singleton, reset after the test.

    Unconfigured tasks answer "Mock response for {task}", which is not JSON,
    so JSON call sites take their static fallback unless a test scripts them.
    """
    mock = MockLLMProvider()
    factory._llm_provider = mock

    yield mock

    factory.reset_providers()


@pytest.fixture
def market() -> FakeMarket:
    return FakeMarket()


@pytest.fixture
def cards_dir(tmp_path: Path) -> Path:
    return tmp_path / "professions"


@pytest.fixture
def card_store(cards_dir: Path, mock_llm: MockLLMProvider, market: FakeMarket) -> CardStore:
    return CardStore(cards_dir, mock_llm, market)


@pytest.fixture
def card_json() -> str:
    """A valid CARD_GENERATION answer."""
    return as_json(
        {
            "isIT": True,
            "schedule": [
                {
                    "time": "10:00",
                    "title": "Стендап",
                    "emoji": "☕",
                    "description": "Синк с командой",
                    "detail": "15 минут",
                }
            ],
            "stack": ["Python", "PostgreSQL"],
            "benefits": [{"icon": "🏠", "text": "Удалёнка"}],
            "careerPath": [{"level": "Junior", "years": "0-1", "salary": "80 000 ₽"}],
            "skills": [{"name": "Python", "level": 70}],
            "dialog": {
                "message": "Прод упал",
                "options": ["Откатить", "Чинить"],
                "response": "Сначала откат",
            },
        }
    )


@pytest.fixture(autouse=True)
def _no_rate_limit() -> Iterator[None]:
    """Rate limiting is off unless a test turns it on."""
    enabled = limiter.enabled
    limiter.enabled = False
    yield
    limiter.enabled = enabled
    limiter.reset()


@pytest.fixture
def app(mock_llm: MockLLMProvider, market: FakeMarket, card_store: CardStore):
    """Application with the LLM, market and card store overridden."""
    from hh_vibe.main import create_app

    deps.reset_dependencies()
    application = create_app()
    application.dependency_overrides[deps.get_llm] = lambda: mock_llm
    application.dependency_overrides[deps.get_market] = lambda: market
    application.dependency_overrides[deps.get_card_store] = lambda: card_store

    yield application

    application.dependency_overrides.clear()
    deps.reset_dependencies()


@pytest.fixture
async def client(app) -> AsyncIterator[AsyncClient]:
    """Async HTTP client against the test application."""
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
