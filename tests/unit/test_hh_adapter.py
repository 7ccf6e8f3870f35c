"""Tests for the HeadHunter market adapter.

Uses httpx.MockTransport so no request leaves the process.
"""

import json

import httpx
import pytest

from hh_vibe.adapters.market import (
    HeadHunterAdapter,
    MarketDataError,
    MarketDataUnavailableError,
    SearchParams,
    get_market_adapter,
)
from hh_vibe.providers.retry import RetryPolicy

_NO_RETRY = RetryPolicy(max_retries=0)

_VACANCY = {
    "name": "Python-разработчик",
    "salary": {"from": 150000, "to": 250000, "currency": "RUR"},
    "snippet": {
        "responsibility": "Разработка <highlighttext>API</highlighttext>",
        "requirement": "Опыт от 3 лет",
    },
    "employer": {"name": "Яндекс"},
}


def _adapter(handler, retry_policy=_NO_RETRY) -> HeadHunterAdapter:
    return HeadHunterAdapter(
        base_url="https://api.test",
        user_agent="HH-Vibe-Test/1.0",
        transport=httpx.MockTransport(handler),
        retry_policy=retry_policy,
    )


class TestSearch:
    """Vacancy search."""

    @pytest.mark.asyncio
    async def test_sends_query_and_user_agent(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"found": 1234, "items": [_VACANCY]})

        result = await _adapter(handler).search(SearchParams(text="Python", page_size=5))

        request = seen[0]
        assert request.url.path == "/vacancies"
        assert request.url.params["text"] == "Python"
        assert request.url.params["per_page"] == "5"
        assert request.url.params["area"] == "113"
        assert request.url.params["order_by"] == "relevance"
        assert request.headers["User-Agent"] == "HH-Vibe-Test/1.0"
        assert result.total_count == 1234
        assert result.items[0].title == "Python-разработчик"

    @pytest.mark.asyncio
    async def test_page_size_capped_at_100(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"found": 0, "items": []})

        await _adapter(handler).search(SearchParams(text="Бариста", page_size=500))

        assert seen[0].url.params["per_page"] == "100"

    @pytest.mark.asyncio
    async def test_server_error_is_unavailable(self):
        def handler(_request: httpx.Request) -> httpx.Response:
            return httpx.Response(503)

        with pytest.raises(MarketDataUnavailableError, match="503"):
            await _adapter(handler).search(SearchParams(text="x"))

    @pytest.mark.asyncio
    async def test_client_error_is_not_retried(self):
        calls = 0

        def handler(_request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(400)

        adapter = _adapter(handler, retry_policy=RetryPolicy(max_retries=2, retry_base_delay_ms=1))
        with pytest.raises(MarketDataError) as exc_info:
            await adapter.search(SearchParams(text="x"))

        assert not isinstance(exc_info.value, MarketDataUnavailableError)
        assert calls == 1

    @pytest.mark.asyncio
    async def test_rate_limit_is_retried_then_succeeds(self):
        responses = [
            httpx.Response(429),
            httpx.Response(200, json={"found": 7, "items": []}),
        ]

        def handler(_request: httpx.Request) -> httpx.Response:
            return responses.pop(0)

        adapter = _adapter(handler, retry_policy=RetryPolicy(max_retries=1, retry_base_delay_ms=1))
        result = await adapter.search(SearchParams(text="x"))

        assert result.total_count == 7

    @pytest.mark.asyncio
    async def test_transport_error_is_unavailable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(MarketDataUnavailableError, match="unreachable"):
            await _adapter(handler).search(SearchParams(text="x"))

    @pytest.mark.asyncio
    async def test_non_json_body_is_error(self):
        def handler(_request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"<html>")

        with pytest.raises(MarketDataError, match="non-JSON"):
            await _adapter(handler).search(SearchParams(text="x"))

    @pytest.mark.asyncio
    async def test_non_object_body_is_error(self):
        def handler(_request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=json.dumps([1, 2]).encode())

        with pytest.raises(MarketDataError, match="non-object"):
            await _adapter(handler).search(SearchParams(text="x"))

    @pytest.mark.asyncio
    async def test_non_object_items_skipped(self):
        def handler(_request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200, json={"found": 3, "items": ["vacancy", None, _VACANCY]}
            )

        result = await _adapter(handler).search(SearchParams(text="Python"))

        assert result.total_count == 3
        assert [item.title for item in result.items] == ["Python-разработчик"]

    @pytest.mark.asyncio
    async def test_items_not_a_list_is_error(self):
        def handler(_request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"found": 1, "items": 7})

        with pytest.raises(MarketDataError, match="Unexpected HeadHunter payload"):
            await _adapter(handler).search(SearchParams(text="Python"))


class TestNormalize:
    """Item normalization."""

    def test_full_item(self):
        listing = HeadHunterAdapter().normalize(_VACANCY)

        assert listing.salary is not None
        assert (listing.salary.min, listing.salary.max, listing.salary.currency) == (
            150000,
            250000,
            "RUR",
        )
        assert listing.responsibility_snippet == "Разработка <highlighttext>API</highlighttext>"
        assert listing.employer_name == "Яндекс"
        assert listing.raw_data is _VACANCY

    def test_missing_optional_fields(self):
        listing = HeadHunterAdapter().normalize({"name": "Курьер", "salary": None})

        assert listing.title == "Курьер"
        assert listing.salary is None
        assert listing.requirement_snippet is None
        assert listing.employer_name is None


class TestGetMarketAdapter:
    """Adapter registry."""

    def test_short_and_long_names(self):
        assert isinstance(get_market_adapter("hh"), HeadHunterAdapter)
        assert isinstance(get_market_adapter("HeadHunter"), HeadHunterAdapter)

    def test_kwargs_passed_through(self):
        adapter = get_market_adapter("hh", area=1)
        assert adapter.area == 1

    def test_unknown_source(self):
        with pytest.raises(ValueError, match="Unknown market source"):
            get_market_adapter("superjob")
