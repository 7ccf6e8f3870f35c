"""HeadHunter (api.hh.ru) market data adapter.

Public vacancies endpoint, no API key required. HeadHunter asks every
client to send an identifying User-Agent.

Coverage: Russia and CIS (area 113 = Russia).
"""

import logging
from typing import Any

import httpx

from hh_vibe.adapters.market.base import (
    Listing,
    MarketDataAdapter,
    MarketDataError,
    MarketDataUnavailableError,
    SalaryRange,
    SearchParams,
    SearchResult,
)
from hh_vibe.providers.retry import RetryPolicy, with_retries

logger = logging.getLogger(__name__)

_DEFAULT_BASE_URL = "https://api.hh.ru"
_DEFAULT_USER_AGENT = "HH-Vibe-Career-App/1.0"
_DEFAULT_AREA = 113
_DEFAULT_TIMEOUT = 10.0
# HeadHunter caps per_page at 100
_MAX_PAGE_SIZE = 100


class HeadHunterAdapter(MarketDataAdapter):
    """Adapter for the HeadHunter vacancies API.

    Args:
        base_url: API root.
        user_agent: User-Agent header value.
        area: Default region filter.
        timeout: Per-request timeout in seconds.
        transport: Optional httpx transport (tests use httpx.MockTransport).
        retry_policy: Retry budget for timeouts, 429 and 5xx answers.
    """

    def __init__(
        self,
        base_url: str = _DEFAULT_BASE_URL,
        user_agent: str = _DEFAULT_USER_AGENT,
        area: int = _DEFAULT_AREA,
        timeout: float = _DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.user_agent = user_agent
        self.area = area
        self.timeout = timeout
        self._transport = transport
        self._retry_policy = retry_policy or RetryPolicy()

    @property
    def source_name(self) -> str:
        """Return 'HeadHunter' as the canonical source name."""
        return "HeadHunter"

    async def search(self, params: SearchParams) -> SearchResult:
        """Search HeadHunter vacancies.

        Args:
            params: Search parameters.

        Returns:
            SearchResult with ``found`` as total_count.

        Raises:
            MarketDataError: On HTTP failure or an unexpected payload.
        """
        query = {
            "text": params.text,
            "per_page": min(params.page_size, _MAX_PAGE_SIZE),
            "order_by": params.order_by,
            "area": params.area if params.area is not None else self.area,
        }

        async def _call() -> dict[str, Any]:
            return await self._get_json("/vacancies", query)

        payload = await with_retries(
            _call,
            self._retry_policy,
            retryable_errors=(MarketDataUnavailableError,),
            label="HeadHunter",
        )

        try:
            total = int(payload.get("found", 0))
            items = [
                self.normalize(item)
                for item in payload.get("items") or []
                if isinstance(item, dict)
            ]
        except (TypeError, ValueError, KeyError) as e:
            raise MarketDataError(f"Unexpected HeadHunter payload: {e}") from e

        return SearchResult(total_count=total, items=items)

    async def _get_json(self, path: str, query: dict[str, Any]) -> dict[str, Any]:
        """GET a JSON document, mapping failures to MarketDataError."""
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                headers={"User-Agent": self.user_agent},
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                resp = await client.get(path, params=query)
        except httpx.TimeoutException as e:
            raise MarketDataUnavailableError(f"HeadHunter timeout: {e}") from e
        except httpx.TransportError as e:
            raise MarketDataUnavailableError(f"HeadHunter unreachable: {e}") from e

        if resp.status_code == 429 or resp.status_code >= 500:
            raise MarketDataUnavailableError(
                f"HeadHunter returned HTTP {resp.status_code}"
            )
        if resp.status_code >= 400:
            raise MarketDataError(f"HeadHunter returned HTTP {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as e:
            raise MarketDataError("HeadHunter returned non-JSON body") from e
        if not isinstance(data, dict):
            raise MarketDataError("HeadHunter returned a non-object body")
        return data

    def normalize(self, raw_item: dict[str, Any]) -> Listing:
        """Convert a HeadHunter vacancy item to a Listing.

        Args:
            raw_item: Item from the ``items`` array.
                Expected fields:
                - name: Vacancy title
                - salary.from / salary.to / salary.currency (optional)
                - snippet.responsibility / snippet.requirement (optional)
                - employer.name (optional)

        Returns:
            Normalized Listing.
        """
        salary_data = raw_item.get("salary")
        salary = None
        if isinstance(salary_data, dict):
            salary = SalaryRange(
                min=salary_data.get("from"),
                max=salary_data.get("to"),
                currency=salary_data.get("currency"),
            )

        snippet = raw_item.get("snippet")
        snippet = snippet if isinstance(snippet, dict) else {}

        employer = raw_item.get("employer")
        employer_name = employer.get("name") if isinstance(employer, dict) else None

        return Listing(
            title=str(raw_item.get("name") or ""),
            salary=salary,
            responsibility_snippet=snippet.get("responsibility"),
            requirement_snippet=snippet.get("requirement"),
            employer_name=employer_name,
            raw_data=raw_item,
        )
