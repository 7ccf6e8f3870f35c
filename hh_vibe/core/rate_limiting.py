"""Per-client request budgets for the LLM-backed endpoints (slowapi).

The API is anonymous, so clients are keyed by IP address. Behind a reverse
proxy the first X-Forwarded-For hop is the client.

Usage in routers:
    @router.post("")
    @limiter.limit(settings.rate_limit_chat)
    async def chat(request: Request, ...):
        ...
"""

from fastapi import Request, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from hh_vibe.core.config import settings
from hh_vibe.core.errors import RateLimitedError
from hh_vibe.core.responses import error_response

DEFAULT_RETRY_AFTER_SECONDS = 60


def client_key(request: Request) -> str:
    """Rate limit key: the client IP."""
    forwarded = request.headers.get("x-forwarded-for", "")
    first_hop = forwarded.split(",")[0].strip()
    return first_hop or get_remote_address(request)


# In-memory storage: limits are per process
limiter = Limiter(key_func=client_key, enabled=settings.rate_limit_enabled)


def _window_seconds(exc: RateLimitExceeded) -> int:
    """Length of the violated limit's window, used as Retry-After."""
    item = getattr(getattr(exc, "limit", None), "limit", None)
    if item is None:
        return DEFAULT_RETRY_AFTER_SECONDS
    return int(item.get_expiry())


def rate_limit_exceeded_handler(_request: Request, exc: RateLimitExceeded) -> Response:
    """429 RATE_LIMITED in the error envelope, with a Retry-After header."""
    error = RateLimitedError(f"Rate limit exceeded: {exc.detail}")
    return error_response(error, headers={"Retry-After": str(_window_seconds(exc))})
