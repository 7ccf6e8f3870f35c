"""Errors that map onto the HTTP error envelope.

Each subclass pins an HTTP status and a machine-readable code; the
handlers in ``hh_vibe.main`` render any APIError as
``{"error": {"code", "message", "details"}}``.
"""

from typing import ClassVar


class APIError(Exception):
    """An error the client is allowed to see.

    Attributes:
        code: Machine-readable code ("NOT_FOUND", "CARD_GENERATION_FAILED").
        message: Human-readable message.
        details: Optional field-level details.
    """

    status_code: ClassVar[int] = 500
    default_code: ClassVar[str] = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        details: list[dict] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details


class ValidationError(APIError):
    """Request body or parameters rejected (400)."""

    status_code = 400
    default_code = "VALIDATION_ERROR"


class NotFoundError(APIError):
    """No such resource (404)."""

    status_code = 404
    default_code = "NOT_FOUND"

    def __init__(self, resource: str, key: str | None = None) -> None:
        super().__init__(f"{resource} '{key}' not found" if key else f"{resource} not found")


class RateLimitedError(APIError):
    """Client exceeded an endpoint's request budget (429)."""

    status_code = 429
    default_code = "RATE_LIMITED"


class UpstreamError(APIError):
    """The LLM or the market API failed a request that has no fallback (502)."""

    status_code = 502
    default_code = "UPSTREAM_ERROR"


class InternalError(APIError):
    """Anything unexpected (500). The message never carries internals."""

    def __init__(self) -> None:
        super().__init__("An unexpected error occurred")
