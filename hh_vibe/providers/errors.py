"""Failures of the LLM provider layer.

Adapters translate vendor SDK exceptions into these classes, so chat
sub-flows can fall back on a single ``except ProviderError`` and the retry
loop can decide what is worth another attempt.

Retryable: TransientError, RateLimitError. Everything else fails fast.
"""

__all__ = [
    "ProviderError",
    "RateLimitError",
    "AuthenticationError",
    "ModelNotFoundError",
    "ContentFilterError",
    "ContextLengthError",
    "TransientError",
    "GenerationError",
]


class ProviderError(Exception):
    """Any failure to obtain a usable completion."""


class RateLimitError(ProviderError):
    """The vendor throttled us.

    Attributes:
        retry_after_seconds: Vendor hint, overrides exponential backoff.
    """

    def __init__(self, message: str, retry_after_seconds: float | None = None):
        super().__init__(message)
        self.retry_after_seconds = retry_after_seconds


class AuthenticationError(ProviderError):
    """Missing or rejected API key, or a region the vendor refuses to serve."""


class ModelNotFoundError(ProviderError):
    """A routed model name does not exist for this account."""


class ContentFilterError(ProviderError):
    """Prompt or completion blocked by the vendor's safety filter."""


class ContextLengthError(ProviderError):
    """Prompt exceeds the model's context window."""


class TransientError(ProviderError):
    """Network failure, timeout or 5xx. Safe to retry."""


class GenerationError(ProviderError):
    """The model answered, but the answer is unusable.

    Raised for empty completions and for JSON-mode completions that do not
    parse into a JSON object.
    """
