"""Exponential backoff with jitter for outbound calls.

Shared by the LLM adapters, whose budget comes from ProviderConfig, and
the HeadHunter adapter, which carries its own RetryPolicy. Jitter keeps
concurrent chat turns from retrying in lockstep.
"""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Protocol, TypeVar

from hh_vibe.providers.errors import RateLimitError, TransientError

__all__ = ["RetryPolicy", "RetrySettings", "with_retries"]

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetrySettings(Protocol):
    """Retry budget shape shared by ProviderConfig and RetryPolicy."""

    max_retries: int
    retry_base_delay_ms: int
    retry_max_delay_ms: int


@dataclass(frozen=True)
class RetryPolicy:
    """Retry budget for callers that have no ProviderConfig.

    The defaults suit an interactive request: one extra attempt, short waits.
    """

    max_retries: int = 1
    retry_base_delay_ms: int = 300
    retry_max_delay_ms: int = 2000


def backoff_seconds(error: Exception, attempt: int, policy: RetrySettings) -> float:
    """Wait before retry number ``attempt + 1``.

    A RateLimitError carrying a retry-after hint waits exactly that long.
    Otherwise the delay is base * 2**attempt plus up to 10% jitter,
    capped at ``retry_max_delay_ms``.
    """
    if isinstance(error, RateLimitError) and error.retry_after_seconds:
        return error.retry_after_seconds
    delay_ms = policy.retry_base_delay_ms * 2**attempt
    delay_ms += random.uniform(0, delay_ms * 0.1)
    return min(delay_ms, policy.retry_max_delay_ms) / 1000


async def with_retries(
    func: Callable[[], Awaitable[T]],
    policy: RetrySettings,
    retryable_errors: tuple[type[Exception], ...] = (TransientError, RateLimitError),
    label: str = "provider",
) -> T:
    """Await ``func()`` until it succeeds or the budget runs out.

    Args:
        func: Zero-argument coroutine factory, called once per attempt.
        policy: Retry budget.
        retryable_errors: Exception types worth another attempt.
        label: Upstream name for log lines.

    Returns:
        The first successful result.

    Raises:
        Exception: Any non-retryable error at once, or the last retryable
            error after ``policy.max_retries`` retries.
    """
    attempts = policy.max_retries + 1
    for attempt in range(attempts):
        try:
            return await func()
        except retryable_errors as e:
            if attempt + 1 == attempts:
                raise
            delay = backoff_seconds(e, attempt, policy)
            logger.warning(
                "%s call failed (attempt %d/%d): %s; retrying in %.2fs",
                label,
                attempt + 1,
                attempts,
                e,
                delay,
            )
            await asyncio.sleep(delay)

    raise RuntimeError(f"{label}: retry budget must allow at least one attempt")
