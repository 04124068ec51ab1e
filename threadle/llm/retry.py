"""Retry with exponential backoff for provider calls.

Retries rate limits (429), server errors (>= 500), and network failures that
never produced an HTTP status (transport errors and timeouts). Authentication
failures, other 4xx client errors, and malformed success bodies fail
immediately. The delay after attempt `n` (0-indexed) is
`initial_delay_seconds * 2**n`.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from loguru import logger

from .errors import AuthenticationError, LLMProviderError, RateLimitError

_T = TypeVar("_T")

DEFAULT_MAX_RETRIES = 3
DEFAULT_INITIAL_DELAY_SECONDS = 1.0

_STATUSLESS_RETRYABLE_KINDS = frozenset({"transport", "timeout"})


def is_retryable_error(error: BaseException) -> bool:
    """Return whether a normalized provider error is worth another attempt."""

    if not isinstance(error, LLMProviderError):
        return False
    if isinstance(error, RateLimitError):
        return True
    if isinstance(error, AuthenticationError):
        return False
    status_code = error.status_code
    if status_code is None:
        return error.failure_kind in _STATUSLESS_RETRYABLE_KINDS
    return status_code == 429 or status_code >= 500


async def with_retry(
    operation: Callable[[], Awaitable[_T]],
    *,
    provider: str,
    max_retries: int = DEFAULT_MAX_RETRIES,
    initial_delay_seconds: float = DEFAULT_INITIAL_DELAY_SECONDS,
    sleeper: Callable[[float], Awaitable[None]] = asyncio.sleep,
    on_retry: Callable[[int, BaseException], None] | None = None,
) -> _T:
    """Run an async operation, retrying retryable failures with exponential backoff.

    Args:
        operation: Zero-argument factory producing a fresh awaitable per attempt.
        provider: Provider identifier used in retry logs.
        max_retries: Retries after the first attempt (total attempts `max_retries + 1`).
        initial_delay_seconds: Delay before the first retry.
        sleeper: Awaitable sleep function, injectable for tests.
        on_retry: Optional callback receiving the failed attempt index and error.

    Raises:
        The last error unchanged when it is not retryable or retries are exhausted.
    """

    attempt = 0
    while True:
        try:
            return await operation()
        except LLMProviderError as exc:
            if not is_retryable_error(exc) or attempt >= max_retries:
                raise
            delay = initial_delay_seconds * (2**attempt)
            logger.warning(
                "LLM request to {} failed (attempt {}/{}, kind={}, status={}). "
                "Retrying in {:g}s",
                provider,
                attempt + 1,
                max_retries + 1,
                exc.failure_kind,
                exc.status_code,
                delay,
            )
            if on_retry is not None:
                on_retry(attempt, exc)
            await sleeper(delay)
            attempt += 1
