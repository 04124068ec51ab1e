"""Unit tests for the generic retry policy and timeout guard."""

from __future__ import annotations

import asyncio

import pytest

from tests.fakes import RecordingSleeper, provider_error
from threadle.errors import ConfigurationError
from threadle.llm.errors import (
    AuthenticationError,
    LLMProviderError,
    MalformedResponseError,
    ProviderTimeoutError,
    RateLimitError,
)
from threadle.llm.retry import is_retryable_error, with_retry
from threadle.llm.timeout import with_timeout


class _ScriptedOperation:
    """Zero-argument async operation that fails with queued errors, then succeeds."""

    def __init__(self, errors: list[Exception], result: str = "ok") -> None:
        self.errors = list(errors)
        self.result = result
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.result


@pytest.mark.parametrize(
    ("error", "retryable"),
    [
        (RateLimitError("openai"), True),
        (provider_error(500), True),
        (provider_error(503), True),
        (LLMProviderError("connection reset", provider="fake", failure_kind="transport"), True),
        (ProviderTimeoutError("openai", 30), True),
        (AuthenticationError("openai"), False),
        (AuthenticationError("google", status_code=403), False),
        (provider_error(400), False),
        (provider_error(404), False),
        (provider_error(None), False),
        (MalformedResponseError("missing choices", provider="openai"), False),
        (ValueError("not a provider error"), False),
    ],
)
def test_is_retryable_error_classification(error: Exception, retryable: bool) -> None:
    """Rate limits, 5xx, transport and timeouts retry; auth, 4xx and bad bodies do not."""

    assert is_retryable_error(error) is retryable


def test_with_retry_backs_off_exponentially_then_succeeds() -> None:
    """Two server errors then success should sleep 1s then 2s and return the result."""

    operation = _ScriptedOperation([provider_error(500), provider_error(500)])
    sleeper = RecordingSleeper()
    retries: list[int] = []

    result = asyncio.run(
        with_retry(
            operation,
            provider="fake",
            sleeper=sleeper,
            on_retry=lambda attempt, _error: retries.append(attempt),
        )
    )

    assert result == "ok"
    assert operation.calls == 3
    assert sleeper.delays == [1.0, 2.0]
    assert retries == [0, 1]


def test_with_retry_does_not_retry_authentication_failures() -> None:
    """A 401 should be attempted exactly once and re-raised unchanged."""

    error = AuthenticationError("fake")
    operation = _ScriptedOperation([error])
    sleeper = RecordingSleeper()

    with pytest.raises(AuthenticationError) as exc_info:
        asyncio.run(with_retry(operation, provider="fake", sleeper=sleeper))

    assert exc_info.value is error
    assert operation.calls == 1
    assert sleeper.delays == []


def test_with_retry_reraises_last_error_after_exhaustion() -> None:
    """Retryable failures beyond the budget should surface the final error unchanged."""

    errors = [provider_error(502) for _ in range(4)]
    operation = _ScriptedOperation(list(errors))
    sleeper = RecordingSleeper()

    with pytest.raises(LLMProviderError) as exc_info:
        asyncio.run(
            with_retry(
                operation,
                provider="fake",
                max_retries=3,
                initial_delay_seconds=0.5,
                sleeper=sleeper,
            )
        )

    assert exc_info.value is errors[-1]
    assert operation.calls == 4
    assert sleeper.delays == [0.5, 1.0, 2.0]


def test_with_retry_never_retries_configuration_errors() -> None:
    """Non-provider exceptions should propagate immediately."""

    operation = _ScriptedOperation([ConfigurationError("missing key")])

    with pytest.raises(ConfigurationError):
        asyncio.run(with_retry(operation, provider="fake", sleeper=RecordingSleeper()))

    assert operation.calls == 1


def test_with_timeout_returns_fast_results() -> None:
    """Operations that settle before the timer should return their value."""

    async def _fast() -> str:
        return "done"

    assert asyncio.run(with_timeout(_fast(), 1.0, "fake")) == "done"


def test_with_timeout_propagates_operation_errors() -> None:
    """Errors raised before the timer fires should propagate unchanged."""

    async def _failing() -> str:
        raise provider_error(500)

    with pytest.raises(LLMProviderError, match="HTTP 500"):
        asyncio.run(with_timeout(_failing(), 1.0, "fake"))


def test_with_timeout_raises_and_abandons_slow_operation() -> None:
    """A slow operation should yield `ProviderTimeoutError` and its outcome be discarded."""

    completed: list[str] = []

    async def _slow() -> str:
        await asyncio.sleep(10)
        completed.append("late")
        return "late"

    async def _scenario() -> None:
        with pytest.raises(ProviderTimeoutError) as exc_info:
            await with_timeout(_slow(), 0.01, "fake")
        assert exc_info.value.provider == "fake"
        assert exc_info.value.status_code is None
        assert exc_info.value.failure_kind == "timeout"
        await asyncio.sleep(0.02)

    asyncio.run(_scenario())

    assert completed == []


def test_timeout_errors_are_retried_by_policy() -> None:
    """Timeouts carry no status code, so the retry policy should try again."""

    attempts = {"count": 0}

    async def _operation() -> str:
        attempts["count"] += 1
        if attempts["count"] == 1:
            return await with_timeout(asyncio.sleep(10), 0.01, "fake")
        return "recovered"

    sleeper = RecordingSleeper()
    result = asyncio.run(with_retry(_operation, provider="fake", sleeper=sleeper))

    assert result == "recovered"
    assert sleeper.delays == [1.0]


def test_with_timeout_cancels_operation_when_caller_is_cancelled() -> None:
    """Cancelling the awaiting task should not leave the operation running."""

    async def _scenario() -> None:
        operation_cancelled = asyncio.Event()

        async def _slow() -> str:
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                operation_cancelled.set()
                raise
            return "late"

        caller = asyncio.ensure_future(with_timeout(_slow(), 5.0, "fake"))
        await asyncio.sleep(0.01)
        caller.cancel()
        with pytest.raises(asyncio.CancelledError):
            await caller
        await asyncio.wait_for(operation_cancelled.wait(), timeout=1.0)

        leftover = [task for task in asyncio.all_tasks() if task is not asyncio.current_task()]
        assert leftover == []

    asyncio.run(_scenario())
