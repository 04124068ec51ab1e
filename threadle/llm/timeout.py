"""Timeout guard for provider calls.

The guarded operation races a timer. When the timer wins, the operation task is
abandoned (its eventual result or error is discarded) and a
`ProviderTimeoutError` is raised instead. Cancelling the caller cancels the
operation task as well.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from .errors import ProviderTimeoutError

_T = TypeVar("_T")


def _discard_outcome(task: asyncio.Future[object]) -> None:
    """Consume an abandoned task outcome so the loop does not report it."""

    if not task.cancelled():
        task.exception()


async def with_timeout(
    operation: Awaitable[_T],
    timeout_seconds: float,
    provider: str,
) -> _T:
    """Await an operation, raising `ProviderTimeoutError` when it outlives the timeout."""

    task = asyncio.ensure_future(operation)
    try:
        done, _pending = await asyncio.wait({task}, timeout=timeout_seconds)
    except asyncio.CancelledError:
        task.add_done_callback(_discard_outcome)
        task.cancel()
        raise
    if task in done:
        return task.result()

    task.add_done_callback(_discard_outcome)
    task.cancel()
    raise ProviderTimeoutError(provider, timeout_seconds)
