"""Latency bound with retries for arbitrary async operations."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar, Union

T = TypeVar("T")
F = TypeVar("F")

# Private marker: a caller's own value can never be this object.
_TIMED_OUT = object()


async def with_timeout(
    operation: Callable[[], Awaitable[T]],
    timeout_ms: float,
    fallback: F,
    *,
    retries: int = 0,
    delay_ms: float = 0,
) -> Union[T, F]:
    """Race ``operation()`` against a ``timeout_ms`` timer.

    The first value produced by the operation wins. An exception raised by
    the operation propagates immediately and is never retried. When the timer
    fires first the stale attempt is cancelled; if retries remain a fresh
    ``operation()`` is started after ``delay_ms``, otherwise ``fallback`` is
    returned.
    """

    attempts = max(retries, 0) + 1
    for attempt in range(attempts):
        if attempt and delay_ms:
            await asyncio.sleep(delay_ms / 1000)

        result = await _race(operation, timeout_ms / 1000)
        if result is not _TIMED_OUT:
            return result  # type: ignore[return-value]

    return fallback


async def _race(operation: Callable[[], Awaitable[T]], timeout: float) -> object:
    task = asyncio.ensure_future(operation())
    timer = asyncio.ensure_future(asyncio.sleep(max(timeout, 0), result=_TIMED_OUT))
    try:
        done, _ = await asyncio.wait(
            {task, timer}, return_when=asyncio.FIRST_COMPLETED
        )
        if task in done:
            return task.result()
        return _TIMED_OUT
    finally:
        timer.cancel()
        if not task.done():
            task.add_done_callback(_discard)
            task.cancel()


def _discard(task: asyncio.Future) -> None:
    if not task.cancelled():
        task.exception()


__all__ = ["with_timeout"]
