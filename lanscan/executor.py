"""Bounded-concurrency execution of async workers."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Awaitable, Callable, Deque, Iterable, List, Optional, TypeVar

T = TypeVar("T")
R = TypeVar("R")

logger = logging.getLogger(__name__)


async def run_bounded(
    items: Iterable[T],
    limit: int,
    worker: Callable[[T], Awaitable[R]],
    *,
    stop: Optional[Callable[[R], bool]] = None,
) -> List[Optional[R]]:
    """Run ``worker`` over ``items`` with at most ``limit`` calls in flight.

    A fixed pool of slots pulls from a shared queue; each slot runs one item at
    a time until the queue is drained, so the bound holds exactly. A worker
    that raises records ``None`` for its item and the rest of the batch keeps
    going.

    ``limit`` is clamped to ``[1, len(items)]``. Outcomes are appended in
    completion order, not input order: callers that care about position must
    re-key on something carried inside the outcome.

    When ``stop`` accepts an outcome, queued items are dropped and the calls
    still in flight are cancelled; only the outcomes collected so far are
    returned.
    """

    queue: Deque[T] = deque(items)
    if not queue:
        return []

    slots = min(max(limit, 1), len(queue))
    results: List[Optional[R]] = []
    tasks: List[asyncio.Future] = []

    async def slot(index: int) -> None:
        while queue:
            item = queue.popleft()
            try:
                outcome: Optional[R] = await worker(item)
            except Exception:
                logger.warning(
                    "Worker failed for %r (slot %d)", item, index, exc_info=True
                )
                outcome = None
            results.append(outcome)
            if stop is not None and outcome is not None and stop(outcome):
                logger.debug("Stopping early after %r (slot %d)", item, index)
                queue.clear()
                for other, task in enumerate(tasks):
                    if other != index:
                        task.cancel()
                return

    tasks.extend(asyncio.ensure_future(slot(index)) for index in range(slots))
    try:
        await asyncio.wait(tasks)
    finally:
        for task in tasks:
            task.cancel()

    for task in tasks:
        if not task.cancelled():
            task.result()
    return results


__all__ = ["run_bounded"]
