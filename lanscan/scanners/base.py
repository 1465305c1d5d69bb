"""Shared result types and timing helpers for the scanners."""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Awaitable, Generic, Tuple, TypeVar


T = TypeVar("T")


class ScanError(RuntimeError):
    """Raised when a scan cannot be started or completed."""


@dataclass(slots=True)
class ScanResult:
    """Wall-clock seconds a scan took; every scanner result carries it."""

    duration: float


async def timed(awaitable: Awaitable[T]) -> Tuple[float, T]:
    """Await ``awaitable`` and return ``(elapsed seconds, result)``."""

    start_time = time.perf_counter()
    result = await awaitable
    return time.perf_counter() - start_time, result


class Scanner(ABC, Generic[T]):
    """An async scan over one target (a host or a range)."""

    @abstractmethod
    async def scan(self) -> T:
        """Run the scan and return its result object."""
        raise NotImplementedError
