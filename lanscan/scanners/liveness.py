"""Host liveness detection: ping, then neighbor table, then a port sweep."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Awaitable, Callable, Dict, Iterator, List, Optional, Sequence

from ..capabilities import (
    NeighborTableReader,
    Pinger,
    default_neighbor_reader,
    default_pinger,
)
from ..executor import run_bounded
from .probe import PortState, probe_port

logger = logging.getLogger(__name__)

ProbeFunc = Callable[[str, int, float], Awaitable[PortState]]

PING_TIMEOUT_CAP_MS = 1000
# Time for a ping that got no reply to still leave its trace in the ARP cache.
ARP_SETTLE_MS = 100
PORT_SWEEP_BATCH_SIZE = 5


class DetectionMethod(str, Enum):
    """Which cascade stage proved the host alive."""

    PING = "ping"
    ARP = "arp"
    PORT_SCAN = "port-scan"
    NONE = "none"


@dataclass(frozen=True, slots=True)
class HostLivenessResult:
    """Outcome of the liveness cascade for one address."""

    address: str
    is_alive: bool
    detection_method: DetectionMethod = DetectionMethod.NONE

    def to_dict(self) -> Dict[str, object]:
        data = asdict(self)
        data["detection_method"] = self.detection_method.value
        return data


def batched(items: Sequence[int], size: int) -> Iterator[List[int]]:
    for index in range(0, len(items), size):
        yield list(items[index : index + size])


class LivenessCascade:
    """Decide whether a host is up using progressively more expensive checks.

    The stages run in order and stop at the first positive signal:

    1. one ICMP echo, bounded by ``min(timeout_ms, 1000)``;
    2. after a short pause, a complete hardware address for the host in the
       local neighbor table (the ping above populates it even when ICMP
       replies are filtered);
    3. the candidate ports, probed five at a time; the first open port ends
       the sweep and cancels the probes still pending in its batch.

    Failures in any stage count as "no evidence" and never propagate.
    """

    def __init__(
        self,
        pinger: Optional[Pinger] = None,
        neighbors: Optional[NeighborTableReader] = None,
        *,
        probe: ProbeFunc = probe_port,
        arp_settle_ms: float = ARP_SETTLE_MS,
        batch_size: int = PORT_SWEEP_BATCH_SIZE,
    ) -> None:
        if batch_size <= 0:
            raise ValueError("Batch size must be greater than zero")

        self._pinger = pinger if pinger is not None else default_pinger()
        self._neighbors = neighbors if neighbors is not None else default_neighbor_reader()
        self._probe = probe
        self._arp_settle_ms = arp_settle_ms
        self._batch_size = batch_size

    async def is_alive(
        self, address: str, candidate_ports: Sequence[int], timeout_ms: float
    ) -> HostLivenessResult:
        if await self._ping(address, min(timeout_ms, PING_TIMEOUT_CAP_MS)):
            return HostLivenessResult(address, True, DetectionMethod.PING)

        if self._arp_settle_ms:
            await asyncio.sleep(self._arp_settle_ms / 1000)
        if await self._in_neighbor_table(address):
            return HostLivenessResult(address, True, DetectionMethod.ARP)

        if await self._has_open_port(address, candidate_ports, timeout_ms):
            return HostLivenessResult(address, True, DetectionMethod.PORT_SCAN)

        return HostLivenessResult(address, False, DetectionMethod.NONE)

    async def _ping(self, address: str, timeout_ms: float) -> bool:
        try:
            return bool(await self._pinger.ping(address, timeout_ms))
        except Exception as exc:
            logger.debug("Ping of %s failed: %r", address, exc)
            return False

    async def _in_neighbor_table(self, address: str) -> bool:
        try:
            return await self._neighbors.lookup(address) is not None
        except Exception as exc:
            logger.debug("Neighbor table lookup for %s failed: %r", address, exc)
            return False

    async def _has_open_port(
        self, address: str, ports: Sequence[int], timeout_ms: float
    ) -> bool:
        async def check(port: int) -> PortState:
            return await self._probe(address, port, timeout_ms)

        for batch in batched(list(ports), self._batch_size):
            states = await run_bounded(
                batch, len(batch), check, stop=lambda state: state is PortState.OPEN
            )
            if PortState.OPEN in states:
                return True
        return False


__all__ = [
    "DetectionMethod",
    "HostLivenessResult",
    "LivenessCascade",
    "batched",
]
