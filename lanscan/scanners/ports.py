"""Asynchronous TCP port scanner for a single host."""

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import Dict, List, Sequence

from ..executor import run_bounded
from .base import ScanResult, Scanner, timed
from .liveness import ProbeFunc
from .probe import PortState, probe_port

# Per-host ceiling, independent of how many hosts are scanned at once, so a
# wide scan stays clear of the process file-descriptor limit.
MAX_CONCURRENT_PORTS = 5


@dataclass(slots=True)
class HostPortResult(ScanResult):
    """Open TCP ports found on one host."""

    address: str
    open_ports: List[int] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


async def scan_ports(
    address: str,
    ports: Sequence[int],
    timeout_ms: float,
    *,
    probe: ProbeFunc = probe_port,
) -> List[int]:
    """Probe every port of ``address`` and return the open ones.

    The list follows completion order; ``closed`` and ``unreachable`` outcomes
    are dropped.
    """

    async def check(port: int) -> tuple[int, PortState]:
        return port, await probe(address, port, timeout_ms)

    outcomes = await run_bounded(
        list(dict.fromkeys(int(p) for p in ports)), MAX_CONCURRENT_PORTS, check
    )
    return [
        port
        for port, state in (o for o in outcomes if o is not None)
        if state is PortState.OPEN
    ]


class PortScanner(Scanner[HostPortResult]):
    """Check which TCP ports are open on a host."""

    def __init__(
        self,
        address: str,
        ports: Sequence[int],
        *,
        timeout_ms: float = 2000,
        probe: ProbeFunc = probe_port,
    ) -> None:
        if not ports:
            raise ValueError("At least one port must be provided")
        if timeout_ms <= 0:
            raise ValueError("Timeout must be greater than zero")

        self._address = address
        self._ports = list(ports)
        self._timeout_ms = timeout_ms
        self._probe = probe

    async def scan(self) -> HostPortResult:
        duration, open_ports = await timed(
            scan_ports(self._address, self._ports, self._timeout_ms, probe=self._probe)
        )
        return HostPortResult(
            address=self._address,
            open_ports=sorted(open_ports),
            duration=duration,
        )


__all__ = ["HostPortResult", "MAX_CONCURRENT_PORTS", "PortScanner", "scan_ports"]
