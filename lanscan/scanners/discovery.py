"""Range-wide host discovery and the full discover-then-scan pipeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..addresses import HostRange, ip_to_int
from ..capabilities import NeighborTableReader, default_neighbor_reader
from ..config import ScanConfig
from ..executor import run_bounded
from .base import ScanResult, Scanner, timed
from .identity import HostIdentity, identify_hosts
from .liveness import DetectionMethod, HostLivenessResult, LivenessCascade, ProbeFunc
from .ports import HostPortResult, PortScanner
from .probe import probe_port

logger = logging.getLogger(__name__)


async def discover_hosts(
    host_range: HostRange,
    config: ScanConfig,
    *,
    cascade: Optional[LivenessCascade] = None,
) -> List[HostLivenessResult]:
    """Return the alive hosts of ``host_range`` sorted by numeric address."""

    cascade = cascade if cascade is not None else LivenessCascade()

    async def check(address: str) -> HostLivenessResult:
        return await cascade.is_alive(address, config.ports, config.timeout_ms)

    results = await run_bounded(host_range, config.concurrency_limit, check)
    alive = [result for result in results if result is not None and result.is_alive]
    alive.sort(key=lambda result: ip_to_int(result.address))
    logger.info("Found %d alive hosts in %s", len(alive), host_range)
    return alive


async def scan_host_ports(
    address: str,
    config: ScanConfig,
    *,
    probe: ProbeFunc = probe_port,
) -> HostPortResult:
    scanner = PortScanner(address, config.ports, timeout_ms=config.timeout_ms, probe=probe)
    return await scanner.scan()


@dataclass(slots=True)
class HostReport:
    """Everything learned about one alive host."""

    address: str
    detection_method: DetectionMethod
    open_ports: List[int] = field(default_factory=list)
    identity: Optional[HostIdentity] = None

    def to_dict(self) -> Dict[str, object]:
        data: Dict[str, object] = {
            "address": self.address,
            "detection_method": self.detection_method.value,
            "open_ports": list(self.open_ports),
        }
        if self.identity is not None:
            data["identity"] = self.identity.to_dict()
        return data


@dataclass(slots=True)
class NetworkScanResult(ScanResult):
    """Result of scanning an address range."""

    range: str
    scanned: int
    hosts: List[HostReport] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return {
            "range": self.range,
            "scanned": self.scanned,
            "duration": self.duration,
            "hosts": [host.to_dict() for host in self.hosts],
        }


@dataclass(slots=True)
class DiscoveryResult(ScanResult):
    """Alive hosts of a range, without port information."""

    range: str
    scanned: int
    hosts: List[HostLivenessResult] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return {
            "range": self.range,
            "scanned": self.scanned,
            "duration": self.duration,
            "hosts": [
                {"address": host.address, "detection_method": host.detection_method.value}
                for host in self.hosts
            ],
        }


class DiscoveryScanner(Scanner[DiscoveryResult]):
    """Run the liveness cascade over every address of a range."""

    def __init__(
        self,
        host_range: HostRange,
        config: ScanConfig,
        *,
        cascade: Optional[LivenessCascade] = None,
    ) -> None:
        self._range = host_range
        self._config = config
        self._cascade = cascade

    async def scan(self) -> DiscoveryResult:
        duration, hosts = await timed(
            discover_hosts(self._range, self._config, cascade=self._cascade)
        )
        return DiscoveryResult(
            range=str(self._range),
            scanned=len(self._range),
            hosts=hosts,
            duration=duration,
        )


class NetworkScanner(Scanner[NetworkScanResult]):
    """Discover alive hosts, then scan their ports, then optionally identify them.

    The phases run one after another; each fans out with its own bound.
    """

    def __init__(
        self,
        host_range: HostRange,
        config: ScanConfig,
        *,
        cascade: Optional[LivenessCascade] = None,
        neighbors: Optional[NeighborTableReader] = None,
        probe: ProbeFunc = probe_port,
    ) -> None:
        self._range = host_range
        self._config = config
        self._neighbors = neighbors
        self._cascade = cascade
        self._probe = probe

    async def scan(self) -> NetworkScanResult:
        duration, hosts = await timed(self._run())
        return NetworkScanResult(
            range=str(self._range),
            scanned=len(self._range),
            hosts=hosts,
            duration=duration,
        )

    async def _run(self) -> List[HostReport]:
        neighbors = self._neighbors
        cascade = self._cascade
        if cascade is None:
            neighbors = neighbors if neighbors is not None else default_neighbor_reader()
            cascade = LivenessCascade(neighbors=neighbors, probe=self._probe)

        alive = await discover_hosts(self._range, self._config, cascade=cascade)

        reports: List[HostReport] = []
        for host in alive:
            ports = await scan_host_ports(
                host.address, self._config, probe=self._probe
            )
            reports.append(
                HostReport(
                    address=host.address,
                    detection_method=host.detection_method,
                    open_ports=ports.open_ports,
                )
            )
        logger.info("Port scan completed for %d hosts", len(reports))

        if self._config.identify_devices and reports:
            identities = await identify_hosts(
                {report.address: report.open_ports for report in reports},
                neighbors=neighbors if neighbors is not None else default_neighbor_reader(),
                timeout_ms=self._config.timeout_ms,
            )
            for report in reports:
                report.identity = identities.get(report.address)

        return reports


__all__ = [
    "DiscoveryResult",
    "DiscoveryScanner",
    "HostReport",
    "NetworkScanResult",
    "NetworkScanner",
    "discover_hosts",
    "scan_host_ports",
]
