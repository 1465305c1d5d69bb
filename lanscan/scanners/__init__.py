"""Scanner implementations exposed by the :mod:`lanscan` package."""

from .discovery import (
    DiscoveryResult,
    DiscoveryScanner,
    HostReport,
    NetworkScanResult,
    NetworkScanner,
    discover_hosts,
    scan_host_ports,
)
from .identity import HostIdentity, identify_host, identify_hosts
from .liveness import DetectionMethod, HostLivenessResult, LivenessCascade
from .ports import HostPortResult, PortScanner, scan_ports
from .probe import PortState, probe_port

__all__ = [
    "DetectionMethod",
    "DiscoveryResult",
    "DiscoveryScanner",
    "HostIdentity",
    "HostLivenessResult",
    "HostPortResult",
    "HostReport",
    "LivenessCascade",
    "NetworkScanResult",
    "NetworkScanner",
    "PortScanner",
    "PortState",
    "discover_hosts",
    "identify_host",
    "identify_hosts",
    "probe_port",
    "scan_host_ports",
    "scan_ports",
]
