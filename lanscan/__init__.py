"""LAN host discovery and TCP port scanning."""

from .addresses import HostRange
from .config import ScanConfig
from .executor import run_bounded
from .scanners import (
    DetectionMethod,
    NetworkScanner,
    PortState,
    discover_hosts,
    probe_port,
    scan_host_ports,
)
from .timeouts import with_timeout

__all__ = [
    "DetectionMethod",
    "HostRange",
    "NetworkScanner",
    "PortState",
    "ScanConfig",
    "discover_hosts",
    "probe_port",
    "run_bounded",
    "scan_host_ports",
    "with_timeout",
]
