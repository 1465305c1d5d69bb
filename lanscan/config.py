"""Scan configuration."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping, Tuple

from .ports import DEFAULT_PORTS

DEFAULT_RANGE = "192.168.1.1-192.168.1.254"


@dataclass(frozen=True, slots=True)
class ScanConfig:
    """Immutable settings shared by every stage of a scan.

    ``timeout_ms`` bounds each individual probe, ``concurrency_limit`` bounds
    how many hosts are checked at once during discovery.
    """

    ports: Tuple[int, ...] = DEFAULT_PORTS
    timeout_ms: int = 2000
    concurrency_limit: int = 50
    identify_devices: bool = False

    def __post_init__(self) -> None:
        ports = tuple(self.ports)
        object.__setattr__(self, "ports", ports)

        if not ports:
            raise ValueError("At least one port must be provided")
        for port in ports:
            if isinstance(port, bool) or not isinstance(port, int) or not 0 < port <= 65535:
                raise ValueError(
                    f"Invalid port {port!r}; ports must be between 1 and 65535"
                )
        if self.timeout_ms <= 0:
            raise ValueError("Timeout must be greater than zero")
        if self.concurrency_limit <= 0:
            raise ValueError("Concurrency must be greater than zero")
        if not isinstance(self.identify_devices, bool):
            raise ValueError("identify_devices must be a boolean")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ScanConfig":
        """Build a config from a partial mapping merged over the defaults."""

        known = {item.name for item in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown configuration keys: {', '.join(unknown)}")
        return cls(**dict(data))

    def to_dict(self) -> dict:
        return {
            "ports": list(self.ports),
            "timeout_ms": self.timeout_ms,
            "concurrency_limit": self.concurrency_limit,
            "identify_devices": self.identify_devices,
        }


__all__ = ["DEFAULT_RANGE", "ScanConfig"]
