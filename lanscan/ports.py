"""Named port groups and port list parsing."""

from __future__ import annotations

from typing import Dict, List, Tuple

PORT_GROUPS: Dict[str, Tuple[int, ...]] = {
    "Web": (80, 443, 8000, 8080, 8443, 8888, 3128),
    "FileTransfer": (20, 21, 22, 69, 990),
    "RemoteAccess": (22, 23, 3389, 5900, 5901),
    "Email": (25, 110, 143, 465, 587, 993, 995),
    "Database": (1433, 1521, 3306, 5432, 5984, 6379, 9042, 9200, 27017),
    "IoT": (1883, 8883, 5683, 502, 47808, 8123),
    "Media": (554, 1935, 8009, 8096, 32400, 7000),
    "Network": (53, 67, 123, 161, 389, 636, 1900),
    "FileSharing": (139, 445, 548, 2049),
    "Common": (
        21, 22, 23, 25, 53, 80, 110, 139, 143, 443, 445, 548, 554,
        631, 3306, 3389, 5000, 5353, 5900, 8000, 8080, 8443, 9100,
    ),
}
PORT_GROUPS["All"] = tuple(sorted({port for ports in PORT_GROUPS.values() for port in ports}))

DEFAULT_PORTS: Tuple[int, ...] = PORT_GROUPS["Common"]


def parse_port_list(value: str) -> List[int]:
    """Convert comma separated port expressions to a sorted list of integers."""

    if not value or not value.strip():
        raise ValueError("port specification must not be empty")

    ports: set[int] = set()
    for chunk in value.split(","):
        chunk = chunk.strip()
        if not chunk:
            raise ValueError("empty port entry is not allowed")
        if "-" in chunk:
            start_str, end_str = chunk.split("-", 1)
            try:
                start = int(start_str)
                end = int(end_str)
            except ValueError as exc:
                raise ValueError(f"invalid port range '{chunk}'") from exc
            if start > end:
                raise ValueError(f"invalid port range '{chunk}' (start > end)")
            for port in range(start, end + 1):
                validate_port(port)
                ports.add(port)
        else:
            try:
                port = int(chunk)
            except ValueError as exc:
                raise ValueError(f"invalid port '{chunk}'") from exc
            validate_port(port)
            ports.add(port)

    return sorted(ports)


def resolve_ports(value: str) -> List[int]:
    """Resolve a port group name (case-insensitive) or an explicit port list."""

    groups = {name.lower(): ports for name, ports in PORT_GROUPS.items()}
    group = groups.get(value.strip().lower())
    if group is not None:
        return list(group)
    return parse_port_list(value)


def validate_port(port: int) -> None:
    if not 0 < port <= 65535:
        raise ValueError(f"port {port} is outside the valid range (1-65535)")


__all__ = [
    "DEFAULT_PORTS",
    "PORT_GROUPS",
    "parse_port_list",
    "resolve_ports",
    "validate_port",
]
