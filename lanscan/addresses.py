"""IPv4 address arithmetic and host ranges."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from typing import Iterator

_MAX_ADDRESS = 0xFFFFFFFF


def is_valid_ip(value: str) -> bool:
    try:
        ipaddress.IPv4Address(value.strip())
    except ValueError:
        return False
    return True


def ip_to_int(value: str) -> int:
    """Convert a dotted quad to its unsigned 32-bit integer."""

    try:
        return int(ipaddress.IPv4Address(value.strip()))
    except ValueError as exc:
        raise ValueError(f"invalid IPv4 address '{value}'") from exc


def int_to_ip(number: int) -> str:
    if not 0 <= number <= _MAX_ADDRESS:
        raise ValueError(f"{number} is outside the IPv4 address space")
    return str(ipaddress.IPv4Address(number))


@dataclass(frozen=True, slots=True)
class HostRange:
    """Inclusive range of IPv4 addresses stored as integers."""

    start: int
    end: int

    def __post_init__(self) -> None:
        for value in (self.start, self.end):
            if not 0 <= value <= _MAX_ADDRESS:
                raise ValueError(f"{value} is outside the IPv4 address space")
        if self.start > self.end:
            raise ValueError(
                f"start address {int_to_ip(self.start)} is after end address "
                f"{int_to_ip(self.end)}"
            )

    @classmethod
    def from_addresses(cls, start: str, end: str) -> "HostRange":
        return cls(ip_to_int(start), ip_to_int(end))

    @classmethod
    def from_string(cls, value: str) -> "HostRange":
        """Parse a single address, an ``a-b`` range or CIDR notation."""

        value = value.strip()
        if not value:
            raise ValueError("address range must not be empty")
        if "/" in value:
            return cls.from_cidr(value)
        if "-" in value:
            start, end = value.split("-", 1)
            return cls.from_addresses(start, end)
        return cls.from_addresses(value, value)

    @classmethod
    def from_cidr(cls, value: str) -> "HostRange":
        try:
            network = ipaddress.IPv4Network(value.strip(), strict=False)
        except ValueError as exc:
            raise ValueError(f"invalid CIDR range '{value}': {exc}") from exc

        first = int(network.network_address)
        last = int(network.broadcast_address)
        # /31 and /32 have no network or broadcast address to skip.
        if network.prefixlen >= 31:
            return cls(first, last)
        return cls(first + 1, last - 1)

    @property
    def first(self) -> str:
        return int_to_ip(self.start)

    @property
    def last(self) -> str:
        return int_to_ip(self.end)

    def __iter__(self) -> Iterator[str]:
        for number in range(self.start, self.end + 1):
            yield int_to_ip(number)

    def __len__(self) -> int:
        return self.end - self.start + 1

    def __contains__(self, address: object) -> bool:
        if not isinstance(address, str) or not is_valid_ip(address):
            return False
        return self.start <= ip_to_int(address) <= self.end

    def __str__(self) -> str:
        if self.start == self.end:
            return self.first
        return f"{self.first}-{self.last}"


__all__ = ["HostRange", "int_to_ip", "ip_to_int", "is_valid_ip"]
