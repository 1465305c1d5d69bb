"""OS capabilities used by the liveness cascade: ICMP ping and the neighbor table.

The scanners only see the :class:`Pinger` and :class:`NeighborTableReader`
protocols; the command lines below are picked once, by
:func:`default_pinger` and :func:`default_neighbor_reader`.
"""

from __future__ import annotations

import asyncio
import logging
import math
import platform
import re
import shutil
from typing import List, Optional, Protocol, Sequence

logger = logging.getLogger(__name__)

# Six octets separated by ':' or '-'; "(incomplete)" and FAILED entries have none.
_MAC_RE = re.compile(r"(?<![0-9A-Fa-f])((?:[0-9A-Fa-f]{1,2}[:-]){5}[0-9A-Fa-f]{1,2})(?![0-9A-Fa-f])")

# Slack on top of the ping deadline before the process is killed.
_PROCESS_GRACE = 0.5
_NEIGHBOR_TIMEOUT = 2.0


class Pinger(Protocol):
    async def ping(self, address: str, timeout_ms: int) -> bool:
        ...


class NeighborTableReader(Protocol):
    async def lookup(self, address: str) -> Optional[str]:
        """Return the hardware address cached for ``address``, if complete."""
        ...


def parse_mac_address(output: str) -> Optional[str]:
    """Extract the first complete hardware address from command output."""

    for match in _MAC_RE.finditer(output):
        octets = [octet.zfill(2).lower() for octet in re.split(r"[:-]", match.group(1))]
        if all(octet == "00" for octet in octets):
            continue
        return ":".join(octets)
    return None


async def _run_command(args: Sequence[str], timeout: float) -> Optional[tuple[int, str]]:
    """Run ``args`` and return ``(returncode, stdout)``; ``None`` on any failure."""

    try:
        process = await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.DEVNULL,
        )
    except OSError as exc:
        logger.debug("Could not start %s: %s", args[0], exc)
        return None

    try:
        stdout, _ = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        logger.debug("%s did not finish within %.1fs", " ".join(args), timeout)
        return None
    finally:
        # Reap the child on timeout or cancellation.
        if process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass
            await process.wait()

    return process.returncode, stdout.decode(errors="ignore")


class CommandPinger:
    """Send one ICMP echo through the system ``ping`` binary."""

    def __init__(self, system: Optional[str] = None, binary: str = "ping") -> None:
        self._system = (system or platform.system()).lower()
        self._binary = binary

    def command(self, address: str, timeout_ms: int) -> List[str]:
        if self._system == "windows":
            return [self._binary, "-n", "1", "-w", str(int(timeout_ms)), address]
        if self._system == "darwin":
            return [self._binary, "-c", "1", "-W", str(int(timeout_ms)), address]
        seconds = max(1, math.ceil(timeout_ms / 1000))
        return [self._binary, "-c", "1", "-W", str(seconds), address]

    async def ping(self, address: str, timeout_ms: int) -> bool:
        result = await _run_command(
            self.command(address, timeout_ms),
            timeout=timeout_ms / 1000 + _PROCESS_GRACE,
        )
        if result is None:
            return False
        returncode, output = result
        if returncode != 0:
            return False
        # Windows ping exits 0 on "Destination host unreachable" replies.
        if self._system == "windows" and "TTL=" not in output.upper():
            return False
        return True


class CommandNeighborReader:
    """Query the neighbor cache through ``ip neigh`` or ``arp``."""

    def __init__(self, command: Sequence[str]) -> None:
        if not command:
            raise ValueError("Neighbor table command must not be empty")
        self._command = list(command)

    def command(self, address: str) -> List[str]:
        return [*self._command, address]

    async def lookup(self, address: str) -> Optional[str]:
        result = await _run_command(self.command(address), timeout=_NEIGHBOR_TIMEOUT)
        if result is None:
            return None
        _, output = result
        return parse_mac_address(output)


def default_pinger() -> Pinger:
    return CommandPinger()


def default_neighbor_reader(system: Optional[str] = None) -> NeighborTableReader:
    system = (system or platform.system()).lower()
    if system == "windows":
        return CommandNeighborReader(["arp", "-a"])
    if system == "linux" and shutil.which("ip"):
        return CommandNeighborReader(["ip", "neigh", "show"])
    return CommandNeighborReader(["arp", "-n"])


__all__ = [
    "CommandNeighborReader",
    "CommandPinger",
    "NeighborTableReader",
    "Pinger",
    "default_neighbor_reader",
    "default_pinger",
    "parse_mac_address",
]
