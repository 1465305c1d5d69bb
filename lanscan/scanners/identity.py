"""Best-effort device identification for hosts that are known to be up."""

from __future__ import annotations

import asyncio
import logging
import re
import socket
import ssl
from dataclasses import dataclass, asdict
from typing import Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

import aiohttp

from ..capabilities import NeighborTableReader
from ..timeouts import with_timeout

logger = logging.getLogger(__name__)

IDENTIFY_TIMEOUT_MS = 15000
IDENTIFY_RETRIES = 1
IDENTIFY_RETRY_DELAY_MS = 100

HTTP_PORTS: Tuple[int, ...] = (80, 8080, 8000, 8888, 8123)
HTTPS_PORTS: Tuple[int, ...] = (443, 8443)
USER_AGENT = "Mozilla/5.0 (compatible; lanscan/1.0)"

_TITLE_RE = re.compile(r"<title[^>]*>([^<]+)</title>", re.IGNORECASE)

# Page title keyword -> device label.
TITLE_DEVICE_TYPES: Tuple[Tuple[str, str], ...] = (
    ("home assistant", "Home Assistant"),
    ("openwrt", "OpenWrt Router"),
    ("pfsense", "pfSense Firewall"),
    ("synology", "Synology NAS"),
    ("qnap", "QNAP NAS"),
    ("unifi", "Ubiquiti UniFi"),
    ("printer", "Printer"),
)


@dataclass(slots=True)
class HttpInfo:
    server: Optional[str] = None
    title: Optional[str] = None


@dataclass(slots=True)
class HostIdentity:
    """Free-form identity record; every field is optional."""

    hostname: Optional[str] = None
    mac_address: Optional[str] = None
    http_server: Optional[str] = None
    device_type: Optional[str] = None
    identification_method: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        return {key: value for key, value in asdict(self).items() if value is not None}


async def reverse_dns(address: str) -> Optional[str]:
    loop = asyncio.get_running_loop()
    try:
        hostname, _ = await loop.getnameinfo((address, 0), socket.NI_NAMEREQD)
    except (socket.gaierror, OSError):
        return None
    if not hostname or hostname == address:
        return None
    return hostname


async def fetch_http_info(address: str, port: int, timeout_ms: float) -> Optional[HttpInfo]:
    """GET ``/`` and collect the server banner and page title."""

    scheme = "https" if port in HTTPS_PORTS else "http"
    ssl_context = None
    if scheme == "https":
        # Appliances on a LAN almost never present a valid certificate.
        ssl_context = ssl.create_default_context()
        ssl_context.check_hostname = False
        ssl_context.verify_mode = ssl.CERT_NONE

    timeout = aiohttp.ClientTimeout(total=timeout_ms / 1000)
    connector = aiohttp.TCPConnector(ssl=ssl_context if ssl_context is not None else True)
    try:
        async with aiohttp.ClientSession(
            timeout=timeout,
            connector=connector,
            headers={"User-Agent": USER_AGENT},
        ) as session:
            async with session.get(f"{scheme}://{address}:{port}/") as response:
                body = await _safe_read_body(response)
                server_parts = [
                    value
                    for value in (
                        response.headers.get("Server"),
                        response.headers.get("X-Powered-By"),
                    )
                    if value
                ]
    except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as exc:
        logger.debug("HTTP identification of %s:%s failed: %r", address, port, exc)
        return None

    match = _TITLE_RE.search(body)
    info = HttpInfo(
        server=" / ".join(server_parts) or None,
        title=match.group(1).strip() if match else None,
    )
    if info.server is None and info.title is None:
        return None
    return info


async def _safe_read_body(response: aiohttp.ClientResponse) -> str:
    try:
        body = await response.text(errors="ignore")
    except (UnicodeDecodeError, aiohttp.ClientError):
        return ""
    return body[:10_000]


def device_type_from_title(title: Optional[str]) -> Optional[str]:
    if not title:
        return None
    lowered = title.lower()
    for keyword, label in TITLE_DEVICE_TYPES:
        if keyword in lowered:
            return label
    return None


def first_non_empty(*values: Optional[str]) -> Optional[str]:
    for value in values:
        if value:
            return value
    return None


async def identify_host(
    address: str,
    open_ports: Sequence[int],
    *,
    neighbors: NeighborTableReader,
    timeout_ms: float = 2000,
) -> HostIdentity:
    """Collect identity hints for ``address`` from independent sources.

    Sources run concurrently; each one is bounded by ``timeout_ms`` and any
    failure simply leaves its field empty. Values are merged
    first-non-empty-wins.
    """

    candidates = [p for p in open_ports if p in HTTP_PORTS + HTTPS_PORTS]

    async def http_info() -> Optional[HttpInfo]:
        for port in candidates:
            info = await fetch_http_info(address, port, timeout_ms)
            if info is not None:
                return info
        return None

    sources: List[Tuple[str, Callable[[], Awaitable[object]]]] = [
        ("DNS", lambda: reverse_dns(address)),
        ("ARP", lambda: neighbors.lookup(address)),
        ("HTTP", http_info),
    ]
    http_budget = timeout_ms * max(1, len(candidates))

    async def bounded(name: str, source: Callable[[], Awaitable[object]]) -> object:
        budget = http_budget if name == "HTTP" else timeout_ms
        try:
            return await with_timeout(source, budget, None)
        except Exception as exc:
            logger.debug("%s identification of %s failed: %r", name, address, exc)
            return None

    hostname, mac_address, http = await asyncio.gather(
        *(bounded(name, source) for name, source in sources)
    )
    if not isinstance(http, HttpInfo):
        http = None

    identity = HostIdentity(
        hostname=hostname if isinstance(hostname, str) else None,
        mac_address=mac_address if isinstance(mac_address, str) else None,
        http_server=http.server if http else None,
        device_type=device_type_from_title(http.title if http else None),
    )
    identity.identification_method = first_non_empty(
        "DNS" if identity.hostname else None,
        "HTTP" if identity.http_server or identity.device_type else None,
        "ARP" if identity.mac_address else None,
    )
    return identity


async def identify_hosts(
    open_ports_by_address: Dict[str, List[int]],
    *,
    neighbors: NeighborTableReader,
    timeout_ms: float = 2000,
) -> Dict[str, HostIdentity]:
    """Identify each host in turn, giving up on a host after 15s (one retry)."""

    identities: Dict[str, HostIdentity] = {}
    for address, open_ports in open_ports_by_address.items():
        identity = await with_timeout(
            lambda: identify_host(
                address, open_ports, neighbors=neighbors, timeout_ms=timeout_ms
            ),
            IDENTIFY_TIMEOUT_MS,
            None,
            retries=IDENTIFY_RETRIES,
            delay_ms=IDENTIFY_RETRY_DELAY_MS,
        )
        identities[address] = identity if identity is not None else HostIdentity()
    return identities


__all__ = [
    "HostIdentity",
    "HttpInfo",
    "IDENTIFY_TIMEOUT_MS",
    "device_type_from_title",
    "fetch_http_info",
    "first_non_empty",
    "identify_host",
    "identify_hosts",
    "reverse_dns",
]
