"""Single TCP connect probe and its outcome classification."""

from __future__ import annotations

import asyncio
import errno
import logging
from enum import Enum

logger = logging.getLogger(__name__)


class PortState(str, Enum):
    """Outcome of one connect attempt.

    ``CLOSED`` means something actively refused or reset the connection, so a
    device is there. ``UNREACHABLE`` carries no information either way.
    """

    OPEN = "open"
    CLOSED = "closed"
    UNREACHABLE = "unreachable"


_CLOSED_ERRNOS = frozenset({errno.ECONNREFUSED, errno.ECONNRESET, errno.EPIPE})


def classify_error(exc: BaseException) -> PortState:
    """Map a failed connect to a :class:`PortState`."""

    if isinstance(exc, (ConnectionRefusedError, ConnectionResetError, BrokenPipeError)):
        return PortState.CLOSED
    if isinstance(exc, OSError) and exc.errno in _CLOSED_ERRNOS:
        return PortState.CLOSED
    # Host/network unreachable, host down, timeouts and anything unknown.
    return PortState.UNREACHABLE


async def probe_port(address: str, port: int, timeout_ms: float) -> PortState:
    """Attempt one TCP connection to ``address:port`` and classify the result.

    Never raises for network or argument errors. The socket is closed on every
    path: on success here, on failure or cancellation by asyncio itself.
    """

    try:
        _, writer = await asyncio.wait_for(
            asyncio.open_connection(address, port),
            timeout=timeout_ms / 1000,
        )
    except asyncio.TimeoutError:
        return PortState.UNREACHABLE
    except Exception as exc:
        state = classify_error(exc)
        logger.debug("Probe %s:%s failed with %r -> %s", address, port, exc, state.value)
        return state

    writer.close()
    try:
        await writer.wait_closed()
    except (ConnectionError, OSError):
        pass
    return PortState.OPEN


__all__ = ["PortState", "classify_error", "probe_port"]
