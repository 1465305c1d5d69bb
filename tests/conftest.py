import socket
import sys
from pathlib import Path

import pytest

# Ensure the package root is importable when tests run without installation
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from lanscan.scanners.probe import PortState  # noqa: E402


@pytest.fixture
def unused_tcp_port():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]
    yield port


class FakePinger:
    def __init__(self, alive=()):
        self.alive = set(alive)
        self.calls = []

    async def ping(self, address, timeout_ms):
        self.calls.append((address, timeout_ms))
        return address in self.alive


class FakeNeighbors:
    def __init__(self, table=None):
        self.table = dict(table or {})
        self.calls = []

    async def lookup(self, address):
        self.calls.append(address)
        return self.table.get(address)


class FakeProbe:
    """Probe double answering from a ``{(address, port): PortState}`` map."""

    def __init__(self, states=None):
        self.states = dict(states or {})
        self.calls = []

    async def __call__(self, address, port, timeout_ms):
        self.calls.append((address, port))
        return self.states.get((address, port), PortState.UNREACHABLE)


@pytest.fixture
def fake_pinger():
    return FakePinger()


@pytest.fixture
def fake_neighbors():
    return FakeNeighbors()


@pytest.fixture
def fake_probe():
    return FakeProbe()
