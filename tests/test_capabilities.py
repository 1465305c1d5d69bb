import asyncio
import sys

import pytest

from lanscan import capabilities
from lanscan.capabilities import (
    CommandNeighborReader,
    CommandPinger,
    default_neighbor_reader,
    parse_mac_address,
)
from lanscan.timeouts import with_timeout


@pytest.mark.parametrize(
    "output,expected",
    [
        (
            "Address HWtype HWaddress Flags Mask Iface\n"
            "192.168.1.5 ether aa:bb:cc:dd:ee:0f C eth0\n",
            "aa:bb:cc:dd:ee:0f",
        ),
        ("? (192.168.1.5) at 0:1a:2b:3c:4d:5e on en0 ifscope [ethernet]", "00:1a:2b:3c:4d:5e"),
        (
            "Interface: 192.168.1.2 --- 0x4\n"
            "  Internet Address      Physical Address      Type\n"
            "  192.168.1.5           AA-BB-CC-DD-EE-FF     dynamic\n",
            "aa:bb:cc:dd:ee:ff",
        ),
        ("192.168.1.5 dev eth0 lladdr 11:22:33:44:55:66 REACHABLE", "11:22:33:44:55:66"),
        ("? (192.168.1.5) at (incomplete) on en0 ifscope [ethernet]", None),
        ("192.168.1.5 dev eth0 FAILED", None),
        ("192.168.1.5 dev eth0  INCOMPLETE", None),
        ("192.168.1.5 ether 00:00:00:00:00:00 C eth0", None),
        ("", None),
    ],
)
def test_parse_mac_address(output, expected):
    assert parse_mac_address(output) == expected


@pytest.mark.parametrize(
    "system,timeout_ms,expected",
    [
        ("Windows", 800, ["ping", "-n", "1", "-w", "800", "10.0.0.1"]),
        ("Darwin", 800, ["ping", "-c", "1", "-W", "800", "10.0.0.1"]),
        ("Linux", 800, ["ping", "-c", "1", "-W", "1", "10.0.0.1"]),
        ("Linux", 2500, ["ping", "-c", "1", "-W", "3", "10.0.0.1"]),
    ],
)
def test_ping_command(system, timeout_ms, expected):
    assert CommandPinger(system=system).command("10.0.0.1", timeout_ms) == expected


def test_default_neighbor_reader_by_platform(monkeypatch):
    monkeypatch.setattr(capabilities.shutil, "which", lambda name: "/sbin/ip")

    assert default_neighbor_reader("Windows").command("10.0.0.1") == ["arp", "-a", "10.0.0.1"]
    assert default_neighbor_reader("Darwin").command("10.0.0.1") == ["arp", "-n", "10.0.0.1"]
    assert default_neighbor_reader("Linux").command("10.0.0.1") == [
        "ip", "neigh", "show", "10.0.0.1",
    ]

    monkeypatch.setattr(capabilities.shutil, "which", lambda name: None)
    assert default_neighbor_reader("Linux").command("10.0.0.1") == ["arp", "-n", "10.0.0.1"]


def fake_runner(result, calls):
    async def run(args, timeout):
        calls.append(list(args))
        return result

    return run


@pytest.mark.parametrize(
    "system,result,expected",
    [
        ("Linux", (0, "64 bytes from 10.0.0.1: icmp_seq=1 ttl=64"), True),
        ("Linux", (1, ""), False),
        ("Linux", None, False),
        ("Windows", (0, "Reply from 10.0.0.1: bytes=32 time<1ms TTL=128"), True),
        ("Windows", (0, "Reply from 10.0.0.9: Destination host unreachable."), False),
    ],
)
def test_ping_result(monkeypatch, system, result, expected):
    calls = []
    monkeypatch.setattr(capabilities, "_run_command", fake_runner(result, calls))

    assert asyncio.run(CommandPinger(system=system).ping("10.0.0.1", 500)) is expected
    assert len(calls) == 1


def test_neighbor_lookup(monkeypatch):
    calls = []
    monkeypatch.setattr(
        capabilities,
        "_run_command",
        fake_runner((0, "10.0.0.1 dev eth0 lladdr aa:bb:cc:00:11:22 STALE"), calls),
    )

    reader = CommandNeighborReader(["ip", "neigh", "show"])

    assert asyncio.run(reader.lookup("10.0.0.1")) == "aa:bb:cc:00:11:22"
    assert calls == [["ip", "neigh", "show", "10.0.0.1"]]


def test_missing_binary_is_negative():
    pinger = CommandPinger(system="Linux", binary="definitely-not-a-ping-binary")
    reader = CommandNeighborReader(["definitely-not-an-arp-binary"])

    assert asyncio.run(pinger.ping("10.0.0.1", 100)) is False
    assert asyncio.run(reader.lookup("10.0.0.1")) is None


def test_empty_neighbor_command_rejected():
    with pytest.raises(ValueError):
        CommandNeighborReader([])


SLEEPER = [sys.executable, "-c", "import time; time.sleep(5)"]


@pytest.fixture
def spawned(monkeypatch):
    processes = []
    create = asyncio.create_subprocess_exec

    async def spawn(*args, **kwargs):
        process = await create(*args, **kwargs)
        processes.append(process)
        return process

    monkeypatch.setattr(capabilities.asyncio, "create_subprocess_exec", spawn)
    return processes


def test_command_timeout_kills_child(spawned):
    assert asyncio.run(capabilities._run_command(SLEEPER, 0.1)) is None

    assert len(spawned) == 1
    assert spawned[0].returncode is not None


def test_cancelled_command_kills_child(spawned):
    async def runner():
        task = asyncio.ensure_future(capabilities._run_command(SLEEPER, 10))
        while not spawned:
            await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(runner())

    assert spawned[0].returncode is not None


def test_command_abandoned_by_with_timeout_is_reaped(spawned):
    async def runner():
        result = await with_timeout(lambda: capabilities._run_command(SLEEPER, 10), 100, None)
        for _ in range(100):
            if spawned and spawned[0].returncode is not None:
                break
            await asyncio.sleep(0.02)
        return result

    assert asyncio.run(runner()) is None
    assert spawned[0].returncode is not None
