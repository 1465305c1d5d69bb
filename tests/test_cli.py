import argparse
import importlib
import json
import socket

import pytest

from lanscan.main import parse_ports, parse_range, run
from lanscan.ports import PORT_GROUPS


@pytest.mark.parametrize(
    "spec,expected",
    [
        ("80", [80]),
        ("80,443", [80, 443]),
        ("80-82", [80, 81, 82]),
        ("22,80-82", [22, 80, 81, 82]),
        ("Web", list(PORT_GROUPS["Web"])),
    ],
)
def test_parse_ports_success(spec, expected):
    assert parse_ports(spec) == expected


@pytest.mark.parametrize("spec", ["", "abc", "0", "70000", "10-5", "1,,2"])
def test_parse_ports_validation(spec):
    with pytest.raises(argparse.ArgumentTypeError):
        parse_ports(spec)


def test_parse_range():
    assert len(parse_range("10.0.0.0/29")) == 6
    with pytest.raises(argparse.ArgumentTypeError):
        parse_range("10.0.0.9-10.0.0.1")


def test_run_scan(monkeypatch, tmp_path, capsys):
    cli = importlib.import_module("lanscan.main")
    from lanscan.scanners.discovery import HostReport, NetworkScanResult
    from lanscan.scanners.liveness import DetectionMethod

    async def fake_dispatch(args):
        assert args.command == "scan"
        assert args.ports == [22, 80]
        assert args.timeout == 500
        assert len(args.range) == 254
        return NetworkScanResult(
            range="192.168.1.1-192.168.1.254",
            scanned=254,
            hosts=[
                HostReport(
                    address="192.168.1.10",
                    detection_method=DetectionMethod.ARP,
                    open_ports=[22],
                )
            ],
            duration=0.5,
        )

    monkeypatch.setattr(cli, "_dispatch", fake_dispatch)

    args = [
        "--format",
        "json",
        "--output",
        str(tmp_path / "output.json"),
        "scan",
        "192.168.1.0/24",
        "--ports",
        "22,80",
        "--timeout",
        "500",
    ]

    exit_code = run(args)
    assert exit_code == 0
    captured = capsys.readouterr()
    data = json.loads(captured.out)
    assert data["hosts"][0]["detection_method"] == "arp"
    written = json.loads((tmp_path / "output.json").read_text())
    assert written["hosts"][0]["open_ports"] == [22]


def test_run_discover_text(monkeypatch, capsys):
    cli = importlib.import_module("lanscan.main")
    from lanscan.scanners.discovery import DiscoveryResult
    from lanscan.scanners.liveness import DetectionMethod, HostLivenessResult

    async def fake_dispatch(args):
        assert args.command == "discover"
        return DiscoveryResult(
            range="10.0.0.1-10.0.0.3",
            scanned=3,
            hosts=[HostLivenessResult("10.0.0.2", True, DetectionMethod.PING)],
            duration=0.1,
        )

    monkeypatch.setattr(cli, "_dispatch", fake_dispatch)

    exit_code = run(["--format", "text", "discover", "10.0.0.1-10.0.0.3"])
    assert exit_code == 0
    out = capsys.readouterr().out
    assert "Range: 10.0.0.1-10.0.0.3 (3 addresses)" in out
    assert "10.0.0.2 (ping)" in out


def test_run_ports_against_local_listener(capsys):
    # The kernel completes the handshake from the listen backlog.
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as listener:
        listener.bind(("127.0.0.1", 0))
        listener.listen()
        port = listener.getsockname()[1]

        exit_code = run(["--format", "text", "ports", "127.0.0.1", "--ports", str(port)])

    assert exit_code == 0
    out = capsys.readouterr().out
    assert "Host: 127.0.0.1" in out
    assert f"  - {port}" in out


def test_invalid_concurrency_is_rejected(capsys):
    with pytest.raises(SystemExit) as excinfo:
        run(["discover", "10.0.0.1", "--concurrency", "0"])

    assert excinfo.value.code == 2
