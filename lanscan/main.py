"""Command line entry point for lanscan."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Sequence

from .addresses import HostRange
from .config import DEFAULT_RANGE, ScanConfig
from .ports import DEFAULT_PORTS, PORT_GROUPS, resolve_ports
from .scanners import (
    DiscoveryResult,
    DiscoveryScanner,
    HostPortResult,
    NetworkScanResult,
    NetworkScanner,
    PortScanner,
)
from .scanners.base import ScanError


def parse_ports(value: str) -> List[int]:
    """Accept a port group name or comma separated ports and ranges."""

    try:
        return resolve_ports(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def parse_range(value: str) -> HostRange:
    try:
        return HostRange.from_string(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer '{value}'") from exc
    if number <= 0:
        raise argparse.ArgumentTypeError(f"{number} must be greater than zero")
    return number


def _add_scan_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--ports",
        type=parse_ports,
        default=list(DEFAULT_PORTS),
        help=(
            "Comma separated port list or ranges (e.g. 80,443,1000-1010) or a "
            f"port group ({', '.join(PORT_GROUPS)}). Default: Common."
        ),
    )
    parser.add_argument(
        "--timeout",
        type=_positive_int,
        default=2000,
        help="Timeout for each probe in milliseconds (default: 2000).",
    )
    parser.add_argument(
        "--concurrency",
        type=_positive_int,
        default=50,
        help="Maximum hosts checked at the same time (default: 50).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lanscan",
        description="Discover live hosts on a LAN and list their open TCP ports.",
    )
    parser.add_argument(
        "--format",
        choices={"json", "text"},
        default="json",
        help="Output format (default: json).",
    )
    parser.add_argument(
        "--output",
        type=Path,
        help="Optional file to write the scan results to (JSON is always used).",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable informational log messages.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable verbose debug logging.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    discover_parser = subparsers.add_parser(
        "discover",
        help="Find alive hosts in an address range.",
    )
    discover_parser.add_argument(
        "range",
        type=parse_range,
        nargs="?",
        default=parse_range(DEFAULT_RANGE),
        help=f"Address, range (a-b) or CIDR block (default: {DEFAULT_RANGE}).",
    )
    _add_scan_options(discover_parser)

    port_parser = subparsers.add_parser(
        "ports",
        help="Scan TCP ports on a single host.",
    )
    port_parser.add_argument("host", help="Target IPv4 address.")
    _add_scan_options(port_parser)

    scan_parser = subparsers.add_parser(
        "scan",
        help="Discover hosts in a range and scan their ports.",
    )
    scan_parser.add_argument(
        "range",
        type=parse_range,
        nargs="?",
        default=parse_range(DEFAULT_RANGE),
        help=f"Address, range (a-b) or CIDR block (default: {DEFAULT_RANGE}).",
    )
    _add_scan_options(scan_parser)
    scan_parser.add_argument(
        "--identify",
        action="store_true",
        help="Look up hostname, MAC address and HTTP server of each host.",
    )

    return parser


def _config_from_args(args: argparse.Namespace) -> ScanConfig:
    try:
        return ScanConfig(
            ports=tuple(args.ports),
            timeout_ms=args.timeout,
            concurrency_limit=args.concurrency,
            identify_devices=getattr(args, "identify", False),
        )
    except ValueError as exc:
        raise ScanError(f"Invalid configuration: {exc}") from exc


async def _run_discover(args: argparse.Namespace) -> DiscoveryResult:
    config = _config_from_args(args)
    logging.info("Scanning %d addresses in %s", len(args.range), args.range)
    return await DiscoveryScanner(args.range, config).scan()


async def _run_ports(args: argparse.Namespace) -> HostPortResult:
    config = _config_from_args(args)
    try:
        scanner = PortScanner(args.host, config.ports, timeout_ms=config.timeout_ms)
    except ValueError as exc:
        raise ScanError(str(exc)) from exc
    return await scanner.scan()


async def _run_scan(args: argparse.Namespace) -> NetworkScanResult:
    config = _config_from_args(args)
    logging.info(
        "Scanning %d addresses in %s for %d ports",
        len(args.range),
        args.range,
        len(config.ports),
    )
    return await NetworkScanner(args.range, config).scan()


async def _dispatch(args: argparse.Namespace) -> object:
    if args.command == "discover":
        return await _run_discover(args)
    if args.command == "ports":
        return await _run_ports(args)
    if args.command == "scan":
        return await _run_scan(args)
    raise RuntimeError(f"Unsupported command: {args.command}")


def _configure_logging(args: argparse.Namespace) -> None:
    if args.debug:
        level = logging.DEBUG
    elif args.verbose:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _format_result(result: object, fmt: str) -> str:
    if fmt == "json":
        return json.dumps(_result_to_dict(result), indent=2, sort_keys=True)
    return _format_text(result)


def _result_to_dict(result: object) -> dict:
    if isinstance(result, (DiscoveryResult, HostPortResult, NetworkScanResult)):
        return result.to_dict()
    raise TypeError(f"Unsupported result object: {result!r}")


def _format_text(result: object) -> str:
    if isinstance(result, DiscoveryResult):
        lines = [
            f"Range: {result.range} ({result.scanned} addresses)",
            f"Duration: {result.duration:.2f}s",
            "Alive hosts:" if result.hosts else "Alive hosts: none",
        ]
        lines.extend(
            f"  - {host.address} ({host.detection_method.value})" for host in result.hosts
        )
        return "\n".join(lines)

    if isinstance(result, HostPortResult):
        lines = [
            f"Host: {result.address}",
            f"Duration: {result.duration:.2f}s",
            "Open ports:" if result.open_ports else "Open ports: none",
        ]
        lines.extend(f"  - {port}" for port in result.open_ports)
        return "\n".join(lines)

    if isinstance(result, NetworkScanResult):
        lines = [
            f"Range: {result.range} ({result.scanned} addresses)",
            f"Duration: {result.duration:.2f}s",
        ]
        if not result.hosts:
            lines.append("Alive hosts: none")
        for host in result.hosts:
            ports = ", ".join(str(port) for port in host.open_ports) or "none"
            lines.append(f"{host.address} ({host.detection_method.value})")
            lines.append(f"  Open ports: {ports}")
            if host.identity is not None:
                for key, value in sorted(host.identity.to_dict().items()):
                    lines.append(f"  {key}: {value}")
        return "\n".join(lines)

    raise TypeError(f"Unsupported result object: {result!r}")


def run(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args)

    try:
        result = asyncio.run(_dispatch(args))
    except ScanError as exc:
        logging.error("%s", exc)
        return 2

    output = _format_result(result, args.format)
    print(output)

    if args.output:
        args.output.write_text(json.dumps(_result_to_dict(result), indent=2, sort_keys=True) + "\n")

    return 0


def main(argv: Sequence[str] | None = None) -> int:
    exit_code = run(argv)
    if argv is None:
        sys.exit(exit_code)
    return exit_code


__all__ = ["main", "run", "parse_ports", "parse_range"]
