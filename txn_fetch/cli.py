"""CLI entry point for txn-fetch.

Runs a single transaction through OutboundFetcher: configure, fetch, print.
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass, field
from pathlib import Path

from txn_fetch.config_loader import ConfigError, load_runtime_config
from txn_fetch.fetcher import OutboundFetcher, Transaction
from txn_fetch.log import setup_logging
from txn_fetch.pool import SlotPool
from txn_fetch.transport import HttpxTransport, escape, unescape


def non_negative_int(value: str) -> int:
    """Parse and validate a non-negative integer value.

    Raises:
        argparse.ArgumentTypeError: If value is not a non-negative integer.
    """
    try:
        result = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid integer '{value}'.")
    if result < 0:
        raise argparse.ArgumentTypeError(f"Value must be non-negative, got {result}.")
    return result


def milliseconds(value: str) -> int:
    """Parse a millisecond timeout. Non-positive values mean transport default."""
    try:
        return int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid timeout '{value}'. Must be an integer.")


@dataclass
class FetchArgs:
    """Parsed arguments for one fetch."""

    url: str
    config: Path | None = None
    slot: int = 0
    xid: int = 1
    method: str | None = None
    headers: list[str] = field(default_factory=list)
    data: str | None = None
    head: bool = False
    timeout_ms: int = -1
    connect_timeout_ms: int = -1
    verify_peer: bool = False
    verify_host: bool = False
    cacert: str | None = None
    capath: str | None = None
    proxy: str | None = None
    include: bool = False
    escape: bool = False
    unescape: bool = False


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="txn-fetch",
        description="Perform one outbound HTTP call through a transaction slot and print the result.",
    )
    parser.add_argument("url", help="Request URL (or text with --escape/--unescape)")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to runtime configuration file (YAML)",
    )
    parser.add_argument(
        "--slot", type=non_negative_int, default=0, help="Session slot number (default: 0)"
    )
    parser.add_argument(
        "--xid", type=non_negative_int, default=1, help="Transaction identifier (default: 1)"
    )
    parser.add_argument(
        "-X", "--request", dest="method", default=None, metavar="METHOD",
        help="Literal HTTP method to send",
    )
    parser.add_argument(
        "-H", "--header", dest="headers", action="append", default=[], metavar="LINE",
        help="Request header line 'Name: Value' (can be repeated)",
    )
    body_group = parser.add_mutually_exclusive_group()
    body_group.add_argument("-d", "--data", default=None, help="POST body")
    body_group.add_argument(
        "-I", "--head", action="store_true", help="HEAD request, no body retrieved"
    )
    parser.add_argument(
        "--timeout-ms", type=milliseconds, default=-1, dest="timeout_ms",
        help="Whole-call timeout in milliseconds",
    )
    parser.add_argument(
        "--connect-timeout-ms", type=milliseconds, default=-1, dest="connect_timeout_ms",
        help="Connect timeout in milliseconds",
    )
    parser.add_argument(
        "--verify-peer", action="store_true", help="Verify the server certificate chain"
    )
    parser.add_argument(
        "--verify-host", action="store_true", help="Verify the certificate host name"
    )
    parser.add_argument("--cacert", default=None, help="CA bundle file")
    parser.add_argument("--capath", default=None, help="CA certificate directory")
    parser.add_argument("--proxy", default=None, help="Proxy URL")
    parser.add_argument(
        "-i", "--include", action="store_true", help="Print status and response headers"
    )
    codec_group = parser.add_mutually_exclusive_group()
    codec_group.add_argument(
        "--escape", action="store_true", help="Print the percent-encoded argument and exit"
    )
    codec_group.add_argument(
        "--unescape", action="store_true", help="Print the percent-decoded argument and exit"
    )
    return parser


def parse_args(argv: list[str] | None = None) -> FetchArgs:
    namespace = build_parser().parse_args(argv)
    return FetchArgs(**vars(namespace))


def configure(fetcher: OutboundFetcher, tx: Transaction, args: FetchArgs) -> None:
    """Apply parsed options to the transaction's slot."""
    if args.method:
        fetcher.set_method(tx, args.method)
    for line in args.headers:
        fetcher.add_request_header(tx, line)
    fetcher.set_timeout(tx, args.timeout_ms)
    fetcher.set_connect_timeout(tx, args.connect_timeout_ms)
    fetcher.set_ssl_verify_peer(tx, args.verify_peer)
    fetcher.set_ssl_verify_host(tx, args.verify_host)
    if args.cacert:
        fetcher.set_ssl_cafile(tx, args.cacert)
    if args.capath:
        fetcher.set_ssl_capath(tx, args.capath)
    if args.proxy:
        fetcher.set_proxy(tx, args.proxy)


def run_fetch(args: FetchArgs, fetcher: OutboundFetcher) -> int:
    """Run one transaction and print its result. Returns the exit code."""
    tx = Transaction(slot=args.slot, xid=args.xid)
    configure(fetcher, tx, args)

    if args.head:
        fetcher.head(tx, args.url)
    elif args.data is not None:
        fetcher.post(tx, args.url, args.data)
    else:
        fetcher.get(tx, args.url)

    error = fetcher.error(tx)
    if error is not None:
        print(f"Error: {error}", file=sys.stderr)
        return 1

    if args.include:
        print(f"Status: {fetcher.status(tx)}")
        # Stored most recent first; print in received order
        for key, value in reversed(fetcher.state(tx).response_headers.items()):
            print(f"{key}: {value}")
        print()

    if not args.head:
        sys.stdout.write(fetcher.body(tx))
        sys.stdout.flush()
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    try:
        args = parse_args(argv)

        if args.escape:
            print(escape(args.url))
            return 0
        if args.unescape:
            print(unescape(args.url))
            return 0

        try:
            config = load_runtime_config(args.config)
        except ConfigError as e:
            print(f"Error loading config: {e}", file=sys.stderr)
            return 1

        setup_logging(config.logging)
        fetcher = OutboundFetcher(
            SlotPool(config.pool.initial_slots),
            HttpxTransport(config.transport),
        )
        return run_fetch(args, fetcher)

    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
