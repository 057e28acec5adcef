"""Pytest configuration and fixtures for txn-fetch tests.

This file provides:
- StubTransport: Scripted Transport that records requests instead of
  touching the network
- Fixtures: pool, stub transport, and a fetcher wired to both
"""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from txn_fetch.fetcher import OutboundFetcher
from txn_fetch.models import TransportRequest
from txn_fetch.pool import SlotPool
from txn_fetch.transport import TransportError


@dataclass
class StubReply:
    """One scripted transport outcome."""

    status: int = 200
    header_lines: list[str] = field(default_factory=list)
    body_chunks: list[bytes] = field(default_factory=list)
    error: str | None = None
    error_status: int = 0


class StubTransport:
    """Transport that replays scripted replies and records every request.

    Usage:
        transport = StubTransport()
        transport.reply(200, ["Content-Length: 5"], [b"hello"])
        fetcher = OutboundFetcher(SlotPool(), transport)

    With no scripted reply left, answers 200 with no headers and no body.
    Header lines are delivered after an HTTP status line, like a real
    transport does; body chunks are skipped for HEAD-mode requests.
    """

    def __init__(self) -> None:
        self.requests: list[TransportRequest] = []
        self._replies: list[StubReply] = []

    def reply(
        self,
        status: int = 200,
        header_lines: list[str] | None = None,
        body_chunks: list[bytes] | None = None,
    ) -> None:
        self._replies.append(
            StubReply(status=status, header_lines=header_lines or [], body_chunks=body_chunks or [])
        )

    def fail(self, message: str, status: int = 0, header_lines: list[str] | None = None) -> None:
        self._replies.append(
            StubReply(error=message, error_status=status, header_lines=header_lines or [])
        )

    @property
    def last_request(self) -> TransportRequest:
        return self.requests[-1]

    def perform(self, request, on_header, on_body) -> int:
        self.requests.append(request)
        scripted = self._replies.pop(0) if self._replies else StubReply()

        if scripted.header_lines:
            status_line = scripted.error_status if scripted.error is not None else scripted.status
            on_header(f"HTTP/1.1 {status_line} X\r\n".encode())
            for line in scripted.header_lines:
                on_header(f"{line}\r\n".encode("latin-1"))
            on_header(b"\r\n")

        if scripted.error is not None:
            raise TransportError(scripted.error, status=scripted.error_status)

        if request.wants_body:
            for chunk in scripted.body_chunks:
                on_body(chunk)
        return scripted.status


@pytest.fixture
def stub_transport() -> StubTransport:
    return StubTransport()


@pytest.fixture
def pool() -> SlotPool:
    return SlotPool(initial_slots=4)


@pytest.fixture
def fetcher(pool: SlotPool, stub_transport: StubTransport) -> OutboundFetcher:
    return OutboundFetcher(pool, stub_transport)
