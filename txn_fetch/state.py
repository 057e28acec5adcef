"""CallState - the reusable per-slot record of one outbound call.

A CallState is created once by the SlotPool and then reset in place, never
replaced. Two resets exist:

- clear(): transaction-boundary reset. Everything goes back to defaults,
  including TLS, timeout and proxy configuration.
- clear_fetch_state(): start of every GET/HEAD/POST. Drops the method flag
  and the previous response headers and body, keeps configuration.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Hashable

from txn_fetch.headers import RequestHeaderList, ResponseHeaderList
from txn_fetch.models import Method


@dataclass(eq=False)
class CallState:
    """Configuration plus captured results for one slot.

    Attributes:
        xid: Transaction currently owning the slot (None before first use).
        method: GET/HEAD/POST flag of the pending or most recent call.
        custom_method: One-shot literal method override.
        url: URL of the most recent call.
        post_body: Entity of the most recent POST.
        timeout_ms: Whole-call timeout; non-positive means transport default.
        connect_timeout_ms: Connect timeout; non-positive means transport default.
        verify_peer: Verify the server certificate chain (off by default).
        verify_host: Verify the certificate host name (off by default).
        ca_file: CA bundle file passed to the transport.
        ca_path: CA certificate directory passed to the transport.
        proxy: Proxy URL.
        request_headers: One-shot raw header lines for the next call.
        response_headers: Parsed headers of the most recent call.
        body: Response body of the most recent call.
        status: Final HTTP status; 0 if no status was obtained.
        error: Transport failure text of the most recent call.
    """

    xid: Hashable | None = None
    method: Method = Method.UNSET
    custom_method: str | None = None
    url: str | None = None
    post_body: str | bytes | None = None
    timeout_ms: int = -1
    connect_timeout_ms: int = -1
    verify_peer: bool = False
    verify_host: bool = False
    ca_file: str | None = None
    ca_path: str | None = None
    proxy: str | None = None
    request_headers: RequestHeaderList = field(default_factory=RequestHeaderList)
    response_headers: ResponseHeaderList = field(default_factory=ResponseHeaderList)
    body: bytearray = field(default_factory=bytearray)
    status: int = 0
    error: str | None = None

    def clear_body(self) -> None:
        del self.body[:]

    def clear_fetch_state(self) -> None:
        self.method = Method.UNSET
        self.clear_body()
        self.response_headers.clear()

    def clear(self) -> None:
        """Return every field to its initial value without reallocating."""
        self.clear_fetch_state()
        self.request_headers.clear()
        self.xid = None
        self.custom_method = None
        self.url = None
        self.post_body = None
        self.timeout_ms = -1
        self.connect_timeout_ms = -1
        self.verify_peer = False
        self.verify_host = False
        self.ca_file = None
        self.ca_path = None
        self.proxy = None
        self.status = 0
        self.error = None

    def body_text(self) -> str:
        # Body is returned as text; undecodable bytes are replaced.
        return self.body.decode("utf-8", errors="replace")
