"""OutboundFetcher - the operation surface used by the embedding engine.

Every operation takes the caller's Transaction (slot + transaction id) and
goes through SlotPool.acquire(), so the first touch of a slot by a new
transaction always sees a cleared record.

Usage:
    fetcher = OutboundFetcher(SlotPool(), HttpxTransport())
    tx = Transaction(slot=3, xid=100)
    fetcher.add_request_header(tx, "Accept: application/json")
    fetcher.get(tx, "http://backend/health")
    if fetcher.status(tx) == 200:
        payload = fetcher.body(tx)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Hashable

from txn_fetch.executor import perform_fetch
from txn_fetch.models import Method
from txn_fetch.pool import SlotPool
from txn_fetch.state import CallState
from txn_fetch.transport import HttpxTransport, Transport, escape, unescape


@dataclass(frozen=True)
class Transaction:
    """Identity of one inbound transaction as assigned by the engine."""

    slot: int
    xid: Hashable


class OutboundFetcher:
    """Configure, run and read back outbound HTTP calls per transaction."""

    def __init__(
        self,
        pool: SlotPool | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._pool = pool or SlotPool()
        self._transport = transport or HttpxTransport()

    @property
    def pool(self) -> SlotPool:
        return self._pool

    def state(self, tx: Transaction) -> CallState:
        return self._pool.acquire(tx.slot, tx.xid)

    # -------------------------------------------------------------------------
    # Fetch operations
    # -------------------------------------------------------------------------

    def _fetch(
        self,
        tx: Transaction,
        method: Method,
        url: str,
        post_body: str | bytes | None = None,
    ) -> None:
        state = self.state(tx)
        state.clear_fetch_state()
        state.url = url
        state.method = method
        if method is Method.POST:
            state.post_body = post_body
        perform_fetch(state, self._transport)

    def get(self, tx: Transaction, url: str) -> None:
        self._fetch(tx, Method.GET, url)

    def fetch(self, tx: Transaction, url: str) -> None:
        """Alias of get()."""
        self.get(tx, url)

    def head(self, tx: Transaction, url: str) -> None:
        self._fetch(tx, Method.HEAD, url)

    def post(self, tx: Transaction, url: str, body: str | bytes) -> None:
        self._fetch(tx, Method.POST, url, body)

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------

    def set_method(self, tx: Transaction, name: str) -> None:
        """Send `name` as the HTTP method of the next call only."""
        self.state(tx).custom_method = name

    def set_timeout(self, tx: Transaction, ms: int) -> None:
        self.state(tx).timeout_ms = ms

    def set_connect_timeout(self, tx: Transaction, ms: int) -> None:
        self.state(tx).connect_timeout_ms = ms

    def set_ssl_verify_peer(self, tx: Transaction, verify: bool) -> None:
        self.state(tx).verify_peer = bool(verify)

    def set_ssl_verify_host(self, tx: Transaction, verify: bool) -> None:
        self.state(tx).verify_host = bool(verify)

    def set_ssl_cafile(self, tx: Transaction, path: str) -> None:
        self.state(tx).ca_file = path

    def set_ssl_capath(self, tx: Transaction, path: str) -> None:
        self.state(tx).ca_path = path

    def set_proxy(self, tx: Transaction, url: str) -> None:
        self.state(tx).proxy = url

    def proxy(self, tx: Transaction, url: str) -> None:
        """Alias of set_proxy()."""
        self.set_proxy(tx, url)

    def add_request_header(self, tx: Transaction, line: str) -> None:
        self.state(tx).request_headers.add(line)

    def remove_request_header(self, tx: Transaction, name: str) -> None:
        self.state(tx).request_headers.remove(name)

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    def status(self, tx: Transaction) -> int:
        return self.state(tx).status

    def error(self, tx: Transaction) -> str | None:
        """Transport error text, only when no HTTP status was obtained."""
        state = self.state(tx)
        if state.status != 0:
            return None
        return state.error

    def header(self, tx: Transaction, name: str) -> str | None:
        return self.state(tx).response_headers.get(name)

    def body(self, tx: Transaction) -> str:
        return self.state(tx).body_text()

    # -------------------------------------------------------------------------
    # Lifecycle and stateless helpers
    # -------------------------------------------------------------------------

    def reset(self, tx: Transaction) -> None:
        self._pool.reset(tx.slot, tx.xid)

    def free(self, tx: Transaction) -> None:
        """Alias of reset()."""
        self.reset(tx)

    @staticmethod
    def escape(text: str) -> str:
        return escape(text)

    @staticmethod
    def unescape(text: str) -> str:
        return unescape(text)
