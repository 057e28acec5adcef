"""Transport - the synchronous perform(request) boundary.

The executor only talks to the Transport protocol. HttpxTransport is the
default implementation: one httpx.Client per call, response header lines and
body chunks handed back through callbacks as they arrive.
"""

from __future__ import annotations

import logging
import ssl
from typing import Any, Callable, Protocol
from urllib.parse import quote, unquote_to_bytes

import httpx

from txn_fetch.models import FetchSettings, Method, TransportRequest

logger = logging.getLogger(__name__)

HeaderCallback = Callable[[bytes], None]
BodyCallback = Callable[[bytes], None]

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class TransportError(Exception):
    """Raised when a call fails below HTTP (connection, timeout, TLS, proxy, URL).

    `status` carries a status code if the response head arrived before the
    failure, else 0.
    """

    def __init__(self, message: str, status: int = 0) -> None:
        super().__init__(message)
        self.status = status


class Transport(Protocol):
    """Synchronous HTTP transport."""

    def perform(
        self,
        request: TransportRequest,
        on_header: HeaderCallback,
        on_body: BodyCallback,
    ) -> int:
        """Execute one request and return the final HTTP status code.

        `on_header` receives every raw header line (status line first) and
        `on_body` every body chunk. Raises TransportError on transport-level
        failure.
        """
        ...


def escape(text: str) -> str:
    """Percent-encode everything outside the unreserved set (A-Z a-z 0-9 -._~)."""
    return quote(text, safe="")


def unescape(text: str) -> str:
    """Decode %XX sequences. '+' is left as-is."""
    return unquote_to_bytes(text).decode("utf-8", errors="replace")


def split_header_line(line: str) -> tuple[str, str]:
    """Turn a raw request header line into an outgoing (name, value) pair.

    'Name: Value' sends Value, 'Name;' sends an empty header, and a line
    without a colon is sent as a name with an empty value.
    """
    if ":" in line:
        name, value = line.split(":", 1)
        return name.strip(), value.strip()
    stripped = line.strip()
    if stripped.endswith(";"):
        stripped = stripped[:-1]
    return stripped, ""


def proxy_url(proxy: str) -> str:
    """A proxy given without a scheme is an HTTP proxy."""
    if "://" not in proxy:
        return f"http://{proxy}"
    return proxy


def _ms_to_seconds(ms: int | None, default: float | None) -> float | None:
    if ms is not None and ms > 0:
        return ms / 1000.0
    return default


class HttpxTransport:
    """Transport backed by httpx.

    Usage:
        transport = HttpxTransport(FetchSettings(default_timeout=10.0))
        status = transport.perform(request, on_header, on_body)

    `http_transport` replaces the network layer of every client created
    (e.g. httpx.MockTransport in tests).
    """

    def __init__(
        self,
        settings: FetchSettings | None = None,
        http_transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._settings = settings or FetchSettings()
        self._http_transport = http_transport

    def build_ssl_context(self, request: TransportRequest) -> ssl.SSLContext:
        """Build the TLS context for one request.

        CA bundle locations are always loaded when given. Python's TLS layer
        only checks host names on verified peers, so verify_host has effect
        only together with verify_peer.

        Raises:
            ssl.SSLError, OSError: If a CA location cannot be loaded.
        """
        ssl_context = ssl.create_default_context(
            cafile=request.ca_file, capath=request.ca_path
        )
        if request.verify_peer:
            ssl_context.check_hostname = request.verify_host
            ssl_context.verify_mode = ssl.CERT_REQUIRED
        else:
            ssl_context.check_hostname = False
            ssl_context.verify_mode = ssl.CERT_NONE
        return ssl_context

    def build_timeout(self, request: TransportRequest) -> httpx.Timeout:
        default = self._settings.default_timeout
        timeout = _ms_to_seconds(request.timeout_ms, default)
        connect = _ms_to_seconds(request.connect_timeout_ms, timeout)
        return httpx.Timeout(timeout, connect=connect)

    def build_headers(self, request: TransportRequest) -> list[tuple[str, str]]:
        headers = [split_header_line(line) for line in request.header_lines]
        names = {name.lower() for name, _ in headers}
        if request.fetch_mode is Method.POST and "content-type" not in names:
            headers.append(("Content-Type", FORM_CONTENT_TYPE))
        if self._settings.user_agent and "user-agent" not in names:
            headers.append(("User-Agent", self._settings.user_agent))
        # Body is captured as received, never decompressed
        if "accept-encoding" not in names:
            headers.append(("Accept-Encoding", "identity"))
        return headers

    def _build_client_kwargs(self, request: TransportRequest) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "verify": self.build_ssl_context(request),
            "timeout": self.build_timeout(request),
            "follow_redirects": False,
        }
        if request.proxy:
            kwargs["proxy"] = proxy_url(request.proxy)
        if self._http_transport is not None:
            kwargs["transport"] = self._http_transport
        return kwargs

    def perform(
        self,
        request: TransportRequest,
        on_header: HeaderCallback,
        on_body: BodyCallback,
    ) -> int:
        """Execute `request` with a fresh httpx.Client.

        Raises:
            TransportError: On connection, timeout, TLS, proxy or URL failure.
                `status` is set when the response head arrived before the
                failure.
        """
        status = 0
        logger.debug("%s %s (mode=%s)", request.method, request.url, request.fetch_mode.value)
        try:
            client_kwargs = self._build_client_kwargs(request)
        except (ssl.SSLError, OSError) as e:
            raise TransportError(f"TLS setup error: {e}") from e

        try:
            client = httpx.Client(**client_kwargs)
        except (ImportError, ValueError, httpx.InvalidURL) as e:
            # Unsupported proxy scheme or unparsable proxy URL
            raise TransportError(f"proxy error: {e}") from e

        try:
            with client:
                http_request = client.build_request(
                    request.method,
                    request.url,
                    headers=self.build_headers(request),
                    content=request.content,
                )
                # httpx upper-cases methods; send the caller's spelling
                http_request.method = request.method
                response = client.send(http_request, stream=True)
                try:
                    status = response.status_code
                    reason = response.reason_phrase
                    on_header(f"{response.http_version} {status} {reason}".encode("latin-1"))
                    for name, value in response.headers.raw:
                        on_header(name + b": " + value)
                    on_header(b"")
                    if request.wants_body:
                        for chunk in response.iter_raw():
                            on_body(chunk)
                finally:
                    response.close()
        except httpx.TimeoutException as e:
            raise TransportError(f"timeout: {e}", status=status) from e
        except httpx.ProxyError as e:
            raise TransportError(f"proxy error: {e}", status=status) from e
        except httpx.ConnectError as e:
            raise TransportError(f"connection error: {e}", status=status) from e
        except httpx.RequestError as e:
            raise TransportError(f"request error: {e}", status=status) from e
        except httpx.InvalidURL as e:
            raise TransportError(f"invalid URL: {e}", status=status) from e
        except UnicodeEncodeError as e:
            # Header names, header values and URLs must be ASCII on the wire.
            raise TransportError(
                f"encoding error: non-ASCII character "
                f"{e.object[e.start:e.end]!r} in request",
                status=status,
            ) from e

        return status
