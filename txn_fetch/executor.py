"""Executor - runs one outbound call for a CallState and captures the result.

perform_fetch() assembles a TransportRequest from the record, hands it to a
Transport, and streams response header lines and body chunks straight back
into the same record. Transport failures are recorded, never raised.
"""

from __future__ import annotations

import logging

from txn_fetch.models import Method, TransportRequest
from txn_fetch.state import CallState
from txn_fetch.transport import BodyCallback, HeaderCallback, Transport, TransportError

logger = logging.getLogger(__name__)


def _positive_or_none(value: int) -> int | None:
    return value if value > 0 else None


def _encode_body(body: str | bytes | None) -> bytes:
    if body is None:
        return b""
    if isinstance(body, bytes):
        return body
    return body.encode("utf-8")


def build_request(state: CallState) -> TransportRequest:
    """Assemble the transport request for the call configured on `state`.

    The custom method, if set, goes on the wire verbatim; the GET/HEAD/POST
    flag still decides whether the POST body is attached and whether the
    response body is read. Request header lines keep their insertion order.
    """
    if state.url is None:
        raise ValueError("CallState has no URL")

    fetch_mode = state.method if state.method is not Method.UNSET else Method.GET
    method = state.custom_method or fetch_mode.value

    content: bytes | None = None
    if fetch_mode is Method.POST:
        content = _encode_body(state.post_body)

    return TransportRequest(
        method=method,
        fetch_mode=fetch_mode,
        url=state.url,
        header_lines=state.request_headers.lines(),
        content=content,
        timeout_ms=_positive_or_none(state.timeout_ms),
        connect_timeout_ms=_positive_or_none(state.connect_timeout_ms),
        verify_peer=state.verify_peer,
        verify_host=state.verify_host,
        ca_file=state.ca_file,
        ca_path=state.ca_path,
        proxy=state.proxy,
    )


def _on_header(state: CallState) -> HeaderCallback:
    def callback(line: bytes) -> None:
        state.response_headers.feed(line)
    return callback


def _on_body(state: CallState) -> BodyCallback:
    def callback(chunk: bytes) -> None:
        state.body.extend(chunk)
    return callback


def perform_fetch(state: CallState, transport: Transport) -> None:
    """Execute the call configured on `state` and capture its response.

    Response headers and body are dropped before the call, so a failed or
    partial call never shows a previous call's data. HTTP error statuses are
    not failures here: only transport errors set `state.error`. The custom
    method and request headers are consumed whether or not the call succeeds.
    """
    state.response_headers.clear()
    state.clear_body()
    state.status = 0
    state.error = None

    try:
        request = build_request(state)
        logger.debug("Fetching %s %s", request.method, request.url)
        state.status = transport.perform(request, _on_header(state), _on_body(state))
    except TransportError as e:
        state.status = e.status
        state.error = str(e) or e.__class__.__name__
        logger.warning("Fetch of %s failed: %s", state.url, state.error)
    except ValueError as e:
        # Invalid configuration (e.g. no URL) surfaces at execution time.
        state.error = str(e)
        logger.warning("Fetch not attempted: %s", state.error)
    finally:
        state.custom_method = None
        state.request_headers.clear()

    logger.debug(
        "Fetch of %s finished: status=%d body=%d bytes headers=%d",
        state.url, state.status, len(state.body), len(state.response_headers),
    )
