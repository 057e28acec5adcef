"""Header parsing and the two per-call header lists.

Response header lines arrive from the transport one at a time as raw bytes
(status line and the blank terminator line included). Only lines that carry
a colon after a non-empty name become HeaderFields.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

# ASCII whitespace as seen by C isspace(): space, \t, \n, \v, \f, \r
_WHITESPACE = b" \t\n\v\f\r"


@dataclass(frozen=True)
class HeaderField:
    """One parsed response header. Key casing is kept as received."""

    key: str
    value: str


def _decode(raw: bytes) -> str:
    # Header bytes are opaque; latin-1 keeps every byte round-trippable.
    return raw.decode("latin-1")


def parse_header_line(line: bytes | str) -> HeaderField | None:
    """Split a raw header line into a trimmed key/value pair.

    Returns None for lines that are not headers: no colon at all (status
    lines, the empty terminator line) or a colon at offset 0.

    Args:
        line: One header line, with or without its trailing CRLF.

    Returns:
        HeaderField with the key verbatim and the value stripped of leading
        and trailing ASCII whitespace, or None.
    """
    if isinstance(line, str):
        line = line.encode("latin-1")

    split = line.find(b":")
    if split <= 0:
        return None

    key = line[:split]
    value = line[split + 1:].strip(_WHITESPACE)
    return HeaderField(key=_decode(key), value=_decode(value))


def header_line_name(line: str) -> str:
    """Name part of a raw request header line: text up to the first colon."""
    return line.split(":", 1)[0]


class RequestHeaderList:
    """Raw 'Name: Value' lines the caller added for the next call.

    Lines are sent in insertion order. The list is one-shot: the executor
    clears it after every call.
    """

    def __init__(self) -> None:
        self._lines: list[str] = []

    def add(self, line: str) -> None:
        self._lines.append(line)

    def remove(self, name: str) -> int:
        """Drop every line whose name case-insensitively equals `name`.

        Returns:
            Number of lines removed.
        """
        wanted = name.lower()
        kept = [ln for ln in self._lines if header_line_name(ln).lower() != wanted]
        removed = len(self._lines) - len(kept)
        self._lines = kept
        return removed

    def clear(self) -> None:
        self._lines.clear()

    def lines(self) -> tuple[str, ...]:
        return tuple(self._lines)

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[str]:
        return iter(self._lines)


class ResponseHeaderList:
    """Parsed response headers of the most recent call.

    New fields go to the front, and lookup returns the first case-insensitive
    match, so the last-received value wins for repeated headers.
    """

    def __init__(self) -> None:
        self._fields: list[HeaderField] = []

    def prepend(self, field: HeaderField) -> None:
        self._fields.insert(0, field)

    def feed(self, line: bytes | str) -> HeaderField | None:
        """Parse one raw line and prepend it if it is a header."""
        field = parse_header_line(line)
        if field is not None:
            self.prepend(field)
        return field

    def get(self, name: str) -> str | None:
        wanted = name.lower()
        for field in self._fields:
            if field.key.lower() == wanted:
                return field.value
        return None

    def clear(self) -> None:
        self._fields.clear()

    def items(self) -> list[tuple[str, str]]:
        """(key, value) pairs, most recent first."""
        return [(f.key, f.value) for f in self._fields]

    def __len__(self) -> int:
        return len(self._fields)

    def __iter__(self) -> Iterator[HeaderField]:
        return iter(self._fields)
