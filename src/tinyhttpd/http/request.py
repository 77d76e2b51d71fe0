"""
=============================================================================
HTTP/1.0 REQUEST LINE PARSING
=============================================================================

Tiny only ever looks at the first line of a request:

    ┌─────────────────────────────────────────────────────────────────┐
    │  GET /cgi-bin/adder?15&20 HTTP/1.0\r\n                          │
    │  └─┬┘ └─────────┬───────┘ └───┬──┘                              │
    │  Method       Target        Version                             │
    ├─────────────────────────────────────────────────────────────────┤
    │  Host: localhost:8000\r\n          ← read and thrown away       │
    │  User-Agent: curl/8.0\r\n          ← read and thrown away       │
    │  \r\n                              ← end of request             │
    └─────────────────────────────────────────────────────────────────┘

The target is kept exactly as the client sent it. Percent-decoding and
query parsing are left to the CGI program, which receives the raw query
string in QUERY_STRING.

Fields are decoded with os.fsdecode(): bytes that are not valid in the
filesystem encoding become surrogate escapes, so os.stat() and the CGI
environment get back exactly the bytes that arrived on the wire.

=============================================================================
"""

import os
from dataclasses import dataclass

from .status_codes import HTTPStatus


class HTTPParseError(Exception):
    """
    Raised when the request cannot be read or parsed.

    Carries the HTTP status code the client should receive:

        400 Bad request                      - Not three fields
        414 URI too long                     - Request line over the limit
        431 Request header fields too large  - Header line over the limit
    """

    def __init__(self, message: str, status_code: int = HTTPStatus.BAD_REQUEST):
        super().__init__(message)
        self.status_code = HTTPStatus(status_code)


@dataclass(frozen=True)
class Request:
    """
    A parsed request line.

    Frozen: once parsed it is never modified, and it lives only as long
    as the transaction that read it.
    """

    method: str    # Compared case-insensitively against GET
    target: str    # Raw request-URI, untouched
    version: str   # Informational only; every response is HTTP/1.0

    @property
    def is_get(self) -> bool:
        """True if this is the one method Tiny implements."""
        return self.method.upper() == "GET"


def parse_request_line(line: bytes | str) -> Request:
    """
    Parse "METHOD TARGET VERSION" into a Request.

    The line is split on runs of ASCII whitespace, the same way
    sscanf("%s %s %s") tokenizes it, and the trailing CRLF is dropped.
    Splitting happens on the raw bytes, so a non-breaking space inside a
    UTF-8 target is not a separator. Anything other than exactly three
    fields is a 400.

    Args:
        line: The raw first line read from the connection.

    Returns:
        The parsed Request.

    Raises:
        HTTPParseError: If the line does not have three fields.

    Examples:
        >>> parse_request_line(b"GET / HTTP/1.0\\r\\n")
        Request(method='GET', target='/', version='HTTP/1.0')
    """
    if isinstance(line, str):
        line = os.fsencode(line)

    parts = [os.fsdecode(part) for part in line.split()]
    if len(parts) != 3:
        raise HTTPParseError(f"Malformed request line: {line.strip()!r}")

    method, target, version = parts
    return Request(method=method, target=target, version=version)
