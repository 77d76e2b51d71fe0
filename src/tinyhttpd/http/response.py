"""
=============================================================================
HTTP/1.0 RESPONSE BUILDER
=============================================================================

Builds the bytes Tiny writes back to the client.

=============================================================================
TWO KINDS OF RESPONSE
=============================================================================

Static files and error pages are COMPLETE responses, built in memory and
sent in one sendall():

    ┌─────────────────────────────────────────────────────────────────────┐
    │  HTTP/1.0 200 OK\r\n                                                │
    │  Server: Tiny Web Server\r\n                                        │
    │  Connection: close\r\n                                              │
    │  Content-length: 120\r\n         ← exact body size                  │
    │  Content-type: text/html\r\n                                        │
    │  \r\n                                                                │
    │  <html>...                       ← body bytes                       │
    └─────────────────────────────────────────────────────────────────────┘

Dynamic content only gets a PREFIX from the server. The CGI program
writes everything after it, including the blank line:

    ┌─────────────────────────────────────────────────────────────────────┐
    │  HTTP/1.0 200 OK\r\n             ┐                                  │
    │  Server: Tiny Web Server\r\n     ┘ status_prefix()                  │
    │  Content-type: text/html\r\n     ┐                                  │
    │  Content-length: 42\r\n          │ written by the CGI program       │
    │  \r\n                            │                                  │
    │  <p>15 + 20 = 35</p>             ┘                                  │
    └─────────────────────────────────────────────────────────────────────┘

Header names use HTTP/1.0-era casing ("Content-type"); header names are
case-insensitive, so clients accept either form.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Union

from .status_codes import HTTPStatus


HTTP_VERSION = "HTTP/1.0"

CONTENT_TYPE = "Content-type"
CONTENT_LENGTH = "Content-length"


@dataclass
class HTTPResponse:
    """
    A complete response: status line, ordered headers, body.

    Headers keep insertion order (dicts are ordered), so the wire order is
    the order the builder added them in.
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    reason: Optional[str] = None   # Overrides status.phrase when set
    version: str = HTTP_VERSION

    @property
    def status_line(self) -> str:
        """
        Format: HTTP-VERSION SP STATUS-CODE SP REASON-PHRASE
        Example: "HTTP/1.0 404 Not found"
        """
        return f"{self.version} {int(self.status)} {self.reason or self.status.phrase}"

    def head_bytes(self) -> bytes:
        """Status line and headers, terminated by the blank line."""
        lines = [self.status_line]
        lines.extend(f"{name}: {value}" for name, value in self.headers.items())
        lines.append("")
        return ("\r\n".join(lines) + "\r\n").encode("iso-8859-1")

    def to_bytes(self) -> bytes:
        """
        Serialize the response for socket.sendall().

        Content-length is filled in from the body if no one set it.
        """
        if not any(name.lower() == "content-length" for name in self.headers):
            self.headers[CONTENT_LENGTH] = str(len(self.body))
        return self.head_bytes() + self.body


class ResponseBuilder:
    """
    Fluent builder for complete responses.

    Every response starts with the Server header; the rest appear in the
    order the builder methods are called:

        response = (ResponseBuilder("Tiny Web Server")
            .status(HTTPStatus.OK)
            .close_connection()
            .body(content)                 # adds Content-length
            .content_type("text/html")
            .build())
    """

    def __init__(self, server_name: str = "Tiny Web Server"):
        self._status = HTTPStatus.OK
        self._reason: Optional[str] = None
        self._headers: Dict[str, str] = {"Server": server_name}
        self._body = b""

    def status(self, status: HTTPStatus, reason: Optional[str] = None) -> "ResponseBuilder":
        """Set the status code, optionally with a custom reason phrase."""
        self._status = HTTPStatus(status)
        self._reason = reason
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        return self.header(CONTENT_TYPE, content_type)

    def close_connection(self) -> "ResponseBuilder":
        """HTTP/1.0: every response ends the connection."""
        return self.header("Connection", "close")

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        """
        Set the body and its Content-length.

        Strings are encoded as UTF-8; the length is always the byte length.
        Surrogate escapes from os.fsdecode() turn back into their raw bytes.
        """
        if isinstance(body, str):
            body = body.encode("utf-8", "surrogateescape")
        self._body = body
        return self.header(CONTENT_LENGTH, str(len(body)))

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            headers=dict(self._headers),
            body=self._body,
            reason=self._reason,
        )


def status_prefix(server_name: str, status: HTTPStatus = HTTPStatus.OK) -> bytes:
    """
    The part of a dynamic response the server writes itself.

    Status line plus Server header, and deliberately NO blank line and NO
    Content-length: the CGI program finishes the header block.

    Example:
        >>> status_prefix("Tiny Web Server")
        b'HTTP/1.0 200 OK\\r\\nServer: Tiny Web Server\\r\\n'
    """
    status = HTTPStatus(status)
    return (
        f"{HTTP_VERSION} {int(status)} {status.phrase}\r\n"
        f"Server: {server_name}\r\n"
    ).encode("iso-8859-1")
