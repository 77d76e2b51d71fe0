"""
=============================================================================
ERROR RESPONDER
=============================================================================

Builds the small HTML page Tiny sends for every failure.

    ┌─────────────────────────────────────────────────────────────────────┐
    │  HTTP/1.0 404 Not found                                             │
    │  Server: Tiny Web Server                                            │
    │  Connection: close                                                  │
    │  Content-type: text/html                                            │
    │  Content-length: 143                                                │
    │                                                                      │
    │  <html><title>Tiny Error</title><body bgcolor="ffffff">             │
    │  404: Not found                                                     │
    │  <p>Tiny couldn't find this file: ./missing.html                    │
    │  <hr><em>The Tiny Web Server</em>                                   │
    └─────────────────────────────────────────────────────────────────────┘

The page names the offending resource (the "cause"), the code, a short
message and a longer explanation. The cause comes from the client, so it is
HTML-escaped before it is embedded.

=============================================================================
"""

import html
from typing import Optional

from ..http.response import HTTPResponse, ResponseBuilder
from ..http.status_codes import HTTPStatus


class ClientError(Exception):
    """
    A failure that ends the transaction with an error page.

    Raised anywhere in the request pipeline and turned into a response by
    the server at the transaction boundary.

    Args:
        cause: What the error is about (method name, file path, ...).
        status: HTTP status code to send.
        long_msg: One-sentence explanation for the page body.
        short_msg: Reason phrase; defaults to the status phrase.
    """

    def __init__(
        self,
        cause: str,
        status: HTTPStatus,
        long_msg: str,
        short_msg: Optional[str] = None,
    ):
        self.cause = cause
        self.status = HTTPStatus(status)
        self.short_msg = short_msg or self.status.phrase
        self.long_msg = long_msg
        super().__init__(f"{int(self.status)} {self.short_msg}: {long_msg}: {cause}")

    def to_response(self, server_name: str = "Tiny Web Server") -> HTTPResponse:
        return error_response(
            self.cause, self.status, self.short_msg, self.long_msg, server_name
        )


def error_body(
    cause: str,
    status: HTTPStatus,
    short_msg: str,
    long_msg: str,
    server_name: str = "Tiny Web Server",
) -> str:
    """The HTML error page, CRLF-separated like the rest of the response."""
    return (
        '<html><title>Tiny Error</title><body bgcolor="ffffff">\r\n'
        f"{int(status)}: {short_msg}\r\n"
        f"<p>{long_msg}: {html.escape(cause)}\r\n"
        f"<hr><em>The {server_name}</em>\r\n"
    )


def error_response(
    cause: str,
    status: HTTPStatus,
    short_msg: str,
    long_msg: str,
    server_name: str = "Tiny Web Server",
) -> HTTPResponse:
    """
    Build a complete error response.

    Content-length is the byte length of the encoded page, not the
    character count, so non-ASCII causes are measured correctly.

    Example:
        response = error_response(
            "POST", HTTPStatus.NOT_IMPLEMENTED,
            "Not implemented", "Tiny does not implement this method",
        )
    """
    page = error_body(cause, status, short_msg, long_msg, server_name)
    return (ResponseBuilder(server_name)
        .status(status, reason=short_msg)
        .close_connection()
        .content_type("text/html")
        .body(page)
        .build())


def error_continuation(
    cause: str,
    status: HTTPStatus,
    short_msg: str,
    long_msg: str,
    server_name: str = "Tiny Web Server",
) -> bytes:
    """
    The rest of an error response whose status line is already sent.

    Used when a CGI program fails to start after "HTTP/1.0 200 OK" and the
    Server header are on the wire: the status cannot be taken back, but the
    client still gets a readable page instead of an empty body.
    """
    page = error_body(cause, status, short_msg, long_msg, server_name).encode(
        "utf-8", "surrogateescape"
    )
    head = (
        "Connection: close\r\n"
        "Content-type: text/html\r\n"
        f"Content-length: {len(page)}\r\n"
        "\r\n"
    )
    return head.encode("iso-8859-1") + page
