"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The subset of RFC 1945 / RFC 7231 status codes this server can produce.

    ┌───────────┬──────────────────────────────────────────────────────────┐
    │   Code    │  When Tiny sends it                                      │
    ├───────────┼──────────────────────────────────────────────────────────┤
    │  200      │  Static file served, or CGI program started              │
    │  400      │  Request line is not "METHOD TARGET VERSION"             │
    │  403      │  Not a regular file, or missing read/execute permission  │
    │  404      │  Target does not exist                                   │
    │  414      │  Request line longer than max_line_size                  │
    │  431      │  A header line longer than max_line_size                 │
    │  500      │  File read failed, or CGI program could not start        │
    │  501      │  Method is anything but GET                              │
    └───────────┴──────────────────────────────────────────────────────────┘

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes and reason phrases.

    This enum extends IntEnum, so status codes can be used as integers:

        >>> HTTPStatus.NOT_FOUND == 404
        True
        >>> HTTPStatus.NOT_FOUND.phrase
        'Not found'

    Phrases use sentence case: "Not found", not "Not Found".
    """

    OK = 200

    BAD_REQUEST = 400
    FORBIDDEN = 403
    NOT_FOUND = 404
    URI_TOO_LONG = 414
    REQUEST_HEADER_FIELDS_TOO_LARGE = 431

    INTERNAL_SERVER_ERROR = 500
    NOT_IMPLEMENTED = 501

    @property
    def phrase(self) -> str:
        """Reason phrase used on the status line and in error pages."""
        return _STATUS_PHRASES.get(self, "Unknown")


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.BAD_REQUEST: "Bad request",
    HTTPStatus.FORBIDDEN: "Forbidden",
    HTTPStatus.NOT_FOUND: "Not found",
    HTTPStatus.URI_TOO_LONG: "URI too long",
    HTTPStatus.REQUEST_HEADER_FIELDS_TOO_LARGE: "Request header fields too large",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal server error",
    HTTPStatus.NOT_IMPLEMENTED: "Not implemented",
}
