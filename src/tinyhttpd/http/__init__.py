"""
=============================================================================
HTTP PROTOCOL LAYER
=============================================================================

Everything that understands HTTP/1.0 but never touches a socket:

    request.py       Request line parsing
    resolver.py      Target → filesystem path + static/dynamic
    mime_types.py    File suffix → Content-type
    response.py      Response building and serialization
    status_codes.py  Status codes and reason phrases

=============================================================================
"""

from .request import Request, HTTPParseError, parse_request_line
from .resolver import Resolver, ResolvedResource, ContentKind
from .response import HTTPResponse, ResponseBuilder, status_prefix
from .status_codes import HTTPStatus
from .mime_types import get_content_type

__all__ = [
    "Request",
    "HTTPParseError",
    "parse_request_line",
    "Resolver",
    "ResolvedResource",
    "ContentKind",
    "HTTPResponse",
    "ResponseBuilder",
    "status_prefix",
    "HTTPStatus",
    "get_content_type",
]
