"""
=============================================================================
CONTENT HANDLERS
=============================================================================

The three ways a Tiny transaction can end:

    static.py   Read a file, send it with Content-length
    cgi.py      Run a program, its stdout is the response
    errors.py   Send an HTML error page

=============================================================================
"""

from .static import StaticFileHandler, StaticContentError
from .cgi import CGIHandler, CGIError, ProcessRunner
from .errors import ClientError, error_response, error_body, error_continuation

__all__ = [
    "StaticFileHandler",
    "StaticContentError",
    "CGIHandler",
    "CGIError",
    "ProcessRunner",
    "ClientError",
    "error_response",
    "error_body",
    "error_continuation",
]
