"""
=============================================================================
STATIC CONTENT SERVER
=============================================================================

Sends a file's bytes back to the client.

=============================================================================
FLOW
=============================================================================

By the time this handler runs the server has already checked, with a
fresh stat(), that the path exists, is a regular file and is owner-readable.
What is left:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   1. Refuse files larger than max_file_size                         │
    │   2. open() + read() the whole file, close it (always)              │
    │   3. Check len(content) == size from stat()                         │
    │   4. Build: 200 OK, Server, Connection, Content-length, -type       │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
WHY CHECK THE LENGTH AGAIN?
=============================================================================

Content-length comes from stat(); the body comes from read(). If the file
is truncated or appended to in between, the two disagree and the client
either hangs waiting for bytes that never arrive or reads garbage into
the next response. Rather than send a lying Content-length, the handler
raises StaticContentError and the server answers 500.

=============================================================================
"""

import logging

from ..http.response import HTTPResponse, ResponseBuilder
from ..http.status_codes import HTTPStatus
from ..http.mime_types import get_content_type


logger = logging.getLogger(__name__)


class StaticContentError(Exception):
    """A file that passed the permission checks could not be served."""

    def __init__(self, path: str, message: str):
        super().__init__(f"{path}: {message}")
        self.path = path


class StaticFileHandler:
    """
    Serves validated regular files.

    Usage:
        static = StaticFileHandler(server_name="Tiny Web Server")
        response = static.serve("./home.html", size=120)
    """

    def __init__(
        self,
        server_name: str = "Tiny Web Server",
        max_file_size: int = 64 * 1024 * 1024,
    ):
        self.server_name = server_name
        self.max_file_size = max_file_size

    def serve(self, path: str, size: int) -> HTTPResponse:
        """
        Build the complete 200 response for a file.

        Args:
            path: Resolved path, already checked to be a readable file.
            size: st_size from the stat() done for this request.

        Returns:
            Response whose body is exactly the file's bytes.

        Raises:
            StaticContentError: If the file is too large, cannot be opened
                                or read, or its length no longer matches size.
        """
        if size > self.max_file_size:
            raise StaticContentError(
                path, f"{size} bytes exceeds max_file_size ({self.max_file_size})"
            )

        content = self._read(path, size)

        response = (ResponseBuilder(self.server_name)
            .status(HTTPStatus.OK)
            .close_connection()
            .body(content)
            .content_type(get_content_type(path))
            .build())

        logger.debug(f"Response headers:\n{response.head_bytes().decode('iso-8859-1')}")
        return response

    def _read(self, path: str, size: int) -> bytes:
        try:
            with open(path, "rb") as f:
                # One byte past the expected size reveals a file that grew
                content = f.read(size + 1)
        except OSError as e:
            raise StaticContentError(path, f"read failed: {e}") from e

        if len(content) != size:
            raise StaticContentError(
                path, f"expected {size} bytes, read {len(content)}"
            )
        return content
