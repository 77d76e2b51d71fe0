"""
=============================================================================
TINY HTTP/1.0 SERVER
=============================================================================

Ties the pieces together. One accepted connection = one transaction:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      TRANSACTION STATE MACHINE                       │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   READ LINE ─── not 3 fields ──────────────────────────► 400        │
    │       │                                                              │
    │   METHOD ────── not GET ───────────────────────────────► 501        │
    │       │                                                              │
    │   READ HEADERS  (read until blank line, discard)                    │
    │       │                                                              │
    │   RESOLVE ───── leaves root (confine_to_root) ─────────► 403        │
    │       │                                                              │
    │   STAT ──────── does not exist ────────────────────────► 404        │
    │       │                                                              │
    │       ├── STATIC ── not regular / not owner-readable ──► 403        │
    │       │     └──► StaticFileHandler ─── read failed ────► 500        │
    │       │                                                              │
    │       └── DYNAMIC ─ not regular / not owner-exec ──────► 403        │
    │             └──► CGIHandler ────────── spawn failed ───► 500 page   │
    │                                                                      │
    │   DONE (the socket server closes the connection)                    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Strictly linear: no state loops back, and each connection produces exactly
one response.

=============================================================================
ERROR HANDLING
=============================================================================

Every failure is turned into an HTML error page inside the transaction:

    ClientError          → 400/403/404/414/431/501 page
    StaticContentError   → 500 page
    CGIError             → 500 page appended after the committed 200 line
    anything else        → logged with traceback, 500 page if nothing
                           has been sent yet

Nothing escapes handle_connection(), so one bad request can never stop the
accept loop.

=============================================================================
"""

import logging
import os
import stat
import time
from dataclasses import dataclass
from typing import Optional

from .access_log import AccessLogger
from .config import ServerConfig
from .core import SocketServer, Connection, LineTooLongError
from .handlers import (
    StaticFileHandler, StaticContentError,
    CGIHandler, CGIError, ProcessRunner,
    ClientError, error_continuation,
)
from .http import (
    Request, HTTPParseError, parse_request_line,
    Resolver, ResolvedResource, HTTPResponse, HTTPStatus,
)


logger = logging.getLogger(__name__)


@dataclass
class Transaction:
    """What one connection's transaction has done so far (for logging)."""

    request: Optional[Request] = None
    status: Optional[HTTPStatus] = None
    kind: str = "-"
    committed: bool = False   # A status line has been sent


class HTTPServer:
    """
    Iterative HTTP/1.0 server for static files and CGI programs.

    Usage:
        server = HTTPServer(ServerConfig(port=8000, root="./www"))
        server.run()  # Blocks until SIGINT/SIGTERM

    For testing, handle_connection() can be driven directly with a
    Connection built on one end of a socket.socketpair().
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        self.config = config or ServerConfig()
        self.config.validate()

        self._socket_server = SocketServer(self.config)

        self.resolver = Resolver(
            root=self.config.root,
            default_document=self.config.default_document,
            cgi_marker=self.config.cgi_marker,
        )
        self.static = StaticFileHandler(
            server_name=self.config.server_name,
            max_file_size=self.config.max_file_size,
        )
        self.cgi = CGIHandler(
            server_name=self.config.server_name,
            runner=ProcessRunner(timeout=self.config.cgi_timeout),
        )
        self.access_log = AccessLogger(log_format=self.config.log_format)

    # =========================================================================
    # SERVER LIFECYCLE
    # =========================================================================

    @property
    def address(self):
        return self._socket_server.address

    def run(self, host: Optional[str] = None, port: Optional[int] = None):
        """
        Start serving (blocking).

        Args:
            host: Override config host.
            port: Override config port.
        """
        if host is not None:
            self.config.host = host
        if port is not None:
            self.config.port = port

        self._setup_logging()
        logger.info(
            f"Starting {self.config.server_name} on {self.config.host}:{self.config.port}, "
            f"serving {os.path.abspath(self.config.root)}"
        )

        try:
            self._socket_server.start(self.handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            logger.info("Server stopped")

    def shutdown(self):
        """Stop after the current transaction finishes."""
        self._socket_server.shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_until_ready(timeout)

    def _setup_logging(self):
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("tinyhttpd").setLevel(level)

    # =========================================================================
    # TRANSACTION
    # =========================================================================

    def handle_connection(self, conn: Connection):
        """
        Run one complete transaction on a connection.

        Never raises. The caller owns the connection and closes it.
        """
        started_at = time.time()
        txn = Transaction()

        try:
            self._process(conn, txn)

        except ClientError as e:
            logger.debug(f"[{conn.id}] {e}")
            self._send(conn, txn, e.to_response(self.config.server_name))

        except StaticContentError as e:
            logger.error(f"[{conn.id}] Static content failure: {e}")
            self._send_internal_error(conn, txn, e.path, "Tiny couldn't read this file")

        except CGIError as e:
            logger.error(f"[{conn.id}] CGI failure: {e}")
            self._send_internal_error(
                conn, txn, e.path, "Tiny couldn't run the CGI program", continuation=True
            )

        except TimeoutError:
            logger.warning(f"[{conn.id}] Request read timeout")

        except Exception as e:
            logger.exception(f"[{conn.id}] Transaction error: {e}")
            self._send_internal_error(conn, txn, "request", "Tiny hit an internal error")

        finally:
            if txn.request is not None or txn.status is not None:
                request = txn.request
                self.access_log.log(
                    conn_id=conn.id,
                    client=conn.client_host,
                    method=request.method if request else "",
                    target=request.target if request else "",
                    version=request.version if request else "",
                    status=txn.status or 0,
                    bytes_sent=conn.bytes_sent,
                    started_at=started_at,
                    kind=txn.kind,
                )

    def _process(self, conn: Connection, txn: Transaction):
        # ─────────────────────────────────────────────────────────────────
        # READ LINE
        # ─────────────────────────────────────────────────────────────────
        try:
            line = conn.read_line(self.config.max_line_size)
        except LineTooLongError:
            raise ClientError(
                "request line", HTTPStatus.URI_TOO_LONG,
                "Tiny couldn't read a request line this long",
            )

        if not line:
            logger.debug(f"[{conn.id}] Client closed without sending a request")
            return

        logger.debug(f"[{conn.id}] Request headers:\n{os.fsdecode(line).rstrip()}")

        try:
            request = parse_request_line(line)
        except HTTPParseError as e:
            raise ClientError(
                os.fsdecode(line).strip(), e.status_code,
                "Tiny couldn't parse this request",
            )
        txn.request = request

        # ─────────────────────────────────────────────────────────────────
        # METHOD CHECK
        # ─────────────────────────────────────────────────────────────────
        if not request.is_get:
            raise ClientError(
                request.method, HTTPStatus.NOT_IMPLEMENTED,
                "Tiny does not implement this method",
            )

        # ─────────────────────────────────────────────────────────────────
        # READ HEADERS
        # ─────────────────────────────────────────────────────────────────
        self._read_headers(conn)

        # ─────────────────────────────────────────────────────────────────
        # RESOLVE + STAT
        # ─────────────────────────────────────────────────────────────────
        resource = self.resolver.resolve(request.target)
        txn.kind = resource.kind.value

        if self.config.confine_to_root and not resource.within_root:
            logger.warning(f"[{conn.id}] Target escapes serving root: {request.target}")
            raise ClientError(resource.path, HTTPStatus.FORBIDDEN, "Tiny couldn't read this file")

        st = self._stat(resource)

        # ─────────────────────────────────────────────────────────────────
        # SERVE
        # ─────────────────────────────────────────────────────────────────
        if resource.is_static:
            if not stat.S_ISREG(st.st_mode) or not st.st_mode & stat.S_IRUSR:
                raise ClientError(resource.path, HTTPStatus.FORBIDDEN, "Tiny couldn't read this file")
            self._send(conn, txn, self.static.serve(resource.path, st.st_size))
        else:
            if not stat.S_ISREG(st.st_mode) or not st.st_mode & stat.S_IXUSR:
                raise ClientError(
                    resource.path, HTTPStatus.FORBIDDEN, "Tiny couldn't run the CGI program"
                )
            # The CGI handler writes the 200 status line itself
            txn.status = HTTPStatus.OK
            txn.committed = True
            self.cgi.invoke(conn, resource.path, resource.cgi_args)

    def _read_headers(self, conn: Connection):
        """Read and discard header lines up to the blank line (or EOF)."""
        while True:
            try:
                line = conn.read_line(self.config.max_line_size)
            except LineTooLongError:
                raise ClientError(
                    "header line", HTTPStatus.REQUEST_HEADER_FIELDS_TOO_LARGE,
                    "Tiny couldn't read a header line this long",
                )
            if line in (b"\r\n", b"\n", b""):
                return
            logger.debug(f"[{conn.id}] {os.fsdecode(line).rstrip()}")

    def _stat(self, resource: ResolvedResource) -> os.stat_result:
        """Fresh metadata for this request; any failure means 404."""
        try:
            return os.stat(resource.path)
        except (OSError, ValueError):
            # ValueError: embedded NUL byte in the path
            raise ClientError(resource.path, HTTPStatus.NOT_FOUND, "Tiny couldn't find this file")

    # =========================================================================
    # SENDING
    # =========================================================================

    def _send(self, conn: Connection, txn: Transaction, response: HTTPResponse):
        txn.status = response.status
        txn.committed = True
        conn.send_response(response.to_bytes())

    def _send_internal_error(
        self,
        conn: Connection,
        txn: Transaction,
        cause: str,
        long_msg: str,
        continuation: bool = False,
    ):
        """
        Answer 500.

        With continuation=True the status line is already on the wire and
        nothing else has been written after it, so the header block is
        finished and the error page sent as the body. Otherwise, once
        something has been sent, the response cannot be repaired and the
        error is only logged.
        """
        status = HTTPStatus.INTERNAL_SERVER_ERROR
        if not txn.committed:
            error = ClientError(cause, status, long_msg)
            self._send(conn, txn, error.to_response(self.config.server_name))
        elif continuation:
            txn.status = status
            conn.send_response(error_continuation(
                cause, status, status.phrase, long_msg, self.config.server_name
            ))
