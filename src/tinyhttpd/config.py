"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the Tiny web server.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── tinyhttpd 8000 --root ./www                                │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── TINY_ROOT=./www tinyhttpd 8000                             │
    │                                                                      │
    │   3. Default values (in this dataclass)                             │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
EXPLICIT LIMITS
=============================================================================

Nothing is read into an unbounded buffer. The two limits are named fields:

    max_line_size   Longest request line / header line accepted (bytes)
    max_file_size   Largest static file that will be buffered in memory

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional


LOG_FORMATS = ("text", "json")


@dataclass
class ServerConfig:
    """
    Configuration for the Tiny web server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, buffer_size, timeout

    REQUEST LIMITS
    - max_line_size, max_file_size

    CONTENT LAYOUT
    - root, default_document, cgi_marker, cgi_timeout, confine_to_root

    LOGGING
    - log_level, log_format

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "0.0.0.0"
    """
    The IP address to bind to. Every interface by default.
    """

    port: int = 8080
    """The port number to listen on."""

    backlog: int = 128
    """Maximum number of queued connections waiting for accept()."""

    buffer_size: int = 8192
    """Size of each recv() call in bytes."""

    timeout: Optional[float] = None
    """
    Socket timeout in seconds for reading the request.
    None = block forever, which is what an HTTP/1.0 iterative server does.
    A stalled client stalls the whole server, so set this in production.
    """

    # ─────────────────────────────────────────────────────────────────────
    # REQUEST LIMITS
    # ─────────────────────────────────────────────────────────────────────

    max_line_size: int = 8192
    """Longest request line or header line accepted, in bytes."""

    max_file_size: int = 64 * 1024 * 1024  # 64 MB
    """Static files are read fully into memory; larger files are refused."""

    # ─────────────────────────────────────────────────────────────────────
    # CONTENT LAYOUT
    # ─────────────────────────────────────────────────────────────────────

    root: str = "."
    """
    Serving root. Every target is prefixed with this string verbatim,
    so "." + "/home.html" -> "./home.html".
    """

    default_document: str = "home.html"
    """Appended to targets ending in "/"."""

    cgi_marker: str = "cgi-bin"
    """Targets containing this string are executed instead of read."""

    cgi_timeout: Optional[float] = None
    """
    Seconds to wait for a CGI program before killing it.
    None = wait until it exits on its own.
    """

    confine_to_root: bool = True
    """
    Refuse (403) targets whose normalized path leaves the serving root.
    Set to False to serve exactly what "root + target" points at.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."""

    log_format: str = "text"
    """Access log format: 'text' or 'json'."""

    # ─────────────────────────────────────────────────────────────────────
    # SERVER IDENTITY
    # ─────────────────────────────────────────────────────────────────────

    server_name: str = "Tiny Web Server"
    """Value of the Server header and the error page signature."""

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        TINY_HOST         Server host (default: 0.0.0.0)
        TINY_PORT         Server port (default: 8080)
        TINY_ROOT         Serving root (default: .)
        TINY_TIMEOUT      Request read timeout in seconds (default: none)
        TINY_CGI_TIMEOUT  CGI program timeout in seconds (default: none)
        TINY_LOG_LEVEL    Logging level (default: INFO)
        TINY_LOG_FORMAT   Access log format, text or json (default: text)

        =====================================================================
        """
        timeout = os.getenv("TINY_TIMEOUT")
        cgi_timeout = os.getenv("TINY_CGI_TIMEOUT")
        return cls(
            host=os.getenv("TINY_HOST", "0.0.0.0"),
            port=int(os.getenv("TINY_PORT", "8080")),
            root=os.getenv("TINY_ROOT", "."),
            timeout=float(timeout) if timeout else None,
            cgi_timeout=float(cgi_timeout) if cgi_timeout else None,
            log_level=os.getenv("TINY_LOG_LEVEL", "INFO"),
            log_format=os.getenv("TINY_LOG_FORMAT", "text"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Called at server construction so bad settings fail at startup,
        not on the first request.
        """
        # Port 0 lets the OS pick a free port (used by the tests)
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.buffer_size < 1:
            raise ValueError("buffer_size must be >= 1")

        if self.max_line_size < 1:
            raise ValueError("max_line_size must be >= 1")

        if self.max_file_size < 0:
            raise ValueError("max_file_size must be >= 0")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.cgi_timeout is not None and self.cgi_timeout <= 0:
            raise ValueError("cgi_timeout must be > 0")

        if not self.cgi_marker:
            raise ValueError("cgi_marker must not be empty")

        if not self.default_document:
            raise ValueError("default_document must not be empty")

        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of {LOG_FORMATS}")
