"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps one accepted client socket for the lifetime of one transaction.

=============================================================================
TCP IS A BYTE STREAM, NOT A LINE PROTOCOL!
=============================================================================

HTTP/1.0 requests are line oriented, but recv() knows nothing about lines:

    Client sends:
        GET / HTTP/1.0\r\n
        Host: localhost\r\n
        \r\n

    Server might receive:
        First recv():  "GET / HT"             (incomplete!)
        Second recv(): "TP/1.0\r\nHost: lo"   (rest + start of header)
        Third recv():  "calhost\r\n\r\n"      (rest)

read_line() buffers received bytes and hands out exactly one line per
call, keeping whatever follows for the next call.

=============================================================================
CONNECTION STATE MACHINE
=============================================================================

    NEW ──────► READING ──────► WRITING ────────────────┐
     │             │               │                     │
     │             │               ▼                     │
     │             │          HANDED_OFF                 │
     │             │      (a CGI child owns stdout)      │
     │             ▼               │                     ▼
     └──────────► CLOSING ◄────────┴─────────────────────┘
                    │
                    ▼
                  CLOSED

There is no KEEP_ALIVE state: HTTP/1.0 closes after every response.

=============================================================================
"""

import socket
import time
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional
import uuid


logger = logging.getLogger(__name__)

# close() reads and discards what the client still sends, within these bounds
DRAIN_TIMEOUT = 0.5         # Seconds to wait for each recv()
DRAIN_DEADLINE = 2.0        # Seconds for the whole drain
DRAIN_LIMIT = 64 * 1024     # Bytes


class LineTooLongError(ValueError):
    """A request or header line exceeded the configured limit."""


class ConnectionState(Enum):
    """Connection lifecycle states, used for logging and safe close()."""
    NEW = "new"                # Just accepted, nothing read yet
    READING = "reading"        # Reading the request line or headers
    WRITING = "writing"        # Sending response bytes
    HANDED_OFF = "handed_off"  # Socket fd given to a CGI program as stdout
    CLOSING = "closing"        # Shutdown sequence in progress
    CLOSED = "closed"          # Socket released


@dataclass
class Connection:
    """
    One client connection.

    Attributes:
        socket: The client socket.
        address: Client's (host, port) tuple.
        id: Short identifier for log lines.
        state: Current connection state.
        created_at: When the connection was accepted.
        bytes_sent: Bytes written by the server itself (not by CGI children).
    """

    # Required parameters
    socket: socket.socket
    address: tuple[str, int]

    # Generated/default parameters
    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)
    bytes_sent: int = 0

    # Configuration (passed from ServerConfig)
    buffer_size: int = 8192
    timeout: Optional[float] = None

    # Bytes received but not yet returned by read_line()
    _buffer: bytes = field(default=b"", repr=False)

    def __post_init__(self):
        # Blocking mode; a CGI child inherits this fd and expects blocking writes
        self.socket.setblocking(True)
        if self.timeout:
            self.socket.settimeout(self.timeout)

    @property
    def client_host(self) -> str:
        return self.address[0] if self.address else "-"

    @property
    def age(self) -> float:
        """Connection age in seconds."""
        return time.time() - self.created_at

    # =========================================================================
    # READING
    # =========================================================================

    def read_line(self, max_size: int = 8192) -> bytes:
        """
        Read one line, including its terminating "\\n".

        ┌─────────────────────────────────────────────────────────────────┐
        │   while no "\\n" in buffer:                                      │
        │       buffer too big?  ──► LineTooLongError                     │
        │       recv() → buffer                                           │
        │       EOF?             ──► return what is left (maybe b"")      │
        │   split off the first line, keep the rest buffered              │
        └─────────────────────────────────────────────────────────────────┘

        Args:
            max_size: Longest acceptable line in bytes, terminator included.

        Returns:
            The line, a final unterminated fragment at EOF, or b"" if the
            client closed without sending anything more.

        Raises:
            LineTooLongError: If the line exceeds max_size.
            TimeoutError: If the socket timeout expires.
        """
        self.state = ConnectionState.READING

        try:
            while b"\n" not in self._buffer:
                if len(self._buffer) > max_size:
                    raise LineTooLongError(f"Line exceeds {max_size} bytes")

                chunk = self._recv()
                if not chunk:
                    line, self._buffer = self._buffer, b""
                    return line

                self._buffer += chunk
        except socket.timeout:
            raise TimeoutError("Request read timeout")

        end = self._buffer.index(b"\n") + 1
        line, self._buffer = self._buffer[:end], self._buffer[end:]

        if len(line) > max_size:
            raise LineTooLongError(f"Line exceeds {max_size} bytes")
        return line

    def _recv(self) -> bytes:
        """socket.recv() that treats a reset as end of stream."""
        try:
            return self.socket.recv(self.buffer_size)
        except (ConnectionResetError, BrokenPipeError):
            return b""

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_response(self, data: bytes) -> bool:
        """
        Send bytes to the client with sendall().

        Returns:
            True if everything was sent, False if the client is gone.
        """
        self.state = ConnectionState.WRITING

        try:
            self.socket.sendall(data)
            self.bytes_sent += len(data)
            return True
        except (ConnectionResetError, BrokenPipeError, OSError) as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    def handoff_fileno(self) -> int:
        """
        File descriptor to give a child process as its stdout.

        The socket is switched back to plain blocking mode first: a Python
        socket timeout makes the underlying fd non-blocking, and a CGI
        program writing to it would then fail with EAGAIN.
        """
        self.socket.settimeout(None)
        self.state = ConnectionState.HANDED_OFF
        return self.socket.fileno()

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection gracefully.

        1. shutdown(SHUT_WR): send FIN, the client sees end of response
        2. Drain whatever the client still sends, bounded by DRAIN_LIMIT
           bytes and DRAIN_DEADLINE seconds
        3. close(): release the file descriptor
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Already disconnected

        self._drain()

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    def _drain(self):
        deadline = time.monotonic() + DRAIN_DEADLINE
        drained = 0

        try:
            self.socket.settimeout(DRAIN_TIMEOUT)
            while drained < DRAIN_LIMIT and time.monotonic() < deadline:
                chunk = self.socket.recv(self.buffer_size)
                if not chunk:
                    return
                drained += len(chunk)
        except (socket.timeout, OSError):
            return

        logger.debug(f"[{self.id}] Stopped draining after {drained} bytes")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
