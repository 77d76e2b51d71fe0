"""
=============================================================================
ITERATIVE TCP SOCKET SERVER
=============================================================================

Listens on a port and hands each accepted connection to a callback, one
at a time.

=============================================================================
ITERATIVE, ON PURPOSE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         Accept Loop                                  │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   while running:                                                     │
    │       accept()                  ← wait for the next client          │
    │       handler(conn)             ← whole transaction, incl. CGI wait │
    │       conn.close()              ← always, even if handler raised    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The next client is not accepted until the current transaction has
finished, and that includes waiting for a CGI program to exit. A slow
client or a hanging program stalls the whole server while the kernel
backlog queues everyone else.

Because nothing is shared between transactions, wrapping handler(conn) in
a thread per connection would be safe. It is simply not done here.

=============================================================================
"""

import socket
import signal
import threading
import logging
from typing import Callable, Optional, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


class SocketServer:
    """
    TCP accept loop with graceful shutdown.

    Usage:
        def handle(conn: Connection):
            ...

        server = SocketServer(config)
        server.start(handle)  # Blocks until shutdown()
    """

    def __init__(self, config: ServerConfig):
        self.config = config
        self._socket: Optional[socket.socket] = None
        self._running = False
        self._ready_event = threading.Event()
        self._original_handlers: dict = {}

    @property
    def address(self) -> Tuple[str, int]:
        """
        The bound (host, port).

        After start() this is the real port, even when the config asked
        for port 0 and the OS picked one.
        """
        if self._socket is not None:
            return self._socket.getsockname()[:2]
        return (self.config.host, self.config.port)

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        # Avoid "Address already in use" while the old socket sits in TIME_WAIT
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        # Wake up once a second so shutdown() is noticed
        sock.settimeout(1.0)
        return sock

    def _setup_signals(self):
        """
        Turn SIGTERM and SIGINT into a graceful shutdown.

        signal.signal() only works in the main thread, so when the server
        runs in a background thread (tests) the handlers are skipped.
        """
        if threading.current_thread() is not threading.main_thread():
            return

        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name}, initiating shutdown...")
            self.shutdown()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self):
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def start(self, connection_handler: Callable[[Connection], None]):
        """
        Bind, listen and run the accept loop.

        This method BLOCKS until shutdown() is called.

        Args:
            connection_handler: Runs one full transaction on a connection.
                                The connection is closed afterwards by this
                                server, whatever the handler did.
        """
        self._socket = self._create_socket()

        try:
            self._socket.bind((self.config.host, self.config.port))
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            self._socket.close()
            self._socket = None
            raise

        self._socket.listen(self.config.backlog)

        self._running = True
        self._setup_signals()

        host, port = self.address
        logger.info(f"Server listening on {host}:{port}")
        self._ready_event.set()

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if self._running:
                    logger.error(f"Accept error: {e}")
                break

            logger.info(f"Accepted connection from {client_address[:2]}")

            conn = Connection(
                socket=client_socket,
                address=client_address[:2],
                buffer_size=self.config.buffer_size,
                timeout=self.config.timeout,
            )

            # One transaction, start to finish, before the next accept()
            with conn:
                try:
                    connection_handler(conn)
                except Exception:
                    logger.exception(f"[{conn.id}] Unhandled error in transaction")

    def shutdown(self):
        """
        Stop accepting connections.

        Safe to call from a signal handler or another thread, and more
        than once. A transaction in progress is allowed to finish.
        """
        logger.info("Shutting down socket server...")
        self._running = False

    def _cleanup(self):
        self._restore_signals()

        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

        self._running = False
        self._ready_event.clear()
        logger.info("Socket server stopped")

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the socket is listening. Returns False on timeout."""
        return self._ready_event.wait(timeout)
