"""
Networking core: the accept loop and the per-connection socket wrapper.
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState, LineTooLongError

__all__ = ["SocketServer", "Connection", "ConnectionState", "LineTooLongError"]
