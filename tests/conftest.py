"""
pytest configuration and fixtures.
"""

import socket
from pathlib import Path
from typing import Callable, Generator, Optional, Tuple
import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from tinyhttpd import HTTPServer, ServerConfig
from tinyhttpd.core import Connection


HOME_PAGE = (
    b"<html>\r\n"
    b"<head><title>test</title></head>\r\n"
    b"<body>\r\n"
    b"<img align=\"middle\" src=\"godzilla.gif\">\r\n"
    b"Dave O'Hallaron\r\n"
    b"</body>\r\n"
    b"</html>\r\n"
)

# Echoes QUERY_STRING back as a text/plain body
CGI_SCRIPT = """#!/bin/sh
printf 'Content-type: text/plain\\r\\n\\r\\nargs=%s' "$QUERY_STRING"
"""


@pytest.fixture
def www(tmp_path: Path) -> Path:
    """
    A serving root:

        www/home.html
        www/godzilla.gif
        www/cgi-bin/adder   (executable shell script)
    """
    root = tmp_path / "www"
    root.mkdir()
    (root / "home.html").write_bytes(HOME_PAGE)
    (root / "godzilla.gif").write_bytes(b"GIF89a" + bytes(range(32)))

    cgi_bin = root / "cgi-bin"
    cgi_bin.mkdir()
    script = cgi_bin / "adder"
    script.write_text(CGI_SCRIPT)
    script.chmod(0o755)
    return root


@pytest.fixture
def config(www: Path) -> ServerConfig:
    """Test server configuration serving the www fixture."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        root=str(www),
        log_level="WARNING",
    )


@pytest.fixture
def server(config: ServerConfig) -> HTTPServer:
    return HTTPServer(config)


@pytest.fixture
def socket_pair() -> Generator[Tuple[socket.socket, socket.socket], None, None]:
    """Connected (server side, client side) sockets."""
    server_side, client_side = socket.socketpair()
    yield server_side, client_side
    for sock in (server_side, client_side):
        try:
            sock.close()
        except OSError:
            pass


def read_all(sock: socket.socket) -> bytes:
    """Read until the peer closes."""
    chunks = []
    while True:
        chunk = sock.recv(65536)
        if not chunk:
            return b"".join(chunks)
        chunks.append(chunk)


@pytest.fixture
def transact(server: HTTPServer, socket_pair) -> Callable[..., bytes]:
    """
    Run one transaction over a socketpair and return the raw response.

    The request is written and the client half-closes first, so the
    server never waits for bytes that will not arrive. Pass `using=` to
    run it on a differently configured server.
    """
    def run(raw_request: bytes, using: Optional[HTTPServer] = None) -> bytes:
        server_side, client_side = socket_pair
        client_side.sendall(raw_request)
        client_side.shutdown(socket.SHUT_WR)

        conn = Connection(socket=server_side, address=("127.0.0.1", 40000))
        (using or server).handle_connection(conn)
        conn.close()

        return read_all(client_side)

    return run


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]
