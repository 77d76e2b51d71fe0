"""
=============================================================================
TINYHTTPD - An Iterative HTTP/1.0 Web Server
=============================================================================

Serves static files and runs CGI programs, one connection at a time.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        TINYHTTPD ARCHITECTURE                        │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   core/socket_server.py    accept() loop, one client at a time      │
    │   core/connection.py       line-buffered reads, sendall, close      │
    │            │                                                         │
    │            ▼                                                         │
    │   server.py                the transaction state machine            │
    │            │                                                         │
    │            ├── http/request.py     "GET /x HTTP/1.0" → Request      │
    │            ├── http/resolver.py    target → path + static/dynamic   │
    │            │                                                         │
    │            ├── handlers/static.py  file bytes + Content-length      │
    │            ├── handlers/cgi.py     fork/exec, stdout = socket       │
    │            └── handlers/errors.py  HTML error pages                 │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
QUICK START
=============================================================================

    # Serve the current directory on port 8000
    tinyhttpd 8000

    # Or from code
    from tinyhttpd import HTTPServer, ServerConfig

    server = HTTPServer(ServerConfig(port=8000, root="./www"))
    server.run()

    # Then:
    #   curl http://localhost:8000/                    → ./www/home.html
    #   curl "http://localhost:8000/cgi-bin/adder?1&2" → runs ./www/cgi-bin/adder

=============================================================================
"""

__version__ = "1.0.0"

from .server import HTTPServer
from .config import ServerConfig

__all__ = ["HTTPServer", "ServerConfig", "__version__"]
