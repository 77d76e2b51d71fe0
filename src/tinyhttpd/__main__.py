"""
=============================================================================
TINYHTTPD CLI ENTRY POINT
=============================================================================

    # Serve the current directory on port 8000
    tinyhttpd 8000
    python -m tinyhttpd 8000

    # Serve another directory, verbose logging
    tinyhttpd 8000 --root ./www --log-level DEBUG

    # JSON access log
    tinyhttpd 8000 --log-format json

The port is the only required argument. Every other setting starts from
the TINY_* environment variables (see ServerConfig.from_env) and is then
overridden by any flag given on the command line.

The server runs until it receives SIGINT (Ctrl+C) or SIGTERM.

=============================================================================
"""

import argparse
import sys

from . import __version__
from .config import ServerConfig, LOG_FORMATS
from .server import HTTPServer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tinyhttpd",
        description="Iterative HTTP/1.0 server for static files and CGI programs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  tinyhttpd 8000                        # Serve . on port 8000
  tinyhttpd 8000 --root ./www           # Serve ./www
  tinyhttpd 8000 --log-level DEBUG      # Log request and response headers
        """
    )

    parser.add_argument(
        "port",
        type=int,
        help="Port to listen on",
    )

    parser.add_argument(
        "--host", "-H",
        default=None,
        help="Host to bind to (default: 0.0.0.0)",
    )

    parser.add_argument(
        "--root", "-r",
        default=None,
        help="Directory to serve (default: current directory)",
    )

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: INFO)",
    )

    parser.add_argument(
        "--log-format",
        choices=LOG_FORMATS,
        default=None,
        help="Access log format (default: text)",
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"tinyhttpd {__version__}",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    """Environment first, then command-line flags on top."""
    config = ServerConfig.from_env()
    config.port = args.port

    if args.host is not None:
        config.host = args.host
    if args.root is not None:
        config.root = args.root
    if args.log_level is not None:
        config.log_level = args.log_level
    if args.log_format is not None:
        config.log_format = args.log_format
    return config


def main(argv=None):
    args = build_parser().parse_args(argv)

    try:
        server = HTTPServer(config_from_args(args))
        server.run()
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
