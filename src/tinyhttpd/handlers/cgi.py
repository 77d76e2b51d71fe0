"""
=============================================================================
DYNAMIC CONTENT INVOKER (CGI)
=============================================================================

Runs a program from the cgi-bin directory and lets it write the response.

=============================================================================
THE CGI CONTRACT
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     GET /cgi-bin/adder?15&20                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Server                                Child process                │
    │   ──────                                ─────────────                │
    │   send "HTTP/1.0 200 OK"                                             │
    │   send "Server: Tiny Web Server"                                     │
    │       │                                                              │
    │       ├──► spawn ./cgi-bin/adder ──────► env QUERY_STRING=15&20     │
    │       │                                  stdout = client socket     │
    │       │                                       │                      │
    │       │                                  print headers               │
    │       │                                  print blank line            │
    │       │                                  print body                  │
    │       │                                       │                      │
    │   wait() ◄────────────────────────────── exit                       │
    │   (transaction done)                                                 │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The server never sees the program's output: the child's stdout IS the
client socket. That is why the server cannot send a Content-length and why
a crashing program simply leaves a short response behind.

=============================================================================
ENVIRONMENT ISOLATION
=============================================================================

The parent builds a fresh dict per request and hands it to Popen(env=...),
so os.environ is never touched and two invocations can never see each
other's QUERY_STRING.

=============================================================================
"""

import logging
import os
import subprocess
from typing import Dict, Optional

from ..core.connection import Connection
from ..http.response import status_prefix


logger = logging.getLogger(__name__)


class CGIError(Exception):
    """The CGI program could not be started."""

    def __init__(self, path: str, message: str):
        super().__init__(f"{path}: {message}")
        self.path = path


class ProcessRunner:
    """
    Spawns a program with its stdout bound to a file descriptor and waits.

    Kept separate from CGIHandler so tests can substitute a runner that
    records calls instead of executing anything.

    Args:
        timeout: Seconds to wait before killing the child.
                 None = wait until it exits.
    """

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout

    def spawn(self, path: str, env: Dict[str, str], stdout: int) -> subprocess.Popen:
        """
        Start the program with no arguments.

        stdin is /dev/null: Tiny never reads a request body, so nothing
        would arrive there anyway.

        Raises:
            CGIError: If the program cannot be executed.
        """
        try:
            return subprocess.Popen(
                [path],
                env=env,
                stdin=subprocess.DEVNULL,
                stdout=stdout,
                close_fds=True,
            )
        except OSError as e:
            raise CGIError(path, f"spawn failed: {e}") from e

    def wait(self, process: subprocess.Popen) -> int:
        """Block until the child exits and return its exit status."""
        try:
            return process.wait(timeout=self.timeout)
        except subprocess.TimeoutExpired:
            logger.warning(
                f"CGI program {process.args[0]} exceeded {self.timeout}s, killing it"
            )
            process.kill()
            return process.wait()

    def run(self, path: str, env: Dict[str, str], stdout: int) -> int:
        return self.wait(self.spawn(path, env, stdout))


class CGIHandler:
    """
    Serves dynamic content by executing CGI programs.

    Usage:
        cgi = CGIHandler(server_name="Tiny Web Server")
        cgi.invoke(conn, "./cgi-bin/adder", "15&20")
    """

    def __init__(
        self,
        server_name: str = "Tiny Web Server",
        query_var: str = "QUERY_STRING",
        runner: Optional[ProcessRunner] = None,
    ):
        self.server_name = server_name
        self.query_var = query_var
        self.runner = runner or ProcessRunner()

    def build_environ(self, cgi_args: str) -> Dict[str, str]:
        """A private copy of the server environment plus the query variable."""
        env = dict(os.environ)
        env[self.query_var] = cgi_args
        return env

    def invoke(self, conn: Connection, path: str, cgi_args: str) -> Optional[int]:
        """
        Send the response prefix, run the program, wait for it.

        Args:
            conn: Client connection; the child writes straight onto it.
            path: Resolved path, already checked to be an executable file.
            cgi_args: Text after "?" in the target, passed in QUERY_STRING.

        Returns:
            The program's exit status, or None if the client was already
            gone and nothing was run.

        Raises:
            CGIError: If the program cannot be started. The 200 status
                      line has been sent at that point.
        """
        if not conn.send_response(status_prefix(self.server_name)):
            return None

        env = self.build_environ(cgi_args)
        returncode = self.runner.run(path, env, stdout=conn.handoff_fileno())

        if returncode != 0:
            # The partial response stays as it is; there is nothing to fix
            logger.warning(f"[{conn.id}] CGI program {path} exited with status {returncode}")
        else:
            logger.debug(f"[{conn.id}] CGI program {path} finished")
        return returncode
