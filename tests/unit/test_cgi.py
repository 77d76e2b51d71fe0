"""
Unit tests for the CGI handler.
"""

import os
import socket

import pytest

from tinyhttpd.core import Connection, ConnectionState
from tinyhttpd.handlers.cgi import CGIHandler, CGIError, ProcessRunner


class FakeRunner(ProcessRunner):
    """Records what would have been executed."""

    def __init__(self, returncode: int = 0):
        super().__init__()
        self.returncode = returncode
        self.calls = []

    def run(self, path, env, stdout):
        self.calls.append((path, env, stdout))
        return self.returncode


def read_available(sock: socket.socket) -> bytes:
    sock.settimeout(1.0)
    return sock.recv(65536)


class TestBuildEnviron:
    """Tests for CGIHandler.build_environ()."""

    def test_sets_query_string(self):
        env = CGIHandler().build_environ("15&20")
        assert env["QUERY_STRING"] == "15&20"

    def test_inherits_server_environment(self, monkeypatch):
        monkeypatch.setenv("TINY_TEST_MARKER", "yes")
        env = CGIHandler().build_environ("")

        assert env["TINY_TEST_MARKER"] == "yes"

    def test_does_not_touch_os_environ(self, monkeypatch):
        monkeypatch.delenv("QUERY_STRING", raising=False)

        CGIHandler().build_environ("a=1")

        assert "QUERY_STRING" not in os.environ

    def test_invocations_are_isolated(self):
        handler = CGIHandler()
        first = handler.build_environ("a")
        second = handler.build_environ("b")

        assert first["QUERY_STRING"] == "a"
        assert second["QUERY_STRING"] == "b"

    def test_custom_variable_name(self):
        env = CGIHandler(query_var="TINY_ARGS").build_environ("x")
        assert env["TINY_ARGS"] == "x"


class TestInvoke:
    """Tests for CGIHandler.invoke() with a recording runner."""

    def test_prefix_then_run(self, socket_pair):
        server_side, client_side = socket_pair
        conn = Connection(socket=server_side, address=("127.0.0.1", 1))
        runner = FakeRunner()

        returncode = CGIHandler(runner=runner).invoke(conn, "./cgi-bin/adder", "15&20")

        assert returncode == 0
        assert read_available(client_side) == (
            b"HTTP/1.0 200 OK\r\nServer: Tiny Web Server\r\n"
        )

        path, env, stdout = runner.calls[0]
        assert path == "./cgi-bin/adder"
        assert env["QUERY_STRING"] == "15&20"
        assert stdout == server_side.fileno()
        assert conn.state is ConnectionState.HANDED_OFF

    def test_nonzero_exit_is_returned(self, socket_pair):
        server_side, _ = socket_pair
        conn = Connection(socket=server_side, address=("127.0.0.1", 1))

        returncode = CGIHandler(runner=FakeRunner(returncode=3)).invoke(conn, "./x", "")

        assert returncode == 3

    def test_client_gone_runs_nothing(self, socket_pair):
        server_side, client_side = socket_pair
        client_side.close()
        conn = Connection(socket=server_side, address=("127.0.0.1", 1))
        runner = FakeRunner()

        # Writing after SHUT_WR fails with EPIPE
        server_side.shutdown(socket.SHUT_WR)
        returncode = CGIHandler(runner=runner).invoke(conn, "./x", "")

        assert returncode is None
        assert runner.calls == []


class TestProcessRunner:
    """Tests that execute real programs."""

    def test_runs_script_onto_socket(self, www, socket_pair):
        server_side, client_side = socket_pair
        conn = Connection(socket=server_side, address=("127.0.0.1", 1))

        handler = CGIHandler()
        returncode = handler.invoke(conn, str(www / "cgi-bin" / "adder"), "15&20")
        server_side.shutdown(socket.SHUT_WR)

        chunks = []
        client_side.settimeout(5.0)
        while True:
            chunk = client_side.recv(65536)
            if not chunk:
                break
            chunks.append(chunk)

        assert returncode == 0
        assert b"".join(chunks) == (
            b"HTTP/1.0 200 OK\r\n"
            b"Server: Tiny Web Server\r\n"
            b"Content-type: text/plain\r\n"
            b"\r\n"
            b"args=15&20"
        )

    def test_spawn_failure(self, tmp_path, socket_pair):
        server_side, _ = socket_pair

        with pytest.raises(CGIError) as exc_info:
            ProcessRunner().run(str(tmp_path / "missing"), {}, stdout=server_side.fileno())

        assert exc_info.value.path == str(tmp_path / "missing")

    def test_exit_status(self, tmp_path, socket_pair):
        server_side, _ = socket_pair
        script = tmp_path / "fail"
        script.write_text("#!/bin/sh\nexit 7\n")
        script.chmod(0o755)

        returncode = ProcessRunner().run(str(script), {}, stdout=server_side.fileno())

        assert returncode == 7

    def test_timeout_kills_child(self, tmp_path, socket_pair):
        server_side, _ = socket_pair
        script = tmp_path / "slow"
        script.write_text("#!/bin/sh\nexec sleep 30\n")
        script.chmod(0o755)

        returncode = ProcessRunner(timeout=0.2).run(
            str(script), {"PATH": os.environ.get("PATH", "/bin:/usr/bin")},
            stdout=server_side.fileno(),
        )

        assert returncode != 0
