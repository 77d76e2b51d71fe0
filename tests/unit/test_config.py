"""
Unit tests for server configuration and the command line.
"""

import pytest

from tinyhttpd import __version__
from tinyhttpd.config import ServerConfig
from tinyhttpd.__main__ import build_parser, config_from_args


class TestServerConfig:
    """Tests for ServerConfig."""

    def test_defaults(self):
        config = ServerConfig()

        assert config.host == "0.0.0.0"
        assert config.root == "."
        assert config.default_document == "home.html"
        assert config.cgi_marker == "cgi-bin"
        assert config.server_name == "Tiny Web Server"
        assert config.confine_to_root is True
        assert config.timeout is None
        config.validate()

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("TINY_HOST", "127.0.0.1")
        monkeypatch.setenv("TINY_PORT", "9000")
        monkeypatch.setenv("TINY_ROOT", "/srv/www")
        monkeypatch.setenv("TINY_TIMEOUT", "2.5")
        monkeypatch.setenv("TINY_CGI_TIMEOUT", "10")
        monkeypatch.setenv("TINY_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("TINY_LOG_FORMAT", "json")

        config = ServerConfig.from_env()

        assert config.host == "127.0.0.1"
        assert config.port == 9000
        assert config.root == "/srv/www"
        assert config.timeout == 2.5
        assert config.cgi_timeout == 10.0
        assert config.log_level == "DEBUG"
        assert config.log_format == "json"

    def test_from_env_empty(self, monkeypatch):
        for name in ("TINY_HOST", "TINY_PORT", "TINY_ROOT", "TINY_TIMEOUT",
                     "TINY_CGI_TIMEOUT", "TINY_LOG_LEVEL", "TINY_LOG_FORMAT"):
            monkeypatch.delenv(name, raising=False)

        assert ServerConfig.from_env() == ServerConfig()

    @pytest.mark.parametrize("overrides", [
        {"port": -1},
        {"port": 65536},
        {"buffer_size": 0},
        {"max_line_size": 0},
        {"max_file_size": -1},
        {"timeout": 0},
        {"cgi_timeout": -5},
        {"cgi_marker": ""},
        {"default_document": ""},
        {"log_format": "xml"},
    ])
    def test_validate_rejects(self, overrides):
        with pytest.raises(ValueError):
            ServerConfig(**overrides).validate()

    def test_port_zero_allowed(self):
        ServerConfig(port=0).validate()


class TestCommandLine:
    """Tests for argument parsing in __main__."""

    def test_port_required(self):
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args([])
        assert exc_info.value.code != 0

    def test_port_must_be_integer(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["http"])

    def test_port_only(self, monkeypatch):
        monkeypatch.delenv("TINY_ROOT", raising=False)
        config = config_from_args(build_parser().parse_args(["8000"]))

        assert config.port == 8000
        assert config.root == "."

    def test_flags_override_environment(self, monkeypatch):
        monkeypatch.setenv("TINY_ROOT", "/from/env")
        monkeypatch.setenv("TINY_LOG_FORMAT", "text")

        args = build_parser().parse_args([
            "8000", "--root", "./www", "--host", "127.0.0.1",
            "--log-level", "DEBUG", "--log-format", "json",
        ])
        config = config_from_args(args)

        assert config.root == "./www"
        assert config.host == "127.0.0.1"
        assert config.log_level == "DEBUG"
        assert config.log_format == "json"

    def test_environment_used_without_flag(self, monkeypatch):
        monkeypatch.setenv("TINY_ROOT", "/from/env")
        config = config_from_args(build_parser().parse_args(["8000"]))

        assert config.root == "/from/env"

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args(["--version"])

        assert exc_info.value.code == 0
        assert __version__ in capsys.readouterr().out
