"""Tests for the ``onionhttp`` command line."""

from __future__ import annotations

import json

import httpx
import pytest
from typer.testing import CliRunner

from onionhttp import __version__
from onionhttp.app import app
from onionhttp.client import Client

runner = CliRunner()


@pytest.fixture
def cli_network(monkeypatch, tmp_path, make_transport, server):
    """Route every client the CLI builds to the in-process echo server.

    Config files and ``ONIONHTTP_*`` variables from the developer's machine
    are hidden. Returns a setter that swaps the handler, for tests needing
    another status or a network failure.
    """
    state = {"handler": server}

    def _extend(config=None, **kwargs):
        return Client(config, transport=make_transport(state["handler"]), **kwargs)

    monkeypatch.setattr("onionhttp.client.extend", _extend)
    monkeypatch.setattr("onionhttp.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.chdir(tmp_path)
    for name in ("ONIONHTTP_PREFIX", "ONIONHTTP_TIMEOUT", "ONIONHTTP_VERIFY_SSL"):
        monkeypatch.delenv(name, raising=False)

    def _set(handler):
        state["handler"] = handler

    return _set


class TestRootOptions:
    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"onionhttp {__version__}" in result.output

    def test_no_args_shows_help(self) -> None:
        result = runner.invoke(app, [])
        assert "request" in result.output


class TestRequestCommand:
    def test_get_prints_json_body(self, cli_network, server) -> None:
        result = runner.invoke(
            app, ["--json", "request", "get", "https://api.example.com/echo", "-p", "page=2"]
        )
        assert result.exit_code == 0, result.output
        body = json.loads(result.output)
        assert body["method"] == "GET"
        assert body["query"] == {"page": "2"}
        assert server.calls == 1

    def test_post_with_headers_and_json_body(self, cli_network) -> None:
        result = runner.invoke(
            app,
            [
                "--json",
                "request",
                "POST",
                "/users",
                "--prefix",
                "https://api.example.com",
                "-H",
                "Authorization: Bearer xyz",
                "-d",
                '{"name": "ada"}',
            ],
        )
        assert result.exit_code == 0, result.output
        body = json.loads(result.output)
        assert body["url"] == "https://api.example.com/users"
        assert body["headers"]["authorization"] == "Bearer xyz"
        assert body["body"] == {"name": "ada"}

    def test_form_body(self, cli_network, server) -> None:
        result = runner.invoke(
            app, ["--json", "request", "POST", "https://api.example.com/f", "--form", "-d", '{"a": "1"}']
        )
        assert result.exit_code == 0, result.output
        assert server.requests[0].content == b"a=1"

    def test_include_prints_status_line(self, cli_network) -> None:
        result = runner.invoke(
            app, ["--no-color", "request", "GET", "https://api.example.com/echo", "-i"]
        )
        assert result.exit_code == 0, result.output
        assert "HTTP 200 OK" in result.output
        assert "content-type: application/json" in result.output

    def test_verbose_traces_both_chains(self, cli_network) -> None:
        result = runner.invoke(
            app, ["--no-color", "-v", "request", "GET", "https://api.example.com/echo"]
        )
        assert result.exit_code == 0, result.output
        assert "[debug] > GET https://api.example.com/echo" in result.output
        assert "[debug] < 200 OK" in result.output

    def test_output_file(self, cli_network, tmp_path) -> None:
        target = tmp_path / "out.json"
        result = runner.invoke(
            app, ["-o", str(target), "request", "GET", "https://api.example.com/echo"]
        )
        assert result.exit_code == 0, result.output
        assert json.loads(target.read_text(encoding="utf-8"))["method"] == "GET"


class TestExitCodes:
    def test_http_error(self, cli_network) -> None:
        cli_network(lambda request: httpx.Response(404, json={"detail": "nope"}))
        result = runner.invoke(
            app, ["--no-color", "request", "GET", "https://api.example.com/missing"]
        )
        assert result.exit_code == 5
        assert "Error: HTTP 404: Not Found" in result.output
        assert "nope" in result.output

    def test_connection_error(self, cli_network) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        cli_network(refuse)
        result = runner.invoke(
            app, ["--no-color", "request", "GET", "https://api.example.com/echo"]
        )
        assert result.exit_code == 6
        assert "connection refused" in result.output

    def test_bad_header(self, cli_network, server) -> None:
        result = runner.invoke(
            app, ["request", "GET", "https://api.example.com/echo", "-H", "no-colon"]
        )
        assert result.exit_code == 2
        assert server.calls == 0

    def test_bad_param(self, cli_network) -> None:
        result = runner.invoke(
            app, ["request", "GET", "https://api.example.com/echo", "-p", "novalue"]
        )
        assert result.exit_code == 2

    def test_invalid_env_config(self, cli_network, monkeypatch) -> None:
        monkeypatch.setenv("ONIONHTTP_TIMEOUT", "soon")
        result = runner.invoke(
            app, ["--no-color", "request", "GET", "https://api.example.com/echo"]
        )
        assert result.exit_code == 1
        assert "ONIONHTTP_TIMEOUT" in result.output
