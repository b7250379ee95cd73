"""CLI tests for the flexfetch Typer application.

Requests never leave the process: ``flexfetch.client.create_downloader``
is replaced with a factory whose transport wraps an
``httpx.MockTransport``, while config and cache live under an isolated
XDG tree.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Callable

import httpx
import pytest

from flexfetch import __version__
from flexfetch.app import app, main, register_commands
from flexfetch.client.downloader import create_downloader as real_create_downloader
from flexfetch.client.transport import HttpxTransport
from flexfetch.config import load_global_config, save_global_config
from flexfetch.models import GlobalConfig, OutputConfig


LAST_MODIFIED = "Tue, 01 Oct 2024 10:00:00 GMT"


@pytest.fixture(autouse=True)
def _commands(isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    register_commands()
    monkeypatch.setattr("flexfetch.client.downloader.time.sleep", lambda seconds: None)


@pytest.fixture
def serve(monkeypatch: pytest.MonkeyPatch) -> Callable:
    """Route downloader traffic through *handler* for the rest of the test."""

    def _install(handler: Callable[[httpx.Request], httpx.Response]) -> None:
        def factory(config, transport=None, cache=None):
            client = httpx.Client(transport=httpx.MockTransport(handler))
            return real_create_downloader(config, transport=HttpxTransport(client=client), cache=cache)

        monkeypatch.setattr("flexfetch.client.create_downloader", factory)

    return _install


def _aliases(request: httpx.Request) -> httpx.Response:
    return httpx.Response(
        200,
        json={"aliases": {"orm": "doctrine/orm"}},
        headers={"Last-Modified": LAST_MODIFIED},
    )


# ---------------------------------------------------------------------------
# Root options
# ---------------------------------------------------------------------------


class TestRoot:
    def test_version(self, cli_runner) -> None:
        result = cli_runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"flexfetch {__version__}" in result.output


# ---------------------------------------------------------------------------
# get
# ---------------------------------------------------------------------------


class TestGet:
    def test_prints_payload_as_json(self, cli_runner, serve) -> None:
        serve(_aliases)
        result = cli_runner.invoke(app, ["--json", "--no-color", "get", "/aliases.json"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == {"aliases": {"orm": "doctrine/orm"}}

    def test_sends_project_and_extra_headers(self, cli_runner, serve) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={})

        serve(handler)
        result = cli_runner.invoke(
            app,
            ["--no-color", "get", "versions.json", "--project", "01HPROJ", "-H", "X-Trace: abc"],
        )
        assert result.exit_code == 0, result.output
        (request,) = seen
        assert str(request.url) == "https://flex.symfony.com/versions.json"
        assert request.headers["project"] == "01HPROJ"
        assert request.headers["x-trace"] == "abc"
        assert len(request.headers["package-session"]) == 32

    def test_endpoint_option(self, cli_runner, serve) -> None:
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(200, json={})

        serve(handler)
        result = cli_runner.invoke(
            app, ["--no-color", "get", "aliases.json", "-e", "https://mirror.example/"]
        )
        assert result.exit_code == 0, result.output
        assert seen == ["https://mirror.example/aliases.json"]

    def test_not_found_exit_code(self, cli_runner, serve) -> None:
        serve(lambda request: httpx.Response(404))
        result = cli_runner.invoke(app, ["--no-color", "get", "missing.json"])
        assert result.exit_code == 4
        assert "Not found: https://flex.symfony.com/missing.json" in result.output

    def test_server_error_without_cache(self, cli_runner, serve) -> None:
        serve(lambda request: httpx.Response(503))
        result = cli_runner.invoke(app, ["--no-color", "get", "aliases.json"])
        assert result.exit_code == 5
        assert "Error:" in result.output

    def test_bad_header(self, cli_runner, serve) -> None:
        serve(_aliases)
        result = cli_runner.invoke(app, ["--no-color", "get", "aliases.json", "-H", "nocolon"])
        assert result.exit_code == 2
        assert "Expected 'Name: value'" in result.output

    def test_origin_notice_is_shown(self, cli_runner, serve) -> None:
        serve(lambda request: httpx.Response(200, json={"warning": "Endpoint is deprecated"}))
        result = cli_runner.invoke(app, ["--no-color", "--plain", "get", "aliases.json"])
        assert result.exit_code == 0, result.output
        assert "Warning: Warning from https://flex.symfony.com/aliases.json: Endpoint is deprecated" in result.output

    def test_stale_copy_served_when_origin_down(self, cli_runner, serve) -> None:
        serve(_aliases)
        first = cli_runner.invoke(app, ["--no-color", "get", "aliases.json"])
        assert first.exit_code == 0, first.output

        def down(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        serve(down)
        result = cli_runner.invoke(app, ["--no-color", "--plain", "get", "aliases.json"])
        assert result.exit_code == 0, result.output
        assert "Degraded:" in result.output
        assert "may be out of date" in result.output
        assert "doctrine/orm" in result.output


# ---------------------------------------------------------------------------
# cache / config groups
# ---------------------------------------------------------------------------


class TestCacheCommands:
    def test_stats_and_clear(self, cli_runner, serve) -> None:
        serve(_aliases)
        cli_runner.invoke(app, ["--no-color", "get", "aliases.json"])

        stats = cli_runner.invoke(app, ["--json", "--quiet", "--no-color", "cache", "stats"])
        assert stats.exit_code == 0, stats.output
        data = json.loads(stats.output)
        assert data["enabled"] is True
        assert data["size"] == 1
        assert data["directory"].endswith("https---flex.symfony.com")

        cleared = cli_runner.invoke(app, ["--no-color", "cache", "clear"])
        assert cleared.exit_code == 0, cleared.output
        assert "Removed 1 cached response(s) for https://flex.symfony.com" in cleared.output


class TestConfigCommands:
    def test_show(self, cli_runner, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FLEXFETCH_PROJECT", "01HPROJ")
        result = cli_runner.invoke(app, ["--json", "--quiet", "--no-color", "config", "show"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["endpoint"] == "https://flex.symfony.com"
        assert data["project_id"] == "01HPROJ"
        assert data["request"]["max_retries"] == 3

    @pytest.mark.parametrize(
        "key, value, expected",
        [
            ("request.max_retries", "5", 5),
            ("request.retry_delay", "0.5", 0.5),
            ("cache.enabled", "false", False),
            ("endpoint", "https://mirror.example/", "https://mirror.example"),
            ("output.format", "plain", "plain"),
        ],
    )
    def test_set_persists_typed_value(self, cli_runner, key: str, value: str, expected) -> None:
        result = cli_runner.invoke(app, ["--no-color", "config", "set", key, value])
        assert result.exit_code == 0, result.output
        assert f"Set {key} = {value}" in result.output

        section, _, field = key.rpartition(".")
        data = load_global_config().model_dump(mode="json")
        assert (data[section] if section else data)[field] == expected

    @pytest.mark.parametrize(
        "key, value",
        [
            ("request.max_retries", "0"),
            ("request.timeout", "soon"),
            ("output.format", "yaml"),
            ("request", "1"),
            ("request.nope", "1"),
            ("endpoint.scheme", "https"),
        ],
    )
    def test_set_rejects_bad_input(self, cli_runner, isolated_config: Path, key: str, value: str) -> None:
        result = cli_runner.invoke(app, ["--no-color", "config", "set", key, value])
        assert result.exit_code == 2
        assert "Error:" in result.output
        assert not (isolated_config / "config" / "flexfetch" / "config.json").exists()

    def test_configured_format_used_without_flags(self, cli_runner, serve) -> None:
        save_global_config(GlobalConfig(output=OutputConfig(format="json")))
        serve(_aliases)
        result = cli_runner.invoke(app, ["--no-color", "get", "aliases.json"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == {"aliases": {"orm": "doctrine/orm"}}

    def test_flag_beats_configured_format(self, cli_runner, serve) -> None:
        save_global_config(GlobalConfig(output=OutputConfig(format="json")))
        serve(_aliases)
        result = cli_runner.invoke(app, ["--no-color", "--plain", "get", "aliases.json"])
        assert result.exit_code == 0, result.output
        assert result.output.strip() == 'aliases\t{"orm": "doctrine/orm"}'


# ---------------------------------------------------------------------------
# main() entry point
# ---------------------------------------------------------------------------


class TestMain:
    @pytest.fixture(autouse=True)
    def _no_signals(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("flexfetch.app._setup_signal_handlers", lambda: None)

    def test_flexfetch_error_maps_to_exit_code(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch, capfd
    ) -> None:
        config_file = isolated_config / "config" / "flexfetch" / "config.json"
        config_file.parent.mkdir(parents=True, exist_ok=True)
        config_file.write_text("{broken", encoding="utf-8")
        monkeypatch.setattr(sys, "argv", ["flexfetch", "--no-color", "config", "show"])

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 1
        assert "Invalid global config" in capfd.readouterr().err

    def test_unexpected_error_writes_crash_log(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch, capfd
    ) -> None:
        def explode(config, transport=None, cache=None):
            raise RuntimeError("boom")

        monkeypatch.setattr("flexfetch.client.create_downloader", explode)
        monkeypatch.setattr(sys, "argv", ["flexfetch", "--no-color", "get", "aliases.json"])

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 1
        assert "Unexpected error. Debug log:" in capfd.readouterr().err
        logs = list((isolated_config / "data" / "flexfetch" / "logs").glob("crash-*.log"))
        assert len(logs) == 1
        assert "RuntimeError: boom" in logs[0].read_text()
