"""The ``flexfetch`` command line.

``flexfetch get PATH`` runs one request through
:class:`~flexfetch.client.Downloader` and prints the payload; the
``cache`` and ``config`` groups inspect local state. :func:`main` is the
console-script entry point: library errors exit with the code carried by
:class:`~flexfetch.exceptions.FlexfetchError`, anything unexpected is
written to a crash log in the data directory.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from flexfetch import __version__
from flexfetch.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INVALID_USAGE, EXIT_NOT_FOUND

_EXIT_INTERRUPTED = 130

app = typer.Typer(
    name="flexfetch",
    help="Fetch JSON resources from a recipe server with caching and stale fallback.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"flexfetch {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True,
        help="Print the flexfetch version.",
    ),
    json_output: bool = typer.Option(False, "--json", help="Print payloads as indented JSON."),
    plain_output: bool = typer.Option(False, "--plain", help="Print payloads as key<TAB>value lines."),
    no_color: bool = typer.Option(False, "--no-color", help="Never use colour or styling."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Hide info and success notices."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show retry and cache activity."),
) -> None:
    """Install the output manager the sub-commands write through.

    ``--json`` and ``--plain`` win over ``output.format`` from the config
    file. The manager is installed before the file is read so a broken
    config is still reported with the requested colour settings.
    """
    from flexfetch.config import load_global_config
    from flexfetch.output import OutputFormat, OutputManager, set_output

    def install(fmt: OutputFormat) -> None:
        set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))

    if json_output:
        install(OutputFormat.JSON)
    elif plain_output:
        install(OutputFormat.PLAIN)
    else:
        install(OutputFormat.AUTO)
        configured = OutputFormat(load_global_config().output.format)
        if configured != OutputFormat.AUTO:
            install(configured)


def _parse_header_options(values: list[str]) -> dict[str, str]:
    """Turn repeated ``--header "Name: value"`` options into a dict.

    Raises:
        typer.BadParameter: If a value has no ``:`` or an empty name.
    """
    headers: dict[str, str] = {}
    for raw in values:
        name, sep, value = raw.partition(":")
        if not sep or not name.strip():
            raise typer.BadParameter(f"Expected 'Name: value', got {raw!r}", param_hint="--header")
        headers[name.strip()] = value.strip()
    return headers


@app.command("get")
def get_command(
    path: str = typer.Argument(help="Resource path, e.g. /aliases.json."),
    endpoint: Optional[str] = typer.Option(
        None, "--endpoint", "-e", help="Origin base URL (overrides FLEXFETCH_ENDPOINT)."
    ),
    project: Optional[str] = typer.Option(
        None, "--project", "-p", help="Project identity sent with the request."
    ),
    header: Optional[list[str]] = typer.Option(
        None, "--header", "-H", help="Extra request header 'Name: value' (repeatable)."
    ),
) -> None:
    """Fetch a resource and print its JSON payload.

    Fresh cached copies are revalidated with ``If-Modified-Since``; when the
    origin is unreachable a cached copy is served with a degraded notice.
    Exits with code 4 when the origin reports the resource does not exist.

    Example::

        flexfetch get /aliases.json
        flexfetch --json get versions.json --project 01HXYZ
    """
    from flexfetch.client import Failed, NotFound, create_downloader, format_api_response
    from flexfetch.config import resolve_config
    from flexfetch.output import error

    try:
        headers = _parse_header_options(header or [])
    except typer.BadParameter as exc:
        error(str(exc))
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    config = resolve_config(cli_endpoint=endpoint, cli_project=project)
    with create_downloader(config) as downloader:
        result = downloader.fetch(path, headers)

    if isinstance(result, NotFound):
        error(f"Not found: {result.url}")
        raise typer.Exit(code=EXIT_NOT_FOUND)
    if isinstance(result, Failed):
        error(str(result.error))
        raise typer.Exit(code=result.error.exit_code)

    format_api_response(result.response)


def register_commands() -> None:
    """Attach the ``cache`` and ``config`` groups once."""
    from flexfetch.commands.cache import cache_app
    from flexfetch.commands.config import config_app

    present = {group.name for group in app.registered_groups}
    for name, group, help_text in (
        ("cache", cache_app, "Inspect or clear the response cache."),
        ("config", config_app, "Show or change the configuration."),
    ):
        if name not in present:
            app.add_typer(group, name=name, help=help_text)


def _interrupted(signum: int, frame: Any) -> None:
    sys.stderr.write("\nCancelled.\n")
    sys.exit(_EXIT_INTERRUPTED)


def _setup_signal_handlers() -> None:
    signal.signal(signal.SIGINT, _interrupted)


def _write_crash_log(exc: Exception) -> str:
    """Save the active traceback under ``<data dir>/logs`` and return its path."""
    from flexfetch.config import get_data_dir

    log_dir = get_data_dir() / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / f"crash-{datetime.now():%Y%m%d-%H%M%S}.log"
    log_path.write_text(f"flexfetch {__version__}\n{traceback.format_exc()}", encoding="utf-8")
    return str(log_path)


def main() -> None:
    """Console-script entry point; always ends in ``SystemExit``."""
    _setup_signal_handlers()
    try:
        register_commands()
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(_EXIT_INTERRUPTED)
    except Exception as exc:
        from flexfetch.exceptions import FlexfetchError
        from flexfetch.output import error

        if isinstance(exc, FlexfetchError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
