"""Terminal output for flexfetch.

Fetched payloads are the only thing written to **stdout**, so ``flexfetch
get`` can be piped straight into ``jq``. Everything else goes to
**stderr** as a notice:

========== ============== ==========================================
kind       prefix         hidden by ``--quiet``
========== ============== ==========================================
info       (none)         yes
success    (none)         yes
warning    ``Warning:``   no
degraded   ``Degraded:``  no
error      ``Error:``     no
debug      ``[debug]``    shown only with ``--verbose``
========== ============== ==========================================

Payloads are rendered as indented JSON (``--json``), tab-separated
key/value lines (``--plain``, and the default when stdout is not a
terminal), or highlighted JSON through Rich. ``NO_COLOR`` and
``TERM=dumb`` switch colour off just like ``--no-color``.

:func:`~flexfetch.app.main_callback` installs one :class:`OutputManager`
with :func:`set_output`; library code reaches it through
:func:`get_output` or the module-level shortcuts.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import Any, Optional

from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax


class OutputFormat(str, Enum):
    """How payloads are rendered on stdout. ``AUTO`` picks ``RICH`` or ``PLAIN``."""

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class OutputManager:
    """Render payloads to stdout and notices to stderr.

    Args:
        format: Payload format. ``AUTO`` becomes ``RICH`` on a colour
            terminal and ``PLAIN`` otherwise.
        no_color: Print notices and payloads without any styling.
        quiet: Drop info and success notices.
        verbose: Show debug notices.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose
        self._format = _resolve_format(format, self._no_color)

        rich_payloads = self._format == OutputFormat.RICH
        self._stdout = Console(file=sys.stdout, no_color=self._no_color, force_terminal=rich_payloads)
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    @property
    def is_quiet(self) -> bool:
        return self._quiet

    @property
    def is_verbose(self) -> bool:
        return self._verbose

    # ------------------------------------------------------------------ #
    # stdout
    # ------------------------------------------------------------------ #

    def format_response(self, data: Any) -> None:
        """Render a payload (mapping, list, or string) in the active format."""
        if self._format == OutputFormat.JSON:
            self._render_json(data)
        elif self._format == OutputFormat.PLAIN:
            self._render_plain(data)
        else:
            self._render_rich(data)

    def print_data(self, text: str) -> None:
        print(text, file=sys.stdout, flush=True)

    # ------------------------------------------------------------------ #
    # stderr
    # ------------------------------------------------------------------ #

    def info(self, message: str) -> None:
        if not self._quiet:
            self._notice(message)

    def success(self, message: str) -> None:
        if not self._quiet:
            self._notice(message, style="green")

    def warning(self, message: str) -> None:
        self._notice(message, label="Warning:", style="yellow")

    def degraded(self, message: str) -> None:
        """Report that data came from the local cache instead of the origin."""
        self._notice(message, label="Degraded:", style="bold yellow")

    def error(self, message: str) -> None:
        self._notice(message, label="Error:", style="bold red")

    def debug(self, message: str) -> None:
        if not self._verbose:
            return
        if self._no_color:
            self._plain_notice(f"[debug] {message}")
        else:
            self._stderr.print(f"[dim]\\[debug] {escape(message)}[/dim]")

    def _notice(self, message: str, label: Optional[str] = None, style: Optional[str] = None) -> None:
        """Write one notice line, styling only the label when there is one."""
        if self._no_color:
            self._plain_notice(f"{label} {message}" if label else message)
            return
        text = escape(message)
        if label and style:
            text = f"[{style}]{label}[/{style}] {text}"
        elif style:
            text = f"[{style}]{text}[/{style}]"
        self._stderr.print(text)

    @staticmethod
    def _plain_notice(line: str) -> None:
        print(line, file=sys.stderr, flush=True)

    # ------------------------------------------------------------------ #
    # Payload renderers
    # ------------------------------------------------------------------ #

    def _render_json(self, data: Any) -> None:
        # Strings holding JSON are re-indented; anything else is echoed.
        if isinstance(data, str):
            try:
                data = json.loads(data)
            except json.JSONDecodeError:
                self.print_data(data)
                return
        self.print_data(_dump(data, indent=2))

    def _render_plain(self, data: Any) -> None:
        if isinstance(data, dict):
            lines = [f"{key}\t{_plain_value(value)}" for key, value in data.items()]
        elif isinstance(data, list):
            lines = [str(item) for item in data]
        else:
            lines = [str(data)]
        for line in lines:
            self.print_data(line)

    def _render_rich(self, data: Any) -> None:
        if not isinstance(data, (dict, list)):
            self._stdout.print(str(data))
            return
        highlighted = Syntax(_dump(data, indent=2), "json", theme="monokai", word_wrap=True)
        self._stdout.print(highlighted)


def _dump(data: Any, indent: Optional[int] = None) -> str:
    return json.dumps(data, indent=indent, ensure_ascii=False, default=str)


def _plain_value(value: Any) -> str:
    if isinstance(value, (dict, list)):
        return _dump(value)
    return str(value)


def _resolve_format(requested: OutputFormat, no_color: bool) -> OutputFormat:
    if requested != OutputFormat.AUTO:
        return requested
    if _is_tty() and not no_color:
        return OutputFormat.RICH
    return OutputFormat.PLAIN


def _is_tty() -> bool:
    isatty = getattr(sys.stdout, "isatty", None)
    return bool(isatty and isatty())


def _should_disable_color() -> bool:
    """``NO_COLOR`` (any value, even empty) or ``TERM=dumb`` disables colour."""
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


# ------------------------------------------------------------------ #
# Process-wide manager
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed manager, creating a default one on first use."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the installed manager so the next :func:`get_output` builds a new one."""
    global _output
    _output = None


# Shortcuts delegating to the installed manager.


def format_response(data: Any) -> None:
    get_output().format_response(data)


def print_data(text: str) -> None:
    get_output().print_data(text)


def info(message: str) -> None:
    get_output().info(message)


def success(message: str) -> None:
    get_output().success(message)


def warning(message: str) -> None:
    get_output().warning(message)


def degraded(message: str) -> None:
    get_output().degraded(message)


def error(message: str) -> None:
    get_output().error(message)


def debug(message: str) -> None:
    get_output().debug(message)
