"""Terminal output for the ``onionhttp`` command.

The response body is the only thing written to stdout, so
``onionhttp request GET ... | jq`` works. Everything else goes to stderr:
the ``--include`` status line and headers, ``--verbose`` chain traces,
warnings and errors.

Bodies are rendered as Rich syntax-highlighted JSON/HTML on an interactive
terminal and as plain text otherwise. ``NO_COLOR``, ``TERM=dumb`` and
``--no-color`` disable colour.

The command installs one :class:`OutputManager` with :func:`set_output`;
the module-level helpers delegate to it.
"""

from __future__ import annotations

import json
import os
import sys
from collections.abc import Iterable, Iterator
from enum import Enum
from typing import Any, Optional

from rich.console import Console
from rich.syntax import Syntax
from rich.text import Text


class OutputFormat(str, Enum):
    """How response bodies are rendered.

    ``AUTO`` becomes ``RICH`` on a colour-capable TTY and ``PLAIN`` otherwise.
    """

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class OutputManager:
    """Writes response bodies to stdout and diagnostics to stderr.

    Args:
        format: Body format; ``AUTO`` is resolved once, here.
        no_color: Disable colour on both streams.
        quiet: Hide the ``--include`` head and informational messages.
        verbose: Show :meth:`trace` lines.
        output_file: Write the body to this path instead of stdout.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
        output_file: Optional[str] = None,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose
        self._output_file = output_file
        self._format = _resolve_format(format, self._no_color)
        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=self._format == OutputFormat.RICH,
        )
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

    # -- stdout --

    def print_body(self, data: Any, content_type: str = "application/json") -> None:
        """Render a parsed response body.

        ``None`` (an empty body) prints nothing. ``bytes`` are decoded as
        UTF-8 with replacement characters.
        """
        if data is None:
            return
        if isinstance(data, bytes):
            data = data.decode("utf-8", errors="replace")

        if self._output_file:
            self._save(data)
        elif self._format == OutputFormat.JSON:
            _write_stdout(_to_json(data) if not isinstance(data, str) else _reindent(data))
        elif self._format == OutputFormat.PLAIN:
            for line in _plain_lines(data):
                _write_stdout(line)
        else:
            self._stdout.print(_highlight(data, content_type))

    # -- stderr --

    def print_head(self, status: int, reason: str, headers: Iterable[tuple[str, str]]) -> None:
        """Print ``HTTP <status> <reason>`` and one ``name: value`` line per header."""
        if self._quiet:
            return
        self._emit(f"HTTP {status} {reason}".rstrip(), style="bold")
        for name, value in headers:
            self._emit(f"{name}: {value}")

    def trace(self, line: str) -> None:
        """Print a ``[debug]`` line when verbose."""
        if self._verbose:
            self._emit(line, label="[debug]", style="dim")

    def info(self, message: str) -> None:
        if not self._quiet:
            self._emit(message)

    def warning(self, message: str) -> None:
        self._emit(message, label="Warning:", style="yellow")

    def error(self, message: str) -> None:
        self._emit(message, label="Error:", style="bold red")

    def _emit(self, message: str, label: str = "", style: str = "") -> None:
        if self._no_color:
            print(f"{label} {message}" if label else message, file=sys.stderr, flush=True)
            return
        text = Text()
        if label:
            text.append(label, style=style)
            text.append(" ")
            text.append(message)
        else:
            text.append(message, style=style)
        self._stderr.print(text)

    def _save(self, data: Any) -> None:
        assert self._output_file is not None
        content = data if isinstance(data, str) else _to_json(data)
        with open(self._output_file, "w", encoding="utf-8") as f:
            f.write(content if content.endswith("\n") else content + "\n")


# -- rendering helpers --


def _to_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


def _reindent(text: str) -> str:
    """Pretty-print *text* if it holds JSON, else return it unchanged."""
    try:
        return _to_json(json.loads(text))
    except ValueError:
        return text


def _plain_lines(data: Any) -> Iterator[str]:
    """Tab-separated lines: ``key<TAB>value`` for objects, one row per list item."""
    if isinstance(data, dict):
        for key, value in data.items():
            yield f"{key}\t{value}"
    elif isinstance(data, list):
        for item in data:
            if isinstance(item, dict):
                yield "\t".join(str(v) for v in item.values())
            else:
                yield str(item)
    else:
        yield str(data)


def _highlight(data: Any, content_type: str) -> Any:
    if isinstance(data, (dict, list)):
        return Syntax(_to_json(data), "json", theme="monokai", word_wrap=True)
    if isinstance(data, str) and "html" in content_type:
        return Syntax(data, "html", theme="monokai", word_wrap=True)
    return Text(str(data))


def _write_stdout(line: str) -> None:
    print(line, file=sys.stdout, flush=True)


def _resolve_format(requested: OutputFormat, no_color: bool) -> OutputFormat:
    if requested != OutputFormat.AUTO:
        return requested
    return OutputFormat.RICH if _is_tty() and not no_color else OutputFormat.PLAIN


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """True when ``NO_COLOR`` is set to anything, or ``TERM=dumb``."""
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


# -- global instance --

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed :class:`OutputManager`, creating a default one lazily."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    global _output
    _output = None


def info(message: str) -> None:
    get_output().info(message)


def warning(message: str) -> None:
    get_output().warning(message)


def error(message: str) -> None:
    get_output().error(message)


def trace(line: str) -> None:
    get_output().trace(line)
