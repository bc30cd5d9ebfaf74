"""Stateful formatting console on top of a pair of Rich consoles."""

import logging
import time
import traceback
from collections.abc import Callable
from typing import Literal, TextIO

from rich.console import Console
from rich.control import Control
from rich.segment import ControlType

from . import VERBOSE
from .formatting import format_message, inspect
from .table import render_table

logger = logging.getLogger(__name__)

type LogType = Literal["log", "info", "warn", "error"]
type Formatter = Callable[[LogType, str], str]
type Sink = Console | TextIO

DEFAULT_OUTPUT_WIDTH: int = 80
DEFAULT_COUNT_LABEL: str = "<no label>"
DEFAULT_TIMER_LABEL: str = "default"
GROUP_INDENT: str = "> "

_ERROR_LEVELS: frozenset[LogType] = frozenset({"warn", "error"})

# Cursor to column 0, then erase the line under any in-progress output.
_CLEAR_LINE = Control(
    (ControlType.CURSOR_MOVE_TO_COLUMN, 0),
    (ControlType.ERASE_IN_LINE, 2),
)


def _identity(level: LogType, message: str) -> str:
    return message


def _is_tty(stream: TextIO) -> bool:
    isatty = getattr(stream, "isatty", None)
    try:
        return False if isatty is None else bool(isatty())
    except ValueError:
        # closed stream
        return False


def as_console(sink: Sink) -> Console:
    """Wrap a text stream in a plain Rich console; consoles pass through."""
    if isinstance(sink, Console):
        return sink
    return Console(
        file=sink,
        force_terminal=_is_tty(sink),
        markup=False,
        highlight=False,
        emoji=False,
    )


class FormattingConsole:
    """Console with leveled logging, indentation groups, counters and tables.

    Lines go to *stdout* for ``log``/``info`` and to *stderr* for
    ``warn``/``error``. Either may be a :class:`rich.console.Console` or a text
    stream; the sinks are borrowed and never closed. *formatter* receives the
    level and the indented message and returns the text actually written.
    """

    _stdout: Console
    _stderr: Console
    _formatter: Formatter
    _group_level: int
    _counts: dict[str, int]
    _timers: dict[str, float]
    _output_width: int

    def __init__(
        self,
        stdout: Sink | None = None,
        stderr: Sink | None = None,
        formatter: Formatter | None = None,
        *,
        output_width: int | None = None,
    ) -> None:
        self._stdout = as_console(stdout) if stdout is not None else Console()
        self._stderr = (
            as_console(stderr) if stderr is not None else Console(stderr=True)
        )
        self._formatter = formatter or _identity
        self._group_level = 0
        self._counts = {}
        self._timers = {}

        if output_width is not None:
            self._output_width = output_width
        elif self._stdout.is_terminal:
            self._output_width = self._stdout.width
        else:
            self._output_width = DEFAULT_OUTPUT_WIDTH
        logger.debug(f"Console output width: {self._output_width}")

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def stdout(self) -> Console:
        return self._stdout

    @property
    def stderr(self) -> Console:
        return self._stderr

    @property
    def group_level(self) -> int:
        return self._group_level

    @property
    def counts(self) -> dict[str, int]:
        return dict(self._counts)

    @property
    def output_width(self) -> int:
        return self._output_width

    def _indentation(self) -> str:
        return GROUP_INDENT * self._group_level

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def _clear_line(self) -> None:
        if self._stdout.is_terminal:
            self._stdout.control(_CLEAR_LINE)

    def _log(self, level: LogType, message: str) -> None:
        self._clear_line()
        line = self._formatter(level, f"{self._indentation()}{message}")
        sink = self._stderr if level in _ERROR_LEVELS else self._stdout
        sink.out(line, highlight=False)

    def log(self, *args: object) -> None:
        self._log("log", format_message(*args))

    def debug(self, *args: object) -> None:
        self._log("log", format_message(*args))

    def info(self, *args: object) -> None:
        self._log("info", format_message(*args))

    def warn(self, *args: object) -> None:
        self._log("warn", format_message(*args))

    def error(self, *args: object) -> None:
        self._log("error", format_message(*args))

    def exception(self, *args: object) -> None:
        self._log("error", format_message(*args))

    # ------------------------------------------------------------------
    # Groups, counters, assertions
    # ------------------------------------------------------------------

    def group(self, label: str | None = None) -> None:
        self._group_level += 1
        if label:
            self.log(label)

    def group_collapsed(self, label: str | None = None) -> None:
        # Output is append-only, so collapsing cannot be shown.
        self.group(label)

    def group_end(self) -> None:
        if self._group_level == 0:
            logger.debug("group_end() called without an open group; ignoring")
            return
        self._group_level -= 1

    def count(self, label: str | None = None) -> None:
        if label is None:
            label = DEFAULT_COUNT_LABEL
        self._counts[label] = self._counts.get(label, 0) + 1
        self._log("log", f"{label}: {self._counts[label]}")

    def assert_(self, assertion: object, *args: object) -> None:
        """Log *args* when *assertion* is falsy, like ``console.assert``."""
        if not assertion:
            self.log(*args)

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    def table(self, data: object) -> None:
        """Render a mapping or sequence as an ``(index) | Value`` table.

        Anything else is ignored. Values are JSON-encoded; encoding errors
        propagate before any line is written.
        """
        lines = render_table(data, self._output_width)
        if lines is None:
            logger.log(
                VERBOSE, f"table() ignored non-collection {type(data).__name__}"
            )
            return
        for line in lines:
            self.log(line)

    # ------------------------------------------------------------------
    # Pass-throughs
    # ------------------------------------------------------------------

    def clear(self) -> None:
        """Nothing is buffered, so there is nothing to clear."""

    def get_buffer(self) -> None:
        return None

    def dir(self, value: object) -> None:
        self._log("log", inspect(value))

    def time(self, label: str = DEFAULT_TIMER_LABEL) -> None:
        if label in self._timers:
            self.warn(f"Timer '{label}' already exists")
            return
        self._timers[label] = time.perf_counter()

    def _elapsed(self, label: str) -> str | None:
        start = self._timers.get(label)
        if start is None:
            self.warn(f"No such label '{label}'")
            return None
        return f"{label}: {(time.perf_counter() - start) * 1000:.3f}ms"

    def time_log(self, label: str = DEFAULT_TIMER_LABEL, *args: object) -> None:
        elapsed = self._elapsed(label)
        if elapsed is not None:
            extra = f" {format_message(*args)}" if args else ""
            self._log("log", f"{elapsed}{extra}")

    def time_end(self, label: str = DEFAULT_TIMER_LABEL) -> None:
        elapsed = self._elapsed(label)
        if elapsed is not None:
            del self._timers[label]
            self._log("log", elapsed)

    def trace(self, *args: object) -> None:
        self._log("error", f"Trace: {format_message(*args)}".rstrip())
        # Drop this frame so the stack ends at the caller.
        for entry in traceback.format_stack()[:-1]:
            for line in entry.rstrip("\n").splitlines():
                self._log("error", line)
