"""Shared Rich Console instance for CLI log output."""

from rich.console import Console

# Single console on stderr so stdout stays clean for rendered tables.
# RichHandler (cli.py) writes here; FormattingConsole gets its own sinks.
console = Console(stderr=True)
