import logging
from importlib.metadata import version

__version__ = version("consolefmt")

VERBOSE = 15
logging.addLevelName(VERBOSE, "VERBOSE")

from .console import FormattingConsole, LogType  # noqa: E402
from .formatting import format_message, inspect  # noqa: E402
from .table import render_table  # noqa: E402

__all__ = [
    "VERBOSE",
    "FormattingConsole",
    "LogType",
    "__version__",
    "format_message",
    "inspect",
    "render_table",
]
