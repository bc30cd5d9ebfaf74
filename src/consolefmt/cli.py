import json
import logging
import os
import sys
from argparse import ArgumentParser, BooleanOptionalAction, Namespace
from typing import NoReturn

from rich.logging import RichHandler

from . import VERBOSE, __version__
from ._console import console
from .console import FormattingConsole, LogType
from .exceptions import InputError

logger = logging.getLogger(__name__)

MODES: tuple[str, ...] = ("table", "log", "count")

_LEVEL_TAGS: dict[LogType, str] = {
    "error": "E",
    "info": "I",
    "log": "L",
    "warn": "W",
}


class MyArgParser(ArgumentParser):
    """Argument parser that prints help on error instead of just usage."""

    def error(self, message: str) -> NoReturn:
        """Print the error message followed by full help, then exit."""
        _ = sys.stderr.write(f"{self.prog}: {message}\n\n")
        self.print_help()
        sys.exit(2)


def _parse_bool_env(value: str | None, *, env_var: str) -> bool | None:
    """Parse an environment variable string into a boolean, or ``None`` if unset."""
    if value is None:
        return None

    normalized = value.strip().lower()
    true_values = {"1", "true", "yes", "y", "on"}
    false_values = {"0", "false", "no", "n", "off"}

    if normalized in true_values:
        return True
    if normalized in false_values:
        return False

    raise ValueError(
        f"Invalid boolean value for {env_var}: {value!r}. "
        "Use one of 1/0, true/false, yes/no, on/off."
    )


def _parse_int_env(value: str | None, *, env_var: str) -> int | None:
    """Parse an environment variable string into a positive int, or ``None`` if unset."""
    if value is None:
        return None

    try:
        parsed = int(value)
    except ValueError:
        raise ValueError(
            f"Invalid integer value for {env_var}: {value!r}"
        ) from None
    if parsed <= 0:
        raise ValueError(f"{env_var} must be positive, got {parsed}")
    return parsed


def _with_env[T](arg_value: T | None, env_var: str) -> T | str | None:
    """Return *arg_value* if set, otherwise fall back to the named environment variable."""
    if arg_value is not None:
        return arg_value
    return os.environ.get(env_var)


def _bool_option(arg_value: bool | None, env_var: str, default: bool) -> bool:
    """Resolve a boolean flag: CLI > env > *default*."""
    if arg_value is not None:
        return arg_value
    parsed = _parse_bool_env(os.environ.get(env_var), env_var=env_var)
    return default if parsed is None else parsed


def _argparser() -> MyArgParser:
    """Build and return the CLI argument parser with all flags and env-var support."""
    parser = MyArgParser(
        description="Render a JSON document through a formatting console"
    )

    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "input_file",
        metavar="FILE",
        nargs="?",
        default="-",
        help="JSON file to render, '-' for stdin (default: stdin)",
    )
    parser.add_argument(
        "-m",
        "--mode",
        dest="mode",
        choices=MODES,
        help="How to render the document (default: table, env: CONSOLEFMT_MODE)",
        default=None,
    )
    parser.add_argument(
        "-w",
        "--width",
        dest="width",
        metavar="N",
        help="Output width for tables (default: terminal width or 80, env: CONSOLEFMT_WIDTH)",
        type=int,
        default=None,
    )
    parser.add_argument(
        "-g",
        "--group",
        dest="group",
        metavar="LABEL",
        help="Indent the output under a group with this label (env: CONSOLEFMT_GROUP)",
        default=None,
    )
    parser.add_argument(
        "--level-tags",
        dest="level_tags",
        help="Prefix each line with its level tag, e.g. 'L: ' (env: CONSOLEFMT_LEVEL_TAGS)",
        action=BooleanOptionalAction,
        default=None,
    )
    parser.add_argument(
        "-v",
        "--verbose",
        dest="verbose",
        help="Verbose output (env: CONSOLEFMT_VERBOSE)",
        action="store_true",
        default=None,
    )
    parser.add_argument(
        "-d",
        "--debug",
        dest="debug",
        help="Debug output (env: CONSOLEFMT_DEBUG)",
        action="store_true",
        default=None,
    )

    return parser


def _tag_level(level: LogType, message: str) -> str:
    return f"{_LEVEL_TAGS[level]}: {message}"


def _load_document(path: str) -> object:
    """Read and decode the JSON document at *path* (``-`` for stdin)."""
    try:
        if path == "-":
            text = sys.stdin.read()
        else:
            with open(path, encoding="utf-8") as handle:
                text = handle.read()
    except OSError as exc:
        raise InputError(f"Could not read {path}: {exc.strerror}") from exc
    except UnicodeDecodeError as exc:
        raise InputError(
            f"{'stdin' if path == '-' else path} is not valid UTF-8: {exc}"
        ) from exc

    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise InputError(
            f"{'stdin' if path == '-' else path} is not valid JSON: {exc}"
        ) from exc


def render(document: object, out: FormattingConsole, mode: str) -> None:
    """Write *document* to *out* according to *mode*."""
    logger.log(VERBOSE, f"Rendering {type(document).__name__} in {mode} mode")
    if mode == "table":
        out.table(document)
    elif mode == "log":
        for element in document if isinstance(document, list) else [document]:
            out.log(element)
    elif mode == "count":
        for element in document if isinstance(document, list) else [document]:
            out.count(element if isinstance(element, str) else json.dumps(element))
    else:
        raise ValueError(f"Unknown mode: {mode}")


def main(argv: list[str] | None = None) -> None:
    """Entry point: parse arguments, resolve env vars, and render the input."""
    args: Namespace = _argparser().parse_args(argv)

    # string options: CLI > env > None/default
    mode = _with_env(args.mode, "CONSOLEFMT_MODE") or "table"
    group = _with_env(args.group, "CONSOLEFMT_GROUP")

    # bool/int options: CLI > env > code default
    try:
        if mode not in MODES:
            raise ValueError(
                f"Invalid value for CONSOLEFMT_MODE: {mode!r}. "
                f"Use one of {', '.join(MODES)}."
            )
        width = (
            args.width
            if args.width is not None
            else _parse_int_env(
                os.environ.get("CONSOLEFMT_WIDTH"), env_var="CONSOLEFMT_WIDTH"
            )
        )
        level_tags = _bool_option(args.level_tags, "CONSOLEFMT_LEVEL_TAGS", False)
        verbose = _bool_option(args.verbose, "CONSOLEFMT_VERBOSE", False)
        debug = _bool_option(args.debug, "CONSOLEFMT_DEBUG", False)
    except ValueError as exc:
        _ = sys.stderr.write(f"ERROR: {exc}\n\n")
        _argparser().print_help()
        sys.exit(2)

    # logging
    #   default : INFO via RichHandler on stderr
    #   -v      : VERBOSE for consolefmt
    #   -d      : DEBUG for everything, raw format
    if debug:
        logging.basicConfig(
            format="%(levelname)s: %(name)s: %(message)s", level=logging.DEBUG
        )
    else:
        logging.basicConfig(
            level=logging.INFO,
            format="%(message)s",
            datefmt="[%X]",
            handlers=[RichHandler(console=console, show_path=False, markup=False)],
        )
        if verbose:
            logging.getLogger("consolefmt").setLevel(VERBOSE)

    try:
        document = _load_document(args.input_file)
    except InputError as exc:
        _ = sys.stderr.write(f"ERROR: {exc}\n")
        sys.exit(2)

    out = FormattingConsole(
        sys.stdout,
        sys.stderr,
        _tag_level if level_tags else None,
        output_width=width,
    )
    if group:
        out.group(group)
    render(document, out, mode)
    if group:
        out.group_end()


if __name__ == "__main__":
    main()
