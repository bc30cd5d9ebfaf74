"""Message formatting for console output.

``format_message`` implements printf-style substitution over a variadic list
of values, ``inspect`` renders arbitrary values as a single JSON-like line,
and ``encode`` produces the compact JSON used for table cells.
"""

import json
import math
import re
from collections.abc import Callable, Mapping

# Containers nested deeper than this are abbreviated.
_DEFAULT_DEPTH: int = 2

_SPECIFIER = re.compile(r"%[sdifjoOc%]")
_IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")

_NAN: str = "NaN"


def encode(value: object) -> str:
    """Encode *value* as compact JSON on a single line.

    Unserializable or self-referencing values raise ``TypeError`` /
    ``ValueError`` from :mod:`json`; callers see those unchanged.
    """
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False).replace(
        "\n", ""
    )


def inspect(value: object, *, depth: int = _DEFAULT_DEPTH) -> str:
    """Render *value* as a single human-readable line."""
    return _inspect(value, 0, depth, set())


def _quote(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("'", "\\'").replace("\n", "\\n")
    return f"'{escaped}'"


def _format_float(value: float) -> str:
    if math.isnan(value):
        return _NAN
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    return repr(value)


def _format_key(key: object, level: int, depth: int, seen: set[int]) -> str:
    if isinstance(key, str):
        return key if _IDENTIFIER.match(key) else _quote(key)
    return _inspect(key, level, depth, seen)


def _inspect(value: object, level: int, depth: int, seen: set[int]) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return _quote(value)
    if isinstance(value, float):
        return _format_float(value)
    if isinstance(value, int):
        return str(value)

    if isinstance(value, Mapping):
        opening, closing, placeholder = "{", "}", "[Object]"
    elif isinstance(value, list | tuple):
        opening, closing, placeholder = "[", "]", "[Array]"
    elif isinstance(value, set | frozenset):
        opening, closing, placeholder = f"Set({len(value)}) {{", "}", "[Set]"
    else:
        return repr(value)

    if not value:
        return "{}" if isinstance(value, Mapping) else f"{opening}{closing}"
    if id(value) in seen:
        return "[Circular]"
    if level >= depth + 1:
        return placeholder

    seen.add(id(value))
    try:
        if isinstance(value, Mapping):
            parts = [
                f"{_format_key(key, level + 1, depth, seen)}: "
                f"{_inspect(item, level + 1, depth, seen)}"
                for key, item in value.items()
            ]
        else:
            parts = [_inspect(item, level + 1, depth, seen) for item in value]
    finally:
        seen.discard(id(value))

    return f"{opening} {', '.join(parts)} {closing}"


def _display(value: object) -> str:
    """Strings as-is, everything else inspected."""
    if isinstance(value, str):
        return value
    return inspect(value)


def _to_float(value: object) -> float:
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return math.nan
    return math.nan


def _format_number(value: object) -> str:
    number = _to_float(value)
    if math.isfinite(number) and number.is_integer():
        return str(int(number))
    return _format_float(number)


def _format_integer(value: object) -> str:
    number = _to_float(value)
    if not math.isfinite(number):
        return _NAN
    return str(int(number))


def _format_json(value: object) -> str:
    try:
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    except ValueError:
        # json reports self-references as ValueError("Circular reference ...")
        return "[Circular]"


_CONVERSIONS: dict[str, Callable[[object], str]] = {
    "s": _display,
    "d": _format_number,
    "i": _format_integer,
    "f": lambda value: _format_float(_to_float(value)),
    "j": _format_json,
    "o": inspect,
    "O": inspect,
    "c": lambda value: "",
}


def format_message(*args: object) -> str:
    """Format *args* into a single message.

    If the first argument is a string, ``%s %d %i %f %j %o %O %c`` consume the
    following arguments and ``%%`` yields a literal percent sign. Arguments
    left over are appended separated by spaces. When the first argument is not
    a string, every argument is inspected, strings included.
    """
    if not args:
        return ""

    first = args[0]
    if not isinstance(first, str):
        return " ".join(inspect(arg) for arg in args)
    if len(args) == 1:
        return first

    pending = list(args[1:])

    def substitute(match: re.Match[str]) -> str:
        specifier = match.group()
        if specifier == "%%":
            return "%"
        if not pending:
            return specifier
        return _CONVERSIONS[specifier[1]](pending.pop(0))

    message = _SPECIFIER.sub(substitute, first)
    return " ".join([message, *(_display(arg) for arg in pending)])
