"""Two-column ``(index) | Value`` table layout."""

from collections.abc import Mapping, Sequence

from .formatting import encode

KEY_HEADER: str = "(index)"
VALUE_HEADER: str = "Value"

# "| " + key + " | " + value + " |"
_FRAME_WIDTH: int = 7

TOP_BORDER: str = "_"
BOTTOM_BORDER: str = "‾"

type TableEntry = tuple[str, str]


def table_entries(data: object) -> list[TableEntry] | None:
    """Return ``(key, encoded value)`` pairs, or ``None`` for non-collections."""
    if isinstance(data, Mapping):
        items = [(str(key), value) for key, value in data.items()]
    elif isinstance(data, Sequence) and not isinstance(data, str | bytes | bytearray):
        items = [(str(index), value) for index, value in enumerate(data)]
    else:
        return None
    return [(key, encode(value)) for key, value in items]


def fit_widths(key_width: int, value_width: int, max_width: int) -> tuple[int, int]:
    """Shrink the column widths until the table fits in *max_width*.

    The wider column loses one character at a time (the key column on ties).
    Neither column goes below its header label, so the result can still be
    wider than *max_width* when that is very small.
    """
    min_key, min_value = len(KEY_HEADER), len(VALUE_HEADER)
    while key_width + value_width + _FRAME_WIDTH > max_width:
        can_shrink_key = key_width > min_key
        can_shrink_value = value_width > min_value
        if can_shrink_value and (value_width > key_width or not can_shrink_key):
            value_width -= 1
        elif can_shrink_key:
            key_width -= 1
        else:
            break
    return key_width, value_width


def pad(text: str, width: int) -> str:
    """Right pad *text* with spaces to *width*, truncating it if it is longer."""
    return text[:width].ljust(width)


def _row(key: str, value: str, key_width: int, value_width: int) -> str:
    return f"| {pad(key, key_width)} | {pad(value, value_width)} |"


def render_table(data: object, max_width: int) -> list[str] | None:
    """Lay out *data* as table lines no wider than *max_width* where possible.

    Returns ``None`` when *data* is neither a mapping nor a sequence.
    """
    entries = table_entries(data)
    if entries is None:
        return None

    # Keys are measured raw, values by their JSON encoding (quotes included).
    key_width = max([len(KEY_HEADER), *(len(key) for key, _ in entries)])
    value_width = max([len(VALUE_HEADER), *(len(value) for _, value in entries)])
    key_width, value_width = fit_widths(key_width, value_width, max_width)
    total_width = key_width + value_width + _FRAME_WIDTH

    lines = [
        TOP_BORDER * total_width,
        _row(KEY_HEADER, VALUE_HEADER, key_width, value_width),
        f"|{'-' * (key_width + 2)}|{'-' * (value_width + 2)}|",
    ]
    lines.extend(_row(key, value, key_width, value_width) for key, value in entries)
    lines.append(BOTTOM_BORDER * total_width)
    return lines
