class ConsoleFormatError(Exception):
    """Base class for consolefmt errors."""


class InputError(ConsoleFormatError):
    """Raised when CLI input cannot be read or decoded as JSON."""
