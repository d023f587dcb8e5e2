"""
Custom exception hierarchy for tabload.

Callers can catch a specific failure (e.g. InvalidConfigurationError vs
ValueParseError) without matching on message text. Argument and parse
errors also subclass ``ValueError`` so generic handlers keep working.
"""


class TabloadError(Exception):
    """Base exception for all tabload errors."""


class InvalidArgumentError(TabloadError, ValueError):
    """Raised when an argument is unusable.

    For example an empty column name, ``ColumnType.SKIP`` or an unmapped
    type reaching the column factory, or a non-temporal kind passed to the
    format detector.
    """


class InvalidConfigurationError(InvalidArgumentError):
    """Raised when a parsing configuration is misused or malformed.

    This can happen if:
    - A date/time format override is requested for a non-temporal column.
    - A YAML config file is empty or names an unknown format pattern.
    """


class FormatParseError(TabloadError, ValueError):
    """Raised when a format cannot parse a text value.

    During format detection this is expected and swallowed; it only
    escapes when a caller parses with a format directly.
    """


class ValueParseError(TabloadError, ValueError):
    """Raised when a raw token cannot be converted into a column's type."""

    def __init__(self, column: str, value: str, reason: str) -> None:
        super().__init__(f"Column {column!r}: cannot convert {value!r}: {reason}")
        self.column = column
        self.value = value
        self.reason = reason
