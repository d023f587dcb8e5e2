"""
Column type enumeration for tabload.

``ColumnType`` is a closed set. Every dispatch over it (column factory,
format catalog, type detection) keeps an explicit branch for values it
does not handle, so adding a member forces those sites to be revisited.
"""

from __future__ import annotations

from enum import Enum

from tabload.exceptions import InvalidArgumentError


class ColumnType(str, Enum):
    """Kinds of values a column may hold."""

    INTEGER = "INTEGER"
    LONG_INT = "LONG_INT"
    SHORT_INT = "SHORT_INT"
    FLOAT = "FLOAT"
    BOOLEAN = "BOOLEAN"
    CATEGORY = "CATEGORY"
    LOCAL_DATE = "LOCAL_DATE"
    LOCAL_TIME = "LOCAL_TIME"
    LOCAL_DATE_TIME = "LOCAL_DATE_TIME"
    # Sentinel: the column is not materialized at all
    SKIP = "SKIP"

    @property
    def is_temporal(self) -> bool:
        return self in TEMPORAL_TYPES

    @classmethod
    def parse(cls, text: str) -> ColumnType:
        """Look up a member by name, ignoring case and surrounding whitespace."""
        key = text.strip().upper()
        try:
            return cls[key]
        except KeyError:
            raise InvalidArgumentError(
                f"Unknown ColumnType {text!r}. "
                f"Expected one of: {', '.join(m.name for m in cls)}"
            ) from None


TEMPORAL_TYPES: frozenset[ColumnType] = frozenset({
    ColumnType.LOCAL_DATE,
    ColumnType.LOCAL_DATE_TIME,
    ColumnType.LOCAL_TIME,
})

# Inclusive value ranges of the sized integer types
INT_RANGES: dict[ColumnType, tuple[int, int]] = {
    ColumnType.SHORT_INT: (-(2**15), 2**15 - 1),
    ColumnType.INTEGER: (-(2**31), 2**31 - 1),
    ColumnType.LONG_INT: (-(2**63), 2**63 - 1),
}
