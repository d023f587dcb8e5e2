"""
Column factory for tabload.

``create_column(name, column_type)`` returns a new, empty, named column for
a ColumnType. The mapping from type to storage dtype is a closed dispatch
table; ``SKIP`` and any type missing from the table are rejected.

A ``Column`` accumulates converted values and hands them over as a
``pandas.Series`` with the column's nullable dtype:

  INTEGER -> Int32        SHORT_INT -> Int16       LONG_INT -> Int64
  FLOAT   -> Float32      BOOLEAN   -> boolean     CATEGORY -> category
  LOCAL_DATE -> object (datetime.date)
  LOCAL_TIME -> object (datetime.time)
  LOCAL_DATE_TIME -> datetime64[us]
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

import pandas as pd

from tabload.column_types import INT_RANGES, ColumnType
from tabload.exceptions import FormatParseError, InvalidArgumentError, ValueParseError
from tabload.formats import BaseFormat, fallback_for, is_missing, parse_boolean

_COLUMN_DTYPES: dict[ColumnType, str] = {
    ColumnType.LOCAL_DATE: "object",
    ColumnType.LOCAL_TIME: "object",
    ColumnType.LOCAL_DATE_TIME: "datetime64[us]",
    ColumnType.INTEGER: "Int32",
    ColumnType.FLOAT: "Float32",
    ColumnType.BOOLEAN: "boolean",
    ColumnType.CATEGORY: "category",
    ColumnType.SHORT_INT: "Int16",
    ColumnType.LONG_INT: "Int64",
}


def _to_int(column_type: ColumnType) -> Callable[[str, BaseFormat | None], int]:
    low, high = INT_RANGES[column_type]

    def convert(text: str, fmt: BaseFormat | None) -> int:
        value = int(text)
        if not low <= value <= high:
            raise ValueError(f"out of range for {column_type.name}")
        return value

    return convert


def _to_temporal(column_type: ColumnType) -> Callable[[str, BaseFormat | None], Any]:
    def convert(text: str, fmt: BaseFormat | None) -> Any:
        return (fmt or fallback_for(column_type)).parse(text)

    return convert


_CONVERTERS: dict[ColumnType, Callable[[str, BaseFormat | None], Any]] = {
    ColumnType.LOCAL_DATE: _to_temporal(ColumnType.LOCAL_DATE),
    ColumnType.LOCAL_TIME: _to_temporal(ColumnType.LOCAL_TIME),
    ColumnType.LOCAL_DATE_TIME: _to_temporal(ColumnType.LOCAL_DATE_TIME),
    ColumnType.INTEGER: _to_int(ColumnType.INTEGER),
    ColumnType.FLOAT: lambda text, fmt: float(text),
    ColumnType.BOOLEAN: lambda text, fmt: parse_boolean(text),
    ColumnType.CATEGORY: lambda text, fmt: text,
    ColumnType.SHORT_INT: _to_int(ColumnType.SHORT_INT),
    ColumnType.LONG_INT: _to_int(ColumnType.LONG_INT),
}


@dataclass
class Column:
    """A named, typed column of values; ``None`` marks a missing value."""

    name: str
    column_type: ColumnType
    values: list[Any] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.values)

    @property
    def dtype(self) -> str:
        return _COLUMN_DTYPES[self.column_type]

    def is_empty(self) -> bool:
        return not self.values

    def append(self, value: Any) -> None:
        self.values.append(value)

    def append_text(self, text: str, fmt: BaseFormat | None = None) -> None:
        """Convert one raw token and append it.

        Empty strings and missing-value sentinels become ``None``. Temporal
        columns parse with *fmt*, or with the kind's composite format when
        no format was locked in.

        Raises:
            ValueParseError: If the token cannot be converted.
        """
        if text == "" or is_missing(text):
            self.values.append(None)
            return
        try:
            self.values.append(_CONVERTERS[self.column_type](text, fmt))
        except (FormatParseError, ValueError) as e:
            raise ValueParseError(self.name, text, str(e)) from e

    def to_series(self) -> pd.Series:
        return pd.Series(self.values, name=self.name, dtype=self.dtype)


def create_column(name: str, column_type: ColumnType) -> Column:
    """Construct and return an empty column for *name* and *column_type*.

    Raises:
        InvalidArgumentError: If *name* is empty, *column_type* is SKIP, or
            there is no column implementation for *column_type*.
    """
    if not name:
        raise InvalidArgumentError("There must be a valid name for a new column")
    if column_type is ColumnType.SKIP:
        raise InvalidArgumentError("SKIP-ped columns should be handled before creating columns")
    if column_type not in _COLUMN_DTYPES:
        raise InvalidArgumentError(f"Unknown ColumnType: {column_type!r}")
    return Column(name=name, column_type=column_type)
