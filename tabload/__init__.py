"""
tabload: typed loading of delimited text into pandas.

Public API surface:

- ``ParsingConfiguration.builder()`` -- build an immutable description of
  one source (delimiter, header, names, per-column type/format overrides).
- ``detect_format(kind, sample)`` -- pick the date/time format for a
  temporal column from one representative value.
- ``detect_column_type(values)`` -- infer a ColumnType from raw tokens.
- ``create_column(name, column_type)`` -- new empty typed column.
- ``read_table(config)`` -- read a source into a typed DataFrame.
- ``load_config(path)`` / ``save_config(config, path)`` -- YAML I/O.
"""

from __future__ import annotations

from tabload.column_types import ColumnType
from tabload.columns import Column, create_column
from tabload.config import (
    ParsingConfiguration,
    ParsingConfigurationBuilder,
    load_config,
    new_builder,
    save_config,
)
from tabload.detect import detect_column_type, detect_format
from tabload.exceptions import (
    FormatParseError,
    InvalidArgumentError,
    InvalidConfigurationError,
    TabloadError,
    ValueParseError,
)
from tabload.formats import BaseFormat, CompositeFormat, DateTimeFormat
from tabload.reader import read_table

__all__ = [
    "BaseFormat",
    "Column",
    "ColumnType",
    "CompositeFormat",
    "DateTimeFormat",
    "FormatParseError",
    "InvalidArgumentError",
    "InvalidConfigurationError",
    "ParsingConfiguration",
    "ParsingConfigurationBuilder",
    "TabloadError",
    "ValueParseError",
    "create_column",
    "detect_column_type",
    "detect_format",
    "load_config",
    "new_builder",
    "read_table",
    "save_config",
]
