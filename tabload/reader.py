"""
Table reading for tabload.

``read_table(config)`` loads one delimited source into a typed
``pandas.DataFrame`` as described by a ParsingConfiguration:

1. Tokenize with ``pandas.read_csv`` (every cell kept as raw text).
2. Per column, resolve the type: named override, then positional declared
   type, then ``detect_column_type`` over the raw tokens.
3. Drop SKIP columns; create the others through ``create_column``.
4. For temporal columns, lock in one format before conversion: the
   configured override, else ``detect_format`` on the first present value.
5. Convert every token and assemble the frame.

The table name is stored in ``DataFrame.attrs["table_name"]``.
"""

from __future__ import annotations

import logging

import pandas as pd

from tabload.column_types import ColumnType
from tabload.columns import Column, create_column
from tabload.config import ParsingConfiguration
from tabload.detect import detect_column_type, detect_format
from tabload.exceptions import InvalidConfigurationError
from tabload.formats import BaseFormat, is_missing

logger = logging.getLogger(__name__)


def read_raw(config: ParsingConfiguration) -> pd.DataFrame:
    """Tokenize the configured source into an all-string DataFrame."""
    if config.has_stream:
        source = config.stream
    elif config.file_name:
        source = config.file_name
    else:
        raise InvalidConfigurationError(
            "Parsing configuration has neither a stream nor a file name to read"
        )

    try:
        df = pd.read_csv(
            source,
            sep=config.delimiter,
            header=0 if config.header else None,
            dtype=str,
            keep_default_na=False,
        )
    except pd.errors.EmptyDataError as e:
        raise InvalidConfigurationError(
            f"Source for table '{config.table_name}' is empty: nothing to read"
        ) from e
    if not config.header:
        df.columns = [f"C{i}" for i in range(len(df.columns))]
    return df


def _first_present(values: list[str]) -> str:
    """Return the first value that is not empty or a missing sentinel."""
    for value in values:
        if value != "" and not is_missing(value):
            return value
    return ""


def resolve_column_type(
    config: ParsingConfiguration, name: str, position: int, values: list[str],
) -> ColumnType:
    """Configured type for a column, falling back to detection from *values*."""
    column_type = config.effective_column_type(name, position)
    if column_type is None:
        column_type = detect_column_type(values)
        logger.debug("Column '%s': detected type %s", name, column_type.name)
    return column_type


def resolve_format(
    config: ParsingConfiguration, name: str, column_type: ColumnType, values: list[str],
) -> BaseFormat | None:
    """Format used for every value of a temporal column; None otherwise."""
    if not column_type.is_temporal:
        return None
    fmt = config.format_for(name)
    if fmt is None:
        fmt = detect_format(column_type, _first_present(values))
    logger.debug("Column '%s': using %s format %s", name, column_type.name, fmt.name)
    return fmt


def read_table(config: ParsingConfiguration) -> pd.DataFrame:
    """Read the configured source into a typed DataFrame.

    Args:
        config: Parsing configuration. Its stream is read if present,
            otherwise its file name.

    Returns:
        DataFrame with one column per non-SKIP source column, in source
        order, each with the dtype of its ColumnType.

    Raises:
        InvalidConfigurationError: If there is nothing to read.
        ValueParseError: If a value cannot be converted to its column's type.
    """
    raw = read_raw(config)
    columns: list[Column] = []

    for position, name in enumerate(raw.columns):
        name = str(name)
        values = raw.iloc[:, position].tolist()
        column_type = resolve_column_type(config, name, position, values)
        if column_type is ColumnType.SKIP:
            logger.debug("Column '%s': skipped", name)
            continue

        column = create_column(name, column_type)
        fmt = resolve_format(config, name, column_type, values)
        for value in values:
            column.append_text(value, fmt)
        columns.append(column)

    if columns:
        df = pd.concat([c.to_series() for c in columns], axis=1)
    else:
        df = pd.DataFrame(index=raw.index)
    df.attrs["table_name"] = config.table_name
    logger.info(
        "Read table '%s': %d rows x %d cols (%d skipped)",
        config.table_name, len(df), len(columns), len(raw.columns) - len(columns),
    )
    return df
