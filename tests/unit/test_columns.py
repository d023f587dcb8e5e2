"""
Unit tests for ColumnType and the column factory (tabload.column_types,
tabload.columns).
"""

from __future__ import annotations

from datetime import date, datetime, time

import pandas as pd
import pytest

from tabload import formats
from tabload.column_types import TEMPORAL_TYPES, ColumnType
from tabload.columns import Column, create_column
from tabload.exceptions import InvalidArgumentError, ValueParseError


class TestColumnType:
    """Tests for the ColumnType enum helpers."""

    def test_temporal_types(self):
        assert TEMPORAL_TYPES == {
            ColumnType.LOCAL_DATE,
            ColumnType.LOCAL_DATE_TIME,
            ColumnType.LOCAL_TIME,
        }
        assert ColumnType.LOCAL_TIME.is_temporal
        assert not ColumnType.INTEGER.is_temporal

    def test_parse_case_insensitive(self):
        assert ColumnType.parse("local_date") is ColumnType.LOCAL_DATE
        assert ColumnType.parse(" Integer ") is ColumnType.INTEGER

    def test_parse_unknown(self):
        with pytest.raises(InvalidArgumentError, match="Unknown ColumnType"):
            ColumnType.parse("DECIMAL")


class TestCreateColumn:
    """Tests for create_column()."""

    def test_integer_column(self):
        col = create_column("age", ColumnType.INTEGER)
        assert isinstance(col, Column)
        assert col.name == "age"
        assert col.column_type is ColumnType.INTEGER
        assert col.is_empty()
        assert len(col) == 0

    @pytest.mark.parametrize(
        "column_type, dtype",
        [
            (ColumnType.INTEGER, "Int32"),
            (ColumnType.SHORT_INT, "Int16"),
            (ColumnType.LONG_INT, "Int64"),
            (ColumnType.FLOAT, "Float32"),
            (ColumnType.BOOLEAN, "boolean"),
            (ColumnType.CATEGORY, "category"),
            (ColumnType.LOCAL_DATE, "object"),
            (ColumnType.LOCAL_TIME, "object"),
            (ColumnType.LOCAL_DATE_TIME, "datetime64[us]"),
        ],
    )
    def test_every_type_has_a_column(self, column_type, dtype):
        col = create_column("c", column_type)
        assert col.column_type is column_type
        assert col.dtype == dtype
        assert str(col.to_series().dtype) == dtype

    def test_columns_are_independent(self):
        a = create_column("a", ColumnType.INTEGER)
        b = create_column("a", ColumnType.INTEGER)
        a.append(1)
        assert b.is_empty()

    def test_skip_rejected(self):
        with pytest.raises(InvalidArgumentError, match="SKIP"):
            create_column("x", ColumnType.SKIP)

    def test_empty_name_rejected(self):
        with pytest.raises(InvalidArgumentError, match="valid name"):
            create_column("", ColumnType.INTEGER)

    def test_unmapped_type_rejected(self):
        with pytest.raises(InvalidArgumentError, match="Unknown ColumnType"):
            create_column("x", "DECIMAL")


class TestAppendText:
    """Tests for Column.append_text() value conversion."""

    def test_integers(self):
        col = create_column("n", ColumnType.INTEGER)
        for token in ("1", "-2", "NA", ""):
            col.append_text(token)
        assert col.values == [1, -2, None, None]
        series = col.to_series()
        assert series.name == "n"
        assert series.isna().tolist() == [False, False, True, True]

    def test_short_int_range(self):
        col = create_column("n", ColumnType.SHORT_INT)
        with pytest.raises(ValueParseError, match="out of range"):
            col.append_text("40000")

    def test_boolean_uses_full_vocabulary(self):
        col = create_column("flag", ColumnType.BOOLEAN)
        for token in ("Y", "1", "f", "0", "null"):
            col.append_text(token)
        assert col.values == [True, True, False, False, None]

    def test_float(self):
        col = create_column("x", ColumnType.FLOAT)
        col.append_text("1.5")
        assert col.values == [1.5]

    def test_category_keeps_text(self):
        col = create_column("name", ColumnType.CATEGORY)
        col.append_text("Main St")
        col.append_text("*")
        assert col.values == ["Main St", None]
        assert col.to_series().cat.categories.tolist() == ["Main St"]

    def test_date_with_locked_format(self):
        col = create_column("d", ColumnType.LOCAL_DATE)
        col.append_text("22-Jul-2016", formats.DD_HYPHEN_MMM_HYPHEN_YYYY)
        assert col.values == [date(2016, 7, 22)]

    def test_date_without_format_uses_fallback(self):
        col = create_column("d", ColumnType.LOCAL_DATE)
        col.append_text("Jul 22, 2016")
        assert col.values == [date(2016, 7, 22)]

    def test_time_and_date_time(self):
        t = create_column("t", ColumnType.LOCAL_TIME)
        t.append_text("0930")
        assert t.values == [time(9, 30)]

        dt = create_column("dt", ColumnType.LOCAL_DATE_TIME)
        dt.append_text("2016-07-22 10:11:12")
        series = dt.to_series()
        assert series.iloc[0] == pd.Timestamp(datetime(2016, 7, 22, 10, 11, 12))

    def test_unparseable_value(self):
        col = create_column("d", ColumnType.LOCAL_DATE)
        with pytest.raises(ValueParseError) as exc_info:
            col.append_text("2016-07-22", formats.YYYYMMDD)
        assert exc_info.value.column == "d"
        assert exc_info.value.value == "2016-07-22"

    def test_bad_integer(self):
        col = create_column("n", ColumnType.INTEGER)
        with pytest.raises(ValueParseError, match="'abc'"):
            col.append_text("abc")
