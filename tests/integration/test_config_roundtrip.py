"""
Integration tests: config YAML round-trip workflow.

Tests the full cycle: build config -> save_config() -> load_config() ->
read_table(), and the failure modes of load_config().
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from tabload import formats
from tabload.column_types import ColumnType
from tabload.config import load_config, new_builder, save_config
from tabload.exceptions import InvalidConfigurationError
from tabload.reader import read_table


def _make_config(path):
    return (
        new_builder()
        .from_file(path)
        .named("Bus stops")
        .with_header()
        .with_delimiter(",")
        .set_column_types([ColumnType.LONG_INT])
        .column("opened").is_of_date_format(ColumnType.LOCAL_DATE, formats.YYYY_HYPHEN_MM_HYPHEN_DD)
        .column("first_bus").is_of_date_format(ColumnType.LOCAL_TIME, "HH:mm")
        .column("lat").is_of_type(ColumnType.SKIP)
        .build()
    )


@pytest.mark.integration
class TestConfigRoundtrip:
    """Tests for save_config / load_config round-trip fidelity."""

    def test_round_trip(self, tmp_path, bus_stops_file):
        original = _make_config(bus_stops_file)
        yaml_path = tmp_path / "stops.yaml"
        save_config(original, yaml_path)
        loaded = load_config(yaml_path)

        assert loaded.file_name == original.file_name
        assert loaded.table_name == "Bus stops"
        assert loaded.header is True
        assert loaded.column_types == (ColumnType.LONG_INT,)
        assert dict(loaded.column_type_overrides) == dict(original.column_type_overrides)
        assert loaded.format_for("opened") is formats.YYYY_HYPHEN_MM_HYPHEN_DD
        assert loaded.format_for("first_bus").pattern == "HH:mm"

    def test_yaml_file_has_header_comment(self, tmp_path, bus_stops_file):
        yaml_path = tmp_path / "stops.yaml"
        save_config(_make_config(bus_stops_file), yaml_path)
        content = yaml_path.read_text(encoding="utf-8")
        assert content.startswith("# tabload parsing configuration")
        assert "LOCAL_DATE" in content
        assert "yyyy-MM-dd" in content

    def test_loaded_config_reads_table(self, tmp_path, bus_stops_file):
        yaml_path = tmp_path / "stops.yaml"
        save_config(_make_config(bus_stops_file), yaml_path)
        df = read_table(load_config(yaml_path))
        assert "lat" not in df.columns
        assert str(df["stop_id"].dtype) == "Int64"
        assert df.attrs["table_name"] == "Bus stops"

    def test_composite_format_cannot_be_saved(self, tmp_path):
        cfg = new_builder().column("d").is_of_date_format(ColumnType.LOCAL_DATE, formats.DATE_FORMAT).build()
        with pytest.raises(InvalidConfigurationError, match="cannot be written"):
            save_config(cfg, tmp_path / "x.yaml")

    def test_hand_written_yaml(self, tmp_path):
        yaml_path = tmp_path / "hand.yaml"
        yaml_path.write_text(
            "file_name: trips.csv\n"
            "delimiter: ';'\n"
            "column_types: [integer, category]\n"
            "columns:\n"
            "  departed:\n"
            "    type: local_date_time\n"
            "    format: dd-MMM-yyyy HH:mm\n",
            encoding="utf-8",
        )
        cfg = load_config(yaml_path)
        assert cfg.table_name == "trips.csv"
        assert cfg.delimiter == ";"
        assert cfg.header is False
        assert cfg.column_types == (ColumnType.INTEGER, ColumnType.CATEGORY)
        assert cfg.format_for("departed") is formats.DD_MMM_YYYY_HH_MM


class TestLoadConfigErrors:
    """Tests for load_config failure modes."""

    def test_file_not_found(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="Config file not found"):
            load_config(tmp_path / "nonexistent.yaml")

    def test_empty_file(self, tmp_path):
        yaml_path = tmp_path / "empty.yaml"
        yaml_path.write_text("", encoding="utf-8")
        with pytest.raises(InvalidConfigurationError, match="empty"):
            load_config(yaml_path)

    def test_unknown_type(self, tmp_path):
        yaml_path = tmp_path / "bad.yaml"
        yaml_path.write_text("columns:\n  a:\n    type: decimal\n", encoding="utf-8")
        with pytest.raises(ValidationError, match="Unknown ColumnType"):
            load_config(yaml_path)

    def test_bad_delimiter(self, tmp_path):
        yaml_path = tmp_path / "bad.yaml"
        yaml_path.write_text("delimiter: ';;'\n", encoding="utf-8")
        with pytest.raises(ValidationError, match="delimiter"):
            load_config(yaml_path)

    def test_format_on_non_temporal_column(self, tmp_path):
        yaml_path = tmp_path / "bad.yaml"
        yaml_path.write_text(
            "columns:\n  a:\n    type: integer\n    format: yyyy\n", encoding="utf-8",
        )
        with pytest.raises(InvalidConfigurationError, match="date format"):
            load_config(yaml_path)
