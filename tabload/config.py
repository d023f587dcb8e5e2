"""
Parsing configuration for tabload.

A ``ParsingConfiguration`` describes how one delimited source is parsed:
delimiter, header presence, table/file naming, per-column type and
date/time format overrides, an optional positional list of declared column
types, and an optional already-open stream.

Configurations are immutable and are only created through the builder::

    config = (
        ParsingConfiguration.builder()
        .from_file("bus_stops.csv")
        .with_header()
        .column("stop_id").is_of_type(ColumnType.INTEGER)
        .column("opened").is_of_date_format(ColumnType.LOCAL_DATE, "dd/MM/yyyy")
        .build()
    )

By default the configuration has no header and is comma-delimited. If no
table name is set, the file name is used.

This module also maps configurations to and from YAML:

- ParsingConfigModel: Pydantic model of the YAML file.
- load_config(path) -> ParsingConfiguration
- save_config(config, path)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType
from typing import IO, Any, Iterable, Mapping

import yaml
from pydantic import BaseModel, Field, field_validator

from tabload.column_types import ColumnType, TEMPORAL_TYPES
from tabload.exceptions import InvalidArgumentError, InvalidConfigurationError
from tabload.formats import BaseFormat, DateTimeFormat, compile_format

logger = logging.getLogger(__name__)


def _empty_map() -> Mapping[str, Any]:
    return MappingProxyType({})


@dataclass(frozen=True)
class ParsingConfiguration:
    """Immutable description of one ingestion job.

    Attributes:
        delimiter: Single field separator character.
        header: True if the first row holds column names.
        file_name: Path or identifier of the source.
        table_name: Display name; equals ``file_name`` unless set explicitly.
        column_type_overrides: Column name -> forced ColumnType.
        column_format_overrides: Column name -> forced date/time format.
        column_types: Declared types, aligned by position with the source
            columns. Empty when not declared.
        stream: Already-open text source, read instead of ``file_name``.
    """

    delimiter: str = ","
    header: bool = False
    file_name: str | None = None
    table_name: str | None = None
    column_type_overrides: Mapping[str, ColumnType] = field(default_factory=_empty_map, hash=False)
    column_format_overrides: Mapping[str, BaseFormat] = field(default_factory=_empty_map, hash=False)
    column_types: tuple[ColumnType, ...] = ()
    stream: IO[str] | None = field(default=None, compare=False)

    @staticmethod
    def builder() -> ParsingConfigurationBuilder:
        return ParsingConfigurationBuilder()

    @property
    def has_column_types(self) -> bool:
        return len(self.column_types) > 0

    @property
    def has_stream(self) -> bool:
        return self.stream is not None

    def effective_column_type(self, name: str, position: int) -> ColumnType | None:
        """Return the configured type for a column, or None to infer it.

        A named override wins over the positional declared type.
        """
        if name in self.column_type_overrides:
            return self.column_type_overrides[name]
        if 0 <= position < len(self.column_types):
            return self.column_types[position]
        return None

    def format_for(self, name: str) -> BaseFormat | None:
        return self.column_format_overrides.get(name)

    def clone_with_name_file(self, name: str) -> ParsingConfiguration:
        """Create a copy of this configuration for a different file.

        The file name is also used to name the table. All other fields are
        immutable and shared with the original.
        """
        return replace(self, table_name=name, file_name=name)


class ColumnConfigBuilder:
    """Builder for one column's overrides; writes into its parent builder."""

    def __init__(self, column_name: str, parent: ParsingConfigurationBuilder) -> None:
        self._column_name = column_name
        self._parent = parent

    @property
    def column_name(self) -> str:
        return self._column_name

    def is_of_type(self, column_type: ColumnType) -> ParsingConfigurationBuilder:
        self._parent._set_column_type(self._column_name, column_type)
        return self._parent

    def is_of_date_format(
        self, column_type: ColumnType, fmt: BaseFormat | str,
    ) -> ParsingConfigurationBuilder:
        """Force a temporal type and the format used to parse it.

        Args:
            column_type: LOCAL_DATE, LOCAL_DATE_TIME or LOCAL_TIME.
            fmt: A format instance, or a pattern string compiled for
                *column_type*.

        Raises:
            InvalidConfigurationError: If *column_type* is not temporal.
        """
        if column_type not in TEMPORAL_TYPES:
            raise InvalidConfigurationError(
                f"Column '{self._column_name}': a date format can only be set for "
                f"LOCAL_DATE, LOCAL_DATE_TIME or LOCAL_TIME, not {column_type!r}"
            )
        if isinstance(fmt, str):
            fmt = compile_format(fmt, column_type)
        self._parent._set_column_type(self._column_name, column_type)
        self._parent._set_column_format(self._column_name, fmt)
        return self._parent


class ParsingConfigurationBuilder:
    """Mutable accumulator for a ParsingConfiguration.

    Not safe to share between threads; each ingestion job owns its builder.
    """

    def __init__(self) -> None:
        self._column_type_overrides: dict[str, ColumnType] = {}
        self._column_format_overrides: dict[str, BaseFormat] = {}
        self._table_name: str | None = None
        self._file_name: str | None = None
        self._header = False
        self._delimiter = ","
        self._column_types: list[ColumnType] | None = None
        self._stream: IO[str] | None = None

    def column(self, column_name: str) -> ColumnConfigBuilder:
        if not column_name:
            raise InvalidArgumentError("A column override needs a non-empty column name")
        return ColumnConfigBuilder(column_name, self)

    def named(self, table_name: str) -> ParsingConfigurationBuilder:
        """Sets the name of the table."""
        self._table_name = table_name
        return self

    def from_file(self, file_name: str | Path) -> ParsingConfigurationBuilder:
        """Sets the path of the file to parse."""
        self._file_name = str(file_name)
        return self

    def with_header(self) -> ParsingConfigurationBuilder:
        self._header = True
        return self

    def without_header(self) -> ParsingConfigurationBuilder:
        self._header = False
        return self

    def with_delimiter(self, delimiter: str) -> ParsingConfigurationBuilder:
        if len(delimiter) != 1:
            raise InvalidArgumentError(
                f"Delimiter must be a single character, got {delimiter!r}"
            )
        self._delimiter = delimiter
        return self

    def set_column_types(self, column_types: Iterable[ColumnType]) -> ParsingConfigurationBuilder:
        self._column_types = list(column_types)
        return self

    def set_stream(self, stream: IO[str]) -> ParsingConfigurationBuilder:
        self._stream = stream
        return self

    def _set_column_type(self, column_name: str, column_type: ColumnType) -> None:
        self._column_type_overrides[column_name] = column_type

    def _set_column_format(self, column_name: str, fmt: BaseFormat) -> None:
        self._column_format_overrides[column_name] = fmt

    def build(self) -> ParsingConfiguration:
        """Freeze the accumulated settings into a ParsingConfiguration.

        Maps and the declared type list are copied, so later builder calls
        never affect configurations already built.
        """
        config = ParsingConfiguration(
            delimiter=self._delimiter,
            header=self._header,
            file_name=self._file_name,
            table_name=self._table_name or self._file_name,
            column_type_overrides=MappingProxyType(dict(self._column_type_overrides)),
            column_format_overrides=MappingProxyType(dict(self._column_format_overrides)),
            column_types=tuple(self._column_types or ()),
            stream=self._stream,
        )
        logger.debug(
            "Built parsing configuration for %s: delimiter=%r, header=%s, "
            "%d type override(s), %d format override(s), %d declared type(s)",
            config.table_name,
            config.delimiter,
            config.header,
            len(config.column_type_overrides),
            len(config.column_format_overrides),
            len(config.column_types),
        )
        return config


def new_builder() -> ParsingConfigurationBuilder:
    return ParsingConfigurationBuilder()


# ---------------------------------------------------------------------------
# YAML I/O
# ---------------------------------------------------------------------------

class ColumnOverrideModel(BaseModel):
    """Per-column override as stored in YAML."""

    type: ColumnType
    format: str | None = Field(
        None, description="Date/time pattern; only valid for temporal types",
    )

    @field_validator("type", mode="before")
    @classmethod
    def _parse_type(cls, value: Any) -> Any:
        if isinstance(value, str):
            return ColumnType.parse(value)
        return value


class ParsingConfigModel(BaseModel):
    """Top-level YAML schema for a parsing configuration."""

    file_name: str | None = None
    table_name: str | None = None
    delimiter: str = Field(",", min_length=1, max_length=1)
    header: bool = False
    column_types: list[ColumnType] = Field(default_factory=list)
    columns: dict[str, ColumnOverrideModel] = Field(default_factory=dict)

    @field_validator("column_types", mode="before")
    @classmethod
    def _parse_column_types(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [ColumnType.parse(v) if isinstance(v, str) else v for v in value]
        return value


def to_model(config: ParsingConfiguration) -> ParsingConfigModel:
    """Convert a configuration to its YAML model.

    Raises:
        InvalidConfigurationError: If a format override is not backed by a
            single pattern (e.g. a composite format).
    """
    columns: dict[str, ColumnOverrideModel] = {}
    for name, column_type in config.column_type_overrides.items():
        fmt = config.format_for(name)
        pattern = None
        if fmt is not None:
            if not isinstance(fmt, DateTimeFormat):
                raise InvalidConfigurationError(
                    f"Column '{name}': format {fmt!r} has no single pattern and "
                    "cannot be written to a config file"
                )
            pattern = fmt.pattern
        columns[name] = ColumnOverrideModel(type=column_type, format=pattern)
    return ParsingConfigModel(
        file_name=config.file_name,
        table_name=config.table_name,
        delimiter=config.delimiter,
        header=config.header,
        column_types=list(config.column_types),
        columns=columns,
    )


def from_model(model: ParsingConfigModel) -> ParsingConfiguration:
    """Build a configuration from a validated YAML model."""
    builder = ParsingConfigurationBuilder().with_delimiter(model.delimiter)
    if model.header:
        builder.with_header()
    if model.file_name:
        builder.from_file(model.file_name)
    if model.table_name:
        builder.named(model.table_name)
    if model.column_types:
        builder.set_column_types(model.column_types)
    for name, override in model.columns.items():
        if override.format is not None:
            builder.column(name).is_of_date_format(override.type, override.format)
        else:
            builder.column(name).is_of_type(override.type)
    return builder.build()


def load_config(path: str | Path) -> ParsingConfiguration:
    """Load and validate a YAML parsing configuration.

    Raises:
        FileNotFoundError: If *path* does not exist.
        InvalidConfigurationError: If the file is empty or an override is
            inconsistent (e.g. a format on a non-temporal column).
        pydantic.ValidationError: If the YAML does not fit the schema.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    if raw is None:
        raise InvalidConfigurationError(f"Config file is empty: {path}")

    model = ParsingConfigModel.model_validate(raw)
    config = from_model(model)
    logger.info(
        "Loaded config from %s (%d column override(s))",
        path, len(config.column_type_overrides),
    )
    return config


def save_config(config: ParsingConfiguration, path: str | Path) -> None:
    """Write a parsing configuration to YAML.

    The stream, if any, is not written.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    data = to_model(config).model_dump(mode="json")

    with open(path, "w", encoding="utf-8") as f:
        f.write("# tabload parsing configuration\n")
        yaml.safe_dump(
            data,
            f,
            allow_unicode=True,
            default_flow_style=False,
            sort_keys=False,
        )
    logger.info("Saved config to %s", path)
