"""
Format catalog for tabload.

Holds the process-wide, immutable tables used while loading delimited text:

- Ordered candidate formats for dates, date-times and times. The order is
  part of the contract: the detector returns the *first* candidate that
  parses a sample, so specific patterns sit ahead of ambiguous ones.
- Composite fallback formats that try every candidate of a kind.
- Boolean token vocabularies (full and detection-restricted).
- Missing-value sentinel tokens.

Everything here is built once at import time and never mutated.

Pattern language accepted by ``DateTimeFormat``:

    yyyy  4-digit year          yy    2-digit year (2000-2099)
    MMM   English month abbr.   MM/M  month, 2 digits / 1-2 digits
    dd/d  day of month          HH/H  hour of day (0-23)
    hh/h  clock hour (1-12)     mm    minute
    ss    second                SSS   milliseconds (exactly 3 digits)
    f     fraction of second, 1-9 digits
    a     AM/PM marker          'x'   quoted literal
    [..]  optional section

Two-letter numeric fields require exactly two digits; one-letter fields
accept one or two. Any other character is matched literally, and a value
must match the whole pattern.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from datetime import date, datetime, time
from typing import Iterable, Union

from tabload.column_types import ColumnType, TEMPORAL_TYPES
from tabload.exceptions import FormatParseError, InvalidArgumentError

logger = logging.getLogger(__name__)

TemporalValue = Union[date, datetime, time]

# ---------------------------------------------------------------------------
# Vocabularies
# ---------------------------------------------------------------------------

# These strings convert to true booleans
TRUE_STRINGS: tuple[str, ...] = ("T", "t", "Y", "y", "TRUE", "true", "1")

# Restricted set used for column type detection, so that 0/1 integer
# columns are not classified as boolean
TRUE_STRINGS_FOR_DETECTION: tuple[str, ...] = ("T", "t", "Y", "y", "TRUE", "true")

# These strings convert to false booleans
FALSE_STRINGS: tuple[str, ...] = ("F", "f", "N", "n", "FALSE", "false", "0")

FALSE_STRINGS_FOR_DETECTION: tuple[str, ...] = ("F", "f", "N", "n", "FALSE", "false")

# Tokens that mean "no value" regardless of the column type
MISSING_INDICATORS: tuple[str, ...] = ("NaN", "*", "NA", "null")


def is_missing(text: str) -> bool:
    """Return True if *text* is one of the missing-value sentinels (exact match)."""
    return text in MISSING_INDICATORS


def parse_boolean(text: str) -> bool:
    """Convert a token to a bool using the full vocabulary.

    Raises:
        FormatParseError: If *text* is in neither vocabulary.
    """
    if text in TRUE_STRINGS:
        return True
    if text in FALSE_STRINGS:
        return False
    raise FormatParseError(f"Not a boolean token: {text!r}")


# ---------------------------------------------------------------------------
# Pattern compilation
# ---------------------------------------------------------------------------

_MONTH_ABBRS: tuple[str, ...] = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

# (letter, width) -> (group name, regex)
_FIELDS: dict[tuple[str, int], tuple[str, str]] = {
    ("y", 4): ("year", r"\d{4}"),
    ("y", 2): ("year2", r"\d{2}"),
    ("M", 3): ("month_abbr", "|".join(_MONTH_ABBRS)),
    ("M", 2): ("month", r"\d{2}"),
    ("M", 1): ("month", r"\d{1,2}"),
    ("d", 2): ("day", r"\d{2}"),
    ("d", 1): ("day", r"\d{1,2}"),
    ("H", 2): ("hour", r"\d{2}"),
    ("H", 1): ("hour", r"\d{1,2}"),
    ("h", 2): ("hour12", r"\d{2}"),
    ("h", 1): ("hour12", r"\d{1,2}"),
    ("m", 2): ("minute", r"\d{2}"),
    ("s", 2): ("second", r"\d{2}"),
    ("S", 3): ("millis", r"\d{3}"),
    ("f", 1): ("fraction", r"\d{1,9}"),
    ("a", 1): ("ampm", "AM|PM"),
}

_PATTERN_LETTERS = frozenset(letter for letter, _ in _FIELDS)

# Fields each kind needs to build its value
_REQUIRED_FIELDS: dict[ColumnType, tuple[tuple[str, ...], ...]] = {
    ColumnType.LOCAL_DATE: (("year", "year2"), ("month", "month_abbr"), ("day",)),
    ColumnType.LOCAL_DATE_TIME: (
        ("year", "year2"), ("month", "month_abbr"), ("day",), ("hour", "hour12"),
    ),
    ColumnType.LOCAL_TIME: (("hour", "hour12"), ("minute",)),
}

# A compiled pattern is a list of nodes:
#   ("literal", text) | ("field", letter, width) | ("optional", [nodes])
_Node = tuple


def _tokenize(pattern: str) -> list[_Node]:
    """Split a pattern into literal, field and optional-section nodes."""
    stack: list[list[_Node]] = [[]]
    i = 0
    while i < len(pattern):
        ch = pattern[i]
        if ch == "'":
            end = pattern.find("'", i + 1)
            if end < 0:
                raise InvalidArgumentError(f"Unterminated quote in pattern {pattern!r}")
            stack[-1].append(("literal", pattern[i + 1:end]))
            i = end + 1
        elif ch == "[":
            stack.append([])
            i += 1
        elif ch == "]":
            if len(stack) == 1:
                raise InvalidArgumentError(f"Unbalanced ']' in pattern {pattern!r}")
            section = stack.pop()
            stack[-1].append(("optional", section))
            i += 1
        elif ch in _PATTERN_LETTERS:
            j = i
            while j < len(pattern) and pattern[j] == ch:
                j += 1
            width = j - i
            if (ch, width) not in _FIELDS:
                raise InvalidArgumentError(
                    f"Unsupported field {pattern[i:j]!r} in pattern {pattern!r}"
                )
            stack[-1].append(("field", ch, width))
            i = j
        else:
            stack[-1].append(("literal", ch))
            i += 1
    if len(stack) != 1:
        raise InvalidArgumentError(f"Unbalanced '[' in pattern {pattern!r}")
    return stack[0]


def _to_regex(nodes: list[_Node], seen: set[str]) -> str:
    parts: list[str] = []
    for node in nodes:
        if node[0] == "literal":
            parts.append(re.escape(node[1]))
        elif node[0] == "optional":
            parts.append(f"(?:{_to_regex(node[1], seen)})?")
        else:
            group, regex = _FIELDS[(node[1], node[2])]
            if group in seen:
                # Repeated field: must agree with the first occurrence
                parts.append(f"(?P={group})")
            else:
                seen.add(group)
                parts.append(f"(?P<{group}>{regex})")
    return "".join(parts)


# ---------------------------------------------------------------------------
# Formats
# ---------------------------------------------------------------------------

class BaseFormat(ABC):
    """A textual format for one temporal kind.

    Subclasses must implement parse() and format(). ``kind`` is one of the
    temporal ColumnTypes and decides the type of the parsed value.
    """

    kind: ColumnType
    name: str

    @abstractmethod
    def parse(self, text: str) -> TemporalValue:
        """Parse *text*, raising FormatParseError if it does not match."""

    @abstractmethod
    def format(self, value: TemporalValue) -> str:
        """Render *value* as text."""

    def matches(self, text: str) -> bool:
        try:
            self.parse(text)
        except FormatParseError:
            return False
        return True


def _check_kind(kind: ColumnType) -> ColumnType:
    if kind not in TEMPORAL_TYPES:
        raise InvalidArgumentError(
            f"A format needs a temporal kind (LOCAL_DATE, LOCAL_DATE_TIME, "
            f"LOCAL_TIME), got {kind!r}"
        )
    return kind


class DateTimeFormat(BaseFormat):
    """One literal date/time pattern, compiled to an anchored regex."""

    __slots__ = ("pattern", "kind", "name", "_nodes", "_regex", "_groups")

    def __init__(self, pattern: str, kind: ColumnType, name: str | None = None) -> None:
        self.kind = _check_kind(kind)
        self.pattern = pattern
        self.name = name or pattern
        self._nodes = _tokenize(pattern)
        groups: set[str] = set()
        self._regex = re.compile(_to_regex(self._nodes, groups), re.ASCII)
        self._groups = frozenset(groups)
        for alternatives in _REQUIRED_FIELDS[kind]:
            if not self._groups.intersection(alternatives):
                raise InvalidArgumentError(
                    f"Pattern {pattern!r} lacks a {'/'.join(alternatives)} field "
                    f"required for {kind.name}"
                )

    def __repr__(self) -> str:
        return f"DateTimeFormat({self.pattern!r}, {self.kind.name})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DateTimeFormat):
            return NotImplemented
        return (self.pattern, self.kind) == (other.pattern, other.kind)

    def __hash__(self) -> int:
        return hash((self.pattern, self.kind))

    def parse(self, text: str) -> TemporalValue:
        m = self._regex.fullmatch(text)
        if m is None:
            raise FormatParseError(f"{text!r} does not match pattern {self.pattern!r}")
        try:
            return self._build(m.groupdict())
        except ValueError as e:
            raise FormatParseError(
                f"{text!r} matches pattern {self.pattern!r} but is invalid: {e}"
            ) from e

    def _build(self, g: dict[str, str | None]) -> TemporalValue:
        hour = minute = second = micro = 0
        if g.get("hour") is not None:
            hour = int(g["hour"])
        elif g.get("hour12") is not None:
            hour12 = int(g["hour12"])
            if not 1 <= hour12 <= 12:
                raise ValueError(f"clock hour must be in 1..12, got {hour12}")
            hour = hour12 % 12 + (12 if g.get("ampm") == "PM" else 0)
        if g.get("minute") is not None:
            minute = int(g["minute"])
        if g.get("second") is not None:
            second = int(g["second"])
        if g.get("millis") is not None:
            micro = int(g["millis"]) * 1000
        elif g.get("fraction") is not None:
            micro = int(g["fraction"][:6].ljust(6, "0"))

        if self.kind is ColumnType.LOCAL_TIME:
            return time(hour, minute, second, micro)

        if g.get("year") is not None:
            year = int(g["year"])
        else:
            year = 2000 + int(g["year2"])
        if g.get("month_abbr") is not None:
            month = _MONTH_ABBRS.index(g["month_abbr"]) + 1
        else:
            month = int(g["month"])
        day = int(g["day"])

        if self.kind is ColumnType.LOCAL_DATE:
            return date(year, month, day)
        return datetime(year, month, day, hour, minute, second, micro)

    def format(self, value: TemporalValue) -> str:
        return self._render(self._nodes, value)

    def _render(self, nodes: list[_Node], value: TemporalValue) -> str:
        out: list[str] = []
        for node in nodes:
            if node[0] == "literal":
                out.append(node[1])
            elif node[0] == "optional":
                # Omitted when every field inside is zero, e.g. ISO seconds.
                # A forced SSS suffix already carries the sub-second part.
                ignore = "f" if "millis" in self._groups else ""
                if _section_has_value(node[1], value, ignore):
                    out.append(self._render(node[1], value))
            else:
                out.append(_render_field(node[1], node[2], value))
        return "".join(out)


def _field_value(letter: str, value: TemporalValue) -> int:
    if letter == "s":
        return getattr(value, "second", 0)
    if letter in ("S", "f"):
        return getattr(value, "microsecond", 0)
    if letter == "m":
        return getattr(value, "minute", 0)
    return 1


def _section_has_value(nodes: list[_Node], value: TemporalValue, ignore: str = "") -> bool:
    for node in nodes:
        if node[0] == "field" and node[1] not in ignore and _field_value(node[1], value):
            return True
        if node[0] == "optional" and _section_has_value(node[1], value, ignore):
            return True
    return False


def _render_field(letter: str, width: int, value: TemporalValue) -> str:
    if letter == "y":
        return f"{value.year % 100:02d}" if width == 2 else f"{value.year:04d}"
    if letter == "M":
        if width == 3:
            return _MONTH_ABBRS[value.month - 1]
        return f"{value.month:0{width}d}"
    if letter == "d":
        return f"{value.day:0{width}d}"
    if letter == "H":
        return f"{value.hour:0{width}d}"
    if letter == "h":
        return f"{value.hour % 12 or 12:0{width}d}"
    if letter == "m":
        return f"{value.minute:02d}"
    if letter == "s":
        return f"{value.second:02d}"
    if letter == "S":
        return f"{value.microsecond // 1000:03d}"
    if letter == "f":
        return f"{value.microsecond:06d}".rstrip("0") or "0"
    if letter == "a":
        return "PM" if value.hour >= 12 else "AM"
    raise InvalidArgumentError(f"Cannot render field {letter * width!r}")


class CompositeFormat(BaseFormat):
    """Tries each member format in order; the first successful parse wins.

    Used as the fallback when no single candidate matched a sample during
    detection. Rendering uses the first member.
    """

    __slots__ = ("formats", "kind", "name")

    def __init__(
        self, formats: Iterable[BaseFormat], kind: ColumnType, name: str,
    ) -> None:
        self.kind = _check_kind(kind)
        self.formats: tuple[BaseFormat, ...] = tuple(formats)
        self.name = name
        if not self.formats:
            raise InvalidArgumentError(f"Composite format {name!r} has no members")

    def __repr__(self) -> str:
        return f"CompositeFormat({self.name!r}, {len(self.formats)} formats)"

    def parse(self, text: str) -> TemporalValue:
        for fmt in self.formats:
            try:
                return fmt.parse(text)
            except FormatParseError:
                continue
        raise FormatParseError(
            f"{text!r} does not match any of the {len(self.formats)} "
            f"formats in {self.name}"
        )

    def format(self, value: TemporalValue) -> str:
        return self.formats[0].format(value)


# ---------------------------------------------------------------------------
# Date formats
# ---------------------------------------------------------------------------

_D = ColumnType.LOCAL_DATE
_DT = ColumnType.LOCAL_DATE_TIME
_T = ColumnType.LOCAL_TIME

YYYYMMDD = DateTimeFormat("yyyyMMdd", _D)
MM_SLASH_DD_SLASH_YYYY = DateTimeFormat("MM/dd/yyyy", _D)
MM_HYPHEN_DD_HYPHEN_YYYY = DateTimeFormat("MM-dd-yyyy", _D)
MM_DOT_DD_DOT_YYYY = DateTimeFormat("MM.dd.yyyy", _D)
YYYY_HYPHEN_MM_HYPHEN_DD = DateTimeFormat("yyyy-MM-dd", _D)
YYYY_SLASH_MM_SLASH_DD = DateTimeFormat("yyyy/MM/dd", _D)
DD_SLASH_MMM_SLASH_YYYY = DateTimeFormat("dd/MMM/yyyy", _D)
DD_HYPHEN_MMM_HYPHEN_YYYY = DateTimeFormat("dd-MMM-yyyy", _D)
M_SLASH_D_SLASH_YYYY = DateTimeFormat("M/d/yyyy", _D)
M_SLASH_D_SLASH_YY = DateTimeFormat("M/d/yy", _D)
MMM_SLASH_DD_SLASH_YYYY = DateTimeFormat("MMM/dd/yyyy", _D)
MMM_HYPHEN_DD_HYPHEN_YYYY = DateTimeFormat("MMM-dd-yyyy", _D)
MMM_SLASH_DD_SLASH_YY = DateTimeFormat("MMM/dd/yy", _D)
MMM_HYPHEN_DD_HYPHEN_YY = DateTimeFormat("MMM-dd-yy", _D)
MMM_SLASH_D_SLASH_YYYY = DateTimeFormat("MMM/d/yyyy", _D)
MMM_SPACE_DD_COMMA_SPACE_YYYY = DateTimeFormat("MMM dd, yyyy", _D)
MMM_SPACE_D_COMMA_SPACE_YYYY = DateTimeFormat("MMM d, yyyy", _D)

# Detection order: numeric slash/hyphen/dot month-first patterns come
# before the month-name ones; a digits-only month can never satisfy MMM.
DATE_FORMATS: tuple[DateTimeFormat, ...] = (
    YYYYMMDD,
    MM_SLASH_DD_SLASH_YYYY,
    MM_HYPHEN_DD_HYPHEN_YYYY,
    MM_DOT_DD_DOT_YYYY,
    YYYY_HYPHEN_MM_HYPHEN_DD,
    YYYY_SLASH_MM_SLASH_DD,
    DD_SLASH_MMM_SLASH_YYYY,
    DD_HYPHEN_MMM_HYPHEN_YYYY,
    M_SLASH_D_SLASH_YYYY,
    M_SLASH_D_SLASH_YY,
    MMM_SLASH_DD_SLASH_YYYY,
    MMM_HYPHEN_DD_HYPHEN_YYYY,
    MMM_SLASH_DD_SLASH_YY,
    MMM_HYPHEN_DD_HYPHEN_YY,
    MMM_SLASH_D_SLASH_YYYY,
    MMM_SPACE_DD_COMMA_SPACE_YYYY,
    MMM_SPACE_D_COMMA_SPACE_YYYY,
)

# ---------------------------------------------------------------------------
# Date-time formats
# ---------------------------------------------------------------------------

YYYY_MM_DD_HH_MM_SS = DateTimeFormat("yyyy-MM-dd HH:mm:ss", _DT)
YYYY_MM_DD_HH_MM_SS_SSS = DateTimeFormat("yyyy-MM-dd HH:mm:ss.SSS", _DT)
MM_DD_YYYY_HH_MM_SS_AMPM = DateTimeFormat("MM/dd/yyyy hh:mm:ss a", _DT)
DD_MMM_YYYY_HH_MM = DateTimeFormat("dd-MMM-yyyy HH:mm", _DT)
ISO_LOCAL_DATE_TIME = DateTimeFormat(
    "yyyy-MM-dd'T'HH:mm[:ss[.f]]", _DT, name="ISO_LOCAL_DATE_TIME",
)
ISO_LOCAL_DATE_TIME_MILLIS = DateTimeFormat(
    "yyyy-MM-dd'T'HH:mm[:ss[.f]].SSS", _DT, name="ISO_LOCAL_DATE_TIME_MILLIS",
)

DATE_TIME_FORMATS: tuple[DateTimeFormat, ...] = (
    YYYY_MM_DD_HH_MM_SS,
    YYYY_MM_DD_HH_MM_SS_SSS,
    MM_DD_YYYY_HH_MM_SS_AMPM,
    DD_MMM_YYYY_HH_MM,
    ISO_LOCAL_DATE_TIME,
    ISO_LOCAL_DATE_TIME_MILLIS,
)

# ---------------------------------------------------------------------------
# Time formats
# ---------------------------------------------------------------------------

HH_MM_SS_SSS = DateTimeFormat("HH:mm:ss.SSS", _T)
HH_MM_SS_AMPM = DateTimeFormat("hh:mm:ss a", _T)
H_MM_SS_AMPM = DateTimeFormat("h:mm:ss a", _T)
ISO_LOCAL_TIME = DateTimeFormat("HH:mm[:ss[.f]]", _T, name="ISO_LOCAL_TIME")
HH_MM_AMPM = DateTimeFormat("hh:mm a", _T)
H_MM_AMPM = DateTimeFormat("h:mm a", _T)
# Compact 24-hour time; conversion only, too ambiguous for detection
HHMM = DateTimeFormat("HHmm", _T)

TIME_FORMATS: tuple[DateTimeFormat, ...] = (
    HH_MM_SS_SSS,
    HH_MM_SS_AMPM,
    H_MM_SS_AMPM,
    ISO_LOCAL_TIME,
    HH_MM_AMPM,
    H_MM_AMPM,
)

# ---------------------------------------------------------------------------
# Composite fallbacks
# ---------------------------------------------------------------------------

DATE_FORMAT = CompositeFormat(DATE_FORMATS, _D, name="DATE_FORMAT")

DATE_TIME_FORMAT = CompositeFormat(
    (
        MM_DD_YYYY_HH_MM_SS_AMPM,
        DD_MMM_YYYY_HH_MM,
        YYYY_MM_DD_HH_MM_SS_SSS,
        YYYY_MM_DD_HH_MM_SS,
        ISO_LOCAL_DATE_TIME,
        ISO_LOCAL_DATE_TIME_MILLIS,
    ),
    _DT,
    name="DATE_TIME_FORMAT",
)

TIME_FORMAT = CompositeFormat(
    (HH_MM_AMPM, HH_MM_SS_AMPM, H_MM_SS_AMPM, HH_MM_SS_SSS, ISO_LOCAL_TIME, H_MM_AMPM, HHMM),
    _T,
    name="TIME_FORMAT",
)

# Same as TIME_FORMAT without HHmm; used by column type detection
TIME_DETECTION_FORMAT = CompositeFormat(
    (HH_MM_AMPM, HH_MM_SS_AMPM, H_MM_SS_AMPM, HH_MM_SS_SSS, ISO_LOCAL_TIME, H_MM_AMPM),
    _T,
    name="TIME_DETECTION_FORMAT",
)

FORMATS_BY_KIND: dict[ColumnType, tuple[DateTimeFormat, ...]] = {
    ColumnType.LOCAL_DATE: DATE_FORMATS,
    ColumnType.LOCAL_DATE_TIME: DATE_TIME_FORMATS,
    ColumnType.LOCAL_TIME: TIME_FORMATS,
}

FALLBACK_BY_KIND: dict[ColumnType, CompositeFormat] = {
    ColumnType.LOCAL_DATE: DATE_FORMAT,
    ColumnType.LOCAL_DATE_TIME: DATE_TIME_FORMAT,
    ColumnType.LOCAL_TIME: TIME_FORMAT,
}


def candidates_for(kind: ColumnType) -> tuple[DateTimeFormat, ...]:
    """Ordered detection candidates for a temporal kind."""
    try:
        return FORMATS_BY_KIND[kind]
    except KeyError:
        raise InvalidArgumentError(f"No format candidates for {kind!r}") from None


def fallback_for(kind: ColumnType) -> CompositeFormat:
    """Composite fallback format for a temporal kind."""
    try:
        return FALLBACK_BY_KIND[kind]
    except KeyError:
        raise InvalidArgumentError(f"No fallback format for {kind!r}") from None


def compile_format(pattern: str, kind: ColumnType) -> DateTimeFormat:
    """Return the catalog format for *pattern* and *kind*, or compile a new one.

    Catalog members are matched by pattern or by name (e.g.
    ``"ISO_LOCAL_TIME"``), so configs loaded from YAML get the shared
    instances back.
    """
    for fmt in (*FORMATS_BY_KIND.get(kind, ()), HHMM):
        if fmt.kind is kind and pattern in (fmt.pattern, fmt.name):
            return fmt
    logger.debug("Compiling custom %s format %r", kind.name, pattern)
    return DateTimeFormat(pattern, kind)
