"""
Format and column type detection for tabload.

Two detectors live here:

- ``detect_format(kind, sample)`` picks the date/time format for a temporal
  column from a single representative value. Candidates are tried in
  catalog order and the first one that parses wins; if none does, the
  kind's composite fallback is returned instead of failing.
- ``detect_column_type(values)`` picks a ColumnType for a column of raw
  tokens, checking types from most to least specific.

Detection algorithm (formats):
1. Look up the ordered candidate list for the kind.
2. Try ``candidate.parse(sample)`` for each, in order.
3. Return the first candidate that does not raise FormatParseError.
4. Fallback: return the composite format for the kind.

``detect_format`` is meant to run once per column at the start of a bulk
load, not once per value; the chosen format is then reused for every row.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Iterable

from tabload.column_types import INT_RANGES, TEMPORAL_TYPES, ColumnType
from tabload.exceptions import FormatParseError, InvalidArgumentError
from tabload.formats import (
    DATE_FORMAT,
    DATE_TIME_FORMAT,
    FALSE_STRINGS_FOR_DETECTION,
    TIME_DETECTION_FORMAT,
    TRUE_STRINGS_FOR_DETECTION,
    BaseFormat,
    candidates_for,
    fallback_for,
    is_missing,
)

logger = logging.getLogger(__name__)

# Plain decimal literals only; int() and float() would also accept "1_000",
# padded values and "inf"
_INT_RE = re.compile(r"[-+]?\d+", re.ASCII)
_FLOAT_RE = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?", re.ASCII)


def detect_format(kind: ColumnType, sample: str) -> BaseFormat:
    """Return the first catalog format of *kind* that parses *sample*.

    Args:
        kind: One of LOCAL_DATE, LOCAL_DATE_TIME, LOCAL_TIME.
        sample: A representative raw value from the column. An empty string
            matches nothing and yields the fallback.

    Returns:
        The matching catalog format, or the kind's composite fallback when
        no single candidate matches.

    Raises:
        InvalidArgumentError: If *kind* is not a temporal type.
    """
    if kind not in TEMPORAL_TYPES:
        raise InvalidArgumentError(
            f"Format detection only applies to temporal types, got {kind!r}"
        )

    for candidate in candidates_for(kind):
        try:
            candidate.parse(sample)
        except FormatParseError:
            continue
        logger.debug("Detected %s format %r for sample %r", kind.name, candidate.name, sample)
        return candidate

    fallback = fallback_for(kind)
    logger.debug(
        "No single %s format matched %r; using %s", kind.name, sample, fallback.name,
    )
    return fallback


def date_format_for(sample: str) -> BaseFormat:
    return detect_format(ColumnType.LOCAL_DATE, sample)


def date_time_format_for(sample: str) -> BaseFormat:
    return detect_format(ColumnType.LOCAL_DATE_TIME, sample)


def time_format_for(sample: str) -> BaseFormat:
    return detect_format(ColumnType.LOCAL_TIME, sample)


# ---------------------------------------------------------------------------
# Column type detection
# ---------------------------------------------------------------------------

def _is_boolean(text: str) -> bool:
    return text in TRUE_STRINGS_FOR_DETECTION or text in FALSE_STRINGS_FOR_DETECTION


def _int_checker(column_type: ColumnType) -> Callable[[str], bool]:
    low, high = INT_RANGES[column_type]

    def check(text: str) -> bool:
        if not _INT_RE.fullmatch(text):
            return False
        return low <= int(text) <= high

    return check


def _is_float(text: str) -> bool:
    return _FLOAT_RE.fullmatch(text) is not None


# Checked in order; the first type accepting every value wins.
# CATEGORY accepts anything and closes the list.
_TYPE_CHECKS: tuple[tuple[ColumnType, Callable[[str], bool]], ...] = (
    (ColumnType.LOCAL_DATE_TIME, DATE_TIME_FORMAT.matches),
    (ColumnType.LOCAL_TIME, TIME_DETECTION_FORMAT.matches),
    (ColumnType.LOCAL_DATE, DATE_FORMAT.matches),
    (ColumnType.BOOLEAN, _is_boolean),
    (ColumnType.SHORT_INT, _int_checker(ColumnType.SHORT_INT)),
    (ColumnType.INTEGER, _int_checker(ColumnType.INTEGER)),
    (ColumnType.LONG_INT, _int_checker(ColumnType.LONG_INT)),
    (ColumnType.FLOAT, _is_float),
)


def detect_column_type(values: Iterable[str]) -> ColumnType:
    """Infer the ColumnType of a column from its raw tokens.

    Missing-value sentinels and empty strings are ignored. Booleans are
    detected with the restricted vocabulary (no bare ``1``/``0``), and times
    with the detection composite (no compact ``HHmm``), so numeric columns
    stay numeric.

    Returns:
        The most specific type accepting every present value, or CATEGORY
        if none does or there are no present values.
    """
    present = [v for v in values if v != "" and not is_missing(v)]
    if not present:
        return ColumnType.CATEGORY

    remaining = list(_TYPE_CHECKS)
    for value in present:
        remaining = [(t, check) for t, check in remaining if check(value)]
        if not remaining:
            return ColumnType.CATEGORY
    return remaining[0][0]
