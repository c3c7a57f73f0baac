"""Column metadata, result page bounds and conversion of scanned values."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field
from datetime import date, datetime, timezone, tzinfo
from typing import Any

MAX_INT64 = 2**63 - 1

ERR_ROWS_PARSE_VALUE = "databricks: unable to parse %s value '%s' from column %s"

# ISO 8601 allows both the ascii hyphen and the unicode minus sign.
_MINUS_SIGNS = ("-", "\u2212")

_DATE_PATTERN = re.compile(r"(\d{4})-(\d{2})-(\d{2})")
_TIMESTAMP_PATTERN = re.compile(
    r"(\d{4})-(\d{2})-(\d{2}) (\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?"
)

# Database types whose string values are converted to date/time values.
DATE_TIME_TYPES = frozenset({"TIMESTAMP", "DATE"})


class Direction(enum.IntEnum):
    """Where a row lies relative to the current result page."""

    UNKNOWN = 0
    NONE = 1
    FORWARD = 2
    BACK = 3

    def __str__(self) -> str:
        return self.name.capitalize()


@dataclass(frozen=True)
class Delimiter:
    """The span of rows held by a result page."""

    start: int = 0
    count: int = 0

    @property
    def end(self) -> int:
        return self.start + self.count - 1

    def contains(self, row: int) -> bool:
        return self.count > 0 and self.start <= row <= self.end

    def direction(self, row: int) -> Direction:
        """Return which way to move from this page to reach the row."""
        if self.contains(row):
            return Direction.NONE
        if row < self.start:
            return Direction.BACK
        if row > self.end:
            return Direction.FORWARD
        if self.count == 0:
            return Direction.FORWARD
        return Direction.UNKNOWN


class TypeId(enum.IntEnum):
    """Column type identifiers used by the server."""

    BOOLEAN_TYPE = 0
    TINYINT_TYPE = 1
    SMALLINT_TYPE = 2
    INT_TYPE = 3
    BIGINT_TYPE = 4
    FLOAT_TYPE = 5
    DOUBLE_TYPE = 6
    STRING_TYPE = 7
    TIMESTAMP_TYPE = 8
    BINARY_TYPE = 9
    ARRAY_TYPE = 10
    MAP_TYPE = 11
    STRUCT_TYPE = 12
    UNION_TYPE = 13
    USER_DEFINED_TYPE = 14
    DECIMAL_TYPE = 15
    NULL_TYPE = 16
    DATE_TYPE = 17
    VARCHAR_TYPE = 18
    CHAR_TYPE = 19
    INTERVAL_YEAR_MONTH_TYPE = 20
    INTERVAL_DAY_TIME_TYPE = 21


@dataclass(frozen=True)
class ColumnDesc:
    """Description of one result set column."""

    name: str
    type_id: TypeId
    position: int = 0
    comment: str = ""
    type_qualifiers: dict[str, Any] = field(default_factory=dict)


class ScanType(enum.Enum):
    """The native kind of value a column scans into."""

    NULL = "null"
    BOOLEAN = "bool"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    STRING = "str"
    DATETIME = "datetime"
    RAW_BYTES = "bytes"
    UNKNOWN = "any"


_SCAN_TYPES = {
    TypeId.BOOLEAN_TYPE: ScanType.BOOLEAN,
    TypeId.TINYINT_TYPE: ScanType.INT8,
    TypeId.SMALLINT_TYPE: ScanType.INT16,
    TypeId.INT_TYPE: ScanType.INT32,
    TypeId.BIGINT_TYPE: ScanType.INT64,
    TypeId.FLOAT_TYPE: ScanType.FLOAT32,
    TypeId.DOUBLE_TYPE: ScanType.FLOAT64,
    TypeId.NULL_TYPE: ScanType.NULL,
    TypeId.STRING_TYPE: ScanType.STRING,
    TypeId.CHAR_TYPE: ScanType.STRING,
    TypeId.VARCHAR_TYPE: ScanType.STRING,
    TypeId.DATE_TYPE: ScanType.DATETIME,
    TypeId.TIMESTAMP_TYPE: ScanType.DATETIME,
    TypeId.DECIMAL_TYPE: ScanType.RAW_BYTES,
    TypeId.BINARY_TYPE: ScanType.RAW_BYTES,
    TypeId.ARRAY_TYPE: ScanType.RAW_BYTES,
    TypeId.STRUCT_TYPE: ScanType.RAW_BYTES,
    TypeId.MAP_TYPE: ScanType.RAW_BYTES,
    TypeId.UNION_TYPE: ScanType.RAW_BYTES,
    TypeId.USER_DEFINED_TYPE: ScanType.UNKNOWN,
    TypeId.INTERVAL_DAY_TIME_TYPE: ScanType.STRING,
    TypeId.INTERVAL_YEAR_MONTH_TYPE: ScanType.STRING,
}

_UNBOUNDED_LENGTH_TYPES = frozenset(
    {
        TypeId.STRING_TYPE,
        TypeId.VARCHAR_TYPE,
        TypeId.BINARY_TYPE,
        TypeId.ARRAY_TYPE,
        TypeId.MAP_TYPE,
        TypeId.STRUCT_TYPE,
    }
)


class DateTimeParseError(ValueError):
    """Raised when a date or timestamp column value cannot be parsed."""

    def __init__(self, db_type: str, value: Any, column_name: str, cause: BaseException) -> None:
        message = ERR_ROWS_PARSE_VALUE % (db_type, value, column_name)
        super().__init__(f"{message}: {cause}")
        self.db_type = db_type
        self.value = value
        self.column_name = column_name
        self.__cause__ = cause


@dataclass(frozen=True)
class SignedDateTime:
    """A date/time whose year is before year one.

    ``moment`` holds the value with the absolute year; ``year`` is the negative year.
    """

    year: int
    moment: datetime


def is_null(nulls: bytes, position: int) -> bool:
    """Return True if the bit for the position is set in the null bitmap."""
    index = position // 8
    if index < len(nulls):
        return bool(nulls[index] & (1 << (position % 8)))
    return False


def _strip_leading_negative(text: str) -> tuple[str, bool]:
    if len(text) > 1 and text.startswith(_MINUS_SIGNS):
        return text[1:], True
    return text, False


def _parse(db_type: str, text: str, tz: tzinfo) -> datetime:
    if db_type == "DATE":
        match = _DATE_PATTERN.fullmatch(text)
        if match is None:
            raise ValueError(f"cannot parse {text!r} as date")
        year, month, day = (int(part) for part in match.groups())
        date(year, month, day)
        return datetime(year, month, day, tzinfo=tz)

    match = _TIMESTAMP_PATTERN.fullmatch(text)
    if match is None:
        raise ValueError(f"cannot parse {text!r} as timestamp")
    *fields, fraction = match.groups()
    year, month, day, hour, minute, second = (int(part) for part in fields)
    micros = int((fraction or "").ljust(6, "0")[:6])
    return datetime(year, month, day, hour, minute, second, micros, tzinfo=tz)


def handle_datetime(
    value: Any, db_type: str, column_name: str, tz: tzinfo | None = None
) -> Any:
    """Convert a date or timestamp string to a date/time; other values pass unchanged."""
    if db_type not in DATE_TIME_TYPES:
        return value
    location = tz if tz is not None else timezone.utc
    if not isinstance(value, str):
        raise DateTimeParseError(
            db_type, value, column_name, TypeError(f"expected a string, got {type(value).__name__}")
        )
    text, negative = _strip_leading_negative(value)
    try:
        moment = _parse(db_type, text, location)
    except ValueError as exc:
        raise DateTimeParseError(db_type, value, column_name, exc) from exc
    if negative:
        return SignedDateTime(year=-moment.year, moment=moment)
    return moment


def db_type_name(column: ColumnDesc) -> str:
    """Return the database type name of the column, e.g. INT or STRING."""
    return TypeId(column.type_id).name.removesuffix("_TYPE")


def scan_type(column: ColumnDesc) -> ScanType:
    """Return the native kind of value the column scans into."""
    return _SCAN_TYPES.get(column.type_id, ScanType.UNKNOWN)


def column_type_length(column: ColumnDesc) -> tuple[int, bool]:
    """Return the column's length and whether a length applies to its type."""
    if column.type_id in _UNBOUNDED_LENGTH_TYPES:
        return MAX_INT64, True
    return 0, False