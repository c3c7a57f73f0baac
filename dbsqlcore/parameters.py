"""Query parameters, their SQL type inference and conversion for the server."""

from __future__ import annotations

import dataclasses
import enum
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Iterable

from dbsqlcore.exceptions import ERR_MIXED_NAMED_AND_POSITIONAL_PARAMETERS, DriverError


class SqlType(enum.IntEnum):
    UNKNOWN = 0
    STRING = 1
    DATE = 2
    TIMESTAMP = 3
    FLOAT = 4
    DECIMAL = 5
    DOUBLE = 6
    INTEGER = 7
    BIGINT = 8
    SMALLINT = 9
    TINYINT = 10
    BOOLEAN = 11
    INTERVAL_MONTH = 12
    INTERVAL_DAY = 13
    VOID = 14

    def __str__(self) -> str:
        return _SQL_TYPE_NAMES.get(self, "unknown")


_SQL_TYPE_NAMES = {
    SqlType.STRING: "STRING",
    SqlType.DATE: "DATE",
    SqlType.TIMESTAMP: "TIMESTAMP",
    SqlType.FLOAT: "FLOAT",
    SqlType.DECIMAL: "DECIMAL",
    SqlType.DOUBLE: "DOUBLE",
    SqlType.INTEGER: "INTEGER",
    SqlType.BIGINT: "BIGINT",
    SqlType.SMALLINT: "SMALLINT",
    SqlType.TINYINT: "TINYINT",
    SqlType.BOOLEAN: "BOOLEAN",
    SqlType.INTERVAL_MONTH: "INTERVAL MONTH",
    SqlType.INTERVAL_DAY: "INTERVAL DAY",
    SqlType.VOID: "VOID",
}


@dataclass
class NamedValue:
    """A value bound to a query, by name or by position."""

    value: Any = None
    name: str = ""
    ordinal: int = 0


@dataclass
class Parameter:
    """A query parameter with an optional explicit SQL type."""

    name: str = ""
    type: SqlType = SqlType.UNKNOWN
    value: Any = None


@dataclass(frozen=True)
class SparkParameter:
    """A parameter in the form sent to the server."""

    name: str | None
    type: str
    value: str | None


@dataclass(frozen=True)
class Result:
    """Outcome of a statement that returns no rows."""

    rows_affected: int = 0
    last_insert_id: int = 0


def values_to_parameters(values: Iterable[NamedValue]) -> list[Parameter]:
    """Turn bound values into parameters, unwrapping values that already are parameters."""
    params = []
    for named in values:
        if isinstance(named.value, Parameter):
            inner = named.value
            params.append(Parameter(name=inner.name, type=inner.type, value=inner.value))
        else:
            params.append(Parameter(name=named.name, value=named.value))
    return params


def _format_float(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    return format(Decimal(repr(value)).normalize(), "f")


def _format_timestamp(value: datetime) -> str:
    if value.tzinfo is None or value.utcoffset() is None:
        value = value.replace(tzinfo=timezone.utc)
    text = (
        f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
        f"T{value.hour:02d}:{value.minute:02d}:{value.second:02d}"
    )
    if value.microsecond:
        text += f".{value.microsecond:06d}".rstrip("0")
    offset = value.utcoffset()
    minutes = int(offset.total_seconds()) // 60
    if minutes == 0:
        return text + "Z"
    sign = "+" if minutes > 0 else "-"
    hours, mins = divmod(abs(minutes), 60)
    return f"{text}{sign}{hours:02d}:{mins:02d}"


def infer_type(parameter: Parameter) -> Parameter:
    """Return a copy of the parameter with its SQL type inferred and value rendered as text."""
    value = parameter.value
    if isinstance(value, bool):
        rendered, sql_type = ("true" if value else "false"), SqlType.BOOLEAN
    elif isinstance(value, str):
        rendered, sql_type = value, SqlType.STRING
    elif isinstance(value, int):
        rendered, sql_type = str(value), SqlType.INTEGER
    elif isinstance(value, float):
        rendered, sql_type = _format_float(value), SqlType.FLOAT
    elif isinstance(value, datetime):
        rendered, sql_type = _format_timestamp(value), SqlType.TIMESTAMP
    elif value is None:
        rendered, sql_type = None, SqlType.VOID
    else:
        rendered, sql_type = str(value), SqlType.STRING
    return dataclasses.replace(parameter, value=rendered, type=sql_type)


def infer_types(parameters: Iterable[Parameter]) -> list[Parameter]:
    """Infer the type of every parameter that has none given."""
    return [infer_type(p) if p.type == SqlType.UNKNOWN else p for p in parameters]


def convert_to_spark_params(values: Iterable[NamedValue]) -> list[SparkParameter]:
    """Convert bound values to server parameters; named and positional may not be mixed."""
    spark_params = []
    has_named = has_positional = False
    for param in infer_types(values_to_parameters(values)):
        if param.type == SqlType.VOID or param.value is None:
            text = None
        else:
            text = param.value if isinstance(param.value, str) else str(param.value)

        if param.type == SqlType.DECIMAL:
            type_name = infer_decimal_type(text or "")
        else:
            type_name = str(param.type)

        if param.name:
            has_named = True
        else:
            has_positional = True
        if has_named and has_positional:
            raise DriverError(ERR_MIXED_NAMED_AND_POSITIONAL_PARAMETERS)

        spark_params.append(SparkParameter(name=param.name or None, type=type_name, value=text))
    return spark_params


def infer_decimal_type(value: str) -> str:
    """Return the DECIMAL(precision,scale) type that fits the decimal text."""
    if value.startswith("0."):
        overall = after = len(value) - 2
    elif "." not in value:
        overall, after = len(value), 0
    else:
        whole, fraction = value.split(".")[:2]
        overall, after = len(whole) + len(fraction), len(fraction)
    return f"DECIMAL({overall},{after})"