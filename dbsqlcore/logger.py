"""Leveled logging with connection, correlation and query context fields."""

from __future__ import annotations

import json
import logging
import os
import sys
import time
from datetime import datetime, timezone
from typing import Any, TextIO

TRACE = 5
PANIC = logging.CRITICAL + 5
DISABLED = logging.CRITICAL + 100

logging.addLevelName(TRACE, "TRACE")
logging.addLevelName(PANIC, "PANIC")

_LEVELS = {
    "trace": TRACE,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
    "panic": PANIC,
    "disabled": DISABLED,
}
_LEVEL_NAMES = {number: name for name, number in _LEVELS.items()}


def _parse_level(name: str) -> int:
    try:
        return _LEVELS[name.strip().lower()]
    except KeyError:
        raise ValueError(f"unknown log level {name!r}") from None


def _level_name(levelno: int) -> str:
    return _LEVEL_NAMES.get(levelno, logging.getLevelName(levelno).lower())


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {"level": _level_name(record.levelno)}
        entry.update(getattr(record, "dbsql_fields", {}))
        entry["time"] = datetime.fromtimestamp(record.created, timezone.utc).isoformat()
        entry["message"] = record.getMessage()
        return json.dumps(entry, default=str)


class _ConsoleFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        level = _level_name(record.levelno)[:3].upper()
        fields = " ".join(
            f"{key}={value}" for key, value in getattr(record, "dbsql_fields", {}).items()
        )
        return " ".join(part for part in (stamp, level, record.getMessage(), fields) if part)


_base = logging.getLogger("dbsqlcore")
_base.propagate = False
_handler = logging.StreamHandler(sys.stderr)
if sys.stdout.isatty() and sys.platform != "win32":
    _handler.setFormatter(_ConsoleFormatter())
else:
    _handler.setFormatter(_JsonFormatter())
_base.addHandler(_handler)


def _format_elapsed(seconds: float) -> str:
    if seconds < 1e-3:
        return f"{seconds * 1e6:.3f}µs"
    if seconds < 1:
        return f"{seconds * 1e3:.3f}ms"
    return f"{seconds:.3f}s"


class DBSQLLogger:
    """A logger that attaches a fixed set of fields to every message."""

    def __init__(self, fields: dict[str, Any] | None = None) -> None:
        self.fields = dict(fields or {})

    def log(self, level: int, msg: str, *args: Any, **fields: Any) -> None:
        if _base.isEnabledFor(level):
            _base.log(level, msg, *args, extra={"dbsql_fields": {**self.fields, **fields}})

    def trace(self, msg: str, *args: Any, **fields: Any) -> None:
        self.log(TRACE, msg, *args, **fields)

    def debug(self, msg: str, *args: Any, **fields: Any) -> None:
        self.log(logging.DEBUG, msg, *args, **fields)

    def info(self, msg: str, *args: Any, **fields: Any) -> None:
        self.log(logging.INFO, msg, *args, **fields)

    def warn(self, msg: str, *args: Any, **fields: Any) -> None:
        self.log(logging.WARNING, msg, *args, **fields)

    def error(self, msg: str, *args: Any, **fields: Any) -> None:
        self.log(logging.ERROR, msg, *args, **fields)

    def err(self, error: BaseException | None, msg: str, *args: Any) -> None:
        """Log at error level with the error attached, or at info level if there is none."""
        if error is None:
            self.info(msg, *args)
        else:
            self.error(msg, *args, error=str(error))

    def with_fields(self, **fields: Any) -> DBSQLLogger:
        return DBSQLLogger({**self.fields, **fields})

    def track(self, msg: str) -> tuple[str, float]:
        """Return the message with a start time, for use with duration()."""
        return msg, time.monotonic()

    def duration(self, msg: str, start: float) -> None:
        """Log at debug level the time elapsed since start."""
        self.debug("%s elapsed time: %s", msg, _format_elapsed(time.monotonic() - start))


_default = DBSQLLogger()


def get_logger() -> DBSQLLogger:
    """Return the package-wide logger."""
    return _default


def set_log_level(level: str) -> None:
    """Set the log level: trace, debug, info, warn, error, fatal, panic or disabled."""
    _base.setLevel(_parse_level(level))


def set_log_output(stream: TextIO) -> None:
    """Send log output to the given stream."""
    _handler.setStream(stream)


def with_context(connection_id: str, correlation_id: str, query_id: str) -> DBSQLLogger:
    """Return a logger that tags messages with connection, correlation and query ids."""
    return DBSQLLogger({"connId": connection_id, "corrId": correlation_id, "queryId": query_id})


def track(msg: str) -> tuple[str, float]:
    return _default.track(msg)


def duration(msg: str, start: float) -> None:
    _default.duration(msg, start)


def _configure_from_environment() -> None:
    level = logging.WARNING
    requested = os.environ.get("DATABRICKS_LOG_LEVEL", "")
    if requested:
        try:
            level = _parse_level(requested)
        except ValueError:
            _default.error("log level %s not recognized", requested)
    _base.setLevel(level)
    _default.info("setting log level to %s", _level_name(level))


_configure_from_environment()