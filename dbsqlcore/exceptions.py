"""Error types raised by the driver core."""

from __future__ import annotations

ERR_NOT_IMPLEMENTED = "not implemented"
ERR_MIXED_NAMED_AND_POSITIONAL_PARAMETERS = "query has mixed named and positional parameters"


class DBSQLError(Exception):
    """Base class for every error raised by the driver."""

    kind = "error"

    def __init__(
        self,
        message: str,
        cause: BaseException | None = None,
        *,
        connection_id: str | None = None,
        correlation_id: str | None = None,
        query_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.connection_id = connection_id
        self.correlation_id = correlation_id
        self.query_id = query_id
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        text = f"databricks: {self.kind}: {self.message}"
        if self.cause is not None:
            text = f"{text}: {self.cause}"
        return text


class DriverError(DBSQLError):
    """An error detected inside the driver itself."""

    kind = "driver error"


class RequestError(DBSQLError):
    """An error that occurred while talking to the server."""

    kind = "request error"


class EndOfResults(Exception):
    """Raised when a result set has no more pages or records."""

    def __init__(self, message: str = "EOF") -> None:
        super().__init__(message)