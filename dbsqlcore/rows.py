"""A query's result set: column metadata and paging through result pages."""

from __future__ import annotations

from datetime import timezone, tzinfo
from typing import Any, Optional, Protocol, Sequence

from dbsqlcore.exceptions import DBSQLError, DriverError, RequestError
from dbsqlcore.logger import with_context
from dbsqlcore.pages import (
    FetchResultsRequest,
    FetchResultsResponse,
    ResultPageIterator,
    count_rows,
)
from dbsqlcore.rowscanner import (
    ColumnDesc,
    Delimiter,
    ScanType,
    column_type_length,
    db_type_name,
    scan_type,
)

DEFAULT_MAX_ROWS = 10000

ERR_ROWS_NO_CLIENT = "databricks: instance of Rows missing client"
ERR_ROWS_UNKNOWN_ROW_TYPE = "databricks: unknown rows representation"
ERR_ROWS_CLOSE_FAILED = "databricks: Rows instance Close operation failed"
ERR_ROWS_METADATA_FETCH_FAILED = "databricks: Rows instance failed to retrieve result set metadata"
ERR_ROWS_ONLY_FORWARD = "databricks: Rows instance can only iterate forward over rows"
ERR_INVALID_ROW_NUMBER_STATE = "databricks: row number is in an invalid state"


def err_rows_invalid_column_index(index: int) -> str:
    return f"databricks: invalid column index: {index}"


class RowsClient(Protocol):
    def fetch_results(self, request: FetchResultsRequest) -> FetchResultsResponse: ...

    def close_operation(self, operation_handle: Any) -> Any: ...

    def get_result_set_metadata(self, operation_handle: Any) -> Sequence[ColumnDesc]: ...


class Rows:
    """The result set of one operation.

    ``schema`` and ``first_page`` carry results the server returned together with
    the statement; ``closed_on_server`` says the server already closed the operation.
    """

    def __init__(
        self,
        connection_id: str,
        correlation_id: str,
        operation_handle: Any,
        client: Optional[RowsClient],
        *,
        max_rows: int = DEFAULT_MAX_ROWS,
        location: Optional[tzinfo] = None,
        schema: Optional[Sequence[ColumnDesc]] = None,
        first_page: Optional[FetchResultsResponse] = None,
        closed_on_server: bool = False,
    ) -> None:
        self.connection_id = connection_id
        self.correlation_id = correlation_id
        self.operation_handle = operation_handle
        self.query_id = "" if operation_handle is None else str(operation_handle)
        self._logger = with_context(connection_id, correlation_id, self.query_id)

        if client is None:
            self._logger.error(ERR_ROWS_NO_CLIENT)
            raise self._driver_error(ERR_ROWS_NO_CLIENT)

        self.client = client
        self.location = location if location is not None else timezone.utc
        self.next_row_number = 0
        self._schema: Optional[list[ColumnDesc]] = list(schema) if schema is not None else None
        self._page: Optional[Delimiter] = None
        self._page_response: Optional[FetchResultsResponse] = None

        self._logger.debug(
            "databricks: creating Rows, pageSize: %d, location: %s", max_rows, self.location
        )
        if first_page is not None:
            self._logger.debug("databricks: creating Rows with direct results")
            self._load_page(first_page)

        self._pages = ResultPageIterator(
            self._page if self._page is not None else Delimiter(0, 0),
            max_rows,
            operation_handle,
            closed_on_server,
            client,
            connection_id,
            correlation_id,
            self._logger,
        )

    def __enter__(self) -> Rows:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def columns(self) -> list[str]:
        """Return the column names, or an empty list if the schema is unavailable."""
        try:
            return [column.name for column in self._schema_columns()]
        except DBSQLError:
            return []

    def column_type_scan_type(self, index: int) -> Optional[ScanType]:
        """Return the native kind of value of the column, or None if unknown."""
        try:
            return scan_type(self._column(index))
        except DBSQLError:
            return None

    def column_type_database_type_name(self, index: int) -> str:
        """Return the database type name of the column, or "" if unknown."""
        try:
            return db_type_name(self._column(index))
        except DBSQLError:
            return ""

    def column_type_nullable(self, index: int) -> tuple[bool, bool]:
        """Return (nullable, known); nullability is never known."""
        return False, False

    def column_type_length(self, index: int) -> tuple[int, bool]:
        """Return the column's length and whether a length applies."""
        try:
            return column_type_length(self._column(index))
        except DBSQLError:
            return 0, False

    def close(self) -> None:
        """Close the operation on the server if that has not happened yet."""
        self._logger.debug("databricks: closing Rows operation")
        try:
            self._pages.close()
        except Exception as exc:
            self._logger.err(exc, ERR_ROWS_CLOSE_FAILED)
            raise RequestError(
                ERR_ROWS_CLOSE_FAILED,
                exc,
                connection_id=self.connection_id,
                correlation_id=self.correlation_id,
                query_id=self.query_id,
            ) from exc

    def _driver_error(self, message: str) -> DriverError:
        return DriverError(
            message,
            connection_id=self.connection_id,
            correlation_id=self.correlation_id,
            query_id=self.query_id,
        )

    def _schema_columns(self) -> list[ColumnDesc]:
        if self._schema is None:
            try:
                columns = self.client.get_result_set_metadata(self.operation_handle)
            except Exception as exc:
                self._logger.err(exc, str(exc))
                raise RequestError(
                    ERR_ROWS_METADATA_FETCH_FAILED,
                    exc,
                    connection_id=self.connection_id,
                    correlation_id=self.correlation_id,
                    query_id=self.query_id,
                ) from exc
            self._schema = list(columns)
        return self._schema

    def _column(self, index: int) -> ColumnDesc:
        columns = self._schema_columns()
        if not 0 <= index < len(columns):
            error = self._driver_error(err_rows_invalid_column_index(index))
            self._logger.err(error, str(error))
            raise error
        return columns[index]

    def _is_next_row_in_page(self) -> bool:
        return self._page is not None and self._page.contains(self.next_row_number)

    def _load_page(self, response: Optional[FetchResultsResponse]) -> None:
        self._schema_columns()
        if response is None:
            return
        results = response.results
        if results is None or (
            results.columns is None
            and results.arrow_batches is None
            and results.result_links is None
        ):
            self._page = None
            self._page_response = None
            self._logger.error(ERR_ROWS_UNKNOWN_ROW_TYPE)
            raise self._driver_error(ERR_ROWS_UNKNOWN_ROW_TYPE)
        self._page = Delimiter(results.start_row_offset, count_rows(results))
        self._page_response = response

    def _fetch_result_page(self) -> None:
        """Make sure the page holding the next row is loaded."""
        if self._page is not None:
            if self._page.contains(self.next_row_number):
                return
            if self.next_row_number < self._page.start:
                raise self._driver_error(ERR_ROWS_ONLY_FORWARD)

        # Drop the current page before loading the next to keep memory down.
        self._page = None
        self._page_response = None

        self._load_page(self._pages.next())

        if not self._is_next_row_in_page():
            raise self._driver_error(ERR_INVALID_ROW_NUMBER_STATE)