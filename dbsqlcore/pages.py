"""Result set pages and iteration over them with forward and backward fetches."""

from __future__ import annotations

import contextlib
import enum
from dataclasses import dataclass, field
from typing import Any, Iterator, Protocol, Sequence

from dbsqlcore.exceptions import DriverError, EndOfResults, RequestError
from dbsqlcore.logger import DBSQLLogger, with_context
from dbsqlcore.rowscanner import Delimiter, Direction

ERR_ROWS_RESULT_FETCH_FAILED = "databricks: Rows instance failed to retrieve results"
ERR_ROWS_FETCH_PRIOR_TO_START = "databricks: unable to fetch row page prior to start of results"


def err_rows_unhandled_fetch_direction(direction: Direction) -> str:
    return f"databricks: unhandled fetch direction {direction}"


class FetchOrientation(enum.IntEnum):
    """Direction in which the server is asked to move through the result set."""

    FETCH_NEXT = 0
    FETCH_PRIOR = 1
    FETCH_RELATIVE = 2
    FETCH_ABSOLUTE = 3
    FETCH_FIRST = 4
    FETCH_LAST = 5


@dataclass
class Column:
    """Values of one column within a result page, with its null bitmap."""

    values: Sequence[Any] = field(default_factory=list)
    nulls: bytes = b""


@dataclass
class ArrowBatch:
    """A serialized arrow record batch and the number of rows it holds."""

    batch: bytes = b""
    row_count: int = 0


@dataclass
class ResultLink:
    """A link to a result file stored outside the response."""

    file_link: str = ""
    start_row_offset: int = 0
    row_count: int = 0
    bytes_num: int = 0
    expiry_time: int = 0
    http_headers: dict[str, str] = field(default_factory=dict)


@dataclass
class RowSet:
    """The rows of one result page in one of the supported formats."""

    start_row_offset: int = 0
    columns: list[Column] | None = None
    arrow_batches: list[ArrowBatch] | None = None
    result_links: list[ResultLink] | None = None


@dataclass
class FetchResultsRequest:
    """A request for the next or previous page of results."""

    operation_handle: Any
    max_rows: int
    orientation: FetchOrientation = FetchOrientation.FETCH_NEXT
    include_result_set_metadata: bool = True


@dataclass
class FetchResultsResponse:
    """A page of results as returned by the server."""

    results: RowSet | None = None
    has_more_rows: bool | None = None
    result_set_metadata: Any = None


class ResultsClient(Protocol):
    def fetch_results(self, request: FetchResultsRequest) -> FetchResultsResponse: ...

    def close_operation(self, operation_handle: Any) -> Any: ...


def count_rows(row_set: RowSet | None) -> int:
    """Return the number of rows held by the row set."""
    if row_set is None:
        return 0
    if row_set.arrow_batches is not None:
        return sum(batch.row_count for batch in row_set.arrow_batches)
    if row_set.result_links is not None:
        return sum(link.row_count for link in row_set.result_links)
    if row_set.columns:
        return len(row_set.columns[0].values)
    return 0


def _to_orientation(direction: Direction) -> FetchOrientation:
    if direction == Direction.BACK:
        return FetchOrientation.FETCH_PRIOR
    return FetchOrientation.FETCH_NEXT


class ResultPageIterator:
    """Iterates over the pages of a query's result set, fetching them as needed."""

    def __init__(
        self,
        delimiter: Delimiter,
        max_page_size: int,
        operation_handle: Any,
        closed_on_server: bool,
        client: ResultsClient | None,
        connection_id: str = "",
        correlation_id: str = "",
        logger: DBSQLLogger | None = None,
    ) -> None:
        self.delimiter = delimiter
        self.max_page_size = max_page_size
        self.operation_handle = operation_handle
        self.closed_on_server = closed_on_server
        self.is_finished = closed_on_server
        self.client = client
        self.connection_id = connection_id
        self.correlation_id = correlation_id
        self._logger = logger or with_context(connection_id, correlation_id, "")
        self._next_page: FetchResultsResponse | None = None
        self._error: BaseException | None = None

    @property
    def start(self) -> int:
        return self.delimiter.start

    @property
    def count(self) -> int:
        return self.delimiter.count

    def has_next(self) -> bool:
        """Return True if another page is available, fetching it if necessary."""
        if self.is_finished and self._next_page is None:
            self._error = EndOfResults()
            return False

        if self._next_page is None:
            try:
                page = self._fetch_next_page()
            except Exception as exc:  # kept and raised again by next()
                with contextlib.suppress(Exception):
                    self.close()
                self.is_finished = True
                self._error = exc
                return False
            self._error = None
            self._next_page = page
            if not page.has_more_rows:
                with contextlib.suppress(Exception):
                    self.close()

        return self._next_page is not None

    def next(self) -> FetchResultsResponse:
        """Return the next page; raise EndOfResults when there are no more."""
        if not self.has_next() and self._next_page is None:
            raise self._error if self._error is not None else EndOfResults()
        page = self._next_page
        self._next_page = None
        return page

    def __iter__(self) -> Iterator[FetchResultsResponse]:
        return self

    def __next__(self) -> FetchResultsResponse:
        try:
            return self.next()
        except EndOfResults:
            raise StopIteration from None

    def close(self) -> None:
        """Close the operation on the server unless that has already happened."""
        if not self.closed_on_server:
            self.closed_on_server = True
            if self.client is not None:
                self.client.close_operation(self.operation_handle)

    def _fetch_next_page(self) -> FetchResultsResponse:
        if self.is_finished:
            raise EndOfResults()

        wanted = self.delimiter.start + self.delimiter.count
        self._logger.debug("databricks: fetching result page for row %d", wanted)

        response: FetchResultsResponse | None = None
        while not self.delimiter.contains(wanted):
            direction = self.delimiter.direction(wanted)
            self._check_direction_valid(direction)
            self._logger.debug(
                "fetching next batch of up to %d rows, %s", self.max_page_size, direction
            )
            request = FetchResultsRequest(
                operation_handle=self.operation_handle,
                max_rows=self.max_page_size,
                orientation=_to_orientation(direction),
                include_result_set_metadata=True,
            )
            try:
                response = self.client.fetch_results(request)
            except Exception as exc:
                self._logger.err(exc, ERR_ROWS_RESULT_FETCH_FAILED)
                raise RequestError(
                    ERR_ROWS_RESULT_FETCH_FAILED,
                    exc,
                    connection_id=self.connection_id,
                    correlation_id=self.correlation_id,
                ) from exc

            results = response.results if response.results is not None else RowSet()
            self.delimiter = Delimiter(results.start_row_offset, count_rows(results))
            if response.has_more_rows is not None:
                self.is_finished = not response.has_more_rows
            else:
                self.is_finished = True
            self._logger.debug(
                "databricks: new result page startRow: %d, nRows: %d, hasMoreRows: %s",
                self.delimiter.start,
                self.delimiter.count,
                response.has_more_rows,
            )
        return response

    def _check_direction_valid(self, direction: Direction) -> None:
        if direction == Direction.BACK:
            if self.delimiter.start == 0:
                raise DriverError(
                    ERR_ROWS_FETCH_PRIOR_TO_START,
                    connection_id=self.connection_id,
                    correlation_id=self.correlation_id,
                )
        elif direction == Direction.FORWARD:
            if self.is_finished:
                raise EndOfResults()
        else:
            message = err_rows_unhandled_fetch_direction(direction)
            self._logger.error(message)
            raise DriverError(
                message,
                connection_id=self.connection_id,
                correlation_id=self.correlation_id,
            )