import pytest

from dbsqlcore.exceptions import DriverError, EndOfResults, RequestError
from dbsqlcore.pages import (
    ERR_ROWS_FETCH_PRIOR_TO_START,
    ERR_ROWS_RESULT_FETCH_FAILED,
    ArrowBatch,
    Column,
    FetchOrientation,
    FetchResultsResponse,
    ResultLink,
    ResultPageIterator,
    RowSet,
    count_rows,
)
from dbsqlcore.rowscanner import Delimiter

FIVE_BOOLS = [Column(values=[True, False, True, False, True])]


def _pages():
    return [
        FetchResultsResponse(RowSet(0, columns=FIVE_BOOLS), has_more_rows=True),
        FetchResultsResponse(RowSet(5, columns=FIVE_BOOLS), has_more_rows=True),
        FetchResultsResponse(RowSet(10, columns=FIVE_BOOLS), has_more_rows=False),
        FetchResultsResponse(RowSet(15, columns=[]), has_more_rows=False),
    ]


class FakeClient:
    def __init__(self, sequence, pages=None):
        self.pages = pages if pages is not None else _pages()
        self.sequence = list(sequence)
        self.fetches = []
        self.requests = []
        self.close_calls = 0

    def fetch_results(self, request):
        page = self.pages[self.sequence[len(self.fetches)]]
        self.requests.append(request)
        self.fetches.append((request.orientation, page.results.start_row_offset))
        return page

    def close_operation(self, operation_handle):
        self.close_calls += 1


class FailingClient:
    def __init__(self):
        self.close_calls = 0

    def fetch_results(self, request):
        raise RuntimeError("Error thrown while calling fetch results")

    def close_operation(self, operation_handle):
        self.close_calls += 1


def _iterator(client, delimiter=None, closed=False):
    return ResultPageIterator(
        delimiter or Delimiter(0, 0), 1000, None, closed, client, "connId", "correlationId"
    )


def test_pagination_recovers_from_jumps():
    client = FakeClient([0, 3, 2, 0, 1, 2])
    it = _iterator(client)

    first = it.next()
    assert first.results.start_row_offset == 0
    assert client.fetches == [(FetchOrientation.FETCH_NEXT, 0)]

    second = it.next()
    assert second.results.start_row_offset == 5
    assert client.fetches == [
        (FetchOrientation.FETCH_NEXT, 0),
        (FetchOrientation.FETCH_NEXT, 15),
        (FetchOrientation.FETCH_PRIOR, 10),
        (FetchOrientation.FETCH_PRIOR, 0),
        (FetchOrientation.FETCH_NEXT, 5),
    ]


def test_fetch_prior_to_start_is_driver_error():
    it = ResultPageIterator(Delimiter(0, -1), 1000, None, False, None)
    with pytest.raises(DriverError) as info:
        it.next()
    assert str(info.value) == "databricks: driver error: " + ERR_ROWS_FETCH_PRIOR_TO_START


def test_finished_iterator_raises_end_of_results():
    it = ResultPageIterator(Delimiter(0, 0), 1000, None, True, None)
    assert it.has_next() is False
    with pytest.raises(EndOfResults) as info:
        it.next()
    assert str(info.value) == "EOF"


def test_iteration_yields_all_pages_and_closes_once():
    client = FakeClient([0, 1, 2])
    it = _iterator(client)
    starts = [page.results.start_row_offset for page in it]
    assert starts == [0, 5, 10]
    assert client.close_calls == 1
    it.close()
    assert client.close_calls == 1


def test_request_fields():
    client = FakeClient([0])
    it = _iterator(client)
    it.next()
    request = client.requests[0]
    assert request.max_rows == 1000
    assert request.orientation == FetchOrientation.FETCH_NEXT
    assert request.include_result_set_metadata is True
    assert (it.start, it.count) == (0, 5)


def test_page_with_direct_results_fetches_following_page():
    client = FakeClient([1])
    it = _iterator(client, Delimiter(0, 5))
    page = it.next()
    assert page.results.start_row_offset == 5
    assert len(client.fetches) == 1


def test_closed_on_server_does_not_call_client():
    client = FakeClient([])
    it = _iterator(client, closed=True)
    it.close()
    assert client.close_calls == 0
    assert it.has_next() is False


def test_close_calls_client_once():
    client = FakeClient([])
    it = _iterator(client)
    it.close()
    it.close()
    assert client.close_calls == 1


def test_fetch_error_is_request_error_then_end():
    client = FailingClient()
    it = _iterator(client)
    assert it.has_next() is False
    assert client.close_calls == 1
    with pytest.raises(EndOfResults):
        it.next()


def test_fetch_error_propagates_from_next():
    it = _iterator(FailingClient())
    with pytest.raises(RequestError) as info:
        it.next()
    message = str(info.value)
    assert ERR_ROWS_RESULT_FETCH_FAILED in message
    assert "Error thrown while calling fetch results" in message


def test_missing_has_more_rows_finishes():
    pages = [FetchResultsResponse(RowSet(0, columns=FIVE_BOOLS), has_more_rows=None)]
    client = FakeClient([0], pages)
    it = _iterator(client)
    assert [p.results.start_row_offset for p in it] == [0]
    assert it.is_finished is True
    assert client.close_calls == 1


def test_count_rows_none_and_empty():
    assert count_rows(None) == 0
    assert count_rows(RowSet()) == 0
    assert count_rows(RowSet(columns=[])) == 0


def test_count_rows_columns():
    assert count_rows(RowSet(columns=FIVE_BOOLS)) == 5


def test_count_rows_arrow_batches_take_precedence():
    row_set = RowSet(
        columns=FIVE_BOOLS,
        arrow_batches=[ArrowBatch(b"", 3), ArrowBatch(b"", 4)],
        result_links=[ResultLink(row_count=100)],
    )
    assert count_rows(row_set) == 7


def test_count_rows_result_links():
    row_set = RowSet(result_links=[ResultLink(row_count=10), ResultLink(row_count=2)])
    assert count_rows(row_set) == 12