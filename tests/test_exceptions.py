from dbsqlcore.exceptions import (
    ERR_NOT_IMPLEMENTED,
    DBSQLError,
    DriverError,
    EndOfResults,
    RequestError,
)


def test_driver_error_message_prefix():
    err = DriverError(ERR_NOT_IMPLEMENTED)
    assert str(err) == "databricks: driver error: " + ERR_NOT_IMPLEMENTED
    assert err.message == ERR_NOT_IMPLEMENTED


def test_request_error_message_prefix():
    err = RequestError("fetch failed")
    assert str(err) == "databricks: request error: fetch failed"


def test_cause_is_chained_and_shown():
    cause = ValueError("connection reset")
    err = RequestError("fetch failed", cause)
    assert err.cause is cause
    assert err.__cause__ is cause
    assert str(err).endswith(": connection reset")


def test_hierarchy():
    assert issubclass(DriverError, DBSQLError)
    assert issubclass(RequestError, DBSQLError)
    assert not issubclass(DriverError, RequestError)
    assert not issubclass(RequestError, DriverError)

    driver_err = DriverError("x")
    assert isinstance(driver_err, DBSQLError)
    assert str(driver_err) == "databricks: driver error: x"

    request_err = RequestError("x")
    assert isinstance(request_err, DBSQLError)
    assert str(request_err) == "databricks: request error: x"


def test_context_identifiers_are_kept():
    err = DriverError("x", connection_id="conn", correlation_id="corr", query_id="q")
    assert (err.connection_id, err.correlation_id, err.query_id) == ("conn", "corr", "q")


def test_end_of_results_message():
    assert str(EndOfResults()) == "EOF"
    assert not isinstance(EndOfResults(), DBSQLError)