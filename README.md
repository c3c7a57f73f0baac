# dbsqlcore

`dbsqlcore` contains the core pieces of a client for a SQL warehouse that speaks
a CLI-service style protocol. It has no dependencies outside the standard library.

The package does not open connections. Where it needs to reach the server, you
pass in a client object of your own. That object must provide
`fetch_results(request)` and `close_operation(operation_handle)`. For `Rows`, it
must also provide `get_result_set_metadata(operation_handle)`.

## Modules

- **`dbsqlcore.parameters`**: binding query parameters.
  - `NamedValue` and `Parameter` hold the values you bind.
  - `infer_type` and `infer_types` work out the `SqlType` of a value and render it as text:
    - `bool`, `str`, `int` and `float` are handled.
    - `datetime` values are rendered as RFC 3339 text.
    - `None` becomes `VOID`.
    - Any other value becomes its `str()`.
  - `convert_to_spark_params` produces `SparkParameter` entries. It raises
    `DriverError` if named and positional parameters are mixed.
  - `infer_decimal_type` derives `DECIMAL(p,s)` from decimal text.
  - `Result` holds `rows_affected` and `last_insert_id`.
- **`dbsqlcore.protocol`**: the `ProtocolVersion` enum and feature checks:
  - `supports_direct_results`
  - `supports_lz4_compression`
  - `supports_cloud_fetch`
  - `supports_arrow`
  - `supports_compressed_arrow`
  - `supports_parameterized_queries`
  - `supports_multiple_catalogs`
- **`dbsqlcore.rowscanner`**: column metadata and value helpers.
  - `Delimiter` gives the span of rows in a result page, with `contains` and
    `direction`.
  - `is_null` reads a null bitmap.
  - `handle_datetime` parses `DATE` and `TIMESTAMP` strings. Values of other
    types are returned unchanged.
    - A leading ASCII `-` or Unicode `−` marks a year before year one. Such
      values come back as `SignedDateTime`.
    - Values that cannot be parsed raise `DateTimeParseError`.
  - `ColumnDesc` and `TypeId` describe columns.
  - `db_type_name`, `scan_type` (returns a `ScanType`) and `column_type_length`
    give the type information for a column.
- **`dbsqlcore.pages`**: the result page classes and `ResultPageIterator`.
  - The result page classes are `RowSet`, `Column`, `ArrowBatch`, `ResultLink`,
    `FetchResultsRequest` and `FetchResultsResponse`.
  - `count_rows` counts the rows in a `RowSet`.
  - `ResultPageIterator` fetches pages one after another, as follows:
    - If a page comes back that is not the expected one, it fetches forward or
      backward (`FetchOrientation`) until it reaches the expected page.
    - It closes the server-side operation once the last page has been fetched.
    - `next()` raises `EndOfResults` when no pages are left. The object is also
      a Python iterator.
- **`dbsqlcore.rows`**: `Rows`, a result set's column metadata.
  - `columns()` returns the column names.
  - The per-index type queries are `column_type_scan_type`,
    `column_type_database_type_name`, `column_type_nullable` and
    `column_type_length`.
  - `close()` closes the operation. `Rows` also works as a context manager.
  - The schema is fetched from the client once, unless you pass it in.
  - Creating a `Rows` without a client raises `DriverError`.
- **`dbsqlcore.sentinel`**: `Sentinel.watch` polls a status function at an
  interval until it reports done.
  - It can run an `on_done_fn` in the background and return that function's
    result.
  - It calls `on_cancel_fn` on timeout or cancellation.
  - It raises `WatchTimeoutError` or `WatchCancelledError` in those cases.
- **`dbsqlcore.logger`**: levelled logging.
  - `set_log_level` sets the level and `set_log_output` sets where output goes.
  - `with_context` tags messages with connection, correlation and query ids.
  - `track` and `duration` log the time spent on a task.
  - The initial level comes from the `DATABRICKS_LOG_LEVEL` environment
    variable. If it is not set, the level is `warn`.

## Examples

Binding parameters:

```python
from dbsqlcore.parameters import NamedValue, Parameter, SqlType, convert_to_spark_params

params = convert_to_spark_params([
    NamedValue(name="id", value=42),
    NamedValue(name="price", value=Parameter(name="price", type=SqlType.DECIMAL, value="12.50")),
])
for p in params:
    print(p.name, p.type, p.value)
# id INTEGER 42
# price DECIMAL(4,2) 12.50
```

Checking what a server supports:

```python
from dbsqlcore.protocol import ProtocolVersion, supports_arrow, supports_parameterized_queries

version = ProtocolVersion.SPARK_CLI_SERVICE_PROTOCOL_V6
supports_arrow(version)                  # True
supports_parameterized_queries(version)  # False
```

Parsing date/time values returned as strings:

```python
from datetime import timezone
from dbsqlcore.rowscanner import handle_datetime

handle_datetime("2006-12-22 17:13:11.000001000", "TIMESTAMP", "ts_col", timezone.utc)
# datetime(2006, 12, 22, 17, 13, 11, 1, tzinfo=timezone.utc)
```

Polling until an operation finishes:

```python
from dbsqlcore.sentinel import Sentinel

sentinel = Sentinel(status_fn=lambda: (lambda: True, "completed"))
result = sentinel.watch(interval=0.1, timeout=5.0)   # "completed"
```

Adjusting logging:

```python
import sys
from dbsqlcore import logger

logger.set_log_level("debug")
logger.set_log_output(sys.stdout)
```

## Errors

`dbsqlcore.exceptions.DBSQLError` is the base of the driver's errors:

- `DriverError` covers problems found in the client.
- `RequestError` covers failed calls to the server.

Other exceptions stand apart from that hierarchy:

- `EndOfResults` is a plain `Exception` and means no more pages are left.
- `DateTimeParseError` is a `ValueError`.
- `WatchTimeoutError` is a `TimeoutError`.
- `WatchCancelledError` is also an exception of its own.

## What it does not do

The package has no:

- connections or sessions;
- network transport;
- statement execution;
- decoding of Arrow batches or result links;
- reading of row values out of result pages.

`Rows` tracks which page holds the next row, but it gives column metadata only.
The client object you supply does all talking to the server.

## Running the tests

```
pip install "dbsqlcore[test]"
pytest
```