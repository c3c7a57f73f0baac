"""Core building blocks of a SQL warehouse client: parameters, paging, column metadata, polling and logging."""

__version__ = "0.1.0"

__all__ = [
    "exceptions",
    "logger",
    "pages",
    "parameters",
    "protocol",
    "rows",
    "rowscanner",
    "sentinel",
]