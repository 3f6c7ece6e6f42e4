"""
Exception taxonomy for dbrecords.

Ordinary validation failures are never raised: field validators return a
``(field_name, message)`` tuple instead. The exceptions below are reserved for
setup mistakes and for lookups the caller explicitly required to succeed.
"""

from __future__ import annotations

from typing import Iterable


class DBRecordsError(Exception):
    """Base class for all errors raised by dbrecords."""


class ConfigurationError(DBRecordsError):
    """
    A required collaborator or declaration is missing.

    Raised for a record class with no bound table, a table with no datasource,
    a relationship field without a related class, an unknown field type, or a
    generated accessor whose companion method (``init_*``, reset checker) does
    not exist.
    """


class RecordNotFoundError(DBRecordsError):
    """A row the caller expected to exist could not be found."""


class ColumnNotFoundError(DBRecordsError, KeyError):
    """Lookup of a column by name failed."""

    def __init__(self, column_name: str, table_name: str | None, available: Iterable[str]) -> None:
        self.column_name = column_name
        self.table_name = table_name
        self.available = list(available)
        where = f" in {table_name} table" if table_name else ""
        super().__init__(
            f"No column named {column_name}{where} "
            f"(perhaps you meant one of these: {', '.join(self.available) or 'none'})"
        )

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return str(self.args[0])


class UniqueCodeExhaustedError(DBRecordsError):
    """No unused unique code was found within the configured number of attempts."""


class DataSourceError(DBRecordsError):
    """The data-source collaborator could not carry out a request."""


__all__ = [
    "DBRecordsError",
    "ConfigurationError",
    "RecordNotFoundError",
    "ColumnNotFoundError",
    "UniqueCodeExhaustedError",
    "DataSourceError",
]
