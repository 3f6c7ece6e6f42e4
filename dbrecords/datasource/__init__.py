"""
Datasource adapters.

``create_datasource`` is the factory used by TableSet and the CLI: ``memory``
returns a fresh in-memory store, ``postgres`` a PostgreSQL adapter configured
from settings (or the given DSN).
"""

from typing import Optional

from dbrecords.datasource.abstract import AbstractDataSource, DataSource, Row
from dbrecords.datasource.memory import MemoryDataSource
from dbrecords.errors import ConfigurationError

DATASOURCE_KINDS = ("memory", "postgres")


def create_datasource(kind: str = "postgres", dsn: Optional[str] = None) -> AbstractDataSource:
    """
    Build a datasource adapter by name.

    Parameters
    ----------
    kind : str
        One of ``memory`` or ``postgres``.
    dsn : str, optional
        PostgreSQL connection string; composed from settings when omitted.
    """
    if kind == "memory":
        return MemoryDataSource()
    if kind == "postgres":
        from dbrecords.datasource.postgres import PostgresDataSource

        return PostgresDataSource(dsn=dsn)
    raise ConfigurationError(f"Unknown datasource '{kind}'. Available: {', '.join(DATASOURCE_KINDS)}")


__all__ = [
    "AbstractDataSource",
    "DATASOURCE_KINDS",
    "DataSource",
    "MemoryDataSource",
    "Row",
    "create_datasource",
]
