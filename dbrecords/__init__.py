"""
dbrecords - schema-driven records persisted through pluggable datasources.

Record classes declare their fields once; each declaration generates typed
accessors, validators and relationship methods on the class. Records are
stored as rows through a Table and a datasource adapter:

- An in-memory datasource for tests and demos
- A PostgreSQL datasource on psycopg
- Foreign keys, line items and aliases between record classes
- Unique public codes, timestamps, Julian days and currency fields
- Inheritable lifecycle hooks (post_new, pre_insert, pre_delete, ...)
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from dbrecords.config import Settings, get_settings
from dbrecords.criteria import Aggregate, And, Compare, Criteria, Equals, Or
from dbrecords.datasource import AbstractDataSource, DataSource, MemoryDataSource, create_datasource
from dbrecords.errors import (
    ColumnNotFoundError,
    ConfigurationError,
    DataSourceError,
    DBRecordsError,
    RecordNotFoundError,
    UniqueCodeExhaustedError,
)
from dbrecords.fields import FIELD_TYPES, Field, FieldSpec, build_field
from dbrecords.hooks import hook
from dbrecords.record import Record
from dbrecords.recordset import RecordSet
from dbrecords.schema import Column, ColumnSet
from dbrecords.table import Table
from dbrecords.tableset import TableSet
from dbrecords.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Records
    "Record",
    "RecordSet",
    "Table",
    "TableSet",
    "Column",
    "ColumnSet",
    "hook",
    # Fields
    "FIELD_TYPES",
    "Field",
    "FieldSpec",
    "build_field",
    # Criteria
    "Criteria",
    "Equals",
    "Compare",
    "And",
    "Or",
    "Aggregate",
    # Datasources
    "DataSource",
    "AbstractDataSource",
    "MemoryDataSource",
    "create_datasource",
    # Errors
    "DBRecordsError",
    "ConfigurationError",
    "RecordNotFoundError",
    "ColumnNotFoundError",
    "UniqueCodeExhaustedError",
    "DataSourceError",
    # Logging
    "configure_logging",
    "get_logger",
]
