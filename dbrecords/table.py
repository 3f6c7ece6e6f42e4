"""
Table: storage intents for one named table, translated into datasource calls.

A Table owns the column metadata of its table (introspected lazily from the
datasource and cached) and never builds query text itself.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Sequence

from dbrecords.criteria import Aggregate, CriteriaLike, OrderLike
from dbrecords.datasource.abstract import DataSource, Row
from dbrecords.errors import ConfigurationError
from dbrecords.schema import PRIMARY_KEY, Column, ColumnSet
from dbrecords.utils.logging import get_logger

log = get_logger(__name__)


class Table:
    """
    One table of a datasource.

    Parameters
    ----------
    name : str
        Table name.
    datasource : DataSource, optional
        Adapter executing the storage primitives; may be attached later.
    column_set : ColumnSet, optional
        Known column metadata. Introspected on first use when omitted.
    """

    def __init__(
        self,
        name: str,
        datasource: Optional[DataSource] = None,
        column_set: Optional[ColumnSet] = None,
    ) -> None:
        self.name = name
        self.datasource = datasource
        self._column_set = column_set

    def __repr__(self) -> str:
        return f"<Table {self.name}>"

    def require_datasource(self) -> DataSource:
        if self.datasource is None:
            raise ConfigurationError(f"No datasource set for table '{self.name}'")
        return self.datasource

    # ------------------------------------------------------------------
    # Inserting rows

    def insert_row(self, row: Dict[str, Any]) -> Any:
        """
        Insert a row; the assigned primary key is written back into ``row``.

        Only the table's columns are stored, and of those only the primary key
        and columns with a value.
        """
        primary = self.column_primary_name()
        names = [name for name in self.column_names() if name == primary or row.get(name) is not None]
        assigned = self.require_datasource().insert(
            self.name,
            names,
            [row.get(name) for name in names],
            sequence=primary,
        )
        row[primary] = assigned
        return assigned

    def insert_rows(self, rows: Iterable[Dict[str, Any]]) -> List[Any]:
        return [self.insert_row(row) for row in rows]

    # ------------------------------------------------------------------
    # Selecting rows

    def fetch_select(
        self,
        criteria: CriteriaLike = None,
        order: OrderLike = None,
        limit: Optional[int] = None,
        columns: Optional[Sequence[str]] = None,
    ) -> List[Row]:
        return self.require_datasource().select_rows(
            self.name, columns=columns, criteria=criteria, order=order, limit=limit
        )

    def fetch_all(self) -> List[Row]:
        return self.fetch_select()

    def fetch_id(self, id: Any) -> Optional[Row]:
        rows = self.fetch_select({self.column_primary_name(): id}, limit=1)
        return rows[0] if rows else None

    # ------------------------------------------------------------------
    # Updating rows

    def update_row(self, row: Dict[str, Any]) -> int:
        """Write every non-key column of ``row`` to the row with the same primary key."""
        primary = self.column_primary_name()
        names = [name for name in self.column_names() if name != primary]
        return self.require_datasource().update(
            self.name,
            names,
            [row.get(name) for name in names],
            {primary: row.get(primary)},
        )

    def update_where(self, criteria: CriteriaLike, changes: Dict[str, Any]) -> int:
        """Apply ``changes`` to every row matching ``criteria``."""
        names = list(changes)
        return self.require_datasource().update(self.name, names, [changes[n] for n in names], criteria)

    # ------------------------------------------------------------------
    # Deleting rows

    def delete_all(self) -> int:
        return self.require_datasource().delete(self.name)

    def delete_where(self, criteria: CriteriaLike) -> int:
        return self.require_datasource().delete(self.name, criteria)

    def delete_row(self, row: Dict[str, Any]) -> int:
        primary = self.column_primary_name()
        return self.delete_id(row.get(primary))

    def delete_id(self, id: Any) -> int:
        return self.require_datasource().delete(self.name, {self.column_primary_name(): id})

    # ------------------------------------------------------------------
    # Aggregates

    def count_rows(self, criteria: CriteriaLike = None) -> int:
        value = self.require_datasource().select_one_value(self.name, Aggregate("count"), criteria)
        return int(value or 0)

    def fetch_max(self, column: str, criteria: CriteriaLike = None) -> Any:
        return self.require_datasource().select_one_value(self.name, Aggregate("max", column), criteria)

    # ------------------------------------------------------------------
    # Column metadata

    def get_column_set(self) -> ColumnSet:
        """
        Column metadata, introspected from the datasource on first use.

        An empty result (table not created yet) is not cached, so the columns
        are picked up once the table exists.
        """
        if self._column_set is not None:
            return self._column_set
        columns = self.require_datasource().introspect_columns(self.name)
        column_set = ColumnSet(columns, table_name=self.name)
        if columns:
            log.debug("Introspected %d columns for table %s", len(columns), self.name)
            self._column_set = column_set
        return column_set

    def set_column_set(self, columns: Optional[Iterable[Column]]) -> None:
        self._column_set = None if columns is None else ColumnSet(columns, table_name=self.name)

    def columns(self) -> List[Column]:
        return list(self.get_column_set())

    def column_names(self) -> List[str]:
        return self.get_column_set().names()

    def column_named(self, name: str) -> Column:
        return self.get_column_set().named(name)

    def column_primary_name(self) -> str:
        return PRIMARY_KEY

    # ------------------------------------------------------------------
    # DDL

    def table_exists(self) -> bool:
        return self.require_datasource().table_exists(self.name)

    def table_create(self, columns: Optional[Sequence[Column]] = None) -> None:
        definitions = list(columns) if columns is not None else self.columns()
        if not definitions:
            raise ConfigurationError(f"No column definitions to create table '{self.name}'")
        self.require_datasource().create_table(self.name, definitions)
        self.set_column_set(definitions)
        log.info("Created table %s", self.name)

    def table_drop(self) -> None:
        self.require_datasource().drop_table(self.name)
        self.set_column_set(None)
        log.info("Dropped table %s", self.name)

    def table_ensure_exists(self, columns: Optional[Sequence[Column]] = None) -> bool:
        """Create the table unless it exists; returns True when it was created."""
        if self.table_exists():
            return False
        self.table_create(columns)
        return True

    def table_recreate(self, columns: Optional[Sequence[Column]] = None) -> None:
        definitions = list(columns) if columns is not None else self.columns()
        if self.table_exists():
            self.table_drop()
        self.table_create(definitions)

    def table_recreate_with_rows(self, columns: Optional[Sequence[Column]] = None) -> int:
        """
        Drop and recreate the table, then put its rows back.

        Columns that no longer exist are dropped from the rows; new columns
        start empty. Returns the number of rows restored.
        """
        definitions = list(columns) if columns is not None else self.columns()
        rows = self.fetch_select()
        self.table_drop()
        self.table_create(definitions)
        self.insert_rows(rows)
        log.info("Recreated table %s with %d rows", self.name, len(rows))
        return len(rows)


__all__ = ["Table"]
