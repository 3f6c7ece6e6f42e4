"""
In-memory datasource.

Keeps each table as a list of row dicts and evaluates criteria with
``Criteria.matches``. Used by the test suite and by ``dbrecords demo`` when no
database is configured. Rows are copied on the way in and out, so callers never
share state with the store.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from dbrecords.criteria import Aggregate, CriteriaLike, OrderLike, as_criteria, normalize_order
from dbrecords.datasource.abstract import AbstractDataSource, Row
from dbrecords.errors import DataSourceError
from dbrecords.schema import PRIMARY_KEY, Column
from dbrecords.utils.logging import get_logger

log = get_logger(__name__)


@dataclass
class _MemoryTable:
    columns: List[Column]
    rows: List[Row] = field(default_factory=list)
    next_id: int = 1

    def column_names(self) -> List[str]:
        return [col.name for col in self.columns]


def _sort_key(value: Any) -> tuple:
    # None sorts first; mixed types fall back to their text form.
    if value is None:
        return (0, 0, "")
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (1, value, "")
    return (2, 0, str(value))


class MemoryDataSource(AbstractDataSource):
    """Datasource backed by Python dicts."""

    name = "memory"

    def __init__(self) -> None:
        self._tables: Dict[str, _MemoryTable] = {}

    def _table(self, table: str) -> _MemoryTable:
        try:
            return self._tables[table]
        except KeyError:
            raise DataSourceError(f"Table '{table}' does not exist") from None

    def _check_columns(self, stored: _MemoryTable, table: str, columns: Sequence[str]) -> None:
        known = set(stored.column_names())
        unknown = [name for name in columns if name not in known]
        if unknown:
            raise DataSourceError(f"Table '{table}' has no column(s) {', '.join(unknown)}")

    def _matching(self, table: str, criteria: CriteriaLike) -> List[Row]:
        where = as_criteria(criteria)
        rows = self._table(table).rows
        if where is None:
            return list(rows)
        return [row for row in rows if where.matches(row)]

    # ------------------------------------------------------------------
    # Rows

    def insert(
        self,
        table: str,
        columns: Sequence[str],
        values: Sequence[Any],
        sequence: Optional[str] = None,
    ) -> Any:
        stored = self._table(table)
        self._check_columns(stored, table, columns)
        key = sequence or PRIMARY_KEY
        row: Row = {name: None for name in stored.column_names()}
        row.update(zip(columns, values))
        if row.get(key) in (None, ""):
            row[key] = stored.next_id
        if isinstance(row[key], int):
            stored.next_id = max(stored.next_id, row[key] + 1)
        stored.rows.append(row)
        log.debug("memory insert into %s: %s=%s", table, key, row[key])
        return row[key]

    def update(self, table: str, columns: Sequence[str], values: Sequence[Any], criteria: CriteriaLike) -> int:
        stored = self._table(table)
        self._check_columns(stored, table, columns)
        changes = dict(zip(columns, values))
        rows = self._matching(table, criteria)
        for row in rows:
            row.update(changes)
        log.debug("memory update of %s changed %d rows", table, len(rows))
        return len(rows)

    def delete(self, table: str, criteria: CriteriaLike = None) -> int:
        stored = self._table(table)
        doomed = {id(row) for row in self._matching(table, criteria)}
        stored.rows = [row for row in stored.rows if id(row) not in doomed]
        log.debug("memory delete from %s removed %d rows", table, len(doomed))
        return len(doomed)

    def select_rows(
        self,
        table: str,
        columns: Optional[Sequence[str]] = None,
        criteria: CriteriaLike = None,
        order: OrderLike = None,
        limit: Optional[int] = None,
    ) -> List[Row]:
        stored = self._table(table)
        if columns:
            self._check_columns(stored, table, columns)
        rows = self._matching(table, criteria)
        # Stable sorts applied from the last key to the first.
        for column, descending in reversed(normalize_order(order)):
            self._check_columns(stored, table, [column])
            rows.sort(key=lambda row: _sort_key(row.get(column)), reverse=descending)
        if limit is not None:
            rows = rows[:limit]
        if columns:
            return [{name: row.get(name) for name in columns} for row in rows]
        return [dict(row) for row in rows]

    def select_one_value(self, table: str, aggregate: Aggregate, criteria: CriteriaLike = None) -> Any:
        rows = self._matching(table, criteria)
        if aggregate.function == "count":
            if aggregate.column:
                return sum(1 for row in rows if row.get(aggregate.column) is not None)
            return len(rows)
        self._check_columns(self._table(table), table, [aggregate.column])
        values = [row[aggregate.column] for row in rows if row.get(aggregate.column) is not None]
        if not values:
            return None
        if aggregate.function == "max":
            return max(values, key=_sort_key)
        if aggregate.function == "min":
            return min(values, key=_sort_key)
        return sum(values)

    # ------------------------------------------------------------------
    # Schema

    def introspect_columns(self, table: str) -> List[Column]:
        stored = self._tables.get(table)
        return list(stored.columns) if stored is not None else []

    def create_table(self, table: str, column_defs: Sequence[Column]) -> None:
        if table in self._tables:
            raise DataSourceError(f"Table '{table}' already exists")
        columns = [col if isinstance(col, Column) else Column.model_validate(col) for col in column_defs]
        self._tables[table] = _MemoryTable(columns=columns)
        log.debug("memory create table %s (%s)", table, ", ".join(str(c) for c in columns))

    def drop_table(self, table: str) -> None:
        self._table(table)
        del self._tables[table]
        log.debug("memory drop table %s", table)

    def table_exists(self, table: str) -> bool:
        return table in self._tables

    def table_names(self) -> List[str]:
        return sorted(self._tables)


__all__ = ["MemoryDataSource"]
