"""
Datasource contract consumed by Table.

A datasource executes storage primitives identified by table name, column
list, values and a criteria expression. It never sees Record objects. Concrete
adapters (in-memory, PostgreSQL) implement the DataSource Protocol, usually by
subclassing AbstractDataSource.
"""

from __future__ import annotations

import abc
from typing import Any, Dict, List, Optional, Protocol, Sequence, runtime_checkable

from dbrecords.criteria import Aggregate, CriteriaLike, OrderLike
from dbrecords.schema import Column

Row = Dict[str, Any]


@runtime_checkable
class DataSource(Protocol):
    """
    Storage primitives every datasource adapter must provide.

    Criteria arguments accept a mapping (equality AND) or a ``Criteria``
    object; ``None`` matches every row. Order arguments accept a column name or
    sequence of names, ``-name`` for descending.
    """

    def insert(
        self,
        table: str,
        columns: Sequence[str],
        values: Sequence[Any],
        sequence: Optional[str] = None,
    ) -> Any:
        """
        Insert one row and return its assigned primary key.

        Parameters
        ----------
        table : str
            Target table name.
        columns : Sequence[str]
            Column names, in the same order as ``values``.
        values : Sequence[Any]
            Values to store.
        sequence : str, optional
            Name of the column (or sequence) that assigns the key; ``id`` when omitted.

        Returns
        -------
        Any
            The primary key of the new row.
        """
        ...

    def update(self, table: str, columns: Sequence[str], values: Sequence[Any], criteria: CriteriaLike) -> int:
        """Update matching rows; returns the number of rows changed."""
        ...

    def delete(self, table: str, criteria: CriteriaLike = None) -> int:
        """Delete matching rows (every row when criteria is None); returns the count."""
        ...

    def select_rows(
        self,
        table: str,
        columns: Optional[Sequence[str]] = None,
        criteria: CriteriaLike = None,
        order: OrderLike = None,
        limit: Optional[int] = None,
    ) -> List[Row]:
        """Return matching rows as column-keyed dicts."""
        ...

    def select_one_value(self, table: str, aggregate: Aggregate, criteria: CriteriaLike = None) -> Any:
        """Return a single aggregate value such as ``count(*)`` over matching rows."""
        ...

    def introspect_columns(self, table: str) -> List[Column]:
        """Describe the table's columns; empty when the table does not exist."""
        ...

    def create_table(self, table: str, column_defs: Sequence[Column]) -> None:
        ...

    def drop_table(self, table: str) -> None:
        ...

    def table_exists(self, table: str) -> bool:
        ...


class AbstractDataSource(abc.ABC):
    """
    ABC helper for class-based adapters.

    Subclasses implement every primitive; ``name`` identifies the adapter in
    logs and in the CLI.
    """

    name: str = "abstract"

    @abc.abstractmethod
    def insert(
        self,
        table: str,
        columns: Sequence[str],
        values: Sequence[Any],
        sequence: Optional[str] = None,
    ) -> Any:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def update(
        self, table: str, columns: Sequence[str], values: Sequence[Any], criteria: CriteriaLike
    ) -> int:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def delete(self, table: str, criteria: CriteriaLike = None) -> int:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def select_rows(
        self,
        table: str,
        columns: Optional[Sequence[str]] = None,
        criteria: CriteriaLike = None,
        order: OrderLike = None,
        limit: Optional[int] = None,
    ) -> List[Row]:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def select_one_value(
        self, table: str, aggregate: Aggregate, criteria: CriteriaLike = None
    ) -> Any:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def introspect_columns(self, table: str) -> List[Column]:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def create_table(self, table: str, column_defs: Sequence[Column]) -> None:  # pragma: no cover
        raise NotImplementedError

    @abc.abstractmethod
    def drop_table(self, table: str) -> None:  # pragma: no cover - interface only
        raise NotImplementedError

    def table_exists(self, table: str) -> bool:
        return bool(self.introspect_columns(table))

    def close(self) -> None:
        """Release any held resources. No-op by default."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


__all__ = ["Row", "DataSource", "AbstractDataSource"]
