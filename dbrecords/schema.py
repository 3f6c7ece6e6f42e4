"""
Column metadata for dbrecords tables.

A ``Column`` describes one physical column (name, type tag, optional length,
nullability). A ``ColumnSet`` is the ordered collection a Table caches, built
either from a record class's declared fields or by introspecting the
datasource once.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Union, overload

from pydantic import BaseModel, Field

from dbrecords.errors import ColumnNotFoundError

PRIMARY_KEY = "id"


class Column(BaseModel):
    """
    Description of a single column in a table or query result.
    """

    name: str = Field(..., description="Column name.")
    type: str = Field("text", description="Type tag such as text, int, float or timestamp.")
    length: Optional[int] = Field(None, description="Maximum length for text columns.")
    required: bool = Field(False, description="Whether the column is declared NOT NULL.")

    model_config = {
        "frozen": True,
        "extra": "ignore",
    }

    def as_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": self.name, "type": self.type, "required": self.required}
        if self.length is not None:
            data["length"] = self.length
        return data

    def __str__(self) -> str:
        return f"{self.name} ({self.type})"


ColumnLike = Union[Column, Mapping[str, Any]]


class ColumnSet(Sequence[Column]):
    """
    Ordered, immutable set of Column objects.

    Lookups by name that cannot be satisfied raise ``ColumnNotFoundError``,
    whose message lists the columns that are available.
    """

    def __init__(self, columns: Iterable[ColumnLike] = (), table_name: Optional[str] = None) -> None:
        self._columns: tuple[Column, ...] = tuple(
            col if isinstance(col, Column) else Column.model_validate(dict(col)) for col in columns
        )
        self.table_name = table_name

    @overload
    def __getitem__(self, index: int) -> Column: ...

    @overload
    def __getitem__(self, index: slice) -> "ColumnSet": ...

    def __getitem__(self, index):
        if isinstance(index, slice):
            return ColumnSet(self._columns[index], table_name=self.table_name)
        return self._columns[index]

    def __len__(self) -> int:
        return len(self._columns)

    def __iter__(self) -> Iterator[Column]:
        return iter(self._columns)

    def __repr__(self) -> str:
        return f"ColumnSet({', '.join(str(c) for c in self._columns)})"

    def names(self) -> List[str]:
        """Return the column names, in order."""
        return [col.name for col in self._columns]

    def find(self, name: str) -> Optional[Column]:
        """Return the column with that name, or None."""
        for col in self._columns:
            if col.name == name:
                return col
        return None

    def named(self, name: str) -> Column:
        """Return the column with that name, or raise ColumnNotFoundError."""
        col = self.find(name)
        if col is None:
            raise ColumnNotFoundError(name, self.table_name, (str(c) for c in self._columns))
        return col

    def primary(self) -> Column:
        return self.named(PRIMARY_KEY)

    def as_dicts(self) -> List[Dict[str, Any]]:
        return [col.as_dict() for col in self._columns]


__all__ = ["PRIMARY_KEY", "Column", "ColumnSet"]
