"""
Materialized query results.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Generic, Iterable, Iterator, List, TypeVar, Union, overload

if TYPE_CHECKING:  # pragma: no cover
    from dbrecords.record import Record

R = TypeVar("R", bound="Record")


class RecordSet(Generic[R]):
    """
    Ordered, fully loaded sequence of records returned by a fetch.

    Iteration always restarts from the first record, so a RecordSet can be
    walked any number of times.
    """

    def __init__(self, records: Iterable[R] = ()) -> None:
        self._records: List[R] = list(records)

    @overload
    def __getitem__(self, index: int) -> R: ...

    @overload
    def __getitem__(self, index: slice) -> "RecordSet[R]": ...

    def __getitem__(self, index: Union[int, slice]) -> Union[R, "RecordSet[R]"]:
        if isinstance(index, slice):
            return RecordSet(self._records[index])
        return self._records[index]

    def __iter__(self) -> Iterator[R]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __bool__(self) -> bool:
        return bool(self._records)

    def __repr__(self) -> str:
        return f"<RecordSet of {len(self._records)} records>"

    def count(self) -> int:
        return len(self._records)

    def records(self) -> List[R]:
        """A new list holding the records."""
        return list(self._records)

    def first(self) -> R | None:
        return self._records[0] if self._records else None

    def ids(self) -> List[Any]:
        return [record.get_value("id") for record in self._records]

    def values(self, key: str) -> List[Any]:
        """The stored value under ``key`` for every record."""
        return [record.get_value(key) for record in self._records]

    def call(self, method: str, *args: Any, **kwargs: Any) -> List[Any]:
        """Call ``method`` on every record and collect the results."""
        return [getattr(record, method)(*args, **kwargs) for record in self._records]

    def filter(self, predicate: Callable[[R], bool]) -> "RecordSet[R]":
        return RecordSet(record for record in self._records if predicate(record))


__all__ = ["RecordSet"]
