"""
Criteria and aggregate expressions passed across the datasource boundary.

Query operations accept either a plain mapping of column name to expected
value (an implicit equality AND) or a composable ``Criteria`` object. The
record engine never builds query-language text; each datasource adapter
interprets these objects itself. ``matches`` gives the reference semantics
used by the in-memory datasource.
"""

from __future__ import annotations

import abc
import operator
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple, Union

_OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "=": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


def loose_equal(left: Any, right: Any) -> bool:
    """Compare two column values, falling back to their text forms when types differ."""
    if left is None or right is None:
        return left is None and right is None
    if left == right:
        return True
    return str(left) == str(right)


class Criteria(abc.ABC):
    """Composable filter expression."""

    @abc.abstractmethod
    def matches(self, row: Mapping[str, Any]) -> bool:  # pragma: no cover - interface only
        raise NotImplementedError

    def __and__(self, other: "CriteriaLike") -> "And":
        return And(self, as_criteria(other))

    def __or__(self, other: "CriteriaLike") -> "Or":
        return Or(self, as_criteria(other))


@dataclass(frozen=True)
class Equals(Criteria):
    column: str
    value: Any

    def matches(self, row: Mapping[str, Any]) -> bool:
        return loose_equal(row.get(self.column), self.value)


@dataclass(frozen=True)
class Compare(Criteria):
    column: str
    op: str
    value: Any

    def __post_init__(self) -> None:
        if self.op not in _OPERATORS:
            raise ValueError(f"Unsupported comparison '{self.op}'. Available: {', '.join(_OPERATORS)}")

    def matches(self, row: Mapping[str, Any]) -> bool:
        current = row.get(self.column)
        if current is None or self.value is None:
            return self.op == "=" and current is self.value
        if self.op == "=":
            return loose_equal(current, self.value)
        if self.op == "!=":
            return not loose_equal(current, self.value)
        try:
            return _OPERATORS[self.op](current, self.value)
        except TypeError:
            return _OPERATORS[self.op](str(current), str(self.value))


class And(Criteria):
    """All of the contained criteria must hold."""

    def __init__(self, *parts: Criteria) -> None:
        self.parts: Tuple[Criteria, ...] = tuple(parts)

    def matches(self, row: Mapping[str, Any]) -> bool:
        return all(part.matches(row) for part in self.parts)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, And) and self.parts == other.parts

    def __repr__(self) -> str:
        return f"And{self.parts!r}"


class Or(Criteria):
    """At least one of the contained criteria must hold."""

    def __init__(self, *parts: Criteria) -> None:
        self.parts: Tuple[Criteria, ...] = tuple(parts)

    def matches(self, row: Mapping[str, Any]) -> bool:
        return any(part.matches(row) for part in self.parts)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Or) and self.parts == other.parts

    def __repr__(self) -> str:
        return f"Or{self.parts!r}"


@dataclass(frozen=True)
class Aggregate:
    """A single-value aggregate such as ``count(*)`` or ``max(column)``."""

    function: str
    column: Optional[str] = None

    def __post_init__(self) -> None:
        if self.function not in ("count", "max", "min", "sum"):
            raise ValueError(f"Unsupported aggregate '{self.function}'")
        if self.function != "count" and not self.column:
            raise ValueError(f"Aggregate '{self.function}' needs a column")


CriteriaLike = Union[Criteria, Mapping[str, Any], None]
OrderLike = Union[str, Sequence[str], None]


def as_criteria(criteria: CriteriaLike) -> Optional[Criteria]:
    """Normalize a mapping or Criteria (or None) into a Criteria object."""
    if criteria is None:
        return None
    if isinstance(criteria, Criteria):
        return criteria
    if isinstance(criteria, Mapping):
        parts = [Equals(column, value) for column, value in criteria.items()]
        if not parts:
            return None
        return parts[0] if len(parts) == 1 else And(*parts)
    raise TypeError(f"Criteria must be a mapping or Criteria object, not {type(criteria).__name__}")


def combine(*criteria: CriteriaLike) -> Optional[Criteria]:
    """AND together any number of criteria, skipping empty ones."""
    parts = [c for c in (as_criteria(item) for item in criteria) if c is not None]
    if not parts:
        return None
    return parts[0] if len(parts) == 1 else And(*parts)


def normalize_order(order: OrderLike) -> list[Tuple[str, bool]]:
    """
    Turn an order argument into ``(column, descending)`` pairs.

    Accepts a column name, a comma separated list of names, or a sequence of
    names; a leading ``-`` sorts that column in descending order.
    """
    if not order:
        return []
    names = [part.strip() for part in order.split(",")] if isinstance(order, str) else list(order)
    pairs = []
    for name in names:
        if not name:
            continue
        if name.startswith("-"):
            pairs.append((name[1:], True))
        else:
            pairs.append((name, False))
    return pairs


__all__ = [
    "Criteria",
    "Equals",
    "Compare",
    "And",
    "Or",
    "Aggregate",
    "CriteriaLike",
    "OrderLike",
    "as_criteria",
    "combine",
    "loose_equal",
    "normalize_order",
]
