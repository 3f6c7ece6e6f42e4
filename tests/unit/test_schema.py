from __future__ import annotations

import pytest

from dbrecords.errors import ColumnNotFoundError, DBRecordsError
from dbrecords.schema import Column, ColumnSet

COLUMNS = [
    Column(name="id", type="int", required=True),
    {"name": "name", "type": "text", "length": 64, "required": True},
    {"name": "year", "type": "int"},
]


class TestColumnSet:
    """Ordered column metadata and lookups."""

    def test_builds_from_columns_and_dicts(self) -> None:
        columns = ColumnSet(COLUMNS, table_name="disc")
        assert len(columns) == 3
        assert columns.names() == ["id", "name", "year"]
        assert columns[1].length == 64
        assert columns.primary().name == "id"

    def test_find_returns_none_for_unknown(self) -> None:
        assert ColumnSet(COLUMNS).find("price") is None

    def test_named_raises_with_available_columns(self) -> None:
        columns = ColumnSet(COLUMNS, table_name="disc")
        with pytest.raises(ColumnNotFoundError) as excinfo:
            columns.named("price")
        message = str(excinfo.value)
        assert "price" in message
        assert "disc" in message
        assert "name (text)" in message
        assert isinstance(excinfo.value, KeyError)
        assert isinstance(excinfo.value, DBRecordsError)

    def test_as_dicts_omits_unset_length(self) -> None:
        dicts = ColumnSet(COLUMNS).as_dicts()
        assert dicts[0] == {"name": "id", "type": "int", "required": True}
        assert dicts[1]["length"] == 64

    def test_slicing_keeps_table_name(self) -> None:
        columns = ColumnSet(COLUMNS, table_name="disc")[1:]
        assert isinstance(columns, ColumnSet)
        assert columns.table_name == "disc"
        assert columns.names() == ["name", "year"]

    def test_column_is_frozen(self) -> None:
        column = Column(name="id", type="int")
        with pytest.raises(Exception):
            column.name = "other"  # type: ignore[misc]
        assert str(column) == "id (int)"
