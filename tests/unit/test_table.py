from __future__ import annotations

import pytest

from dbrecords.criteria import Compare
from dbrecords.datasource import create_datasource
from dbrecords.datasource.memory import MemoryDataSource
from dbrecords.errors import ConfigurationError, DataSourceError
from dbrecords.schema import Column, ColumnSet
from dbrecords.table import Table

COLUMNS = [
    Column(name="id", type="int", required=True),
    Column(name="name", type="text", length=64),
    Column(name="year", type="int"),
]


@pytest.fixture
def disc_table(memory_datasource: MemoryDataSource) -> Table:
    table = Table("disc", memory_datasource)
    table.table_create(COLUMNS)
    table.insert_rows(
        [
            {"name": "Kind of Blue", "year": 1959},
            {"name": "Bitches Brew", "year": 1970},
            {"name": "In a Silent Way", "year": 1969},
        ]
    )
    return table


class TestRows:
    def test_insert_writes_back_the_id(self, memory_datasource: MemoryDataSource) -> None:
        table = Table("disc", memory_datasource)
        table.table_create(COLUMNS)
        row = {"name": "Milestones", "year": 1958, "not_a_column": "ignored"}
        assert table.insert_row(row) == 1
        assert row["id"] == 1
        assert "not_a_column" not in table.fetch_id(1)

    def test_explicit_id_is_kept(self, disc_table: Table) -> None:
        assert disc_table.insert_row({"id": 10, "name": "Sorcerer"}) == 10
        assert disc_table.insert_row({"name": "Nefertiti"}) == 11

    def test_select_with_criteria_order_and_limit(self, disc_table: Table) -> None:
        rows = disc_table.fetch_select(Compare("year", ">", 1960), order="-year")
        assert [row["name"] for row in rows] == ["Bitches Brew", "In a Silent Way"]
        assert len(disc_table.fetch_select(limit=2)) == 2
        assert disc_table.fetch_select(columns=["name"], limit=1) == [{"name": "Kind of Blue"}]
        assert len(disc_table.fetch_all()) == 3

    def test_fetch_id_missing(self, disc_table: Table) -> None:
        assert disc_table.fetch_id(99) is None

    def test_update_row_and_update_where(self, disc_table: Table) -> None:
        row = disc_table.fetch_id(1)
        row["year"] = 1960
        assert disc_table.update_row(row) == 1
        assert disc_table.fetch_id(1)["year"] == 1960
        assert disc_table.update_where(Compare("year", ">=", 1960), {"name": "Sixties"}) == 3
        assert {row["name"] for row in disc_table.fetch_all()} == {"Sixties"}

    def test_deletes(self, disc_table: Table) -> None:
        assert disc_table.delete_id(1) == 1
        assert disc_table.delete_row({"id": 2}) == 1
        assert disc_table.delete_where({"year": 1900}) == 0
        assert disc_table.delete_all() == 1
        assert disc_table.count_rows() == 0

    def test_aggregates(self, disc_table: Table) -> None:
        assert disc_table.count_rows() == 3
        assert disc_table.count_rows({"year": 1959}) == 1
        assert disc_table.fetch_max("year") == 1970
        assert disc_table.fetch_max("year", {"year": 1900}) is None

    def test_unknown_column_is_a_datasource_error(self, disc_table: Table) -> None:
        with pytest.raises(DataSourceError, match="no column"):
            disc_table.fetch_select(columns=["label"])


class TestColumnMetadata:
    def test_columns_are_introspected_and_cached(self, memory_datasource: MemoryDataSource) -> None:
        Table("disc", memory_datasource).table_create(COLUMNS)
        table = Table("disc", memory_datasource)
        assert table.column_names() == ["id", "name", "year"]
        assert table.column_named("name").length == 64
        assert table.column_primary_name() == "id"
        memory_datasource.drop_table("disc")
        assert table.column_names() == ["id", "name", "year"]

    def test_empty_introspection_is_not_cached(self, memory_datasource: MemoryDataSource) -> None:
        table = Table("disc", memory_datasource)
        assert table.column_names() == []
        Table("disc", memory_datasource).table_create(COLUMNS)
        assert table.column_names() == ["id", "name", "year"]

    def test_set_column_set(self, memory_datasource: MemoryDataSource) -> None:
        table = Table("disc", memory_datasource, column_set=ColumnSet(COLUMNS[:2]))
        assert table.column_names() == ["id", "name"]
        table.set_column_set(COLUMNS)
        assert table.columns() == COLUMNS
        table.set_column_set(None)
        assert table.column_names() == []

    def test_requires_a_datasource(self) -> None:
        with pytest.raises(ConfigurationError, match="No datasource set for table 'disc'"):
            Table("disc").count_rows()


class TestDDL:
    def test_ensure_exists_creates_once(self, memory_datasource: MemoryDataSource) -> None:
        table = Table("disc", memory_datasource)
        assert table.table_ensure_exists(COLUMNS) is True
        assert table.table_ensure_exists(COLUMNS) is False
        assert table.table_exists()

    def test_create_needs_columns(self, memory_datasource: MemoryDataSource) -> None:
        with pytest.raises(ConfigurationError, match="No column definitions"):
            Table("disc", memory_datasource).table_create()

    def test_drop(self, disc_table: Table, memory_datasource: MemoryDataSource) -> None:
        disc_table.table_drop()
        assert not disc_table.table_exists()
        assert memory_datasource.table_names() == []

    def test_recreate_discards_rows(self, disc_table: Table) -> None:
        disc_table.table_recreate()
        assert disc_table.count_rows() == 0
        assert disc_table.column_names() == ["id", "name", "year"]

    def test_recreate_with_rows_migrates_columns(self, disc_table: Table) -> None:
        columns = [COLUMNS[0], COLUMNS[1], Column(name="label", type="text")]
        assert disc_table.table_recreate_with_rows(columns) == 3
        assert disc_table.column_names() == ["id", "name", "label"]
        row = disc_table.fetch_id(2)
        assert row == {"id": 2, "name": "Bitches Brew", "label": None}
        assert disc_table.insert_row({"name": "Next"}) == 4


class TestDatasourceFactory:
    def test_memory(self) -> None:
        assert isinstance(create_datasource("memory"), MemoryDataSource)

    def test_unknown_kind(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown datasource 'oracle'"):
            create_datasource("oracle")
