"""
Statement composition of the PostgreSQL datasource, checked without a server.
"""

from __future__ import annotations

from typing import Any, Mapping

import pytest
from psycopg import sql

from dbrecords.criteria import And, Compare, Criteria, Equals, Or
from dbrecords.datasource.postgres import PostgresDataSource, column_definition, render_criteria, render_order
from dbrecords.errors import DataSourceError
from dbrecords.schema import Column


class Anything(Criteria):
    def matches(self, row: Mapping[str, Any]) -> bool:
        return True


class TestCriteriaParameters:
    def test_no_criteria(self) -> None:
        clause, params = render_criteria(None)
        assert clause == sql.SQL("")
        assert params == []

    def test_mapping_binds_values_in_order(self) -> None:
        _, params = render_criteria({"artist_id": 3, "year": 1959})
        assert params == [3, 1959]

    def test_null_equality_binds_nothing(self) -> None:
        _, params = render_criteria(Equals("genre_id", None) & Compare("year", "!=", None))
        assert params == []

    def test_nested_composition(self) -> None:
        where = Or(Equals("year", 1959), And(Compare("year", ">", 1965), Equals("artist_id", 2)))
        _, params = render_criteria(where)
        assert params == [1959, 1965, 2]

    def test_unsupported_criteria(self) -> None:
        with pytest.raises(DataSourceError, match="cannot render Anything"):
            render_criteria(Anything())


class TestComposition:
    def test_order_is_empty_without_keys(self) -> None:
        assert render_order(None) == sql.SQL("")
        assert render_order("-year") != sql.SQL("")

    def test_column_definitions_are_composed(self) -> None:
        for column in (
            Column(name="id", type="int", required=True),
            Column(name="name", type="text", length=64, required=True),
            Column(name="price", type="int"),
        ):
            assert isinstance(column_definition(column), sql.Composed)

    def test_datasource_is_lazy(self) -> None:
        datasource = PostgresDataSource(dsn="postgresql://nobody@localhost:1/none")
        assert datasource.name == "postgres"
        datasource.close()
