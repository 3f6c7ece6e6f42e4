from __future__ import annotations

import pytest
from typer.testing import CliRunner

from dbrecords.catalog import TABLES
from dbrecords.errors import ConfigurationError
from dbrecords.main import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def unbind_catalog():
    yield
    for cls in TABLES:
        cls.bind_table(None)


def test_info_shows_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DB_NAME", "catalog_test")
    result = runner.invoke(app, ["info"])
    assert result.exit_code == 0
    assert "/catalog_test" in result.output
    assert "Catalog tables: Artist->artist, Genre->genre, Disc->disc, Track->track" in result.output


def test_demo_on_memory_datasource() -> None:
    result = runner.invoke(app, ["demo", "--datasource", "memory"])
    assert result.exit_code == 0, result.output
    assert "Miles Davis" in result.output
    assert "Deleting Miles Davis while discs exist was refused." in result.output
    assert "This field can only contain numeric values." in result.output


def test_list_fields_for_catalog_class() -> None:
    result = runner.invoke(app, ["list-fields", "Disc"])
    assert result.exit_code == 0
    assert "Disc fields" in result.output


def test_list_fields_for_unknown_class() -> None:
    result = runner.invoke(app, ["list-fields", "dbrecords.catalog.Cassette"])
    assert result.exit_code == 1
    assert isinstance(result.exception, ConfigurationError)
