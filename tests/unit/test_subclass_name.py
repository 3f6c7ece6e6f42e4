"""
Polymorphic rows: one table, many record subclasses.
"""

from __future__ import annotations

import logging

import pytest

from dbrecords.record import Record
from dbrecords.table import Table


class Media(Record):
    field_specs = [
        {"name": "id", "field_type": "number"},
        {"name": "kind", "field_type": "subclass_name"},
        {"name": "title", "field_type": "string"},
    ]


class Book(Media):
    field_specs = [{"name": "pages", "field_type": "number"}]


class Film(Media):
    discriminator_value = "movie"
    field_specs = [{"name": "minutes", "field_type": "number"}]


class Documentary(Film):
    pass


@pytest.fixture
def shelf(memory_datasource):
    table = Table("media", memory_datasource)
    columns = {column.name: column for cls in (Book, Film) for column in cls.field_columns()}
    table.table_create(list(columns.values()))
    Media.bind_table(table)
    yield table
    Media.bind_table(None)


class TestDiscriminator:
    def test_new_records_carry_their_class_name(self) -> None:
        assert Book().kind == "Book"
        assert Film().kind == "movie"
        assert Documentary().kind == "Documentary"

    def test_empty_value_reads_as_empty_text(self) -> None:
        media = Media.__new__(Media)
        media._values = {}
        assert media.kind == ""
        media.kind_pack()
        assert media.kind == "Media"

    def test_kind_class(self) -> None:
        film = Film()
        assert film.kind_class() is Film
        film.kind = "Book"
        assert film.kind_class() is Book

    def test_every_subclass_is_registered(self) -> None:
        factory = Media.field("kind").factory
        assert factory["Media"] is Media
        assert factory["Book"] is Book
        assert factory["movie"] is Film
        assert factory["Documentary"] is Documentary


class TestRehydration:
    def test_fetch_through_base_builds_subclasses(self, shelf) -> None:
        Book.new_and_save(title="Dune", pages=412)
        Film.new_and_save(title="Alien", minutes=117)
        Documentary.new_and_save(title="Koyaanisqatsi", minutes=86)

        found = Media.fetch_records(order="id")
        assert [type(item) for item in found] == [Book, Film, Documentary]
        assert found[0].pages == 412
        assert found[1].minutes == 117

    def test_fetch_through_subclass(self, shelf) -> None:
        Film.new_and_save(title="Alien")
        Documentary.new_and_save(title="Koyaanisqatsi")
        Book.new_and_save(title="Dune")
        # Rows of classes outside the fetching class's subtree are built as the fetching class.
        assert [type(item) for item in Film.fetch_records(order="id")] == [Film, Documentary, Film]
        films = Film.fetch_records({"kind": "movie"})
        assert [item.title for item in films] == ["Alien"]
        assert type(Media.fetch_id(2)) is Documentary

    def test_unknown_discriminator_falls_back(self, shelf, caplog: pytest.LogCaptureFixture) -> None:
        shelf.insert_row({"kind": "Podcast", "title": "Mystery"})
        with caplog.at_level(logging.WARNING):
            found = Media.fetch_one({"title": "Mystery"})
        assert type(found) is Media
        assert "Unknown kind 'Podcast'" in caplog.text

    def test_pack_before_save_fills_blank_value(self, shelf) -> None:
        book = Book(title="Blank")
        book.kind = ""
        book.save_record()
        assert shelf.fetch_id(book.id)["kind"] == "Book"
