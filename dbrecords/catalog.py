"""
Demo music catalog: artists, genres, discs and tracks.

Used by ``dbrecords demo`` and the tests as a small but complete example of
field declarations, relationships and lifecycle hooks.
"""

from __future__ import annotations

from typing import Optional

from dbrecords.datasource.abstract import DataSource
from dbrecords.fields import FieldSpec
from dbrecords.record import Record
from dbrecords.tableset import TableSet

ID = {"name": "id", "field_type": "number", "required": True}
NAME = {"name": "name", "field_type": "string", "length": 64, "required": True}


class Artist(Record):
    field_specs = [
        ID,
        NAME,
        # An artist with discs can't be deleted until the discs are gone.
        FieldSpec.of("line_items", "discs", related_class="Disc", related_field="artist_id", on_delete="restrict"),
    ]


class Genre(Record):
    field_specs = [
        ID,
        NAME,
        FieldSpec.of("line_items", "discs", related_class="Disc", related_field="genre_id"),
    ]


class Disc(Record):
    field_specs = [
        ID,
        NAME,
        FieldSpec.of("number", "year"),
        FieldSpec.of("foreign_key", "artist", related_class=Artist, accessors="name"),
        FieldSpec.of("foreign_key", "genre", related_class=Genre, accessors="name"),
        FieldSpec.of("unique_code", "catalog_code", length=6),
        FieldSpec.of("currency_uspennies", "price"),
        FieldSpec.of("timestamp", "recorded", interface="created"),
        FieldSpec.of("timestamp", "updated", interface="modified"),
        FieldSpec.of("line_items", "tracks", related_class="Track", related_field="disc_id", on_delete="cascade"),
        FieldSpec.of("alias", "title", target="name"),
    ]

    def label(self) -> str:
        return f"{self.name} ({self.year or 'unknown'})"


class Track(Record):
    field_specs = [
        ID,
        NAME,
        FieldSpec.of("number", "position"),
        FieldSpec.of("number", "seconds"),
        FieldSpec.of("foreign_key", "disc", related_class=Disc, required=True, delegate="label", accessors="year"),
    ]


TABLES = {Artist: "artist", Genre: "genre", Disc: "disc", Track: "track"}


def catalog_tables(datasource: Optional[DataSource] = None) -> TableSet:
    """TableSet for the catalog classes, declared on ``datasource`` when one is given."""
    tables = TableSet(TABLES, datasource=datasource)
    if datasource is not None:
        tables.declare_tables()
    return tables


__all__ = ["Artist", "Genre", "Disc", "Track", "TABLES", "catalog_tables"]
