from __future__ import annotations

import sys
from typing import Optional

import typer

from dbrecords.catalog import TABLES, Artist, Disc, Genre, Track, catalog_tables
from dbrecords.config import get_settings
from dbrecords.datasource import DATASOURCE_KINDS, create_datasource
from dbrecords.errors import DBRecordsError
from dbrecords.reporter import print_diagnostics, print_fields, print_records
from dbrecords.tableset import TableSet, import_class
from dbrecords.utils.logging import configure_logging, get_logger

app = typer.Typer(help="dbrecords: schema-driven records on PostgreSQL or in memory.")

log = get_logger(__name__)


def _setup_logging() -> None:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)


def _connected_catalog(dsn: Optional[str]) -> TableSet:
    tables = catalog_tables()
    tables.connect_datasource(dsn)
    tables.declare_tables()
    return tables


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name} | "
        f"env={settings.app_env} log={settings.log_level}{' (json)' if settings.log_json else ''} "
        f"statement_timeout={settings.db_statement_timeout_ms}ms "
        f"unique_code_attempts={settings.unique_code_max_attempts}"
    )
    typer.echo("Catalog tables: " + ", ".join(f"{cls.__name__}->{name}" for cls, name in TABLES.items()))


@app.command("create-schema")
def create_schema(
    dsn: Optional[str] = typer.Option(None, "--dsn", help="PostgreSQL DSN (default from settings)."),
    refresh: bool = typer.Option(
        False, "--refresh", help="Recreate existing tables (keeping their rows) to match the fields."
    ),
) -> None:
    """
    Create the demo catalog tables in PostgreSQL.
    """
    _setup_logging()
    tables = _connected_catalog(dsn)
    if refresh:
        tables.refresh_tables_schema()
        typer.echo("Refreshed tables: " + ", ".join(TABLES.values()))
    else:
        created = tables.ensure_tables_exist()
        typer.echo("Created tables: " + (", ".join(created) if created else "none (all exist)"))


@app.command("drop-schema")
def drop_schema(
    dsn: Optional[str] = typer.Option(None, "--dsn", help="PostgreSQL DSN (default from settings)."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
) -> None:
    """
    Drop the demo catalog tables from PostgreSQL.
    """
    _setup_logging()
    if not yes:
        typer.confirm("Drop the catalog tables and all their rows?", abort=True)
    dropped = _connected_catalog(dsn).drop_tables()
    typer.echo("Dropped tables: " + (", ".join(dropped) if dropped else "none"))


@app.command()
def demo(
    datasource: str = typer.Option(
        "memory",
        "--datasource",
        "-d",
        help=f"Where to store the catalog ({', '.join(DATASOURCE_KINDS)}).",
    ),
    dsn: Optional[str] = typer.Option(None, "--dsn", help="PostgreSQL DSN (default from settings)."),
) -> None:
    """
    Build a small catalog, save it, and print what was stored.
    """
    _setup_logging()
    tables = catalog_tables(create_datasource(datasource, dsn=dsn))
    tables.ensure_tables_exist()

    jazz = Genre.new_and_save(name="Jazz")
    artist = Artist.new_and_save(name="Miles Davis")
    for name, year, price in (("Kind of Blue", 1959, "$11.99"), ("Bitches Brew", "1970", "$14.50")):
        disc = artist.new_discs(name=name, year=year, price=price)
        disc.genre = jazz
        disc.save_record()
        for position, title in enumerate(("Side A", "Side B"), start=1):
            disc.new_tracks(name=title, position=position, seconds=1200).save_record()

    log.info("Saved demo catalog", extra={"discs": artist.count_discs(), "datasource": datasource})

    print_records(Artist.fetch_all(), "Artists")
    print_records(
        Disc.fetch_records(order="year"),
        "Discs",
        columns=["id", "name", "year", "artist_id", "genre_id", "catalog_code", "price", "recorded"],
    )
    print_records(Track.fetch_records(order=["disc_id", "position"]), "Tracks")

    refused = not artist.delete_record()
    typer.echo(f"Deleting {artist.name} while discs exist was {'refused' if refused else 'allowed'}.")
    print_diagnostics(Disc(name="x" * 80, year="abc").invalid_fields())

    if datasource != "memory":
        tables.drop_tables()


@app.command("list-fields")
def list_fields(
    record_class: str = typer.Argument(..., help="Catalog class name (e.g. Disc) or dotted class path."),
) -> None:
    """
    Show the merged fields of a record class and the columns they need.
    """
    catalog = {cls.__name__: cls for cls in TABLES}
    cls = catalog.get(record_class) or import_class(record_class)
    print_fields(cls)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
    except DBRecordsError as exc:
        typer.echo(f"Error: {exc}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
