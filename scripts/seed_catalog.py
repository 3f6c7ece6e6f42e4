"""
Seed the demo catalog with deterministic pseudo-random artists, discs and tracks.

Rows are generated from a seeded RNG, optionally written to CSV for
inspection, and saved through the record classes so that every lifecycle hook
(unique codes, timestamps) runs exactly as it would for application code.
"""

from __future__ import annotations

import csv
import random
import sys
import time
from pathlib import Path
from typing import Any, Dict, List

import typer

from dbrecords.catalog import Artist, Genre, catalog_tables
from dbrecords.datasource import DATASOURCE_KINDS, create_datasource
from dbrecords.utils.logging import configure_logging

app = typer.Typer(help="Generate a synthetic music catalog and save it through the record classes.")

GENRES = ["Jazz", "Blues", "Soul", "Funk", "Ambient"]
WORDS = ["Blue", "Night", "Train", "Silent", "Giant", "Steps", "Moon", "River", "Fire", "Way", "Kind", "Song"]


def _title(rng: random.Random, words: int) -> str:
    return " ".join(rng.choice(WORDS) for _ in range(words))


def _generate_catalog(rng: random.Random, artists: int, discs_per_artist: int) -> List[Dict[str, Any]]:
    """Build one dict per artist, each holding its discs and their tracks."""
    catalog = []
    for n in range(artists):
        discs = []
        for _ in range(discs_per_artist):
            discs.append(
                {
                    "name": _title(rng, rng.randint(1, 3)),
                    "year": rng.randint(1950, 2020),
                    "genre": rng.choice(GENRES),
                    "price": rng.randint(599, 2499),
                    "tracks": [
                        {"name": _title(rng, 2), "position": position, "seconds": rng.randint(90, 1200)}
                        for position in range(1, rng.randint(3, 8) + 1)
                    ],
                }
            )
        catalog.append({"name": f"{_title(rng, 1)} Ensemble {n + 1}", "discs": discs})
    return catalog


def _write_csv(csv_path: Path, catalog: List[Dict[str, Any]]) -> int:
    with csv_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["artist", "disc", "year", "genre", "price", "tracks"])
        rows = 0
        for artist in catalog:
            for disc in artist["discs"]:
                writer.writerow(
                    [artist["name"], disc["name"], disc["year"], disc["genre"], disc["price"], len(disc["tracks"])]
                )
                rows += 1
    return rows


def _save_catalog(catalog: List[Dict[str, Any]]) -> int:
    """Save the generated catalog through the bound record classes; returns the number of records."""
    genres = {name: Genre.new_and_save(name=name) for name in GENRES}
    saved = len(genres)
    for entry in catalog:
        artist = Artist.new_and_save(name=entry["name"])
        saved += 1
        for values in entry["discs"]:
            disc = artist.new_discs(name=values["name"], year=values["year"], price=values["price"])
            disc.genre = genres[values["genre"]]
            disc.save_record()
            saved += 1
            for track in values["tracks"]:
                disc.new_tracks(**track).save_record()
                saved += 1
    return saved


@app.command()
def main(
    artists: int = typer.Option(10, "--artists", "-a", help="Number of artists to generate."),
    discs_per_artist: int = typer.Option(3, "--discs", help="Discs per artist."),
    seed: int = typer.Option(42, "--seed", help="Deterministic RNG seed."),
    output: Path | None = typer.Option(None, "--output", "-o", help="Optional CSV summary of the discs."),
    datasource: str = typer.Option(
        "postgres", "--datasource", "-d", help=f"Target datasource ({', '.join(DATASOURCE_KINDS)})."
    ),
    dsn: str | None = typer.Option(None, "--dsn", help="Optional DSN override for Postgres."),
    no_load: bool = typer.Option(False, "--no-load", help="Only generate (and write CSV); skip saving."),
) -> None:
    """
    Generate a catalog and save it, creating the tables when missing.
    """
    configure_logging(level="WARNING")
    start = time.perf_counter()
    catalog = _generate_catalog(random.Random(seed), artists, discs_per_artist)
    typer.echo(f"Generated {artists} artists x {discs_per_artist} discs (seed={seed})")

    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        rows = _write_csv(output, catalog)
        typer.echo(f"Wrote {rows} disc rows -> {output}")

    if no_load:
        typer.echo("Skipping load (no-load flag set).")
        return

    tables = catalog_tables(create_datasource(datasource, dsn=dsn))
    tables.ensure_tables_exist()
    saved = _save_catalog(catalog)
    duration = time.perf_counter() - start
    typer.echo(f"Saved {saved:,} records in {duration:.2f}s ({saved / duration:,.0f} records/s).")


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
