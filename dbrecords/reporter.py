from __future__ import annotations

from typing import Any, Iterable, List, Optional, Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from dbrecords.record import Record


def _cell(value: Any) -> str:
    if value is None:
        return "[dim]-[/dim]"
    if isinstance(value, int) and not isinstance(value, bool):
        return f"{value:,}" if abs(value) >= 10_000 else str(value)
    return str(value)


def records_table(
    records: Iterable[Record],
    title: str,
    columns: Optional[Sequence[str]] = None,
) -> Table:
    """
    Build a rich table with one row per record.

    Columns default to the stored keys of the first record; each cell shows the
    raw stored value.
    """
    records = list(records)
    if columns is None:
        columns = list(records[0]) if records else []

    table = Table(title=title, box=box.ROUNDED, caption=f"{len(records)} records")
    for name in columns:
        justify = "right" if name == "id" or name.endswith("_id") else "left"
        table.add_column(name, justify=justify, style="cyan" if name == "id" else None, no_wrap=True)
    for record in records:
        table.add_row(*(_cell(record.get_value(name)) for name in columns))
    return table


def fields_table(record_class: type) -> Table:
    """Build a rich table describing the merged fields of a record class."""
    table = Table(title=f"{record_class.__name__} fields", box=box.ROUNDED)
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Type", style="magenta")
    table.add_column("Column", style="green")
    table.add_column("Declared on", style="yellow")

    for name, field in record_class.fields().items():
        column = field.column(record_class)
        table.add_row(
            name,
            field.field_type,
            str(column) if column is not None else "[dim]none[/dim]",
            field.owner.__name__ if field.owner else "-",
        )
    return table


def print_records(records: Iterable[Record], title: str, columns: Optional[Sequence[str]] = None) -> None:
    console = Console()
    records = list(records)
    if not records:
        console.print(f"[yellow]No {title.lower()} to display.[/yellow]")
        return
    console.print(records_table(records, title, columns))


def print_fields(record_class: type) -> None:
    Console().print(fields_table(record_class))


def print_diagnostics(problems: List[tuple]) -> None:
    console = Console()
    if not problems:
        console.print("[green]No validation problems.[/green]")
        return
    for field_name, message in problems:
        console.print(f"[red]{field_name}[/red]: {message}")


__all__ = ["records_table", "fields_table", "print_records", "print_fields", "print_diagnostics"]
