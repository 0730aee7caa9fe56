"""Render command results as a rich table, JSON or CSV on stdout."""

from __future__ import annotations

import csv
import json
import sys
from collections.abc import Sequence
from typing import Any

from rich.console import Console
from rich.table import Table

from sheetfreak.exceptions import InvalidInputError

OUTPUT_FORMATS = ("table", "json", "csv")


def _console() -> Console:
    # Looked up per call so redirected stdout (pipes, tests) is honoured.
    return Console(file=sys.stdout)


def print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


def print_message(message: str, style: str = "green") -> None:
    """Print a styled status line."""
    _console().print(f"[{style}]{message}[/{style}]", highlight=False)


def _write_csv(rows: Sequence[Sequence[Any]]) -> None:
    writer = csv.writer(sys.stdout, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for row in rows:
        writer.writerow(["" if cell is None else cell for cell in row])


def render_values(
    values: list[list[Any]], fmt: str = "table", range_name: str | None = None
) -> None:
    """Print a grid of cell values.

    JSON output is ``{"range": ..., "values": [[...]]}``. CSV quotes every
    cell. Table output pads short rows and labels columns by position.
    """
    if fmt == "json":
        print_json({"range": range_name, "values": values})
        return
    if fmt == "csv":
        _write_csv(values)
        return
    if fmt != "table":
        raise InvalidInputError(
            f"Unknown output format: {fmt}. Expected one of: {', '.join(OUTPUT_FORMATS)}"
        )

    console = _console()
    if not values:
        console.print("[yellow]No data found.[/yellow]")
        return

    width = max(len(row) for row in values)
    table = Table(title=range_name)
    for i in range(width):
        table.add_column(f"Col {i + 1}", overflow="fold")
    for row in values:
        padded = list(row) + [""] * (width - len(row))
        table.add_row(*[str(cell) for cell in padded])
    console.print(table)
    console.print(f"[dim]{len(values)} rows[/dim]")


def render_records(
    records: list[dict[str, Any]],
    columns: Sequence[str],
    fmt: str = "table",
    title: str | None = None,
    key: str = "items",
) -> None:
    """Print a listing of records.

    Args:
        records: Rows keyed by column name
        columns: Columns to show, in order
        fmt: table, json or csv
        title: Table title
        key: Top-level key wrapping the list in JSON output
    """
    if fmt == "json":
        print_json({key: records})
        return
    if fmt == "csv":
        _write_csv([list(columns)] + [[r.get(c, "") for c in columns] for r in records])
        return

    console = _console()
    if not records:
        console.print(f"[yellow]No {key} found.[/yellow]")
        return

    table = Table(title=title)
    for column in columns:
        table.add_column(column)
    for record in records:
        table.add_row(*[str(record.get(c, "")) for c in columns])
    console.print(table)
