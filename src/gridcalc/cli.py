"""Command-line interface for gridcalc."""

from __future__ import annotations

import json
from pathlib import Path

import click
import yaml

from gridcalc import __version__


def _load(path: str):
    from gridcalc.logging import set_project_dir
    from gridcalc.project import load_config
    from gridcalc.sheet import load_sheet

    sheet_path = Path(path)
    try:
        config = load_config(sheet_path.parent)
        if config.get("logging_enabled", True):
            set_project_dir(sheet_path.parent)
        sheet = load_sheet(
            sheet_path,
            default_rows=config["default_rows"],
            default_cols=config["default_cols"],
        )
    except (ValueError, OSError, yaml.YAMLError) as e:
        raise click.ClickException(str(e))
    return sheet, config


def _format_table(sheet, rows: list[list[str]], values: list[list[str]]) -> str:
    from gridcalc.address import column_label
    from gridcalc.sheet import value_alignment

    headers = [""] + [column_label(c) for c in range(sheet.n_cols)]
    body = [[str(r + 1)] + row for r, row in enumerate(rows)]
    widths = [max(len(line[i]) for line in [headers] + body) for i in range(len(headers))]

    lines = [" | ".join(h.ljust(w) for h, w in zip(headers, widths)).rstrip()]
    for r, line in enumerate(body):
        cells = [line[0].rjust(widths[0])]
        for c, text in enumerate(line[1:]):
            width = widths[c + 1]
            align = value_alignment(values[r][c])
            cells.append(text.rjust(width) if align == "right" else text.ljust(width))
        lines.append(" | ".join(cells).rstrip())
    return "\n".join(lines)


@click.group()
@click.version_option(version=__version__, prog_name="gridcalc")
def main() -> None:
    """gridcalc -- evaluate spreadsheet formulas in YAML sheets."""


@main.command("eval")
@click.argument("sheet_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--raw", is_flag=True, help="Show engine results without currency formatting.")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def eval_cmd(sheet_file: str, raw: bool, as_json: bool) -> None:
    """Evaluate every cell of SHEET_FILE and print the grid."""
    sheet, config = _load(sheet_file)
    currency = bool(config.get("currency_display", True)) and not raw
    values = sheet.evaluate_all()
    rows = sheet.render(currency=currency, values=values)

    if as_json:
        click.echo(json.dumps({"cells": rows, "errors": sheet.errors(values)}, indent=2))
        return
    click.echo(_format_table(sheet, rows, values))


@main.command("cell")
@click.argument("sheet_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("label")
@click.option("--raw", is_flag=True, help="Show the engine result without currency formatting.")
def cell_cmd(sheet_file: str, label: str, raw: bool) -> None:
    """Print the value of LABEL in SHEET_FILE."""
    sheet, config = _load(sheet_file)
    try:
        row, col = sheet.locate(label)
    except KeyError as e:
        raise click.ClickException(e.args[0])
    currency = bool(config.get("currency_display", True)) and not raw
    click.echo(sheet.display_value(row, col, currency=currency))


@main.command("new")
@click.argument("sheet_file", type=click.Path(dir_okay=False))
@click.option("--rows", type=int, default=None, help="Number of rows (default from gridcalc.yaml).")
@click.option("--cols", type=int, default=None, help="Number of columns (default from gridcalc.yaml).")
def new(sheet_file: str, rows: int | None, cols: int | None) -> None:
    """Create an empty sheet at SHEET_FILE."""
    from gridcalc.project import load_config
    from gridcalc.sheet import Sheet, save_sheet

    target = Path(sheet_file)
    if target.exists():
        raise click.ClickException(f"{target} already exists")
    try:
        config = load_config(target.parent)
        sheet = Sheet(rows or config["default_rows"], cols or config["default_cols"], name=target.stem)
    except ValueError as e:
        raise click.ClickException(str(e))
    save_sheet(sheet, target)
    click.echo(f"Created {sheet.n_rows}x{sheet.n_cols} sheet at {target}")


@main.command("label")
@click.argument("index", type=click.IntRange(min=0))
def label(index: int) -> None:
    """Print the column label for 0-based column INDEX."""
    from gridcalc.address import column_label

    click.echo(column_label(index))


@main.command("events")
@click.argument("directory", type=click.Path(exists=True, file_okay=False))
@click.option("--level", default=None, help="Filter by level (info, warning, error).")
@click.option("--type", "event_type", default=None, help="Filter by event type.")
@click.option("--cell", default=None, help="Filter by cell label, e.g. B1.")
@click.option("--limit", default=50, help="Maximum events to show.")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def events(
    directory: str,
    level: str | None,
    event_type: str | None,
    cell: str | None,
    limit: int,
    as_json: bool,
) -> None:
    """Show logged events for sheets in DIRECTORY."""
    from gridcalc.logging.sink import EventSink
    from gridcalc.project import load_config

    try:
        config = load_config(Path(directory))
    except ValueError as e:
        raise click.ClickException(str(e))
    sink = EventSink(Path(directory), tail_bytes=config["logging_tail_bytes"])
    found = sink.read_global(
        level=level,
        event_type=event_type,
        cell=cell.strip().upper() if cell else None,
        limit=limit,
    )
    if as_json:
        click.echo(json.dumps(found, indent=2))
        return
    if not found:
        click.echo("No events found.")
        return
    for evt in found:
        code = f" [{evt['error_code']}]" if evt.get("error_code") else ""
        click.echo(f"{evt['ts']}  {evt['level']:<7}  {evt['event_type']}{code}  {evt['message']}")
