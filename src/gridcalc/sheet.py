"""Sheet model: raw grid state, edits, and the display pass.

The formula engine only reads grids.  :class:`Sheet` is the caller side:
it owns the raw values, applies edits and pastes, evaluates every cell
for display and decides how each result is shown (error sentinels as-is,
numbers as currency).

Sheets persist as YAML::

    n_rows: 10
    n_cols: 10
    cells:
      A1: "100"
      B1: "=A1 * 2"
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from gridcalc.address import cell_label, parse_address
from gridcalc.formulas import CYCLE, ERROR_SENTINELS, evaluate_cell, is_burnrate, is_error
from gridcalc.logging.events import EventType, emit_info, emit_warning
from gridcalc.numeric import format_currency, is_numeric, strip_currency_formatting


class Sheet:
    """A rectangular grid of raw cell strings.

    Parameters
    ----------
    n_rows : int
        Number of rows (>= 1).
    n_cols : int
        Number of columns (>= 1).
    name : str | None
        Optional display name, used in log events.
    """

    def __init__(self, n_rows: int, n_cols: int, name: str | None = None) -> None:
        if n_rows < 1 or n_cols < 1:
            raise ValueError(f"Sheet size must be at least 1x1, got {n_rows}x{n_cols}")
        self.name = name
        self._grid: list[list[str]] = [["" for _ in range(n_cols)] for _ in range(n_rows)]

    @classmethod
    def from_grid(cls, grid: list[list[Any]], name: str | None = None) -> Sheet:
        """Build a sheet from nested lists.  Short rows are padded, ``None`` becomes ``""``."""
        n_rows = len(grid)
        n_cols = max((len(r) for r in grid), default=0)
        sheet = cls(max(n_rows, 1), max(n_cols, 1), name=name)
        for r, row in enumerate(grid):
            for c, value in enumerate(row):
                sheet._grid[r][c] = "" if value is None else str(value)
        return sheet

    # ------------------------------------------------------------------
    # Shape and raw access
    # ------------------------------------------------------------------

    @property
    def n_rows(self) -> int:
        return len(self._grid)

    @property
    def n_cols(self) -> int:
        return len(self._grid[0])

    @property
    def grid(self) -> list[list[str]]:
        """The live raw grid (row-major)."""
        return self._grid

    def locate(self, label: str) -> tuple[int, int]:
        """Parse a label against this sheet's bounds.

        Raises:
            KeyError: If the label is malformed or outside the sheet.
        """
        addr = parse_address(label, self.n_rows, self.n_cols)
        if addr is None:
            raise KeyError(f"No cell {label!r} in a {self.n_rows}x{self.n_cols} sheet")
        return addr

    def get_raw(self, label: str) -> str:
        row, col = self.locate(label)
        return self._grid[row][col]

    def set_cell(self, label: str, value: str) -> None:
        """Commit an edit: store *value* verbatim."""
        row, col = self.locate(label)
        self._grid[row][col] = value

    def paste(self, label: str, text: str) -> str:
        """Commit pasted text, dropping currency decoration from numbers.

        ``"$1,250.00"`` is stored as ``"1250.00"``; anything that is not a
        number once decoration is removed is stored unchanged.

        Returns:
            The raw value actually stored.
        """
        stripped = strip_currency_formatting(text)
        value = stripped if is_numeric(stripped) else text
        self.set_cell(label, value)
        return value

    def cells(self) -> dict[str, str]:
        """Non-empty raw cells keyed by label, row-major."""
        return {
            cell_label(r, c): value
            for r, row in enumerate(self._grid)
            for c, value in enumerate(row)
            if value != ""
        }

    # ------------------------------------------------------------------
    # Evaluation and display
    # ------------------------------------------------------------------

    def value(self, row: int, col: int) -> str:
        """Evaluated value of one cell (raw text for non-formulas)."""
        return evaluate_cell(self._grid, row, col)

    def is_burnrate(self, row: int, col: int) -> bool:
        return is_burnrate(self._grid[row][col])

    def display_value(self, row: int, col: int, *, currency: bool = True) -> str:
        """Text shown for one cell.

        Error sentinels are shown unformatted; numeric values are currency
        formatted when *currency* is set.
        """
        result = self.value(row, col)
        if is_error(result) or not currency:
            return result
        return format_currency(result)

    def alignment(self, row: int, col: int) -> str:
        """``"right"`` for numeric values, ``"left"`` otherwise."""
        return value_alignment(self.value(row, col))

    def evaluate_all(self) -> list[list[str]]:
        """Evaluate every cell independently, row-major."""
        return [[self.value(r, c) for c in range(self.n_cols)] for r in range(self.n_rows)]

    def render(
        self, *, currency: bool = True, values: list[list[str]] | None = None
    ) -> list[list[str]]:
        """Display pass over the whole sheet.

        Emits one ``sheet_evaluated`` event and one warning per cell whose
        result is an error sentinel.  Pass *values* from :meth:`evaluate_all`
        to reuse an evaluation already done.
        """
        if values is None:
            values = self.evaluate_all()
        n_errors = 0
        for r, row in enumerate(values):
            for c, result in enumerate(row):
                if result in ERROR_SENTINELS:
                    n_errors += 1
                    self._emit_cell_error(cell_label(r, c), result)

        emit_info(
            EventType.sheet_evaluated,
            f"Evaluated {self.n_rows}x{self.n_cols} sheet",
            {"sheet": self.name, "n_rows": self.n_rows, "n_cols": self.n_cols, "n_errors": n_errors},
        )
        if not currency:
            return values
        return [[v if is_error(v) else format_currency(v) for v in row] for row in values]

    def errors(self, values: list[list[str]] | None = None) -> dict[str, str]:
        """Cells whose value is an error sentinel, keyed by label.

        Text that merely starts with ``#`` (a raw ``"#1 priority"``) is not
        an error.
        """
        if values is None:
            values = self.evaluate_all()
        return {
            cell_label(r, c): value
            for r, row in enumerate(values)
            for c, value in enumerate(row)
            if value in ERROR_SENTINELS
        }

    def _emit_cell_error(self, label: str, sentinel: str) -> None:
        event_type = EventType.cycle_detected if sentinel == CYCLE else EventType.cell_error
        emit_warning(
            event_type,
            f"{label} evaluated to {sentinel}",
            {"cell": label, "sheet": self.name},
            error_code=sentinel,
        )


def value_alignment(value: str) -> str:
    """``"right"`` for numeric text, ``"left"`` otherwise."""
    return "right" if is_numeric(value) else "left"


# ---------------------------------------------------------------------------
# YAML persistence
# ---------------------------------------------------------------------------


def sheet_to_dict(sheet: Sheet) -> dict[str, Any]:
    spec: dict[str, Any] = {"n_rows": sheet.n_rows, "n_cols": sheet.n_cols, "cells": sheet.cells()}
    if sheet.name:
        spec["name"] = sheet.name
    return spec


def sheet_from_dict(spec: dict[str, Any], *, default_rows: int = 10, default_cols: int = 10) -> Sheet:
    """Build a sheet from its YAML mapping.

    Raises:
        ValueError: On a malformed mapping or a cell label outside the sheet.
    """
    if not isinstance(spec, dict):
        raise ValueError("Sheet file must contain a mapping")
    cells = spec.get("cells") or {}
    if not isinstance(cells, dict):
        raise ValueError("'cells' must be a mapping of labels to values")

    sheet = Sheet(
        int(spec.get("n_rows", default_rows)),
        int(spec.get("n_cols", default_cols)),
        name=spec.get("name"),
    )
    for label, value in cells.items():
        try:
            sheet.set_cell(str(label), "" if value is None else str(value))
        except KeyError as exc:
            raise ValueError(exc.args[0]) from exc
    return sheet


def load_sheet(path: Path, *, default_rows: int = 10, default_cols: int = 10) -> Sheet:
    """Read a sheet from a YAML file."""
    spec = yaml.safe_load(path.read_text()) or {}
    sheet = sheet_from_dict(spec, default_rows=default_rows, default_cols=default_cols)
    if sheet.name is None:
        sheet.name = path.stem
    emit_info(EventType.sheet_loaded, f"Loaded sheet from {path.name}", {"sheet": sheet.name})
    return sheet


def save_sheet(sheet: Sheet, path: Path) -> Path:
    """Write a sheet to a YAML file."""
    path.write_text(yaml.dump(sheet_to_dict(sheet), default_flow_style=False, sort_keys=False))
    emit_info(EventType.sheet_saved, f"Saved sheet to {path.name}", {"sheet": sheet.name})
    return path
