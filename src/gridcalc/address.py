"""A1-style cell address helpers.

Column letters use bijective base-26 (A=1 ... Z=26, AA=27, ...), so every
0-based column index has exactly one label and there is no letter for zero.
All coordinates are 0-based ``(row, col)`` tuples.
"""

from __future__ import annotations

import re

_ADDR_RE = re.compile(r"^([A-Z]+)([1-9][0-9]*)$")

# Case-insensitive shape test used to classify formula tokens and arguments.
CELL_REF_RE = re.compile(r"^[A-Z]+[1-9][0-9]*$", re.IGNORECASE)


def column_label(index: int) -> str:
    """Convert 0-based column index to letter(s).  0=A, 25=Z, 26=AA."""
    if index < 0:
        raise ValueError(f"Column index must be >= 0, got {index}")
    result = ""
    n = index + 1
    while n > 0:
        n, rem = divmod(n - 1, 26)
        result = chr(65 + rem) + result
    return result


def column_index(letters: str) -> int:
    """Convert column letter(s) to 0-based index.  A=0, B=1, ..., Z=25, AA=26."""
    idx = 0
    for ch in letters.upper():
        idx = idx * 26 + (ord(ch) - ord("A") + 1)
    return idx - 1


def cell_label(row: int, col: int) -> str:
    """Build cell address from 0-based row/col."""
    return f"{column_label(col)}{row + 1}"


def is_cell_ref(text: str) -> bool:
    """Return True if *text* has the shape of a cell reference (no bounds check)."""
    return bool(CELL_REF_RE.match(text))


def parse_address(label: str, max_rows: int, max_cols: int) -> tuple[int, int] | None:
    """Parse 'B3' -> (2, 1) within a ``max_rows`` x ``max_cols`` grid.

    Args:
        label: Cell address, any case, surrounding whitespace ignored.
        max_rows: Number of rows in the grid.
        max_cols: Number of columns in the grid.

    Returns:
        ``(row, col)`` or ``None`` if the label is malformed or out of bounds.
    """
    m = _ADDR_RE.match(label.strip().upper())
    if not m:
        return None
    col = column_index(m.group(1))
    row = int(m.group(2)) - 1
    if row < 0 or row >= max_rows or col < 0 or col >= max_cols:
        return None
    return row, col


def parse_range(text: str, max_rows: int, max_cols: int) -> list[tuple[int, int]]:
    """Expand a range such as ``A1:C3`` into coordinates, row-major.

    Endpoints may be given in any order (``C3:A1`` equals ``A1:C3``).  An
    invalid or out-of-bounds endpoint yields an empty list.
    """
    parts = text.split(":")
    if len(parts) != 2 or not parts[0].strip() or not parts[1].strip():
        return []
    start = parse_address(parts[0], max_rows, max_cols)
    end = parse_address(parts[1], max_rows, max_cols)
    if start is None or end is None:
        return []

    r0, r1 = sorted((start[0], end[0]))
    c0, c1 = sorted((start[1], end[1]))
    return [(r, c) for r in range(r0, r1 + 1) for c in range(c0, c1 + 1)]


def address_key(row: int, col: int) -> tuple[int, int]:
    """Key identifying a cell in an evaluation's visiting set."""
    return (row, col)


def grid_shape(grid: list[list[str]]) -> tuple[int, int]:
    """Return ``(n_rows, n_cols)`` of a rectangular grid."""
    if not grid:
        return 0, 0
    return len(grid), len(grid[0])
