"""Aggregate functions: SUM, AVG, MIN, MAX, COUNT.

Functions resolve their own operands straight from the raw grid; they
never see values computed by the expression evaluator.  Each argument is
a range (``A1:B3``), a single reference (``A1``) or literal text.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Callable

from gridcalc.address import grid_shape, is_cell_ref, parse_address, parse_range
from gridcalc.formulas.errors import ERROR_ARGS, ERROR_FUNC, ERROR_REF, ERROR_VALUE
from gridcalc.numeric import format_number, is_numeric, strip_currency_formatting, to_number


@dataclass
class Operands:
    """Values gathered from a function's arguments."""

    numbers: list[float] = field(default_factory=list)
    non_empty: int = 0


def _raw_value(grid: list[list[str]], row: int, col: int) -> str:
    if row < 0 or col < 0 or row >= len(grid) or col >= len(grid[row]):
        return ERROR_REF
    return grid[row][col] or ""


def _push(operands: Operands, raw: str, *, counted: str) -> None:
    if counted != "":
        operands.non_empty += 1
    stripped = strip_currency_formatting(raw)
    if is_numeric(stripped):
        operands.numbers.append(to_number(stripped))


def collect_operands(args: list[str], grid: list[list[str]]) -> Operands:
    """Resolve every argument to raw text and gather numbers and the non-empty count."""
    n_rows, n_cols = grid_shape(grid)
    operands = Operands()

    for arg in args:
        text = arg.strip()
        if not text:
            continue
        if ":" in text:
            for row, col in parse_range(text, n_rows, n_cols):
                raw = _raw_value(grid, row, col)
                _push(operands, raw, counted=raw)
        elif is_cell_ref(text):
            addr = parse_address(text, n_rows, n_cols)
            raw = ERROR_REF if addr is None else _raw_value(grid, *addr)
            _push(operands, raw, counted=raw)
        else:
            _push(operands, text, counted=strip_currency_formatting(text))

    return operands


# ---------- Function table ----------


def _fn_sum(ops: Operands) -> float:
    return sum(ops.numbers)


def _fn_avg(ops: Operands) -> float:
    if not ops.numbers:
        return 0.0
    return sum(ops.numbers) / len(ops.numbers)


def _fn_min(ops: Operands) -> float:
    return min(ops.numbers) if ops.numbers else 0.0


def _fn_max(ops: Operands) -> float:
    return max(ops.numbers) if ops.numbers else 0.0


def _fn_count(ops: Operands) -> float:
    return float(ops.non_empty)


FUNCTIONS: dict[str, Callable[[Operands], float]] = {
    "SUM": _fn_sum,
    "AVG": _fn_avg,
    "MIN": _fn_min,
    "MAX": _fn_max,
    "COUNT": _fn_count,
}


def evaluate_function(name: str, args: list[str], grid: list[list[str]]) -> str:
    """Evaluate an aggregate function over raw argument strings.

    Args:
        name: Function name, case-insensitive.
        args: Argument texts as written in the formula.
        grid: Raw cell values, ``grid[row][col]``.

    Returns:
        The result as numeric text, ``#ERROR:FUNC`` for an unknown name,
        ``#ERROR:ARGS`` when no arguments were supplied, or ``#ERROR:VALUE``
        when the result overflows.
    """
    fn = FUNCTIONS.get(name.strip().upper())
    if fn is None:
        return ERROR_FUNC
    if len(args) == 0:
        return ERROR_ARGS
    result = fn(collect_operands(args, grid))
    if not math.isfinite(result):
        return ERROR_VALUE
    return format_number(result)
