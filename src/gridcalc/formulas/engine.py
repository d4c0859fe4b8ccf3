"""Formula entry point with per-evaluation cycle detection.

A top-level call gets a fresh :class:`EvaluationContext`.  Every formula
evaluated on behalf of that call (through cell references) shares the
context, whose visiting set holds exactly the cells currently suspended on
the call stack.  Meeting one of those cells again is a cycle.
"""

from __future__ import annotations

import logging
import re
import sys
from contextlib import contextmanager
from typing import Iterator

from gridcalc.address import address_key, cell_label, grid_shape
from gridcalc.formulas.errors import CYCLE, ERROR, FormulaError
from gridcalc.formulas.evaluator import ExpressionEvaluator, split_args
from gridcalc.formulas.functions import evaluate_function
from gridcalc.formulas.lexer import tokenize

logger = logging.getLogger(__name__)

# Reserved for a display effect handled by the caller; evaluates to "".
BURNRATE_MARKER = "BURNRATE()"

_CALL_RE = re.compile(r"^([A-Za-z]+)\((.*)\)$", re.DOTALL)

# Python frame budget for one top-level evaluation.  Each reference hop
# costs about ten frames, each nested paren about four.
RECURSION_LIMIT = 10_000


class EvaluationContext:
    """Shared state for one top-level evaluation.

    Parameters
    ----------
    grid : list[list[str]]
        Raw cell values.  Read only.
    """

    def __init__(self, grid: list[list[str]]) -> None:
        self.grid = grid
        self.visiting: set[tuple[int, int]] = set()
        self.stack: list[tuple[int, int]] = []

    def is_visiting(self, row: int, col: int) -> bool:
        return address_key(row, col) in self.visiting

    def cycle_path(self, row: int, col: int) -> list[str]:
        """Labels from the first visit of (row, col) back to itself."""
        key = address_key(row, col)
        start = self.stack.index(key) if key in self.stack else 0
        return [cell_label(r, c) for r, c in self.stack[start:]] + [cell_label(row, col)]

    def resolve_cell(self, row: int, col: int) -> str:
        """Return a referenced cell's value, evaluating it if it is a formula."""
        raw = self.grid[row][col] or ""
        if raw.strip().startswith("="):
            return evaluate_formula(raw, self.grid, row, col, self)
        return raw


@contextmanager
def _recursion_headroom(limit: int = RECURSION_LIMIT) -> Iterator[None]:
    """Raise the interpreter recursion limit to at least *limit* for the block."""
    previous = sys.getrecursionlimit()
    if previous < limit:
        sys.setrecursionlimit(limit)
    try:
        yield
    finally:
        sys.setrecursionlimit(previous)


def _bare_call(body: str) -> tuple[str, str] | None:
    """Match ``NAME(...)`` where NAME's paren is closed by the last character."""
    m = _CALL_RE.match(body)
    if not m:
        return None
    depth = 0
    start = m.end(1)
    for i in range(start, len(body)):
        if body[i] == "(":
            depth += 1
        elif body[i] == ")":
            depth -= 1
            if depth == 0:
                if i != len(body) - 1:
                    return None
                return m.group(1), m.group(2)
    return None


def evaluate_formula(
    formula: str,
    grid: list[list[str]],
    row: int,
    col: int,
    context: EvaluationContext | None = None,
) -> str:
    """Evaluate the formula stored at (row, col).

    Args:
        formula: Raw cell text, e.g. ``"=A1 * 2"``.
        grid: Raw values of the whole sheet, ``grid[row][col]``.
        row: 0-based row of the cell being evaluated.
        col: 0-based column of the cell being evaluated.
        context: Shared context for recursive calls.  Leave unset at the top
            level; a fresh one is created.

    Returns:
        Numeric text, an error sentinel such as ``#ERROR:REF`` or ``#CYCLE``,
        or ``""`` for an empty body.  A dependency chain or paren nesting too
        deep to evaluate gives ``#ERROR``.
    """
    if context is None:
        with _recursion_headroom():
            try:
                return evaluate_formula(formula, grid, row, col, EvaluationContext(grid))
            except RecursionError:
                logger.debug("Formula at %s nests too deeply", cell_label(row, col))
                return ERROR

    if context.is_visiting(row, col):
        logger.debug("Cycle detected: %s", " -> ".join(context.cycle_path(row, col)))
        return CYCLE

    # Builtin calls only: this unwinding must run even on an exhausted stack.
    key = address_key(row, col)
    context.visiting.add(key)
    context.stack.append(key)
    try:
        body = formula.strip()
        if body.startswith("="):
            body = body[1:]
        body = body.strip()

        if not body:
            return ""
        if body.upper() == BURNRATE_MARKER:
            return ""

        call = _bare_call(body)
        if call is not None:
            name, arg_text = call
            args = split_args(arg_text) if arg_text.strip() else []
            return evaluate_function(name, args, context.grid)

        try:
            tokens = tokenize(body)
            return ExpressionEvaluator(tokens, context).evaluate()
        except FormulaError as exc:
            logger.debug("Formula at %s failed: %s", cell_label(row, col), exc)
            return exc.sentinel
    finally:
        context.visiting.discard(key)
        context.stack.pop()


def evaluate_cell(grid: list[list[str]], row: int, col: int) -> str:
    """Value of one cell: raw text, or the formula result if it holds a formula."""
    n_rows, n_cols = grid_shape(grid)
    if not (0 <= row < n_rows and 0 <= col < n_cols):
        raise IndexError(f"Cell ({row}, {col}) outside {n_rows}x{n_cols} grid")
    raw = grid[row][col] or ""
    if raw.strip().startswith("="):
        return evaluate_formula(raw, grid, row, col)
    return raw


def is_burnrate(raw: str) -> bool:
    """True if a raw cell holds the reserved ``=BURNRATE()`` marker."""
    body = raw.strip()
    if not body.startswith("="):
        return False
    return body[1:].strip().upper() == BURNRATE_MARKER
