"""Error sentinels and internal error types for formula evaluation.

Evaluation results are strings.  Failures are reported as sentinel strings
starting with ``#`` and flow through arithmetic like any other value.  The
exception classes below are only used inside the parser; the public entry
point converts them to sentinels.
"""

from __future__ import annotations

ERROR = "#ERROR"
ERROR_REF = "#ERROR:REF"
ERROR_VALUE = "#ERROR:VALUE"
ERROR_DIV0 = "#ERROR:DIV0"
ERROR_ARGS = "#ERROR:ARGS"
ERROR_FUNC = "#ERROR:FUNC"
CYCLE = "#CYCLE"

ERROR_SENTINELS = frozenset(
    {ERROR, ERROR_REF, ERROR_VALUE, ERROR_DIV0, ERROR_ARGS, ERROR_FUNC, CYCLE}
)


def is_error(value: str) -> bool:
    """Return True if *value* is an error sentinel."""
    return value.startswith("#")


class FormulaError(Exception):
    """Base class for all formula-related errors."""

    sentinel: str = ERROR


class FormulaParseError(FormulaError):
    """Syntax error in a formula expression.

    Attributes:
        position: Character position where the error was detected.
    """

    def __init__(self, message: str, position: int | None = None) -> None:
        self.position = position
        full = f"Formula parse error: {message}"
        if position is not None:
            full += f" (at position {position})"
        super().__init__(full)
