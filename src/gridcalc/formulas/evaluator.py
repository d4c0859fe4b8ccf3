"""Recursive-descent evaluator for formula expression bodies.

Grammar (lowest to highest precedence)::

    expression := term (('+' | '-') term)*
    term       := unary (('*' | '/') unary)*
    unary      := ('+' | '-') unary | primary
    primary    := '(' expression ')' | call | reference | NUMBER
    call       := IDENT '(' <balanced tokens> ')'

Values are strings throughout so that error sentinels and numbers share one
channel.  Cell references are resolved through a :class:`CellResolver`,
which evaluates referenced formulas recursively.
"""

from __future__ import annotations

import math
from typing import Protocol

from gridcalc.address import grid_shape, is_cell_ref, parse_address
from gridcalc.formulas.errors import (
    ERROR_DIV0,
    ERROR_REF,
    ERROR_VALUE,
    FormulaParseError,
    is_error,
)
from gridcalc.formulas.functions import evaluate_function
from gridcalc.formulas.lexer import Token
from gridcalc.numeric import format_number, is_numeric, to_number


class CellResolver(Protocol):
    """Protocol for fetching a referenced cell's value."""

    grid: list[list[str]]

    def resolve_cell(self, row: int, col: int) -> str:
        """Return the cell's value, evaluating it first if it holds a formula."""
        ...


def split_args(text: str) -> list[str]:
    """Split an argument span on commas that are not nested inside parentheses."""
    args: list[str] = []
    depth = 0
    current: list[str] = []
    for ch in text:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        if ch == "," and depth == 0:
            args.append("".join(current))
            current = []
        else:
            current.append(ch)
    args.append("".join(current))
    return args


def _finite(value: float) -> str:
    if not math.isfinite(value):
        return ERROR_VALUE
    return format_number(value)


def apply_op(left: str, right: str, op: str) -> str:
    """Apply a binary arithmetic operator to two string operands.

    Error sentinels propagate unchanged, left before right.  Non-numeric
    operands give ``#ERROR:VALUE`` and division by zero ``#ERROR:DIV0``.
    """
    if is_error(left):
        return left
    if is_error(right):
        return right
    if not is_numeric(left) or not is_numeric(right):
        return ERROR_VALUE
    a = to_number(left)
    b = to_number(right)
    if op == "+":
        return _finite(a + b)
    if op == "-":
        return _finite(a - b)
    if op == "*":
        return _finite(a * b)
    if op == "/":
        if b == 0:
            return ERROR_DIV0
        return _finite(a / b)
    raise FormulaParseError(f"Unknown operator {op!r}")


class ExpressionEvaluator:
    """Evaluate one token list against a grid.

    Parameters
    ----------
    tokens : list[Token]
        Output of :func:`gridcalc.formulas.lexer.tokenize`.
    resolver : CellResolver
        Supplies the grid and evaluates referenced cells.
    """

    def __init__(self, tokens: list[Token], resolver: CellResolver) -> None:
        self.tokens = tokens
        self.resolver = resolver
        self.pos = 0

    def evaluate(self) -> str:
        """Evaluate the whole token list.

        Raises:
            FormulaParseError: On empty input, unexpected or trailing tokens,
                or unbalanced parentheses.
        """
        if not self.tokens:
            raise FormulaParseError("Empty expression", position=0)
        value = self._expression()
        if self.pos < len(self.tokens):
            tok = self.tokens[self.pos]
            raise FormulaParseError(f"Unexpected token {tok.text!r}", position=tok.pos)
        return value

    # ------------------------------------------------------------------
    # Token cursor
    # ------------------------------------------------------------------

    def _peek(self) -> Token | None:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return None

    def _peek_kind(self) -> str | None:
        tok = self._peek()
        return tok.kind if tok is not None else None

    def _consume(self) -> Token:
        tok = self._peek()
        if tok is None:
            raise FormulaParseError("Unexpected end of formula")
        self.pos += 1
        return tok

    # ------------------------------------------------------------------
    # Grammar rules
    # ------------------------------------------------------------------

    def _expression(self) -> str:
        left = self._term()
        while self._peek_kind() in ("PLUS", "MINUS"):
            op = self._consume().text
            right = self._term()
            left = apply_op(left, right, op)
        return left

    def _term(self) -> str:
        left = self._unary()
        while self._peek_kind() in ("STAR", "SLASH"):
            op = self._consume().text
            right = self._unary()
            left = apply_op(left, right, op)
        return left

    def _unary(self) -> str:
        if self._peek_kind() in ("PLUS", "MINUS"):
            op = self._consume().text
            value = self._unary()
            if not is_numeric(value):
                return ERROR_VALUE
            num = to_number(value)
            return format_number(-num if op == "-" else num)
        return self._primary()

    def _primary(self) -> str:
        tok = self._consume()

        if tok.kind == "LPAR":
            value = self._expression()
            if self._peek_kind() != "RPAR":
                raise FormulaParseError("Missing closing parenthesis", position=tok.pos)
            self._consume()
            return value

        if tok.kind == "IDENT":
            if self._peek_kind() == "LPAR":
                return self._call(tok)
            return self._reference(tok)

        if tok.kind == "NUMBER":
            if not is_numeric(tok.text):
                raise FormulaParseError(f"Malformed number {tok.text!r}", position=tok.pos)
            return tok.text

        raise FormulaParseError(f"Unexpected token {tok.text!r}", position=tok.pos)

    def _reference(self, tok: Token) -> str:
        if not is_cell_ref(tok.text):
            raise FormulaParseError(f"Unknown name {tok.text!r}", position=tok.pos)
        n_rows, n_cols = grid_shape(self.resolver.grid)
        addr = parse_address(tok.text, n_rows, n_cols)
        if addr is None:
            return ERROR_REF
        return self.resolver.resolve_cell(*addr)

    def _call(self, name: Token) -> str:
        open_paren = self._consume()
        depth = 1
        span: list[str] = []
        while depth > 0:
            tok = self._peek()
            if tok is None:
                raise FormulaParseError(
                    f"Unclosed call to {name.text}", position=open_paren.pos
                )
            self.pos += 1
            if tok.kind == "LPAR":
                depth += 1
            elif tok.kind == "RPAR":
                depth -= 1
            if depth > 0:
                span.append(tok.text)

        arg_text = "".join(span)
        args = split_args(arg_text) if arg_text.strip() else []
        return evaluate_function(name.text, args, self.resolver.grid)
