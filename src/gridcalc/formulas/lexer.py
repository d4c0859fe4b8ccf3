"""Lark-based tokenizer for formula expression bodies.

Only the lexer half of Lark is used: the grammar declares one terminal per
token kind and the parser proper is the hand-written recursive descent in
:mod:`gridcalc.formulas.evaluator`.

Token kinds:
- ``NUMBER``: maximal run of digits and ``.`` (signs are unary operators)
- ``IDENT``: a letter followed by letters/digits, upper-cased on capture;
  covers both cell references and function names
- ``LPAR`` ``RPAR`` ``PLUS`` ``MINUS`` ``STAR`` ``SLASH``
- ``COMMA`` ``COLON``: argument separators, only valid inside a function call
"""

from __future__ import annotations

from dataclasses import dataclass

from lark import Lark
from lark.exceptions import UnexpectedCharacters, UnexpectedInput

from gridcalc.formulas.errors import FormulaParseError

GRAMMAR = r"""
start: _token*

_token: NUMBER | IDENT | LPAR | RPAR | PLUS | MINUS | STAR | SLASH | COMMA | COLON

NUMBER: /[0-9.]+/
IDENT: /[A-Za-z][A-Za-z0-9]*/
LPAR: "("
RPAR: ")"
PLUS: "+"
MINUS: "-"
STAR: "*"
SLASH: "/"
COMMA: ","
COLON: ":"

WS: /[ \t\n]+/
%ignore WS
"""

_lexer = Lark(GRAMMAR, parser="lalr", lexer="basic", start="start")

OPERATORS = frozenset({"PLUS", "MINUS", "STAR", "SLASH"})


@dataclass(frozen=True)
class Token:
    """Single lexical token."""

    kind: str
    text: str
    pos: int


def tokenize(text: str) -> list[Token]:
    """Split an expression body into tokens.

    Args:
        text: Formula body without the leading ``=``.

    Returns:
        Flat list of tokens in source order.

    Raises:
        FormulaParseError: On any character outside the token alphabet.
    """
    tokens: list[Token] = []
    try:
        for tok in _lexer.lex(text):
            value = str(tok)
            if tok.type == "IDENT":
                value = value.upper()
            tokens.append(Token(tok.type, value, tok.start_pos or 0))
    except UnexpectedCharacters as exc:
        raise FormulaParseError(
            f"Unexpected character {text[exc.pos_in_stream]!r}",
            position=exc.pos_in_stream,
        ) from exc
    except UnexpectedInput as exc:
        raise FormulaParseError(str(exc), position=getattr(exc, "pos_in_stream", None)) from exc
    return tokens
