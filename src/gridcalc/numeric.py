"""Numeric text helpers shared by the formula engine and the display layer.

Every value the engine handles is text.  These functions decide when text
counts as a number, render numbers back to canonical text, and format
numbers as US dollars for display.
"""

from __future__ import annotations

import math
import re
from decimal import ROUND_HALF_UP, Decimal

_NUMBER_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")

# Positional notation is used for magnitudes in [1e-6, 1e21).
_MIN_POSITIONAL = 1e-6
_MAX_POSITIONAL = 1e21


def is_numeric(value: str) -> bool:
    """Return True if *value* (trimmed) is a finite decimal number.

    Accepts a leading sign, leading zeros, a decimal point and an exponent.
    Rejects empty text and anything with trailing characters (``"12abc"``).
    """
    text = value.strip()
    if not text or not _NUMBER_RE.match(text):
        return False
    return math.isfinite(float(text))


def to_number(value: str) -> float:
    """Parse numeric text.  Callers check :func:`is_numeric` first."""
    return float(value.strip())


def strip_currency_formatting(value: str) -> str:
    """Remove ``$`` and ``,`` decoration so ``"$1,234.50"`` becomes ``"1234.50"``.

    Purely textual: the result is not validated.
    """
    return value.strip().replace("$", "").replace(",", "")


def format_number(value: float) -> str:
    """Render a float the way JavaScript's ``String(number)`` does.

    Integers have no ``.0`` suffix, magnitudes outside ``[1e-6, 1e21)``
    use ``1e+21`` style exponents, and ``-0`` renders as ``0``.
    """
    if value == 0:
        return "0"
    text = repr(value)
    magnitude = abs(value)
    if _MIN_POSITIONAL <= magnitude < _MAX_POSITIONAL:
        if value.is_integer():
            # Shortest digits, zero padded: 1.2345678901234568e+20 -> 123456789012345680000
            return format(Decimal(text).to_integral_value(), "f")
        if "e" not in text:
            return text
        return format(Decimal(text), "f")

    mantissa, _, exponent = text.partition("e")
    exp = int(exponent)
    sign = "+" if exp > 0 else "-"
    return f"{mantissa}e{sign}{abs(exp)}"


def format_currency(value: str) -> str:
    """Format numeric text as USD, e.g. ``"1000"`` -> ``"$1,000.00"``.

    Empty or non-numeric text (including error sentinels) is returned
    unchanged.
    """
    if value == "" or not is_numeric(value):
        return value
    amount = Decimal(value.strip()).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    if amount == 0:
        amount = abs(amount)
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"
