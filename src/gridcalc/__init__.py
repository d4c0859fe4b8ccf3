"""gridcalc -- spreadsheet formula evaluation engine."""

from gridcalc.address import cell_label, column_label, parse_address, parse_range
from gridcalc.formulas import evaluate_formula, evaluate_function
from gridcalc.numeric import format_currency, is_numeric, strip_currency_formatting

__version__ = "0.3.0"

__all__ = [
    "__version__",
    "cell_label",
    "column_label",
    "evaluate_formula",
    "evaluate_function",
    "format_currency",
    "is_numeric",
    "parse_address",
    "parse_range",
    "strip_currency_formatting",
]
