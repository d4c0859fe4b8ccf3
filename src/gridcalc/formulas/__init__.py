"""Spreadsheet formula tokenizing and evaluation.

Public API::

    from gridcalc.formulas import evaluate_formula, evaluate_function, tokenize
"""

from gridcalc.formulas.engine import (
    BURNRATE_MARKER,
    EvaluationContext,
    evaluate_cell,
    evaluate_formula,
    is_burnrate,
)
from gridcalc.formulas.errors import (
    CYCLE,
    ERROR,
    ERROR_ARGS,
    ERROR_DIV0,
    ERROR_FUNC,
    ERROR_REF,
    ERROR_SENTINELS,
    ERROR_VALUE,
    FormulaError,
    FormulaParseError,
    is_error,
)
from gridcalc.formulas.evaluator import ExpressionEvaluator, apply_op, split_args
from gridcalc.formulas.functions import FUNCTIONS, evaluate_function
from gridcalc.formulas.lexer import Token, tokenize

__all__ = [
    "BURNRATE_MARKER",
    "CYCLE",
    "ERROR",
    "ERROR_ARGS",
    "ERROR_DIV0",
    "ERROR_FUNC",
    "ERROR_REF",
    "ERROR_SENTINELS",
    "ERROR_VALUE",
    "EvaluationContext",
    "ExpressionEvaluator",
    "FUNCTIONS",
    "FormulaError",
    "FormulaParseError",
    "Token",
    "apply_op",
    "evaluate_cell",
    "evaluate_formula",
    "evaluate_function",
    "is_burnrate",
    "is_error",
    "split_args",
    "tokenize",
]
