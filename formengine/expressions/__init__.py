"""
formengine Expression Evaluator

Provides:
- tokenize / parse_formula: formula text to an immutable AST
- ExpressionInterpreter: walks an AST over a fixed variable bag
- ComputedFieldEvaluator: binds dependencies, evaluates, formats
"""

from .parser import (
    FormulaError,
    Token,
    tokenize,
    Node,
    Literal,
    Variable,
    UnaryOp,
    BinaryOp,
    Conditional,
    Call,
    Parser,
    parse_formula,
    referenced_names,
)
from .evaluator import (
    FUNCTIONS,
    ComputedFieldEvaluator,
    EvaluationResult,
    ExpressionInterpreter,
    coerce_number,
    coerce_text,
    evaluate_formula,
)

__all__ = [
    # Parser
    "FormulaError",
    "Token",
    "tokenize",
    "Node",
    "Literal",
    "Variable",
    "UnaryOp",
    "BinaryOp",
    "Conditional",
    "Call",
    "Parser",
    "parse_formula",
    "referenced_names",
    # Evaluator
    "FUNCTIONS",
    "ComputedFieldEvaluator",
    "EvaluationResult",
    "ExpressionInterpreter",
    "coerce_number",
    "coerce_text",
    "evaluate_formula",
]
