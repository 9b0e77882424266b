"""
formengine Computed Field Evaluator

Evaluates parsed formulas over a fixed variable bag and formats the
result for display. Evaluation failures never escape: the field value
degrades to an empty string and the failure is logged and returned as a
FormEngineError record.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple
import logging
import math

from formengine.core.enums import FormatAs
from formengine.core.models import ComputedConfig, FormField
from formengine.errors import FormEngineError, create_formula_error
from .parser import (
    BinaryOp,
    Call,
    Conditional,
    FormulaError,
    Literal,
    Node,
    UnaryOp,
    Variable,
    parse_formula,
)

logger = logging.getLogger(__name__)

DEFAULT_DECIMALS = 2
DEFAULT_CURRENCY_PREFIX = "$"


def _round(value: float, digits: float = 0) -> float:
    return round(value, int(digits))


# Pure functions only; nothing here can reach the host environment
FUNCTIONS: Dict[str, Callable[..., Any]] = {
    "abs": abs,
    "min": min,
    "max": max,
    "round": _round,
    "floor": math.floor,
    "ceil": math.ceil,
    "sqrt": math.sqrt,
}


def coerce_number(value: Any) -> float:
    """Parse as number, 0 on blank or failure."""
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if value is None:
        return 0.0
    text = str(value).strip().replace(",", "")
    if not text:
        return 0.0
    try:
        result = float(text)
    except ValueError:
        return 0.0
    return result if math.isfinite(result) else 0.0


def coerce_text(value: Any) -> str:
    if value is None:
        return ""
    return _to_text(value)


def _to_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _truthy(value: Any) -> bool:
    if isinstance(value, str):
        return value != ""
    return bool(value)


@dataclass
class EvaluationResult:
    """Outcome of one computed-field evaluation."""
    field_name: str
    value: str = ""
    raw: Any = None
    error: Optional[FormEngineError] = None

    @property
    def success(self) -> bool:
        return self.error is None


class ExpressionInterpreter:
    """Walks an AST against a variable bag."""

    def __init__(self, variables: Mapping[str, Any]):
        self._variables = variables

    def evaluate(self, node: Node) -> Any:
        if isinstance(node, Literal):
            return node.value

        if isinstance(node, Variable):
            if node.name not in self._variables:
                raise FormulaError(f"Unknown variable '{node.name}'")
            return self._variables[node.name]

        if isinstance(node, UnaryOp):
            operand = self.evaluate(node.operand)
            if node.op == "!":
                return not _truthy(operand)
            number = self._number(operand)
            return -number if node.op == "-" else number

        if isinstance(node, Conditional):
            if _truthy(self.evaluate(node.test)):
                return self.evaluate(node.if_true)
            return self.evaluate(node.if_false)

        if isinstance(node, Call):
            func = FUNCTIONS.get(node.function)
            if func is None:
                raise FormulaError(f"Unknown function '{node.function}'")
            args = [self._number(self.evaluate(a)) for a in node.args]
            try:
                return func(*args)
            except (TypeError, ValueError, OverflowError) as e:
                raise FormulaError(f"{node.function}(): {e}") from e

        if isinstance(node, BinaryOp):
            return self._binary(node)

        raise FormulaError(f"Unsupported node {type(node).__name__}")

    def _binary(self, node: BinaryOp) -> Any:
        op = node.op

        if op == "&&":
            left = self.evaluate(node.left)
            return self.evaluate(node.right) if _truthy(left) else left
        if op == "||":
            left = self.evaluate(node.left)
            return left if _truthy(left) else self.evaluate(node.right)

        left = self.evaluate(node.left)
        right = self.evaluate(node.right)

        if op == "+":
            if isinstance(left, str) or isinstance(right, str):
                return _to_text(left) + _to_text(right)
            return self._number(left) + self._number(right)

        if op in ("==", "!="):
            equal = self._equal(left, right)
            return equal if op == "==" else not equal

        if op in ("<", "<=", ">", ">="):
            if isinstance(left, str) and isinstance(right, str):
                a, b = left, right
            else:
                a, b = self._number(left), self._number(right)
            return {
                "<": a < b,
                "<=": a <= b,
                ">": a > b,
                ">=": a >= b,
            }[op]

        a, b = self._number(left), self._number(right)
        if op == "-":
            return a - b
        if op == "*":
            return a * b
        if op == "/":
            if b == 0:
                raise FormulaError("Division by zero")
            return a / b
        if op == "%":
            if b == 0:
                raise FormulaError("Modulo by zero")
            return a % b
        if op == "^":
            try:
                power = a ** b
            except (OverflowError, ZeroDivisionError) as e:
                raise FormulaError(str(e)) from e
            if isinstance(power, complex):
                raise FormulaError("Result is not a real number")
            return power

        raise FormulaError(f"Unknown operator '{op}'")

    def _number(self, value: Any) -> float:
        if isinstance(value, bool):
            return 1.0 if value else 0.0
        if isinstance(value, (int, float)):
            return float(value)
        if isinstance(value, str):
            try:
                return float(value)
            except ValueError:
                raise FormulaError(f"Cannot use {value!r} as a number")
        raise FormulaError(f"Cannot use {value!r} as a number")

    def _equal(self, left: Any, right: Any) -> bool:
        if isinstance(left, str) or isinstance(right, str):
            return _to_text(left) == _to_text(right)
        return left == right


class ComputedFieldEvaluator:
    """
    Evaluates ``computed`` blocks.

    Each declared dependency is bound as a number (blank / unparsable -> 0)
    unless the block formats as text, in which case values are bound as
    strings.
    """

    def evaluate(
        self,
        formula: str,
        dependency_values: Mapping[str, Any],
        format_as: str = FormatAs.NUMBER.value,
    ) -> Any:
        """Evaluate ``formula``; raises FormulaError on failure."""
        tree = parse_formula(formula)
        variables = self.bind(dependency_values, format_as)
        result = ExpressionInterpreter(variables).evaluate(tree)
        if isinstance(result, float) and not math.isfinite(result):
            raise FormulaError("Result is not a finite number")
        return result

    def bind(self, dependency_values: Mapping[str, Any], format_as: str) -> Dict[str, Any]:
        if format_as == FormatAs.TEXT.value:
            return {name: coerce_text(v) for name, v in dependency_values.items()}
        return {name: coerce_number(v) for name, v in dependency_values.items()}

    def format(self, value: Any, config: ComputedConfig) -> str:
        """Apply formatAs / decimal / prefix / suffix."""
        format_as = config.format_as or FormatAs.NUMBER.value
        decimals = DEFAULT_DECIMALS if config.decimal is None else max(int(config.decimal), 0)
        prefix = config.prefix or ""
        suffix = config.suffix or ""

        if format_as == FormatAs.TEXT.value:
            return f"{prefix}{_to_text(value)}{suffix}"

        number = coerce_number(value) if not isinstance(value, (int, float)) else float(value)
        if format_as == FormatAs.CURRENCY.value:
            prefix = config.prefix if config.prefix is not None else DEFAULT_CURRENCY_PREFIX
            return f"{prefix}{number:,.{decimals}f}{suffix}"
        return f"{prefix}{number:.{decimals}f}{suffix}"

    def compute(self, field: FormField, values: Mapping[str, Any]) -> EvaluationResult:
        """Evaluate a field's computed block against the current form values."""
        result = EvaluationResult(field_name=field.name)
        config = field.computed
        if config is None:
            return result

        missing = [d for d in config.dependencies if d not in values]
        try:
            if missing:
                raise FormulaError(f"Missing dependencies: {', '.join(missing)}")
            bag = {d: values[d] for d in config.dependencies}
            raw = self.evaluate(config.formula, bag, config.format_as)
            result.raw = raw
            result.value = self.format(raw, config)
        except FormulaError as e:
            logger.warning(f"Computed field '{field.name}' failed: {e}")
            result.value = ""
            result.error = create_formula_error(
                f"Could not compute {field.label or field.name}",
                field_name=field.name,
                detail=str(e),
            )
        return result


def evaluate_formula(formula: str, dependency_values: Mapping[str, Any], format_as: str = "number") -> Any:
    """Convenience wrapper around ComputedFieldEvaluator.evaluate."""
    return ComputedFieldEvaluator().evaluate(formula, dependency_values, format_as)
