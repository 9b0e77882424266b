"""
formengine Condition Trees

visibleWhen and requiredIf conditions. A leaf compares one field's
current value with a constant, a group combines children with and / or.
Evaluation never raises; anything it cannot decide (missing field, unknown operator,
non-numeric comparison) is False.
"""

from __future__ import annotations
from typing import Any, Callable, Dict, List, Mapping, Optional, Union
import logging

from .enums import ConditionOperator, LogicalOperator
from .models import ConditionGroup, ConditionLeaf

logger = logging.getLogger(__name__)

ConditionLike = Union[ConditionLeaf, ConditionGroup, Mapping[str, Any]]


def is_empty(value: Any) -> bool:
    """None, blank string or empty collection."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) == 0
    return False


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str) and value.strip():
        try:
            return float(value)
        except ValueError:
            return None
    return None


def values_equal(actual: Any, expected: Any) -> bool:
    """Equality with numeric strings matching numbers ("5" == 5)."""
    if isinstance(actual, bool) or isinstance(expected, bool):
        return type(actual) is type(expected) and actual == expected
    if actual == expected:
        return True
    if isinstance(actual, (int, float)) or isinstance(expected, (int, float)):
        a, b = _as_float(actual), _as_float(expected)
        return a is not None and b is not None and a == b
    return False


def _compare(test: Callable[[float, float], bool]) -> Callable[[Any, Any], bool]:
    def op(actual: Any, expected: Any) -> bool:
        a, b = _as_float(actual), _as_float(expected)
        if a is None or b is None:
            return False
        return test(a, b)
    return op


def _contains(actual: Any, expected: Any) -> bool:
    if isinstance(actual, (list, tuple, set)):
        return any(values_equal(item, expected) for item in actual)
    if isinstance(actual, str) and expected is not None:
        return str(expected) in actual
    return False


def _in(actual: Any, expected: Any) -> bool:
    if not isinstance(expected, (list, tuple, set)):
        return False
    if isinstance(actual, (list, tuple, set)):
        return any(_in(item, expected) for item in actual)
    return any(values_equal(actual, item) for item in expected)


OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    ConditionOperator.EQUALS.value: values_equal,
    ConditionOperator.NOT_EQUALS.value: lambda a, b: not values_equal(a, b),
    ConditionOperator.GREATER_THAN.value: _compare(lambda a, b: a > b),
    ConditionOperator.LESS_THAN.value: _compare(lambda a, b: a < b),
    ConditionOperator.GREATER_THAN_OR_EQUAL.value: _compare(lambda a, b: a >= b),
    ConditionOperator.LESS_THAN_OR_EQUAL.value: _compare(lambda a, b: a <= b),
    ConditionOperator.CONTAINS.value: _contains,
    ConditionOperator.NOT_CONTAINS.value: lambda a, b: not _contains(a, b),
    ConditionOperator.IN.value: _in,
    ConditionOperator.NOT_IN.value: lambda a, b: not _in(a, b),
    ConditionOperator.IS_EMPTY.value: lambda a, _: is_empty(a),
    ConditionOperator.IS_NOT_EMPTY.value: lambda a, _: not is_empty(a),
}


def _is_group(condition: ConditionLike) -> bool:
    if isinstance(condition, ConditionGroup):
        return True
    return isinstance(condition, Mapping) and "conditions" in condition


def _get(condition: ConditionLike, key: str, default: Any = None) -> Any:
    if isinstance(condition, Mapping):
        return condition.get(key, default)
    return getattr(condition, key, default)


def evaluate_condition(condition: Optional[ConditionLike], values: Mapping[str, Any]) -> bool:
    """Evaluate a leaf or group against the current values."""
    if condition is None:
        return True

    if _is_group(condition):
        operator = _get(condition, "operator", LogicalOperator.AND.value)
        children = _get(condition, "conditions") or []
        if operator == LogicalOperator.AND.value:
            return all(evaluate_condition(c, values) for c in children)
        if operator == LogicalOperator.OR.value:
            return any(evaluate_condition(c, values) for c in children)
        logger.debug(f"Unknown group operator '{operator}'")
        return False

    name = _get(condition, "field")
    if not name or name not in values:
        return False

    operator = _get(condition, "operator", ConditionOperator.EQUALS.value)
    test = OPERATORS.get(operator)
    if test is None:
        logger.debug(f"Unknown condition operator '{operator}' on '{name}'")
        return False
    return test(values[name], _get(condition, "value"))


def condition_fields(condition: Optional[ConditionLike]) -> List[str]:
    """Every field name referenced by a tree's leaves, in order."""
    if condition is None:
        return []
    if _is_group(condition):
        names: List[str] = []
        for child in _get(condition, "conditions") or []:
            for name in condition_fields(child):
                if name not in names:
                    names.append(name)
        return names
    name = _get(condition, "field")
    return [name] if isinstance(name, str) and name else []

