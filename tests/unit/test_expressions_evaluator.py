"""
Unit tests for expressions/evaluator.py
"""

import pytest

from formengine.core.models import ComputedConfig, FormField
from formengine.errors import ErrorCategory
from formengine.expressions import (
    ComputedFieldEvaluator,
    FormulaError,
    coerce_number,
    coerce_text,
    evaluate_formula,
)


@pytest.fixture
def evaluator():
    return ComputedFieldEvaluator()


def computed_field(formula, dependencies, **config):
    return FormField(
        name="result",
        type="text",
        label="Result",
        computed=ComputedConfig(formula=formula, dependencies=dependencies, **config),
    )


class TestCoercion:
    """Test value coercion."""

    @pytest.mark.parametrize("value,expected", [
        (None, 0.0),
        ("", 0.0),
        ("12.5", 12.5),
        ("1,000", 1000.0),
        ("abc", 0.0),
        (True, 1.0),
        (3, 3.0),
    ])
    def test_coerce_number(self, value, expected):
        assert coerce_number(value) == expected

    def test_coerce_text(self):
        assert coerce_text(None) == ""
        assert coerce_text(5.0) == "5"
        assert coerce_text(False) == "false"


class TestEvaluate:
    """Test raw formula evaluation."""

    def test_arithmetic(self, evaluator):
        assert evaluator.evaluate("a * b + 1", {"a": 2, "b": 3}) == 7.0

    def test_division_by_zero(self, evaluator):
        with pytest.raises(FormulaError):
            evaluator.evaluate("a / b", {"a": 1, "b": 0})

    def test_unknown_variable(self, evaluator):
        with pytest.raises(FormulaError):
            evaluator.evaluate("a + missing", {"a": 1})

    def test_unknown_function(self, evaluator):
        with pytest.raises(FormulaError):
            evaluator.evaluate("eval(a)", {"a": 1})

    def test_whitelisted_functions(self, evaluator):
        assert evaluator.evaluate("round(a, 1)", {"a": 2.345}) == 2.3
        assert evaluator.evaluate("max(a, b)", {"a": 2, "b": 9}) == 9.0
        assert evaluator.evaluate("abs(a)", {"a": -4}) == 4.0

    def test_conditional_and_comparison(self, evaluator):
        assert evaluator.evaluate("a > 10 ? 1 : 2", {"a": 11}) == 1.0
        assert evaluator.evaluate("a > 10 ? 1 : 2", {"a": 3}) == 2.0

    def test_power_and_modulo(self, evaluator):
        assert evaluator.evaluate("a ^ 2", {"a": 3}) == 9.0
        assert evaluator.evaluate("a % 4", {"a": 10}) == 2.0

    def test_complex_power_rejected(self, evaluator):
        with pytest.raises(FormulaError):
            evaluator.evaluate("a ^ 0.5", {"a": -4})

    def test_blank_inputs_bind_as_zero(self, evaluator):
        assert evaluator.evaluate("a + b", {"a": "", "b": "4"}) == 4.0

    def test_text_binding(self, evaluator):
        result = evaluator.evaluate("first + ' ' + last", {"first": "Ada", "last": "Lovelace"}, "text")
        assert result == "Ada Lovelace"

    def test_no_host_access(self, evaluator):
        with pytest.raises(FormulaError):
            evaluator.evaluate("__import__('os')", {})

    def test_module_wrapper(self):
        assert evaluate_formula("a - b", {"a": 5, "b": 2}) == 3.0


class TestFormat:
    """Test display formatting."""

    def test_number_decimals(self, evaluator):
        assert evaluator.format(50.0, ComputedConfig(formula="x", decimal=2)) == "50.00"

    def test_currency_default_prefix(self, evaluator):
        assert evaluator.format(1234.5, ComputedConfig(formula="x", format_as="currency")) == "$1,234.50"

    def test_prefix_suffix(self, evaluator):
        config = ComputedConfig(formula="x", decimal=0, suffix=" kg")
        assert evaluator.format(12.4, config) == "12 kg"

    def test_text(self, evaluator):
        assert evaluator.format("hi", ComputedConfig(formula="x", format_as="text")) == "hi"


class TestCompute:
    """Test per-field computation."""

    def test_price_times_quantity(self, evaluator):
        field = computed_field("price * quantity", ["price", "quantity"], format_as="number", decimal=2)
        result = evaluator.compute(field, {"price": 10, "quantity": 5})
        assert result.success
        assert result.value == "50.00"
        assert result.raw == 50.0

    def test_failure_degrades_to_empty(self, evaluator):
        field = computed_field("a / b", ["a", "b"])
        result = evaluator.compute(field, {"a": 1, "b": 0})
        assert result.value == ""
        assert not result.success
        assert result.error.category == ErrorCategory.FORMULA
        assert result.error.field_name == "result"

    def test_missing_dependency_value(self, evaluator):
        field = computed_field("a + b", ["a", "b"])
        result = evaluator.compute(field, {"a": 1})
        assert result.value == ""
        assert "Missing dependencies" in result.error.detail

    def test_non_computed_field(self, evaluator):
        result = evaluator.compute(FormField(name="x", type="text"), {})
        assert result.value == ""
        assert result.success

    def test_deeply_nested_formula_degrades_to_empty(self, evaluator):
        field = computed_field("(" * 3000 + "a" + ")" * 3000, ["a"])
        result = evaluator.compute(field, {"a": 1})
        assert result.value == ""
        assert result.error.category == ErrorCategory.FORMULA
