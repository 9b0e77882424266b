"""
formengine Field Rule Validator

Synchronous per-field validation. The error map is a pure function of
(schema, values, visible fields) and is rebuilt on every change; each
field carries at most one message, from the first rule that fails.

Rule order:
    required / requiredIf -> requiredTrue -> (empty optional values stop here)
    -> minLength -> maxLength -> mask -> pattern -> email -> min / max
    -> selections / item counts -> matchesField -> greaterThanField
    -> lessThanField
"""

from __future__ import annotations
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional
import logging
import re

from formengine.core.enums import FieldType, NUMERIC_FIELD_TYPES
from formengine.core.models import FormField, FormSchema, Validations
from formengine.core.conditions import evaluate_condition
from formengine.errors import ErrorCode, FormEngineError, create_field_error
from formengine.masks import MaskEngine, get_default_engine
from .taxonomy import FieldErrors

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# A rule returns (message, code) on failure, None on success
RuleResult = Optional[tuple]
Rule = Callable[["RuleContext"], RuleResult]


def is_blank(value: Any) -> bool:
    """Empty value; an empty optional field skips every value rule."""
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    return False


def fails_required(value: Any) -> bool:
    """Falsy for ``required``: blank values and numeric zero."""
    if is_blank(value):
        return True
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value == 0


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).strip())
    except ValueError:
        return None


def _fmt(number: float) -> str:
    return str(int(number)) if float(number).is_integer() else str(number)


def _compare_values(a: Any, b: Any) -> Optional[int]:
    """-1 / 0 / 1, numerically when both sides are numbers, else as text."""
    fa, fb = _as_float(a), _as_float(b)
    if fa is not None and fb is not None:
        return (fa > fb) - (fa < fb)
    sa, sb = str(a), str(b)
    return (sa > sb) - (sa < sb)


class RuleContext:
    """Everything one field's rules can read."""

    def __init__(
        self,
        field: FormField,
        value: Any,
        values: Mapping[str, Any],
        schema_fields: Mapping[str, FormField],
        masks: MaskEngine,
    ):
        self.field = field
        self.value = value
        self.values = values
        self.schema_fields = schema_fields
        self.masks = masks
        self.rules: Validations = field.validations or Validations()

    @property
    def label(self) -> str:
        return self.field.label or self.field.name

    def label_of(self, name: str) -> str:
        other = self.schema_fields.get(name)
        return (other.label or other.name) if other else name


# =============================================================================
# RULES
# =============================================================================

def _rule_required(ctx: RuleContext) -> RuleResult:
    required = bool(ctx.rules.required)
    if not required and ctx.rules.required_if is not None:
        required = evaluate_condition(ctx.rules.required_if, ctx.values)
    if required and fails_required(ctx.value):
        return f"{ctx.label} is required", ErrorCode.FLD_REQUIRED
    return None


def _rule_required_true(ctx: RuleContext) -> RuleResult:
    if ctx.rules.required_true and ctx.value is not True:
        return f"{ctx.label} must be checked", ErrorCode.FLD_REQUIRED
    return None


def _rule_min_length(ctx: RuleContext) -> RuleResult:
    limit = ctx.rules.min_length
    if limit is not None and isinstance(ctx.value, str) and len(ctx.value) < limit:
        return f"{ctx.label} must be at least {limit} characters", ErrorCode.FLD_CONSTRAINT
    return None


def _rule_max_length(ctx: RuleContext) -> RuleResult:
    limit = ctx.rules.max_length
    if limit is not None and isinstance(ctx.value, str) and len(ctx.value) > limit:
        return f"{ctx.label} must be a maximum of {limit} characters", ErrorCode.FLD_CONSTRAINT
    return None


def _rule_mask(ctx: RuleContext) -> RuleResult:
    if ctx.field.mask and not ctx.masks.is_complete(ctx.value, ctx.field.mask):
        return f"{ctx.label} is incomplete", ErrorCode.FLD_CONSTRAINT
    return None


def _rule_pattern(ctx: RuleContext) -> RuleResult:
    pattern = ctx.rules.pattern
    if not pattern or not isinstance(ctx.value, str):
        return None
    try:
        matched = re.fullmatch(pattern, ctx.value) is not None
    except re.error:
        logger.debug(f"Ignoring invalid pattern on '{ctx.field.name}'")
        return None
    if not matched:
        return f"{ctx.label} format is invalid", ErrorCode.FLD_CONSTRAINT
    return None


def _rule_email(ctx: RuleContext) -> RuleResult:
    if ctx.field.type != FieldType.EMAIL.value:
        return None
    if not EMAIL_RE.match(str(ctx.value)):
        return f"{ctx.label} must be a valid email address", ErrorCode.FLD_CONSTRAINT
    return None


def _rule_min_max(ctx: RuleContext) -> RuleResult:
    if ctx.field.type not in NUMERIC_FIELD_TYPES:
        return None
    number = _as_float(ctx.value)
    if number is None:
        return f"{ctx.label} must be a number", ErrorCode.FLD_CONSTRAINT

    low = ctx.rules.min if ctx.rules.min is not None else ctx.field.min
    high = ctx.rules.max if ctx.rules.max is not None else ctx.field.max
    if low is not None and number < low:
        return f"{ctx.label} must be at least {_fmt(low)}", ErrorCode.FLD_CONSTRAINT
    if high is not None and number > high:
        return f"{ctx.label} must be a maximum of {_fmt(high)}", ErrorCode.FLD_CONSTRAINT
    return None


def _rule_counts(ctx: RuleContext) -> RuleResult:
    f = ctx.field
    if not isinstance(ctx.value, (list, tuple)):
        return None
    count = len(ctx.value)

    if f.type == FieldType.MULTISELECT.value:
        if f.min_selections is not None and count < f.min_selections:
            return f"Select at least {f.min_selections} options for {ctx.label}", ErrorCode.FLD_CONSTRAINT
        if f.max_selections is not None and count > f.max_selections:
            return f"Select a maximum of {f.max_selections} options for {ctx.label}", ErrorCode.FLD_CONSTRAINT

    if f.type == FieldType.ARRAY.value and f.array_config:
        low, high = f.array_config.min_items, f.array_config.max_items
        if low is not None and count < low:
            return f"{ctx.label} needs at least {low} items", ErrorCode.FLD_CONSTRAINT
        if high is not None and count > high:
            return f"{ctx.label} allows a maximum of {high} items", ErrorCode.FLD_CONSTRAINT
    return None


def _rule_matches_field(ctx: RuleContext) -> RuleResult:
    other = ctx.rules.matches_field
    if other and ctx.value != ctx.values.get(other):
        return f"{ctx.label} must match {ctx.label_of(other)}", ErrorCode.FLD_CROSS_FIELD
    return None


def _rule_greater_than_field(ctx: RuleContext) -> RuleResult:
    other = ctx.rules.greater_than_field
    if not other or is_blank(ctx.values.get(other)):
        return None
    if _compare_values(ctx.value, ctx.values.get(other)) <= 0:
        return f"{ctx.label} must be greater than {ctx.label_of(other)}", ErrorCode.FLD_CROSS_FIELD
    return None


def _rule_less_than_field(ctx: RuleContext) -> RuleResult:
    other = ctx.rules.less_than_field
    if not other or is_blank(ctx.values.get(other)):
        return None
    if _compare_values(ctx.value, ctx.values.get(other)) >= 0:
        return f"{ctx.label} must be less than {ctx.label_of(other)}", ErrorCode.FLD_CROSS_FIELD
    return None


PRESENCE_RULES: List[Rule] = [_rule_required, _rule_required_true]

VALUE_RULES: List[Rule] = [
    _rule_min_length,
    _rule_max_length,
    _rule_mask,
    _rule_pattern,
    _rule_email,
    _rule_min_max,
    _rule_counts,
    _rule_matches_field,
    _rule_greater_than_field,
    _rule_less_than_field,
]


# =============================================================================
# VALIDATOR
# =============================================================================

class FieldRuleValidator:
    """Computes the synchronous error map for one schema."""

    def __init__(self, schema: FormSchema, masks: Optional[MaskEngine] = None):
        self._schema = schema
        self._masks = masks or get_default_engine()
        self._fields: Dict[str, FormField] = {}
        for f in schema.all_fields():
            self._fields.setdefault(f.name, f)

    def validate_field(
        self,
        field: FormField,
        values: Mapping[str, Any],
    ) -> Optional[FormEngineError]:
        """First failing rule for ``field``, or None."""
        ctx = RuleContext(field, values.get(field.name), values, self._fields, self._masks)

        failure = self._first_failure(PRESENCE_RULES, ctx)
        if failure is None and not is_blank(ctx.value):
            failure = self._first_failure(VALUE_RULES, ctx)
        if failure is None:
            return None

        message, code = failure
        if ctx.rules.custom_message:
            message = ctx.rules.custom_message
        return create_field_error(message, field_name=field.name, code=code)

    def validate(
        self,
        values: Mapping[str, Any],
        visible: Optional[Iterable[str]] = None,
    ) -> FieldErrors:
        """
        Errors for every visible field.

        Args:
            values: Current form values
            visible: Names of visible fields; None treats all as visible
        """
        visible_set = set(visible) if visible is not None else None
        result = FieldErrors()
        for name, f in self._fields.items():
            if visible_set is not None and name not in visible_set:
                continue
            error = self.validate_field(f, values)
            if error is not None:
                result.records[name] = error
        return result

    @staticmethod
    def _first_failure(rules: List[Rule], ctx: RuleContext) -> RuleResult:
        for rule in rules:
            failure = rule(ctx)
            if failure is not None:
                return failure
        return None


def validate_values(
    schema: FormSchema,
    values: Mapping[str, Any],
    visible: Optional[Iterable[str]] = None,
) -> Dict[str, str]:
    """Convenience wrapper returning {field: message}."""
    return FieldRuleValidator(schema).validate(values, visible).messages
