"""
formengine Dependency Resolver

Explicit recompute-on-change pipeline. Given (schema, values, touched) one
evaluation pass:

1. clears dependents whose value fell out of their option set
2. re-evaluates computed fields, inputs before readers
3. evaluates visibility over the resolved values
4. rebuilds the synchronous error map for visible fields
5. resolves option sets and disabled flags

Every pass is synchronous and returns a fresh FormSnapshot; nothing from a
previous pass is patched in place.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional
import logging

from formengine.core.models import FieldOption, FormField, FormSchema
from formengine.errors import CyclicDependencyError, FormEngineError
from formengine.expressions import ComputedFieldEvaluator
from formengine.masks import MaskEngine, get_default_engine
from formengine.validators.field_rules import FieldRuleValidator
from .cascade import CascadeExecutor, is_disabled, resolve_options
from .graph import FieldDependencyGraph
from .visibility import is_visible

logger = logging.getLogger(__name__)


@dataclass
class FormSnapshot:
    """Read-only result of one evaluation pass."""
    visible_fields: List[str] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)
    resolved_values: Dict[str, Any] = field(default_factory=dict)
    touched: Dict[str, bool] = field(default_factory=dict)

    options: Dict[str, List[FieldOption]] = field(default_factory=dict)
    disabled: Dict[str, bool] = field(default_factory=dict)

    reset_fields: List[str] = field(default_factory=list)
    error_records: Dict[str, FormEngineError] = field(default_factory=dict)
    formula_errors: List[FormEngineError] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def displayed_errors(self) -> Dict[str, str]:
        """Errors of touched fields only."""
        return {k: v for k, v in self.errors.items() if self.touched.get(k)}

    def is_visible(self, name: str) -> bool:
        return name in self.visible_fields

    def to_dict(self) -> Dict[str, Any]:
        return {
            "visibleFields": list(self.visible_fields),
            "errors": dict(self.errors),
            "resolvedValues": dict(self.resolved_values),
            "touched": dict(self.touched),
            "options": {
                name: [o.model_dump(by_alias=True) for o in opts]
                for name, opts in self.options.items()
            },
            "disabled": dict(self.disabled),
            "resetFields": list(self.reset_fields),
            "formulaErrors": [e.to_dict() for e in self.formula_errors],
        }


class DependencyResolver:
    """
    Derives the view state of one form schema.

    Holds only schema-derived structure (graph, computation order); value
    state is always passed in.
    """

    def __init__(
        self,
        schema: FormSchema,
        evaluator: Optional[ComputedFieldEvaluator] = None,
        masks: Optional[MaskEngine] = None,
    ):
        self._schema = schema
        self._graph = FieldDependencyGraph.from_schema(schema)
        self._cascade = CascadeExecutor(schema, self._graph)
        self._rules = FieldRuleValidator(schema, masks or get_default_engine())
        self._evaluator = evaluator or ComputedFieldEvaluator()

        self._fields: Dict[str, FormField] = {}
        for f in schema.all_fields():
            self._fields.setdefault(f.name, f)

        try:
            self._computation_order = self._graph.computation_order()
        except CyclicDependencyError as e:
            logger.error(f"Schema has cyclic computed fields, using declaration order: {e}")
            self._computation_order = [n for n, f in self._fields.items() if f.computed]

    @property
    def schema(self) -> FormSchema:
        return self._schema

    @property
    def graph(self) -> FieldDependencyGraph:
        return self._graph

    @property
    def computation_order(self) -> List[str]:
        return list(self._computation_order)

    def initial_values(self) -> Dict[str, Any]:
        """One entry per field: checkbox False, everything else empty."""
        return {name: f.initial_value() for name, f in self._fields.items()}

    def evaluate(
        self,
        values: Mapping[str, Any],
        touched: Optional[Mapping[str, bool]] = None,
        changed: Optional[Iterable[str]] = None,
        remote_options: Optional[Mapping[str, List[FieldOption]]] = None,
    ) -> FormSnapshot:
        """
        Run one full evaluation pass.

        Args:
            values: Current form values
            touched: Current touched flags
            changed: Fields changed since the last pass; None checks all
            remote_options: Fetched options per field name
        """
        cascade = self._cascade.execute(values, changed, remote_options)
        resolved = cascade.values

        formula_errors: List[FormEngineError] = []
        for name in self._computation_order:
            outcome = self._evaluator.compute(self._fields[name], resolved)
            resolved[name] = outcome.value
            if outcome.error is not None:
                formula_errors.append(outcome.error)

        visible = [name for name, f in self._fields.items() if is_visible(f, resolved)]

        field_errors = self._rules.validate(resolved, visible)

        options: Dict[str, List[FieldOption]] = {}
        disabled: Dict[str, bool] = {}
        for name, f in self._fields.items():
            opts = resolve_options(f, resolved, remote_options)
            if opts is not None:
                options[name] = opts
            if f.parents:
                disabled[name] = is_disabled(f, resolved)

        return FormSnapshot(
            visible_fields=visible,
            errors=field_errors.messages,
            resolved_values=resolved,
            touched=dict(touched or {}),
            options=options,
            disabled=disabled,
            reset_fields=cascade.reset_fields,
            error_records=dict(field_errors.records),
            formula_errors=formula_errors,
        )

    def apply_change(
        self,
        values: Mapping[str, Any],
        field_name: str,
        new_value: Any,
        touched: Optional[Mapping[str, bool]] = None,
        remote_options: Optional[Mapping[str, List[FieldOption]]] = None,
    ) -> FormSnapshot:
        """Set one value and re-evaluate with that field as the change."""
        updated = dict(values)
        updated[field_name] = new_value
        return self.evaluate(updated, touched, [field_name], remote_options)


def evaluate_form(
    schema: FormSchema,
    values: Mapping[str, Any],
    touched: Optional[Mapping[str, bool]] = None,
) -> FormSnapshot:
    """Convenience wrapper: one full pass over ``values``."""
    return DependencyResolver(schema).evaluate(values, touched)
