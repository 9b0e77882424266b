"""
formengine Visibility Evaluation

A field without ``visibleWhen`` is always visible. A condition that
cannot be decided (for example one naming a removed field) hides the
field instead of raising.
"""

from __future__ import annotations
from typing import Any, Dict, List, Mapping
import logging

from formengine.core.conditions import evaluate_condition
from formengine.core.models import FormField, FormSchema

logger = logging.getLogger(__name__)


def is_visible(field: FormField, values: Mapping[str, Any]) -> bool:
    return evaluate_condition(field.visible_when, values)


def visibility_map(schema: FormSchema, values: Mapping[str, Any]) -> Dict[str, bool]:
    """{field name: visible} for every field."""
    return {f.name: is_visible(f, values) for f in schema.all_fields()}


def visible_fields(schema: FormSchema, values: Mapping[str, Any]) -> List[str]:
    """Names of visible fields, in schema order."""
    return [f.name for f in schema.all_fields() if is_visible(f, values)]
