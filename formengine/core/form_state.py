"""
formengine FormState

Holds the mutable per-form maps (values, touched, dirty) for one form
instance. Every update replaces the map wholesale so snapshots handed out
earlier are never mutated behind the caller's back.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from .models import FormSchema

logger = logging.getLogger(__name__)


class FormState:
    """
    Values / touched / dirty tracking for a single form.

    Initial values are derived from the schema (checkbox -> False,
    everything else empty) unless explicit ``initial_values`` are given.
    """

    def __init__(
        self,
        schema: FormSchema,
        initial_values: Optional[Mapping[str, Any]] = None,
    ):
        self._schema = schema
        defaults = {f.name: f.initial_value() for f in schema.all_fields()}
        if initial_values:
            defaults.update(initial_values)

        self._initial: Dict[str, Any] = dict(defaults)
        self._values: Dict[str, Any] = dict(defaults)
        self._touched: Dict[str, bool] = {name: False for name in defaults}
        self._dirty: Dict[str, bool] = {}

    @property
    def schema(self) -> FormSchema:
        return self._schema

    @property
    def values(self) -> Dict[str, Any]:
        """Read-only copy of the current values."""
        return dict(self._values)

    @property
    def touched(self) -> Dict[str, bool]:
        return dict(self._touched)

    @property
    def dirty(self) -> Dict[str, bool]:
        return dict(self._dirty)

    @property
    def pristine(self) -> bool:
        """True when no field differs from its initial value."""
        return not any(self._dirty.values())

    def get(self, name: str, default: Any = None) -> Any:
        return self._values.get(name, default)

    def set_value(self, name: str, value: Any) -> None:
        """Set one value and refresh its dirty flag."""
        self._values = {**self._values, name: value}
        self._dirty = {**self._dirty, name: value != self._initial.get(name)}

    def replace_values(self, values: Mapping[str, Any]) -> None:
        """Swap in a whole new value map (used after a resolver pass)."""
        self._values = dict(values)
        self._dirty = {
            name: value != self._initial.get(name)
            for name, value in self._values.items()
        }

    def mark_touched(self, name: str, touched: bool = True) -> None:
        self._touched = {**self._touched, name: touched}

    def is_touched(self, name: str) -> bool:
        return self._touched.get(name, False)

    def is_dirty(self, name: str) -> bool:
        return self._dirty.get(name, False)

    def set_initial_values(self, values: Mapping[str, Any]) -> None:
        """Adopt ``values`` as the new pristine baseline."""
        self._initial = dict(values)
        self._values = dict(values)
        self._dirty = {}

    def reset(self) -> None:
        """Return to the initial values and clear touched/dirty."""
        self._values = dict(self._initial)
        self._touched = {name: False for name in self._initial}
        self._dirty = {}
        logger.debug(f"Form '{self._schema.title}' reset to initial values")
