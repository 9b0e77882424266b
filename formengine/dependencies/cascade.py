"""
formengine Option Resolution and Cascading Reset

A field with ``dependsOn`` draws its option set from its parent's current
value (``optionsMap``) or from options fetched for the parent values
(``optionsEndpoint``). When a parent changes, a dependent still holding a
value outside its new option set is reset to empty. Resets are repeated
until nothing changes, so a grandparent change clears the whole chain.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set
import logging
import uuid

from formengine.core.conditions import is_empty
from formengine.core.enums import FieldType
from formengine.core.models import FieldOption, FormField, FormSchema, normalize_options
from .graph import EdgeType, FieldDependencyGraph

logger = logging.getLogger(__name__)


# =============================================================================
# OPTION RESOLUTION
# =============================================================================

def option_key(value: Any) -> str:
    """optionsMap keys are strings; booleans use their JSON spelling."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def parent_values(field: FormField, values: Mapping[str, Any]) -> Dict[str, Any]:
    """Current value of each parent; a parent missing from values maps to None."""
    return {p: values.get(p) for p in field.parents}


def is_disabled(field: FormField, values: Mapping[str, Any]) -> bool:
    """A dependent is disabled until every parent holds a value."""
    return any(is_empty(v) for v in parent_values(field, values).values())


def resolve_options(
    field: FormField,
    values: Mapping[str, Any],
    remote_options: Optional[Mapping[str, List[FieldOption]]] = None,
) -> Optional[List[FieldOption]]:
    """
    Applicable option list for ``field``.

    Returns None when the field is unconstrained (no options at all) or
    when fetched options for the current parent values are not in yet.
    """
    if field.parents:
        if is_disabled(field, values):
            return []

        if field.options_map is not None:
            key = option_key(values.get(field.parents[0]))
            return normalize_options(field.options_map.get(key))

        if field.options_endpoint:
            if remote_options is None or field.name not in remote_options:
                return None
            return normalize_options(remote_options[field.name])

    if field.options:
        return field.static_options()
    return None


def is_valid_choice(value: Any, options: List[FieldOption]) -> bool:
    allowed = {option_key(o.value) for o in options}
    if isinstance(value, (list, tuple)):
        return all(option_key(v) in allowed for v in value)
    return option_key(value) in allowed


# =============================================================================
# RESULTS
# =============================================================================

@dataclass
class ResetRecord:
    """One dependent cleared by a cascade."""
    field_name: str
    old_value: Any
    new_value: Any
    parents: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "field": self.field_name,
            "old_value": self.old_value,
            "new_value": self.new_value,
            "parents": dict(self.parents),
        }


@dataclass
class CascadeResult:
    """Result of one cascading reset pass."""
    cascade_id: str
    started_at: datetime
    completed_at: Optional[datetime] = None

    values: Dict[str, Any] = field(default_factory=dict)
    resets: List[ResetRecord] = field(default_factory=list)
    passes: int = 0

    trigger_fields: List[str] = field(default_factory=list)

    @property
    def reset_fields(self) -> List[str]:
        return [r.field_name for r in self.resets]

    @property
    def changed(self) -> bool:
        return bool(self.resets)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cascade_id": self.cascade_id,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "resets": [r.to_dict() for r in self.resets],
            "passes": self.passes,
            "trigger_fields": list(self.trigger_fields),
        }


# =============================================================================
# CASCADE EXECUTOR
# =============================================================================

class CascadeExecutor:
    """
    Clears dependents whose value fell out of their option set.

    Stateless apart from the graph; ``execute`` never mutates its input.
    """

    def __init__(self, schema: FormSchema, graph: Optional[FieldDependencyGraph] = None):
        self._schema = schema
        self._graph = graph or FieldDependencyGraph.from_schema(schema)
        self._fields: Dict[str, FormField] = {}
        for f in schema.all_fields():
            self._fields.setdefault(f.name, f)

    @property
    def graph(self) -> FieldDependencyGraph:
        return self._graph

    def affected_fields(self, changed: Optional[Iterable[str]] = None) -> List[str]:
        """Dependents to check, in schema order."""
        if changed is None:
            candidates = {name for name, f in self._fields.items() if f.parents}
        else:
            candidates = set()
            for name in changed:
                candidates |= self._graph.get_all_downstream(name, EdgeType.DEPENDS_ON)
        return [name for name in self._fields if name in candidates]

    def execute(
        self,
        values: Mapping[str, Any],
        changed: Optional[Iterable[str]] = None,
        remote_options: Optional[Mapping[str, List[FieldOption]]] = None,
    ) -> CascadeResult:
        """
        Reset invalid dependents until a fixed point is reached.

        Args:
            values: Current form values (not modified)
            changed: Fields that changed; None checks every dependent
            remote_options: Fetched options per field name

        Returns:
            CascadeResult carrying the new value map
        """
        changed_list = list(changed) if changed is not None else None
        result = CascadeResult(
            cascade_id=uuid.uuid4().hex[:8],
            started_at=datetime.now(timezone.utc),
            trigger_fields=changed_list or [],
        )
        current = dict(values)
        to_check = self.affected_fields(changed_list)

        # Each pass can only clear fields further down an acyclic chain
        max_passes = len(self._fields) + 1
        while result.passes < max_passes:
            result.passes += 1
            reset_this_pass = False

            for name in to_check:
                record = self._check(self._fields[name], current, remote_options)
                if record is None:
                    continue
                current[name] = record.new_value
                result.resets.append(record)
                reset_this_pass = True
                logger.debug(
                    f"Cascade reset '{name}': {record.old_value!r} -> {record.new_value!r}"
                )

            if not reset_this_pass:
                break

        result.values = current
        result.completed_at = datetime.now(timezone.utc)
        return result

    def _check(
        self,
        field: FormField,
        values: Dict[str, Any],
        remote_options: Optional[Mapping[str, List[FieldOption]]],
    ) -> Optional[ResetRecord]:
        value = values.get(field.name)
        if is_empty(value):
            return None

        options = resolve_options(field, values, remote_options)
        if options is None or is_valid_choice(value, options):
            return None

        if field.type == FieldType.MULTISELECT.value and isinstance(value, (list, tuple)):
            allowed = {option_key(o.value) for o in options}
            new_value: Any = [v for v in value if option_key(v) in allowed]
        else:
            new_value = field.initial_value()
        if new_value == value:
            return None

        return ResetRecord(
            field_name=field.name,
            old_value=value,
            new_value=new_value,
            parents=parent_values(field, values),
        )


def cascade_reset(
    schema: FormSchema,
    values: Mapping[str, Any],
    changed: Optional[Iterable[str]] = None,
    remote_options: Optional[Mapping[str, List[FieldOption]]] = None,
) -> Dict[str, Any]:
    """Convenience wrapper returning only the new value map."""
    return CascadeExecutor(schema).execute(values, changed, remote_options).values
