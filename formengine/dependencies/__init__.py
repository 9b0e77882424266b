"""
formengine Dependency Graph Resolver

Provides:
- FieldDependencyGraph: dependsOn / computed-dependency graph, cycle checks
- Visibility evaluation over visibleWhen trees
- Option resolution and cascading reset
- DependencyResolver: per-change recomputation of the form view state
"""

from .graph import (
    FieldDependencyGraph,
    FieldNode,
    DependencyEdge,
    EdgeType,
    parents_of,
    computed_inputs_of,
)
from .visibility import (
    is_visible,
    visibility_map,
    visible_fields,
)
from .cascade import (
    CascadeExecutor,
    CascadeResult,
    ResetRecord,
    cascade_reset,
    is_disabled,
    is_valid_choice,
    option_key,
    parent_values,
    resolve_options,
)
from .resolver import (
    DependencyResolver,
    FormSnapshot,
    evaluate_form,
)

__all__ = [
    # Graph
    "FieldDependencyGraph",
    "FieldNode",
    "DependencyEdge",
    "EdgeType",
    "parents_of",
    "computed_inputs_of",
    # Visibility
    "is_visible",
    "visibility_map",
    "visible_fields",
    # Cascade
    "CascadeExecutor",
    "CascadeResult",
    "ResetRecord",
    "cascade_reset",
    "is_disabled",
    "is_valid_choice",
    "option_key",
    "parent_values",
    "resolve_options",
    # Resolver
    "DependencyResolver",
    "FormSnapshot",
    "evaluate_form",
]
