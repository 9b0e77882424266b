"""
formengine Field Dependency Graph

Directed graph over the flattened field set with two independent edge
kinds:

- DEPENDS_ON: a field's option set / enablement follows its parent(s)
- COMPUTED:   a computed field's formula reads its dependencies

Both edge sets must be acyclic. Cycle detection walks each edge kind
separately; ordering for computed re-evaluation uses networkx.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set, Tuple, Union
import logging

import networkx as nx

from formengine.core.models import FormField, FormSchema
from formengine.errors import CyclicDependencyError

logger = logging.getLogger(__name__)

FieldLike = Union[FormField, Mapping[str, Any]]


# =============================================================================
# EDGE TYPES
# =============================================================================

class EdgeType(Enum):
    """Kind of field-to-field relationship."""
    DEPENDS_ON = "depends_on"    # child options follow parent value
    COMPUTED = "computed"        # formula input


# =============================================================================
# NODES AND EDGES
# =============================================================================

@dataclass
class FieldNode:
    """A field in the dependency graph."""
    name: str
    field_type: str = ""
    position: int = 0

    # Upstream, in declaration order
    parents: List[str] = field(default_factory=list)
    computed_from: List[str] = field(default_factory=list)

    # Downstream
    dependents: Set[str] = field(default_factory=set)
    computed_dependents: Set[str] = field(default_factory=set)

    @property
    def is_computed(self) -> bool:
        return bool(self.computed_from)

    def upstream(self, edge_type: EdgeType) -> List[str]:
        return self.parents if edge_type == EdgeType.DEPENDS_ON else self.computed_from

    def downstream(self, edge_type: EdgeType) -> Set[str]:
        return self.dependents if edge_type == EdgeType.DEPENDS_ON else self.computed_dependents

    def __hash__(self):
        return hash(self.name)


@dataclass
class DependencyEdge:
    """An edge in the dependency graph."""
    source: str      # upstream (parent / formula input)
    target: str      # downstream (dependent / computed field)
    edge_type: EdgeType = EdgeType.DEPENDS_ON

    def __hash__(self):
        return hash((self.source, self.target, self.edge_type))


# =============================================================================
# FIELD ACCESSORS (models and raw documents)
# =============================================================================

def _name_of(f: FieldLike) -> Optional[str]:
    if isinstance(f, FormField):
        return f.name
    name = f.get("name") if isinstance(f, Mapping) else None
    return name if isinstance(name, str) and name else None


def _type_of(f: FieldLike) -> str:
    if isinstance(f, FormField):
        return f.type
    value = f.get("type") if isinstance(f, Mapping) else None
    return value if isinstance(value, str) else ""


def _names(value: Any) -> List[str]:
    if isinstance(value, str):
        return [value] if value else []
    if isinstance(value, (list, tuple)):
        return [v for v in value if isinstance(v, str)]
    return []


def parents_of(f: FieldLike) -> List[str]:
    """dependsOn, always as a list."""
    if isinstance(f, FormField):
        return f.parents
    return _names(f.get("dependsOn")) if isinstance(f, Mapping) else []


def computed_inputs_of(f: FieldLike) -> List[str]:
    """computed.dependencies, or an empty list."""
    if isinstance(f, FormField):
        return list(f.computed.dependencies) if f.computed else []
    if not isinstance(f, Mapping):
        return []
    computed = f.get("computed")
    if not isinstance(computed, Mapping):
        return []
    return _names(computed.get("dependencies"))


# =============================================================================
# DEPENDENCY GRAPH
# =============================================================================

class FieldDependencyGraph:
    """
    dependsOn / computed-dependency graph of one schema.

    Edges to names that are not declared fields are kept on the node (so the
    validator can report them) but are never walked.
    """

    def __init__(self):
        self._nodes: Dict[str, FieldNode] = {}
        self._edges: Dict[Tuple[str, str, EdgeType], DependencyEdge] = {}

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def from_fields(cls, fields: Iterable[FieldLike]) -> "FieldDependencyGraph":
        """Build from a flattened field list (models or raw dicts)."""
        graph = cls()
        field_list = list(fields)

        for f in field_list:
            name = _name_of(f)
            if name:
                graph.add_field(name, _type_of(f))

        for f in field_list:
            name = _name_of(f)
            if not name:
                continue
            for parent in parents_of(f):
                graph.add_dependency(name, parent, EdgeType.DEPENDS_ON)
            for dep in computed_inputs_of(f):
                graph.add_dependency(name, dep, EdgeType.COMPUTED)

        logger.debug(
            f"Field graph built: {len(graph._nodes)} fields, {len(graph._edges)} edges"
        )
        return graph

    @classmethod
    def from_schema(cls, schema: FormSchema) -> "FieldDependencyGraph":
        return cls.from_fields(schema.all_fields())

    def add_field(self, name: str, field_type: str = "") -> FieldNode:
        """Add a field node; the first declaration of a name wins."""
        if name in self._nodes:
            return self._nodes[name]
        node = FieldNode(name=name, field_type=field_type, position=len(self._nodes))
        self._nodes[name] = node
        return node

    def add_dependency(
        self,
        dependent: str,
        dependency: str,
        edge_type: EdgeType = EdgeType.DEPENDS_ON,
    ) -> Optional[DependencyEdge]:
        """
        Record that ``dependent`` depends on ``dependency``.

        Returns None when ``dependent`` is not a declared field.
        """
        node = self._nodes.get(dependent)
        if node is None:
            return None

        key = (dependency, dependent, edge_type)
        if key in self._edges:
            return self._edges[key]

        edge = DependencyEdge(source=dependency, target=dependent, edge_type=edge_type)
        self._edges[key] = edge

        upstream = node.upstream(edge_type)
        if dependency not in upstream:
            upstream.append(dependency)

        parent = self._nodes.get(dependency)
        if parent is not None:
            parent.downstream(edge_type).add(dependent)

        return edge

    # -------------------------------------------------------------------------
    # Cycle detection
    # -------------------------------------------------------------------------

    def find_cycle_from(
        self,
        origin: str,
        edge_type: EdgeType = EdgeType.DEPENDS_ON,
        safe: Optional[Set[str]] = None,
    ) -> Optional[List[str]]:
        """
        Depth-first walk from ``origin`` following upstream edges.

        Revisiting a name already on the current path is a cycle; the path
        from the first occurrence back to it is returned. ``safe`` collects
        names already known not to reach a cycle and may be shared between
        walks over the same edge type.
        """
        safe = set() if safe is None else safe
        if origin not in self._nodes or origin in safe:
            return None

        path = [origin]
        on_path = {origin}
        pending = [iter(self._nodes[origin].upstream(edge_type))]

        while pending:
            dep = next(pending[-1], None)
            if dep is None:
                pending.pop()
                finished = path.pop()
                on_path.discard(finished)
                safe.add(finished)
                continue
            if dep in on_path:
                return path[path.index(dep):] + [dep]
            if dep in safe or dep not in self._nodes:
                continue
            path.append(dep)
            on_path.add(dep)
            pending.append(iter(self._nodes[dep].upstream(edge_type)))

        return None

    def find_cycles(self, edge_type: EdgeType = EdgeType.DEPENDS_ON) -> Dict[str, List[str]]:
        """
        Map each field that reaches a cycle to the cycle it reaches.

        Only fields with at least one edge of ``edge_type`` are walked,
        in declaration order.
        """
        result: Dict[str, List[str]] = {}
        safe: Set[str] = set()
        for name, node in self._nodes.items():
            if not node.upstream(edge_type):
                continue
            cycle = self.find_cycle_from(name, edge_type, safe)
            if cycle:
                result[name] = cycle
        return result

    def has_cycles(self) -> bool:
        return any(self.find_cycles(t) for t in EdgeType)

    # -------------------------------------------------------------------------
    # Ordering
    # -------------------------------------------------------------------------

    def to_networkx(self, edge_type: EdgeType) -> "nx.DiGraph":
        """Upstream -> downstream digraph over declared fields."""
        g = nx.DiGraph()
        g.add_nodes_from(self._nodes)
        for (source, target, kind) in self._edges:
            if kind == edge_type and source in self._nodes:
                g.add_edge(source, target)
        return g

    def topological_order(self, edge_type: EdgeType = EdgeType.COMPUTED) -> List[str]:
        """
        All declared fields, inputs before the fields that read them.

        Ties keep declaration order. Raises CyclicDependencyError on a
        cyclic graph; validated schemas never are.
        """
        g = self.to_networkx(edge_type)
        try:
            return list(nx.lexicographical_topological_sort(
                g, key=lambda n: self._nodes[n].position
            ))
        except nx.NetworkXUnfeasible:
            cycle_edges = nx.find_cycle(g)
            cycle = [u for u, _ in cycle_edges] + [cycle_edges[0][0]]
            raise CyclicDependencyError(cycle)

    def computation_order(self) -> List[str]:
        """Computed fields only, each after every computed field it reads."""
        return [
            n for n in self.topological_order(EdgeType.COMPUTED)
            if self._nodes[n].is_computed
        ]

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_direct_dependencies(
        self,
        name: str,
        edge_type: EdgeType = EdgeType.DEPENDS_ON,
    ) -> List[str]:
        node = self._nodes.get(name)
        return list(node.upstream(edge_type)) if node else []

    def get_direct_dependents(
        self,
        name: str,
        edge_type: EdgeType = EdgeType.DEPENDS_ON,
    ) -> Set[str]:
        node = self._nodes.get(name)
        return set(node.downstream(edge_type)) if node else set()

    def get_all_downstream(
        self,
        name: str,
        edge_type: EdgeType = EdgeType.DEPENDS_ON,
    ) -> Set[str]:
        """Transitive closure of dependents."""
        result: Set[str] = set()
        to_process = [name]

        while to_process:
            current = to_process.pop()
            node = self._nodes.get(current)
            if node:
                for dependent in node.downstream(edge_type):
                    if dependent not in result:
                        result.add(dependent)
                        to_process.append(dependent)

        return result

    def get_node(self, name: str) -> Optional[FieldNode]:
        return self._nodes.get(name)

    def has_field(self, name: str) -> bool:
        return name in self._nodes

    def missing_references(self, edge_type: EdgeType) -> List[Tuple[str, str]]:
        """(field, referenced name) pairs whose target is not declared."""
        return [
            (node.name, dep)
            for node in self._nodes.values()
            for dep in node.upstream(edge_type)
            if dep not in self._nodes
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": {
                name: {
                    "type": n.field_type,
                    "dependsOn": list(n.parents),
                    "computedFrom": list(n.computed_from),
                    "dependents": sorted(n.dependents),
                    "computedDependents": sorted(n.computed_dependents),
                }
                for name, n in self._nodes.items()
            },
            "edges": [
                {"source": e.source, "target": e.target, "type": e.edge_type.value}
                for e in self._edges.values()
            ],
        }

    def __len__(self) -> int:
        return len(self._nodes)
