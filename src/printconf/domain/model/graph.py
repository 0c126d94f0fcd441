"""Option graph model: nodes and edges of one versioned configuration definition.

Nodes never hold child pointers; containment and dependency are expressed through
the separate edge list so that the graph stays a flat, acyclic-by-construction data
structure and traversal is a pure function over it.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .entity import Entity
from .enums import EntityStatus, GraphVersionStatus, InputType, NodeKind

if TYPE_CHECKING:
    from uuid import UUID

    from .conditions import Condition
    from .effects import ChildItemEffect, MaterialEffect, PricingEffect, WeightEffect


@dataclass(frozen=True, slots=True, kw_only=True)
class InputSpec:
    type: InputType | str
    required: bool = False
    default: object = None
    constraints: Mapping[str, object] = field(default_factory=dict[str, object])


@dataclass(frozen=True, slots=True, kw_only=True)
class Choice:
    value: str
    label: str
    weight_oz: float | None = None
    pricing: tuple[PricingEffect, ...] = ()


@dataclass(frozen=True, slots=True, kw_only=True)
class Node:
    id: str
    kind: NodeKind
    label: str = ""
    status: EntityStatus = EntityStatus.ENABLED
    input: InputSpec | None = None
    choices: tuple[Choice, ...] = ()
    pricing: tuple[PricingEffect, ...] = ()
    weight: tuple[WeightEffect, ...] = ()
    materials: tuple[MaterialEffect, ...] = ()
    child_items: tuple[ChildItemEffect, ...] = ()

    @property
    def input_type(self) -> InputType | str | None:
        return self.input.type if self.input is not None else None

    def choice(self, value: object) -> Choice | None:
        for choice in self.choices:
            if choice.value == value:
                return choice
        return None


@dataclass(frozen=True, slots=True, kw_only=True)
class Edge:
    id: str
    from_node_id: str
    to_node_id: str
    condition: Condition | None = None
    priority: int = 0
    status: EntityStatus = EntityStatus.ENABLED


@dataclass(frozen=True, slots=True, kw_only=True)
class OptionGraph:
    root_node_ids: tuple[str, ...]
    nodes: tuple[Node, ...] = ()
    edges: tuple[Edge, ...] = ()
    base_weight_oz: float = 0.0

    def nodes_by_id(self) -> dict[str, Node]:
        return {node.id: node for node in self.nodes}

    def outgoing(self, *, statuses: frozenset[EntityStatus]) -> dict[str, list[Edge]]:
        """Edges by source node, filtered by status and ordered by (priority, id)."""

        by_source: dict[str, list[Edge]] = {}
        for edge in self.edges:
            if edge.status not in statuses:
                continue
            by_source.setdefault(edge.from_node_id, []).append(edge)
        for edges in by_source.values():
            edges.sort(key=lambda edge: (edge.priority, edge.id))
        return by_source


@dataclass(eq=False, kw_only=True)
class GraphVersion(Entity):
    """One immutable configuration definition with a lifecycle status."""

    graph: OptionGraph
    status: GraphVersionStatus = GraphVersionStatus.DRAFT
    product_id: UUID | None = None
    label: str | None = None

    @property
    def is_draft(self) -> bool:
        return self.status == GraphVersionStatus.DRAFT
