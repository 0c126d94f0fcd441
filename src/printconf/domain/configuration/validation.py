"""Structural validation of option graphs.

Checks performed (all problems are collected before raising):
- roots are declared, exist and are not deleted
- node and edge ids are unique
- no non-deleted edge points at a missing node
- question nodes declare a known input type and unique choice values
- conditions reference existing nodes and stay within the nesting limit
- no cycles among non-deleted edges
- every live non-root node is reachable from a root; question nodes through enabled edges
"""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING, Final

from printconf.domain.errors import ValidationError
from printconf.domain.model import EntityStatus, InputType, NodeKind

from .conditions import condition_depth, referenced_node_ids

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping

    from printconf.domain.model import Condition, Edge, Node, OptionGraph

DEFAULT_MAX_CONDITION_DEPTH: Final[int] = 32

_LIVE_EDGES: Final = frozenset({EntityStatus.ENABLED, EntityStatus.DISABLED})
_ENABLED_EDGES: Final = frozenset({EntityStatus.ENABLED})
_INPUT_TYPES: Final = frozenset(InputType)


def validate_graph(
    graph: OptionGraph,
    *,
    max_condition_depth: int = DEFAULT_MAX_CONDITION_DEPTH,
) -> None:
    """Raise :class:`ValidationError` listing every structural problem found."""

    problems = list(graph_problems(graph, max_condition_depth=max_condition_depth))
    if problems:
        raise ValidationError(problems)


def graph_problems(
    graph: OptionGraph,
    *,
    max_condition_depth: int = DEFAULT_MAX_CONDITION_DEPTH,
) -> Iterable[str]:
    nodes = graph.nodes_by_id()

    if not graph.root_node_ids:
        yield "graph declares no root nodes"
    for node_id, count in Counter(node.id for node in graph.nodes).items():
        if count > 1:
            yield f"duplicate node id '{node_id}'"
    for edge_id, count in Counter(edge.id for edge in graph.edges).items():
        if count > 1:
            yield f"duplicate edge id '{edge_id}'"

    for root_id in graph.root_node_ids:
        root = nodes.get(root_id)
        if root is None:
            yield f"root node '{root_id}' does not exist"
        elif root.status == EntityStatus.DELETED:
            yield f"root node '{root_id}' is deleted"

    for node in graph.nodes:
        if node.status != EntityStatus.DELETED:
            yield from _node_problems(node, nodes, max_condition_depth)

    for edge in graph.edges:
        if edge.status == EntityStatus.DELETED:
            continue
        for endpoint in (edge.from_node_id, edge.to_node_id):
            if endpoint not in nodes:
                yield f"edge '{edge.id}' references missing node '{endpoint}'"
        yield from _condition_problems(
            f"edge '{edge.id}'", edge.condition, nodes, max_condition_depth
        )

    cycle = find_cycle(graph)
    if cycle:
        yield f"cycle detected: {' -> '.join(cycle)}"

    yield from _reachability_problems(graph, nodes)


def _node_problems(node: Node, nodes: Mapping[str, Node], max_depth: int) -> Iterable[str]:
    if node.kind == NodeKind.QUESTION:
        if node.input is None:
            yield f"question node '{node.id}' has no input descriptor"
        elif node.input.type not in _INPUT_TYPES:
            yield f"question node '{node.id}' has unsupported input type '{node.input.type}'"
    for value, count in Counter(choice.value for choice in node.choices).items():
        if count > 1:
            yield f"node '{node.id}' declares choice '{value}' more than once"

    owner = f"node '{node.id}'"
    conditions: list[Condition | None] = [effect.apply_when for effect in node.pricing]
    conditions.extend(effect.apply_when for effect in node.weight)
    conditions.extend(effect.apply_when for effect in node.materials)
    conditions.extend(effect.apply_when for effect in node.child_items)
    for choice in node.choices:
        conditions.extend(effect.apply_when for effect in choice.pricing)
    for condition in conditions:
        yield from _condition_problems(owner, condition, nodes, max_depth)


def _condition_problems(
    owner: str,
    condition: Condition | None,
    nodes: Mapping[str, Node],
    max_depth: int,
) -> Iterable[str]:
    if condition is None:
        return
    depth = condition_depth(condition)
    if depth > max_depth:
        yield f"{owner} has a condition nested {depth} levels deep (limit {max_depth})"
    for node_id in sorted(set(referenced_node_ids(condition))):
        if node_id not in nodes:
            yield f"{owner} has a condition referencing missing node '{node_id}'"


def find_cycle(graph: OptionGraph) -> list[str] | None:
    """Return one cycle (as a closed node path) among non-deleted edges, if any."""

    nodes = graph.nodes_by_id()
    outgoing = graph.outgoing(statuses=_LIVE_EDGES)
    visiting: set[str] = set()
    done: set[str] = set()

    for start in sorted(nodes):
        if start in done:
            continue
        path: list[str] = [start]
        stack: list[Iterator[Edge]] = [iter(outgoing.get(start, ()))]
        visiting.add(start)
        while stack:
            edge = next(stack[-1], None)
            if edge is None:
                stack.pop()
                finished = path.pop()
                visiting.discard(finished)
                done.add(finished)
                continue
            target = edge.to_node_id
            if target not in nodes or target in done:
                continue
            if target in visiting:
                return [*path[path.index(target) :], target]
            visiting.add(target)
            path.append(target)
            stack.append(iter(outgoing.get(target, ())))
    return None


def _reachability_problems(graph: OptionGraph, nodes: Mapping[str, Node]) -> Iterable[str]:
    roots = [root for root in graph.root_node_ids if root in nodes]
    reachable = _reachable(graph, roots, _LIVE_EDGES)
    reachable_enabled = _reachable(graph, roots, _ENABLED_EDGES)
    root_set = set(roots)

    for node in graph.nodes:
        if node.status == EntityStatus.DELETED or node.id in root_set:
            continue
        if node.id not in reachable:
            yield f"node '{node.id}' is not reachable from any root"
        elif node.kind == NodeKind.QUESTION and node.id not in reachable_enabled:
            yield f"question node '{node.id}' is referenced by no enabled edge"


def _reachable(
    graph: OptionGraph,
    roots: Iterable[str],
    statuses: frozenset[EntityStatus],
) -> set[str]:
    nodes = graph.nodes_by_id()
    outgoing = graph.outgoing(statuses=statuses)
    seen: set[str] = set()
    pending = list(roots)
    while pending:
        current = pending.pop()
        if current in seen:
            continue
        seen.add(current)
        for edge in outgoing.get(current, ()):
            target = nodes.get(edge.to_node_id)
            if target is not None and target.status != EntityStatus.DELETED:
                pending.append(edge.to_node_id)
    return seen
