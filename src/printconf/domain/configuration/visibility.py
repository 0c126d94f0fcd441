"""Resolve which nodes are visible for a set of selection values."""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING, Final

from printconf.domain.model import EntityStatus

from .conditions import evaluate_condition

if TYPE_CHECKING:
    from collections.abc import Mapping

    from printconf.domain.model import OptionGraph

_TRAVERSABLE: Final = frozenset({EntityStatus.ENABLED})


def resolve_visible_nodes(graph: OptionGraph, values: Mapping[str, object]) -> tuple[str, ...]:
    """Breadth-first walk from the roots along enabled edges whose condition holds.

    A node is only reached through a visible parent, so anything contained in a
    hidden group stays hidden. Disabled and deleted nodes are never visible. The
    result is ordered by discovery: roots in declaration order, then children by
    ``(priority, edge id)``.
    """

    nodes = graph.nodes_by_id()
    outgoing = graph.outgoing(statuses=_TRAVERSABLE)

    visible: list[str] = []
    seen: set[str] = set()
    queue: deque[str] = deque()

    for root_id in graph.root_node_ids:
        root = nodes.get(root_id)
        if root is None or root.status != EntityStatus.ENABLED or root_id in seen:
            continue
        seen.add(root_id)
        visible.append(root_id)
        queue.append(root_id)

    while queue:
        current = queue.popleft()
        for edge in outgoing.get(current, ()):
            target = nodes.get(edge.to_node_id)
            if target is None or target.status != EntityStatus.ENABLED or target.id in seen:
                continue
            if not evaluate_condition(edge.condition, values):
                continue
            seen.add(target.id)
            visible.append(target.id)
            queue.append(target.id)

    return tuple(visible)
