"""Fallback effect-index assignment for proposals that predate explicit indexing.

Responsibilities of this stage:
- pass proposals that already carry an ``effect_index`` through unchanged
- give every other proposal the next free 0-based ordinal for its source node,
  in input order
- never mutate the input; return a new tuple in the original order
"""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from printconf.domain.model import ChildItemProposal


def assign_fallback_effect_index(
    proposals: Iterable[ChildItemProposal],
) -> tuple[ChildItemProposal, ...]:
    items = tuple(proposals)
    taken: defaultdict[str, set[int]] = defaultdict(set)
    for proposal in items:
        if proposal.effect_index is not None:
            taken[proposal.source_node_id].add(proposal.effect_index)

    next_free: defaultdict[str, int] = defaultdict(int)
    assigned: list[ChildItemProposal] = []
    for proposal in items:
        if proposal.effect_index is not None:
            assigned.append(proposal)
            continue
        node_id = proposal.source_node_id
        ordinal = next_free[node_id]
        while ordinal in taken[node_id]:
            ordinal += 1
        taken[node_id].add(ordinal)
        next_free[node_id] = ordinal + 1
        assigned.append(proposal.with_effect_index(ordinal))
    return tuple(assigned)
