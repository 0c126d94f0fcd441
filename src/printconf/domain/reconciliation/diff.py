"""Keyed diff between snapshot proposals and currently accepted components.

Both sides are normalized into :class:`ComparableComponent` so that a proposal and the
row it produced compare equal: quantities are compared as two-decimal strings and
missing visibility reads as ``rollup``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from printconf.domain.model import InvoiceVisibility
from printconf.domain.model.numbers import quantize_qty

if TYPE_CHECKING:
    from collections.abc import Iterable

    from printconf.domain.model import AcceptedComponent, ChildItemProposal

log = logging.getLogger(__name__)

type ComponentKey = tuple[str, int]

_PAYLOAD_FIELDS: Final = (
    "kind",
    "title",
    "sku_ref",
    "child_product_id",
    "qty",
    "unit_price_cents",
    "amount_cents",
    "invoice_visibility",
)


@dataclass(frozen=True, slots=True, kw_only=True)
class ComparableComponent:
    source_node_id: str
    effect_index: int
    kind: str
    title: str
    sku_ref: str | None
    child_product_id: str | None
    qty: str
    unit_price_cents: int | None
    amount_cents: int | None
    invoice_visibility: str

    @property
    def key(self) -> ComponentKey:
        return (self.source_node_id, self.effect_index)

    @classmethod
    def from_proposal(cls, proposal: ChildItemProposal) -> ComparableComponent:
        source_node_id, effect_index = proposal.key
        return cls(
            source_node_id=source_node_id,
            effect_index=effect_index,
            kind=str(proposal.kind),
            title=proposal.title,
            sku_ref=proposal.sku_ref,
            child_product_id=proposal.child_product_id,
            qty=str(quantize_qty(proposal.qty)),
            unit_price_cents=proposal.unit_price_cents,
            amount_cents=proposal.amount_cents,
            invoice_visibility=str(proposal.invoice_visibility or InvoiceVisibility.ROLLUP),
        )

    @classmethod
    def from_component(cls, component: AcceptedComponent) -> ComparableComponent:
        return cls(
            source_node_id=component.source_node_id,
            effect_index=component.effect_index,
            kind=str(component.kind),
            title=component.title,
            sku_ref=component.sku_ref,
            child_product_id=component.child_product_id,
            qty=str(quantize_qty(component.qty)),
            unit_price_cents=component.unit_price_cents,
            amount_cents=component.amount_cents,
            invoice_visibility=str(component.invoice_visibility or InvoiceVisibility.ROLLUP),
        )

    def changed_fields(self, other: ComparableComponent) -> tuple[str, ...]:
        return tuple(
            name for name in _PAYLOAD_FIELDS if getattr(self, name) != getattr(other, name)
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class ModifiedComponent:
    before: ComparableComponent
    after: ComparableComponent
    changed_fields: tuple[str, ...]

    @property
    def key(self) -> ComponentKey:
        return self.after.key


@dataclass(frozen=True, slots=True, kw_only=True)
class ComponentDiff:
    unchanged: tuple[ComparableComponent, ...] = ()
    added: tuple[ComparableComponent, ...] = ()
    removed: tuple[ComparableComponent, ...] = ()
    modified: tuple[ModifiedComponent, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.modified)

    def summary(self) -> dict[str, int]:
        return {
            "added": len(self.added),
            "removed": len(self.removed),
            "modified": len(self.modified),
            "unchanged": len(self.unchanged),
        }


def diff_components(
    proposed: Iterable[ComparableComponent],
    accepted: Iterable[ComparableComponent],
) -> ComponentDiff:
    """Diff by key; every output list is sorted by ``(source_node_id, effect_index)``."""

    proposed_by_key = _index(proposed, side="proposed")
    accepted_by_key = _index(accepted, side="accepted")

    unchanged: list[ComparableComponent] = []
    added: list[ComparableComponent] = []
    modified: list[ModifiedComponent] = []
    for key in sorted(proposed_by_key):
        after = proposed_by_key[key]
        before = accepted_by_key.get(key)
        if before is None:
            added.append(after)
            continue
        changed = before.changed_fields(after)
        if changed:
            modified.append(ModifiedComponent(before=before, after=after, changed_fields=changed))
        else:
            unchanged.append(after)

    removed = [
        accepted_by_key[key] for key in sorted(accepted_by_key) if key not in proposed_by_key
    ]
    return ComponentDiff(
        unchanged=tuple(unchanged),
        added=tuple(added),
        removed=tuple(removed),
        modified=tuple(modified),
    )


def _index(
    components: Iterable[ComparableComponent], *, side: str
) -> dict[ComponentKey, ComparableComponent]:
    indexed: dict[ComponentKey, ComparableComponent] = {}
    for component in components:
        if component.key in indexed:
            log.warning("Ignoring duplicate %s component for key %s", side, component.key)
            continue
        indexed[component.key] = component
    return indexed
