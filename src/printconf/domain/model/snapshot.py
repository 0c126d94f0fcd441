"""Evaluation results and the snapshot persisted against an order line item."""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from .numbers import round_half_up

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from .enums import ChildItemKind, InvoiceVisibility, PricingMode


@dataclass(frozen=True, slots=True, kw_only=True)
class PricingLine:
    node_id: str
    label: str
    mode: PricingMode
    amount_cents: int


@dataclass(frozen=True, slots=True, kw_only=True)
class PricingAddons:
    """Cents add-ons plus the percent/multiplier factors left for the caller to apply."""

    add_on_cents: int = 0
    breakdown: tuple[PricingLine, ...] = ()
    percent_of_base: tuple[float, ...] = ()
    multipliers: tuple[float, ...] = ()

    def apply_to_base(self, base_cents: int) -> int:
        """Line total for a caller-supplied base price."""

        factor = math.prod(self.multipliers) if self.multipliers else 1.0
        percent_cents = base_cents * sum(self.percent_of_base) / 100
        return round_half_up((base_cents + self.add_on_cents) * factor + percent_cents)


@dataclass(frozen=True, slots=True, kw_only=True)
class WeightLine:
    label: str
    oz: float


@dataclass(frozen=True, slots=True, kw_only=True)
class WeightResult:
    total_oz: float = 0.0
    breakdown: tuple[WeightLine, ...] = ()


@dataclass(frozen=True, slots=True, kw_only=True)
class MaterialUsage:
    source_node_id: str
    sku_ref: str
    uom: str
    qty: float


@dataclass(frozen=True, slots=True, kw_only=True)
class ChildItemProposal:
    """A candidate child line item, identified by ``(source_node_id, effect_index)``.

    ``effect_index`` is ``None`` only for proposals read from snapshots written before
    explicit indexing existed.
    """

    kind: ChildItemKind
    title: str
    source_node_id: str
    effect_index: int | None
    qty: float
    sku_ref: str | None = None
    child_product_id: str | None = None
    unit_price_cents: int | None = None
    amount_cents: int | None = None
    invoice_visibility: InvoiceVisibility | None = None

    @property
    def key(self) -> tuple[str, int]:
        if self.effect_index is None:
            raise ValueError(f"Proposal from node {self.source_node_id} has no effect index")
        return (self.source_node_id, self.effect_index)

    def with_effect_index(self, effect_index: int) -> ChildItemProposal:
        return replace(self, effect_index=effect_index)


@dataclass(frozen=True, slots=True, kw_only=True)
class Evaluation:
    visible_node_ids: tuple[str, ...]
    pricing: PricingAddons
    weight: WeightResult
    materials: tuple[MaterialUsage, ...]
    child_items: tuple[ChildItemProposal, ...]


@dataclass(frozen=True, slots=True, kw_only=True)
class Snapshot:
    """Frozen evaluation result attached 1:1 to a line item; replaced wholesale only.

    Optional fields exist so that incomplete or legacy snapshots can still be read and
    rejected explicitly instead of failing on load.
    """

    graph_version_id: UUID | None
    evaluated_at: datetime
    input_signature: str | None = None
    explicit_selections: Mapping[str, object] | None = None
    environment: Mapping[str, object] | None = None
    pricing: PricingAddons | None = None
    weight: WeightResult | None = None
    materials: tuple[MaterialUsage, ...] = ()
    child_items: tuple[ChildItemProposal, ...] | None = None
    details: Mapping[str, object] = field(default_factory=dict[str, object])
