"""Products and order line items as seen by the configuration engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .entity import Entity

if TYPE_CHECKING:
    from uuid import UUID

    from .enums import PricingTier
    from .snapshot import Snapshot


@dataclass(eq=False, kw_only=True)
class Product(Entity):
    name: str
    active_graph_version_id: UUID | None = None
    pinned_graph_version_id: UUID | None = None

    @property
    def evaluation_graph_version_id(self) -> UUID | None:
        """Pinned version when configured, otherwise the latest active one."""

        return self.pinned_graph_version_id or self.active_graph_version_id


@dataclass(eq=False, kw_only=True)
class OrderLineItem(Entity):
    product_id: UUID
    quantity: int = 1
    width_in: float | None = None
    height_in: float | None = None
    pricing_tier: PricingTier | None = None
    explicit_selections: dict[str, object] = field(default_factory=dict[str, object])
    snapshot: Snapshot | None = None

    def replace_snapshot(self, snapshot: Snapshot) -> None:
        self.snapshot = snapshot
