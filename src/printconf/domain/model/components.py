"""Accepted child components persisted against an order line item."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .enums import ComponentStatus

if TYPE_CHECKING:
    from datetime import datetime
    from decimal import Decimal
    from uuid import UUID

    from .enums import ChildItemKind, InvoiceVisibility


@dataclass(frozen=True, slots=True, kw_only=True)
class AcceptedComponent:
    id: UUID
    order_line_item_id: UUID
    source_node_id: str
    effect_index: int
    kind: ChildItemKind
    title: str
    qty: Decimal
    status: ComponentStatus = ComponentStatus.ACCEPTED
    sku_ref: str | None = None
    child_product_id: str | None = None
    unit_price_cents: int | None = None
    amount_cents: int | None = None
    invoice_visibility: InvoiceVisibility | None = None
    graph_version_id: UUID | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def key(self) -> tuple[str, int]:
        return (self.source_node_id, self.effect_index)
