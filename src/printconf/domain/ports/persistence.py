"""Ports for persisting domain aggregates."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from printconf.domain.model import (
    GraphVersion,
    OrderLineItem,
    Product,
    SnapshotAuditEvent,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime
    from decimal import Decimal
    from uuid import UUID

    from printconf.domain.model import AcceptedComponent, ChildItemKind, InvoiceVisibility


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...

    def get(self, entity_id: UUID) -> TEntity | None: ...


@runtime_checkable
class ProductRepository(Repository[Product], Protocol):
    """Repository contract for products."""


@runtime_checkable
class GraphVersionRepository(Repository[GraphVersion], Protocol):
    """Repository contract for graph versions."""


@runtime_checkable
class LineItemRepository(Repository[OrderLineItem], Protocol):
    """Repository contract for order line items."""


@runtime_checkable
class AuditRepository(Repository[SnapshotAuditEvent], Protocol):
    """Repository contract for snapshot and component audit events."""

    def list_for_line_item(self, line_item_id: UUID) -> list[SnapshotAuditEvent]: ...


@dataclass(frozen=True, slots=True, kw_only=True)
class ComponentValues:
    """Row payload for one accepted component, keyed by ``(source_node_id, effect_index)``."""

    source_node_id: str
    effect_index: int
    kind: ChildItemKind
    title: str
    qty: Decimal
    sku_ref: str | None = None
    child_product_id: str | None = None
    unit_price_cents: int | None = None
    amount_cents: int | None = None
    invoice_visibility: InvoiceVisibility | None = None


@runtime_checkable
class ComponentRepository(Protocol):
    """Accepted-component store with a conflict-aware keyed upsert.

    At most one ACCEPTED row may exist per (line item, source node, effect index);
    ``upsert_accepted`` must resolve conflicts in a single write rather than read first.
    """

    def get(self, component_id: UUID) -> AcceptedComponent | None: ...

    def list_accepted(self, line_item_id: UUID) -> list[AcceptedComponent]: ...

    def list_for_line_item(self, line_item_id: UUID) -> list[AcceptedComponent]: ...

    def upsert_accepted(
        self,
        *,
        line_item_id: UUID,
        values: ComponentValues,
        graph_version_id: UUID | None,
        at: datetime,
    ) -> None: ...

    def void(self, component_ids: Sequence[UUID], *, at: datetime) -> int: ...
