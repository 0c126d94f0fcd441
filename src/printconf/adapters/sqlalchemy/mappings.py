"""SQLAlchemy mapping metadata for products, graph versions, line items and components.

Graph definitions and snapshots are stored as JSON documents; accepted components are
a plain Core table so that the conflict-aware upsert in the repository is the only
writer of component state.
"""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from decimal import Decimal
from functools import cache
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Dialect,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    TypeDecorator,
    Uuid,
    orm,
    text,
)
from sqlalchemy.orm import configure_mappers

from printconf.adapters.documents import (
    graph_from_document,
    graph_to_document,
    snapshot_from_document,
    snapshot_to_document,
)
from printconf.domain.model import (
    AuditAction,
    ChildItemKind,
    ComponentStatus,
    GraphVersion,
    GraphVersionStatus,
    InvoiceVisibility,
    OptionGraph,
    OrderLineItem,
    PricingTier,
    Product,
    Snapshot,
    SnapshotAuditEvent,
)
from printconf.domain.model.numbers import quantize_qty

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]

ACCEPTED_COMPONENT_CLAUSE = text("status = 'ACCEPTED'")


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


class QuantityType(TypeDecorator[Decimal]):
    """Two-decimal quantity stored as text so every backend compares it exactly."""

    impl = String(32)
    cache_ok = True

    def process_bind_param(self, value: Decimal | float | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return str(quantize_qty(value))

    def process_result_value(self, value: str | None, dialect: Dialect) -> Decimal | None:
        _ = dialect
        if value is None:
            return None
        return Decimal(value)


class OptionGraphType(TypeDecorator[OptionGraph]):
    impl = JSON
    cache_ok = True

    def process_bind_param(self, value: OptionGraph | None, dialect: Dialect) -> Any:
        _ = dialect
        if value is None:
            return None
        return graph_to_document(value)

    def process_result_value(self, value: Any, dialect: Dialect) -> OptionGraph | None:
        _ = dialect
        if value is None:
            return None
        return graph_from_document(value)


class SnapshotType(TypeDecorator[Snapshot]):
    impl = JSON
    cache_ok = True

    def process_bind_param(self, value: Snapshot | None, dialect: Dialect) -> Any:
        _ = dialect
        if value is None:
            return None
        return snapshot_to_document(value)

    def process_result_value(self, value: Any, dialect: Dialect) -> Snapshot | None:
        _ = dialect
        if value is None:
            return None
        return snapshot_from_document(value)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Core tables -----------------------------------------------------------------

product_table = Table(
    "product",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("name", String, nullable=False),
    Column("active_graph_version_id", UUIDColumnType, nullable=True),
    Column("pinned_graph_version_id", UUIDColumnType, nullable=True),
)

graph_version_table = Table(
    "graph_version",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "product_id",
        UUIDColumnType,
        ForeignKey("product.id", ondelete="CASCADE"),
        nullable=True,
    ),
    Column("status", Enum(GraphVersionStatus, native_enum=False), nullable=False),
    Column("label", String, nullable=True),
    Column("graph", OptionGraphType, nullable=False),
)

order_line_item_table = Table(
    "order_line_item",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "product_id", UUIDColumnType, ForeignKey("product.id", ondelete="CASCADE"), nullable=False
    ),
    Column("quantity", Integer, nullable=False),
    Column("width_in", Float, nullable=True),
    Column("height_in", Float, nullable=True),
    Column("pricing_tier", Enum(PricingTier, native_enum=False), nullable=True),
    Column("explicit_selections", JSON, nullable=False),
    Column("snapshot", SnapshotType, nullable=True),
)

order_line_item_component_table = Table(
    "order_line_item_component",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "order_line_item_id",
        UUIDColumnType,
        ForeignKey("order_line_item.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("source_node_id", String, nullable=False),
    Column("effect_index", Integer, nullable=False),
    Column("kind", Enum(ChildItemKind, native_enum=False), nullable=False),
    Column("title", String, nullable=False),
    Column("qty", QuantityType, nullable=False),
    Column("status", Enum(ComponentStatus, native_enum=False), nullable=False),
    Column("sku_ref", String, nullable=True),
    Column("child_product_id", String, nullable=True),
    Column("unit_price_cents", Integer, nullable=True),
    Column("amount_cents", Integer, nullable=True),
    Column("invoice_visibility", Enum(InvoiceVisibility, native_enum=False), nullable=True),
    Column("graph_version_id", UUIDColumnType, nullable=True),
    Column("created_at", UTCDateTime, nullable=False),
    Column("updated_at", UTCDateTime, nullable=False),
    Index(
        "uq_order_line_item_component_accepted_key",
        "order_line_item_id",
        "source_node_id",
        "effect_index",
        unique=True,
        sqlite_where=ACCEPTED_COMPONENT_CLAUSE,
        postgresql_where=ACCEPTED_COMPONENT_CLAUSE,
    ),
)

snapshot_audit_event_table = Table(
    "snapshot_audit_event",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "line_item_id",
        UUIDColumnType,
        ForeignKey("order_line_item.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("action", Enum(AuditAction, native_enum=False), nullable=False),
    Column("actor", String, nullable=True),
    Column("note", String, nullable=True),
    Column("details", JSON, nullable=False),
    Column("created_at", UTCDateTime, nullable=False),
    Index("ix_snapshot_audit_event_line_item", "line_item_id", "created_at"),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(Product, product_table)
    mapper_registry.map_imperatively(GraphVersion, graph_version_table)
    mapper_registry.map_imperatively(OrderLineItem, order_line_item_table)
    mapper_registry.map_imperatively(SnapshotAuditEvent, snapshot_audit_event_table)

    configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
