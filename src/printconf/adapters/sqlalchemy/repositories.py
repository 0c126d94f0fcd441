"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import or_, select, update
from sqlalchemy.dialects import postgresql, sqlite

from printconf.adapters.sqlalchemy.mappings import (
    ACCEPTED_COMPONENT_CLAUSE,
    order_line_item_component_table,
    snapshot_audit_event_table,
)
from printconf.domain.model import (
    AcceptedComponent,
    ComponentStatus,
    GraphVersion,
    OrderLineItem,
    Product,
    SnapshotAuditEvent,
    new_id,
)

if TYPE_CHECKING:
    import uuid
    from collections.abc import Sequence
    from datetime import datetime

    from sqlalchemy import Row
    from sqlalchemy.orm import Session

    from printconf.domain.ports import ComponentValues

log = getLogger(__name__)

_COMPONENT_KEY_COLUMNS = ("order_line_item_id", "source_node_id", "effect_index")
_COMPONENT_PAYLOAD_COLUMNS = (
    "kind",
    "title",
    "qty",
    "sku_ref",
    "child_product_id",
    "unit_price_cents",
    "amount_cents",
    "invoice_visibility",
)


class SqlAlchemyEntityRepository[TEntity]:
    """Shared add/get for imperatively mapped entities."""

    def __init__(self, session: Session, entity_cls: type[TEntity]) -> None:
        self.session = session
        self._entity_cls = entity_cls

    def add(self, entity: TEntity) -> None:
        self.session.add(entity)

    def get(self, entity_id: uuid.UUID) -> TEntity | None:
        return self.session.get(self._entity_cls, entity_id)


class SqlAlchemyProductRepository(SqlAlchemyEntityRepository[Product]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, Product)


class SqlAlchemyGraphVersionRepository(SqlAlchemyEntityRepository[GraphVersion]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, GraphVersion)


class SqlAlchemyLineItemRepository(SqlAlchemyEntityRepository[OrderLineItem]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, OrderLineItem)


class SqlAlchemyAuditRepository(SqlAlchemyEntityRepository[SnapshotAuditEvent]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, SnapshotAuditEvent)

    def list_for_line_item(self, line_item_id: uuid.UUID) -> list[SnapshotAuditEvent]:
        stmt = (
            select(SnapshotAuditEvent)
            .where(snapshot_audit_event_table.c.line_item_id == line_item_id)
            .order_by(snapshot_audit_event_table.c.created_at)
        )
        return list(self.session.execute(stmt).scalars())


class SqlAlchemyComponentRepository:
    """Accepted components, written through Core statements only.

    Upserts target the partial unique index on ACCEPTED rows and only rewrite a row
    when one of its payload columns actually differs.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, component_id: uuid.UUID) -> AcceptedComponent | None:
        table = order_line_item_component_table
        row = self.session.execute(select(table).where(table.c.id == component_id)).one_or_none()
        return _to_component(row) if row is not None else None

    def list_accepted(self, line_item_id: uuid.UUID) -> list[AcceptedComponent]:
        table = order_line_item_component_table
        stmt = (
            select(table)
            .where(table.c.order_line_item_id == line_item_id)
            .where(table.c.status == ComponentStatus.ACCEPTED)
            .order_by(table.c.source_node_id, table.c.effect_index)
        )
        return [_to_component(row) for row in self.session.execute(stmt)]

    def list_for_line_item(self, line_item_id: uuid.UUID) -> list[AcceptedComponent]:
        table = order_line_item_component_table
        stmt = (
            select(table)
            .where(table.c.order_line_item_id == line_item_id)
            .order_by(table.c.source_node_id, table.c.effect_index, table.c.created_at)
        )
        return [_to_component(row) for row in self.session.execute(stmt)]

    def upsert_accepted(
        self,
        *,
        line_item_id: uuid.UUID,
        values: ComponentValues,
        graph_version_id: uuid.UUID | None,
        at: datetime,
    ) -> None:
        table = order_line_item_component_table
        payload: dict[str, Any] = {
            "kind": values.kind,
            "title": values.title,
            "qty": values.qty,
            "sku_ref": values.sku_ref,
            "child_product_id": values.child_product_id,
            "unit_price_cents": values.unit_price_cents,
            "amount_cents": values.amount_cents,
            "invoice_visibility": values.invoice_visibility,
        }
        insert = self._insert_factory()
        stmt = insert(table).values(
            id=new_id(),
            order_line_item_id=line_item_id,
            source_node_id=values.source_node_id,
            effect_index=values.effect_index,
            status=ComponentStatus.ACCEPTED,
            graph_version_id=graph_version_id,
            created_at=at,
            updated_at=at,
            **payload,
        )
        excluded = stmt.excluded
        stmt = stmt.on_conflict_do_update(
            index_elements=[table.c[name] for name in _COMPONENT_KEY_COLUMNS],
            index_where=ACCEPTED_COMPONENT_CLAUSE,
            set_={
                **{name: excluded[name] for name in _COMPONENT_PAYLOAD_COLUMNS},
                "graph_version_id": excluded.graph_version_id,
                "updated_at": excluded.updated_at,
            },
            where=or_(
                *(
                    table.c[name].is_distinct_from(excluded[name])
                    for name in _COMPONENT_PAYLOAD_COLUMNS
                )
            ),
        )
        self.session.execute(stmt)

    def void(self, component_ids: Sequence[uuid.UUID], *, at: datetime) -> int:
        if not component_ids:
            return 0
        table = order_line_item_component_table
        stmt = (
            update(table)
            .where(table.c.id.in_(component_ids))
            .where(table.c.status == ComponentStatus.ACCEPTED)
            .values(status=ComponentStatus.VOIDED, updated_at=at)
        )
        result = self.session.execute(stmt)
        count: int = result.rowcount  # pyright: ignore[reportAttributeAccessIssue]
        log.debug("Voided %s of %s components", count, len(component_ids))
        return count

    def _insert_factory(self) -> Any:
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            return postgresql.insert
        if dialect == "sqlite":
            return sqlite.insert
        raise NotImplementedError(f"Keyed component upsert is not supported on {dialect}")


def _to_component(row: Row[Any]) -> AcceptedComponent:
    return AcceptedComponent(**row._asdict())


if TYPE_CHECKING:
    from printconf.domain.ports import (
        AuditRepository,
        ComponentRepository,
        GraphVersionRepository,
        LineItemRepository,
        ProductRepository,
    )

    _session_stub = cast("Session", object())
    _product_repo: ProductRepository = SqlAlchemyProductRepository(_session_stub)
    _graph_repo: GraphVersionRepository = SqlAlchemyGraphVersionRepository(_session_stub)
    _line_item_repo: LineItemRepository = SqlAlchemyLineItemRepository(_session_stub)
    _component_repo: ComponentRepository = SqlAlchemyComponentRepository(_session_stub)
    _audit_repo: AuditRepository = SqlAlchemyAuditRepository(_session_stub)
