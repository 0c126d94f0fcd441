"""Snapshot lifecycle: recompute, staleness checks and audited keep-existing.

A snapshot is only ever replaced wholesale, and only by an explicit recompute. The
staleness oracle is the input signature: a snapshot is stale when the signature of the
line item's live inputs differs from the signature of the inputs it recorded.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from printconf.domain.configuration import (
    build_environment,
    environment_extras,
    evaluate,
    input_signature,
)
from printconf.domain.configuration.signature import DEFAULT_MAX_DEPTH
from printconf.domain.configuration.validation import DEFAULT_MAX_CONDITION_DEPTH
from printconf.domain.errors import DraftTreeError, NotFoundError
from printconf.domain.model import AuditAction, Snapshot, SnapshotAuditEvent

if TYPE_CHECKING:
    from collections.abc import Mapping
    from uuid import UUID

    from printconf.domain.model import GraphVersion, OrderLineItem, Product
    from printconf.domain.ports import ConfigurationRepositories, ConfigurationUnitOfWork

type UnitOfWorkFactory = Callable[[], ConfigurationUnitOfWork]

log = getLogger(__name__)


@dataclass(frozen=True, slots=True, kw_only=True)
class StalenessReport:
    line_item_id: UUID
    stale: bool
    stored_signature: str | None
    current_signature: str | None
    graph_version_id: UUID | None


def utcnow() -> datetime:
    return datetime.now(tz=UTC)


def require_line_item(
    repositories: ConfigurationRepositories, line_item_id: UUID
) -> OrderLineItem:
    line_item = repositories.line_items.get(line_item_id)
    if line_item is None:
        raise NotFoundError("line item", line_item_id)
    return line_item


def require_product(repositories: ConfigurationRepositories, product_id: UUID) -> Product:
    product = repositories.products.get(product_id)
    if product is None:
        raise NotFoundError("product", product_id)
    return product


def require_usable_graph_version(
    repositories: ConfigurationRepositories, graph_version_id: UUID
) -> GraphVersion:
    """Load a graph version that may price a persisted order line (never a DRAFT)."""

    graph_version = repositories.graph_versions.get(graph_version_id)
    if graph_version is None:
        raise NotFoundError("graph version", graph_version_id)
    if graph_version.is_draft:
        raise DraftTreeError(graph_version_id)
    return graph_version


def current_environment(
    line_item: OrderLineItem, *, extras: Mapping[str, object] | None = None
) -> dict[str, object]:
    return build_environment(
        quantity=line_item.quantity,
        width_in=line_item.width_in,
        height_in=line_item.height_in,
        pricing_tier=line_item.pricing_tier,
        extras=extras,
    )


def current_signature(
    line_item: OrderLineItem,
    product: Product,
    snapshot: Snapshot,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> tuple[UUID | None, str | None]:
    """Signature of the live inputs, carrying over the snapshot's caller extras.

    The graph version is the product's evaluation version (pinned or active), falling
    back to the snapshot's own version when the product has none configured.
    """

    graph_version_id = product.evaluation_graph_version_id or snapshot.graph_version_id
    if graph_version_id is None:
        return None, None
    environment = current_environment(line_item, extras=environment_extras(snapshot.environment))
    signature = input_signature(
        graph_version_id,
        line_item.explicit_selections,
        environment,
        max_depth=max_depth,
    )
    return graph_version_id, signature


def recorded_signature(snapshot: Snapshot, *, max_depth: int = DEFAULT_MAX_DEPTH) -> str | None:
    """Signature recomputed from the snapshot's own recorded inputs."""

    if (
        snapshot.graph_version_id is None
        or snapshot.explicit_selections is None
        or snapshot.environment is None
    ):
        return None
    return input_signature(
        snapshot.graph_version_id,
        snapshot.explicit_selections,
        snapshot.environment,
        max_depth=max_depth,
    )


def recompute_snapshot(
    line_item_id: UUID,
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    extras: Mapping[str, object] | None = None,
    actor: str | None = None,
    now: datetime | None = None,
    max_condition_depth: int = DEFAULT_MAX_CONDITION_DEPTH,
    signature_max_depth: int = DEFAULT_MAX_DEPTH,
) -> Snapshot:
    """Re-evaluate a line item against its product's evaluation graph version.

    Replaces the snapshot wholesale. Raises :class:`DraftTreeError` when the resolved
    graph version is a DRAFT.
    """

    evaluated_at = now or utcnow()
    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        line_item = require_line_item(repositories, line_item_id)
        product = require_product(repositories, line_item.product_id)
        graph_version_id = product.evaluation_graph_version_id
        if graph_version_id is None:
            raise NotFoundError("graph version for product", product.id)
        graph_version = require_usable_graph_version(repositories, graph_version_id)

        selections = dict(line_item.explicit_selections)
        environment = current_environment(line_item, extras=extras)
        evaluation = evaluate(
            graph_version.graph,
            selections,
            environment,
            max_condition_depth=max_condition_depth,
        )
        signature = input_signature(
            graph_version.id, selections, environment, max_depth=signature_max_depth
        )
        snapshot = Snapshot(
            graph_version_id=graph_version.id,
            evaluated_at=evaluated_at,
            input_signature=signature,
            explicit_selections=selections,
            environment=environment,
            pricing=evaluation.pricing,
            weight=evaluation.weight,
            materials=evaluation.materials,
            child_items=evaluation.child_items,
            details={"visibleNodeIds": list(evaluation.visible_node_ids)},
        )
        previous = line_item.snapshot.input_signature if line_item.snapshot else None
        line_item.replace_snapshot(snapshot)
        repositories.audit_events.add(
            SnapshotAuditEvent(
                line_item_id=line_item.id,
                action=AuditAction.RECOMPUTE,
                actor=actor,
                details={
                    "graphVersionId": str(graph_version.id),
                    "previousSignature": previous,
                    "signature": signature,
                    "childItems": len(evaluation.child_items),
                },
                created_at=evaluated_at,
            )
        )
        uow.commit()

    log.info(
        "Recomputed snapshot for line item %s: graph_version=%s, add_on_cents=%s, child_items=%s",
        line_item_id,
        graph_version_id,
        evaluation.pricing.add_on_cents,
        len(evaluation.child_items),
    )
    return snapshot


def check_staleness(
    line_item_id: UUID,
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    signature_max_depth: int = DEFAULT_MAX_DEPTH,
) -> StalenessReport:
    """Compare the recorded and live signatures without changing anything.

    Snapshots that do not record their inputs cannot be verified and report stale.
    """

    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        line_item = require_line_item(repositories, line_item_id)
        snapshot = line_item.snapshot
        if snapshot is None:
            raise NotFoundError("snapshot for line item", line_item_id)
        product = require_product(repositories, line_item.product_id)
        stored = recorded_signature(snapshot, max_depth=signature_max_depth)
        graph_version_id, current = current_signature(
            line_item, product, snapshot, max_depth=signature_max_depth
        )

    return StalenessReport(
        line_item_id=line_item_id,
        stale=stored is None or stored != current,
        stored_signature=stored,
        current_signature=current,
        graph_version_id=graph_version_id,
    )


def keep_existing_snapshot(
    line_item_id: UUID,
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    note: str | None = None,
    actor: str | None = None,
    now: datetime | None = None,
) -> SnapshotAuditEvent:
    """Record that a person chose to proceed with the current snapshot.

    This is an acknowledgment only: the snapshot is untouched and stays stale if it was.
    """

    report = check_staleness(line_item_id, unit_of_work_factory=unit_of_work_factory)
    event = SnapshotAuditEvent(
        line_item_id=line_item_id,
        action=AuditAction.KEEP_EXISTING,
        actor=actor,
        note=note,
        details={
            "stale": report.stale,
            "storedSignature": report.stored_signature,
            "currentSignature": report.current_signature,
        },
        created_at=now or utcnow(),
    )
    with unit_of_work_factory() as uow:
        uow.repositories.audit_events.add(event)
        uow.commit()

    log.info("Kept existing snapshot for line item %s (stale=%s)", line_item_id, report.stale)
    return event
