"""Component reconciler: materialize snapshot proposals as accepted components.

Responsibilities of this stage:
- enforce every precondition before any mutation
- key proposals by ``(source_node_id, effect_index)``, backfilling legacy indices
- diff against the currently ACCEPTED rows and skip storage entirely on a no-op
- void removed/modified rows and upsert added/modified ones in one transaction

The reconciler never re-evaluates the graph; it only reconciles what the snapshot
already recorded.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from printconf.domain.configuration.signature import DEFAULT_MAX_DEPTH
from printconf.domain.errors import (
    EvaluationError,
    IncompleteSnapshotError,
    NotFoundError,
    StalenessConflict,
)
from printconf.domain.model import AuditAction, ComponentStatus, SnapshotAuditEvent
from printconf.domain.model.numbers import quantize_qty
from printconf.domain.ports import ComponentValues

from .diff import ComparableComponent, ComponentDiff, diff_components
from .effect_index import assign_fallback_effect_index
from .snapshots import (
    UnitOfWorkFactory,
    current_signature,
    recorded_signature,
    require_line_item,
    require_product,
    require_usable_graph_version,
    utcnow,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from datetime import datetime
    from uuid import UUID

    from printconf.domain.model import AcceptedComponent, ChildItemProposal, Snapshot
    from printconf.domain.ports import ConfigurationRepositories

log = getLogger(__name__)


@dataclass(frozen=True, slots=True, kw_only=True)
class ApplyResult:
    """Outcome of one reconciliation; all counts zero means nothing was written."""

    added: int = 0
    removed: int = 0
    modified: int = 0
    voided: int = 0
    upserted: int = 0
    accepted: tuple[AcceptedComponent, ...] = ()
    diff: ComponentDiff = ComponentDiff()

    @property
    def is_noop(self) -> bool:
        return not (self.added or self.removed or self.modified or self.voided or self.upserted)


@dataclass(frozen=True, slots=True, kw_only=True)
class AcceptResult:
    upserted: int = 0
    accepted: tuple[AcceptedComponent, ...] = ()


def component_values(proposal: ChildItemProposal) -> ComponentValues:
    """Row payload for a keyed proposal; quantities are stored with two decimals."""

    source_node_id, effect_index = proposal.key
    return ComponentValues(
        source_node_id=source_node_id,
        effect_index=effect_index,
        kind=proposal.kind,
        title=proposal.title,
        qty=quantize_qty(proposal.qty),
        sku_ref=proposal.sku_ref,
        child_product_id=proposal.child_product_id,
        unit_price_cents=proposal.unit_price_cents,
        amount_cents=proposal.amount_cents,
        invoice_visibility=proposal.invoice_visibility,
    )


def keyed_proposals(proposals: Iterable[ChildItemProposal]) -> tuple[ChildItemProposal, ...]:
    """Backfill missing effect indices, then drop zero-quantity proposals.

    A negative quantity is a broken snapshot and raises :class:`EvaluationError`.
    """

    keyed = assign_fallback_effect_index(proposals)
    for proposal in keyed:
        if proposal.qty < 0:
            raise EvaluationError(
                f"qty must be >= 0 for component {proposal.key}, got {proposal.qty}"
            )
    return tuple(proposal for proposal in keyed if proposal.qty > 0)


def apply_components(
    line_item_id: UUID,
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    snapshot: Snapshot | None = None,
    actor: str | None = None,
    now: datetime | None = None,
    signature_max_depth: int = DEFAULT_MAX_DEPTH,
) -> ApplyResult:
    """Reconcile accepted components with the line item's snapshot.

    ``snapshot`` defaults to the one persisted on the line item. Raises
    :class:`NotFoundError`, :class:`IncompleteSnapshotError`, :class:`DraftTreeError`
    or :class:`StalenessConflict` before touching storage.
    """

    applied_at = now or utcnow()
    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        effective, proposals = _checked_proposals(
            repositories,
            line_item_id,
            snapshot,
            signature_max_depth=signature_max_depth,
        )
        accepted = repositories.components.list_accepted(line_item_id)
        diff = diff_components(
            (ComparableComponent.from_proposal(proposal) for proposal in proposals),
            (ComparableComponent.from_component(component) for component in accepted),
        )
        if diff.is_empty:
            log.info("Components for line item %s already match the snapshot", line_item_id)
            return ApplyResult(accepted=tuple(accepted), diff=diff)

        stale_keys = {component.key for component in diff.removed}
        stale_keys.update(change.key for change in diff.modified)
        voided = repositories.components.void(
            [component.id for component in accepted if component.key in stale_keys],
            at=applied_at,
        )

        upserted = _upsert(
            repositories,
            line_item_id,
            _changed_proposals(proposals, diff),
            graph_version_id=effective.graph_version_id,
            at=applied_at,
        )

        summary = diff.summary()
        repositories.audit_events.add(
            SnapshotAuditEvent(
                line_item_id=line_item_id,
                action=AuditAction.APPLY,
                actor=actor,
                details={**summary, "voided": voided, "upserted": upserted},
                created_at=applied_at,
            )
        )
        uow.commit()
        current = repositories.components.list_accepted(line_item_id)

    log.info(
        "Applied components for line item %s: added=%s, removed=%s, modified=%s, voided=%s",
        line_item_id,
        summary["added"],
        summary["removed"],
        summary["modified"],
        voided,
    )
    return ApplyResult(
        added=summary["added"],
        removed=summary["removed"],
        modified=summary["modified"],
        voided=voided,
        upserted=upserted,
        accepted=tuple(current),
        diff=diff,
    )


def accept_components(
    line_item_id: UUID,
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    snapshot: Snapshot | None = None,
    actor: str | None = None,
    now: datetime | None = None,
    signature_max_depth: int = DEFAULT_MAX_DEPTH,
) -> AcceptResult:
    """First-time acceptance: the same keyed upsert as :func:`apply_components`, no voids.

    Only added or changed keys are written, so re-accepting identical proposals
    writes no row and records no audit event. Accepted rows without a proposal are
    left alone.
    """

    accepted_at = now or utcnow()
    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        effective, proposals = _checked_proposals(
            repositories,
            line_item_id,
            snapshot,
            signature_max_depth=signature_max_depth,
        )
        accepted = repositories.components.list_accepted(line_item_id)
        diff = diff_components(
            (ComparableComponent.from_proposal(proposal) for proposal in proposals),
            (ComparableComponent.from_component(component) for component in accepted),
        )
        if not (diff.added or diff.modified):
            log.info("Components for line item %s are already accepted", line_item_id)
            return AcceptResult(accepted=tuple(accepted))

        upserted = _upsert(
            repositories,
            line_item_id,
            _changed_proposals(proposals, diff),
            graph_version_id=effective.graph_version_id,
            at=accepted_at,
        )
        repositories.audit_events.add(
            SnapshotAuditEvent(
                line_item_id=line_item_id,
                action=AuditAction.ACCEPT,
                actor=actor,
                details={"upserted": upserted},
                created_at=accepted_at,
            )
        )
        uow.commit()
        current = repositories.components.list_accepted(line_item_id)

    log.info("Accepted %s components for line item %s", upserted, line_item_id)
    return AcceptResult(upserted=upserted, accepted=tuple(current))


def void_component(
    component_id: UUID,
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    actor: str | None = None,
    note: str | None = None,
    now: datetime | None = None,
) -> AcceptedComponent:
    """Manually void one component; voiding an already voided row changes nothing."""

    voided_at = now or utcnow()
    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        component = repositories.components.get(component_id)
        if component is None:
            raise NotFoundError("component", component_id)
        if component.status == ComponentStatus.VOIDED:
            return component

        repositories.components.void([component_id], at=voided_at)
        repositories.audit_events.add(
            SnapshotAuditEvent(
                line_item_id=component.order_line_item_id,
                action=AuditAction.VOID,
                actor=actor,
                note=note,
                details={
                    "componentId": str(component_id),
                    "sourceNodeId": component.source_node_id,
                    "effectIndex": component.effect_index,
                },
                created_at=voided_at,
            )
        )
        uow.commit()
        updated = repositories.components.get(component_id)

    log.info("Voided component %s on line item %s", component_id, component.order_line_item_id)
    return updated or component


def _checked_proposals(
    repositories: ConfigurationRepositories,
    line_item_id: UUID,
    snapshot: Snapshot | None,
    *,
    signature_max_depth: int,
) -> tuple[Snapshot, tuple[ChildItemProposal, ...]]:
    line_item = require_line_item(repositories, line_item_id)
    effective = snapshot or line_item.snapshot
    if effective is None:
        raise NotFoundError("snapshot for line item", line_item_id)
    if effective.graph_version_id is None:
        raise IncompleteSnapshotError(["graph_version_id"], line_item_id=line_item_id)
    require_usable_graph_version(repositories, effective.graph_version_id)

    missing_inputs = [
        name
        for name, value in (
            ("explicit_selections", effective.explicit_selections),
            ("environment", effective.environment),
        )
        if value is None
    ]
    if missing_inputs:
        raise IncompleteSnapshotError(missing_inputs, line_item_id=line_item_id)

    product = require_product(repositories, line_item.product_id)
    stored = recorded_signature(effective, max_depth=signature_max_depth)
    _, current = current_signature(line_item, product, effective, max_depth=signature_max_depth)
    if current is None or stored != current:
        raise StalenessConflict(stored_signature=stored, current_signature=current or "")

    if effective.child_items is None:
        raise IncompleteSnapshotError(["child_items"], line_item_id=line_item_id)
    return effective, keyed_proposals(effective.child_items)


def _upsert(
    repositories: ConfigurationRepositories,
    line_item_id: UUID,
    proposals: Iterable[ChildItemProposal],
    *,
    graph_version_id: UUID | None,
    at: datetime,
) -> int:
    count = 0
    for proposal in proposals:
        repositories.components.upsert_accepted(
            line_item_id=line_item_id,
            values=component_values(proposal),
            graph_version_id=graph_version_id,
            at=at,
        )
        count += 1
    return count


def _changed_proposals(
    proposals: Iterable[ChildItemProposal], diff: ComponentDiff
) -> Iterator[ChildItemProposal]:
    """First proposal of each added or modified key, matching what the diff compared."""

    keys = {component.key for component in diff.added}
    keys.update(change.key for change in diff.modified)
    for proposal in proposals:
        if proposal.key in keys:
            keys.discard(proposal.key)
            yield proposal
