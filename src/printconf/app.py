"""Application orchestration entry points."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Any

from printconf.adapters.documents import graph_from_document
from printconf.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork, is_started, startup
from printconf.config import EvaluationConfig, get_evaluation_config
from printconf.domain.configuration import build_environment, evaluate, input_signature
from printconf.domain.reconciliation import (
    AcceptResult,
    ApplyResult,
    StalenessReport,
    accept_components,
    apply_components,
    check_staleness,
    keep_existing_snapshot,
    recompute_snapshot,
    void_component,
)

if TYPE_CHECKING:
    from collections.abc import Mapping
    from uuid import UUID

    from printconf.domain.model import (
        AcceptedComponent,
        Evaluation,
        PricingTier,
        Snapshot,
        SnapshotAuditEvent,
    )
    from printconf.domain.reconciliation.snapshots import UnitOfWorkFactory


log = getLogger(__name__)


def _resolve_unit_of_work(unit_of_work_factory: UnitOfWorkFactory | None) -> UnitOfWorkFactory:
    if unit_of_work_factory is not None:
        return unit_of_work_factory
    if not is_started():
        startup()
    return SqlAlchemyUnitOfWork


def evaluate_graph_document(
    document: Mapping[str, Any],
    selections: Mapping[str, object],
    *,
    quantity: float = 1,
    width_in: float | None = None,
    height_in: float | None = None,
    pricing_tier: PricingTier | str | None = None,
    extras: Mapping[str, object] | None = None,
    config: EvaluationConfig | None = None,
) -> Evaluation:
    """Evaluate a raw graph document without touching storage."""

    effective_config = config or get_evaluation_config()
    graph = graph_from_document(document)
    environment = build_environment(
        quantity=quantity,
        width_in=width_in,
        height_in=height_in,
        pricing_tier=pricing_tier,
        extras=extras,
    )
    log.info(
        "Evaluating graph document: nodes=%s, selections=%s", len(graph.nodes), len(selections)
    )
    evaluation = evaluate(
        graph,
        selections,
        environment,
        max_condition_depth=effective_config.max_condition_depth,
    )
    log.info(
        "Finished evaluation: visible=%s, add_on_cents=%s, child_items=%s",
        len(evaluation.visible_node_ids),
        evaluation.pricing.add_on_cents,
        len(evaluation.child_items),
    )
    return evaluation


def compute_input_signature(
    graph_version_id: UUID,
    selections: Mapping[str, object],
    environment: Mapping[str, object],
    *,
    config: EvaluationConfig | None = None,
) -> str:
    effective_config = config or get_evaluation_config()
    return input_signature(
        graph_version_id,
        selections,
        environment,
        max_depth=effective_config.signature_max_depth,
    )


def recompute_line_item(
    line_item_id: UUID,
    *,
    extras: Mapping[str, object] | None = None,
    actor: str | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: EvaluationConfig | None = None,
) -> Snapshot:
    effective_uow = _resolve_unit_of_work(unit_of_work_factory)
    effective_config = config or get_evaluation_config()
    log.info("Starting snapshot recompute for line item %s", line_item_id)
    snapshot = recompute_snapshot(
        line_item_id,
        unit_of_work_factory=effective_uow,
        extras=extras,
        actor=actor,
        max_condition_depth=effective_config.max_condition_depth,
        signature_max_depth=effective_config.signature_max_depth,
    )
    log.info(
        "Finished snapshot recompute for line item %s: signature=%s",
        line_item_id,
        snapshot.input_signature,
    )
    return snapshot


def apply_line_item_components(
    line_item_id: UUID,
    *,
    actor: str | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: EvaluationConfig | None = None,
) -> ApplyResult:
    effective_uow = _resolve_unit_of_work(unit_of_work_factory)
    effective_config = config or get_evaluation_config()
    log.info("Starting component apply for line item %s", line_item_id)
    result = apply_components(
        line_item_id,
        unit_of_work_factory=effective_uow,
        actor=actor,
        signature_max_depth=effective_config.signature_max_depth,
    )
    log.info(
        "Finished component apply for line item %s: noop=%s, accepted=%s",
        line_item_id,
        result.is_noop,
        len(result.accepted),
    )
    return result


def accept_line_item_components(
    line_item_id: UUID,
    *,
    actor: str | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: EvaluationConfig | None = None,
) -> AcceptResult:
    effective_uow = _resolve_unit_of_work(unit_of_work_factory)
    effective_config = config or get_evaluation_config()
    log.info("Starting component accept for line item %s", line_item_id)
    result = accept_components(
        line_item_id,
        unit_of_work_factory=effective_uow,
        actor=actor,
        signature_max_depth=effective_config.signature_max_depth,
    )
    log.info(
        "Finished component accept for line item %s: upserted=%s",
        line_item_id,
        result.upserted,
    )
    return result


def void_line_item_component(
    component_id: UUID,
    *,
    actor: str | None = None,
    note: str | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> AcceptedComponent:
    effective_uow = _resolve_unit_of_work(unit_of_work_factory)
    log.info("Voiding component %s", component_id)
    return void_component(
        component_id, unit_of_work_factory=effective_uow, actor=actor, note=note
    )


def keep_existing_line_item_snapshot(
    line_item_id: UUID,
    *,
    note: str | None = None,
    actor: str | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> SnapshotAuditEvent:
    effective_uow = _resolve_unit_of_work(unit_of_work_factory)
    log.info("Keeping existing snapshot for line item %s", line_item_id)
    return keep_existing_snapshot(
        line_item_id, unit_of_work_factory=effective_uow, note=note, actor=actor
    )


def line_item_status(
    line_item_id: UUID,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: EvaluationConfig | None = None,
) -> StalenessReport:
    effective_uow = _resolve_unit_of_work(unit_of_work_factory)
    effective_config = config or get_evaluation_config()
    return check_staleness(
        line_item_id,
        unit_of_work_factory=effective_uow,
        signature_max_depth=effective_config.signature_max_depth,
    )
