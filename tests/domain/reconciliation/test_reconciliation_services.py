from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import uuid4

import pytest

from printconf.adapters.sqlalchemy import SqlAlchemyComponentRepository
from printconf.domain.errors import (
    DraftTreeError,
    EvaluationError,
    IncompleteSnapshotError,
    NotFoundError,
    StalenessConflict,
)
from printconf.domain.model import (
    AuditAction,
    ChildItemKind,
    ChildItemProposal,
    ComponentStatus,
    GraphVersion,
    GraphVersionStatus,
    PerQtyQuantity,
    Snapshot,
)
from printconf.domain.reconciliation import (
    accept_components,
    apply_components,
    check_staleness,
    keep_existing_snapshot,
    recompute_snapshot,
    void_component,
)
from tests.helpers.graphs import inline_sku, question, rooted
from tests.helpers.line_items import seed_line_item, update_line_item

if TYPE_CHECKING:
    from collections.abc import Callable
    from uuid import UUID

    from printconf.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork
    from printconf.domain.model import AcceptedComponent, OptionGraph

    UowFactory = Callable[[], SqlAlchemyUnitOfWork]

FIRST = datetime(2026, 3, 1, 9, 0, tzinfo=UTC)
LATER = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)


def _grommet_graph() -> OptionGraph:
    return rooted(
        question(
            "grommets",
            child_items=[inline_sku(quantity=PerQtyQuantity(1), unit_price_cents=25)],
        )
    )


def _accepted_rows(uow_factory: UowFactory, line_item_id: UUID) -> list[AcceptedComponent]:
    with uow_factory() as uow:
        return uow.repositories.components.list_accepted(line_item_id)


def _all_rows(uow_factory: UowFactory, line_item_id: UUID) -> list[AcceptedComponent]:
    with uow_factory() as uow:
        return uow.repositories.components.list_for_line_item(line_item_id)


def _audit_actions(uow_factory: UowFactory, line_item_id: UUID) -> list[AuditAction]:
    with uow_factory() as uow:
        events = uow.repositories.audit_events.list_for_line_item(line_item_id)
        return [event.action for event in events]


def test_quantity_change_requires_recompute_before_apply(
    sqlite_unit_of_work: UowFactory,
) -> None:
    seeded = seed_line_item(
        sqlite_unit_of_work, _grommet_graph(), selections={"grommets": True}, quantity=2
    )
    line_item_id = seeded.line_item_id

    recompute_snapshot(line_item_id, unit_of_work_factory=sqlite_unit_of_work, now=FIRST)
    accepted = accept_components(line_item_id, unit_of_work_factory=sqlite_unit_of_work)

    assert accepted.upserted == 1
    assert [row.qty for row in accepted.accepted] == [Decimal("2.00")]
    assert accepted.accepted[0].graph_version_id == seeded.graph_version_id

    update_line_item(sqlite_unit_of_work, line_item_id, quantity=3)

    with pytest.raises(StalenessConflict) as excinfo:
        apply_components(line_item_id, unit_of_work_factory=sqlite_unit_of_work)
    assert excinfo.value.stored_signature != excinfo.value.current_signature
    assert len(_all_rows(sqlite_unit_of_work, line_item_id)) == 1

    recompute_snapshot(line_item_id, unit_of_work_factory=sqlite_unit_of_work, now=LATER)
    result = apply_components(line_item_id, unit_of_work_factory=sqlite_unit_of_work, now=LATER)

    assert (result.added, result.removed, result.modified) == (0, 0, 1)
    assert result.voided == 1
    assert [(row.key, row.qty, row.amount_cents) for row in result.accepted] == [
        (("grommets", 0), Decimal("3.00"), 75)
    ]
    statuses = [row.status for row in _all_rows(sqlite_unit_of_work, line_item_id)]
    assert sorted(statuses) == [ComponentStatus.ACCEPTED, ComponentStatus.VOIDED]


def test_deselecting_an_option_removes_its_component(sqlite_unit_of_work: UowFactory) -> None:
    seeded = seed_line_item(
        sqlite_unit_of_work, _grommet_graph(), selections={"grommets": True}, quantity=2
    )
    line_item_id = seeded.line_item_id
    recompute_snapshot(line_item_id, unit_of_work_factory=sqlite_unit_of_work)
    accept_components(line_item_id, unit_of_work_factory=sqlite_unit_of_work)

    update_line_item(sqlite_unit_of_work, line_item_id, selections={"grommets": False})
    recompute_snapshot(line_item_id, unit_of_work_factory=sqlite_unit_of_work)
    result = apply_components(line_item_id, unit_of_work_factory=sqlite_unit_of_work)

    assert (result.added, result.removed, result.modified) == (0, 1, 0)
    assert result.accepted == ()
    assert _accepted_rows(sqlite_unit_of_work, line_item_id) == []
    assert _audit_actions(sqlite_unit_of_work, line_item_id).count(AuditAction.APPLY) == 1


def test_apply_without_changes_writes_nothing(sqlite_unit_of_work: UowFactory) -> None:
    seeded = seed_line_item(
        sqlite_unit_of_work, _grommet_graph(), selections={"grommets": True}, quantity=2
    )
    line_item_id = seeded.line_item_id
    recompute_snapshot(line_item_id, unit_of_work_factory=sqlite_unit_of_work)
    first = apply_components(line_item_id, unit_of_work_factory=sqlite_unit_of_work)

    second = apply_components(line_item_id, unit_of_work_factory=sqlite_unit_of_work)

    assert first.added == 1
    assert second.is_noop
    assert second.diff.summary()["unchanged"] == 1
    assert _audit_actions(sqlite_unit_of_work, line_item_id).count(AuditAction.APPLY) == 1


def test_accepting_twice_leaves_rows_untouched(sqlite_unit_of_work: UowFactory) -> None:
    seeded = seed_line_item(
        sqlite_unit_of_work, _grommet_graph(), selections={"grommets": True}, quantity=2
    )
    line_item_id = seeded.line_item_id
    recompute_snapshot(line_item_id, unit_of_work_factory=sqlite_unit_of_work)

    first = accept_components(line_item_id, unit_of_work_factory=sqlite_unit_of_work, now=FIRST)
    second = accept_components(line_item_id, unit_of_work_factory=sqlite_unit_of_work, now=LATER)

    assert first.upserted == 1
    assert second.upserted == 0
    assert len(second.accepted) == 1
    assert second.accepted[0].id == first.accepted[0].id
    assert second.accepted[0].updated_at == FIRST
    assert _audit_actions(sqlite_unit_of_work, line_item_id).count(AuditAction.ACCEPT) == 1


def test_failed_apply_leaves_accepted_rows_intact(
    sqlite_unit_of_work: UowFactory, monkeypatch: pytest.MonkeyPatch
) -> None:
    seeded = seed_line_item(
        sqlite_unit_of_work, _grommet_graph(), selections={"grommets": True}, quantity=2
    )
    line_item_id = seeded.line_item_id
    recompute_snapshot(line_item_id, unit_of_work_factory=sqlite_unit_of_work)
    accept_components(line_item_id, unit_of_work_factory=sqlite_unit_of_work)
    update_line_item(sqlite_unit_of_work, line_item_id, quantity=3)
    recompute_snapshot(line_item_id, unit_of_work_factory=sqlite_unit_of_work)

    def failing_upsert(*_args: object, **_kwargs: object) -> None:
        raise RuntimeError("disk full")

    monkeypatch.setattr(SqlAlchemyComponentRepository, "upsert_accepted", failing_upsert)

    with pytest.raises(RuntimeError, match="disk full"):
        apply_components(line_item_id, unit_of_work_factory=sqlite_unit_of_work)

    rows = _all_rows(sqlite_unit_of_work, line_item_id)
    assert [(row.status, row.qty) for row in rows] == [
        (ComponentStatus.ACCEPTED, Decimal("2.00"))
    ]
    assert AuditAction.APPLY not in _audit_actions(sqlite_unit_of_work, line_item_id)


def test_draft_graph_versions_cannot_price_line_items(sqlite_unit_of_work: UowFactory) -> None:
    seeded = seed_line_item(
        sqlite_unit_of_work,
        _grommet_graph(),
        status=GraphVersionStatus.DRAFT,
        selections={"grommets": True},
    )

    with pytest.raises(DraftTreeError):
        recompute_snapshot(seeded.line_item_id, unit_of_work_factory=sqlite_unit_of_work)


def test_incomplete_snapshots_are_rejected(sqlite_unit_of_work: UowFactory) -> None:
    seeded = seed_line_item(
        sqlite_unit_of_work, _grommet_graph(), selections={"grommets": True}, quantity=2
    )
    without_children = Snapshot(
        graph_version_id=seeded.graph_version_id,
        evaluated_at=FIRST,
        explicit_selections={"grommets": True},
        environment={"quantity": 2},
        child_items=None,
    )
    without_environment = Snapshot(
        graph_version_id=seeded.graph_version_id,
        evaluated_at=FIRST,
        explicit_selections={"grommets": True},
        environment=None,
        child_items=(),
    )

    with pytest.raises(IncompleteSnapshotError) as excinfo:
        apply_components(
            seeded.line_item_id,
            unit_of_work_factory=sqlite_unit_of_work,
            snapshot=without_children,
        )
    assert excinfo.value.missing == ("child_items",)

    with pytest.raises(IncompleteSnapshotError, match="environment"):
        accept_components(
            seeded.line_item_id,
            unit_of_work_factory=sqlite_unit_of_work,
            snapshot=without_environment,
        )


def test_legacy_proposals_get_fallback_indices(sqlite_unit_of_work: UowFactory) -> None:
    seeded = seed_line_item(
        sqlite_unit_of_work, _grommet_graph(), selections={"grommets": True}, quantity=2
    )
    legacy = Snapshot(
        graph_version_id=seeded.graph_version_id,
        evaluated_at=FIRST,
        explicit_selections={"grommets": True},
        environment={"quantity": 2},
        child_items=tuple(
            ChildItemProposal(
                kind=ChildItemKind.INLINE_SKU,
                title=title,
                source_node_id="grommets",
                effect_index=None,
                qty=2.0,
                sku_ref="SKU-GROMMET",
            )
            for title in ("Grommet", "Hem")
        ),
    )

    result = accept_components(
        seeded.line_item_id, unit_of_work_factory=sqlite_unit_of_work, snapshot=legacy
    )

    assert [(row.effect_index, row.title) for row in result.accepted] == [
        (0, "Grommet"),
        (1, "Hem"),
    ]


def test_negative_quantities_are_rejected_before_writing(
    sqlite_unit_of_work: UowFactory,
) -> None:
    seeded = seed_line_item(
        sqlite_unit_of_work, _grommet_graph(), selections={"grommets": True}, quantity=2
    )
    broken = Snapshot(
        graph_version_id=seeded.graph_version_id,
        evaluated_at=FIRST,
        explicit_selections={"grommets": True},
        environment={"quantity": 2},
        child_items=tuple(
            ChildItemProposal(
                kind=ChildItemKind.INLINE_SKU,
                title=title,
                source_node_id="grommets",
                effect_index=index,
                qty=qty,
                sku_ref="SKU-GROMMET",
            )
            for index, (title, qty) in enumerate([("Grommet", 0.0), ("Hem", -1.0)])
        ),
    )

    with pytest.raises(EvaluationError, match="qty must be >= 0"):
        accept_components(
            seeded.line_item_id, unit_of_work_factory=sqlite_unit_of_work, snapshot=broken
        )

    assert _all_rows(sqlite_unit_of_work, seeded.line_item_id) == []
    assert _audit_actions(sqlite_unit_of_work, seeded.line_item_id) == []


def test_missing_line_item_and_snapshot(sqlite_unit_of_work: UowFactory) -> None:
    seeded = seed_line_item(sqlite_unit_of_work, _grommet_graph())

    with pytest.raises(NotFoundError, match="line item not found"):
        apply_components(uuid4(), unit_of_work_factory=sqlite_unit_of_work)
    with pytest.raises(NotFoundError, match="snapshot for line item"):
        apply_components(seeded.line_item_id, unit_of_work_factory=sqlite_unit_of_work)
    with pytest.raises(NotFoundError, match="component not found"):
        void_component(uuid4(), unit_of_work_factory=sqlite_unit_of_work)


def test_void_is_idempotent(sqlite_unit_of_work: UowFactory) -> None:
    seeded = seed_line_item(
        sqlite_unit_of_work, _grommet_graph(), selections={"grommets": True}, quantity=2
    )
    line_item_id = seeded.line_item_id
    recompute_snapshot(line_item_id, unit_of_work_factory=sqlite_unit_of_work)
    component_id = accept_components(
        line_item_id, unit_of_work_factory=sqlite_unit_of_work
    ).accepted[0].id

    voided = void_component(
        component_id, unit_of_work_factory=sqlite_unit_of_work, actor="ops", note="duplicate"
    )
    again = void_component(component_id, unit_of_work_factory=sqlite_unit_of_work)

    assert voided.status is ComponentStatus.VOIDED
    assert again.status is ComponentStatus.VOIDED
    assert _accepted_rows(sqlite_unit_of_work, line_item_id) == []
    assert _audit_actions(sqlite_unit_of_work, line_item_id).count(AuditAction.VOID) == 1


def test_keep_existing_records_a_decision_without_recomputing(
    sqlite_unit_of_work: UowFactory,
) -> None:
    seeded = seed_line_item(
        sqlite_unit_of_work, _grommet_graph(), selections={"grommets": True}, quantity=2
    )
    line_item_id = seeded.line_item_id
    snapshot = recompute_snapshot(line_item_id, unit_of_work_factory=sqlite_unit_of_work)
    update_line_item(sqlite_unit_of_work, line_item_id, quantity=5)

    event = keep_existing_snapshot(
        line_item_id,
        unit_of_work_factory=sqlite_unit_of_work,
        note="customer approved old price",
        actor="ops",
    )

    assert event.details["stale"] is True
    assert event.details["storedSignature"] == snapshot.input_signature
    assert check_staleness(line_item_id, unit_of_work_factory=sqlite_unit_of_work).stale
    assert _audit_actions(sqlite_unit_of_work, line_item_id) == [
        AuditAction.RECOMPUTE,
        AuditAction.KEEP_EXISTING,
    ]


def test_staleness_follows_the_evaluation_graph_version(
    sqlite_unit_of_work: UowFactory,
) -> None:
    seeded = seed_line_item(
        sqlite_unit_of_work, _grommet_graph(), selections={"grommets": True}, quantity=2
    )
    line_item_id = seeded.line_item_id
    recompute_snapshot(line_item_id, unit_of_work_factory=sqlite_unit_of_work)
    assert not check_staleness(line_item_id, unit_of_work_factory=sqlite_unit_of_work).stale

    newer = GraphVersion(
        graph=_grommet_graph(), status=GraphVersionStatus.ACTIVE, product_id=seeded.product_id
    )
    with sqlite_unit_of_work() as uow:
        uow.repositories.graph_versions.add(newer)
        product = uow.repositories.products.get(seeded.product_id)
        assert product is not None
        product.active_graph_version_id = newer.id
        uow.commit()

    report = check_staleness(line_item_id, unit_of_work_factory=sqlite_unit_of_work)
    assert report.stale
    assert report.graph_version_id == newer.id

    with sqlite_unit_of_work() as uow:
        product = uow.repositories.products.get(seeded.product_id)
        assert product is not None
        product.pinned_graph_version_id = seeded.graph_version_id
        uow.commit()

    assert not check_staleness(line_item_id, unit_of_work_factory=sqlite_unit_of_work).stale
