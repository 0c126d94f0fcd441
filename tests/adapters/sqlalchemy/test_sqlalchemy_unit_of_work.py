from __future__ import annotations

import json
from typing import TYPE_CHECKING
from uuid import uuid4

import pytest
from sqlalchemy import create_engine, text

from printconf.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)
from printconf.domain.errors import IncompleteSnapshotError
from printconf.domain.model import GraphVersion, GraphVersionStatus, OrderLineItem, Product
from tests.helpers.graphs import question, rooted

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy.engine import Engine


@pytest.fixture(autouse=True)
def reset_unit_of_work_state() -> Iterator[None]:
    shutdown()
    yield
    shutdown()


def test_sqlalchemy_unit_of_work_requires_startup() -> None:
    with pytest.raises(StartupError):
        SqlAlchemyUnitOfWork()


def test_startup_requires_force_for_reconfiguration() -> None:
    engine_a = create_engine("sqlite+pysqlite:///:memory:")
    engine_b = create_engine("sqlite+pysqlite:///:memory:")

    startup(engine=engine_a, force=True)

    with pytest.raises(StartupError):
        startup(engine=engine_b)

    startup(engine=engine_b, force=True)
    assert configured_engine() is engine_b
    assert is_started()

    shutdown()
    assert not is_started()


def test_repositories_require_an_open_unit_of_work(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    uow = SqlAlchemyUnitOfWork()

    with pytest.raises(StartupError):
        _ = uow.repositories


def test_unit_of_work_cannot_be_nested_and_closes_on_exit(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    uow = SqlAlchemyUnitOfWork()
    with uow:
        with pytest.raises(StartupError, match="already open"):
            uow.__enter__()
        assert uow.repositories.products.get(uuid4()) is None

    with pytest.raises(StartupError, match="not open"):
        uow.commit()


def test_unit_of_work_persists_graph_versions_and_line_items(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    option_graph = rooted(question("lamination"))
    product = Product(name="Yard Sign")
    graph_version = GraphVersion(
        graph=option_graph, status=GraphVersionStatus.ACTIVE, product_id=product.id
    )
    product.active_graph_version_id = graph_version.id
    line_item = OrderLineItem(
        product_id=product.id, quantity=4, explicit_selections={"lamination": True}
    )

    with SqlAlchemyUnitOfWork() as uow:
        uow.repositories.products.add(product)
        uow.commit()
    with SqlAlchemyUnitOfWork() as uow:
        uow.repositories.graph_versions.add(graph_version)
        uow.repositories.line_items.add(line_item)
        uow.commit()

    with SqlAlchemyUnitOfWork() as uow:
        stored_product = uow.repositories.products.get(product.id)
        stored_version = uow.repositories.graph_versions.get(graph_version.id)
        stored_line = uow.repositories.line_items.get(line_item.id)

        assert stored_product is not None
        assert stored_product.evaluation_graph_version_id == graph_version.id
        assert stored_version is not None
        assert stored_version.graph == option_graph
        assert stored_line is not None
        assert stored_line.explicit_selections == {"lamination": True}
        assert stored_line.snapshot is None


def test_rollback_on_error_discards_changes(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    product = Product(name="Sticker")

    with pytest.raises(RuntimeError, match="boom"), SqlAlchemyUnitOfWork() as uow:
        uow.repositories.products.add(product)
        raise RuntimeError("boom")

    with SqlAlchemyUnitOfWork() as uow:
        assert uow.repositories.products.get(product.id) is None


def test_unreadable_stored_snapshot_raises_domain_error(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    product = Product(name="Decal")
    line_item = OrderLineItem(product_id=product.id, quantity=1)
    with SqlAlchemyUnitOfWork() as uow:
        uow.repositories.products.add(product)
        uow.commit()
    with SqlAlchemyUnitOfWork() as uow:
        uow.repositories.line_items.add(line_item)
        uow.commit()
    with sqlite_engine.begin() as connection:
        connection.execute(
            text("UPDATE order_line_item SET snapshot = :document"),
            {"document": json.dumps({"childItems": [{"kind": "inlineSku"}]})},
        )

    with SqlAlchemyUnitOfWork() as uow, pytest.raises(IncompleteSnapshotError):
        uow.repositories.line_items.get(line_item.id)
