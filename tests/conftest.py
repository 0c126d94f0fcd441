from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.orm import Session, sessionmaker

from printconf.adapters.sqlalchemy import create_all_tables, start_mappers
from printconf.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork, shutdown, startup

# Lazily started adapters (app and CLI tests) must never touch the real data dir.
os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


@pytest.fixture(autouse=True)
def _isolate_printconf_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in list(os.environ):
        if name.startswith("PRINTCONF_"):
            monkeypatch.delenv(name)


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:")
    start_mappers()
    create_all_tables(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_session(sqlite_engine: Engine) -> Iterator[Session]:
    """A bare session configured like the ones the unit of work hands out."""

    with sessionmaker(bind=sqlite_engine, expire_on_commit=False)() as session:
        yield session


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
) -> Iterator[Callable[[], SqlAlchemyUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)
    try:
        yield SqlAlchemyUnitOfWork
    finally:
        shutdown()
