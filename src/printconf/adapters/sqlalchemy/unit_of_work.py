"""Engine lifecycle and the SQLAlchemy unit of work for printconf."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Literal, Self

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from printconf.adapters.sqlalchemy.mappings import create_all_tables, start_mappers
from printconf.adapters.sqlalchemy.repositories import (
    SqlAlchemyAuditRepository,
    SqlAlchemyComponentRepository,
    SqlAlchemyGraphVersionRepository,
    SqlAlchemyLineItemRepository,
    SqlAlchemyProductRepository,
)
from printconf.config import get_database_config
from printconf.domain.ports import ConfigurationRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = getLogger(__name__)


class StartupError(RuntimeError):
    """The adapter or a unit of work is used outside its lifecycle."""


@dataclass(slots=True)
class _AdapterState:
    engine: Engine | None = None
    session_factory: sessionmaker[Session] | None = None


_STATE = _AdapterState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Bind the adapter to an engine and make sure every table exists.

    Without ``engine`` or ``database_uri`` the location comes from
    :func:`printconf.config.get_database_config`.
    """

    if _STATE.engine is not None and not force:
        raise StartupError("SQLAlchemy adapter already started; pass force=True to rebind")

    resolved_engine = engine or create_engine(database_uri or get_database_config().uri)
    start_mappers()
    create_all_tables(resolved_engine)

    if _STATE.engine is not None and _STATE.engine is not resolved_engine:
        _STATE.engine.dispose()
    _STATE.engine = resolved_engine
    _STATE.session_factory = sessionmaker(bind=resolved_engine, expire_on_commit=False)
    log.info("SQLAlchemy adapter started on %s", resolved_engine.url.render_as_string())


def configured_engine() -> Engine | None:
    return _STATE.engine


def is_started() -> bool:
    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the engine; a later :func:`startup` may bind a new one."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None
    _STATE.session_factory = None


class SqlAlchemyUnitOfWork:
    """One session per ``with`` block, exposing the printconf repositories."""

    def __init__(self) -> None:
        if _STATE.session_factory is None:
            raise StartupError(
                "SQLAlchemy adapter not started. Call printconf.adapters.sqlalchemy.startup() "
                "before requesting a unit of work."
            )
        self._session_factory = _STATE.session_factory
        self._session: Session | None = None
        self._repositories: ConfigurationRepositories | None = None

    def __enter__(self) -> Self:
        if self._session is not None:
            raise StartupError("Unit of work is already open")
        session = self._session_factory()
        self._session = session
        self._repositories = ConfigurationRepositories(
            products=SqlAlchemyProductRepository(session),
            graph_versions=SqlAlchemyGraphVersionRepository(session),
            line_items=SqlAlchemyLineItemRepository(session),
            components=SqlAlchemyComponentRepository(session),
            audit_events=SqlAlchemyAuditRepository(session),
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session = self._open_session()
        try:
            if exc_type is not None:
                session.rollback()
        finally:
            session.close()
            self._session = None
            self._repositories = None
        return False

    @property
    def repositories(self) -> ConfigurationRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work is not open; use it in a with block")
        return self._repositories

    def commit(self) -> None:
        self._open_session().commit()

    def rollback(self) -> None:
        self._open_session().rollback()

    def _open_session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work is not open; use it in a with block")
        return self._session


if TYPE_CHECKING:
    from printconf.domain.ports import ConfigurationUnitOfWork

    _uow_check: ConfigurationUnitOfWork = SqlAlchemyUnitOfWork()
