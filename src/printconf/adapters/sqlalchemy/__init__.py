"""SQLAlchemy adapter package for printconf."""

from __future__ import annotations

from .mappings import create_all_tables, mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyAuditRepository,
    SqlAlchemyComponentRepository,
    SqlAlchemyGraphVersionRepository,
    SqlAlchemyLineItemRepository,
    SqlAlchemyProductRepository,
)
from .unit_of_work import (
    SqlAlchemyUnitOfWork,
    StartupError,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyAuditRepository",
    "SqlAlchemyComponentRepository",
    "SqlAlchemyGraphVersionRepository",
    "SqlAlchemyLineItemRepository",
    "SqlAlchemyProductRepository",
    "SqlAlchemyUnitOfWork",
    "StartupError",
    "create_all_tables",
    "is_started",
    "mapper_registry",
    "shutdown",
    "startup",
]
