"""Ports the domain services depend on; adapters implement them."""

from __future__ import annotations

from .persistence import (
    AuditRepository,
    ComponentRepository,
    ComponentValues,
    GraphVersionRepository,
    LineItemRepository,
    ProductRepository,
    Repository,
)
from .unit_of_work import ConfigurationRepositories, ConfigurationUnitOfWork

__all__ = [
    "AuditRepository",
    "ComponentRepository",
    "ComponentValues",
    "ConfigurationRepositories",
    "ConfigurationUnitOfWork",
    "GraphVersionRepository",
    "LineItemRepository",
    "ProductRepository",
    "Repository",
]
