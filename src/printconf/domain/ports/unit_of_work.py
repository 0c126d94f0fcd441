"""Transaction boundary used by the lifecycle services."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, Self, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from printconf.domain.ports.persistence import (
        AuditRepository,
        ComponentRepository,
        GraphVersionRepository,
        LineItemRepository,
        ProductRepository,
    )


@dataclass(frozen=True, slots=True)
class ConfigurationRepositories:
    """Repositories sharing one transaction."""

    products: ProductRepository
    graph_versions: GraphVersionRepository
    line_items: LineItemRepository
    components: ComponentRepository
    audit_events: AuditRepository


@runtime_checkable
class ConfigurationUnitOfWork(Protocol):
    """One snapshot or component operation, committed as a whole or not at all.

    Repositories are only reachable inside the ``with`` block. Leaving the block
    without ``commit`` discards pending writes; leaving it through an exception rolls
    back explicitly.
    """

    @property
    def repositories(self) -> ConfigurationRepositories: ...

    def __enter__(self) -> Self: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...
