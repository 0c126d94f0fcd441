"""Error taxonomy shared by the evaluation engine and the component reconciler.

Every error is terminal for the call that raised it. ``status_code`` is a hint for
transport layers mapping these onto request failures; the engine itself never retries.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from collections.abc import Iterable


class ConfigurationEngineError(Exception):
    """Base class for all engine failures."""

    status_code: ClassVar[int] = 400


class ValidationError(ConfigurationEngineError):
    """Raised when a graph version fails structural validation."""

    def __init__(self, problems: Iterable[str]) -> None:
        self.problems = tuple(problems)
        summary = "; ".join(self.problems) or "invalid graph"
        super().__init__(f"Graph validation failed: {summary}")


class EvaluationError(ConfigurationEngineError):
    """Raised for bad selections or malformed child-item effects."""


class IncompleteSnapshotError(ConfigurationEngineError):
    """Raised when a snapshot lacks data required for reconciliation."""

    def __init__(self, missing: Iterable[str], *, line_item_id: object | None = None) -> None:
        self.missing = tuple(missing)
        self.line_item_id = line_item_id
        super().__init__(f"Snapshot is incomplete; missing: {', '.join(self.missing)}")


class DraftTreeError(ConfigurationEngineError):
    """Raised when a DRAFT graph version would be used to price or accept components."""

    status_code: ClassVar[int] = 409

    def __init__(self, graph_version_id: object) -> None:
        self.graph_version_id = graph_version_id
        super().__init__(
            f"Graph version {graph_version_id} is a DRAFT and cannot be used for order lines"
        )


class StalenessConflict(ConfigurationEngineError):
    """Raised when a snapshot no longer matches the line item's live inputs."""

    status_code: ClassVar[int] = 409

    def __init__(self, *, stored_signature: str | None, current_signature: str) -> None:
        self.stored_signature = stored_signature
        self.current_signature = current_signature
        super().__init__("Snapshot is stale; recompute before applying components")


class NotFoundError(ConfigurationEngineError):
    """Raised when a referenced line item, snapshot, graph version or component is absent."""

    status_code: ClassVar[int] = 404

    def __init__(self, entity: str, identifier: object) -> None:
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity} not found: {identifier}")
