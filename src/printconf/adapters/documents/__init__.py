"""Public interface for graph and snapshot documents."""

from __future__ import annotations

from .schema import GraphDocument, SnapshotDocument
from .translator import (
    evaluation_to_document,
    graph_from_document,
    graph_to_document,
    quantity_from_document,
    quantity_to_document,
    snapshot_from_document,
    snapshot_to_document,
)

__all__ = [
    "GraphDocument",
    "SnapshotDocument",
    "evaluation_to_document",
    "graph_from_document",
    "graph_to_document",
    "quantity_from_document",
    "quantity_to_document",
    "snapshot_from_document",
    "snapshot_to_document",
]
