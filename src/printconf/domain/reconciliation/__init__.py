"""Snapshot lifecycle and accepted-component reconciliation."""

from __future__ import annotations

from .components import (
    AcceptResult,
    ApplyResult,
    accept_components,
    apply_components,
    component_values,
    keyed_proposals,
    void_component,
)
from .diff import ComparableComponent, ComponentDiff, ModifiedComponent, diff_components
from .effect_index import assign_fallback_effect_index
from .snapshots import (
    StalenessReport,
    check_staleness,
    keep_existing_snapshot,
    recompute_snapshot,
)

__all__ = [
    "AcceptResult",
    "ApplyResult",
    "ComparableComponent",
    "ComponentDiff",
    "ModifiedComponent",
    "StalenessReport",
    "accept_components",
    "apply_components",
    "assign_fallback_effect_index",
    "check_staleness",
    "component_values",
    "diff_components",
    "keep_existing_snapshot",
    "keyed_proposals",
    "recompute_snapshot",
    "void_component",
]
