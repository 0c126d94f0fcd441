"""Public domain model surface."""

from __future__ import annotations

from printconf.domain.model.audit import SnapshotAuditEvent
from printconf.domain.model.components import AcceptedComponent
from printconf.domain.model.conditions import (
    AllOf,
    AnyOf,
    Condition,
    Contains,
    Equals,
    Not,
    NotEquals,
    OneOf,
    Truthy,
)
from printconf.domain.model.effects import (
    AddFlat,
    AddPerQty,
    AddPerSqft,
    ChildItemEffect,
    EnvQuantity,
    FixedQuantity,
    MaterialEffect,
    Multiplier,
    PercentOfBase,
    PerQtyQuantity,
    PricingEffect,
    QuantitySource,
    UnsupportedPricingEffect,
    UnsupportedQuantity,
    WeightEffect,
)
from printconf.domain.model.entity import Entity, new_id
from printconf.domain.model.enums import (
    AuditAction,
    ChildItemKind,
    ComponentStatus,
    EntityStatus,
    GraphVersionStatus,
    InputType,
    InvoiceVisibility,
    NodeKind,
    PricingMode,
    PricingTier,
    PricingUiUnit,
    QuantityMode,
    Rounding,
    WeightMode,
)
from printconf.domain.model.graph import Choice, Edge, GraphVersion, InputSpec, Node, OptionGraph
from printconf.domain.model.orders import OrderLineItem, Product
from printconf.domain.model.snapshot import (
    ChildItemProposal,
    Evaluation,
    MaterialUsage,
    PricingAddons,
    PricingLine,
    Snapshot,
    WeightLine,
    WeightResult,
)

__all__ = [
    "AcceptedComponent",
    "AddFlat",
    "AddPerQty",
    "AddPerSqft",
    "AllOf",
    "AnyOf",
    "AuditAction",
    "ChildItemEffect",
    "ChildItemKind",
    "ChildItemProposal",
    "Choice",
    "ComponentStatus",
    "Condition",
    "Contains",
    "Edge",
    "Entity",
    "EntityStatus",
    "EnvQuantity",
    "Equals",
    "Evaluation",
    "FixedQuantity",
    "GraphVersion",
    "GraphVersionStatus",
    "InputSpec",
    "InputType",
    "InvoiceVisibility",
    "MaterialEffect",
    "MaterialUsage",
    "Multiplier",
    "Node",
    "NodeKind",
    "Not",
    "NotEquals",
    "OneOf",
    "OptionGraph",
    "OrderLineItem",
    "PerQtyQuantity",
    "PercentOfBase",
    "PricingAddons",
    "PricingEffect",
    "PricingLine",
    "PricingMode",
    "PricingTier",
    "PricingUiUnit",
    "Product",
    "QuantityMode",
    "QuantitySource",
    "Rounding",
    "Snapshot",
    "SnapshotAuditEvent",
    "Truthy",
    "UnsupportedPricingEffect",
    "UnsupportedQuantity",
    "WeightEffect",
    "WeightLine",
    "WeightMode",
    "WeightResult",
    "new_id",
]
