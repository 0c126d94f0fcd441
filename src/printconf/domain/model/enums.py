"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class GraphVersionStatus(StrEnum):
    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    ARCHIVED = "ARCHIVED"


class EntityStatus(StrEnum):
    """Soft-delete lifecycle shared by graph nodes and edges."""

    ENABLED = "ENABLED"
    DISABLED = "DISABLED"
    DELETED = "DELETED"


class NodeKind(StrEnum):
    QUESTION = "question"
    GROUP = "group"
    COMPUTED = "computed"


class InputType(StrEnum):
    BOOLEAN = "boolean"
    SELECT = "select"
    MULTISELECT = "multiselect"
    NUMBER = "number"
    TEXT = "text"
    TEXTAREA = "textarea"
    FILE = "file"
    DIMENSION = "dimension"


class PricingMode(StrEnum):
    ADD_FLAT = "addFlat"
    ADD_PER_QTY = "addPerQty"
    ADD_PER_SQFT = "addPerSqft"
    PERCENT_OF_BASE = "percentOfBase"
    MULTIPLIER = "multiplier"


class PricingUiUnit(StrEnum):
    """Units offered by the authoring UI; not all of them survive persistence."""

    NONE = "none"
    FLAT = "flat"
    PER_QTY = "perQty"
    PER_SQFT = "perSqft"
    PER_SQIN = "perSqin"
    PERCENT_OF_BASE = "percentOfBase"
    MULTIPLIER = "multiplier"


class WeightMode(StrEnum):
    ADD_FLAT = "addFlat"
    ADD_PER_QTY = "addPerQty"
    ADD_PER_SQFT = "addPerSqft"


class QuantityMode(StrEnum):
    FIXED = "fixed"
    PER_QTY = "perQty"
    ENV = "env"


class Rounding(StrEnum):
    NONE = "none"
    CEIL = "ceil"
    FLOOR = "floor"
    ROUND = "round"


class ChildItemKind(StrEnum):
    INLINE_SKU = "inlineSku"
    PRODUCT_REF = "productRef"


class InvoiceVisibility(StrEnum):
    HIDDEN = "hidden"
    ROLLUP = "rollup"
    SEPARATE_LINE = "separateLine"


class PricingTier(StrEnum):
    DEFAULT = "default"
    WHOLESALE = "wholesale"
    RETAIL = "retail"


class ComponentStatus(StrEnum):
    ACCEPTED = "ACCEPTED"
    VOIDED = "VOIDED"


class AuditAction(StrEnum):
    RECOMPUTE = "line_item.snapshot.recompute"
    KEEP_EXISTING = "line_item.snapshot.keep_existing"
    APPLY = "line_item.components.apply"
    ACCEPT = "line_item.components.accept"
    VOID = "line_item.components.void"
