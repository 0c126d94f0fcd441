"""Effect declarations carried by graph nodes and choices.

Effects are data; the evaluator decides which of them apply and reduces them into
pricing add-ons, weight, material usage and child-item proposals. Modes the engine
does not understand are preserved as-is so that the evaluator can decide whether to
skip them (pricing, weight, material) or reject them (child items).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar

from .enums import PricingMode, Rounding

if TYPE_CHECKING:
    from .conditions import Condition


# Pricing ---------------------------------------------------------------------


@dataclass(frozen=True, slots=True, kw_only=True)
class AddFlat:
    mode: ClassVar[PricingMode] = PricingMode.ADD_FLAT

    amount_cents: int
    label: str | None = None
    apply_when: Condition | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class AddPerQty:
    mode: ClassVar[PricingMode] = PricingMode.ADD_PER_QTY

    amount_cents: int
    label: str | None = None
    apply_when: Condition | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class AddPerSqft:
    mode: ClassVar[PricingMode] = PricingMode.ADD_PER_SQFT

    amount_cents: int
    label: str | None = None
    apply_when: Condition | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class PercentOfBase:
    mode: ClassVar[PricingMode] = PricingMode.PERCENT_OF_BASE

    percent: float
    label: str | None = None
    apply_when: Condition | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class Multiplier:
    mode: ClassVar[PricingMode] = PricingMode.MULTIPLIER

    factor: float
    label: str | None = None
    apply_when: Condition | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class UnsupportedPricingEffect:
    """A persisted pricing entry whose mode is unknown to this engine."""

    raw_mode: str
    raw: Mapping[str, object] = field(default_factory=dict[str, object])
    label: str | None = None
    apply_when: Condition | None = None


type PricingEffect = (
    AddFlat | AddPerQty | AddPerSqft | PercentOfBase | Multiplier | UnsupportedPricingEffect
)


# Quantities ------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FixedQuantity:
    value: float


@dataclass(frozen=True, slots=True)
class PerQtyQuantity:
    """``value`` units for every ordered piece."""

    value: float


@dataclass(frozen=True, slots=True, kw_only=True)
class EnvQuantity:
    """Quantity derived from an environment scalar, e.g. ``ceil(perimeter_in / 12)``."""

    key: str
    divisor: float = 1.0
    multiplier: float = 1.0
    rounding: Rounding | str = Rounding.NONE


@dataclass(frozen=True, slots=True)
class UnsupportedQuantity:
    raw_mode: str


type QuantitySource = FixedQuantity | PerQtyQuantity | EnvQuantity | UnsupportedQuantity


# Weight, material and child-item effects ------------------------------------


@dataclass(frozen=True, slots=True, kw_only=True)
class WeightEffect:
    mode: str
    oz: float
    label: str | None = None
    apply_when: Condition | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class MaterialEffect:
    sku_ref: str
    quantity: QuantitySource
    uom: str = "ea"
    label: str | None = None
    apply_when: Condition | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class ChildItemEffect:
    """Declaration of a child line item a node implies when selected.

    ``kind`` and ``invoice_visibility`` stay plain strings here; the evaluator
    validates them and aborts on anything it does not recognise.
    """

    kind: str
    title: str | None
    quantity: QuantitySource
    sku_ref: str | None = None
    child_product_id: str | None = None
    unit_price_cents: int | None = None
    invoice_visibility: str | None = None
    apply_when: Condition | None = None
