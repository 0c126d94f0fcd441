"""Pricing effect codec.

Two translations live here:

- persisted JSON (``{"mode": "addFlat", "amountCents": 500}``) <-> pricing effect values
- authoring UI units (flat, per quantity, per ft², per in², percent, multiplier) <->
  pricing effect values

The per-square-inch UI unit has no persisted shape of its own. It is stored as
``addPerSqft`` with the amount scaled by 144 and always reads back as per-square-foot;
the original unit choice cannot be recovered after a reload.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from printconf.domain.model import (
    AddFlat,
    AddPerQty,
    AddPerSqft,
    Multiplier,
    PercentOfBase,
    PricingMode,
    PricingUiUnit,
    UnsupportedPricingEffect,
)
from printconf.domain.model.numbers import round_half_up

from .conditions import condition_from_dict, condition_to_dict

if TYPE_CHECKING:
    from collections.abc import Mapping

    from printconf.domain.model import Condition, PricingEffect

log = logging.getLogger(__name__)

SQIN_PER_SQFT: Final[int] = 144


@dataclass(frozen=True, slots=True)
class UiPricing:
    """What the authoring UI shows for one pricing effect.

    ``amount`` is cents for the additive units, a percent for ``percentOfBase`` and
    a factor for ``multiplier``.
    """

    unit: PricingUiUnit
    amount: float


def decode_pricing_effect(raw: Mapping[str, object]) -> PricingEffect:
    """Decode one persisted pricing entry.

    Unknown modes are kept as :class:`UnsupportedPricingEffect` so that the evaluator
    can skip them without losing the authoring data. A malformed ``applyWhen`` raises
    ``ValueError``.
    """

    label = _optional_str(raw.get("label"))
    apply_when = _decode_apply_when(raw.get("applyWhen"))
    mode = raw.get("mode")

    if mode == PricingMode.ADD_FLAT:
        return AddFlat(amount_cents=_cents(raw), label=label, apply_when=apply_when)
    if mode == PricingMode.ADD_PER_QTY:
        return AddPerQty(amount_cents=_cents(raw), label=label, apply_when=apply_when)
    if mode == PricingMode.ADD_PER_SQFT:
        return AddPerSqft(amount_cents=_cents(raw), label=label, apply_when=apply_when)
    if mode == PricingMode.PERCENT_OF_BASE:
        return PercentOfBase(
            percent=_finite(raw.get("percent"), 0.0), label=label, apply_when=apply_when
        )
    if mode == PricingMode.MULTIPLIER:
        return Multiplier(
            factor=_finite(raw.get("factor"), 1.0), label=label, apply_when=apply_when
        )

    log.debug("Keeping unsupported pricing mode %r as a no-op", mode)
    return UnsupportedPricingEffect(
        raw_mode=str(mode), raw=dict(raw), label=label, apply_when=apply_when
    )


def encode_pricing_effect(effect: PricingEffect) -> dict[str, object]:
    if isinstance(effect, UnsupportedPricingEffect):
        return dict(effect.raw)

    payload: dict[str, object] = {"mode": str(effect.mode)}
    if isinstance(effect, PercentOfBase):
        payload["percent"] = effect.percent
    elif isinstance(effect, Multiplier):
        payload["factor"] = effect.factor
    else:
        payload["amountCents"] = effect.amount_cents
    if effect.label is not None:
        payload["label"] = effect.label
    if effect.apply_when is not None:
        payload["applyWhen"] = condition_to_dict(effect.apply_when)
    return payload


def from_ui_unit(
    unit: PricingUiUnit | str,
    amount: float,
    *,
    label: str | None = None,
) -> PricingEffect | None:
    """Build the persisted effect for a UI unit; ``none`` removes pricing."""

    value = amount if math.isfinite(amount) else 0.0
    ui_unit = PricingUiUnit(unit)
    if ui_unit is PricingUiUnit.NONE:
        return None
    if ui_unit is PricingUiUnit.FLAT:
        return AddFlat(amount_cents=round_half_up(value), label=label)
    if ui_unit is PricingUiUnit.PER_QTY:
        return AddPerQty(amount_cents=round_half_up(value), label=label)
    if ui_unit is PricingUiUnit.PER_SQFT:
        return AddPerSqft(amount_cents=round_half_up(value), label=label)
    if ui_unit is PricingUiUnit.PER_SQIN:
        return AddPerSqft(amount_cents=round_half_up(value * SQIN_PER_SQFT), label=label)
    if ui_unit is PricingUiUnit.PERCENT_OF_BASE:
        return PercentOfBase(percent=value, label=label)
    return Multiplier(factor=value, label=label)


def to_ui_unit(effect: PricingEffect | None) -> UiPricing:
    """Authoring view of a persisted effect. ``addPerSqft`` never decodes as per in²."""

    if effect is None or isinstance(effect, UnsupportedPricingEffect):
        return UiPricing(PricingUiUnit.NONE, 0.0)
    if isinstance(effect, AddFlat):
        return UiPricing(PricingUiUnit.FLAT, effect.amount_cents)
    if isinstance(effect, AddPerQty):
        return UiPricing(PricingUiUnit.PER_QTY, effect.amount_cents)
    if isinstance(effect, AddPerSqft):
        return UiPricing(PricingUiUnit.PER_SQFT, effect.amount_cents)
    if isinstance(effect, PercentOfBase):
        return UiPricing(PricingUiUnit.PERCENT_OF_BASE, effect.percent)
    return UiPricing(PricingUiUnit.MULTIPLIER, effect.factor)


def _cents(raw: Mapping[str, object]) -> int:
    return round_half_up(_finite(raw.get("amountCents"), 0.0))


def _finite(value: object, default: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return float(value) if math.isfinite(value) else default


def _optional_str(value: object) -> str | None:
    return value if isinstance(value, str) and value else None


def _decode_apply_when(value: object) -> Condition | None:
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ValueError("applyWhen must be an object")
    return condition_from_dict(value)  # pyright: ignore[reportUnknownArgumentType]
