from __future__ import annotations

import pytest

from printconf.domain.configuration import (
    decode_pricing_effect,
    encode_pricing_effect,
    from_ui_unit,
    to_ui_unit,
)
from printconf.domain.model import (
    AddFlat,
    AddPerQty,
    AddPerSqft,
    Equals,
    Multiplier,
    PercentOfBase,
    PricingUiUnit,
    UnsupportedPricingEffect,
)


def test_decode_known_modes() -> None:
    assert decode_pricing_effect({"mode": "addFlat", "amountCents": 500}) == AddFlat(
        amount_cents=500
    )
    assert decode_pricing_effect({"mode": "addPerQty", "amountCents": 12.5}) == AddPerQty(
        amount_cents=13
    )
    assert decode_pricing_effect({"mode": "percentOfBase", "percent": 7.5}) == PercentOfBase(
        percent=7.5
    )
    assert decode_pricing_effect({"mode": "multiplier", "factor": 2}) == Multiplier(factor=2.0)


def test_decode_keeps_unknown_modes() -> None:
    raw = {"mode": "tiered", "tiers": [1, 2]}

    effect = decode_pricing_effect(raw)

    assert isinstance(effect, UnsupportedPricingEffect)
    assert effect.raw_mode == "tiered"
    assert encode_pricing_effect(effect) == raw


def test_decode_apply_when() -> None:
    effect = decode_pricing_effect(
        {
            "mode": "addFlat",
            "amountCents": 100,
            "label": "Rush",
            "applyWhen": {"op": "equals", "nodeId": "rush", "value": True},
        }
    )

    assert effect == AddFlat(amount_cents=100, label="Rush", apply_when=Equals("rush", True))
    assert encode_pricing_effect(effect)["applyWhen"] == {
        "op": "equals",
        "nodeId": "rush",
        "value": True,
    }


def test_decode_rejects_malformed_apply_when() -> None:
    with pytest.raises(ValueError, match="applyWhen must be an object"):
        decode_pricing_effect({"mode": "addFlat", "amountCents": 1, "applyWhen": "rush"})


def test_per_square_inch_is_stored_as_per_square_foot() -> None:
    effect = from_ui_unit(PricingUiUnit.PER_SQIN, 2.5)

    assert effect == AddPerSqft(amount_cents=360)
    assert encode_pricing_effect(effect) == {"mode": "addPerSqft", "amountCents": 360}
    assert to_ui_unit(effect).unit is PricingUiUnit.PER_SQFT
    assert to_ui_unit(effect).amount == 360


def test_none_unit_removes_pricing() -> None:
    assert from_ui_unit("none", 100) is None
    assert to_ui_unit(None).unit is PricingUiUnit.NONE


@pytest.mark.parametrize(
    ("unit", "amount", "expected"),
    [
        (PricingUiUnit.FLAT, 199.5, AddFlat(amount_cents=200)),
        (PricingUiUnit.PER_QTY, 25, AddPerQty(amount_cents=25)),
        (PricingUiUnit.PER_SQFT, 40, AddPerSqft(amount_cents=40)),
        (PricingUiUnit.PERCENT_OF_BASE, 12.5, PercentOfBase(percent=12.5)),
        (PricingUiUnit.MULTIPLIER, 1.25, Multiplier(factor=1.25)),
    ],
)
def test_ui_units_map_to_persisted_effects(
    unit: PricingUiUnit, amount: float, expected: object
) -> None:
    effect = from_ui_unit(unit, amount)

    assert effect == expected
    assert to_ui_unit(effect).unit is unit
