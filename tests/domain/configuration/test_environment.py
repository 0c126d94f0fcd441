from __future__ import annotations

import pytest

from printconf.domain.configuration import build_environment, environment_extras
from printconf.domain.model import PricingTier


def test_geometry_is_derived_from_both_dimensions() -> None:
    environment = build_environment(
        quantity=3, width_in=24, height_in=48, pricing_tier=PricingTier.WHOLESALE
    )

    assert environment == {
        "quantity": 3,
        "width_in": 24.0,
        "height_in": 48.0,
        "sqft": pytest.approx(8.0),
        "perimeter_in": 144.0,
        "pricing_tier": "wholesale",
    }


def test_geometry_is_omitted_without_both_dimensions() -> None:
    assert build_environment(quantity=1, width_in=24) == {"quantity": 1}
    assert build_environment(quantity=1, width_in=24, height_in=0) == {"quantity": 1}


def test_extras_never_override_derived_keys() -> None:
    environment = build_environment(
        quantity=2, extras={"quantity": 99, "sqft": 1000, "turnaround_days": 3}
    )

    assert environment == {"quantity": 2, "turnaround_days": 3}


def test_environment_extras_strips_derived_keys() -> None:
    recorded = build_environment(
        quantity=5, width_in=10, height_in=10, extras={"coupon": "SPRING"}
    )

    assert environment_extras(recorded) == {"coupon": "SPRING"}
    assert environment_extras(None) == {}
