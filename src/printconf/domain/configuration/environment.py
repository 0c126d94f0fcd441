"""Build the evaluation environment from line-item geometry and context."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Final

from printconf.domain.model.numbers import is_finite_number

if TYPE_CHECKING:
    from collections.abc import Mapping

    from printconf.domain.model import PricingTier

SQIN_PER_SQFT: Final[int] = 144

QUANTITY: Final[str] = "quantity"
WIDTH_IN: Final[str] = "width_in"
HEIGHT_IN: Final[str] = "height_in"
SQFT: Final[str] = "sqft"
PERIMETER_IN: Final[str] = "perimeter_in"
PRICING_TIER: Final[str] = "pricing_tier"

# Keys always recomputed from the line item; never carried over from a snapshot.
DERIVED_KEYS: Final = frozenset({QUANTITY, WIDTH_IN, HEIGHT_IN, SQFT, PERIMETER_IN, PRICING_TIER})


def build_environment(
    *,
    quantity: float,
    width_in: float | None = None,
    height_in: float | None = None,
    pricing_tier: PricingTier | str | None = None,
    extras: Mapping[str, object] | None = None,
) -> dict[str, object]:
    """Environment with quantity, and geometry only when both dimensions are known.

    Caller-supplied ``extras`` never override the entries derived from the line item.
    """

    env: dict[str, object] = environment_extras(extras)
    env[QUANTITY] = quantity
    if _positive(width_in) and _positive(height_in):
        width = float(width_in)  # pyright: ignore[reportArgumentType]
        height = float(height_in)  # pyright: ignore[reportArgumentType]
        env[WIDTH_IN] = width
        env[HEIGHT_IN] = height
        env[SQFT] = (width * height) / SQIN_PER_SQFT
        env[PERIMETER_IN] = 2 * (width + height)
    if pricing_tier is not None:
        env[PRICING_TIER] = str(pricing_tier)
    return env


def environment_extras(environment: Mapping[str, object] | None) -> dict[str, object]:
    """Caller-supplied entries of a recorded environment, without derived keys."""

    if not environment:
        return {}
    return {key: value for key, value in environment.items() if key not in DERIVED_KEYS}


def _positive(value: float | None) -> bool:
    return is_finite_number(value) and value > 0  # pyright: ignore[reportOperatorIssue]


def numeric(environment: Mapping[str, object], key: str) -> float | None:
    """Finite numeric entry of the environment, or ``None``."""

    value = environment.get(key)
    if not is_finite_number(value):
        return None
    result = float(value)  # pyright: ignore[reportArgumentType]
    return result if math.isfinite(result) else None
