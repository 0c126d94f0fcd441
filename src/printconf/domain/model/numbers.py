"""Numeric helpers for cents and quantities."""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Final

QTY_QUANTUM: Final[Decimal] = Decimal("0.01")


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""

    return int(Decimal(repr(value)).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def is_finite_number(value: object) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    if isinstance(value, (float, Decimal)):
        return math.isfinite(value)
    return False


def quantize_qty(value: float | Decimal) -> Decimal:
    """Quantity as stored on accepted components: two decimal places."""

    raw = value if isinstance(value, Decimal) else Decimal(repr(value))
    return raw.quantize(QTY_QUANTUM, rounding=ROUND_HALF_UP)
