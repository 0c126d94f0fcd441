"""Deterministic input signature used as the staleness oracle.

The signature is the SHA-256 hex digest of a canonical JSON document holding the graph
version id, the explicit selections and the environment. Canonical means: object keys
sorted, compact separators, integral floats written as integers, tuples as arrays.
"""

from __future__ import annotations

import hashlib
import json
import math
from collections.abc import Mapping
from decimal import Decimal
from enum import Enum
from typing import Final
from uuid import UUID

DEFAULT_MAX_DEPTH: Final[int] = 100


class CanonicalizationError(ValueError):
    """Raised for values with no canonical JSON form."""


def canonical_json(value: object, *, max_depth: int = DEFAULT_MAX_DEPTH) -> str:
    return json.dumps(
        _canonical(value, depth=0, max_depth=max_depth),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )


def input_signature(
    graph_version_id: UUID | str,
    explicit_selections: Mapping[str, object],
    environment: Mapping[str, object],
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> str:
    payload = {
        "graphVersionId": str(graph_version_id),
        "explicitSelections": explicit_selections,
        "env": environment,
    }
    digest = hashlib.sha256(canonical_json(payload, max_depth=max_depth).encode("utf-8"))
    return digest.hexdigest()


def _canonical(value: object, *, depth: int, max_depth: int) -> object:  # noqa: PLR0911
    if depth > max_depth:
        raise CanonicalizationError(f"value nested deeper than {max_depth} levels")
    if value is None or isinstance(value, (bool, str)):
        return value
    if isinstance(value, Enum):
        return _canonical(value.value, depth=depth, max_depth=max_depth)
    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal)):
        return _canonical_number(value)
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Mapping):
        return {
            str(key): _canonical(item, depth=depth + 1, max_depth=max_depth)
            for key, item in value.items()  # pyright: ignore[reportUnknownVariableType]
        }
    if isinstance(value, (list, tuple)):
        return [_canonical(item, depth=depth + 1, max_depth=max_depth) for item in value]  # pyright: ignore[reportUnknownVariableType]
    raise CanonicalizationError(f"unsupported value type: {type(value).__name__}")


def _canonical_number(value: float | Decimal) -> int | float:
    number = float(value)
    if not math.isfinite(number):
        raise CanonicalizationError("non-finite numbers have no canonical form")
    if number.is_integer():
        return int(number)
    return number
