"""Pure configuration engine: validate, resolve visibility, evaluate and sign inputs."""

from __future__ import annotations

from .conditions import condition_from_dict, condition_to_dict, evaluate_condition
from .environment import build_environment, environment_extras
from .evaluator import effective_values, evaluate, is_selected
from .pricing import (
    UiPricing,
    decode_pricing_effect,
    encode_pricing_effect,
    from_ui_unit,
    to_ui_unit,
)
from .signature import CanonicalizationError, canonical_json, input_signature
from .validation import find_cycle, validate_graph
from .visibility import resolve_visible_nodes

__all__ = [
    "CanonicalizationError",
    "UiPricing",
    "build_environment",
    "canonical_json",
    "condition_from_dict",
    "condition_to_dict",
    "decode_pricing_effect",
    "effective_values",
    "encode_pricing_effect",
    "environment_extras",
    "evaluate",
    "evaluate_condition",
    "find_cycle",
    "from_ui_unit",
    "input_signature",
    "is_selected",
    "resolve_visible_nodes",
    "to_ui_unit",
    "validate_graph",
]
