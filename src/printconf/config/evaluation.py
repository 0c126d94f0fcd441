"""Evaluation engine limits."""

from __future__ import annotations

from dataclasses import dataclass

from .env import int_env_var

DEFAULT_MAX_CONDITION_DEPTH = 32
DEFAULT_SIGNATURE_MAX_DEPTH = 100


@dataclass(frozen=True, slots=True)
class EvaluationConfig:
    max_condition_depth: int = DEFAULT_MAX_CONDITION_DEPTH
    signature_max_depth: int = DEFAULT_SIGNATURE_MAX_DEPTH


def get_evaluation_config() -> EvaluationConfig:
    return EvaluationConfig(
        max_condition_depth=int_env_var(
            "PRINTCONF_MAX_CONDITION_DEPTH", DEFAULT_MAX_CONDITION_DEPTH
        ),
        signature_max_depth=int_env_var(
            "PRINTCONF_SIGNATURE_MAX_DEPTH", DEFAULT_SIGNATURE_MAX_DEPTH
        ),
    )
