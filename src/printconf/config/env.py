"""Reading printconf settings out of the process environment."""

from __future__ import annotations

import logging
import os


class ConfigurationError(RuntimeError):
    """An environment variable holds a value printconf cannot use."""

    def __init__(self, name: str, raw: str, expected: str) -> None:
        super().__init__(f"{name} must be {expected}, got {raw!r}")
        self.name = name
        self.raw = raw


def _raw(name: str) -> str | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    return raw.strip()


def int_env_var(name: str, default: int, *, minimum: int = 1) -> int:
    """Optional integer setting; blank counts as unset."""

    raw = _raw(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(name, raw, "an integer") from exc
    if value < minimum:
        raise ConfigurationError(name, raw, f">= {minimum}")
    return value


def log_level_env_var(name: str, default: int) -> int:
    """Accept either a level name (``debug``, ``WARNING``) or its number."""

    raw = _raw(name)
    if raw is None:
        return default
    if raw.isdigit():
        return int(raw)
    level = logging.getLevelNamesMapping().get(raw.upper())
    if level is None:
        raise ConfigurationError(name, raw, "a logging level name")
    return level
