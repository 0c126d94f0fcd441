"""Environment-driven settings for printconf."""

from __future__ import annotations

from .env import ConfigurationError, int_env_var, log_level_env_var
from .evaluation import EvaluationConfig, get_evaluation_config
from .logging import configure_logging
from .storage import DatabaseConfig, get_database_config

__all__ = [
    "ConfigurationError",
    "DatabaseConfig",
    "EvaluationConfig",
    "configure_logging",
    "get_database_config",
    "get_evaluation_config",
    "int_env_var",
    "log_level_env_var",
]
