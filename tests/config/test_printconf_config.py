from __future__ import annotations

import logging
from pathlib import Path  # noqa: TC003

import pytest

from printconf.config import (
    ConfigurationError,
    EvaluationConfig,
    configure_logging,
    get_database_config,
    get_evaluation_config,
    log_level_env_var,
)
from printconf.config.logging import LOG_LEVEL_ENV
from printconf.config.storage import DEFAULT_DB_FILENAME


def test_evaluation_limits_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("PRINTCONF_MAX_CONDITION_DEPTH", raising=False)
    monkeypatch.delenv("PRINTCONF_SIGNATURE_MAX_DEPTH", raising=False)

    assert get_evaluation_config() == EvaluationConfig()


def test_evaluation_limits_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PRINTCONF_MAX_CONDITION_DEPTH", "8")
    monkeypatch.setenv("PRINTCONF_SIGNATURE_MAX_DEPTH", " 20 ")

    config = get_evaluation_config()

    assert config.max_condition_depth == 8
    assert config.signature_max_depth == 20


def test_blank_limit_falls_back_to_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PRINTCONF_MAX_CONDITION_DEPTH", "   ")

    assert get_evaluation_config().max_condition_depth == EvaluationConfig().max_condition_depth


@pytest.mark.parametrize(("raw", "expected"), [("deep", "an integer"), ("0", ">= 1")])
def test_invalid_evaluation_limits_are_rejected(
    monkeypatch: pytest.MonkeyPatch, raw: str, expected: str
) -> None:
    monkeypatch.setenv("PRINTCONF_MAX_CONDITION_DEPTH", raw)

    with pytest.raises(ConfigurationError, match="PRINTCONF_MAX_CONDITION_DEPTH") as exc:
        get_evaluation_config()

    assert expected in str(exc.value)
    assert exc.value.name == "PRINTCONF_MAX_CONDITION_DEPTH"
    assert exc.value.raw == raw


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("debug", logging.DEBUG), ("WARNING", logging.WARNING), ("15", 15)],
)
def test_log_level_accepts_names_and_numbers(
    monkeypatch: pytest.MonkeyPatch, raw: str, expected: int
) -> None:
    monkeypatch.setenv(LOG_LEVEL_ENV, raw)

    assert log_level_env_var(LOG_LEVEL_ENV, logging.INFO) == expected


def test_log_level_rejects_unknown_name(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(LOG_LEVEL_ENV, "chatty")

    with pytest.raises(ConfigurationError, match="logging level"):
        log_level_env_var(LOG_LEVEL_ENV, logging.INFO)


def test_configure_logging_prefers_explicit_level(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[dict[str, object]] = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
    monkeypatch.setenv(LOG_LEVEL_ENV, "debug")

    assert configure_logging() == logging.DEBUG
    assert configure_logging(level=logging.ERROR, force=True) == logging.ERROR

    assert [call["level"] for call in calls] == [logging.DEBUG, logging.ERROR]
    assert calls[1]["force"] is True


def test_database_uri_uses_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", "sqlite:///override.db")

    config = get_database_config()

    assert config.uri == "sqlite:///override.db"
    assert config.data_dir is None


def test_database_uri_creates_data_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("DATABASE_URI", raising=False)
    monkeypatch.setenv("PRINTCONF_DATA_DIR", str(tmp_path / "data-dir"))

    config = get_database_config()

    expected_path = (tmp_path / "data-dir" / DEFAULT_DB_FILENAME).resolve()
    assert config.uri == f"sqlite+pysqlite:///{expected_path}"
    assert config.data_dir == expected_path.parent
    assert expected_path.parent.exists()
