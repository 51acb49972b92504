from __future__ import annotations

import pytest

from resourcevet.config import (
    ConfigurationError,
    MissingConfigurationError,
    optional_env_var,
    require_env_vars,
)
from resourcevet.config.env import env_float, env_int


def test_require_env_vars_lists_every_missing_name(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("RESOURCEVET_A", raising=False)
    monkeypatch.setenv("RESOURCEVET_B", "   ")
    monkeypatch.setenv("RESOURCEVET_C", "value")

    with pytest.raises(MissingConfigurationError) as excinfo:
        require_env_vars(("RESOURCEVET_C", "RESOURCEVET_B", "RESOURCEVET_A"))

    assert str(excinfo.value) == "Missing configuration for: RESOURCEVET_A, RESOURCEVET_B"


def test_optional_env_var_strips_and_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RESOURCEVET_A", "  padded ")
    monkeypatch.setenv("RESOURCEVET_B", "")

    assert optional_env_var("RESOURCEVET_A") == "padded"
    assert optional_env_var("RESOURCEVET_B", "fallback") == "fallback"


def test_numeric_env_vars(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RESOURCEVET_TIMEOUT", "12.5")
    monkeypatch.setenv("RESOURCEVET_COUNT", "7")
    monkeypatch.delenv("RESOURCEVET_UNSET", raising=False)

    assert env_float("RESOURCEVET_TIMEOUT", 1.0) == 12.5
    assert env_int("RESOURCEVET_COUNT", 1) == 7
    assert env_int("RESOURCEVET_UNSET", 3) == 3


def test_malformed_numbers_raise_configuration_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RESOURCEVET_COUNT", "seven")

    with pytest.raises(ConfigurationError, match="RESOURCEVET_COUNT must be an integer"):
        env_int("RESOURCEVET_COUNT", 1)
