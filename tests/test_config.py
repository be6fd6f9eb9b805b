"""Configuration stories: registry settings come from layers and env vars.

Layered configuration itself is lib_layered_config's business; these tests
stub the merged result and check how registry settings are derived.
"""

from __future__ import annotations

from typing import Any

import pytest

from dep_impact_analyzer import config as config_mod
from dep_impact_analyzer.config import RegistrySettings, get_default_config_path, get_registry_settings

_ENV_NAMES = ("REGISTRY_URL", "MAX_CONCURRENT", "TIMEOUT", "RETRY_ATTEMPTS", "RETRY_BASE_DELAY")


class _StubConfig:
    """Minimal stand-in for lib_layered_config's Config."""

    def __init__(self, data: dict[str, Any]) -> None:
        self._data = data

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def as_dict(self) -> dict[str, Any]:
        return dict(self._data)


@pytest.fixture
def layered(monkeypatch: pytest.MonkeyPatch) -> dict[str, Any]:
    """Replace the layered config with a mutable dict and clear native env vars."""
    data: dict[str, Any] = {}
    monkeypatch.setattr(config_mod, "get_config", lambda **_: _StubConfig(data))
    for name in _ENV_NAMES:
        monkeypatch.delenv(f"DEP_IMPACT_ANALYZER_{name}", raising=False)
    return data


# ════════════════════════════════════════════════════════════════════════════
# RegistrySettings
# ════════════════════════════════════════════════════════════════════════════


@pytest.mark.os_agnostic
def test_registry_settings_defaults() -> None:
    settings = RegistrySettings()

    assert settings.base_url == "https://registry.npmjs.org"
    assert settings.max_concurrent == 8
    assert settings.timeout == 15.0
    assert settings.retry_attempts == 2
    assert settings.retry_base_delay == 1.0


@pytest.mark.os_agnostic
@pytest.mark.parametrize(
    "overrides",
    [
        {"max_concurrent": 0},
        {"timeout": 0},
        {"retry_attempts": 0},
        {"retry_base_delay": -1.0},
        {"base_url": ""},
    ],
)
def test_registry_settings_reject_invalid_values(overrides: dict[str, Any]) -> None:
    with pytest.raises(ValueError):
        RegistrySettings(**overrides)


@pytest.mark.os_agnostic
def test_backoff_delay_doubles_per_attempt() -> None:
    settings = RegistrySettings(retry_base_delay=0.25)

    assert [settings.backoff_delay(attempt) for attempt in (1, 2, 3, 4)] == [0.25, 0.5, 1.0, 2.0]


@pytest.mark.os_agnostic
def test_with_overrides_ignores_none() -> None:
    settings = RegistrySettings(max_concurrent=3).with_overrides(max_concurrent=None, timeout=2.5)

    assert settings.max_concurrent == 3
    assert settings.timeout == 2.5


@pytest.mark.os_agnostic
def test_with_overrides_validates_new_values() -> None:
    with pytest.raises(ValueError):
        RegistrySettings().with_overrides(max_concurrent=-1)


# ════════════════════════════════════════════════════════════════════════════
# get_registry_settings
# ════════════════════════════════════════════════════════════════════════════


@pytest.mark.os_agnostic
def test_default_config_file_is_bundled() -> None:
    path = get_default_config_path()

    assert path.name == "defaultconfig.toml"
    assert path.is_file()
    assert "[registry]" in path.read_text(encoding="utf-8")


@pytest.mark.os_agnostic
def test_missing_section_falls_back_to_defaults(layered: dict[str, Any]) -> None:
    assert get_registry_settings() == RegistrySettings()


@pytest.mark.os_agnostic
def test_registry_section_values_are_used(layered: dict[str, Any]) -> None:
    layered["registry"] = {
        "base_url": "https://npm.example.com",
        "max_concurrent": 2,
        "timeout": 3,
        "retry_attempts": 5,
        "retry_base_delay": 0.5,
        "user_agent": "custom-agent",
    }

    settings = get_registry_settings()

    assert settings == RegistrySettings(
        base_url="https://npm.example.com",
        max_concurrent=2,
        timeout=3.0,
        retry_attempts=5,
        retry_base_delay=0.5,
        user_agent="custom-agent",
    )


@pytest.mark.os_agnostic
def test_native_env_vars_override_config(layered: dict[str, Any], monkeypatch: pytest.MonkeyPatch) -> None:
    layered["registry"] = {"max_concurrent": 2, "timeout": 3.0}
    monkeypatch.setenv("DEP_IMPACT_ANALYZER_MAX_CONCURRENT", "12")
    monkeypatch.setenv("DEP_IMPACT_ANALYZER_TIMEOUT", "7.5")
    monkeypatch.setenv("DEP_IMPACT_ANALYZER_REGISTRY_URL", "https://mirror.example.com")

    settings = get_registry_settings()

    assert settings.max_concurrent == 12
    assert settings.timeout == 7.5
    assert settings.base_url == "https://mirror.example.com"


@pytest.mark.os_agnostic
def test_invalid_env_var_is_ignored_with_warning(
    layered: dict[str, Any],
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
) -> None:
    monkeypatch.setenv("DEP_IMPACT_ANALYZER_RETRY_ATTEMPTS", "many")

    with caplog.at_level("WARNING"):
        settings = get_registry_settings()

    assert settings.retry_attempts == 2
    assert "DEP_IMPACT_ANALYZER_RETRY_ATTEMPTS" in caplog.text


@pytest.mark.os_agnostic
@pytest.mark.parametrize(
    ("name", "raw"),
    [
        ("MAX_CONCURRENT", "0"),
        ("TIMEOUT", "-1"),
        ("RETRY_ATTEMPTS", "0"),
        ("RETRY_BASE_DELAY", "-0.5"),
        ("TIMEOUT", "nan"),
    ],
)
def test_out_of_range_env_var_is_ignored_with_warning(
    layered: dict[str, Any],
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
    name: str,
    raw: str,
) -> None:
    monkeypatch.setenv(f"DEP_IMPACT_ANALYZER_{name}", raw)

    with caplog.at_level("WARNING"):
        settings = get_registry_settings()

    assert settings == RegistrySettings()
    assert f"DEP_IMPACT_ANALYZER_{name}" in caplog.text


@pytest.mark.os_agnostic
def test_durations_are_configured_in_seconds() -> None:
    settings = RegistrySettings(timeout=2.5, retry_base_delay=0.5)

    assert settings.timeout == 2.5
    assert settings.backoff_delay(1) == 0.5
    assert "seconds" in (RegistrySettings.__doc__ or "")
