"""Tests for DapiSettings: env vars, defaults, and apply_settings()."""

from collections.abc import Generator

import pytest
from pydantic import ValidationError

from dapi.config.settings import DapiSettings, apply_settings
from dapi.telemetry import disable_telemetry, is_telemetry_enabled


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None]:
    for name in ("VERBOSE", "LOG_JSON", "TELEMETRY", "PLUGINS_AUTOLOAD"):
        monkeypatch.delenv(f"DAPI_{name}", raising=False)
    yield
    disable_telemetry()


class TestDapiSettingsDefaults:
    def test_all_defaults(self) -> None:
        settings = DapiSettings()
        assert settings.verbose is False
        assert settings.log_json is False
        assert settings.telemetry is False
        assert settings.plugins_autoload is False

    def test_frozen(self) -> None:
        settings = DapiSettings()
        with pytest.raises(ValidationError):
            settings.verbose = True  # type: ignore[misc]


class TestEnvSource:
    def test_env_vars(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DAPI_VERBOSE", "1")
        monkeypatch.setenv("DAPI_TELEMETRY", "true")
        settings = DapiSettings()
        assert settings.verbose is True
        assert settings.telemetry is True
        assert settings.log_json is False

    def test_init_kwargs_win(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DAPI_LOG_JSON", "true")
        assert DapiSettings(log_json=False).log_json is False

    def test_unprefixed_env_ignored(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("VERBOSE", "true")
        assert DapiSettings().verbose is False


class TestApplySettings:
    def test_enables_telemetry(self, configure_calls: list[dict[str, bool]]) -> None:
        applied = apply_settings(DapiSettings(telemetry=True, verbose=True))
        assert applied.telemetry is True
        assert is_telemetry_enabled()
        assert configure_calls == [{"verbose": True, "log_json": False}]

    def test_reads_env_by_default(
        self, monkeypatch: pytest.MonkeyPatch, configure_calls: list[dict[str, bool]]
    ) -> None:
        monkeypatch.setenv("DAPI_LOG_JSON", "yes")
        applied = apply_settings()
        assert applied.log_json is True
        assert not is_telemetry_enabled()
        assert configure_calls == [{"verbose": False, "log_json": True}]


@pytest.fixture
def configure_calls(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, bool]]:
    """Record configure_logging() calls instead of touching global logging."""
    calls: list[dict[str, bool]] = []
    monkeypatch.setattr(
        "dapi.config.settings.configure_logging",
        lambda **kwargs: calls.append(kwargs),
    )
    return calls
