"""Settings defaults, validation and loading."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from weather_aggregator.config import Settings, load_settings
from weather_aggregator.exceptions import ConfigError

_ENV_VARS = (
    "NWS_BASE_URL",
    "NWS_USER_AGENT",
    "WEATHER_TIMEOUT_SECONDS",
    "GEOCODING_TIMEOUT_SECONDS",
    "HTTP_MAX_RETRIES",
    "CACHE_TTL_SECONDS",
    "SEARCH_MAX_RESULTS",
    "WEATHER_DEFAULT_LAT",
    "WEATHER_DEFAULT_LON",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults_match_reference_policy() -> None:
    settings = Settings(_env_file=None)

    assert settings.nws_base == "https://api.weather.gov"
    assert settings.geocoding_base == "https://geocoding-api.open-meteo.com/v1"
    assert settings.weather_timeout_seconds == 10.0
    assert settings.geocoding_timeout_seconds == 5.0
    assert settings.http_max_retries == 2
    assert settings.http_retry_delay_seconds == 1.0
    assert settings.cache_ttl_seconds == 300.0
    assert settings.search_candidate_count == 10
    assert settings.search_max_results == 5


def test_env_overrides_are_applied(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NWS_BASE_URL", "https://nws.example.test/")
    monkeypatch.setenv("CACHE_TTL_SECONDS", "60")
    settings = Settings(_env_file=None)
    assert settings.nws_base == "https://nws.example.test"
    assert settings.cache_ttl_seconds == 60


def test_empty_default_coords_parse_as_none(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WEATHER_DEFAULT_LAT", "")
    monkeypatch.setenv("WEATHER_DEFAULT_LON", "")
    settings = Settings(_env_file=None)
    assert settings.weather_default_lat is None
    assert settings.weather_default_lon is None


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("NWS_USER_AGENT", "   "),
        ("WEATHER_TIMEOUT_SECONDS", "0"),
        ("HTTP_MAX_RETRIES", "-1"),
        ("CACHE_TTL_SECONDS", "0"),
        ("SEARCH_MAX_RESULTS", "11"),
        ("WEATHER_DEFAULT_LAT", "40.0"),
    ],
)
def test_invalid_values_rejected(monkeypatch: pytest.MonkeyPatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_load_settings_wraps_validation_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WEATHER_DEFAULT_LAT", "95")
    monkeypatch.setenv("WEATHER_DEFAULT_LON", "0")
    with pytest.raises(ConfigError, match="Invalid configuration"):
        load_settings()


def test_safe_summary_is_loggable() -> None:
    summary = Settings(_env_file=None).safe_summary()
    assert summary["nws_base_url"] == "https://api.weather.gov"
    assert summary["cache_ttl_seconds"] == 300.0
