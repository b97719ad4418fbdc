"""Typed settings loader for the weather aggregation client."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import AnyUrl, Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigError


class Settings(BaseSettings):
    """Application settings loaded from environment variables and `.env`."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_env: Literal["dev", "staging", "prod"] = Field(default="dev", alias="APP_ENV")

    nws_base_url: AnyUrl = Field(default="https://api.weather.gov", alias="NWS_BASE_URL")
    nws_user_agent: str = Field(
        default="(justweather.com, contact@justweather.com)",
        alias="NWS_USER_AGENT",
    )
    weather_timeout_seconds: float = Field(default=10.0, alias="WEATHER_TIMEOUT_SECONDS")

    geocoding_base_url: AnyUrl = Field(
        default="https://geocoding-api.open-meteo.com/v1",
        alias="GEOCODING_BASE_URL",
    )
    geocoding_timeout_seconds: float = Field(default=5.0, alias="GEOCODING_TIMEOUT_SECONDS")

    http_max_retries: int = Field(default=2, alias="HTTP_MAX_RETRIES")
    http_retry_delay_seconds: float = Field(default=1.0, alias="HTTP_RETRY_DELAY_SECONDS")

    cache_ttl_seconds: float = Field(default=300.0, alias="CACHE_TTL_SECONDS")

    search_candidate_count: int = Field(default=10, alias="SEARCH_CANDIDATE_COUNT")
    search_max_results: int = Field(default=5, alias="SEARCH_MAX_RESULTS")

    radar_tile_base_url: AnyUrl = Field(
        default="https://tiles.radar.weather.gov",
        alias="RADAR_TILE_BASE_URL",
    )

    weather_default_lat: float | None = Field(default=None, alias="WEATHER_DEFAULT_LAT")
    weather_default_lon: float | None = Field(default=None, alias="WEATHER_DEFAULT_LON")
    weather_max_print: int = Field(default=12, alias="WEATHER_MAX_PRINT")

    @field_validator("weather_default_lat", "weather_default_lon", mode="before")
    @classmethod
    def empty_string_to_none(cls, value: Any) -> Any:
        """Treat empty env-string values as unset optional coordinates."""
        if isinstance(value, str) and value.strip() == "":
            return None
        return value

    @model_validator(mode="after")
    def validate_ranges(self) -> Settings:
        """Validate numeric ranges and paired settings."""
        if not self.nws_user_agent.strip():
            raise ValueError("NWS_USER_AGENT must not be empty.")
        if self.weather_timeout_seconds <= 0:
            raise ValueError("WEATHER_TIMEOUT_SECONDS must be > 0.")
        if self.geocoding_timeout_seconds <= 0:
            raise ValueError("GEOCODING_TIMEOUT_SECONDS must be > 0.")
        if self.http_max_retries < 0:
            raise ValueError("HTTP_MAX_RETRIES must be >= 0.")
        if self.http_retry_delay_seconds < 0:
            raise ValueError("HTTP_RETRY_DELAY_SECONDS must be >= 0.")
        if self.cache_ttl_seconds <= 0:
            raise ValueError("CACHE_TTL_SECONDS must be > 0.")
        if self.search_candidate_count <= 0:
            raise ValueError("SEARCH_CANDIDATE_COUNT must be > 0.")
        if self.search_max_results <= 0:
            raise ValueError("SEARCH_MAX_RESULTS must be > 0.")
        if self.search_max_results > self.search_candidate_count:
            raise ValueError("SEARCH_MAX_RESULTS cannot exceed SEARCH_CANDIDATE_COUNT.")
        if self.weather_max_print <= 0:
            raise ValueError("WEATHER_MAX_PRINT must be > 0.")

        has_default_lat = self.weather_default_lat is not None
        has_default_lon = self.weather_default_lon is not None
        if has_default_lat != has_default_lon:
            raise ValueError("WEATHER_DEFAULT_LAT and WEATHER_DEFAULT_LON must be set together.")
        if has_default_lat and not (-90 <= self.weather_default_lat <= 90):
            raise ValueError("WEATHER_DEFAULT_LAT must be between -90 and 90.")
        if has_default_lon and not (-180 <= self.weather_default_lon <= 180):
            raise ValueError("WEATHER_DEFAULT_LON must be between -180 and 180.")
        return self

    @property
    def nws_base(self) -> str:
        return str(self.nws_base_url).rstrip("/")

    @property
    def geocoding_base(self) -> str:
        return str(self.geocoding_base_url).rstrip("/")

    @property
    def radar_tile_base(self) -> str:
        return str(self.radar_tile_base_url).rstrip("/")

    def safe_summary(self) -> dict[str, Any]:
        """Return config summary safe for logging."""
        return {
            "app_env": self.app_env,
            "nws_base_url": self.nws_base,
            "geocoding_base_url": self.geocoding_base,
            "weather_timeout_seconds": self.weather_timeout_seconds,
            "geocoding_timeout_seconds": self.geocoding_timeout_seconds,
            "http_max_retries": self.http_max_retries,
            "http_retry_delay_seconds": self.http_retry_delay_seconds,
            "cache_ttl_seconds": self.cache_ttl_seconds,
            "search_max_results": self.search_max_results,
        }


def load_settings() -> Settings:
    """Load and validate settings, raising ConfigError on failure."""
    try:
        return Settings()
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Failed reading environment/.env: {exc}") from exc
