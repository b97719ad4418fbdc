"""Typed, immutable models for canonical weather records."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from types import MappingProxyType
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class Coordinate(_Frozen):
    """Latitude/longitude pair already rounded to 4 decimal places."""

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)

    @property
    def key(self) -> str:
        return f"{self.latitude:.4f},{self.longitude:.4f}"


class PrecipitationValue(_Frozen):
    value: float = 0


class HumidityValue(_Frozen):
    value: float | None = None


class ForecastPeriod(_Frozen):
    """Canonical forecast period shared by multi-day and hourly forecasts."""

    number: int = 0
    name: str = ""
    is_daytime: bool = True
    start_time: datetime | None = None
    end_time: datetime | None = None
    temperature: float | None = None
    temperature_unit: str = "°F"
    wind_speed: str = "N/A"
    wind_direction: str = ""
    icon: str | None = None
    short_forecast: str = "No forecast available"
    detailed_forecast: str = ""
    probability_of_precipitation: PrecipitationValue = Field(default_factory=PrecipitationValue)
    relative_humidity: HumidityValue = Field(default_factory=HumidityValue)


class PeriodCollection(_Frozen):
    periods: tuple[ForecastPeriod, ...]


class LocationInfo(_Frozen):
    """Nearest named place reported by the grid lookup."""

    city: str | None = None
    state: str | None = None
    distance: float | None = None
    bearing: float | None = None


class WeatherRecord(_Frozen):
    """Aggregate returned by a successful weather aggregation."""

    forecast: PeriodCollection | None = None
    hourly: PeriodCollection | None = None
    extended: Mapping[str, Any] | None = None
    current: Mapping[str, Any] | None = None
    location: LocationInfo | None = None
    coordinates: Coordinate

    @field_validator("extended", "current", mode="after")
    @classmethod
    def freeze_payload(cls, value: Mapping[str, Any] | None) -> Mapping[str, Any] | None:
        return None if value is None else _freeze(value)

    @field_serializer("extended", "current")
    def thaw_payload(self, value: Mapping[str, Any] | None) -> dict[str, Any] | None:
        return None if value is None else _thaw(value)

    @model_validator(mode="after")
    def require_forecast_or_hourly(self) -> WeatherRecord:
        if self.forecast is None and self.hourly is None:
            raise ValueError("WeatherRecord needs at least one of forecast or hourly.")
        return self


class LocationResult(_Frozen):
    """One geocoding search hit."""

    name: str
    admin1: str
    country: str = ""
    latitude: str
    longitude: str


class DailyForecast(_Frozen):
    """A day period paired with the night that follows it."""

    name: str
    day: ForecastPeriod
    night: ForecastPeriod


class RadarProduct(_Frozen):
    id: str
    name: str
    description: str
    path: str


def _freeze(value: Any) -> Any:
    """Recursively wrap raw upstream JSON in read-only containers."""
    if isinstance(value, Mapping):
        return MappingProxyType({key: _freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(item) for item in value)
    return value


def _thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {key: _thaw(item) for key, item in value.items()}
    if isinstance(value, tuple):
        return [_thaw(item) for item in value]
    return value
