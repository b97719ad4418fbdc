"""Weather aggregation: grid lookup, concurrent fan-out, merge and cache."""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Mapping
from typing import Any

from .cache import TTLCache
from .exceptions import (
    AggregationFailedError,
    InvalidCoordinatesError,
    PayloadValidationError,
    UpstreamError,
    classify_failure,
)
from .http import RetryingHttpClient
from .models import Coordinate, PeriodCollection, WeatherRecord
from .normalize import extract_station_id, normalize_forecast, normalize_hourly, normalize_location

DEFAULT_NWS_BASE_URL = "https://api.weather.gov"

# Points-payload keys for the dependent resources, in fan-out order.
_FAN_OUT_KEYS = ("forecast", "forecastHourly", "forecastGridData", "observationStations")


def round_coordinate(value: float) -> str:
    """Format a coordinate with exactly 4 decimals ("-0.0000" becomes "0.0000")."""
    text = f"{value:.4f}"
    return "0.0000" if text == "-0.0000" else text


def validate_coordinates(latitude: Any, longitude: Any) -> Coordinate:
    """Parse, range-check and round a coordinate pair."""
    lat = _as_number(latitude, "latitude")
    lon = _as_number(longitude, "longitude")
    if not (-90 <= lat <= 90):
        raise InvalidCoordinatesError(f"Invalid latitude {lat}; expected between -90 and 90.")
    if not (-180 <= lon <= 180):
        raise InvalidCoordinatesError(f"Invalid longitude {lon}; expected between -180 and 180.")
    return Coordinate(
        latitude=float(round_coordinate(lat)),
        longitude=float(round_coordinate(lon)),
    )


def weather_cache_key(coordinate: Coordinate) -> str:
    return f"weather:{coordinate.key}"


def _as_number(value: Any, label: str) -> float:
    if isinstance(value, bool):
        raise InvalidCoordinatesError(f"Invalid {label} {value!r}; expected a number.")
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError as exc:
            raise InvalidCoordinatesError(
                f"Invalid {label} {value!r}; expected a number."
            ) from exc
    else:
        raise InvalidCoordinatesError(f"Invalid {label} {value!r}; expected a number.")
    if not math.isfinite(number):
        raise InvalidCoordinatesError(f"Invalid {label} {value!r}; expected a finite number.")
    return number


class WeatherAggregator:
    """Builds a ``WeatherRecord`` for a coordinate pair from the NWS API.

    One call walks CACHE_CHECK, GRID_LOOKUP, FAN_OUT, MERGE, OBSERVATION_FETCH
    and CACHE_WRITE. Only a failed grid lookup, or losing both the forecast and
    the hourly forecast, fails the aggregation; every other sub-request that
    fails simply leaves its field as ``None``.
    """

    def __init__(
        self,
        *,
        http: RetryingHttpClient,
        cache: TTLCache,
        logger: logging.Logger,
        base_url: str = DEFAULT_NWS_BASE_URL,
    ) -> None:
        self.http = http
        self.cache = cache
        self.logger = logger
        self.base_url = base_url.rstrip("/")

    async def get_weather(self, latitude: Any, longitude: Any) -> WeatherRecord:
        coordinate = validate_coordinates(latitude, longitude)
        cache_key = weather_cache_key(coordinate)

        cached = self.cache.get(cache_key)
        if cached is not None:
            self.logger.info("Weather cache hit", extra={"cache_key": cache_key})
            return cached

        points_props = await self._grid_lookup(coordinate)

        forecast_raw, hourly_raw, extended_raw, stations_raw = await asyncio.gather(
            *(self._fetch_dependent(points_props, key) for key in _FAN_OUT_KEYS),
            return_exceptions=True,
        )

        forecast = self._merge_periods(forecast_raw, normalize_forecast, "forecast")
        hourly = self._merge_periods(hourly_raw, normalize_hourly, "hourly forecast")
        if forecast is None and hourly is None:
            raise AggregationFailedError(
                "No weather data available for this location.",
                reason="no_data",
                cause=_first_error(forecast_raw, hourly_raw),
            )
        extended = self._merge_extended(extended_raw)

        current = await self._fetch_observation(stations_raw)

        record = WeatherRecord(
            forecast=forecast,
            hourly=hourly,
            extended=extended,
            current=current,
            location=normalize_location(points_props),
            coordinates=coordinate,
        )
        self.cache.set(cache_key, record)
        self.logger.info(
            "Weather aggregated",
            extra={
                "cache_key": cache_key,
                "forecast": forecast is not None,
                "hourly": hourly is not None,
                "extended": extended is not None,
                "current": current is not None,
            },
        )
        return record

    async def _grid_lookup(self, coordinate: Coordinate) -> Mapping[str, Any]:
        url = f"{self.base_url}/points/{coordinate.key}"
        try:
            payload = await self.http.get_json(url, context="points lookup")
        except (UpstreamError, PayloadValidationError) as exc:
            reason = classify_failure(exc)
            raise AggregationFailedError(
                f"Grid lookup failed for {coordinate.key}: {exc}",
                reason=reason,
                cause=exc,
            ) from exc

        properties = payload.get("properties")
        if not isinstance(properties, Mapping):
            raise AggregationFailedError(
                "Unable to find weather data for this location.",
                reason="not_found",
                cause=PayloadValidationError("Points payload missing 'properties' object."),
            )
        return properties

    async def _fetch_dependent(self, points_props: Mapping[str, Any], key: str) -> dict[str, Any]:
        url = points_props.get(key)
        if not isinstance(url, str) or not url.strip():
            raise PayloadValidationError(f"Points payload missing '{key}' URL.")
        return await self.http.get_json(url.strip(), context=f"{key} fetch")

    def _merge_periods(self, outcome: Any, normalizer: Any, label: str) -> PeriodCollection | None:
        if isinstance(outcome, Exception):
            self.logger.warning("%s request failed: %s", label.capitalize(), outcome)
            return None
        try:
            return normalizer(outcome)
        except PayloadValidationError as exc:
            self.logger.warning("Error validating %s data: %s", label, exc)
            return None

    def _merge_extended(self, outcome: Any) -> dict[str, Any] | None:
        if isinstance(outcome, Exception):
            self.logger.warning("Extended grid data request failed: %s", outcome)
            return None
        properties = outcome.get("properties")
        return dict(properties) if isinstance(properties, Mapping) else None

    async def _fetch_observation(self, stations_outcome: Any) -> dict[str, Any] | None:
        if isinstance(stations_outcome, Exception):
            self.logger.warning("Observation station request failed: %s", stations_outcome)
            return None
        station_id = extract_station_id(stations_outcome)
        if station_id is None:
            return None

        url = f"{self.base_url}/stations/{station_id}/observations/latest"
        try:
            payload = await self.http.get_json(url, context="latest observation")
        except (UpstreamError, PayloadValidationError) as exc:
            self.logger.warning("Error fetching current conditions: %s", exc)
            return None
        properties = payload.get("properties")
        return dict(properties) if isinstance(properties, Mapping) else None


def _first_error(*outcomes: Any) -> Exception | None:
    for outcome in outcomes:
        if isinstance(outcome, Exception):
            return outcome
    return None
