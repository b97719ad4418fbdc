"""Pure functions that coerce raw NWS payloads into canonical models."""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from typing import Any, Literal

from .exceptions import PayloadValidationError
from .models import (
    DailyForecast,
    ForecastPeriod,
    HumidityValue,
    LocationInfo,
    PeriodCollection,
    PrecipitationValue,
)

_WORD_START_RE = re.compile(r"\b\w")


def normalize_forecast(raw: Any) -> PeriodCollection:
    """Normalize a multi-day forecast payload (``properties.periods``)."""
    return PeriodCollection(periods=_normalize_periods(raw, label="forecast"))


def normalize_hourly(raw: Any) -> PeriodCollection:
    """Normalize an hourly forecast payload (``properties.periods``)."""
    return PeriodCollection(periods=_normalize_periods(raw, label="hourly"))


def _normalize_periods(raw: Any, *, label: str) -> tuple[ForecastPeriod, ...]:
    properties = raw.get("properties") if isinstance(raw, Mapping) else None
    if not isinstance(properties, Mapping):
        raise PayloadValidationError(f"Invalid {label} data structure: missing 'properties'.")

    raw_periods = properties.get("periods")
    if not isinstance(raw_periods, list) or not raw_periods:
        raise PayloadValidationError(f"No {label} periods available.")

    periods = tuple(normalize_period(item) for item in raw_periods if isinstance(item, Mapping))
    if not periods:
        raise PayloadValidationError(f"{label.capitalize()} periods were present but not parseable.")
    return periods


def normalize_period(period: Mapping[str, Any]) -> ForecastPeriod:
    number = period.get("number")
    is_daytime = period.get("isDaytime")
    return ForecastPeriod(
        number=number if _is_int(number) and number else 0,
        name=_as_str(period.get("name"), ""),
        is_daytime=is_daytime if isinstance(is_daytime, bool) else True,
        start_time=parse_datetime(period.get("startTime")),
        end_time=parse_datetime(period.get("endTime")),
        temperature=_as_float(period.get("temperature")),
        temperature_unit=_as_str(period.get("temperatureUnit"), "°F"),
        wind_speed=_as_str(period.get("windSpeed"), "N/A"),
        wind_direction=_as_str(period.get("windDirection"), ""),
        icon=_as_str(period.get("icon"), None),
        short_forecast=_as_str(period.get("shortForecast"), "No forecast available"),
        detailed_forecast=_as_str(period.get("detailedForecast"), ""),
        probability_of_precipitation=PrecipitationValue(
            value=_quantity_value(period.get("probabilityOfPrecipitation"), 0.0)
        ),
        relative_humidity=HumidityValue(
            value=_quantity_value(period.get("relativeHumidity"), None)
        ),
    )


def normalize_location(points_properties: Mapping[str, Any]) -> LocationInfo | None:
    """Build location info from ``relativeLocation`` of a points payload."""
    relative = points_properties.get("relativeLocation")
    relative_props = relative.get("properties") if isinstance(relative, Mapping) else None
    if not isinstance(relative_props, Mapping):
        return None

    city = _as_str(relative_props.get("city"), None)
    return LocationInfo(
        city=title_case(city) if city else None,
        state=_as_str(relative_props.get("state"), None),
        distance=_quantity_value(relative_props.get("distance"), None),
        bearing=_quantity_value(relative_props.get("bearing"), None),
    )


def extract_station_id(stations_payload: Mapping[str, Any]) -> str | None:
    """Return the identifier of the first (nearest) observation station."""
    features = stations_payload.get("features")
    if not isinstance(features, list) or not features:
        return None
    first = features[0]
    props = first.get("properties") if isinstance(first, Mapping) else None
    if not isinstance(props, Mapping):
        return None
    return _as_str(props.get("stationIdentifier"), None)


def group_daily(
    periods: Sequence[ForecastPeriod],
    *,
    max_days: int = 10,
    strategy: Literal["daytime", "paired"] = "daytime",
) -> list[DailyForecast]:
    """Group forecast periods into day/night pairs.

    ``daytime`` starts a new day at every daytime period and takes the period
    right after it as the night, so a forecast that opens with "Tonight" skips
    that leading night. ``paired`` groups strict index pairs (0, 1), (2, 3), ...
    In both strategies a day without a following period reuses itself as night.
    """
    days: list[DailyForecast] = []
    if strategy == "paired":
        starts = range(0, len(periods), 2)
    else:
        starts = (i for i, period in enumerate(periods) if period.is_daytime)

    for index in starts:
        if len(days) >= max_days:
            break
        day = periods[index]
        night = periods[index + 1] if index + 1 < len(periods) else day
        days.append(DailyForecast(name=_first_word(day.name), day=day, night=night))
    return days


def title_case(text: str) -> str:
    """Uppercase the first letter of every word, leaving other letters as-is."""
    return _WORD_START_RE.sub(lambda m: m.group(0).upper(), text)


def parse_datetime(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if not isinstance(value, str):
        return None
    candidate = value.strip()
    if not candidate:
        return None
    if candidate.endswith("Z"):
        candidate = candidate[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def _first_word(name: str) -> str:
    parts = name.split(" ")
    return parts[0] if parts else ""


def _quantity_value(quantity: Any, default: float | None) -> float | None:
    # NWS quantities look like {"unitCode": "wmoUnit:percent", "value": 20}.
    if isinstance(quantity, Mapping):
        value = _as_float(quantity.get("value"))
        if value is not None:
            return value
    return default


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _as_float(value: Any) -> float | None:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    return None


def _as_str(value: Any, default: str | None) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default
