"""Resilient aggregation client for NWS weather data and location search."""

from .aggregator import WeatherAggregator, round_coordinate, validate_coordinates
from .cache import TTLCache
from .exceptions import (
    AggregationFailedError,
    InvalidCoordinatesError,
    SearchFailedError,
    TransportError,
    UpstreamStatusError,
    user_message,
)
from .http import RetryingHttpClient
from .models import ForecastPeriod, LocationResult, WeatherRecord
from .radar import radar_products, radar_tile_url, radar_timestamps
from .search import LocationSearchClient
from .service import WeatherService

__all__ = [
    "AggregationFailedError",
    "ForecastPeriod",
    "InvalidCoordinatesError",
    "LocationResult",
    "LocationSearchClient",
    "RetryingHttpClient",
    "SearchFailedError",
    "TTLCache",
    "TransportError",
    "UpstreamStatusError",
    "WeatherAggregator",
    "WeatherRecord",
    "WeatherService",
    "radar_products",
    "radar_tile_url",
    "radar_timestamps",
    "round_coordinate",
    "user_message",
    "validate_coordinates",
]
