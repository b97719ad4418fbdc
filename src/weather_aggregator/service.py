"""Collaborator-facing facade wiring cache, HTTP clients and pipelines."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

import httpx

from .aggregator import WeatherAggregator
from .cache import TTLCache
from .config import Settings
from .http import RetryingHttpClient
from .models import LocationResult, RadarProduct, WeatherRecord
from .radar import radar_products, radar_tile_url, radar_timestamps
from .search import LocationSearchClient


class WeatherService:
    """Single entry point for presentation code.

    Weather aggregation and location search share one TTL cache; each has its
    own HTTP client because the two upstreams use different timeouts and
    media types.
    """

    def __init__(
        self,
        settings: Settings,
        logger: logging.Logger,
        *,
        cache: TTLCache | None = None,
        nws_transport: httpx.AsyncBaseTransport | None = None,
        geocoding_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings
        self.logger = logger
        if cache is None:
            cache = TTLCache(ttl_seconds=settings.cache_ttl_seconds)
        self.cache = cache
        self._nws_http = RetryingHttpClient(
            logger=logger,
            user_agent=settings.nws_user_agent,
            accept="application/geo+json",
            timeout_seconds=settings.weather_timeout_seconds,
            max_retries=settings.http_max_retries,
            retry_delay_seconds=settings.http_retry_delay_seconds,
            transport=nws_transport,
        )
        self._geocoding_http = RetryingHttpClient(
            logger=logger,
            user_agent=settings.nws_user_agent,
            accept="application/json",
            timeout_seconds=settings.geocoding_timeout_seconds,
            max_retries=settings.http_max_retries,
            retry_delay_seconds=settings.http_retry_delay_seconds,
            transport=geocoding_transport,
        )
        self.aggregator = WeatherAggregator(
            http=self._nws_http,
            cache=self.cache,
            logger=logger,
            base_url=settings.nws_base,
        )
        self.searcher = LocationSearchClient(
            http=self._geocoding_http,
            cache=self.cache,
            logger=logger,
            base_url=settings.geocoding_base,
            candidate_count=settings.search_candidate_count,
            max_results=settings.search_max_results,
        )

    @classmethod
    def from_settings(cls, settings: Settings, logger: logging.Logger) -> WeatherService:
        """Build a service talking to the real upstreams with a fresh TTL cache."""
        return cls(settings, logger, cache=TTLCache(ttl_seconds=settings.cache_ttl_seconds))

    async def __aenter__(self) -> WeatherService:
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, exc_tb: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._nws_http.aclose()
        await self._geocoding_http.aclose()

    async def get_weather(self, latitude: Any, longitude: Any) -> WeatherRecord:
        return await self.aggregator.get_weather(latitude, longitude)

    async def search_locations(self, query: str) -> list[LocationResult]:
        return await self.searcher.search(query)

    def radar_tile_url(
        self, timestamp: datetime | str | None = None, product: str = "standard"
    ) -> str:
        return radar_tile_url(timestamp, product, base_url=self.settings.radar_tile_base)

    def radar_timestamps(self, now: datetime | None = None) -> list[str]:
        return radar_timestamps(now)

    def radar_products(self) -> tuple[RadarProduct, ...]:
        return radar_products()
