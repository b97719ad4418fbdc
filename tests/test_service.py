"""Facade wiring: shared cache, separate upstream clients, radar helpers."""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime
from typing import Any

import httpx
import pytest

from weather_aggregator.cache import TTLCache
from weather_aggregator.config import Settings
from weather_aggregator.service import WeatherService

GRID = "https://api.weather.gov/gridpoints/BOU/62,60"


def _nws_routes() -> dict[str, Any]:
    periods = {"properties": {"periods": [{"name": "Today", "temperature": 55}]}}
    return {
        "/points/39.7392,-104.9903": {
            "properties": {
                "forecast": f"{GRID}/forecast",
                "forecastHourly": f"{GRID}/forecast/hourly",
                "forecastGridData": GRID,
                "observationStations": f"{GRID}/stations",
                "relativeLocation": {"properties": {"city": "Denver", "state": "CO"}},
            }
        },
        "/gridpoints/BOU/62,60/forecast": periods,
        "/gridpoints/BOU/62,60/forecast/hourly": periods,
        "/gridpoints/BOU/62,60": {"properties": {}},
        "/gridpoints/BOU/62,60/stations": {"features": []},
    }


@pytest.fixture
def settings(monkeypatch: pytest.MonkeyPatch) -> Settings:
    monkeypatch.delenv("RADAR_TILE_BASE_URL", raising=False)
    monkeypatch.setenv("HTTP_RETRY_DELAY_SECONDS", "0")
    return Settings(_env_file=None)


def _make_service(settings: Settings, seen: list[tuple[str, str | None]]) -> WeatherService:
    routes = _nws_routes()

    def nws(request: httpx.Request) -> httpx.Response:
        seen.append((request.url.host, request.headers.get("accept")))
        return httpx.Response(200, json=routes[request.url.path])

    def geocoding(request: httpx.Request) -> httpx.Response:
        seen.append((request.url.host, request.headers.get("accept")))
        return httpx.Response(
            200,
            json={
                "results": [
                    {
                        "name": "denver",
                        "latitude": 39.7392,
                        "longitude": -104.9847,
                        "admin1": "Colorado",
                        "country": "United States",
                    }
                ]
            },
        )

    return WeatherService(
        settings,
        logging.getLogger("test_service"),
        nws_transport=httpx.MockTransport(nws),
        geocoding_transport=httpx.MockTransport(geocoding),
    )


def test_weather_and_search_share_one_cache(settings: Settings) -> None:
    seen: list[tuple[str, str | None]] = []

    async def _run() -> None:
        async with _make_service(settings, seen) as service:
            record = await service.get_weather(39.7392, -104.9903)
            results = await service.search_locations("denver")

            assert record.location is not None and record.location.city == "Denver"
            assert results[0].name == "Denver"
            assert results[0].latitude == "39.7392"
            assert service.cache.get("weather:39.7392,-104.9903") is record
            assert service.cache.get("locations:denver") is not None

    asyncio.run(_run())

    assert ("api.weather.gov", "application/geo+json") in seen
    assert ("geocoding-api.open-meteo.com", "application/json") in seen


def test_radar_helpers_use_configured_base(
    monkeypatch: pytest.MonkeyPatch, settings: Settings
) -> None:
    monkeypatch.setenv("RADAR_TILE_BASE_URL", "https://radar.example.test")
    service = WeatherService(Settings(_env_file=None), logging.getLogger("test_service"))
    moment = datetime(2026, 2, 24, 14, 37, tzinfo=UTC)

    url = service.radar_tile_url(moment, "mrms_precip")
    assert url.startswith("https://radar.example.test/tiles/mrms/qpe/20260224T1435/")
    assert len(service.radar_timestamps(moment)) == 25
    assert len(service.radar_products()) == 4
    asyncio.run(service.aclose())


def test_injected_empty_cache_is_used_as_is(settings: Settings) -> None:
    cache = TTLCache(ttl_seconds=60)
    service = WeatherService(settings, logging.getLogger("test_service"), cache=cache)

    assert len(cache) == 0
    assert service.cache is cache
    assert service.aggregator.cache is cache
    assert service.searcher.cache is cache
    asyncio.run(service.aclose())


def test_from_settings_builds_service_with_configured_ttl(
    monkeypatch: pytest.MonkeyPatch, settings: Settings
) -> None:
    monkeypatch.setenv("CACHE_TTL_SECONDS", "42")
    configured = Settings(_env_file=None)
    service = WeatherService.from_settings(configured, logging.getLogger("test_service"))

    assert isinstance(service, WeatherService)
    assert service.settings is configured
    assert service.cache.ttl_seconds == 42
    assert service.aggregator.cache is service.cache
    asyncio.run(service.aclose())
