"""Location search filtering, ordering, truncation, caching and failures."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx
import pytest

from weather_aggregator.cache import TTLCache
from weather_aggregator.exceptions import SearchFailedError
from weather_aggregator.http import RetryingHttpClient
from weather_aggregator.models import LocationResult
from weather_aggregator.search import LocationSearchClient, _is_complete

GEOCODING_BASE = "https://geocoding-api.open-meteo.com/v1"


class Geocoder:
    def __init__(self, payload: Any = None, status: int = 200) -> None:
        self.payload = payload if payload is not None else {"results": []}
        self.status = status
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status != 200:
            return httpx.Response(self.status)
        return httpx.Response(200, json=self.payload)


def _candidate(name: str, country: str, **overrides: Any) -> dict[str, Any]:
    candidate = {
        "name": name,
        "latitude": 40.712776,
        "longitude": -74.005974,
        "admin1": "Somewhere",
        "country": country,
    }
    candidate.update(overrides)
    return candidate


def _make_client(geocoder: Geocoder, cache: TTLCache | None = None) -> LocationSearchClient:
    logger = logging.getLogger("test_search")
    http = RetryingHttpClient(
        logger=logger,
        user_agent="weather-aggregator-tests/0.1",
        timeout_seconds=5.0,
        retry_delay_seconds=0.0,
        transport=httpx.MockTransport(geocoder),
    )
    return LocationSearchClient(
        http=http,
        cache=cache if cache is not None else TTLCache(),
        logger=logger,
        base_url=GEOCODING_BASE,
    )


def _search(client: LocationSearchClient, query: str) -> list[LocationResult]:
    return asyncio.run(client.search(query))


def test_us_results_first_with_stable_order() -> None:
    geocoder = Geocoder(
        {
            "results": [
                _candidate("paris", "France"),
                _candidate("paris", "United States", admin1="Texas"),
                _candidate("paris", "United States", admin1="Tennessee"),
                _candidate("paris", "Canada", admin1="Ontario"),
            ]
        }
    )

    results = _search(_make_client(geocoder), "paris")

    assert [(r.country, r.admin1) for r in results] == [
        ("United States", "Texas"),
        ("United States", "Tennessee"),
        ("France", "Somewhere"),
        ("Canada", "Ontario"),
    ]


def test_results_are_title_cased_and_rounded() -> None:
    geocoder = Geocoder({"results": [_candidate("new york city", "United States")]})

    result = _search(_make_client(geocoder), "new york")[0]

    assert result.name == "New York City"
    assert result.latitude == "40.7128"
    assert result.longitude == "-74.0060"


def test_incomplete_candidates_are_filtered() -> None:
    geocoder = Geocoder(
        {
            "results": [
                _candidate("", "United States"),
                _candidate("Nowhere", "United States", admin1=None),
                _candidate("Lost", "United States", latitude=None),
                _candidate("Adrift", "United States", longitude="east"),
                {"name": "Partial"},
                "garbage",
                _candidate("Equator Town", "Ecuador", latitude=0),
                _candidate("Springfield", "United States"),
            ]
        }
    )

    results = _search(_make_client(geocoder), "town")

    assert [r.name for r in results] == ["Springfield", "Equator Town"]
    assert results[1].latitude == "0.0000"


def test_non_finite_coordinates_are_filtered() -> None:
    geocoder = Geocoder(
        {
            "results": [
                _candidate("Nan Town", "United States", latitude="nan"),
                _candidate("Far Away", "United States", longitude="inf"),
                _candidate("Below", "United States", latitude="-Infinity"),
                _candidate("Springfield", "United States"),
            ]
        }
    )

    results = _search(_make_client(geocoder), "town")

    assert [r.name for r in results] == ["Springfield"]
    assert not _is_complete(_candidate("Float Nan", "United States", latitude=float("nan")))
    assert not _is_complete(_candidate("Huge", "United States", longitude=10**400))


def test_results_truncated_to_five() -> None:
    geocoder = Geocoder(
        {"results": [_candidate(f"Place {i}", "Germany") for i in range(10)]}
    )
    results = _search(_make_client(geocoder), "place")
    assert [r.name for r in results] == [f"Place {i}" for i in range(5)]


def test_truncation_happens_after_us_first_sort() -> None:
    candidates = [_candidate(f"Foreign {i}", "Mexico") for i in range(6)]
    candidates.append(_candidate("Domestic", "United States"))
    results = _search(_make_client(Geocoder({"results": candidates})), "x")
    assert results[0].name == "Domestic"
    assert len(results) == 5


@pytest.mark.parametrize("query", ["", "   ", "\t\n"])
def test_blank_query_returns_empty_without_calling_upstream(query: str) -> None:
    geocoder = Geocoder()
    assert _search(_make_client(geocoder), query) == []
    assert geocoder.requests == []


def test_query_is_trimmed_and_sent_with_expected_params() -> None:
    geocoder = Geocoder({"results": [_candidate("Boston", "United States")]})
    _search(_make_client(geocoder), "  Boston  ")

    params = geocoder.requests[0].url.params
    assert geocoder.requests[0].url.path == "/v1/search"
    assert params["name"] == "Boston"
    assert params["count"] == "10"
    assert params["language"] == "en"
    assert params["format"] == "json"


def test_repeat_query_is_served_from_cache() -> None:
    cache = TTLCache()
    geocoder = Geocoder({"results": [_candidate("Boston", "United States")]})
    client = _make_client(geocoder, cache)

    first = _search(client, "Boston")
    second = _search(client, " Boston ")

    assert first == second
    assert len(geocoder.requests) == 1
    assert cache.get("locations:Boston") is not None


def test_zero_results_is_success_and_cached() -> None:
    geocoder = Geocoder({"generationtime_ms": 0.2})
    client = _make_client(geocoder)

    assert _search(client, "qwertyuiop") == []
    assert _search(client, "qwertyuiop") == []
    assert len(geocoder.requests) == 1


def test_upstream_failure_raises_search_failed() -> None:
    geocoder = Geocoder(status=500)
    with pytest.raises(SearchFailedError, match="Unable to search for locations"):
        _search(_make_client(geocoder), "Denver")
    assert len(geocoder.requests) == 3


def test_client_error_is_not_retried() -> None:
    geocoder = Geocoder(status=400)
    with pytest.raises(SearchFailedError):
        _search(_make_client(geocoder), "Denver")
    assert len(geocoder.requests) == 1
