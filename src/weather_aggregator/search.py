"""Location search over the Open-Meteo geocoding API."""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from typing import Any

from .cache import TTLCache
from .exceptions import PayloadValidationError, SearchFailedError, UpstreamError
from .http import RetryingHttpClient
from .models import LocationResult
from .normalize import title_case

DEFAULT_GEOCODING_BASE_URL = "https://geocoding-api.open-meteo.com/v1"
US_COUNTRY = "United States"


class LocationSearchClient:
    """Geocoding search with filtering, US-first ordering and caching."""

    def __init__(
        self,
        *,
        http: RetryingHttpClient,
        cache: TTLCache,
        logger: logging.Logger,
        base_url: str = DEFAULT_GEOCODING_BASE_URL,
        candidate_count: int = 10,
        max_results: int = 5,
    ) -> None:
        self.http = http
        self.cache = cache
        self.logger = logger
        self.base_url = base_url.rstrip("/")
        self.candidate_count = candidate_count
        self.max_results = max_results

    async def search(self, query: str) -> list[LocationResult]:
        """Return up to ``max_results`` matches; an empty list is not an error."""
        sanitized = query.strip() if isinstance(query, str) else ""
        if not sanitized:
            return []

        cache_key = f"locations:{sanitized}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            return list(cached)

        try:
            payload = await self.http.get_json(
                f"{self.base_url}/search",
                context="location search",
                params={
                    "name": sanitized,
                    "count": self.candidate_count,
                    "language": "en",
                    "format": "json",
                },
            )
        except (UpstreamError, PayloadValidationError) as exc:
            self.logger.error("Error searching locations: %s", exc)
            raise SearchFailedError("Unable to search for locations. Please try again.") from exc

        results = self._rank(payload.get("results"))
        self.cache.set(cache_key, tuple(results))
        self.logger.info(
            "Location search completed",
            extra={"cache_key": cache_key, "result_count": len(results)},
        )
        return results

    def _rank(self, candidates: Any) -> list[LocationResult]:
        if not isinstance(candidates, list):
            return []
        results = [
            self._to_result(item)
            for item in candidates
            if isinstance(item, Mapping) and _is_complete(item)
        ]
        # list.sort is stable, so each group keeps its upstream order.
        results.sort(key=lambda result: result.country != US_COUNTRY)
        return results[: self.max_results]

    @staticmethod
    def _to_result(item: Mapping[str, Any]) -> LocationResult:
        country = item.get("country")
        return LocationResult(
            name=title_case(str(item["name"]).strip()),
            admin1=str(item["admin1"]).strip(),
            country=country.strip() if isinstance(country, str) else "",
            latitude=f"{float(item['latitude']):.4f}",
            longitude=f"{float(item['longitude']):.4f}",
        )


def _is_complete(item: Mapping[str, Any]) -> bool:
    name = item.get("name")
    admin1 = item.get("admin1")
    if not isinstance(name, str) or not name.strip():
        return False
    if not isinstance(admin1, str) or not admin1.strip():
        return False
    return all(_is_coordinate(item.get(key)) for key in ("latitude", "longitude"))


def _is_coordinate(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        return False
    try:
        number = float(value)
    except (ValueError, OverflowError):
        return False
    return math.isfinite(number)
