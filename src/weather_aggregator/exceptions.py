"""Application exception classes."""

from __future__ import annotations


class WeatherClientError(Exception):
    """Base class for all weather aggregation errors."""


class ConfigError(WeatherClientError):
    """Raised when configuration is invalid or incomplete."""


class InvalidInputError(WeatherClientError):
    """Raised when caller input is rejected before any network call."""


class InvalidCoordinatesError(InvalidInputError):
    """Raised for non-numeric or out-of-range coordinates."""


class UpstreamError(WeatherClientError):
    """Raised when an upstream HTTP call fails."""


class TransportError(UpstreamError):
    """Raised for timeouts and connection failures."""

    def __init__(self, message: str, *, kind: str = "network") -> None:
        super().__init__(message)
        self.kind = kind


class UpstreamStatusError(UpstreamError):
    """Raised when an upstream responds with a non-success HTTP status."""

    def __init__(self, message: str, *, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        return self.status_code == 429 or self.status_code >= 500


class PayloadValidationError(WeatherClientError):
    """Raised when an upstream payload does not have the expected shape."""


class AggregationFailedError(WeatherClientError):
    """Raised when a weather aggregation cannot produce a usable record."""

    def __init__(
        self,
        message: str,
        *,
        reason: str = "generic",
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.reason = reason
        self.cause = cause

    @property
    def status_code(self) -> int | None:
        if isinstance(self.cause, UpstreamStatusError):
            return self.cause.status_code
        return None


class SearchFailedError(WeatherClientError):
    """Raised when the geocoding search fails hard (not on zero results)."""


_REASON_MESSAGES = {
    "not_found": "No weather data available for this location.",
    "rate_limited": "Rate limited by the weather service. Please retry shortly.",
    "service_unavailable": "Weather service temporarily unavailable. Please try again later.",
    "timed_out": "Request timed out. Check your connection and retry.",
}
_GENERIC_MESSAGE = "Unable to fetch weather data. Please try again."


def classify_failure(exc: BaseException | None) -> str:
    """Map an upstream failure onto a user-facing failure reason."""
    if isinstance(exc, AggregationFailedError):
        return exc.reason
    if isinstance(exc, UpstreamStatusError):
        if exc.status_code == 404:
            return "not_found"
        if exc.status_code == 429:
            return "rate_limited"
        if exc.status_code >= 500:
            return "service_unavailable"
        return "generic"
    if isinstance(exc, TransportError) and exc.kind == "timeout":
        return "timed_out"
    return "generic"


def user_message(exc: BaseException) -> str:
    """Return the message a presentation layer should show for `exc`."""
    if isinstance(exc, InvalidInputError):
        return str(exc)
    if isinstance(exc, SearchFailedError):
        return "Unable to search for locations. Please try again."
    if isinstance(exc, AggregationFailedError) and exc.reason == "no_data":
        return str(exc)
    return _REASON_MESSAGES.get(classify_failure(exc), _GENERIC_MESSAGE)
