"""Async HTTP client with bounded retries and linear-growth backoff."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from .exceptions import PayloadValidationError, TransportError, UpstreamStatusError


class RetryingHttpClient:
    """GET-JSON client that retries transport failures, HTTP 5xx and HTTP 429.

    The delay before retry ``n`` (1-based) is ``retry_delay_seconds * n``, so the
    default policy waits 1s then 2s. Any other 4xx fails on the first attempt.
    Each attempt gets its own ``timeout_seconds`` deadline; a timed-out attempt
    is a transport failure like any other. A malformed URL fails at once.
    """

    def __init__(
        self,
        *,
        logger: logging.Logger,
        user_agent: str,
        accept: str = "application/json",
        timeout_seconds: float = 10.0,
        max_retries: int = 2,
        retry_delay_seconds: float = 1.0,
        base_url: str = "",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.logger = logger
        self.max_retries = max_retries
        self.retry_delay_seconds = retry_delay_seconds
        self.timeout_seconds = timeout_seconds
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_seconds,
            headers={"Accept": accept, "User-Agent": user_agent},
            transport=transport,
        )

    async def __aenter__(self) -> RetryingHttpClient:
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, exc_tb: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def backoff_seconds(self, retry_number: int) -> float:
        return self.retry_delay_seconds * retry_number

    async def get_json(
        self,
        url: str,
        *,
        context: str,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """GET ``url`` and return its JSON object body."""
        attempts = self.max_retries + 1
        for attempt in range(attempts):
            try:
                async with asyncio.timeout(self.timeout_seconds):
                    response = await self._client.get(url, params=params)
                response.raise_for_status()
            except httpx.InvalidURL as exc:
                raise TransportError(
                    f"{context} has an invalid URL: {exc}", kind="invalid_url"
                ) from exc
            except TimeoutError as exc:
                if attempt == attempts - 1:
                    raise TransportError(
                        f"{context} exceeded {self.timeout_seconds}s deadline at {url}",
                        kind="timeout",
                    ) from exc
                self._log_retry(context, attempt, "deadline exceeded")
            except httpx.HTTPStatusError as exc:
                status = exc.response.status_code
                error = UpstreamStatusError(
                    f"{context} failed with status {status} at {exc.request.url}",
                    status_code=status,
                )
                if not error.retryable or attempt == attempts - 1:
                    raise error from exc
                self._log_retry(context, attempt, f"HTTP {status}")
            except httpx.HTTPError as exc:
                kind = "timeout" if isinstance(exc, httpx.TimeoutException) else "network"
                if attempt == attempts - 1:
                    raise TransportError(
                        f"{context} request failed ({type(exc).__name__}) at {url}",
                        kind=kind,
                    ) from exc
                self._log_retry(context, attempt, type(exc).__name__)
            else:
                return self._decode(response, context=context)

            delay = self.backoff_seconds(attempt + 1)
            if delay > 0:
                await asyncio.sleep(delay)

        raise TransportError(f"{context} made no attempts (max_retries={self.max_retries}).")

    def _log_retry(self, context: str, attempt: int, failure: str) -> None:
        self.logger.warning(
            "%s failed (%s); retrying attempt=%d/%d delay_s=%.1f",
            context,
            failure,
            attempt + 2,
            self.max_retries + 1,
            self.backoff_seconds(attempt + 1),
        )

    @staticmethod
    def _decode(response: httpx.Response, *, context: str) -> dict[str, Any]:
        try:
            payload = response.json()
        except ValueError as exc:
            raise PayloadValidationError(
                f"{context} returned non-JSON response at {response.request.url}."
            ) from exc
        if not isinstance(payload, dict):
            raise PayloadValidationError(
                f"{context} returned unexpected payload type {type(payload).__name__}."
            )
        return payload
