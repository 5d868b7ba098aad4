"""
Cache-aside country resolution for click events.

Lookup order for an IP:
  1. Redis (GeoCache). A hit is returned as-is.
  2. The geo API, at most ``max_attempts`` calls:
       200  -> trimmed body is the country; cached, returned. An empty body
               is no answer: UNKNOWN_COUNTRY, not cached
       429  -> sleep for ``retry-after`` seconds and try again; without the
               header the upstream gave no way to back off, so give up.
               No sleep follows the last attempt
       else -> UNKNOWN_COUNTRY, not cached (a transient outcome, not a fact)

Only confirmed answers are cached so a flaky upstream never poisons the
cache. Running out of attempts raises ResolutionExhaustedError.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional

import httpx

from errors import (
    GeoLookupError,
    InvalidRetryAfterError,
    RateLimitError,
    ResolutionExhaustedError,
)
from infrastructure.cache.geo_cache import GeoCache
from infrastructure.geo.protocol import GeoLookupProvider
from shared.logging import get_logger

log = get_logger(__name__)

UNKNOWN_COUNTRY = "XX"

SleepFn = Callable[[float], Awaitable[None]]


def parse_retry_after(value: Optional[str]) -> Optional[int]:
    """Return the retry-after header as whole seconds, or None when absent.

    Raises:
        InvalidRetryAfterError: the header is present but not a non-negative integer.
    """
    if value is None:
        return None
    raw = value.strip()
    if not (raw.isascii() and raw.isdigit()):
        raise InvalidRetryAfterError(
            "retry-after header is not an integer", details={"retry_after": value}
        )
    return int(raw)


class GeoResolver:
    def __init__(
        self,
        cache: GeoCache,
        provider: GeoLookupProvider,
        max_attempts: int = 3,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self._cache = cache
        self._provider = provider
        self._max_attempts = max_attempts
        self._sleep = sleep

    async def resolve(self, ip: Optional[str]) -> str:
        if ip is None:
            return UNKNOWN_COUNTRY

        cached = await self._cache.get(ip)
        if cached is not None:
            return cached

        for attempt in range(1, self._max_attempts + 1):
            response = await self._request(ip)

            if response.status_code == httpx.codes.TOO_MANY_REQUESTS:
                delay = parse_retry_after(response.headers.get("retry-after"))
                if delay is None:
                    raise RateLimitError(
                        "geo API rate limited without retry-after",
                        details={"attempt": attempt},
                    )
                log.warning(
                    "geo_api_rate_limited",
                    attempt=attempt,
                    max_attempts=self._max_attempts,
                    retry_after=delay,
                )
                if attempt < self._max_attempts:
                    await self._sleep(delay)
                continue

            if response.status_code == httpx.codes.OK:
                country = response.text.strip()
                if not country:
                    return UNKNOWN_COUNTRY
                await self._cache.set(ip, country)
                return country

            log.debug("geo_api_unexpected_status", status_code=response.status_code)
            return UNKNOWN_COUNTRY

        raise ResolutionExhaustedError(
            f"no geo answer after {self._max_attempts} attempts",
            details={"attempts": self._max_attempts},
        )

    async def _request(self, ip: str) -> httpx.Response:
        try:
            return await self._provider.country(ip)
        except httpx.HTTPError as e:
            raise GeoLookupError(
                "geo API request failed", details={"error_type": type(e).__name__}
            ) from e
