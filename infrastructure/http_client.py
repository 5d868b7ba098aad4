"""Shared async HTTP client with configurable timeout."""

from typing import Any

import httpx

_USER_AGENT = "pvlink-analytic/1.0"


class HttpClient:
    """Thin async wrapper around httpx.AsyncClient.

    One instance is shared by every outbound call the worker makes, so the
    connection pool is reused across click events.
    """

    def __init__(self, timeout: float = 5.0) -> None:
        self._client = httpx.AsyncClient(
            timeout=timeout, headers={"User-Agent": _USER_AGENT}
        )

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self._client.get(url, **kwargs)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()
