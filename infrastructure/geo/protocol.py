"""GeoLookupProvider protocol. The resolver depends on this, not on the concrete API client."""

from typing import Protocol

import httpx


class GeoLookupProvider(Protocol):
    async def country(self, ip: str) -> httpx.Response: ...
