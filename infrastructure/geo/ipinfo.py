"""ipinfo.io "lite" implementation of GeoLookupProvider.

Returns the raw response: status handling (rate limiting, retry-after,
caching) belongs to services.geo_resolver, which knows the retry policy.
"""

from urllib.parse import quote

import httpx

from infrastructure.http_client import HttpClient


class IpinfoLiteProvider:
    def __init__(self, token: str, http_client: HttpClient, host: str = "api.ipinfo.io") -> None:
        self._token = token
        self._http = http_client
        self._host = host

    def country_url(self, ip: str) -> str:
        return f"https://{self._host}/lite/{quote(ip, safe=':')}/country"

    async def country(self, ip: str) -> httpx.Response:
        return await self._http.get(self.country_url(ip), params={"token": self._token})
