"""Reverse geocoding through the public Nominatim (OpenStreetMap) API.

Nominatim's usage policy allows one request per second and requires an
identifying User-Agent, so all clients share one process-wide limiter.
Lookups are advisory: every failure is logged and turned into ``None``.
"""
import asyncio
import logging
import math
from typing import Any, Mapping

import requests

from estate_watch.core.rate_limit import RateLimiter
from estate_watch.models import Address

logger = logging.getLogger(__name__)

NOMINATIM_BASE_URL = "https://nominatim.openstreetmap.org"

HEADERS = {
    "User-Agent": "EstateWatch-Real-Estate-Bot/1.0",
    "Accept": "application/json",
}

NOMINATIM_LIMITER = RateLimiter(limit=1, interval=1.0)


def _is_coordinate(value) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def extract_address(data: Any) -> Address | None:
    """Map a Nominatim ``/reverse`` response body onto :class:`Address`."""
    if not isinstance(data, Mapping) or not isinstance(data.get("address"), Mapping):
        logger.warning("Geocoding: address missing in response")
        return None

    address = data["address"]
    return Address(
        house_number=address.get("house_number") or None,
        street=address.get("road") or None,
        neighbourhood=address.get("neighbourhood") or None,
        suburb=address.get("suburb") or None,
        borough=address.get("borough") or None,
        city=(address.get("city") or address.get("town")
              or address.get("village") or None),
        postcode=address.get("postcode") or None,
        country=address.get("country") or None,
        country_code=address.get("country_code") or None,
        display_name=data.get("display_name") or None,
    )


class GeocodingClient:
    def __init__(self, session: requests.Session | None = None,
                 limiter: RateLimiter | None = None,
                 base_url: str = NOMINATIM_BASE_URL,
                 timeout: float = 30):
        self._session = session or requests.Session()
        self._limiter = limiter or NOMINATIM_LIMITER
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._get = self._limiter.wrap(self._request)

    async def _request(self, params: dict) -> requests.Response:
        return await asyncio.to_thread(
            self._session.get,
            f"{self._base_url}/reverse",
            params=params,
            headers=HEADERS,
            timeout=self._timeout,
        )

    async def reverse_geocode(self, lat, lon) -> Address | None:
        if lat is None or lon is None:
            logger.warning("Geocoding: latitude and longitude are required")
            return None
        if not _is_coordinate(lat) or not _is_coordinate(lon):
            logger.warning("Geocoding: latitude and longitude must be finite numbers "
                           "(got %r, %r)", lat, lon)
            return None

        try:
            resp = await self._get({"lat": lat, "lon": lon, "format": "json"})
        except requests.RequestException as e:
            logger.error("Geocoding: request failed: %s", e)
            return None

        if not resp.ok:
            logger.error("Geocoding: HTTP error %s: %s", resp.status_code, resp.reason)
            return None

        try:
            data = resp.json()
        except ValueError as e:
            logger.error("Geocoding: malformed response: %s", e)
            return None

        if isinstance(data, Mapping) and data.get("error"):
            logger.error("Geocoding: API returned error: %s", data["error"])
            return None

        return extract_address(data)

    async def get_suburb(self, lat, lon) -> str | None:
        address = await self.reverse_geocode(lat, lon)
        return address.suburb if address else None
