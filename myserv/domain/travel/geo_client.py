"""
Geocoding and routing client.

Geocoding uses OpenStreetMap Nominatim; road distance uses an OSRM-compatible
routing service. Both calls are bounded by TRAVEL_HTTP_TIMEOUT_SECONDS and
return None on any failure so pricing can fall back instead of blocking.

NOTE:
Nominatim usage policy requires a valid User-Agent with contact info and
reasonable rate limits. In production, consider running your own
Nominatim/OSRM instances.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from ...config import (
    NOMINATIM_BASE_URL,
    NOMINATIM_COUNTRY_CODES,
    NOMINATIM_USER_AGENT,
    ROUTING_BASE_URL,
    TRAVEL_HTTP_TIMEOUT_SECONDS,
)
from .schemas import Coordinates

logger = logging.getLogger(__name__)


@dataclass
class RouteResult:
    distance_km: float
    duration_minutes: float


class GeoClient:
    def __init__(
        self,
        geocoding_base_url: str = NOMINATIM_BASE_URL,
        routing_base_url: Optional[str] = ROUTING_BASE_URL,
        user_agent: str = NOMINATIM_USER_AGENT,
        country_codes: Optional[str] = NOMINATIM_COUNTRY_CODES,
        timeout: float = TRAVEL_HTTP_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.geocoding_base_url = geocoding_base_url.rstrip("/")
        self.routing_base_url = routing_base_url.rstrip("/") if routing_base_url else None
        self.user_agent = user_agent
        self.country_codes = country_codes
        self.timeout = timeout
        self.transport = transport

    @property
    def routing_enabled(self) -> bool:
        return bool(self.routing_base_url)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            transport=self.transport,
            headers={"User-Agent": self.user_agent, "Accept": "application/json"},
        )

    async def geocode(self, address: str) -> Optional[Coordinates]:
        """Resolve a free-form address to coordinates, or None"""
        address = (address or "").strip()
        if not address:
            return None

        params = {"q": address, "format": "json", "limit": "1"}
        if self.country_codes:
            params["countrycodes"] = self.country_codes

        try:
            async with self._client() as client:
                resp = await client.get(f"{self.geocoding_base_url}/search", params=params)
            if resp.status_code >= 400:
                logger.warning(f"Nominatim error {resp.status_code}: {resp.text[:200]}")
                return None

            results = resp.json()
            if not results:
                logger.info(f"📍 No geocoding match for '{address[:80]}'")
                return None

            coords = Coordinates(lat=float(results[0]["lat"]), lng=float(results[0]["lon"]))
            return coords if coords.is_valid() else None
        except httpx.TimeoutException:
            logger.warning(f"⏱️ Geocoding timed out after {self.timeout}s")
            return None
        except (httpx.HTTPError, ValueError, KeyError, TypeError, IndexError) as e:
            logger.error(f"Geocoding error: {e}")
            return None

    async def route(self, origin: Coordinates, destination: Coordinates) -> Optional[RouteResult]:
        """Driving distance/duration between two points, or None when unavailable"""
        if not self.routing_enabled:
            return None

        # OSRM expects lng,lat pairs
        path = f"{origin.lng},{origin.lat};{destination.lng},{destination.lat}"
        url = f"{self.routing_base_url}/route/v1/driving/{path}"

        try:
            async with self._client() as client:
                resp = await client.get(url, params={"overview": "false"})
            if resp.status_code >= 400:
                logger.warning(f"Routing error {resp.status_code}: {resp.text[:200]}")
                return None

            data = resp.json()
            if data.get("code") != "Ok" or not data.get("routes"):
                logger.warning(f"Routing returned no route: {data.get('code')}")
                return None

            best = data["routes"][0]
            return RouteResult(
                distance_km=float(best["distance"]) / 1000,
                duration_minutes=float(best["duration"]) / 60,
            )
        except httpx.TimeoutException:
            logger.warning(f"⏱️ Routing timed out after {self.timeout}s")
            return None
        except (httpx.HTTPError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.error(f"Routing error: {e}")
            return None
