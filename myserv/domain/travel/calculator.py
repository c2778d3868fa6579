"""
Travel pricing.

Resolves both ends of the trip, measures the distance (routing service first,
straight-line haversine estimate as the explicit fallback) and applies the
provider's fee policy:

    per_km_portion = distance_km * rate_per_km          (0 without a rate)
    travel_cost    = max(per_km_portion + fixed_fee, minimum_fee)
"""

import logging
import math
from typing import Optional

from .geo_client import GeoClient
from .schemas import Coordinates, LocationInput, TravelCostBreakdown, TravelPolicy, TravelQuote

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0


def round2(value: float) -> float:
    return round(value, 2)


def haversine_km(a: Coordinates, b: Coordinates) -> float:
    """Great-circle distance in km"""
    d_lat = math.radians(b.lat - a.lat)
    d_lng = math.radians(b.lng - a.lng)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(a.lat)) * math.cos(math.radians(b.lat)) * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def compute_travel_cost(distance_km: float, policy: TravelPolicy) -> tuple[float, TravelCostBreakdown]:
    """Apply the fee formula; the minimum check runs before rounding"""
    rate = policy.rate_per_km
    fixed_fee = policy.fixed_fee or 0.0
    minimum_fee = policy.minimum_fee or 0.0

    per_km_portion = max(distance_km, 0.0) * rate if rate is not None else 0.0
    subtotal = per_km_portion + fixed_fee
    applied_minimum = subtotal < minimum_fee
    travel_cost = minimum_fee if applied_minimum else subtotal

    breakdown = TravelCostBreakdown(
        per_km_portion=round2(per_km_portion),
        fixed_fee=fixed_fee,
        minimum_fee=minimum_fee,
        applied_minimum=applied_minimum,
        travel_rate_per_km=rate,
        waives_travel_on_hire=policy.waives_travel_on_hire,
    )
    return round2(travel_cost), breakdown


class TravelPricingEngine:
    def __init__(self, geo_client: Optional[GeoClient] = None):
        self.geo_client = geo_client or GeoClient()

    async def _resolve(self, side: str, location: LocationInput) -> tuple[Optional[Coordinates], list[str]]:
        if location.coords is not None and location.coords.is_valid():
            return location.coords, []

        if location.address_string:
            coords = await self.geo_client.geocode(location.address_string)
            if coords:
                logger.info(f"📍 Geocoded {side} address")
                return coords, []
            return None, [f"Could not geocode the {side} address."]

        return None, [f"No {side} location provided."]

    async def quote(
        self,
        provider_location: LocationInput,
        client_location: LocationInput,
        policy: TravelPolicy,
        base_price: Optional[float] = None,
    ) -> TravelQuote:
        estimated_base = round2(base_price) if base_price is not None else None

        if not policy.charges_travel:
            return TravelQuote(
                success=True,
                travel_cost=0.0,
                travel_cost_breakdown=TravelCostBreakdown(
                    waives_travel_on_hire=policy.waives_travel_on_hire
                ),
                estimated_total=estimated_base,
            )

        provider_coords, warnings = await self._resolve("provider", provider_location)
        client_coords, client_warnings = await self._resolve("client", client_location)
        warnings.extend(client_warnings)

        if provider_coords is None or client_coords is None:
            logger.warning(f"⚠️ Travel quote failed, unresolved location: {warnings}")
            return TravelQuote(
                success=False,
                provider_location=provider_coords,
                client_location=client_coords,
                travel_cost=0.0,
                travel_cost_breakdown=TravelCostBreakdown(
                    fixed_fee=policy.fixed_fee or 0.0,
                    minimum_fee=policy.minimum_fee or 0.0,
                    travel_rate_per_km=policy.rate_per_km,
                    waives_travel_on_hire=policy.waives_travel_on_hire,
                ),
                estimated_total=estimated_base,
                used_fallback=True,
                warnings=warnings,
            )

        used_fallback = False
        duration_minutes = None
        route = await self.geo_client.route(provider_coords, client_coords)
        if route is not None:
            distance_km = route.distance_km
            duration_minutes = round2(route.duration_minutes)
        else:
            distance_km = haversine_km(provider_coords, client_coords)
            used_fallback = True
            warnings.append("Routing unavailable; distance is a straight-line estimate.")
            logger.warning(f"📏 Routing unavailable, haversine estimate {distance_km:.2f} km")

        travel_cost, breakdown = compute_travel_cost(distance_km, policy)
        estimated_total = round2(base_price + travel_cost) if base_price is not None else None

        return TravelQuote(
            success=True,
            provider_location=provider_coords,
            client_location=client_coords,
            distance_km=round2(distance_km),
            duration_minutes=duration_minutes,
            travel_cost=travel_cost,
            travel_cost_breakdown=breakdown,
            estimated_total=estimated_total,
            used_fallback=used_fallback,
            warnings=warnings,
        )
