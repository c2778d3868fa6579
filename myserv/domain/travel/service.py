"""Travel service - maps stored providers onto pricing inputs and serves price previews"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...models import ServiceProvider
from ..bookings.errors import NotFoundError, PricingFailureError, ValidationError
from ..providers.repository import ProviderRepository
from .calculator import TravelPricingEngine
from .schemas import Coordinates, LocationInput, TravelPolicy, TravelQuoteRequest, TravelQuoteResponse

logger = logging.getLogger(__name__)

ADDRESS_COUNTRY = "Brasil"


def build_address_string(parts: list[Optional[str]]) -> Optional[str]:
    """Join the non-empty address parts, or None when nothing usable remains"""
    value = ", ".join(str(p).strip() for p in parts if p and str(p).strip())
    return value or None


def provider_location(provider: ServiceProvider) -> LocationInput:
    coords = None
    if provider.latitude is not None and provider.longitude is not None:
        coords = Coordinates(lat=provider.latitude, lng=provider.longitude)

    street = provider.street
    if provider.street and provider.number:
        street = f"{provider.street}, {provider.number}"

    address = build_address_string(
        [street, provider.district, provider.city, provider.state, provider.zip_code]
    )
    return LocationInput(
        coords=coords,
        address_string=build_address_string([address, ADDRESS_COUNTRY]) if address else None,
    )


def client_location(
    address: Optional[str],
    city: Optional[str],
    state: Optional[str],
    zip_code: Optional[str],
    lat: Optional[float] = None,
    lng: Optional[float] = None,
) -> LocationInput:
    coords = Coordinates(lat=lat, lng=lng) if lat is not None and lng is not None else None
    parts = build_address_string([address, city, state, zip_code])
    return LocationInput(
        coords=coords,
        address_string=build_address_string([parts, ADDRESS_COUNTRY]) if parts else None,
    )


def travel_policy(provider: ServiceProvider, charges_travel: bool) -> TravelPolicy:
    """Fee parameters come from the provider; whether they apply comes from the caller"""
    return TravelPolicy(
        charges_travel=charges_travel,
        rate_per_km=provider.travel_rate_per_km,
        minimum_fee=provider.travel_minimum_fee,
        fixed_fee=provider.travel_fixed_fee,
        waives_travel_on_hire=provider.waives_travel_on_hire,
    )


class TravelQuoteService:
    """Price preview for a provider/client pair, before any booking exists"""

    def __init__(self, db: Session, engine: Optional[TravelPricingEngine] = None):
        self.db = db
        self.repo = ProviderRepository()
        self.engine = engine or TravelPricingEngine()

    async def preview(self, data: TravelQuoteRequest) -> TravelQuoteResponse:
        provider = self.repo.get_provider(self.db, data.provider_id)
        if not provider:
            raise NotFoundError("Provider not found")

        charges_travel = provider.charges_travel
        base_price = None
        service_name = None
        if data.service_id is not None:
            link = self.repo.get_service_link(self.db, provider.id, data.service_id)
            if not link:
                raise NotFoundError("Service not offered by this provider")
            charges_travel = link.charges_travel
            base_price = link.base_price
            service_name = link.service.name

        origin = provider_location(provider)
        if origin.coords is None and not origin.address_string:
            raise ValidationError("Provider has no registered address")

        quote = await self.engine.quote(
            origin,
            client_location(
                data.client_address,
                data.client_city,
                data.client_state,
                data.client_zip_code,
                data.client_lat,
                data.client_lng,
            ),
            travel_policy(provider, charges_travel),
            base_price,
        )
        if not quote.success:
            raise PricingFailureError("Could not calculate travel cost", quote.warnings)

        return TravelQuoteResponse(
            provider_id=provider.id,
            provider_name=provider.user.name if provider.user else None,
            service_id=data.service_id,
            service_name=service_name,
            travel=quote,
        )
