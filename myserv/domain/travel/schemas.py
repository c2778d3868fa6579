"""Travel domain schemas - locations, policy and the computed quote"""

import math
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Coordinates(CamelModel):
    lat: float
    lng: float

    def is_valid(self) -> bool:
        return (
            math.isfinite(self.lat)
            and math.isfinite(self.lng)
            and -90 <= self.lat <= 90
            and -180 <= self.lng <= 180
        )


class LocationInput(CamelModel):
    """One side of a trip: coordinates when known, otherwise an address to geocode"""

    coords: Optional[Coordinates] = None
    address_string: Optional[str] = None


class TravelPolicy(CamelModel):
    charges_travel: bool = False
    rate_per_km: Optional[float] = Field(None, ge=0)
    minimum_fee: Optional[float] = Field(None, ge=0)
    fixed_fee: Optional[float] = Field(None, ge=0)
    waives_travel_on_hire: Optional[bool] = None


class TravelCostBreakdown(CamelModel):
    per_km_portion: float = 0.0
    fixed_fee: float = 0.0
    minimum_fee: float = 0.0
    applied_minimum: bool = False
    travel_rate_per_km: Optional[float] = None
    waives_travel_on_hire: Optional[bool] = None


class TravelQuote(CamelModel):
    success: bool
    provider_location: Optional[Coordinates] = None
    client_location: Optional[Coordinates] = None
    distance_km: Optional[float] = None
    duration_minutes: Optional[float] = None
    travel_cost: float = 0.0
    travel_cost_breakdown: TravelCostBreakdown = Field(default_factory=TravelCostBreakdown)
    estimated_total: Optional[float] = None
    used_fallback: bool = False
    warnings: list[str] = Field(default_factory=list)


class TravelQuoteRequest(CamelModel):
    """Price preview request for a provider and a client location"""

    provider_id: int
    service_id: Optional[int] = None
    client_lat: Optional[float] = None
    client_lng: Optional[float] = None
    client_address: Optional[str] = None
    client_city: Optional[str] = None
    client_state: Optional[str] = None
    client_zip_code: Optional[str] = None

    @model_validator(mode="after")
    def require_location(self):
        has_coords = self.client_lat is not None and self.client_lng is not None
        if not (has_coords or self.client_address or self.client_city or self.client_state):
            raise ValueError("Provide the client address or coordinates")
        return self


class TravelQuoteResponse(CamelModel):
    success: bool = True
    provider_id: int
    provider_name: Optional[str] = None
    service_id: Optional[int] = None
    service_name: Optional[str] = None
    travel: TravelQuote
