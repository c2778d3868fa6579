"""Booking domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from ...shared.validators import normalize_phone, parse_hhmm, parse_iso_date, validate_email
from ..travel.schemas import TravelCostBreakdown

DEFAULT_SCHEDULED_TIME = "10:00"


class RequestType(str, Enum):
    SCHEDULING = "SCHEDULING"
    QUOTE = "QUOTE"


class BookingStatus(str, Enum):
    HOLD = "HOLD"
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class FulfillmentMode(str, Enum):
    HOME = "HOME"
    LOCAL = "LOCAL"


class CancelledBy(str, Enum):
    CLIENT = "CLIENT"
    PROVIDER = "PROVIDER"


class PaymentMethod(str, Enum):
    PIX = "PIX"
    CASH = "CASH"
    CREDIT_CARD = "CREDIT_CARD"
    DEBIT_CARD = "DEBIT_CARD"
    BANK_TRANSFER = "BANK_TRANSFER"
    OTHER = "OTHER"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BookingCreate(CamelModel):
    """Schema for a client's service request"""

    service_id: int
    provider_id: int
    description: str = Field(..., min_length=10, max_length=2000)
    preferred_date: Optional[str] = None
    preferred_time: Optional[str] = None
    client_name: str = Field(..., min_length=2, max_length=255)
    client_phone: str = Field(..., min_length=10, max_length=50)
    client_email: str = Field(..., max_length=255)
    address: str = Field(..., min_length=5, max_length=500)
    city: str = Field(..., min_length=2, max_length=255)
    state: str = Field(..., min_length=2, max_length=50)
    zip_code: str = Field(..., min_length=8, max_length=20)
    client_lat: Optional[float] = Field(None, ge=-90, le=90)
    client_lng: Optional[float] = Field(None, ge=-180, le=180)
    fulfillment_mode: FulfillmentMode = FulfillmentMode.HOME

    @field_validator("description", "client_name", "address", "city", "state")
    @classmethod
    def strip_text(cls, v):
        return v.strip()

    @field_validator("client_phone")
    @classmethod
    def validate_phone(cls, v):
        return normalize_phone(v)

    @field_validator("client_email")
    @classmethod
    def validate_client_email(cls, v):
        return validate_email(v)

    @field_validator("preferred_date")
    @classmethod
    def validate_preferred_date(cls, v):
        if v:
            return parse_iso_date(v).isoformat()
        return None

    @field_validator("preferred_time")
    @classmethod
    def validate_preferred_time(cls, v):
        if v:
            return parse_hhmm(v).strftime("%H:%M")
        return None

    @model_validator(mode="after")
    def require_date_with_time(self):
        if self.preferred_time and not self.preferred_date:
            raise ValueError("preferredTime requires preferredDate")
        return self

    @property
    def request_type(self) -> RequestType:
        if self.preferred_date or self.preferred_time:
            return RequestType.SCHEDULING
        return RequestType.QUOTE

    def slot(self) -> Optional[tuple[date, str]]:
        """(day, HH:MM) of the requested slot, or None for quotes"""
        if not self.preferred_date:
            return None
        return date.fromisoformat(self.preferred_date), self.preferred_time or DEFAULT_SCHEDULED_TIME


class PaymentInfo(CamelModel):
    method: PaymentMethod
    amount: float = Field(..., ge=0)


class BookingStatusUpdate(CamelModel):
    """Schema for an explicit lifecycle transition"""

    status: BookingStatus
    notes: Optional[str] = Field(None, max_length=2000)  # Replaces the booking description when given
    cancel_reason: Optional[str] = Field(None, min_length=5, max_length=500)
    cancelled_by: Optional[CancelledBy] = None
    payment: Optional[PaymentInfo] = None


class BookingSchedule(CamelModel):
    """Date and time that turn a quote into a scheduled booking"""

    scheduled_date: str
    scheduled_time: str

    @field_validator("scheduled_date")
    @classmethod
    def validate_scheduled_date(cls, v):
        return parse_iso_date(v).isoformat()

    @field_validator("scheduled_time")
    @classmethod
    def validate_scheduled_time(cls, v):
        return parse_hhmm(v).strftime("%H:%M")

    def slot(self) -> tuple[date, str]:
        return date.fromisoformat(self.scheduled_date), self.scheduled_time


class TravelSnapshot(CamelModel):
    distance_km: Optional[float] = None
    duration_minutes: Optional[float] = None
    travel_cost: float = 0.0
    used_fallback: bool = False
    warnings: list[str] = Field(default_factory=list)
    breakdown: Optional[TravelCostBreakdown] = None


class BookingResponse(CamelModel):
    """Booking as exposed to dashboards and history screens"""

    id: int
    public_id: Optional[str] = None
    client_id: int
    provider_id: int
    service_id: int
    service_name: Optional[str] = None
    provider_name: Optional[str] = None
    provider_avatar: Optional[str] = None
    client_name: Optional[str] = None
    client_avatar: Optional[str] = None
    description: str
    request_type: RequestType
    status: BookingStatus
    fulfillment_mode: FulfillmentMode
    scheduled_date: Optional[datetime] = None
    scheduled_time: Optional[str] = None
    expires_at: Optional[datetime] = None
    estimated_price: Optional[float] = None
    base_price_snapshot: Optional[float] = None
    travel_cost: float = 0.0
    travel_rate_per_km_snapshot: Optional[float] = None
    travel_fixed_fee_snapshot: Optional[float] = None
    travel_minimum_fee_snapshot: Optional[float] = None
    scheduling_fee: Optional[float] = None
    travel: Optional[TravelSnapshot] = None
    cancellation_reason: Optional[str] = None
    cancelled_by: Optional[CancelledBy] = None
    cancelled_at: Optional[datetime] = None
    final_price: Optional[float] = None
    payment_method: Optional[str] = None
    created_at: Optional[datetime] = None


class BookingEnvelope(CamelModel):
    success: bool = True
    booking: BookingResponse
    message: Optional[str] = None


class BookingListResponse(CamelModel):
    success: bool = True
    bookings: list[BookingResponse]


class HoldSweepResult(CamelModel):
    released: int


def slot_start(day: date, hhmm: str) -> datetime:
    return datetime.combine(day, parse_hhmm(hhmm))


def slot_key(day: date, hhmm: str) -> str:
    return f"{day.isoformat()}T{hhmm}"


