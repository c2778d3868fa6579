"""Booking router - FastAPI endpoints for booking operations"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from ..travel.router import get_travel_engine
from ..travel.calculator import TravelPricingEngine
from .schemas import (
    BookingCreate,
    BookingEnvelope,
    BookingListResponse,
    BookingSchedule,
    BookingStatus,
    BookingStatusUpdate,
    HoldSweepResult,
)
from .service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["Bookings"])


def get_booking_service(
    db: Session = Depends(get_db),
    engine: TravelPricingEngine = Depends(get_travel_engine),
) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db, travel_engine=engine)


@router.post("", response_model=BookingEnvelope, status_code=201)
async def create_booking(
    data: BookingCreate,
    service: BookingService = Depends(get_booking_service),
):
    """Create a booking or quote request; the provider is notified"""
    booking = await service.create_booking(data)
    return BookingEnvelope(
        booking=service.to_response(booking),
        message="Request created! The provider will be notified.",
    )


@router.get("", response_model=BookingListResponse)
async def list_bookings(
    client_id: Optional[int] = Query(None, alias="clientId"),
    provider_id: Optional[int] = Query(None, alias="providerId"),
    status: Optional[BookingStatus] = Query(None),
    service: BookingService = Depends(get_booking_service),
):
    """List bookings, newest first"""
    bookings = service.list_bookings(client_id, provider_id, status)
    return BookingListResponse(bookings=[service.to_response(b) for b in bookings])


@router.get("/{booking_id}", response_model=BookingEnvelope)
async def get_booking(
    booking_id: int,
    service: BookingService = Depends(get_booking_service),
):
    return BookingEnvelope(booking=service.to_response(service.get_booking(booking_id)))


@router.patch("/{booking_id}/status", response_model=BookingEnvelope)
async def update_booking_status(
    booking_id: int,
    data: BookingStatusUpdate,
    service: BookingService = Depends(get_booking_service),
):
    """Accept, reject, complete or cancel a booking"""
    booking = await service.update_status(booking_id, data)
    return BookingEnvelope(booking=service.to_response(booking), message=f"Booking {booking.status.lower()}")


@router.patch("/{booking_id}/schedule", response_model=BookingEnvelope)
async def schedule_quote(
    booking_id: int,
    data: BookingSchedule,
    service: BookingService = Depends(get_booking_service),
):
    """Give a quote a date and time; it becomes an accepted booking"""
    day, hhmm = data.slot()
    booking = await service.schedule_quote(booking_id, day, hhmm)
    return BookingEnvelope(booking=service.to_response(booking), message="Quote scheduled")


@router.post("/holds/release-expired", response_model=HoldSweepResult)
async def release_expired_holds(service: BookingService = Depends(get_booking_service)):
    """Release slot claims of expired holds (also run by the worker)"""
    return HoldSweepResult(released=service.release_expired_holds())
