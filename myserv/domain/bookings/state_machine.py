"""
Booking lifecycle.

    HOLD     → ACCEPTED | REJECTED | CANCELLED
    PENDING  → ACCEPTED | REJECTED | CANCELLED
    ACCEPTED → COMPLETED | CANCELLED

COMPLETED, REJECTED and CANCELLED are terminal. A HOLD past its expires_at
no longer owns its slot and cannot move anywhere.

A QUOTE that is still PENDING or ACCEPTED can be given a slot, which turns it
into an ACCEPTED SCHEDULING booking.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from ...models import Booking
from .errors import InvalidTransitionError, ValidationError
from .schemas import BookingStatus, BookingStatusUpdate, RequestType

logger = logging.getLogger(__name__)

VALID_TRANSITIONS = {
    BookingStatus.HOLD: {BookingStatus.ACCEPTED, BookingStatus.REJECTED, BookingStatus.CANCELLED},
    BookingStatus.PENDING: {BookingStatus.ACCEPTED, BookingStatus.REJECTED, BookingStatus.CANCELLED},
    BookingStatus.ACCEPTED: {BookingStatus.COMPLETED, BookingStatus.CANCELLED},
    BookingStatus.REJECTED: set(),  # Terminal
    BookingStatus.COMPLETED: set(),  # Terminal
    BookingStatus.CANCELLED: set(),  # Terminal
}

# States that always occupy their slot; HOLD occupies it only until expiry
ALWAYS_LIVE = (BookingStatus.PENDING, BookingStatus.ACCEPTED, BookingStatus.COMPLETED)

# Entering these frees the slot for other clients
RELEASING = (BookingStatus.REJECTED, BookingStatus.CANCELLED)


def initial_state(
    request_type: RequestType, auto_accept: bool, now: datetime, hold_ttl_minutes: int
) -> tuple[BookingStatus, Optional[datetime]]:
    """Status and expiry for a freshly created booking"""
    if request_type == RequestType.QUOTE:
        return BookingStatus.PENDING, None
    if auto_accept:
        return BookingStatus.ACCEPTED, None
    return BookingStatus.HOLD, now + timedelta(minutes=hold_ttl_minutes)


def is_expired_hold(booking: Booking, now: datetime) -> bool:
    return (
        booking.status == BookingStatus.HOLD.value
        and booking.expires_at is not None
        and booking.expires_at <= now
    )


def is_live(booking: Booking, now: datetime) -> bool:
    """Whether the booking still occupies its slot at ``now``"""
    if booking.status in {s.value for s in ALWAYS_LIVE}:
        return True
    if booking.status == BookingStatus.HOLD.value:
        return booking.expires_at is None or booking.expires_at > now
    return False


def validate_transition(booking: Booking, update: BookingStatusUpdate, now: datetime) -> None:
    """Raise if ``update`` is not a legal move for ``booking`` at ``now``"""
    current = BookingStatus(booking.status)
    target = update.status

    if is_expired_hold(booking, now):
        raise InvalidTransitionError(f"Booking {booking.id} hold expired at {booking.expires_at}")

    if target not in VALID_TRANSITIONS[current]:
        raise InvalidTransitionError(f"Cannot transition from {current.value} to {target.value}")

    if target == BookingStatus.CANCELLED:
        errors = []
        if not update.cancel_reason or len(update.cancel_reason.strip()) < 5:
            errors.append({"field": "cancelReason", "message": "Cancellation reason is required"})
        if update.cancelled_by is None:
            errors.append({"field": "cancelledBy", "message": "cancelledBy must be CLIENT or PROVIDER"})
        if errors:
            raise ValidationError("Invalid cancellation", errors)

    if target == BookingStatus.COMPLETED and update.payment is None:
        raise ValidationError(
            "Payment is required to complete a booking",
            [{"field": "payment", "message": "Payment method and amount are required"}],
        )


def apply_transition(booking: Booking, update: BookingStatusUpdate, now: datetime) -> Booking:
    """Validate and mutate ``booking`` in place; the caller commits"""
    validate_transition(booking, update, now)

    previous = booking.status
    booking.status = update.status.value

    if previous == BookingStatus.HOLD.value:
        booking.expires_at = None

    if update.status in RELEASING:
        booking.slot_key = None

    if update.status == BookingStatus.CANCELLED:
        booking.cancellation_reason = update.cancel_reason.strip()
        booking.cancelled_by = update.cancelled_by.value
        booking.cancelled_at = now

    if update.status == BookingStatus.COMPLETED:
        booking.final_price = update.payment.amount
        booking.payment_method = update.payment.method.value

    if update.notes and update.notes.strip():
        booking.description = update.notes.strip()

    logger.info(f"🔄 Booking {booking.id} transitioned: {previous} → {booking.status}")
    return booking


def validate_quote_scheduling(booking: Booking) -> None:
    """Raise unless ``booking`` is a quote that can still be given a slot"""
    current = BookingStatus(booking.status)
    if not VALID_TRANSITIONS[current]:
        raise InvalidTransitionError(f"Cannot schedule a {current.value} booking")
    if booking.request_type != RequestType.QUOTE.value:
        raise InvalidTransitionError(f"Booking {booking.id} is already scheduled")
