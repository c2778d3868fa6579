"""Slot conflict checks against live bookings"""

import logging
from datetime import date, datetime, timedelta

from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Session

from ...models import Booking
from .schemas import BookingStatus
from .state_machine import ALWAYS_LIVE

logger = logging.getLogger(__name__)


def live_filter(now: datetime):
    """SQL form of state_machine.is_live"""
    return or_(
        Booking.status.in_([s.value for s in ALWAYS_LIVE]),
        and_(
            Booking.status == BookingStatus.HOLD.value,
            or_(Booking.expires_at.is_(None), Booking.expires_at > now),
        ),
    )


def day_bounds(day: date) -> tuple[datetime, datetime]:
    start = datetime.combine(day, datetime.min.time())
    return start, start + timedelta(days=1)


class SlotConflictResolver:
    def __init__(self, db: Session):
        self.db = db

    def has_conflict(self, provider_id: int, day: date, hhmm: str, now: datetime) -> bool:
        start, end = day_bounds(day)
        conflict = (
            self.db.query(Booking.id)
            .filter(
                Booking.provider_id == provider_id,
                Booking.scheduled_date >= start,
                Booking.scheduled_date < end,
                Booking.scheduled_time == hhmm,
                live_filter(now),
            )
            .first()
        )
        if conflict:
            logger.info(f"⛔ Slot {day} {hhmm} for provider {provider_id} held by booking {conflict.id}")
        return conflict is not None

    def count_live_on_day(self, provider_id: int, day: date, now: datetime) -> int:
        start, end = day_bounds(day)
        return (
            self.db.query(func.count(Booking.id))
            .filter(
                Booking.provider_id == provider_id,
                Booking.scheduled_date >= start,
                Booking.scheduled_date < end,
                live_filter(now),
            )
            .scalar()
            or 0
        )
