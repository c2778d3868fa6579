"""Booking repository - Database operations for bookings"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from ...models import Booking, Notification, ServiceProvider, User
from .errors import InternalError, SchedulingConflictError
from .schemas import BookingStatus

logger = logging.getLogger(__name__)


class BookingRepository:
    """Repository for booking database operations"""

    @staticmethod
    def list_bookings(
        db: Session,
        client_id: Optional[int] = None,
        provider_id: Optional[int] = None,
        status: Optional[str] = None,
    ) -> list[Booking]:
        """Bookings matching the filters, newest first, with display relations loaded"""
        query = db.query(Booking).options(
            joinedload(Booking.service),
            joinedload(Booking.client),
            joinedload(Booking.provider).joinedload(ServiceProvider.user),
        )
        if client_id is not None:
            query = query.filter(Booking.client_id == client_id)
        if provider_id is not None:
            query = query.filter(Booking.provider_id == provider_id)
        if status:
            query = query.filter(Booking.status == status)

        return query.order_by(Booking.created_at.desc(), Booking.id.desc()).all()

    @staticmethod
    def get_booking(db: Session, booking_id: int) -> Optional[Booking]:
        return (
            db.query(Booking)
            .options(
                joinedload(Booking.service),
                joinedload(Booking.client),
                joinedload(Booking.provider).joinedload(ServiceProvider.user),
            )
            .filter(Booking.id == booking_id)
            .first()
        )

    @staticmethod
    def find_or_create_client_user(
        db: Session, name: str, email: str, phone: Optional[str]
    ) -> User:
        """Look up the client by email, or stage a guest account (flushed, not committed)"""
        user = db.query(User).filter(User.email == email).first()
        if user:
            return user

        user = User(name=name, email=email, phone=phone, user_type="CLIENT", is_active=True)
        db.add(user)
        try:
            db.flush()
        except IntegrityError:
            # Same email registered by a concurrent request
            db.rollback()
            return db.query(User).filter(User.email == email).one()

        logger.info(f"👤 Created guest client user {user.id} for {email}")
        return user

    @staticmethod
    def _commit_slot_claim(db: Session, booking: Booking, now: datetime, action: str) -> Booking:
        """
        Commit ``booking`` together with its slot claim in a single transaction.

        Expired HOLD claims on the same (provider, slot_key) are released first so
        they never block a new request; the unique constraint then guarantees at
        most one live claim per slot even under concurrent writers.
        """
        try:
            if booking.slot_key:
                db.query(Booking).filter(
                    Booking.provider_id == booking.provider_id,
                    Booking.slot_key == booking.slot_key,
                    Booking.status == BookingStatus.HOLD.value,
                    Booking.expires_at <= now,
                ).update({Booking.slot_key: None}, synchronize_session=False)

            db.add(booking)
            db.commit()
        except IntegrityError as e:
            claimed, provider_id = booking.slot_key, booking.provider_id
            db.rollback()
            if not claimed:
                logger.error(f"❌ Integrity error while trying to {action}: {e.orig}")
                raise InternalError(f"Failed to {action}: {e.orig}") from e
            logger.warning(
                f"⚠️ Slot {claimed} for provider {provider_id} claimed concurrently: {e.orig}"
            )
            raise SchedulingConflictError("Selected time slot is no longer available") from e
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"❌ Failed to {action}: {e}")
            raise InternalError(f"Failed to {action}: {e}") from e

        db.refresh(booking)
        return booking

    @staticmethod
    def insert_with_slot_claim(db: Session, booking: Booking, now: datetime) -> Booking:
        """Persist a new booking; dated bookings claim their slot atomically"""
        return BookingRepository._commit_slot_claim(db, booking, now, "persist booking")

    @staticmethod
    def claim_slot(db: Session, booking: Booking, now: datetime) -> Booking:
        """Commit a slot newly assigned to an existing booking"""
        return BookingRepository._commit_slot_claim(db, booking, now, f"schedule booking {booking.id}")

    @staticmethod
    def save(db: Session, booking: Booking) -> Booking:
        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"❌ Failed to update booking {booking.id}: {e}")
            raise InternalError(f"Failed to update booking: {e}") from e
        db.refresh(booking)
        return booking

    @staticmethod
    def release_expired_holds(db: Session, now: datetime) -> int:
        """Drop the slot claim of every HOLD past its expiry; returns how many were released"""
        try:
            released = (
                db.query(Booking)
                .filter(
                    Booking.status == BookingStatus.HOLD.value,
                    Booking.expires_at <= now,
                    Booking.slot_key.isnot(None),
                )
                .update({Booking.slot_key: None}, synchronize_session=False)
            )
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"❌ Failed to release expired holds: {e}")
            raise InternalError(f"Failed to release expired holds: {e}") from e
        return released

    @staticmethod
    def record_notification(
        db: Session,
        user_id: int,
        booking_id: int,
        notification_type: str,
        title: str,
        message: str,
        sent_via: Optional[str],
    ) -> Notification:
        """Store an in-app notification for the user's inbox"""
        notification = Notification(
            user_id=user_id,
            booking_id=booking_id,
            type=notification_type,
            title=title,
            message=message,
            sent_via=sent_via,
        )
        db.add(notification)
        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"❌ Failed to store notification for user {user_id}: {e}")
            raise InternalError(f"Failed to store notification: {e}") from e
        db.refresh(notification)
        return notification
