"""Booking service - request finalization, lifecycle transitions and listings"""

import logging
from datetime import date, datetime, timedelta
from typing import Callable, Optional

from sqlalchemy.orm import Session

from ...config import BOOKING_HOLD_TTL_MINUTES
from ...models import Booking, ServiceProvider, ServiceProviderService
from ...services.notification_service import NotificationPayload, Notifier
from ...utils.sanitization import clean_text_input
from ..providers.repository import ProviderRepository
from ..providers.schemas import ProviderScheduleSettings, resolve_schedule_settings
from ..travel.calculator import TravelPricingEngine, round2
from ..travel.schemas import TravelCostBreakdown, TravelQuote
from ..travel.service import client_location, provider_location, travel_policy
from .conflicts import SlotConflictResolver
from .errors import (
    InternalError,
    NotFoundError,
    PolicyViolationError,
    PricingFailureError,
    SchedulingConflictError,
)
from .repository import BookingRepository
from .schemas import (
    BookingCreate,
    BookingResponse,
    BookingStatus,
    BookingStatusUpdate,
    CancelledBy,
    FulfillmentMode,
    RequestType,
    TravelSnapshot,
    slot_key,
    slot_start,
)
from .state_machine import apply_transition, initial_state, validate_quote_scheduling

logger = logging.getLogger(__name__)

# Who hears about a transition; CANCELLED goes to whoever did not cancel
CLIENT_NOTIFIED_STATUSES = {BookingStatus.ACCEPTED, BookingStatus.REJECTED, BookingStatus.COMPLETED}

IN_APP_SERVICE_REQUEST = "SERVICE_REQUEST"


def format_slot(booking: Booking) -> Optional[str]:
    if not booking.scheduled_date:
        return None
    return booking.scheduled_date.strftime("%d/%m/%Y %H:%M")


class BookingService:
    """Service layer for booking business logic"""

    def __init__(
        self,
        db: Session,
        travel_engine: Optional[TravelPricingEngine] = None,
        notifier: Optional[Notifier] = None,
        clock: Callable[[], datetime] = datetime.now,
        hold_ttl_minutes: int = BOOKING_HOLD_TTL_MINUTES,
    ):
        self.db = db
        self.repo = BookingRepository()
        self.providers = ProviderRepository()
        self.conflicts = SlotConflictResolver(db)
        self.travel_engine = travel_engine or TravelPricingEngine()
        self.notifier = notifier or Notifier()
        self.clock = clock
        self.hold_ttl_minutes = hold_ttl_minutes

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def _get_bookable_link(self, provider_id: int, service_id: int) -> ServiceProviderService:
        link = self.providers.get_service_link(self.db, provider_id, service_id)
        if (
            not link
            or not link.is_active
            or not link.service
            or not link.service.is_active
            or not link.provider.user
            or not link.provider.user.is_active
        ):
            raise NotFoundError("Provider or service not found")
        return link

    def _check_schedule_policy(
        self,
        provider_id: int,
        day: date,
        hhmm: str,
        settings: ProviderScheduleSettings,
        now: datetime,
    ) -> None:
        """Raise on the first scheduling rule the requested slot breaks"""
        start = slot_start(day, hhmm)

        if start <= now:
            raise PolicyViolationError("past_slot", "Selected time slot is in the past")

        if settings.min_advance_hours and start < now + timedelta(hours=settings.min_advance_hours):
            raise PolicyViolationError(
                "min_advance_hours",
                f"Bookings require at least {settings.min_advance_hours} hours of advance notice",
            )

        if settings.max_advance_days and (day - now.date()).days > settings.max_advance_days:
            raise PolicyViolationError(
                "max_advance_days",
                f"Bookings can be made at most {settings.max_advance_days} days in advance",
            )

        if self.conflicts.has_conflict(provider_id, day, hhmm, now):
            raise SchedulingConflictError("Selected time slot is no longer available")

        if settings.max_daily and self.conflicts.count_live_on_day(provider_id, day, now) >= settings.max_daily:
            raise PolicyViolationError(
                "max_daily", f"Provider accepts at most {settings.max_daily} bookings per day"
            )

    async def _price_travel(
        self, data: BookingCreate, link: ServiceProviderService
    ) -> Optional[TravelQuote]:
        if data.fulfillment_mode != FulfillmentMode.HOME or not link.charges_travel:
            return None

        provider = link.provider
        quote = await self.travel_engine.quote(
            provider_location(provider),
            client_location(data.address, data.city, data.state, data.zip_code, data.client_lat, data.client_lng),
            travel_policy(provider, True),
            link.base_price,
        )
        if not quote.success:
            logger.warning(f"⚠️ Travel pricing failed for provider {provider.id}: {quote.warnings}")
            raise PricingFailureError("Could not calculate travel cost", quote.warnings)
        return quote

    async def create_booking(self, data: BookingCreate) -> Booking:
        """
        Validate, price and persist a client request.

        Order of checks: provider/service availability, then scheduling rules
        for dated requests, then travel pricing. The slot is claimed in the same
        transaction that inserts the row; the provider is notified afterwards
        and notification failures never undo the booking.
        """
        now = self.clock()
        logger.info(f"📥 Creating booking for provider {data.provider_id}, service {data.service_id}")

        link = self._get_bookable_link(data.provider_id, data.service_id)
        provider: ServiceProvider = link.provider
        settings = resolve_schedule_settings(provider.schedule_settings)
        request_type = data.request_type

        scheduled_date = None
        scheduled_time = None
        claim = None
        slot = data.slot()
        if slot:
            day, scheduled_time = slot
            self._check_schedule_policy(provider.id, day, scheduled_time, settings, now)
            scheduled_date = slot_start(day, scheduled_time)
            claim = slot_key(day, scheduled_time)

        quote = await self._price_travel(data, link)
        travel_cost = quote.travel_cost if quote else 0.0
        breakdown = quote.travel_cost_breakdown if quote else None

        base_price = link.base_price
        quote_fee = (link.quote_fee or 0.0) if request_type == RequestType.QUOTE else 0.0
        estimated_price = round2((base_price or 0.0) + travel_cost + quote_fee)

        status, expires_at = initial_state(request_type, settings.auto_accept, now, self.hold_ttl_minutes)

        client = self.repo.find_or_create_client_user(
            self.db, data.client_name, data.client_email, data.client_phone
        )

        booking = Booking(
            client_id=client.id,
            provider_id=provider.id,
            service_id=link.service_id,
            description=clean_text_input(data.description),
            request_type=request_type.value,
            status=status.value,
            fulfillment_mode=data.fulfillment_mode.value,
            scheduled_date=scheduled_date,
            scheduled_time=scheduled_time,
            slot_key=claim,
            expires_at=expires_at,
            estimated_price=estimated_price,
            base_price_snapshot=base_price,
            travel_cost=travel_cost,
            travel_rate_per_km_snapshot=breakdown.travel_rate_per_km if breakdown else None,
            travel_fixed_fee_snapshot=breakdown.fixed_fee if breakdown else None,
            travel_minimum_fee_snapshot=breakdown.minimum_fee if breakdown else None,
            travel_distance_km=quote.distance_km if quote else None,
            travel_duration_minutes=quote.duration_minutes if quote else None,
            travel_used_fallback=quote.used_fallback if quote else False,
            travel_per_km_portion=breakdown.per_km_portion if breakdown else None,
            travel_applied_minimum=breakdown.applied_minimum if breakdown else False,
            travel_waives_on_hire=breakdown.waives_travel_on_hire if breakdown else None,
            scheduling_fee=quote_fee,
            client_name=data.client_name,
            client_phone=data.client_phone,
            client_email=data.client_email,
            address=data.address,
            city=data.city,
            state=data.state,
            zip_code=data.zip_code,
        )
        booking = self.repo.insert_with_slot_claim(self.db, booking, now)
        logger.info(
            f"✅ Booking {booking.id} created: {request_type.value}/{status.value}, "
            f"estimated R$ {estimated_price:.2f} (travel {travel_cost:.2f})"
        )

        await self._notify_new_request(booking, link, settings)
        return booking

    async def _notify_new_request(
        self, booking: Booking, link: ServiceProviderService, settings: ProviderScheduleSettings
    ) -> None:
        provider_user = link.provider.user
        payload = NotificationPayload(
            recipient_phone=provider_user.phone,
            recipient_name=provider_user.name,
            recipient_email=provider_user.email,
            service_name=link.service.name,
            counterpart_name=booking.client_name,
            booking_id=booking.id,
            scheduled_date=format_slot(booking),
            amount=booking.estimated_price,
        )
        result = None
        try:
            result = await self.notifier.notify_new_request(payload, settings.notify_whatsapp)
            logger.info(f"📬 New request notification for booking {booking.id}: {result}")
        except Exception as e:
            logger.error(f"❌ Failed to notify provider about booking {booking.id}: {e}")

        is_quote = booking.request_type == RequestType.QUOTE.value
        when = f" for {payload.scheduled_date}" if payload.scheduled_date else ""
        self._record_in_app(
            user_id=provider_user.id,
            booking_id=booking.id,
            notification_type=IN_APP_SERVICE_REQUEST,
            title="New quote request" if is_quote else "New booking request",
            message=f"{booking.client_name} requested {link.service.name}{when}",
            result=result,
        )

    def _record_in_app(
        self,
        user_id: int,
        booking_id: int,
        notification_type: str,
        title: str,
        message: str,
        result: Optional[dict],
    ) -> None:
        """Store the inbox entry; the booking is already committed, so failures are only logged"""
        result = result or {}
        channels = [name for name, key in (("email", "email_sent"), ("whatsapp", "whatsapp_sent")) if result.get(key)]
        try:
            self.repo.record_notification(
                self.db, user_id, booking_id, notification_type, title, message, ",".join(channels) or None
            )
        except InternalError as e:
            logger.error(f"❌ In-app notification for booking {booking_id} not stored: {e}")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def get_booking(self, booking_id: int) -> Booking:
        booking = self.repo.get_booking(self.db, booking_id)
        if not booking:
            raise NotFoundError("Booking not found")
        return booking

    async def update_status(self, booking_id: int, update: BookingStatusUpdate) -> Booking:
        """Apply a lifecycle transition and tell the other party"""
        booking = self.get_booking(booking_id)
        apply_transition(booking, update, self.clock())
        booking = self.repo.save(self.db, booking)

        await self._notify_status_changed(booking)
        return booking

    async def schedule_quote(self, booking_id: int, day: date, hhmm: str) -> Booking:
        """
        Give a quote a date and time.

        The slot goes through the same scheduling rules as a new dated request
        and is claimed atomically; the booking becomes an ACCEPTED SCHEDULING
        request and the client is told.
        """
        now = self.clock()
        booking = self.get_booking(booking_id)
        validate_quote_scheduling(booking)

        provider = booking.provider
        settings = resolve_schedule_settings(provider.schedule_settings)
        self._check_schedule_policy(provider.id, day, hhmm, settings, now)

        previous = booking.status
        booking.request_type = RequestType.SCHEDULING.value
        booking.status = BookingStatus.ACCEPTED.value
        booking.scheduled_date = slot_start(day, hhmm)
        booking.scheduled_time = hhmm
        booking.slot_key = slot_key(day, hhmm)
        booking.expires_at = None
        booking = self.repo.claim_slot(self.db, booking, now)
        logger.info(f"📅 Quote {booking.id} scheduled for {booking.slot_key}: {previous} → {booking.status}")

        result = await self._notify_status_changed(booking)
        self._record_in_app(
            user_id=booking.client_id,
            booking_id=booking.id,
            notification_type=IN_APP_SERVICE_REQUEST,
            title="Your quote was scheduled",
            message=f"{booking.service.name} with {provider.user.name} on {format_slot(booking)}",
            result=result,
        )
        return booking

    async def _notify_status_changed(self, booking: Booking) -> Optional[dict]:
        status = BookingStatus(booking.status)
        provider_user = booking.provider.user
        client_name = booking.client_name or booking.client.name

        notify_client = status in CLIENT_NOTIFIED_STATUSES or (
            status == BookingStatus.CANCELLED and booking.cancelled_by == CancelledBy.PROVIDER.value
        )
        if notify_client:
            recipient = (
                booking.client_phone or booking.client.phone,
                client_name,
                booking.client_email or booking.client.email,
            )
            counterpart_name = provider_user.name
        elif status == BookingStatus.CANCELLED:
            recipient = (provider_user.phone, provider_user.name, provider_user.email)
            counterpart_name = client_name
        else:
            return None

        message = None
        if status == BookingStatus.ACCEPTED:
            message = resolve_schedule_settings(booking.provider.schedule_settings).confirmation_message

        payload = NotificationPayload(
            recipient_phone=recipient[0],
            recipient_name=recipient[1],
            recipient_email=recipient[2],
            service_name=booking.service.name,
            counterpart_name=counterpart_name,
            booking_id=booking.id,
            scheduled_date=format_slot(booking),
            amount=booking.final_price if status == BookingStatus.COMPLETED else booking.estimated_price,
            status=status.value,
            reason=booking.cancellation_reason,
            message=message,
        )
        try:
            result = await self.notifier.notify_status_changed(payload)
            logger.info(f"📬 Status notification for booking {booking.id} ({status.value}): {result}")
            return result
        except Exception as e:
            logger.error(f"❌ Failed to send status notification for booking {booking.id}: {e}")
            return None

    def release_expired_holds(self) -> int:
        released = self.repo.release_expired_holds(self.db, self.clock())
        if released:
            logger.info(f"🧹 Released {released} expired booking hold(s)")
        return released

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_bookings(
        self,
        client_id: Optional[int] = None,
        provider_id: Optional[int] = None,
        status: Optional[BookingStatus] = None,
    ) -> list[Booking]:
        return self.repo.list_bookings(
            self.db, client_id, provider_id, status.value if status else None
        )

    @staticmethod
    def to_response(booking: Booking) -> BookingResponse:
        provider_user = booking.provider.user if booking.provider else None
        return BookingResponse(
            id=booking.id,
            public_id=booking.public_id,
            client_id=booking.client_id,
            provider_id=booking.provider_id,
            service_id=booking.service_id,
            service_name=booking.service.name if booking.service else None,
            provider_name=provider_user.name if provider_user else None,
            provider_avatar=provider_user.profile_image if provider_user else None,
            client_name=booking.client_name or (booking.client.name if booking.client else None),
            client_avatar=booking.client.profile_image if booking.client else None,
            description=booking.description,
            request_type=booking.request_type,
            status=booking.status,
            fulfillment_mode=booking.fulfillment_mode,
            scheduled_date=booking.scheduled_date,
            scheduled_time=booking.scheduled_time,
            expires_at=booking.expires_at,
            estimated_price=booking.estimated_price,
            base_price_snapshot=booking.base_price_snapshot,
            travel_cost=booking.travel_cost or 0.0,
            travel_rate_per_km_snapshot=booking.travel_rate_per_km_snapshot,
            travel_fixed_fee_snapshot=booking.travel_fixed_fee_snapshot,
            travel_minimum_fee_snapshot=booking.travel_minimum_fee_snapshot,
            scheduling_fee=booking.scheduling_fee,
            travel=TravelSnapshot(
                distance_km=booking.travel_distance_km,
                duration_minutes=booking.travel_duration_minutes,
                travel_cost=booking.travel_cost or 0.0,
                used_fallback=bool(booking.travel_used_fallback),
                breakdown=TravelCostBreakdown(
                    per_km_portion=booking.travel_per_km_portion or 0.0,
                    fixed_fee=booking.travel_fixed_fee_snapshot or 0.0,
                    minimum_fee=booking.travel_minimum_fee_snapshot or 0.0,
                    applied_minimum=bool(booking.travel_applied_minimum),
                    travel_rate_per_km=booking.travel_rate_per_km_snapshot,
                    waives_travel_on_hire=booking.travel_waives_on_hire,
                ),
            ),
            cancellation_reason=booking.cancellation_reason,
            cancelled_by=booking.cancelled_by,
            cancelled_at=booking.cancelled_at,
            final_price=booking.final_price,
            payment_method=booking.payment_method,
            created_at=booking.created_at,
        )
