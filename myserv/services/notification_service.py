"""
Unified Notification Service
Handles both email and WhatsApp notifications for booking events
Ensures both channels are triggered consistently from the same event source
"""

import logging
from dataclasses import asdict, dataclass
from typing import Awaitable, Callable, Optional

from ..utils.sanitization import sanitize_dict

logger = logging.getLogger(__name__)

EVENT_NEW_REQUEST = "booking.new_request"
EVENT_STATUS_CHANGED = "booking.status_changed"

# Free text that ends up inside HTML email templates
ESCAPED_FIELDS = ["recipient_name", "counterpart_name", "service_name", "reason", "message"]


@dataclass
class NotificationPayload:
    recipient_phone: Optional[str]
    recipient_name: str
    recipient_email: Optional[str]
    service_name: str
    counterpart_name: str
    booking_id: int
    scheduled_date: Optional[str] = None
    amount: Optional[float] = None
    status: Optional[str] = None
    reason: Optional[str] = None
    message: Optional[str] = None  # Provider's own confirmation text


async def send_notification(
    recipient_email: Optional[str],
    recipient_phone: Optional[str],
    recipient_name: str,
    notification_type: str,
    email_func: Optional[Callable[..., Awaitable]],
    whatsapp_func: Optional[Callable[..., Awaitable]],
    email_kwargs: dict,
    whatsapp_kwargs: dict,
) -> dict:
    """
    Unified notification sender that handles both email and WhatsApp

    Args:
        recipient_email: Recipient email address
        recipient_phone: Recipient phone number (E.164)
        recipient_name: Recipient name for logging
        notification_type: Type of notification (for logging)
        email_func: Email function to call, None to skip the channel
        whatsapp_func: WhatsApp function to call, None to skip the channel
        email_kwargs: Kwargs for email function
        whatsapp_kwargs: Kwargs for WhatsApp function

    Returns:
        Dict with email_sent and whatsapp_sent status
    """
    result = {"email_sent": False, "whatsapp_sent": False, "email_error": None, "whatsapp_error": None}

    # Send Email
    if email_func and recipient_email:
        try:
            logger.info(f"📧 Sending {notification_type} email to {recipient_email}")
            await email_func(**email_kwargs)
            result["email_sent"] = True
            logger.info(f"✅ {notification_type} email sent successfully to {recipient_email}")
        except Exception as e:
            result["email_error"] = str(e)
            logger.error(f"❌ Failed to send {notification_type} email to {recipient_email}: {e}")
    elif email_func:
        logger.debug(f"⚠️ No email address for {notification_type} notification to {recipient_name}")

    # Send WhatsApp
    if whatsapp_func and recipient_phone:
        try:
            logger.info(f"📱 Attempting to send {notification_type} WhatsApp to {recipient_phone}")
            success, error = await whatsapp_func(to_phone=recipient_phone, **whatsapp_kwargs)
            if success:
                result["whatsapp_sent"] = True
                logger.info(f"✅ {notification_type} WhatsApp sent successfully to {recipient_phone}")
            else:
                result["whatsapp_error"] = error
                if error and "disabled" not in error.lower():
                    logger.warning(f"⚠️ {notification_type} WhatsApp not sent to {recipient_phone}: {error}")
                else:
                    logger.debug(f"ℹ️ {notification_type} WhatsApp skipped: {error}")
        except Exception as e:
            result["whatsapp_error"] = str(e)
            logger.error(f"❌ Failed to send {notification_type} WhatsApp to {recipient_phone}: {e}")
    elif whatsapp_func:
        logger.debug(f"⚠️ No phone number for {notification_type} WhatsApp to {recipient_name}")

    return result


class Notifier:
    """Booking event fan-out; BookingService only talks to this seam"""

    async def notify_new_request(self, payload: NotificationPayload, notify_whatsapp: bool = True) -> dict:
        """Provider side: email always, WhatsApp only when the provider opted in"""
        from ..email_service import send_new_booking_request_email
        from .whatsapp_service import new_request_message, send_whatsapp

        p = sanitize_dict(asdict(payload), ESCAPED_FIELDS)
        return await send_notification(
            recipient_email=payload.recipient_email,
            recipient_phone=payload.recipient_phone,
            recipient_name=payload.recipient_name,
            notification_type=EVENT_NEW_REQUEST,
            email_func=send_new_booking_request_email,
            whatsapp_func=send_whatsapp if notify_whatsapp else None,
            email_kwargs={
                "to": payload.recipient_email,
                "provider_name": p["recipient_name"],
                "client_name": p["counterpart_name"],
                "service_name": p["service_name"],
                "scheduled_date": payload.scheduled_date,
                "amount": payload.amount,
                "booking_id": payload.booking_id,
            },
            whatsapp_kwargs={
                "message_body": new_request_message(
                    payload.recipient_name,
                    payload.counterpart_name,
                    payload.service_name,
                    payload.scheduled_date,
                    payload.amount,
                ),
                "message_type": EVENT_NEW_REQUEST,
            },
        )

    async def notify_status_changed(self, payload: NotificationPayload) -> dict:
        from ..email_service import send_booking_status_email
        from .whatsapp_service import send_whatsapp, status_changed_message

        p = sanitize_dict(asdict(payload), ESCAPED_FIELDS)
        return await send_notification(
            recipient_email=payload.recipient_email,
            recipient_phone=payload.recipient_phone,
            recipient_name=payload.recipient_name,
            notification_type=EVENT_STATUS_CHANGED,
            email_func=send_booking_status_email,
            whatsapp_func=send_whatsapp,
            email_kwargs={
                "to": payload.recipient_email,
                "recipient_name": p["recipient_name"],
                "counterpart_name": p["counterpart_name"],
                "service_name": p["service_name"],
                "status": payload.status,
                "scheduled_date": payload.scheduled_date,
                "booking_id": payload.booking_id,
                "amount": payload.amount,
                "reason": p["reason"],
                "message": p["message"],
            },
            whatsapp_kwargs={
                "message_body": status_changed_message(
                    payload.recipient_name,
                    payload.counterpart_name,
                    payload.service_name,
                    payload.status,
                    payload.scheduled_date,
                    payload.message,
                ),
                "message_type": EVENT_STATUS_CHANGED,
            },
        )
