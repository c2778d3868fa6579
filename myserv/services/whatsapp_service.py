"""
Twilio WhatsApp Service
Sends booking notifications to providers and clients over WhatsApp
"""

import logging
from typing import Optional

import httpx

from ..config import TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN, TWILIO_WHATSAPP_FROM

logger = logging.getLogger(__name__)

TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"


async def send_whatsapp(
    to_phone: str,
    message_body: str,
    message_type: str,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> tuple[bool, Optional[str]]:
    """
    Send a WhatsApp message via Twilio

    Args:
        to_phone: Recipient phone number (E.164, e.g. +5511999991234)
        message_body: Message content
        message_type: Type of message (new_request, status_changed), for logging

    Returns:
        Tuple of (success: bool, error_message: Optional[str])
    """
    if not to_phone:
        return False, "No phone number provided"

    if not to_phone.startswith("+"):
        logger.warning(f"Phone number not in E.164 format: {to_phone}")
        return False, "Phone number must be in E.164 format (e.g., +5511999991234)"

    if not (TWILIO_ACCOUNT_SID and TWILIO_AUTH_TOKEN and TWILIO_WHATSAPP_FROM):
        logger.debug("WhatsApp disabled - Twilio credentials not configured")
        return False, "WhatsApp disabled"

    data = {
        "From": f"whatsapp:{TWILIO_WHATSAPP_FROM}",
        "To": f"whatsapp:{to_phone}",
        "Body": message_body,
    }

    try:
        logger.info(f"📱 Sending WhatsApp {message_type} to {to_phone}")
        async with httpx.AsyncClient(transport=transport) as client:
            response = await client.post(
                f"{TWILIO_API_BASE}/Accounts/{TWILIO_ACCOUNT_SID}/Messages.json",
                auth=(TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN),
                data=data,
                timeout=10.0,
            )

        if response.status_code in [200, 201]:
            message_sid = response.json().get("sid")
            logger.info(f"✅ WhatsApp sent: {message_type} to {to_phone} (SID: {message_sid})")
            return True, None

        error_data = response.json()
        error_message = error_data.get("message", "Unknown error")
        error_code = error_data.get("code")
        logger.error(f"❌ Twilio API error [{error_code}]: {error_message}")
        return False, error_message

    except httpx.HTTPError as e:
        logger.error(f"Twilio API error: {str(e)}")
        return False, str(e)
    except ValueError as e:
        logger.error(f"Unreadable Twilio response: {str(e)}")
        return False, str(e)


def new_request_message(
    recipient_name: str,
    counterpart_name: str,
    service_name: str,
    scheduled_date: Optional[str],
    amount: Optional[float],
) -> str:
    when = f" for {scheduled_date}" if scheduled_date else " (quote request)"
    total = f" Estimated total: R$ {amount:.2f}." if amount is not None else ""
    return (
        f"Hi {recipient_name}! {counterpart_name} requested {service_name}{when}.{total} "
        f"Open MyServ to respond."
    )


def status_changed_message(
    recipient_name: str,
    counterpart_name: str,
    service_name: str,
    status: str,
    scheduled_date: Optional[str],
    message: Optional[str] = None,
) -> str:
    when = f" on {scheduled_date}" if scheduled_date else ""
    body = f"Hi {recipient_name}! Your {service_name} booking{when} with {counterpart_name} is now {status}."
    if message:
        body += f"\n\n{message}"
    return body
