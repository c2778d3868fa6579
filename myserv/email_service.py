"""
Email Service using Resend
Booking emails are written as MJML templates and compiled to HTML before sending
"""

import logging
from typing import Optional, Union

import resend
from mjml import mjml_to_html

from .config import EMAIL_FROM_ADDRESS, RESEND_API_KEY
from .email_templates import booking_status_changed_template, new_booking_request_template

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
        # mjml_to_html returns a dict-like result with 'html' and 'errors' keys
        if isinstance(result, dict):
            if result.get("errors"):
                logger.warning(f"MJML compilation warnings: {result['errors']}")
            return result.get("html", "")
        return str(result)
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise Exception(f"Failed to compile MJML template: {str(e)}") from e


async def send_email(
    to: Union[str, list[str]],
    subject: str,
    mjml_content: str,
    from_address: Optional[str] = None,
) -> dict:
    """
    Send an email through Resend

    Args:
        to: Recipient email(s)
        subject: Email subject line
        mjml_content: MJML template content (will be compiled to HTML)
        from_address: Optional custom from address

    Returns:
        Send response dict
    """
    html_content = compile_mjml_to_html(mjml_content)

    recipients = [to] if isinstance(to, str) else to
    sender = from_address or EMAIL_FROM_ADDRESS

    if not RESEND_API_KEY:
        logger.error("❌ No email service configured - RESEND_API_KEY missing")
        raise Exception("Email service not configured")

    try:
        logger.info(f"📧 Sending email via Resend to: {to}")
        response = resend.Emails.send(
            {
                "from": sender,
                "to": recipients,
                "subject": subject,
                "html": html_content,
            }
        )
        logger.info(f"✅ Email sent successfully via Resend: {response}")
        return response
    except Exception as e:
        logger.error(f"❌ Email send error to {recipients}: {e}")
        raise Exception(f"Failed to send email: {str(e)}") from e


async def send_new_booking_request_email(
    to: str,
    provider_name: str,
    client_name: str,
    service_name: str,
    scheduled_date: Optional[str],
    amount: Optional[float],
    booking_id: int,
    client_phone: str = "",
) -> dict:
    """Notify the provider about a new booking or quote request"""
    mjml_content = new_booking_request_template(
        provider_name=provider_name,
        client_name=client_name,
        service_name=service_name,
        scheduled_date=scheduled_date,
        amount=amount,
        booking_id=booking_id,
        client_phone=client_phone,
    )
    kind = "Booking" if scheduled_date else "Quote"
    return await send_email(
        to=to,
        subject=f"New {kind} Request: {client_name} - {service_name}",
        mjml_content=mjml_content,
    )


async def send_booking_status_email(
    to: str,
    recipient_name: str,
    counterpart_name: str,
    service_name: str,
    status: str,
    scheduled_date: Optional[str],
    booking_id: int,
    amount: Optional[float] = None,
    reason: Optional[str] = None,
    message: Optional[str] = None,
) -> dict:
    """Tell a booking participant that the booking changed status"""
    mjml_content = booking_status_changed_template(
        recipient_name=recipient_name,
        counterpart_name=counterpart_name,
        service_name=service_name,
        status=status,
        scheduled_date=scheduled_date,
        booking_id=booking_id,
        amount=amount,
        reason=reason,
        message=message,
    )
    return await send_email(
        to=to,
        subject=f"{service_name}: booking {status.lower()}",
        mjml_content=mjml_content,
    )
