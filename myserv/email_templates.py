"""
MJML Email Templates
Booking notification templates using MJML for responsive, cross-client compatibility
"""

from typing import Optional

from .config import FRONTEND_URL

THEME = {
    "primary": "#2563eb",
    "background": "#f8fafc",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
    "warning": "#f59e0b",
    "danger": "#ef4444",
}

STATUS_HEADLINES = {
    "ACCEPTED": ("Booking confirmed ✅", "has confirmed your booking"),
    "REJECTED": ("Booking declined", "could not take your booking"),
    "COMPLETED": ("Service completed 🎉", "marked your service as completed"),
    "CANCELLED": ("Booking cancelled", "cancelled the booking"),
}


def format_brl(amount: Optional[float]) -> str:
    if amount is None:
        return "to be quoted"
    return f"R$ {amount:,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
) -> str:
    """Base MJML template wrapper for all emails"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section padding="20px 0">
          <mj-column>
            <mj-button
              href="{cta_url}"
              background-color="{THEME['primary']}"
              color="#ffffff"
              font-weight="600"
              border-radius="8px"
              padding="18px 40px"
              font-size="16px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Helvetica Neue', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="#ffffff" padding="40px 40px 48px 40px">
          <mj-column>
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" line-height="1.3" padding="0 0 16px 0">
              {title}
            </mj-text>
            <mj-divider border-color="{THEME['border']}" border-width="1px" padding="0 0 24px 0" />

            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <mj-section padding="32px 20px">
          <mj-column>
            <mj-text align="center" font-size="13px" color="#94a3b8" padding="0">
              You're receiving this because of a booking on MyServ.
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def new_booking_request_template(
    provider_name: str,
    client_name: str,
    service_name: str,
    scheduled_date: Optional[str],
    amount: Optional[float],
    booking_id: int,
    client_phone: str = "",
) -> str:
    """New booking or quote request notification for the provider"""
    if scheduled_date:
        when = f"""
    <mj-text font-size="15px" color="{THEME['text_primary']}" padding="0">
      <strong>When:</strong> {scheduled_date}
    </mj-text>
    """
        headline = "New booking request 📅"
    else:
        when = f"""
    <mj-text font-size="15px" color="{THEME['text_primary']}" padding="0">
      <strong>Type:</strong> Quote request, no date selected
    </mj-text>
    """
        headline = "New quote request 📝"

    contact = ""
    if client_phone:
        contact = f"""
    <mj-text color="{THEME['text_muted']}" font-size="13px" padding="20px 0 0 0">
      Phone: {client_phone}
    </mj-text>
    """

    content = f"""
    <mj-text>
      Hi {provider_name},
    </mj-text>

    <mj-text>
      <strong>{client_name}</strong> requested <strong>{service_name}</strong>.
    </mj-text>

    {when}

    <mj-text font-size="15px" color="{THEME['text_primary']}" padding="0 0 20px 0">
      <strong>Estimated total:</strong> {format_brl(amount)}
    </mj-text>

    <mj-text color="#92400e" font-size="14px" padding="20px 0">
      ⏰ <strong>Action Required:</strong> Review and respond to this request in your dashboard.
    </mj-text>

    {contact}
    """

    return get_base_template(
        title=headline,
        preview_text=f"{client_name} requested {service_name}",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/provider/bookings/{booking_id}",
        cta_label="Review Request",
    )


def booking_status_changed_template(
    recipient_name: str,
    counterpart_name: str,
    service_name: str,
    status: str,
    scheduled_date: Optional[str],
    booking_id: int,
    amount: Optional[float] = None,
    reason: Optional[str] = None,
    message: Optional[str] = None,
) -> str:
    """Status change notification for the client or the counterpart of a cancellation"""
    title, verb = STATUS_HEADLINES.get(status, (f"Booking {status.lower()}", f"set the booking to {status}"))

    details = ""
    if scheduled_date:
        details += f"""
    <mj-text font-size="15px" color="{THEME['text_primary']}" padding="0">
      <strong>When:</strong> {scheduled_date}
    </mj-text>
    """
    if amount is not None:
        details += f"""
    <mj-text font-size="15px" color="{THEME['text_primary']}" padding="0">
      <strong>Amount:</strong> {format_brl(amount)}
    </mj-text>
    """
    if reason:
        details += f"""
    <mj-text font-size="14px" color="{THEME['danger']}" padding="16px 0 0 0">
      <strong>Reason:</strong> {reason}
    </mj-text>
    """
    if message:
        details += f"""
    <mj-text font-size="14px" color="{THEME['text_secondary']}" padding="16px 0 0 0" font-style="italic">
      {message}
    </mj-text>
    """

    content = f"""
    <mj-text>
      Hi {recipient_name},
    </mj-text>

    <mj-text>
      <strong>{counterpart_name}</strong> {verb} for <strong>{service_name}</strong>.
    </mj-text>

    {details}
    """

    return get_base_template(
        title=title,
        preview_text=f"{service_name}: {status.lower()}",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/bookings/{booking_id}",
        cta_label="View Booking",
    )
