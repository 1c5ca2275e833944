"""
MJML Email Templates
Booking emails rendered with MJML for responsive, cross-client layouts
"""

from html import escape
from typing import Optional

# Fayeed Auto Care orange/slate theme
THEME = {
    "primary": "#f97316",
    "primary_dark": "#ea580c",
    "background": "#f8fafc",
    "card_bg": "#ffffff",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
}

BRAND_NAME = "Fayeed Auto Care"


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
            <mj-button href="{cta_url}" background-color="{THEME['primary']}" color="#ffffff"
              font-weight="600" border-radius="8px" padding="18px 40px" font-size="16px">
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
      <mj-all font-family="Helvetica, Arial, sans-serif" />
      <mj-text font-size="15px" line-height="1.6" color="{THEME['text_secondary']}" />
    </mj-attributes>
  </mj-head>
  <mj-body background-color="{THEME['background']}">
    <mj-section background-color="{THEME['primary']}" padding="24px 0">
      <mj-column>
        <mj-text align="center" font-size="22px" font-weight="700" color="#ffffff">{BRAND_NAME}</mj-text>
      </mj-column>
    </mj-section>
    <mj-section background-color="{THEME['card_bg']}" padding="24px">
      <mj-column>
        {content_sections}
      </mj-column>
    </mj-section>
    {cta_section}
    <mj-section padding="16px 0">
      <mj-column>
        <mj-text align="center" font-size="12px" color="{THEME['text_muted']}">
          You're receiving this because you booked a service with {BRAND_NAME}.
        </mj-text>
      </mj-column>
    </mj-section>
  </mj-body>
</mjml>
"""


def booking_confirmation_template(booking: dict, manage_url: Optional[str] = None) -> str:
    """Booking received email with the confirmation code and schedule"""
    rows = [
        ("Confirmation Code", booking.get("confirmationCode")),
        ("Service", booking.get("service")),
        ("Date", booking.get("date")),
        ("Time", booking.get("timeSlot")),
        ("Branch", booking.get("branch")),
        ("Total", f"₱{float(booking.get('totalPrice') or 0):,.2f}"),
    ]
    details = "".join(
        f"""
        <mj-text padding="4px 0"><strong>{label}:</strong> {escape(str(value or '-'))}</mj-text>
        """
        for label, value in rows
    )
    content = f"""
        <mj-text font-size="20px" font-weight="700" color="{THEME['text_primary']}">
          Booking received
        </mj-text>
        <mj-text>Hi {escape(booking.get('fullName') or 'there')}, thanks for booking with us.
          Your booking is <strong>{escape(booking.get('status') or 'pending')}</strong>.</mj-text>
        <mj-divider border-color="{THEME['border']}" border-width="1px" />
        {details}
    """
    return get_base_template(
        title="Booking received",
        preview_text=f"Your booking {booking.get('confirmationCode')} has been received",
        content_sections=content,
        cta_url=manage_url,
        cta_label="View my bookings" if manage_url else None,
    )


def booking_confirmation_text(booking: dict) -> str:
    return (
        f"Hi {booking.get('fullName') or 'there'},\n\n"
        f"Your booking {booking.get('confirmationCode')} has been received.\n"
        f"Service: {booking.get('service')}\n"
        f"Date: {booking.get('date')} {booking.get('timeSlot')}\n"
        f"Branch: {booking.get('branch')}\n"
        f"Total: PHP {float(booking.get('totalPrice') or 0):,.2f}\n\n"
        f"- {BRAND_NAME}"
    )
