"""
Transactional email over SMTP
Templates are written in MJML and compiled to HTML before sending
"""

import io
import logging
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import parseaddr
from typing import Optional, Union

from mjml import mjml_to_html

from . import config
from .email_templates import booking_confirmation_template, booking_confirmation_text

logger = logging.getLogger(__name__)


def is_email_configured() -> bool:
    return bool(config.SMTP_USER and config.SMTP_PASSWORD)


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(io.StringIO(mjml_content))
        # mjml_to_html returns a dict with 'html' and 'errors' keys
        if isinstance(result, dict):
            if result.get("errors"):
                logger.warning(f"MJML compilation warnings: {result['errors']}")
            return result.get("html", "")
        return str(result)
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise Exception(f"Failed to compile MJML template: {str(e)}") from e


def send_email(
    to: Union[str, list[str]],
    subject: str,
    html: str,
    text: Optional[str] = None,
    from_address: Optional[str] = None,
) -> bool:
    """
    Send an email through the configured SMTP server

    Port 465 uses implicit SSL; any other port upgrades with STARTTLS
    when SMTP_USE_TLS is on.

    Returns:
        True when the server accepted the message, False when SMTP is not
        configured or sending failed
    """
    if not is_email_configured():
        logger.warning("⚠️ Email service not configured. Set SMTP_USER and SMTP_PASSWORD.")
        return False

    recipients = [to] if isinstance(to, str) else to
    sender = from_address or config.EMAIL_FROM_ADDRESS

    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = sender
    msg["To"] = ", ".join(recipients)
    if text:
        msg.attach(MIMEText(text, "plain"))
    msg.attach(MIMEText(html, "html"))

    try:
        context = ssl.create_default_context()
        if config.SMTP_PORT == 465:
            server = smtplib.SMTP_SSL(config.SMTP_HOST, config.SMTP_PORT, context=context, timeout=30)
        else:
            server = smtplib.SMTP(config.SMTP_HOST, config.SMTP_PORT, timeout=30)
            if config.SMTP_USE_TLS:
                server.starttls(context=context)

        try:
            server.login(config.SMTP_USER, config.SMTP_PASSWORD)
            server.sendmail(parseaddr(sender)[1] or config.SMTP_USER, recipients, msg.as_string())
        finally:
            server.quit()

        logger.info(f"✅ Email sent via {config.SMTP_HOST} to {recipients}")
        return True
    except Exception as e:
        logger.error(f"❌ Email send error to {recipients}: {e}")
        return False


def send_booking_confirmation(booking: dict) -> bool:
    """Email the customer their confirmation code and schedule"""
    if not booking.get("email"):
        return False
    if not is_email_configured():
        logger.debug("📧 Skipping booking confirmation email, SMTP not configured")
        return False

    html = compile_mjml_to_html(
        booking_confirmation_template(booking, manage_url=f"{config.FRONTEND_URL}/my-bookings")
    )
    return send_email(
        to=booking["email"],
        subject=f"Booking received - {booking.get('confirmationCode')}",
        html=html,
        text=booking_confirmation_text(booking),
    )
