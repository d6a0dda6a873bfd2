"""Notification services for sending emails."""

from __future__ import annotations

import logging

from django.conf import settings  # type: ignore
from django.core.mail import send_mail  # type: ignore
from django.utils.html import strip_tags  # type: ignore

from .events import CancellationEvent

logger = logging.getLogger(__name__)


# ============================================================================
# EMAIL NOTIFICATIONS
# ============================================================================

def send_email_notification(recipient_email: str, subject: str, html_message: str) -> bool:
    """
    Send one email with an HTML body and its plain-text fallback.

    Returns:
        bool: True if the message was handed to the mail backend
    """
    if not recipient_email:
        logger.warning(f"Skipping email without recipient: {subject}")
        return False

    try:
        send_mail(
            subject=subject,
            message=strip_tags(html_message),
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[recipient_email],
            html_message=html_message,
            fail_silently=False,
        )
        logger.info(f"Email sent successfully to {recipient_email}: {subject}")
        return True

    except Exception as e:
        logger.error(f"Failed to send email to {recipient_email}: {e}", exc_info=True)
        return False


def format_amount(amount, currency: str) -> str:
    return f"{amount:,.0f} {currency}".replace(",", " ")


def send_cancellation_email(event: CancellationEvent) -> bool:
    """Tell the guest the booking is cancelled and what is refunded."""
    subject = f"Booking cancelled: {event.resource_name}"
    percent = int(event.refund_fraction * 100)
    refund_line = format_amount(event.refund_amount, event.currency)

    if event.refund_amount > 0:
        refund_note = (
            f"<p>{refund_line} will be returned to your card within 5-7 business days.</p>"
        )
    else:
        refund_note = "<p>Under the cancellation policy this booking is not eligible for a refund.</p>"

    html_message = f"""
    <html>
    <body>
        <h2>Hello, {event.contact_name or event.contact}!</h2>
        <p>Your booking <strong>#{event.booking_code}</strong> for
        <strong>{event.resource_name}</strong> on {event.event_date} has been cancelled.</p>

        <ul>
            <li><strong>Reason:</strong> {event.reason or "not specified"}</li>
            <li><strong>Refund:</strong> {refund_line} ({percent}%)</li>
        </ul>

        {refund_note}
    </body>
    </html>
    """

    return send_email_notification(
        recipient_email=event.contact,
        subject=subject,
        html_message=html_message,
    )
