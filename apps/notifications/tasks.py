"""Celery tasks for notifications."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore

from .events import CancellationEvent
from .services import send_cancellation_email

logger = logging.getLogger(__name__)


@shared_task(name="notifications.notify_demand_cancelled")
def notify_demand_cancelled(payload: dict) -> bool:
    """Deliver the cancellation email; failures are logged, never raised."""

    event = CancellationEvent.from_payload(payload)
    sent = send_cancellation_email(event)
    if not sent:
        logger.warning(f"Cancellation email for booking {event.booking_id} was not delivered")
    return sent
