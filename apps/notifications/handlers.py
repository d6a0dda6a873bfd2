"""Domain event handlers that schedule notifications."""

from __future__ import annotations

import logging

from apps.bookings.domain.events import DemandCancelled

from .events import CancellationEvent

logger = logging.getLogger(__name__)


def on_demand_cancelled(event: DemandCancelled) -> None:
    """Queue the cancellation email. Runs after the cancellation committed."""
    from apps.bookings.models import Demand

    from .tasks import notify_demand_cancelled

    demand = Demand.objects.select_related("resource").get(pk=event.demand_id)
    notification = CancellationEvent(
        booking_id=event.demand_id,
        booking_code=demand.booking_code,
        contact=event.contact_email,
        contact_name=event.contact_name,
        resource_name=demand.resource.name,
        event_date=event.event_date.isoformat(),
        refund_amount=event.refund_amount,
        refund_fraction=event.refund_fraction,
        currency=event.currency,
        reason=event.reason,
    )
    try:
        notify_demand_cancelled.delay(notification.to_payload())
    except Exception as e:
        # Queueing failures never fail the cancellation.
        logger.error(f"Could not queue cancellation email for demand {event.demand_id}: {e}", exc_info=True)
