"""Celery tasks for the demand lifecycle."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone as dt_timezone

from celery import shared_task  # type: ignore
from django.utils import timezone  # type: ignore

from apps.inventory.domain.calendar import Calendar
from shared.domain.exceptions import DomainError

from .models import Demand
from .services import complete_demand

logger = logging.getLogger(__name__)


def finished_demand_ids(now: datetime | None = None) -> list[int]:
    """Confirmed demands whose last day is over in their resource's time zone."""

    now = now or timezone.now()
    # No zone is more than a day ahead of UTC.
    latest_local_today = now.astimezone(dt_timezone.utc).date() + timedelta(days=1)
    candidates = Demand.objects.filter(
        status=Demand.Status.CONFIRMED,
        end_date__lte=latest_local_today,
    ).values_list("pk", "end_date", "resource__timezone")

    local_today: dict[str, object] = {}
    finished = []
    for demand_id, end_date, tz_name in candidates:
        if tz_name not in local_today:
            local_today[tz_name] = Calendar(tz_name).today(now)
        if end_date <= local_today[tz_name]:
            finished.append(demand_id)
    return finished


@shared_task(name="bookings.complete_finished_demands")
def complete_finished_demands(now: datetime | None = None) -> dict[str, int]:
    """
    Mark confirmed demands whose stay or tour is over as completed.

    Runs periodically through Celery Beat. A demand that changed state in
    the meantime is skipped.

    Returns:
        dict: {"completed": number of demands completed}
    """
    completed = 0
    for demand_id in finished_demand_ids(now):
        try:
            complete_demand(demand_id)
        except DomainError as exc:
            logger.warning("Skipping demand %s: %s", demand_id, exc)
            continue
        completed += 1

    if completed:
        logger.info("Completed %s finished demands", completed)
    return {"completed": completed}
