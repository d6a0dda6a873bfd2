"""
Blocking Override Store

Operator-defined closures of single dates. A blocked date is reported as
``blocked`` by the availability query regardless of remaining capacity and
rejects new demand; demand already on that date is kept.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import List

from shared.application.uow import DjangoUnitOfWork
from shared.domain.exceptions import InvalidRange, NotFound

from .domain.events import DateBlocked, DateUnblocked
from .models import BlockedDate
from .permissions import AccessContext
from .services import get_resource

logger = logging.getLogger(__name__)


def set_blocked_date(
    resource_id: int,
    day: date,
    reason: str = "",
    *,
    access: AccessContext,
) -> BlockedDate:
    """Block ``day``; blocking an already blocked date only updates its reason."""

    resource = get_resource(resource_id, require_active=False)
    access.require(resource.pk)

    with DjangoUnitOfWork() as uow:
        blocked, created = BlockedDate.objects.update_or_create(
            resource=resource,
            date=day,
            defaults={"reason": reason or ""},
            create_defaults={
                "reason": reason or "",
                "created_by_id": access.user_id,
            },
        )
        uow.add_event(
            DateBlocked(
                aggregate_id=resource.pk,
                resource_id=resource.pk,
                date=day,
                reason=blocked.reason,
                created=created,
            )
        )

    logger.info(
        "%s date %s for resource %s (user=%s)",
        "Blocked" if created else "Updated block on",
        day,
        resource.pk,
        access.user_id,
    )
    return blocked


def clear_blocked_date(resource_id: int, day: date, *, access: AccessContext) -> None:
    resource = get_resource(resource_id, require_active=False)
    access.require(resource.pk)

    with DjangoUnitOfWork() as uow:
        deleted, _ = BlockedDate.objects.filter(resource=resource, date=day).delete()
        if not deleted:
            raise NotFound(f"Date {day} is not blocked", resource_id=resource.pk, date=day)
        uow.add_event(DateUnblocked(aggregate_id=resource.pk, resource_id=resource.pk, date=day))

    logger.info("Unblocked date %s for resource %s (user=%s)", day, resource.pk, access.user_id)


def blocked_dates_between(resource_id: int, start: date | None = None, end: date | None = None) -> List[BlockedDate]:
    """Blocks of one resource, both bounds inclusive and optional."""

    if start and end and end < start:
        raise InvalidRange(f"End date {end} is before start date {start}", start=start, end=end)

    queryset = BlockedDate.objects.filter(resource_id=resource_id)
    if start:
        queryset = queryset.filter(date__gte=start)
    if end:
        queryset = queryset.filter(date__lte=end)
    return list(queryset.order_by("date"))
