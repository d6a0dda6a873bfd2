"""Domain services for demand workflows.

Creating a demand is a read-check-insert sequence. It is made atomic per
capacity pool by locking one ``CapacityLock`` row per (resource, date,
slot) the demand touches, always in ascending key order, before committed
demand is counted. Writers of unrelated dates or slots never wait on each
other.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from time import sleep
from typing import List, Sequence

from django.conf import settings  # type: ignore
from django.db.utils import IntegrityError, OperationalError  # type: ignore

from apps.inventory.domain.calendar import Calendar, CalendarSpan
from apps.inventory.domain.capacity import DemandClaim, SlotKey
from apps.inventory.domain.filters import DemandFilter
from apps.inventory.domain.resource_models import IndividualTourModel, ResourceModel, resource_model_for
from apps.inventory.models import Resource
from apps.inventory.services import blocked_reasons, get_resource, load_claims
from shared.application.uow import DjangoUnitOfWork
from shared.domain.exceptions import (
    CapacityExceeded,
    ConcurrencyConflict,
    DomainValidationError,
    NotFound,
)
from shared.domain.value_objects import Money
from shared.infrastructure.db import lock_queryset_if_possible

from .models import CapacityLock, Demand

logger = logging.getLogger(__name__)


def slot_key(slot_time: time | None) -> str:
    return slot_time.strftime("%H:%M") if slot_time is not None else ""


def lock_capacity(resource: Resource, keys: Sequence[SlotKey]) -> List[CapacityLock]:
    """Create missing lock rows, then lock all of them in key order."""

    wanted = sorted({(day, slot_key(slot_time)) for day, slot_time in keys})
    if not wanted:
        return []
    CapacityLock.objects.bulk_create(
        [CapacityLock(resource=resource, date=day, slot_key=key) for day, key in wanted],
        ignore_conflicts=True,
    )
    queryset = CapacityLock.objects.filter(
        resource=resource,
        date__gte=wanted[0][0],
        date__lte=wanted[-1][0],
        slot_key__in={key for _, key in wanted},
    ).order_by("date", "slot_key")
    return list(lock_queryset_if_possible(queryset))


def demand_queryset_for_update(demand_id: int):
    """Lock the demand row only; the joined resource row stays free for new bookings."""

    queryset = Demand.objects.select_related("resource").filter(pk=demand_id)
    return lock_queryset_if_possible(queryset, of=("self",))


def get_demand_for_update(demand_id: int) -> Demand:
    demand = demand_queryset_for_update(demand_id).first()
    if demand is None:
        raise NotFound(f"Demand {demand_id} not found", demand_id=demand_id)
    return demand


def _demand_span(
    resource: Resource,
    model: ResourceModel,
    calendar: Calendar,
    start: date,
    end: date | None,
    slot_time: time | None,
) -> CalendarSpan:
    if resource.is_nightly:
        if end is None:
            raise DomainValidationError("Check-out date is required", field="end")
        return calendar.stay(start, end)

    if end is not None and end not in (start, start + timedelta(days=1)):
        raise DomainValidationError("A tour booking covers a single date", start=start, end=end)
    if isinstance(model, IndividualTourModel):
        return calendar.slot(start, model.require_slot(slot_time))
    return calendar.slot(start)


def _validate_party(resource: Resource, model: ResourceModel, span: CalendarSpan, party_size: int) -> None:
    if party_size < 1:
        raise DomainValidationError("Party size must be at least 1", party_size=party_size)
    if resource.is_nightly:
        return
    if resource.kind == Resource.Kind.GROUP_TOUR and party_size < resource.min_group_size:
        raise DomainValidationError(
            f"Minimum group size is {resource.min_group_size}",
            party_size=party_size,
            min_group_size=resource.min_group_size,
        )
    largest = max(model.capacity_of(key) for key in model.keys(span))
    if party_size > largest:
        raise DomainValidationError(
            f"Maximum group size is {largest}",
            party_size=party_size,
            max_group_size=largest,
        )


def create_demand(
    resource_id: int,
    start: date,
    end: date | None = None,
    *,
    party_size: int,
    slot_time: time | None = None,
    total_price: Decimal | int | str = Decimal("0"),
    currency: str = "RUB",
    contact_email: str = "",
    contact_name: str = "",
    guest=None,
    now: datetime | None = None,
) -> Demand:
    """Hold capacity for a new pending demand or raise ``CapacityExceeded``."""

    resource = get_resource(resource_id)
    model = resource_model_for(resource)
    calendar = Calendar(resource.timezone)

    span = _demand_span(resource, model, calendar, start, end, slot_time)
    if span.first < calendar.today(now):
        raise DomainValidationError("Start date cannot be in the past", start=span.first)
    _validate_party(resource, model, span, party_size)
    try:
        price = Money(Decimal(str(total_price)), currency)
    except (ValueError, ArithmeticError) as exc:
        raise DomainValidationError(f"Invalid price: {exc}", total_price=total_price, currency=currency) from exc

    claim = DemandClaim(
        demand_id=None,
        start_date=span.first,
        end_date=span.end_exclusive,
        party_size=party_size,
        slot_time=span.slot_time,
    )

    attempts = max(int(settings.INVENTORY["LOCK_RETRY_ATTEMPTS"]), 1)
    backoff = float(settings.INVENTORY["LOCK_RETRY_BACKOFF_SECONDS"])
    for attempt in range(1, attempts + 1):
        try:
            demand = _insert_locked(
                resource,
                model,
                span,
                claim,
                price=price,
                contact_email=contact_email,
                contact_name=contact_name,
                guest=guest,
            )
        except (OperationalError, IntegrityError) as exc:
            logger.warning(
                "Lock conflict creating demand on resource %s (attempt %s/%s): %s",
                resource.pk,
                attempt,
                attempts,
                exc,
            )
            if attempt == attempts:
                raise ConcurrencyConflict(
                    "Could not reserve capacity, please retry",
                    resource_id=resource.pk,
                    attempts=attempts,
                ) from exc
            sleep(backoff * attempt)
            continue

        logger.info(
            "Demand %s created on resource %s for %s..%s (party of %s)",
            demand.booking_code,
            resource.pk,
            span.first,
            span.last,
            party_size,
        )
        return demand


def _insert_locked(
    resource: Resource,
    model: ResourceModel,
    span: CalendarSpan,
    claim: DemandClaim,
    *,
    price: Money,
    contact_email: str,
    contact_name: str,
    guest,
) -> Demand:
    with DjangoUnitOfWork() as uow:
        lock_capacity(resource, model.keys(span))

        blocked = blocked_reasons(resource.pk, span.first, span.last)
        if blocked:
            first_blocked = min(blocked)
            raise CapacityExceeded(
                f"{first_blocked} is blocked: {blocked[first_blocked] or 'closed by operator'}",
                resource_id=resource.pk,
                date=first_blocked,
            )

        claims = load_claims(
            DemandFilter(
                resource_id=resource.pk,
                start=span.first,
                end=span.end_exclusive,
                slot_time=span.slot_time if resource.is_slotted else None,
            )
        )
        needed = model.weight(claim)
        short = [load for load in model.loads(span, claims) if load.remaining < needed]
        if short:
            tightest = min(short, key=lambda load: load.remaining)
            logger.warning(
                "Capacity exceeded on resource %s %s: requested %s, remaining %s",
                resource.pk,
                tightest.day,
                needed,
                tightest.remaining,
            )
            raise CapacityExceeded(
                f"Only {max(tightest.remaining, 0)} {model.unit} left on {tightest.day}",
                resource_id=resource.pk,
                date=tightest.day,
                requested=needed,
                remaining=max(tightest.remaining, 0),
            )

        demand = Demand.objects.create(
            resource=resource,
            guest=guest if guest is not None and guest.is_authenticated else None,
            start_date=claim.start_date,
            end_date=claim.end_date,
            slot_time=claim.slot_time,
            party_size=claim.party_size,
            total_price=price.amount,
            currency=price.currency,
            contact_email=contact_email,
            contact_name=contact_name,
        )
        demand.record_created()
        uow.collect_events(demand)
    return demand


def confirm_demand(demand_id: int) -> Demand:
    """External payment confirmation: pending -> confirmed."""

    with DjangoUnitOfWork() as uow:
        demand = get_demand_for_update(demand_id)
        changed = demand.confirm()
        uow.collect_events(demand)

    if changed:
        logger.info("Demand %s confirmed", demand.booking_code)
    return demand


def complete_demand(demand_id: int) -> Demand:
    """The event took place: pending|confirmed -> completed."""

    with DjangoUnitOfWork() as uow:
        demand = get_demand_for_update(demand_id)
        demand.complete()
        uow.collect_events(demand)

    logger.info("Demand %s completed", demand.booking_code)
    return demand
