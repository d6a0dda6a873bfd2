"""
Availability Query Service

Combines the calendar, the resource capacity model, committed demand and
operator blocks into a day-by-day answer:

    result = AvailabilityService().query(resource_id, date(2025, 6, 1), date(2025, 6, 4))
    result.overall_available  # every returned day is "available"

Blocked dates and demand rows are read from one snapshot so a concurrent
booking or block never shows up in one half of the answer only.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Dict, List

from apps.inventory.domain.calendar import Calendar, CalendarSpan
from apps.inventory.domain.capacity import AvailabilityDay, CapacityAggregator, DemandClaim
from apps.inventory.domain.filters import DemandFilter
from apps.inventory.domain.resource_models import ResourceModel, resource_model_for
from shared.domain.exceptions import NotFound, ResourceInactive
from shared.infrastructure.db import read_snapshot

from .models import BlockedDate, Resource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AvailabilityResult:
    resource_id: int
    kind: str
    unit: str
    per_day: List[AvailabilityDay]

    @property
    def overall_available(self) -> bool:
        return all(day.is_available for day in self.per_day)


@dataclass(frozen=True)
class SlotAvailability:
    start_time: time
    capacity: int
    booked: int
    available: int
    status: str


@dataclass(frozen=True)
class TimeSlotBoard:
    resource_id: int
    date: date
    kind: str
    slots: List[SlotAvailability]


def get_resource(resource_id: int, *, require_active: bool = True) -> Resource:
    try:
        resource = Resource.objects.get(pk=resource_id)
    except Resource.DoesNotExist:
        raise NotFound(f"Resource {resource_id} not found", resource_id=resource_id)
    if require_active and not resource.is_active:
        raise ResourceInactive(f"Resource {resource_id} is not active", resource_id=resource_id)
    return resource


def load_claims(demand_filter: DemandFilter, *, queryset=None) -> List[DemandClaim]:
    """Committed demand matching the filter, reduced to capacity claims."""

    from apps.bookings.models import Demand  # Local import to prevent circular dependency

    queryset = Demand.objects.all() if queryset is None else queryset
    rows = demand_filter.apply(queryset).values_list(
        "pk", "start_date", "end_date", "party_size", "slot_time"
    )
    return [
        DemandClaim(
            demand_id=pk,
            start_date=start_date,
            end_date=end_date,
            party_size=party_size,
            slot_time=slot_time,
        )
        for pk, start_date, end_date, party_size, slot_time in rows
    ]


def blocked_reasons(resource_id: int, first: date, last: date) -> Dict[date, str]:
    rows = BlockedDate.objects.filter(
        resource_id=resource_id,
        date__gte=first,
        date__lte=last,
    ).values_list("date", "reason")
    return dict(rows)


def span_for(resource: Resource, calendar: Calendar, start: date, end: date | None, slot_time: time | None) -> CalendarSpan:
    """Stays are half-open, tour ranges inclusive, a lone date is one day."""

    if resource.is_nightly:
        return calendar.stay(start, end if end is not None else start + timedelta(days=1))
    if end is None:
        return calendar.slot(start, slot_time)
    return dataclasses.replace(calendar.days(start, end), slot_time=slot_time)


class AvailabilityService:
    """Read side of the inventory."""

    def __init__(self, aggregator: CapacityAggregator | None = None):
        self.aggregator = aggregator

    def model_for(self, resource: Resource) -> ResourceModel:
        return resource_model_for(resource, aggregator=self.aggregator)

    def query(
        self,
        resource_id: int,
        start: date,
        end: date | None = None,
        slot_time: time | None = None,
        *,
        now: datetime | None = None,
    ) -> AvailabilityResult:
        return self.query_resource(get_resource(resource_id), start, end, slot_time, now=now)

    def query_resource(
        self,
        resource: Resource,
        start: date,
        end: date | None = None,
        slot_time: time | None = None,
        *,
        now: datetime | None = None,
    ) -> AvailabilityResult:
        calendar = Calendar(resource.timezone)
        span = span_for(resource, calendar, start, end, slot_time)
        model = self.model_for(resource)

        with read_snapshot():
            blocked = blocked_reasons(resource.pk, span.first, span.last)
            claims = load_claims(
                DemandFilter(
                    resource_id=resource.pk,
                    start=span.first,
                    end=span.end_exclusive,
                    slot_time=span.slot_time if resource.is_slotted else None,
                )
            )

        per_day = model.compute(span, claims, blocked, today=calendar.today(now))
        result = AvailabilityResult(
            resource_id=resource.pk,
            kind=resource.kind,
            unit=model.unit,
            per_day=per_day,
        )
        logger.debug(
            "Availability for resource %s %s..%s: %s entries, overall=%s",
            resource.pk,
            span.first,
            span.last,
            len(per_day),
            result.overall_available,
        )
        return result

    def list_time_slots(self, resource_id: int, day: date, *, now: datetime | None = None) -> TimeSlotBoard:
        """Start times offered on ``day`` with their booked and free seats."""

        resource = get_resource(resource_id)
        result = self.query_resource(resource, day, now=now)
        slots = [
            SlotAvailability(
                start_time=entry.slot_time,
                capacity=entry.capacity_total,
                booked=entry.committed,
                available=entry.remaining_display,
                status=entry.status.value,
            )
            for entry in result.per_day
            if entry.slot_time is not None
        ]
        if not slots:
            model = self.model_for(resource)
            # Date-only tours still report their departure time.
            slots = [
                SlotAvailability(
                    start_time=start_time,
                    capacity=entry.capacity_total,
                    booked=entry.committed,
                    available=entry.remaining_display,
                    status=entry.status.value,
                )
                for start_time in model.slot_times()
                for entry in result.per_day
            ]
        return TimeSlotBoard(resource_id=result.resource_id, date=day, kind=result.kind, slots=slots)
