"""
Resource Model Adapter

Each resource kind has its own capacity model. All of them expose the
same capability, ``compute(span, claims, blocked, today)``, so callers
never branch on the resource kind themselves:

- Accommodation: capacity counted in rooms, every booking takes one
  room per night regardless of how many guests it carries.
- Group tour: capacity counted in guests, all bookings for a departure
  date share one pool of ``max_group_size``.
- Individual tour: capacity counted in guests per time slot; every slot
  is an independent pool.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, time, timedelta
from typing import ClassVar, Iterable, Iterator, Mapping, Sequence, Tuple

from django.conf import settings  # type: ignore

from apps.inventory.domain.calendar import CalendarSpan
from apps.inventory.domain.capacity import (
    AvailabilityDay,
    CapacityAggregator,
    CapacityLoad,
    DayStatus,
    DemandClaim,
    SlotKey,
)
from shared.domain.exceptions import DomainValidationError


@dataclass(frozen=True)
class SlotDefinition:
    start_time: time
    capacity: int | None = None


def default_slot_times() -> list[time]:
    return [time.fromisoformat(value) for value in settings.INVENTORY["DEFAULT_SLOT_TIMES"]]


def group_departure_time() -> time:
    return time.fromisoformat(settings.INVENTORY["GROUP_DEPARTURE_TIME"])


class ResourceModel(ABC):
    """Capacity strategy for one resource kind."""

    kind: ClassVar[str]
    unit: ClassVar[str]
    full_reason: ClassVar[str] = "No capacity left"
    past_reason: ClassVar[str] = "Date is in the past"

    def __init__(self, resource, aggregator: CapacityAggregator | None = None):
        self.resource = resource
        self.aggregator = aggregator or CapacityAggregator()

    # --- per-kind hooks -------------------------------------------------

    @abstractmethod
    def weight(self, claim: DemandClaim) -> int:
        """Capacity units one claim consumes on each key it covers."""

    def keys(self, span: CalendarSpan) -> list[SlotKey]:
        return [(day, None) for day in span]

    def claim_keys(self, claim: DemandClaim) -> Iterator[SlotKey]:
        current = claim.start_date
        while current < claim.end_date:
            yield (current, None)
            current += timedelta(days=1)

    def capacity_of(self, key: SlotKey) -> int:
        return self.aggregator.effective_capacity(self.resource.capacity_total)

    def slot_times(self) -> list[time]:
        """Start times reported to clients; empty for date-only resources."""
        return []

    # --- shared pipeline ------------------------------------------------

    def contributions(self, claims: Iterable[DemandClaim]) -> Iterator[Tuple[SlotKey, int]]:
        for claim in claims:
            units = self.weight(claim)
            for key in self.claim_keys(claim):
                yield key, units

    def loads(self, span: CalendarSpan, claims: Iterable[DemandClaim]) -> list[CapacityLoad]:
        return self.aggregator.aggregate(self.keys(span), self.capacity_of, self.contributions(claims))

    def compute(
        self,
        span: CalendarSpan,
        claims: Iterable[DemandClaim],
        blocked: Mapping[date, str] | None = None,
        today: date | None = None,
    ) -> list[AvailabilityDay]:
        blocked = blocked or {}
        return [self._day_from_load(load, blocked, today) for load in self.loads(span, claims)]

    def _day_from_load(self, load: CapacityLoad, blocked: Mapping[date, str], today: date | None) -> AvailabilityDay:
        # past > blocked > full/available
        if today is not None and load.day < today:
            status, reason = DayStatus.PAST, self.past_reason
        elif load.day in blocked:
            status, reason = DayStatus.BLOCKED, blocked[load.day] or "Blocked by operator"
        elif load.remaining <= 0:
            status, reason = DayStatus.FULL, self.full_reason
        else:
            status, reason = DayStatus.AVAILABLE, None
        return AvailabilityDay(
            date=load.day,
            slot_time=load.slot_time,
            capacity_total=load.capacity,
            committed=load.committed,
            remaining=load.remaining,
            status=status,
            reason=reason,
        )


class AccommodationModel(ResourceModel):
    kind = "accommodation"
    unit = "rooms"
    full_reason = "All rooms are taken"

    def weight(self, claim: DemandClaim) -> int:
        return 1


class GroupTourModel(ResourceModel):
    kind = "group_tour"
    unit = "guests"
    full_reason = "All seats are taken"

    def weight(self, claim: DemandClaim) -> int:
        return claim.party_size

    def slot_times(self) -> list[time]:
        return [group_departure_time()]


class IndividualTourModel(ResourceModel):
    kind = "individual_tour"
    unit = "guests"
    full_reason = "Time slot is fully booked"

    def __init__(
        self,
        resource,
        aggregator: CapacityAggregator | None = None,
        slots: Sequence[SlotDefinition] | None = None,
    ):
        super().__init__(resource, aggregator)
        if not slots:
            slots = [SlotDefinition(start_time=value) for value in default_slot_times()]
        self.slots = {slot.start_time: slot for slot in sorted(slots, key=lambda s: s.start_time)}

    def weight(self, claim: DemandClaim) -> int:
        return claim.party_size

    def slot_times(self) -> list[time]:
        return list(self.slots)

    def require_slot(self, slot_time: time | None) -> time:
        if slot_time is None:
            raise DomainValidationError("A start time is required for this tour")
        if slot_time not in self.slots:
            offered = ", ".join(value.strftime("%H:%M") for value in self.slots)
            raise DomainValidationError(
                f"{slot_time:%H:%M} is not an offered start time ({offered})",
                slot_time=slot_time,
            )
        return slot_time

    def keys(self, span: CalendarSpan) -> list[SlotKey]:
        if span.slot_time is not None:
            wanted = [self.require_slot(span.slot_time)]
        else:
            wanted = self.slot_times()
        return [(day, slot_time) for day in span for slot_time in wanted]

    def claim_keys(self, claim: DemandClaim) -> Iterator[SlotKey]:
        # A claim without a start time holds every slot of its day.
        targets = [claim.slot_time] if claim.slot_time is not None else self.slot_times()
        current = claim.start_date
        while current < claim.end_date:
            for slot_time in targets:
                yield (current, slot_time)
            current += timedelta(days=1)

    def capacity_of(self, key: SlotKey) -> int:
        slot = self.slots.get(key[1])
        if slot is not None and slot.capacity:
            return slot.capacity
        return super().capacity_of(key)


RESOURCE_MODELS: dict[str, type[ResourceModel]] = {
    AccommodationModel.kind: AccommodationModel,
    GroupTourModel.kind: GroupTourModel,
    IndividualTourModel.kind: IndividualTourModel,
}


def resource_model_for(resource, *, aggregator: CapacityAggregator | None = None) -> ResourceModel:
    """Single dispatch point from a resource to its capacity model."""
    try:
        model_class = RESOURCE_MODELS[resource.kind]
    except KeyError:
        raise DomainValidationError(f"Unsupported resource kind: {resource.kind}")

    if model_class is IndividualTourModel:
        slots = [
            SlotDefinition(start_time=slot.start_time, capacity=slot.capacity)
            for slot in resource.time_slots.filter(is_active=True)
        ]
        return IndividualTourModel(resource, aggregator, slots=slots)
    return model_class(resource, aggregator)
