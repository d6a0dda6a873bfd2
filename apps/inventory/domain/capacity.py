"""
Capacity Aggregator

Sums committed demand per (date, slot) key and derives remaining capacity.
The aggregator is storage-agnostic: it works on DemandClaim value objects
and on the weights the resource model assigns to them.

remaining = capacity - committed may go negative here; it is clamped only
when exposed (AvailabilityDay.remaining_display, serializers).
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, time
from enum import Enum
from typing import Callable, Iterable, Optional, Sequence, Tuple

from django.conf import settings  # type: ignore

from shared.domain.value_objects import DateRange

SlotKey = Tuple[date, Optional[time]]


class DayStatus(str, Enum):
    AVAILABLE = "available"
    FULL = "full"
    BLOCKED = "blocked"
    PAST = "past"


@dataclass(frozen=True)
class DemandClaim:
    """One committed demand row reduced to what capacity math needs."""

    demand_id: int | None
    start_date: date
    end_date: date  # exclusive
    party_size: int
    slot_time: time | None = None

    @property
    def interval(self) -> DateRange:
        return DateRange(self.start_date, self.end_date)

    def covers(self, day: date) -> bool:
        return self.interval.contains(day)


@dataclass(frozen=True)
class CapacityLoad:
    day: date
    slot_time: time | None
    capacity: int
    committed: int

    @property
    def remaining(self) -> int:
        return self.capacity - self.committed

    @property
    def key(self) -> SlotKey:
        return (self.day, self.slot_time)


@dataclass(frozen=True)
class AvailabilityDay:
    """Derived, never persisted."""

    date: date
    capacity_total: int
    committed: int
    remaining: int
    status: DayStatus
    slot_time: time | None = None
    reason: str | None = None

    @property
    def is_available(self) -> bool:
        return self.status == DayStatus.AVAILABLE

    @property
    def remaining_display(self) -> int:
        return max(self.remaining, 0)


def default_capacity() -> int:
    return int(settings.INVENTORY["DEFAULT_CAPACITY"])


class CapacityAggregator:
    """Per-key committed/remaining arithmetic."""

    def __init__(self, fallback_capacity: int | None = None):
        self.fallback_capacity = fallback_capacity if fallback_capacity is not None else default_capacity()

    def effective_capacity(self, capacity_total: int | None) -> int:
        """Missing or zero capacity falls back to the configured default."""
        if not capacity_total:
            return self.fallback_capacity
        return capacity_total

    def aggregate(
        self,
        keys: Sequence[SlotKey],
        capacity_of: Callable[[SlotKey], int],
        contributions: Iterable[Tuple[SlotKey, int]],
    ) -> list[CapacityLoad]:
        """Sum contributions for every requested key, in request order.

        Contributions for keys outside ``keys`` are ignored.
        """
        wanted = set(keys)
        committed: dict[SlotKey, int] = defaultdict(int)
        for key, weight in contributions:
            if key in wanted:
                committed[key] += weight

        return [
            CapacityLoad(
                day=day,
                slot_time=slot_time,
                capacity=capacity_of((day, slot_time)),
                committed=committed[(day, slot_time)],
            )
            for day, slot_time in keys
        ]
