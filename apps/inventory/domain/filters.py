"""Typed demand filter translated into Django ``Q`` objects.

Every filter the availability and booking services issue goes through
``DemandFilter``; values reach the database as query parameters only.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from typing import Tuple

from django.db.models import Q  # type: ignore

PENDING = "pending"
CONFIRMED = "confirmed"
CANCELLED = "cancelled"
COMPLETED = "completed"

COMMITTED_STATUSES: Tuple[str, ...] = (PENDING, CONFIRMED)


@dataclass(frozen=True)
class DemandFilter:
    """Demand rows of one resource overlapping ``[start, end)``."""

    resource_id: int
    start: date
    end: date  # exclusive
    statuses: Tuple[str, ...] = COMMITTED_STATUSES
    slot_time: time | None = None

    def to_q(self) -> Q:
        query = Q(resource_id=self.resource_id)
        query &= Q(status__in=list(self.statuses))
        # Half-open overlap: existing.start < end and existing.end > start
        query &= Q(start_date__lt=self.end) & Q(end_date__gt=self.start)
        if self.slot_time is not None:
            # Slot-less rows hold every slot of their day.
            query &= Q(slot_time=self.slot_time) | Q(slot_time__isnull=True)
        return query

    def apply(self, queryset):
        return queryset.filter(self.to_q())
