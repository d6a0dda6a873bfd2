"""
Calendar Materializer

Expands a request into the ordered list of calendar days it touches.

- Stays (accommodation) are half-open: a stay from 06-01 to 06-04 covers
  the nights of 06-01, 06-02 and 06-03, never 06-04.
- Tour ranges are inclusive on both ends.
- A slot request covers exactly one date.

"Today" is always the resource-local date, so a day is reported as past
according to the resource's clock rather than the server's.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterator
from zoneinfo import ZoneInfo

from django.conf import settings  # type: ignore
from django.utils import timezone  # type: ignore

from shared.domain.exceptions import InvalidRange


def max_span_days() -> int:
    return int(settings.INVENTORY["MAX_SPAN_DAYS"])


@dataclass(frozen=True)
class CalendarSpan:
    """Ordered, finite and restartable sequence of dates.

    Only the bounds are stored; iterating twice yields the same dates.
    """

    first: date
    last: date
    slot_time: time | None = None

    def __iter__(self) -> Iterator[date]:
        current = self.first
        while current <= self.last:
            yield current
            current += timedelta(days=1)

    def __len__(self) -> int:
        return (self.last - self.first).days + 1

    def __contains__(self, day: object) -> bool:
        return isinstance(day, date) and self.first <= day <= self.last

    @property
    def end_exclusive(self) -> date:
        return self.last + timedelta(days=1)


class Calendar:
    """Materializes spans for one resource time zone."""

    def __init__(self, tz_name: str, *, max_span: int | None = None):
        self.tz = ZoneInfo(tz_name)
        self.max_span = max_span if max_span is not None else max_span_days()

    def today(self, now: datetime | None = None) -> date:
        now = now or timezone.now()
        return now.astimezone(self.tz).date()

    def start_of_day(self, day: date) -> datetime:
        """Aware datetime of local midnight for ``day``."""
        return datetime.combine(day, time.min, tzinfo=self.tz)

    def stay(self, start: date, end: date) -> CalendarSpan:
        """Nights of a stay, ``[start, end)``."""
        if end < start:
            raise InvalidRange(f"Check-out {end} is before check-in {start}", start=start, end=end)
        if end == start:
            raise InvalidRange("A stay must cover at least one night", start=start, end=end)
        nights = (end - start).days
        self._check_length(nights)
        return CalendarSpan(first=start, last=end - timedelta(days=1))

    def days(self, start: date, end: date) -> CalendarSpan:
        """Inclusive date range for tour queries."""
        if end < start:
            raise InvalidRange(f"End date {end} is before start date {start}", start=start, end=end)
        self._check_length((end - start).days + 1)
        return CalendarSpan(first=start, last=end)

    def slot(self, day: date, slot_time: time | None = None) -> CalendarSpan:
        """A single date, optionally pinned to one start time."""
        return CalendarSpan(first=day, last=day, slot_time=slot_time)

    def _check_length(self, length: int) -> None:
        if length > self.max_span:
            raise InvalidRange(
                f"Requested range of {length} days exceeds the maximum of {self.max_span}",
                length=length,
            )
