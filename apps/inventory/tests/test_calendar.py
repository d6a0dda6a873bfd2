"""Tests for calendar spans."""

from __future__ import annotations

from datetime import date, datetime, time, timezone as dt_timezone

import pytest

from apps.inventory.domain.calendar import Calendar, CalendarSpan
from shared.domain.exceptions import InvalidRange


@pytest.fixture
def calendar() -> Calendar:
    return Calendar("UTC", max_span=365)


def test_stay_is_half_open(calendar):
    span = calendar.stay(date(2025, 6, 1), date(2025, 6, 4))

    assert list(span) == [date(2025, 6, 1), date(2025, 6, 2), date(2025, 6, 3)]
    assert date(2025, 6, 4) not in span
    assert span.end_exclusive == date(2025, 6, 4)


def test_tour_range_is_inclusive(calendar):
    span = calendar.days(date(2025, 6, 1), date(2025, 6, 3))

    assert len(span) == 3
    assert list(span)[-1] == date(2025, 6, 3)


def test_single_day_range_is_allowed_for_tours(calendar):
    span = calendar.days(date(2025, 6, 1), date(2025, 6, 1))

    assert list(span) == [date(2025, 6, 1)]


def test_span_can_be_iterated_twice(calendar):
    span = calendar.stay(date(2025, 6, 1), date(2025, 6, 3))

    assert list(span) == list(span)


@pytest.mark.parametrize(
    "start,end",
    [
        (date(2025, 6, 4), date(2025, 6, 1)),
        (date(2025, 6, 1), date(2025, 6, 1)),
    ],
)
def test_inverted_or_empty_stay_is_rejected(calendar, start, end):
    with pytest.raises(InvalidRange):
        calendar.stay(start, end)


def test_inverted_tour_range_is_rejected(calendar):
    with pytest.raises(InvalidRange):
        calendar.days(date(2025, 6, 2), date(2025, 6, 1))


def test_span_longer_than_limit_is_rejected():
    calendar = Calendar("UTC", max_span=30)

    calendar.stay(date(2025, 1, 1), date(2025, 1, 31))
    with pytest.raises(InvalidRange):
        calendar.stay(date(2025, 1, 1), date(2025, 2, 1))
    with pytest.raises(InvalidRange):
        calendar.days(date(2025, 1, 1), date(2025, 1, 31))


def test_slot_span_keeps_time(calendar):
    span = calendar.slot(date(2025, 6, 1), time(10, 0))

    assert span == CalendarSpan(date(2025, 6, 1), date(2025, 6, 1), time(10, 0))
    assert len(span) == 1


def test_today_uses_resource_time_zone():
    now = datetime(2025, 6, 1, 20, 0, tzinfo=dt_timezone.utc)

    assert Calendar("UTC", max_span=365).today(now) == date(2025, 6, 1)
    # UTC+12 is already on the next day.
    assert Calendar("Asia/Kamchatka", max_span=365).today(now) == date(2025, 6, 2)
