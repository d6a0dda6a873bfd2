"""Concurrent demand creation.

The threaded tests need a real PostgreSQL database (set DB_ENGINE to
django.db.backends.postgresql and the usual DB_* variables) and are
skipped on SQLite, which has no row locks. The contention tests below
them run everywhere by interleaving requests through ``lock_capacity``.
"""

from __future__ import annotations

import threading
import unittest
from collections import Counter
from datetime import date, datetime, timedelta, timezone as dt_timezone
from unittest import mock

from django.contrib.auth import get_user_model
from django.db import connection
from django.db.utils import OperationalError
from django.test import TestCase, TransactionTestCase
from django.utils import timezone

from apps.bookings import services
from apps.bookings.models import Demand
from apps.bookings.services import create_demand
from apps.inventory.models import Resource
from shared.domain.exceptions import CapacityExceeded, ConcurrencyConflict

NOW = datetime(2025, 6, 1, 9, 0, tzinfo=dt_timezone.utc)
DAY = date(2025, 6, 10)


def attempt(resource_id, day, party_size, **kwargs):
    """Outcome code of one create request."""
    try:
        create_demand(resource_id, day, party_size=party_size, **kwargs)
    except (CapacityExceeded, ConcurrencyConflict) as exc:
        return exc.code
    return "created"


def make_tour(capacity=8):
    operator = get_user_model().objects.create_user(username="operator", password="pass")
    return Resource.objects.create(
        operator=operator,
        name="Kuril lake tour",
        kind=Resource.Kind.GROUP_TOUR,
        capacity_total=capacity,
        timezone="UTC",
    )


@unittest.skipUnless(connection.vendor == "postgresql", "row locks need PostgreSQL")
class ConcurrentCreateTests(TransactionTestCase):
    def setUp(self) -> None:
        self.tour = make_tour()
        self.day = timezone.now().date() + timedelta(days=14)

    def run_concurrently(self, party_sizes):
        barrier = threading.Barrier(len(party_sizes))
        outcomes = []
        lock = threading.Lock()

        def worker(party_size):
            try:
                barrier.wait()
                result = attempt(self.tour.pk, self.day, party_size)
                with lock:
                    outcomes.append(result)
            finally:
                connection.close()

        threads = [threading.Thread(target=worker, args=(size,)) for size in party_sizes]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        return Counter(outcomes)

    def test_capacity_is_never_oversold(self) -> None:
        outcomes = self.run_concurrently([3] * 6)

        self.assertEqual(outcomes, Counter({"created": 2, "capacity_exceeded": 4}))
        committed = sum(Demand.objects.filter(resource=self.tour).values_list("party_size", flat=True))
        self.assertEqual(committed, 6)

    def test_different_dates_do_not_block_each_other(self) -> None:
        other_day = self.day + timedelta(days=1)
        create_demand(self.tour.pk, self.day, party_size=8)

        demand = create_demand(self.tour.pk, other_day, party_size=8)

        self.assertEqual(demand.start_date, other_day)


class ContendedCreateTests(TestCase):
    def setUp(self) -> None:
        self.tour = make_tour()

    def test_rival_committed_while_waiting_for_lock_is_counted(self) -> None:
        real_lock_capacity = services.lock_capacity
        rivals = []

        def lock_after_rival(resource, keys):
            if not rivals:
                rivals.append(None)
                # The rival takes the pool first and commits before our lock is granted.
                rivals[0] = attempt(self.tour.pk, DAY, 5, now=NOW)
            return real_lock_capacity(resource, keys)

        with mock.patch("apps.bookings.services.lock_capacity", side_effect=lock_after_rival):
            outcome = attempt(self.tour.pk, DAY, 5, now=NOW)

        self.assertEqual(rivals, ["created"])
        self.assertEqual(outcome, "capacity_exceeded")
        self.assertEqual(list(Demand.objects.values_list("party_size", flat=True)), [5])

    def test_contended_requests_end_as_capacity_exceeded_not_conflict(self) -> None:
        real_lock_capacity = services.lock_capacity
        calls = []

        def contended_lock(resource, keys):
            calls.append(resource.pk)
            # Every request loses its first lock attempt.
            if len(calls) % 2:
                raise OperationalError("could not obtain lock on row")
            return real_lock_capacity(resource, keys)

        with mock.patch("apps.bookings.services.lock_capacity", side_effect=contended_lock):
            outcomes = Counter(attempt(self.tour.pk, DAY, 3, now=NOW) for _ in range(6))

        self.assertEqual(outcomes, Counter({"created": 2, "capacity_exceeded": 4}))
        self.assertEqual(len(calls), 12)
        committed = sum(Demand.objects.filter(resource=self.tour).values_list("party_size", flat=True))
        self.assertEqual(committed, 6)
