"""Tests for operator date blocks."""

from __future__ import annotations

from datetime import date, timedelta
from unittest import mock

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.inventory.blocking import blocked_dates_between, clear_blocked_date, set_blocked_date
from apps.inventory.domain.events import DateBlocked, DateUnblocked
from apps.inventory.models import BlockedDate, Resource
from apps.inventory.permissions import AccessContext
from shared.domain.exceptions import NotFound, Unauthorized

DAY = date(2025, 7, 1)


class BlockingStoreTests(TestCase):
    def setUp(self) -> None:
        user_model = get_user_model()
        self.operator = user_model.objects.create_user(username="operator", password="pass")
        self.stranger = user_model.objects.create_user(username="stranger", password="pass")
        self.resource = Resource.objects.create(
            operator=self.operator,
            name="Kuril lake tour",
            kind=Resource.Kind.GROUP_TOUR,
            capacity_total=8,
        )
        self.access = AccessContext.for_user(self.operator)

    def test_operator_blocks_and_unblocks_a_date(self) -> None:
        set_blocked_date(self.resource.pk, DAY, "Storm warning", access=self.access)
        self.assertTrue(BlockedDate.objects.filter(resource=self.resource, date=DAY).exists())

        clear_blocked_date(self.resource.pk, DAY, access=self.access)
        self.assertFalse(BlockedDate.objects.filter(resource=self.resource, date=DAY).exists())

    def test_blocking_twice_updates_reason(self) -> None:
        set_blocked_date(self.resource.pk, DAY, "Storm warning", access=self.access)
        blocked = set_blocked_date(self.resource.pk, DAY, "Road closed", access=self.access)

        self.assertEqual(BlockedDate.objects.filter(resource=self.resource).count(), 1)
        self.assertEqual(blocked.reason, "Road closed")
        self.assertEqual(blocked.created_by, self.operator)

    def test_clearing_unknown_block_raises(self) -> None:
        with self.assertRaises(NotFound):
            clear_blocked_date(self.resource.pk, DAY, access=self.access)

    def test_other_operator_is_rejected(self) -> None:
        with self.assertRaises(Unauthorized):
            set_blocked_date(self.resource.pk, DAY, access=AccessContext.for_user(self.stranger))
        self.assertFalse(BlockedDate.objects.exists())

    def test_staff_may_block_any_resource(self) -> None:
        set_blocked_date(self.resource.pk, DAY, access=AccessContext.system())

        self.assertEqual(blocked_dates_between(self.resource.pk, DAY, DAY)[0].date, DAY)

    def test_events_are_published_after_commit(self) -> None:
        with mock.patch("shared.application.message_bus.message_bus.publish_events") as publish:
            with self.captureOnCommitCallbacks(execute=True):
                set_blocked_date(self.resource.pk, DAY, "Storm", access=self.access)
            with self.captureOnCommitCallbacks(execute=True):
                clear_blocked_date(self.resource.pk, DAY, access=self.access)

        published = [event for call in publish.call_args_list for event in call.args[0]]
        self.assertEqual([type(event) for event in published], [DateBlocked, DateUnblocked])
        self.assertTrue(published[0].created)

    def test_blocked_dates_between_is_inclusive(self) -> None:
        for offset in range(5):
            BlockedDate.objects.create(resource=self.resource, date=DAY + timedelta(days=offset))

        found = blocked_dates_between(self.resource.pk, DAY + timedelta(days=1), DAY + timedelta(days=3))

        self.assertEqual([block.date for block in found], [DAY + timedelta(days=n) for n in (1, 2, 3)])


class BlockedDateAPITests(APITestCase):
    def setUp(self) -> None:
        user_model = get_user_model()
        self.operator = user_model.objects.create_user(username="operator", password="pass")
        self.stranger = user_model.objects.create_user(username="stranger", password="pass")
        self.resource = Resource.objects.create(
            operator=self.operator,
            name="Kuril lake tour",
            kind=Resource.Kind.GROUP_TOUR,
            capacity_total=8,
            timezone="UTC",
        )
        self.day = timezone.now().date() + timedelta(days=5)
        self.list_url = reverse("resource-blocked-date-list", kwargs={"resource_id": self.resource.pk})

    def test_operator_blocks_date_and_availability_reflects_it(self) -> None:
        self.client.force_authenticate(self.operator)

        response = self.client.post(self.list_url, {"date": str(self.day), "reason": "Storm"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)

        availability = self.client.get(
            reverse("resource-availability", kwargs={"resource_id": self.resource.pk}),
            {"start": str(self.day)},
        )
        self.assertEqual(availability.data["per_day"][0]["status"], "blocked")
        self.assertEqual(availability.data["per_day"][0]["reason"], "Storm")

        listing = self.client.get(self.list_url)
        self.assertEqual([item["date"] for item in listing.data], [str(self.day)])

    def test_operator_unblocks_date(self) -> None:
        BlockedDate.objects.create(resource=self.resource, date=self.day)
        self.client.force_authenticate(self.operator)

        response = self.client.delete(
            reverse("resource-blocked-date-detail", kwargs={"resource_id": self.resource.pk, "day": str(self.day)})
        )

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(BlockedDate.objects.exists())

    def test_unblocking_free_date_is_not_found(self) -> None:
        self.client.force_authenticate(self.operator)

        response = self.client.delete(
            reverse("resource-blocked-date-detail", kwargs={"resource_id": self.resource.pk, "day": str(self.day)})
        )

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_stranger_cannot_block(self) -> None:
        self.client.force_authenticate(self.stranger)

        response = self.client.post(self.list_url, {"date": str(self.day)}, format="json")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(BlockedDate.objects.exists())

    def test_anonymous_cannot_block(self) -> None:
        response = self.client.post(self.list_url, {"date": str(self.day)}, format="json")

        self.assertIn(response.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))
