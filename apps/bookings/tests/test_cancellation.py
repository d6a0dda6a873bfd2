"""Tests for cancelling demands and the refund they produce."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone as dt_timezone
from decimal import Decimal
from smtplib import SMTPException
from unittest import mock

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core import mail
from django.test import TestCase, override_settings

from apps.bookings.application.command_handlers import CancelDemandCommand, CancelDemandHandler
from apps.bookings.domain.events import DemandCancelled
from apps.bookings.models import CancellationRecord, Demand, ImmutableRecordError
from apps.inventory.models import Resource
from apps.inventory.services import AvailabilityService
from shared.application.message_bus import message_bus
from shared.domain.exceptions import AlreadyCancelled, AlreadyCompleted, NotFound

EVENT_DATE = date(2025, 7, 11)
TEN_DAYS_BEFORE = datetime(2025, 7, 1, tzinfo=dt_timezone.utc)
ONE_DAY_BEFORE = datetime(2025, 7, 10, tzinfo=dt_timezone.utc)


class CancellationTests(TestCase):
    def setUp(self) -> None:
        self.operator = get_user_model().objects.create_user(username="operator", password="pass")
        self.tour = Resource.objects.create(
            operator=self.operator,
            name="Kuril lake tour",
            kind=Resource.Kind.GROUP_TOUR,
            capacity_total=8,
            timezone="UTC",
        )
        self.demand = Demand.objects.create(
            resource=self.tour,
            start_date=EVENT_DATE,
            end_date=EVENT_DATE + timedelta(days=1),
            party_size=2,
            status=Demand.Status.CONFIRMED,
            total_price=Decimal("25000.00"),
            currency="RUB",
            contact_email="guest@example.com",
            contact_name="Aigerim",
        )
        self.handler = CancelDemandHandler()

    def cancel(self, now=TEN_DAYS_BEFORE, reason="Change of plans", demand_id=None):
        return self.handler.handle(CancelDemandCommand(demand_id=demand_id or self.demand.pk, reason=reason, now=now))

    def test_early_cancellation_refunds_85_percent(self) -> None:
        outcome = self.cancel()

        self.assertEqual(outcome.new_status, Demand.Status.CANCELLED)
        self.assertEqual(outcome.lead_days, 10)
        self.assertEqual(outcome.refund_fraction, Decimal("0.85"))
        self.assertEqual(outcome.refund_amount, Decimal("21250"))
        self.assertEqual(outcome.currency, "RUB")

    def test_late_cancellation_refunds_nothing(self) -> None:
        outcome = self.cancel(now=ONE_DAY_BEFORE)

        self.assertEqual(outcome.lead_days, 1)
        self.assertEqual(outcome.refund_amount, Decimal("0"))

    def test_cancellation_after_start_uses_lowest_tier(self) -> None:
        outcome = self.cancel(now=datetime(2025, 7, 11, 15, tzinfo=dt_timezone.utc))

        self.assertEqual(outcome.lead_days, 0)
        self.assertEqual(outcome.refund_fraction, Decimal("0"))

    def test_cancellation_record_is_written(self) -> None:
        self.cancel()

        record = CancellationRecord.objects.get(demand=self.demand)
        self.assertEqual(record.cancelled_at, TEN_DAYS_BEFORE)
        self.assertEqual(record.event_date, EVENT_DATE)
        self.assertEqual(record.lead_days, 10)
        self.assertEqual(record.fraction_applied, Decimal("0.85"))
        self.assertEqual(record.refund_amount, Decimal("21250"))
        self.assertEqual(record.reason, "Change of plans")

        self.demand.refresh_from_db()
        self.assertEqual(self.demand.status, Demand.Status.CANCELLED)
        self.assertEqual(self.demand.cancelled_at, TEN_DAYS_BEFORE)

    def test_second_cancellation_is_rejected(self) -> None:
        self.cancel()

        with self.assertRaises(AlreadyCancelled):
            self.cancel(now=ONE_DAY_BEFORE)
        self.assertEqual(CancellationRecord.objects.filter(demand=self.demand).count(), 1)
        self.assertEqual(CancellationRecord.objects.get().lead_days, 10)

    def test_completed_demand_cannot_be_cancelled(self) -> None:
        self.demand.status = Demand.Status.COMPLETED
        self.demand.save()

        with self.assertRaises(AlreadyCompleted):
            self.cancel()
        self.assertFalse(CancellationRecord.objects.exists())

    def test_unknown_demand_is_not_found(self) -> None:
        with self.assertRaises(NotFound):
            self.cancel(demand_id=987654)

    def test_cancellation_record_is_immutable(self) -> None:
        self.cancel()
        record = CancellationRecord.objects.get()

        record.refund_amount = Decimal("25000")
        with self.assertRaises(ImmutableRecordError):
            record.save()
        with self.assertRaises(ImmutableRecordError):
            record.delete()
        self.assertEqual(CancellationRecord.objects.get().refund_amount, Decimal("21250"))

    def test_lead_days_follow_the_resource_time_zone(self) -> None:
        self.tour.timezone = "Asia/Kamchatka"
        self.tour.save()

        outcome = self.cancel(now=datetime(2025, 7, 4, 13, tzinfo=dt_timezone.utc))

        self.assertEqual(outcome.lead_days, 6)
        self.assertEqual(outcome.refund_fraction, Decimal("0.50"))

    def test_anchor_zone_can_be_pinned(self) -> None:
        self.tour.timezone = "Asia/Kamchatka"
        self.tour.save()

        with override_settings(INVENTORY={**settings.INVENTORY, "REFUND_TIMEZONE_ANCHOR": "UTC"}):
            outcome = self.cancel(now=datetime(2025, 7, 4, 13, tzinfo=dt_timezone.utc))

        self.assertEqual(outcome.lead_days, 7)
        self.assertEqual(outcome.refund_fraction, Decimal("0.85"))

    def test_cancel_through_message_bus(self) -> None:
        outcome = message_bus.handle_command(
            CancelDemandCommand(demand_id=self.demand.pk, reason="", now=TEN_DAYS_BEFORE)
        )

        self.assertEqual(outcome.refund_amount, Decimal("21250"))


class CancellationNotificationTests(TestCase):
    def setUp(self) -> None:
        self.operator = get_user_model().objects.create_user(username="operator", password="pass")
        self.tour = Resource.objects.create(
            operator=self.operator,
            name="Kuril lake tour",
            kind=Resource.Kind.GROUP_TOUR,
            capacity_total=8,
            timezone="UTC",
        )
        self.demand = Demand.objects.create(
            resource=self.tour,
            start_date=EVENT_DATE,
            end_date=EVENT_DATE + timedelta(days=1),
            party_size=2,
            total_price=Decimal("25000.00"),
            contact_email="guest@example.com",
            contact_name="Aigerim",
        )

    def cancel(self):
        return CancelDemandHandler().handle(
            CancelDemandCommand(demand_id=self.demand.pk, reason="Weather", now=TEN_DAYS_BEFORE)
        )

    def test_email_is_sent_after_commit(self) -> None:
        with self.captureOnCommitCallbacks(execute=True):
            self.cancel()
            self.assertEqual(len(mail.outbox), 0)

        self.assertEqual(len(mail.outbox), 1)
        message = mail.outbox[0]
        self.assertEqual(message.to, ["guest@example.com"])
        self.assertIn("Kuril lake tour", message.subject)
        self.assertIn(self.demand.booking_code, message.body)
        self.assertIn("21 250 RUB (85%)", message.body)
        self.assertIn("Weather", message.body)

    def test_event_carries_refund_details(self) -> None:
        with mock.patch("shared.application.message_bus.message_bus.publish_events") as publish:
            with self.captureOnCommitCallbacks(execute=True):
                self.cancel()

        (event,) = publish.call_args.args[0]
        self.assertIsInstance(event, DemandCancelled)
        self.assertEqual(event.refund_amount, Decimal("21250"))
        self.assertEqual(event.lead_days, 10)
        self.assertEqual(event.contact_email, "guest@example.com")

    def test_email_failure_keeps_cancellation(self) -> None:
        with mock.patch("apps.notifications.services.send_mail", side_effect=SMTPException("relay down")) as send:
            with self.captureOnCommitCallbacks(execute=True):
                outcome = self.cancel()

        send.assert_called_once()
        self.assertEqual(outcome.new_status, Demand.Status.CANCELLED)
        self.demand.refresh_from_db()
        self.assertEqual(self.demand.status, Demand.Status.CANCELLED)
        self.assertTrue(CancellationRecord.objects.filter(demand=self.demand).exists())
        self.assertEqual(len(mail.outbox), 0)

    def test_queueing_failure_keeps_cancellation(self) -> None:
        with mock.patch("apps.notifications.tasks.notify_demand_cancelled") as task:
            task.delay.side_effect = ConnectionError("broker unreachable")
            with self.captureOnCommitCallbacks(execute=True):
                self.cancel()

        task.delay.assert_called_once()
        self.demand.refresh_from_db()
        self.assertEqual(self.demand.status, Demand.Status.CANCELLED)

    def test_no_email_without_contact(self) -> None:
        Demand.objects.filter(pk=self.demand.pk).update(contact_email="")

        with self.captureOnCommitCallbacks(execute=True):
            self.cancel()

        self.assertEqual(len(mail.outbox), 0)


class CapacityRoundTripTests(TestCase):
    def setUp(self) -> None:
        operator = get_user_model().objects.create_user(username="operator", password="pass")
        # No capacity configured: the default of 10 applies.
        self.tour = Resource.objects.create(
            operator=operator,
            name="Avachinsky ascent",
            kind=Resource.Kind.GROUP_TOUR,
            timezone="UTC",
        )
        self.first_day = EVENT_DATE - timedelta(days=1)
        self.last_day = EVENT_DATE + timedelta(days=1)

    def statuses(self):
        result = AvailabilityService().query(self.tour.pk, self.first_day, self.last_day, now=TEN_DAYS_BEFORE)
        return [(day.status.value, day.remaining) for day in result.per_day]

    def test_filling_and_cancelling_restores_availability(self) -> None:
        self.assertEqual(self.statuses(), [("available", 10)] * 3)

        demand = Demand.objects.create(
            resource=self.tour,
            start_date=EVENT_DATE,
            end_date=EVENT_DATE + timedelta(days=1),
            party_size=10,
            status=Demand.Status.CONFIRMED,
            total_price=Decimal("25000.00"),
        )
        self.assertEqual(self.statuses(), [("available", 10), ("full", 0), ("available", 10)])

        CancelDemandHandler().handle(CancelDemandCommand(demand_id=demand.pk, now=TEN_DAYS_BEFORE))

        self.assertEqual(self.statuses(), [("available", 10)] * 3)
