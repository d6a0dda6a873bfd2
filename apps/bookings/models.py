"""Demand models: bookings held against inventory and their cancellations."""

from __future__ import annotations

import secrets
from datetime import datetime
from decimal import Decimal

from django.conf import settings  # type: ignore
from django.core.validators import MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from shared.domain.base import RecordsEvents
from shared.domain.exceptions import AlreadyCancelled, AlreadyCompleted
from shared.domain.value_objects import DateRange, Money

from .domain.events import DemandCancelled, DemandCompleted, DemandConfirmed, DemandCreated
from .domain.refund_policy import RefundQuote


class ImmutableRecordError(Exception):
    """Raised on any attempt to change or delete an audit record."""


class Demand(RecordsEvents, models.Model):
    """Capacity claimed on a resource for a stay, a departure or a time slot.

    ``end_date`` is exclusive for every kind; a tour occupies one day, so
    its end date is the day after the departure.
    """

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")
        CONFIRMED = "confirmed", _("Confirmed")
        CANCELLED = "cancelled", _("Cancelled")
        COMPLETED = "completed", _("Completed")

    resource = models.ForeignKey(
        "inventory.Resource",
        on_delete=models.PROTECT,
        related_name="demands",
    )
    guest = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="demands",
    )
    booking_code = models.CharField(max_length=12, unique=True, editable=False)
    start_date = models.DateField()
    end_date = models.DateField()
    slot_time = models.TimeField(
        null=True,
        blank=True,
        help_text=_("Start time, individual tours only."),
    )
    party_size = models.PositiveSmallIntegerField(default=1, validators=[MinValueValidator(1)])
    status = models.CharField(
        max_length=16,
        choices=Status.choices,
        default=Status.PENDING,
    )
    total_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    currency = models.CharField(max_length=3, default="RUB")
    contact_email = models.EmailField(blank=True)
    contact_name = models.CharField(max_length=255, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Demand")
        verbose_name_plural = _("Demands")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_date__gt=models.F("start_date")),
                name="demand_valid_dates",
            ),
            models.CheckConstraint(
                condition=models.Q(party_size__gte=1),
                name="demand_party_size_positive",
            ),
        ]
        indexes = [
            models.Index(fields=["resource", "start_date", "end_date"], name="demand_resource_dates_idx"),
            models.Index(fields=["status"], name="demand_status_idx"),
        ]

    def __str__(self) -> str:
        return f"Demand #{self.booking_code} on {self.resource_id}"

    def save(self, *args, **kwargs):  # type: ignore
        if self._state.adding and not self.booking_code:
            self.booking_code = self.generate_booking_code()
        super().save(*args, **kwargs)

    @staticmethod
    def generate_booking_code() -> str:
        return secrets.token_hex(4).upper()

    @property
    def interval(self) -> DateRange:
        return DateRange(self.start_date, self.end_date)

    @property
    def event_date(self):
        return self.start_date

    @property
    def price(self) -> Money:
        return Money(self.total_price, self.currency)

    @property
    def is_final(self) -> bool:
        return self.status in (self.Status.CANCELLED, self.Status.COMPLETED)

    def _ensure_open(self) -> None:
        if self.status == self.Status.CANCELLED:
            raise AlreadyCancelled(f"Demand {self.pk} is already cancelled", demand_id=self.pk)
        if self.status == self.Status.COMPLETED:
            raise AlreadyCompleted(f"Demand {self.pk} is already completed", demand_id=self.pk)

    # --- transitions -----------------------------------------------------

    def record_created(self) -> None:
        self.add_event(DemandCreated(
            aggregate_id=self.pk,
            demand_id=self.pk,
            resource_id=self.resource_id,
            start_date=self.start_date,
            end_date=self.end_date,
            slot_time=self.slot_time,
            party_size=self.party_size,
        ))

    def confirm(self) -> bool:
        """pending -> confirmed; returns False when already confirmed."""
        self._ensure_open()
        if self.status == self.Status.CONFIRMED:
            return False
        self.status = self.Status.CONFIRMED
        self.save(update_fields=["status", "updated_at"])
        self.add_event(DemandConfirmed(aggregate_id=self.pk, demand_id=self.pk, resource_id=self.resource_id))
        return True

    def complete(self) -> None:
        self._ensure_open()
        self.status = self.Status.COMPLETED
        self.save(update_fields=["status", "updated_at"])
        self.add_event(DemandCompleted(aggregate_id=self.pk, demand_id=self.pk, resource_id=self.resource_id))

    def cancel(self, reason: str, now: datetime, quote: RefundQuote) -> "CancellationRecord":
        """Terminal transition; writes the audit record in the same transaction."""
        self._ensure_open()
        self.status = self.Status.CANCELLED
        self.cancelled_at = now
        self.cancellation_reason = reason
        self.save(update_fields=["status", "cancelled_at", "cancellation_reason", "updated_at"])

        record = CancellationRecord.objects.create(
            demand=self,
            cancelled_at=now,
            event_date=self.event_date,
            lead_days=quote.lead_days,
            fraction_applied=quote.fraction,
            refund_amount=quote.amount.amount,
            currency=quote.amount.currency,
            reason=reason,
        )
        self.add_event(DemandCancelled(
            aggregate_id=self.pk,
            demand_id=self.pk,
            resource_id=self.resource_id,
            event_date=self.event_date,
            lead_days=quote.lead_days,
            refund_amount=quote.amount.amount,
            refund_fraction=quote.fraction,
            currency=quote.amount.currency,
            reason=reason,
            contact_email=self.contact_email,
            contact_name=self.contact_name,
        ))
        return record


class CancellationRecord(models.Model):
    """Audit trail of a cancellation. Written once, never changed."""

    demand = models.OneToOneField(
        Demand,
        on_delete=models.PROTECT,
        related_name="cancellation",
    )
    cancelled_at = models.DateTimeField()
    event_date = models.DateField()
    lead_days = models.IntegerField()
    fraction_applied = models.DecimalField(max_digits=5, decimal_places=4)
    refund_amount = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3, default="RUB")
    reason = models.CharField(max_length=255, blank=True)

    class Meta:
        verbose_name = _("Cancellation record")
        verbose_name_plural = _("Cancellation records")
        ordering = ["-cancelled_at"]

    def __str__(self) -> str:
        return f"Cancellation of {self.demand_id}: {self.refund_amount} {self.currency}"

    def save(self, *args, **kwargs):  # type: ignore
        if not self._state.adding:
            raise ImmutableRecordError("Cancellation records cannot be modified")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):  # type: ignore
        raise ImmutableRecordError("Cancellation records cannot be deleted")


class CapacityLock(models.Model):
    """Row-lock target for one (resource, date, slot) capacity pool.

    Booking creation locks these rows with SELECT ... FOR UPDATE in key
    order before counting demand, which serializes writers of the same
    pool only. ``slot_key`` is "" for date-only pools.
    """

    resource = models.ForeignKey(
        "inventory.Resource",
        on_delete=models.CASCADE,
        related_name="capacity_locks",
    )
    date = models.DateField()
    slot_key = models.CharField(max_length=5, blank=True, default="")

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["resource", "date", "slot_key"], name="capacity_lock_unique_pool"),
        ]

    def __str__(self) -> str:
        return f"{self.resource_id}:{self.date}:{self.slot_key or '-'}"
