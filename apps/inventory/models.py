"""Inventory models: bookable resources, their time slots and manual blocks."""

from __future__ import annotations

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from django.conf import settings  # type: ignore
from django.core.exceptions import ValidationError  # type: ignore
from django.core.validators import MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


def default_timezone() -> str:
    return settings.TIME_ZONE


def validate_timezone(value: str) -> None:
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValidationError(_("Unknown time zone: %(value)s"), params={"value": value})


class Resource(models.Model):
    """A bookable unit of inventory owned by an operator."""

    class Kind(models.TextChoices):
        ACCOMMODATION = "accommodation", _("Accommodation")
        GROUP_TOUR = "group_tour", _("Group tour")
        INDIVIDUAL_TOUR = "individual_tour", _("Individual tour")

    operator = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="resources",
    )
    name = models.CharField(max_length=255)
    kind = models.CharField(max_length=20, choices=Kind.choices)
    capacity_total = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text=_("Rooms for accommodation, max group size for tours. Empty falls back to the default."),
    )
    min_group_size = models.PositiveSmallIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
        help_text=_("Smallest party accepted for a group tour departure."),
    )
    timezone = models.CharField(
        max_length=64,
        default=default_timezone,
        validators=[validate_timezone],
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Resource")
        verbose_name_plural = _("Resources")
        ordering = ["name", "id"]
        indexes = [
            models.Index(fields=["operator", "is_active"], name="resource_operator_active_idx"),
            models.Index(fields=["kind"], name="resource_kind_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.kind})"

    @property
    def max_group_size(self) -> int | None:
        return self.capacity_total

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @property
    def is_nightly(self) -> bool:
        return self.kind == self.Kind.ACCOMMODATION

    @property
    def is_slotted(self) -> bool:
        return self.kind == self.Kind.INDIVIDUAL_TOUR


class TimeSlot(models.Model):
    """Start time offered every day by an individual tour."""

    resource = models.ForeignKey(Resource, on_delete=models.CASCADE, related_name="time_slots")
    start_time = models.TimeField()
    capacity = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text=_("Overrides the resource max group size for this slot."),
    )
    is_active = models.BooleanField(default=True)

    class Meta:
        verbose_name = _("Time slot")
        verbose_name_plural = _("Time slots")
        ordering = ["start_time"]
        constraints = [
            models.UniqueConstraint(fields=["resource", "start_time"], name="timeslot_unique_start"),
        ]

    def __str__(self) -> str:
        return f"{self.resource.name} @ {self.start_time:%H:%M}"


class BlockedDate(models.Model):
    """Operator override marking a date unavailable (maintenance, weather)."""

    resource = models.ForeignKey(Resource, on_delete=models.CASCADE, related_name="blocked_dates")
    date = models.DateField()
    reason = models.CharField(max_length=255, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Blocked date")
        verbose_name_plural = _("Blocked dates")
        ordering = ["date"]
        constraints = [
            models.UniqueConstraint(fields=["resource", "date"], name="blocked_date_unique_per_resource"),
        ]

    def __str__(self) -> str:
        return f"{self.resource.name}: {self.date} ({self.reason or 'blocked'})"
