"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin  # type: ignore

from .models import CancellationRecord, Demand


@admin.register(Demand)
class DemandAdmin(admin.ModelAdmin):
    list_display = (
        "booking_code",
        "resource",
        "status",
        "start_date",
        "end_date",
        "slot_time",
        "party_size",
        "total_price",
        "created_at",
    )
    list_filter = ("status", "start_date", "resource__kind")
    search_fields = ("booking_code", "resource__name", "contact_email")
    readonly_fields = (
        "booking_code",
        "status",
        "cancelled_at",
        "cancellation_reason",
        "created_at",
        "updated_at",
    )


@admin.register(CancellationRecord)
class CancellationRecordAdmin(admin.ModelAdmin):
    list_display = ("demand", "cancelled_at", "event_date", "lead_days", "fraction_applied", "refund_amount")
    readonly_fields = [field.name for field in CancellationRecord._meta.fields]

    def has_change_permission(self, request, obj=None):  # type: ignore
        return False

    def has_delete_permission(self, request, obj=None):  # type: ignore
        return False
