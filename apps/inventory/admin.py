"""Admin registration for inventory."""

from __future__ import annotations

from django.contrib import admin  # type: ignore

from .models import BlockedDate, Resource, TimeSlot


class TimeSlotInline(admin.TabularInline):
    model = TimeSlot
    extra = 0


@admin.register(Resource)
class ResourceAdmin(admin.ModelAdmin):
    list_display = ("name", "kind", "operator", "capacity_total", "timezone", "is_active")
    list_filter = ("kind", "is_active")
    search_fields = ("name", "operator__username", "operator__email")
    inlines = [TimeSlotInline]


@admin.register(BlockedDate)
class BlockedDateAdmin(admin.ModelAdmin):
    list_display = ("resource", "date", "reason", "created_by", "created_at")
    list_filter = ("date",)
    search_fields = ("resource__name", "reason")
    readonly_fields = ("created_at",)
