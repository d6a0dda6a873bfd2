"""Serializers for the inventory domain."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import BlockedDate, Resource


class AvailabilityQuerySerializer(serializers.Serializer):
    """Validates ``?start=&end=&slot=`` of the availability endpoint."""

    start = serializers.DateField()
    end = serializers.DateField(required=False)
    slot = serializers.TimeField(required=False, format="%H:%M", input_formats=["%H:%M", "%H:%M:%S"])


class TimeSlotQuerySerializer(serializers.Serializer):
    date = serializers.DateField()


class AvailabilityDaySerializer(serializers.Serializer):
    """Remaining capacity is never exposed below zero."""

    date = serializers.DateField()
    slot_time = serializers.TimeField(format="%H:%M", allow_null=True)
    capacity_total = serializers.IntegerField()
    committed = serializers.IntegerField()
    remaining = serializers.IntegerField(source="remaining_display")
    status = serializers.SerializerMethodField()
    reason = serializers.CharField(allow_null=True)

    def get_status(self, obj) -> str:
        return obj.status.value


class AvailabilityResultSerializer(serializers.Serializer):
    resource_id = serializers.IntegerField()
    kind = serializers.CharField()
    unit = serializers.CharField()
    overall_available = serializers.BooleanField()
    per_day = AvailabilityDaySerializer(many=True)


class SlotAvailabilitySerializer(serializers.Serializer):
    start_time = serializers.TimeField(format="%H:%M")
    capacity = serializers.IntegerField()
    booked = serializers.IntegerField()
    available = serializers.IntegerField()
    status = serializers.CharField()


class TimeSlotBoardSerializer(serializers.Serializer):
    resource_id = serializers.IntegerField()
    date = serializers.DateField()
    kind = serializers.CharField()
    slots = SlotAvailabilitySerializer(many=True)


class BlockedDateSerializer(serializers.ModelSerializer):
    created_by = serializers.ReadOnlyField(source="created_by_id")

    class Meta:
        model = BlockedDate
        fields = ["id", "date", "reason", "created_by", "created_at"]
        read_only_fields = ["created_by", "created_at"]
        # Re-blocking a date updates its reason instead of failing.
        validators = []


class ResourceSerializer(serializers.ModelSerializer):
    operator_id = serializers.ReadOnlyField(source="operator.id")

    class Meta:
        model = Resource
        fields = [
            "id",
            "operator_id",
            "name",
            "kind",
            "capacity_total",
            "min_group_size",
            "timezone",
            "is_active",
        ]
        read_only_fields = fields
