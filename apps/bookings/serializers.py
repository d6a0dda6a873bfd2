"""Serializers for the booking domain."""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers  # type: ignore

from shared.domain.value_objects import SUPPORTED_CURRENCIES

from .models import CancellationRecord, Demand


class DemandCreateSerializer(serializers.Serializer):
    """Input of a new demand. Capacity rules are checked by the service."""

    resource = serializers.IntegerField(min_value=1)
    start_date = serializers.DateField()
    end_date = serializers.DateField(required=False, allow_null=True)
    slot_time = serializers.TimeField(required=False, allow_null=True, input_formats=["%H:%M", "%H:%M:%S"])
    party_size = serializers.IntegerField(min_value=1, default=1)
    total_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0"), default=Decimal("0"))
    currency = serializers.ChoiceField(choices=SUPPORTED_CURRENCIES, default="RUB")
    contact_email = serializers.EmailField(required=False, allow_blank=True, default="")
    contact_name = serializers.CharField(required=False, allow_blank=True, default="", max_length=255)


class DemandCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="", max_length=255)


class CancellationRecordSerializer(serializers.ModelSerializer):
    class Meta:
        model = CancellationRecord
        fields = [
            "cancelled_at",
            "event_date",
            "lead_days",
            "fraction_applied",
            "refund_amount",
            "currency",
            "reason",
        ]
        read_only_fields = fields


class DemandSerializer(serializers.ModelSerializer):
    """Detailed demand representation."""

    resource_id = serializers.ReadOnlyField(source="resource.id")
    resource_name = serializers.ReadOnlyField(source="resource.name")
    resource_kind = serializers.ReadOnlyField(source="resource.kind")
    slot_time = serializers.TimeField(format="%H:%M", read_only=True)
    cancellation = serializers.SerializerMethodField()

    class Meta:
        model = Demand
        fields = [
            "id",
            "booking_code",
            "resource_id",
            "resource_name",
            "resource_kind",
            "start_date",
            "end_date",
            "slot_time",
            "party_size",
            "status",
            "total_price",
            "currency",
            "contact_email",
            "contact_name",
            "cancelled_at",
            "cancellation_reason",
            "cancellation",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_cancellation(self, obj: Demand):  # type: ignore
        record = getattr(obj, "cancellation", None) if obj.status == Demand.Status.CANCELLED else None
        if record is None:
            return None
        return CancellationRecordSerializer(record).data


class CancellationOutcomeSerializer(serializers.Serializer):
    demand_id = serializers.IntegerField()
    new_status = serializers.CharField()
    refund_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    refund_fraction = serializers.DecimalField(max_digits=5, decimal_places=4)
    lead_days = serializers.IntegerField()
    currency = serializers.CharField()
