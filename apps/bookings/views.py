"""API views for the booking domain."""

from __future__ import annotations

from django.db.models import Q  # type: ignore
from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from shared.application.message_bus import message_bus

from .application.command_handlers import (
    CancelDemandCommand,
    CompleteDemandCommand,
    ConfirmDemandCommand,
    CreateDemandCommand,
)
from .models import Demand
from .serializers import (
    CancellationOutcomeSerializer,
    DemandCancelSerializer,
    DemandCreateSerializer,
    DemandSerializer,
)


def _is_operator(user, demand: Demand) -> bool:
    return getattr(user, "is_staff", False) or demand.resource.operator_id == user.id


class IsDemandStakeholder(permissions.BasePermission):
    """The guest who booked, the resource operator and staff."""

    def has_object_permission(self, request, view, obj: Demand):  # type: ignore
        user = request.user
        if not user.is_authenticated:
            return False
        return _is_operator(user, obj) or obj.guest_id == user.id


class IsResourceOperator(permissions.BasePermission):
    def has_object_permission(self, request, view, obj: Demand):  # type: ignore
        user = request.user
        return user.is_authenticated and _is_operator(user, obj)


class DemandViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Create demands and drive their lifecycle."""

    queryset = Demand.objects.select_related("resource", "cancellation").all()
    permission_classes = [permissions.IsAuthenticated, IsDemandStakeholder]
    filterset_fields = ["status", "resource"]

    def get_serializer_class(self):  # type: ignore
        if self.action == "create":
            return DemandCreateSerializer
        if self.action == "cancel":
            return DemandCancelSerializer
        return DemandSerializer

    def get_queryset(self):  # type: ignore
        user = self.request.user
        qs = super().get_queryset()
        if getattr(user, "is_staff", False):
            return qs
        if self.action == "list":
            return qs.filter(Q(guest=user) | Q(resource__operator=user))
        return qs

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        demand = message_bus.handle_command(
            CreateDemandCommand(
                resource_id=data["resource"],
                start=data["start_date"],
                end=data.get("end_date"),
                slot_time=data.get("slot_time"),
                party_size=data["party_size"],
                total_price=data["total_price"],
                currency=data["currency"],
                contact_email=data["contact_email"] or request.user.email,
                contact_name=data["contact_name"],
                guest=request.user,
            )
        )
        read_serializer = DemandSerializer(demand, context=self.get_serializer_context())
        return Response(read_serializer.data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):  # type: ignore
        demand: Demand = self.get_object()  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        outcome = message_bus.handle_command(
            CancelDemandCommand(demand_id=demand.pk, reason=serializer.validated_data["reason"])
        )
        return Response(CancellationOutcomeSerializer(outcome).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=["post"], permission_classes=[permissions.IsAuthenticated, IsResourceOperator])
    def confirm(self, request, pk=None):  # type: ignore
        demand: Demand = self.get_object()  # type: ignore
        demand = message_bus.handle_command(ConfirmDemandCommand(demand_id=demand.pk))
        return Response({"id": demand.pk, "status": demand.status})

    @action(detail=True, methods=["post"], permission_classes=[permissions.IsAuthenticated, IsResourceOperator])
    def complete(self, request, pk=None):  # type: ignore
        demand: Demand = self.get_object()  # type: ignore
        demand = message_bus.handle_command(CompleteDemandCommand(demand_id=demand.pk))
        return Response({"id": demand.pk, "status": demand.status})
