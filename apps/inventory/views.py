"""Inventory API views.

Views only parse input and serialize output; every rule lives in
``services`` and ``blocking``. Domain errors are turned into responses by
the project-wide exception handler.
"""

from __future__ import annotations

from django.shortcuts import get_object_or_404  # type: ignore
from rest_framework import permissions, status, viewsets  # type: ignore
from rest_framework.fields import DateField  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from .blocking import blocked_dates_between, clear_blocked_date, set_blocked_date
from .filters import ResourceFilterSet
from .models import Resource
from .permissions import AccessContext, IsResourceOperatorOrStaff
from .serializers import (
    AvailabilityQuerySerializer,
    AvailabilityResultSerializer,
    BlockedDateSerializer,
    ResourceSerializer,
    TimeSlotBoardSerializer,
    TimeSlotQuerySerializer,
)
from .services import AvailabilityService


class ResourceViewSet(viewsets.ReadOnlyModelViewSet):
    """Active resources open for booking."""

    serializer_class = ResourceSerializer
    queryset = Resource.objects.filter(is_active=True).select_related("operator")
    filterset_class = ResourceFilterSet
    permission_classes = [permissions.AllowAny]


class ResourceAvailabilityView(APIView):
    """Per-day availability for a stay, a tour date range or a single date."""

    permission_classes = [permissions.AllowAny]

    def get(self, request, resource_id):  # type: ignore
        params = AvailabilityQuerySerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        result = AvailabilityService().query(
            resource_id,
            params.validated_data["start"],
            params.validated_data.get("end"),
            params.validated_data.get("slot"),
        )
        return Response(AvailabilityResultSerializer(result).data)


class ResourceTimeSlotsView(APIView):
    """Start times of one date with booked and free seats."""

    permission_classes = [permissions.AllowAny]

    def get(self, request, resource_id):  # type: ignore
        params = TimeSlotQuerySerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        board = AvailabilityService().list_time_slots(resource_id, params.validated_data["date"])
        return Response(TimeSlotBoardSerializer(board).data)


class ResourceOperatorMixin:
    """Loads the resource from the URL and checks operator rights."""

    resource_lookup_url_kwarg = "resource_id"
    permission_classes = [permissions.IsAuthenticated, IsResourceOperatorOrStaff]

    def initial(self, request, *args, **kwargs):  # type: ignore
        super().initial(request, *args, **kwargs)
        resource_id = kwargs.get(self.resource_lookup_url_kwarg)
        self.resource_object = get_object_or_404(Resource, pk=resource_id)
        self.check_object_permissions(request, self.resource_object)

    def get_resource(self) -> Resource:
        return self.resource_object

    def get_access(self) -> AccessContext:
        return AccessContext.for_user(self.request.user)


class ResourceBlockedDateListView(ResourceOperatorMixin, APIView):
    def get(self, request, resource_id):  # type: ignore
        start = request.query_params.get("start")
        end = request.query_params.get("end")
        blocked = blocked_dates_between(
            self.get_resource().pk,
            DateField().to_internal_value(start) if start else None,
            DateField().to_internal_value(end) if end else None,
        )
        return Response(BlockedDateSerializer(blocked, many=True).data)

    def post(self, request, resource_id):  # type: ignore
        serializer = BlockedDateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        blocked = set_blocked_date(
            self.get_resource().pk,
            serializer.validated_data["date"],
            serializer.validated_data.get("reason", ""),
            access=self.get_access(),
        )
        return Response(BlockedDateSerializer(blocked).data, status=status.HTTP_201_CREATED)


class ResourceBlockedDateDetailView(ResourceOperatorMixin, APIView):
    def delete(self, request, resource_id, day):  # type: ignore
        clear_blocked_date(
            self.get_resource().pk,
            DateField().to_internal_value(day),
            access=self.get_access(),
        )
        return Response(status=status.HTTP_204_NO_CONTENT)
