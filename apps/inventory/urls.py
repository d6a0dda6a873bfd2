"""URL routing for the inventory domain."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import (
    ResourceAvailabilityView,
    ResourceBlockedDateDetailView,
    ResourceBlockedDateListView,
    ResourceTimeSlotsView,
    ResourceViewSet,
)

router = DefaultRouter()
router.register(r"", ResourceViewSet, basename="resource")

urlpatterns = [
    path(
        "<int:resource_id>/availability/",
        ResourceAvailabilityView.as_view(),
        name="resource-availability",
    ),
    path(
        "<int:resource_id>/time-slots/",
        ResourceTimeSlotsView.as_view(),
        name="resource-time-slots",
    ),
    # Operator blocks
    path(
        "<int:resource_id>/blocked-dates/",
        ResourceBlockedDateListView.as_view(),
        name="resource-blocked-date-list",
    ),
    path(
        "<int:resource_id>/blocked-dates/<str:day>/",
        ResourceBlockedDateDetailView.as_view(),
        name="resource-blocked-date-detail",
    ),
    path("", include(router.urls)),
]
