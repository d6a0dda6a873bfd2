"""FilterSet for the resource listing."""

from __future__ import annotations

import django_filters  # type: ignore
from django.db.models import Q  # type: ignore

from .models import Resource


class ResourceFilterSet(django_filters.FilterSet):
    kind = django_filters.ChoiceFilter(choices=Resource.Kind.choices)
    operator = django_filters.NumberFilter(field_name="operator_id", lookup_expr="exact")
    name = django_filters.CharFilter(field_name="name", lookup_expr="icontains")
    # Capacity falls back to the default when unset, so unset rows always match.
    guests = django_filters.NumberFilter(method="filter_guests")

    class Meta:
        model = Resource
        fields = ["kind", "operator", "name"]

    def filter_guests(self, queryset, name, value):  # type: ignore
        return queryset.filter(Q(capacity_total__gte=value) | Q(capacity_total__isnull=True))
