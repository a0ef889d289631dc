"""FilterSet definitions for equipment listings."""

from __future__ import annotations

import django_filters  # type: ignore

from .models import Equipment


class EquipmentFilterSet(django_filters.FilterSet):
    category = django_filters.CharFilter(field_name="category", lookup_expr="iexact")
    location = django_filters.CharFilter(field_name="location", lookup_expr="icontains")
    price_min = django_filters.NumberFilter(field_name="daily_price", lookup_expr="gte")
    price_max = django_filters.NumberFilter(field_name="daily_price", lookup_expr="lte")
    owner = django_filters.NumberFilter(field_name="owner_id", lookup_expr="exact")

    class Meta:
        model = Equipment
        fields = ["category", "location", "status"]
