"""Equipment API views."""

from __future__ import annotations

from datetime import timedelta

from django.conf import settings  # type: ignore
from django.db.models import Q  # type: ignore
from django.utils import timezone  # type: ignore
from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import permissions, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.filters import OrderingFilter, SearchFilter  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.bookings import services as booking_services
from apps.bookings.exceptions import AvailabilityError

from .filters import EquipmentFilterSet
from .models import Equipment
from .serializers import BookedRangeSerializer, EquipmentSerializer


class IsEquipmentOwnerOrReadOnly(permissions.BasePermission):
    """Anyone may read a listing; only its owner and staff may change it."""

    def has_permission(self, request, view):  # type: ignore
        if request.method in permissions.SAFE_METHODS:
            return True
        return bool(request.user and request.user.is_authenticated)

    def has_object_permission(self, request, view, obj: Equipment):  # type: ignore
        if request.method in permissions.SAFE_METHODS:
            return True
        user = request.user
        if getattr(user, "is_staff", False) or getattr(user, "is_superuser", False):
            return True
        return obj.owner_id == user.id


class EquipmentViewSet(viewsets.ModelViewSet):
    """Viewset for equipment listings."""

    queryset = Equipment.objects.select_related("owner").all()
    serializer_class = EquipmentSerializer
    permission_classes = [IsEquipmentOwnerOrReadOnly]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    filterset_class = EquipmentFilterSet
    search_fields = ["title", "description", "category"]
    ordering_fields = ["daily_price", "created_at"]

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset()
        user = self.request.user
        if not user.is_authenticated:
            return qs.filter(status=Equipment.Status.AVAILABLE)
        if getattr(user, "is_staff", False) or getattr(user, "is_superuser", False):
            return qs
        return qs.filter(Q(status=Equipment.Status.AVAILABLE) | Q(owner=user))

    def perform_create(self, serializer):  # type: ignore
        serializer.save(owner=self.request.user)

    def handle_exception(self, exc):  # type: ignore
        if isinstance(exc, AvailabilityError):
            return Response({"detail": exc.message}, status=exc.status_code)
        return super().handle_exception(exc)

    @action(detail=True, methods=["get"], url_path="booked-dates")
    def booked_dates(self, request, pk=None):  # type: ignore
        """
        Periods a renter cannot pick on this equipment's calendar.

        Returns the blocking bookings as ranges, plus the individual days they
        cover (both boundaries included) between today and the calendar
        horizon, for date pickers.
        """
        equipment = self.get_object()
        periods = booking_services.booked_periods(equipment.pk)

        today = timezone.localdate()
        horizon = today + timedelta(days=settings.BOOKING_CALENDAR_HORIZON_DAYS)
        days = set()
        for period in periods:
            current = max(period.start_date, today)
            last = min(period.end_date, horizon)
            while current <= last:
                days.add(current)
                current += timedelta(days=1)

        return Response(
            {
                "equipment_id": str(equipment.pk),
                "booked_ranges": BookedRangeSerializer(periods, many=True).data,
                "booked_days": [day.isoformat() for day in sorted(days)],
            }
        )
