"""URL routing for the booking domain."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import BookingApprovalValidationView, BookingDatesValidationView, BookingViewSet

router = DefaultRouter()
router.register(r"", BookingViewSet, basename="booking")

urlpatterns = [
    path("validate-dates/", BookingDatesValidationView.as_view(), name="booking-validate-dates"),
    path("validate-approval/", BookingApprovalValidationView.as_view(), name="booking-validate-approval"),
    path("", include(router.urls)),
]
