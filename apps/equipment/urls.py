"""URL routing for the equipment domain."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import EquipmentViewSet

router = DefaultRouter()
router.register(r"", EquipmentViewSet, basename="equipment")

urlpatterns = [
    path("", include(router.urls)),
]
