"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin

from .models import Booking


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "equipment",
        "renter",
        "status",
        "start_date",
        "end_date",
        "total_price",
        "created_at",
    )
    list_filter = ("status", "start_date", "end_date")
    search_fields = ("id", "equipment__title", "renter__email")
    readonly_fields = (
        "id",
        "created_at",
        "updated_at",
        "daily_rate",
        "total_price",
        "decided_at",
        "cancelled_at",
    )
