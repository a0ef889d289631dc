"""Admin registration for equipment listings."""

from __future__ import annotations

from django.contrib import admin

from .models import Equipment


@admin.register(Equipment)
class EquipmentAdmin(admin.ModelAdmin):
    list_display = ("title", "owner", "category", "daily_price", "currency", "status", "created_at")
    list_filter = ("status", "category")
    search_fields = ("title", "owner__email", "location")
    readonly_fields = ("id", "created_at", "updated_at")
