"""Serializers for the booking domain."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.users.serializers import UserShortSerializer

from .models import Booking


class DateValidationRequestSerializer(serializers.Serializer):
    """Payload of the date validation endpoint.

    Fields are taken as raw strings; identifiers and dates are parsed by the
    availability service so that both entry points reject the same input.
    """

    equipment_id = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    start_date = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    end_date = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    booking_id = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class ApprovalValidationRequestSerializer(serializers.Serializer):
    booking_id = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class BookingCreateSerializer(serializers.Serializer):
    """Rental request sent by a renter."""

    equipment_id = serializers.UUIDField()
    start_date = serializers.CharField()
    end_date = serializers.CharField()
    message = serializers.CharField(required=False, allow_blank=True, default="")


class BookingDatesSerializer(serializers.Serializer):
    start_date = serializers.CharField()
    end_date = serializers.CharField()
    message = serializers.CharField(required=False, allow_blank=True, default="")


class BookingReasonSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="", max_length=255)


class BookingSerializer(serializers.ModelSerializer):
    """Detailed booking representation."""

    equipment_id = serializers.ReadOnlyField(source="equipment.id")
    equipment_title = serializers.ReadOnlyField(source="equipment.title")
    owner_id = serializers.ReadOnlyField(source="equipment.owner_id")
    renter = UserShortSerializer(read_only=True)
    rental_days = serializers.ReadOnlyField()

    class Meta:
        model = Booking
        fields = [
            "id",
            "equipment_id",
            "equipment_title",
            "owner_id",
            "renter",
            "start_date",
            "end_date",
            "rental_days",
            "status",
            "daily_rate",
            "total_price",
            "currency",
            "message",
            "rejection_reason",
            "proposed_start_date",
            "proposed_end_date",
            "proposal_message",
            "decided_at",
            "cancelled_at",
            "cancellation_source",
            "cancellation_reason",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
