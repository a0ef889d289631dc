"""Serializers for user-related API payloads."""

from __future__ import annotations

from django.contrib.auth import get_user_model  # type: ignore
from rest_framework import serializers  # type: ignore

User = get_user_model()


class UserShortSerializer(serializers.ModelSerializer):
    """Public part of a profile, embedded in booking and equipment responses."""

    display_name = serializers.ReadOnlyField()

    class Meta:
        model = User
        fields = ["id", "first_name", "last_name", "display_name", "role"]
        read_only_fields = fields
