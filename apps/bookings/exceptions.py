"""Errors raised by the booking availability and lifecycle services."""

from __future__ import annotations

from rest_framework import status  # type: ignore


class AvailabilityError(Exception):
    """Base class for failures that end an availability check without a decision."""

    status_code = status.HTTP_400_BAD_REQUEST
    retryable = False
    default_message = "Unable to check availability."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AvailabilityError):
    """Malformed identifiers or dates. Raised before any query is issued."""

    default_message = "Invalid booking data."


class BookingNotFound(ValidationError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Booking not found."


class EquipmentNotFound(ValidationError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Equipment not found."


class InvalidState(AvailabilityError):
    """The booking is not in a status that allows the requested transition."""

    status_code = status.HTTP_409_CONFLICT
    default_message = "This booking can no longer be changed."


class TransientError(AvailabilityError):
    """The store could not be queried. The caller may retry."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    retryable = True
    default_message = "Availability could not be checked. Please try again."


class BookingConflictError(Exception):
    """Raised by write paths when the requested dates are taken."""

    def __init__(self, conflicts, message: str = "The equipment is not available for the selected dates."):
        self.conflicts = list(conflicts)
        self.message = message
        super().__init__(message)
