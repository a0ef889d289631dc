"""Domain services for booking availability and workflows.

``BookingOverlapValidator`` answers whether a date range may be given to a
booking. It only reads. The workflow functions below it are the only code
that writes booking status or dates; each one that places a booking on the
calendar re-runs the validator inside a transaction that holds a lock on the
equipment row, so two concurrent requests cannot both pass the check.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any

import structlog  # type: ignore
from django.conf import settings  # type: ignore
from django.db import transaction  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.dateparse import parse_date, parse_datetime  # type: ignore

from shared.application.message_bus import message_bus
from shared.domain.value_objects import DateRange

from .domain.availability import (
    APPROVAL_BLOCKING_STATUSES,
    CREATION_BLOCKING_STATUSES,
    AvailabilityResult,
    find_conflicts,
)
from .domain.events import (
    BookingApproved,
    BookingCancelled,
    BookingCompleted,
    BookingDatesProposed,
    BookingRejected,
    BookingRequested,
    BookingStarted,
)
from .exceptions import BookingConflictError, InvalidState, ValidationError
from .models import Booking
from .repositories import BookingRepository

logger = structlog.get_logger(__name__)


# ============================================================================
# INPUT PARSING
# ============================================================================

def parse_identifier(value: Any, field_name: str) -> uuid.UUID:
    if value in (None, ""):
        raise ValidationError(f"{field_name} is required.")
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        raise ValidationError(f"{field_name} is not a valid identifier.")


def parse_day(value: Any, field_name: str) -> date:
    """Accept a date, a datetime or an ISO string and return the calendar day."""
    if value in (None, ""):
        raise ValidationError(f"{field_name} is required.")
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            parsed_date = parse_date(value)
            if parsed_date is not None:
                return parsed_date
            parsed_datetime = parse_datetime(value)
            if parsed_datetime is not None:
                return parsed_datetime.date()
        except ValueError:
            pass
    raise ValidationError(f"{field_name} is not a valid date.")


def parse_period(start_date: Any, end_date: Any) -> DateRange:
    start = parse_day(start_date, "start_date")
    end = parse_day(end_date, "end_date")
    if end <= start:
        raise ValidationError("The end date must be after the start date.")
    return DateRange(start, end)


# ============================================================================
# AVAILABILITY
# ============================================================================

class BookingOverlapValidator:
    """
    Decides whether a date range may be assigned to a booking.

    Two policies are applied, each with its own set of blocking statuses:
    creation and date changes are checked against ``CREATION_BLOCKING_STATUSES``,
    owner approval against ``APPROVAL_BLOCKING_STATUSES``.

    Malformed input raises ``ValidationError`` before any query. A failed
    query raises ``TransientError``. A conflict is a normal result.
    """

    def __init__(self, repository: BookingRepository | None = None, *, allow_same_day_handover: bool | None = None):
        self.repository = repository or BookingRepository()
        if allow_same_day_handover is None:
            allow_same_day_handover = getattr(settings, "BOOKING_ALLOW_SAME_DAY_HANDOVER", False)
        self.allow_same_day_handover = allow_same_day_handover

    def validate_new_booking(self, equipment_id, start_date, end_date, exclude_booking_id=None) -> AvailabilityResult:
        equipment_id = parse_identifier(equipment_id, "equipment_id")
        period = parse_period(start_date, end_date)
        if exclude_booking_id not in (None, ""):
            exclude_booking_id = parse_identifier(exclude_booking_id, "booking_id")
        else:
            exclude_booking_id = None

        bookings = self.repository.blocking_bookings(
            equipment_id,
            CREATION_BLOCKING_STATUSES,
            exclude_booking_id=exclude_booking_id,
        )
        result = self._check(period, bookings)
        logger.info(
            "booking_dates_checked",
            equipment_id=str(equipment_id),
            period=str(period),
            exclude_booking_id=str(exclude_booking_id) if exclude_booking_id else None,
            valid=result.valid,
            conflicts=result.conflicting_ids,
        )
        return result

    def validate_approval(self, booking_id) -> AvailabilityResult:
        booking_id = parse_identifier(booking_id, "booking_id")
        booking = self.repository.get_booking(booking_id)

        if booking.status != Booking.Status.PENDING:
            raise InvalidState(
                f"This booking cannot be approved (current status: {booking.status})."
            )

        bookings = self.repository.blocking_bookings(
            booking.equipment_id,
            APPROVAL_BLOCKING_STATUSES,
            exclude_booking_id=booking.id,
        )
        result = self._check(booking.period, bookings)
        logger.info(
            "booking_approval_checked",
            booking_id=str(booking.id),
            equipment_id=str(booking.equipment_id),
            valid=result.valid,
            conflicts=result.conflicting_ids,
        )
        return result

    def _check(self, period: DateRange, bookings) -> AvailabilityResult:
        return AvailabilityResult.from_conflicts(
            find_conflicts(period, bookings, allow_same_day_handover=self.allow_same_day_handover)
        )


def validate_new_booking(equipment_id, start_date, end_date, exclude_booking_id=None) -> AvailabilityResult:
    return BookingOverlapValidator().validate_new_booking(
        equipment_id, start_date, end_date, exclude_booking_id=exclude_booking_id
    )


def validate_approval(booking_id) -> AvailabilityResult:
    return BookingOverlapValidator().validate_approval(booking_id)


def booked_periods(equipment_id) -> list:
    """Periods shown as unavailable on an equipment's calendar."""
    equipment_id = parse_identifier(equipment_id, "equipment_id")
    return BookingRepository().blocking_bookings(equipment_id, CREATION_BLOCKING_STATUSES)


# ============================================================================
# WORKFLOWS
# ============================================================================

def _ensure_transition(booking: Booking, target: str) -> None:
    if not booking.can_transition_to(target):
        raise InvalidState(
            f"A booking in status '{booking.status}' cannot become '{target}'."
        )


def _reload_for_update(repository: BookingRepository, booking: Booking) -> Booking:
    """Re-read the booking after the equipment lock is held so its status is current."""
    repository.lock_equipment(booking.equipment_id)
    return repository.get_booking(booking.pk)


def create_booking(*, renter, equipment_id, start_date, end_date, message: str = "") -> Booking:
    """Register a pending request after checking the dates under the equipment lock."""

    equipment_id = parse_identifier(equipment_id, "equipment_id")
    period = parse_period(start_date, end_date)
    validator = BookingOverlapValidator()

    with transaction.atomic():
        equipment = validator.repository.lock_equipment(equipment_id)
        if not equipment.is_bookable:
            raise ValidationError("This equipment is not available for rent.")
        if equipment.owner_id == renter.pk:
            raise ValidationError("You cannot book your own equipment.")

        result = validator.validate_new_booking(equipment.pk, period.start_date, period.end_date)
        if not result.valid:
            raise BookingConflictError(result.conflicts)

        booking = Booking(
            equipment=equipment,
            renter=renter,
            start_date=period.start_date,
            end_date=period.end_date,
            message=message,
        )
        booking.price_from_equipment()
        booking.save()

        message_bus.publish_on_commit(
            BookingRequested(aggregate_id=booking.pk, booking_id=booking.pk, equipment_id=equipment.pk)
        )

    logger.info("booking_created", booking_id=str(booking.pk), equipment_id=str(equipment.pk), period=str(period))
    return booking


def change_booking_dates(booking: Booking, *, start_date, end_date) -> Booking:
    """Move a pending request to new dates, ignoring its own current period."""

    period = parse_period(start_date, end_date)
    validator = BookingOverlapValidator()

    with transaction.atomic():
        booking = _reload_for_update(validator.repository, booking)
        if booking.status != Booking.Status.PENDING:
            raise InvalidState("Only pending requests can change dates.")

        result = validator.validate_new_booking(
            booking.equipment_id,
            period.start_date,
            period.end_date,
            exclude_booking_id=booking.pk,
        )
        if not result.valid:
            raise BookingConflictError(result.conflicts)

        booking.start_date = period.start_date
        booking.end_date = period.end_date
        booking.proposed_start_date = None
        booking.proposed_end_date = None
        booking.proposal_message = ""
        booking.price_from_equipment()
        booking.save()

    logger.info("booking_dates_changed", booking_id=str(booking.pk), period=str(period))
    return booking


def approve_booking(booking: Booking) -> Booking:
    """Confirm a pending request unless a confirmed or running rental already holds the dates."""

    validator = BookingOverlapValidator()

    with transaction.atomic():
        booking = _reload_for_update(validator.repository, booking)
        result = validator.validate_approval(booking.pk)
        if not result.valid:
            raise BookingConflictError(
                result.conflicts,
                f"These dates overlap {len(result.conflicts)} booking(s) already confirmed or in progress.",
            )

        booking.status = Booking.Status.CONFIRMED
        booking.decided_at = timezone.now()
        booking.save(update_fields=["status", "decided_at", "updated_at"])

        message_bus.publish_on_commit(
            BookingApproved(aggregate_id=booking.pk, booking_id=booking.pk, equipment_id=booking.equipment_id)
        )

    logger.info("booking_approved", booking_id=str(booking.pk), equipment_id=str(booking.equipment_id))
    return booking


def reject_booking(booking: Booking, *, reason: str = "") -> Booking:
    repository = BookingRepository()

    with transaction.atomic():
        booking = _reload_for_update(repository, booking)
        _ensure_transition(booking, Booking.Status.REJECTED)

        booking.status = Booking.Status.REJECTED
        booking.rejection_reason = reason
        booking.decided_at = timezone.now()
        booking.save(update_fields=["status", "rejection_reason", "decided_at", "updated_at"])

        message_bus.publish_on_commit(
            BookingRejected(
                aggregate_id=booking.pk,
                booking_id=booking.pk,
                equipment_id=booking.equipment_id,
                reason=reason,
            )
        )

    logger.info("booking_rejected", booking_id=str(booking.pk))
    return booking


def propose_dates(booking: Booking, *, start_date, end_date, message: str = "") -> Booking:
    """Record an owner's counter-proposal. The proposed dates must themselves be free."""

    period = parse_period(start_date, end_date)
    validator = BookingOverlapValidator()

    with transaction.atomic():
        booking = _reload_for_update(validator.repository, booking)
        if booking.status != Booking.Status.PENDING:
            raise InvalidState("Dates can only be proposed for pending requests.")

        result = validator.validate_new_booking(
            booking.equipment_id,
            period.start_date,
            period.end_date,
            exclude_booking_id=booking.pk,
        )
        if not result.valid:
            raise BookingConflictError(result.conflicts, "The proposed dates are not available.")

        booking.proposed_start_date = period.start_date
        booking.proposed_end_date = period.end_date
        booking.proposal_message = message
        booking.save(update_fields=["proposed_start_date", "proposed_end_date", "proposal_message", "updated_at"])

        message_bus.publish_on_commit(
            BookingDatesProposed(
                aggregate_id=booking.pk,
                booking_id=booking.pk,
                equipment_id=booking.equipment_id,
                proposed_start_date=period.start_date,
                proposed_end_date=period.end_date,
            )
        )

    logger.info("booking_dates_proposed", booking_id=str(booking.pk), period=str(period))
    return booking


def cancel_booking(booking: Booking, *, source: str, reason: str = "") -> Booking:
    repository = BookingRepository()

    with transaction.atomic():
        booking = _reload_for_update(repository, booking)
        old_status = booking.status
        _ensure_transition(booking, Booking.Status.CANCELLED)

        booking.status = Booking.Status.CANCELLED
        booking.cancellation_source = source
        booking.cancellation_reason = reason
        booking.cancelled_at = timezone.now()
        booking.save(
            update_fields=["status", "cancellation_source", "cancellation_reason", "cancelled_at", "updated_at"]
        )

        message_bus.publish_on_commit(
            BookingCancelled(
                aggregate_id=booking.pk,
                booking_id=booking.pk,
                equipment_id=booking.equipment_id,
                source=source,
                old_status=old_status,
            )
        )

    logger.info("booking_cancelled", booking_id=str(booking.pk), source=source, old_status=old_status)
    return booking


def start_booking(booking: Booking) -> Booking:
    repository = BookingRepository()

    with transaction.atomic():
        booking = _reload_for_update(repository, booking)
        _ensure_transition(booking, Booking.Status.IN_PROGRESS)

        booking.status = Booking.Status.IN_PROGRESS
        booking.save(update_fields=["status", "updated_at"])

        message_bus.publish_on_commit(
            BookingStarted(aggregate_id=booking.pk, booking_id=booking.pk, equipment_id=booking.equipment_id)
        )

    logger.info("booking_started", booking_id=str(booking.pk))
    return booking


def complete_booking(booking: Booking) -> Booking:
    repository = BookingRepository()

    with transaction.atomic():
        booking = _reload_for_update(repository, booking)
        _ensure_transition(booking, Booking.Status.COMPLETED)

        booking.status = Booking.Status.COMPLETED
        booking.save(update_fields=["status", "updated_at"])

        message_bus.publish_on_commit(
            BookingCompleted(aggregate_id=booking.pk, booking_id=booking.pk, equipment_id=booking.equipment_id)
        )

    logger.info("booking_completed", booking_id=str(booking.pk))
    return booking
