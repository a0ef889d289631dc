"""Celery tasks for the booking domain."""

from __future__ import annotations

import structlog  # type: ignore
from celery import shared_task  # type: ignore
from django.utils import timezone  # type: ignore

from apps.notifications import services as notifications

from .exceptions import AvailabilityError
from .models import Booking
from .services import complete_booking

logger = structlog.get_logger(__name__)


def _load_booking(booking_id: str) -> Booking | None:
    try:
        return Booking.objects.select_related("equipment", "equipment__owner", "renter").get(pk=booking_id)
    except Booking.DoesNotExist:
        logger.error("notification_booking_missing", booking_id=booking_id)
        return None


# ============================================================================
# NOTIFICATIONS
# ============================================================================

@shared_task(name="bookings.notify_owner_new_request")
def notify_owner_new_request(booking_id: str) -> bool:
    booking = _load_booking(booking_id)
    if booking is None:
        return False
    return notifications.send_booking_request_to_owner_email(booking)


@shared_task(name="bookings.notify_booking_accepted")
def notify_booking_accepted(booking_id: str) -> bool:
    booking = _load_booking(booking_id)
    if booking is None:
        return False
    return notifications.send_booking_accepted_email(booking)


@shared_task(name="bookings.notify_booking_rejected")
def notify_booking_rejected(booking_id: str) -> bool:
    booking = _load_booking(booking_id)
    if booking is None:
        return False
    return notifications.send_booking_rejected_email(booking)


@shared_task(name="bookings.notify_dates_proposed")
def notify_dates_proposed(booking_id: str) -> bool:
    booking = _load_booking(booking_id)
    if booking is None:
        return False
    if not booking.proposed_start_date or not booking.proposed_end_date:
        logger.warning("proposal_email_skipped", booking_id=booking_id, reason="no_proposed_dates")
        return False
    return notifications.send_date_proposal_email(booking)


@shared_task(name="bookings.notify_rental_started")
def notify_rental_started(booking_id: str) -> bool:
    booking = _load_booking(booking_id)
    if booking is None:
        return False
    return notifications.send_rental_started_email(booking)


@shared_task(name="bookings.notify_rental_completed")
def notify_rental_completed(booking_id: str) -> bool:
    booking = _load_booking(booking_id)
    if booking is None:
        return False
    return notifications.send_rental_completed_email(booking)


# ============================================================================
# PERIODIC TASKS (run by Celery Beat)
# ============================================================================

@shared_task(name="bookings.complete_finished_bookings")
def complete_finished_bookings() -> dict[str, int]:
    """
    Complete rentals whose last day is over.

    The end date is the return day, so a rental is finished once that day
    has passed.

    Returns:
        dict: {"completed": number of completed bookings}
    """
    today = timezone.localdate()
    completed_count = 0

    finished = Booking.objects.filter(
        status__in=[Booking.Status.IN_PROGRESS, Booking.Status.ONGOING],
        end_date__lt=today,
    )

    for booking in finished:
        try:
            complete_booking(booking)
            completed_count += 1
        except AvailabilityError as e:
            logger.warning("booking_completion_failed", booking_id=str(booking.pk), error=e.message)

    if completed_count > 0:
        logger.info("finished_bookings_completed", count=completed_count)

    return {"completed": completed_count}
