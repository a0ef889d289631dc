"""Domain event handlers for the booking workflow.

Handlers run after the transaction that produced the event has committed
and only enqueue Celery tasks, so a slow SMTP server never holds a request.
"""

from __future__ import annotations

import structlog  # type: ignore
from django.conf import settings  # type: ignore

from shared.application.message_bus import MessageBus

from . import tasks
from .domain.events import (
    BookingApproved,
    BookingCancelled,
    BookingCompleted,
    BookingDatesProposed,
    BookingRejected,
    BookingRequested,
    BookingStarted,
)

logger = structlog.get_logger(__name__)


def _enqueue(task, event) -> None:
    if not getattr(settings, "BOOKING_NOTIFICATIONS_ENABLED", True):
        logger.debug("notification_skipped", task=task.name, booking_id=str(event.booking_id))
        return
    task.delay(str(event.booking_id))


def on_booking_requested(event: BookingRequested) -> None:
    _enqueue(tasks.notify_owner_new_request, event)


def on_booking_approved(event: BookingApproved) -> None:
    _enqueue(tasks.notify_booking_accepted, event)


def on_booking_rejected(event: BookingRejected) -> None:
    _enqueue(tasks.notify_booking_rejected, event)


def on_booking_dates_proposed(event: BookingDatesProposed) -> None:
    _enqueue(tasks.notify_dates_proposed, event)


def on_booking_started(event: BookingStarted) -> None:
    _enqueue(tasks.notify_rental_started, event)


def on_booking_completed(event: BookingCompleted) -> None:
    _enqueue(tasks.notify_rental_completed, event)


def on_booking_cancelled(event: BookingCancelled) -> None:
    logger.info(
        "booking_cancellation_recorded",
        booking_id=str(event.booking_id),
        source=event.source or "unknown",
        old_status=event.old_status,
    )


def register_handlers(bus: MessageBus) -> None:
    bus.register_event_handler(BookingRequested, on_booking_requested)
    bus.register_event_handler(BookingApproved, on_booking_approved)
    bus.register_event_handler(BookingRejected, on_booking_rejected)
    bus.register_event_handler(BookingDatesProposed, on_booking_dates_proposed)
    bus.register_event_handler(BookingStarted, on_booking_started)
    bus.register_event_handler(BookingCompleted, on_booking_completed)
    bus.register_event_handler(BookingCancelled, on_booking_cancelled)
