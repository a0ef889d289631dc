"""ORM adapter used by the availability checks.

Every read goes through here so that database failures are turned into
``TransientError`` in one place and can never be mistaken for an empty
result.
"""

from __future__ import annotations

from typing import Iterable

import structlog  # type: ignore
from django.db import DatabaseError, transaction  # type: ignore
from django.db.utils import NotSupportedError  # type: ignore

from .domain.availability import BookedPeriod
from .exceptions import BookingNotFound, EquipmentNotFound, TransientError
from .models import Booking

logger = structlog.get_logger(__name__)


def _lock_queryset_if_possible(queryset):
    """Apply select_for_update when inside transaction.atomic()."""

    if not transaction.get_connection().in_atomic_block:
        return queryset

    try:
        return queryset.select_for_update()
    except NotSupportedError:
        return queryset


def _to_period(booking: Booking) -> BookedPeriod:
    renter = booking.renter
    return BookedPeriod(
        id=str(booking.id),
        start_date=booking.start_date,
        end_date=booking.end_date,
        status=booking.status,
        renter_name=renter.display_name if renter is not None else None,
    )


class BookingRepository:
    """Reads bookings and equipment rows for the availability service."""

    def get_booking(self, booking_id) -> Booking:
        try:
            return Booking.objects.select_related("equipment", "renter").get(pk=booking_id)
        except Booking.DoesNotExist:
            raise BookingNotFound()
        except DatabaseError as exc:
            logger.error("booking_load_failed", booking_id=str(booking_id), error=str(exc), exc_info=True)
            raise TransientError() from exc

    def lock_equipment(self, equipment_id):
        """Load the equipment row, locking it for the rest of the transaction when possible."""
        from apps.equipment.models import Equipment

        try:
            queryset = _lock_queryset_if_possible(Equipment.objects.filter(pk=equipment_id))
            equipment = queryset.first()
        except DatabaseError as exc:
            logger.error("equipment_load_failed", equipment_id=str(equipment_id), error=str(exc), exc_info=True)
            raise TransientError() from exc
        if equipment is None:
            raise EquipmentNotFound()
        return equipment

    def blocking_bookings(
        self,
        equipment_id,
        statuses: Iterable[str],
        *,
        exclude_booking_id=None,
    ) -> list[BookedPeriod]:
        """Bookings of an equipment whose status is in ``statuses``, oldest start first."""

        queryset = Booking.objects.filter(
            equipment_id=equipment_id,
            status__in=list(statuses),
        ).select_related("renter")

        if exclude_booking_id is not None:
            queryset = queryset.exclude(pk=exclude_booking_id)

        try:
            return [_to_period(booking) for booking in queryset.order_by("start_date", "created_at")]
        except DatabaseError as exc:
            logger.error(
                "blocking_bookings_load_failed",
                equipment_id=str(equipment_id),
                error=str(exc),
                exc_info=True,
            )
            raise TransientError() from exc
